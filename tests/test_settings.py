import json
import pytest

from flash_settings import Settings, SettingsStore, SETTINGS_KEY, DEFAULT_SETTINGS


def test_defaults_when_file_absent(tmp_path):
    s = SettingsStore(tmp_path / "settings.json").load()
    assert s.to_dict() == DEFAULT_SETTINGS == {"timerDuration": 10, "autoPlay": True, "repeatCount": 2}


def test_stored_values_merge_over_defaults(tmp_path):
    p = tmp_path / "settings.json"
    p.write_text(json.dumps({SETTINGS_KEY: {"timerDuration": 15}}), encoding="utf-8")
    s = SettingsStore(p).load()
    assert (s.timer_duration, s.auto_play, s.repeat_count) == (15, True, 2)


def test_bad_values_are_ignored(tmp_path):
    p = tmp_path / "settings.json"
    p.write_text(json.dumps({SETTINGS_KEY: {"repeatCount": "lots", "theme": "dark", "autoPlay": False}}),
                 encoding="utf-8")
    s = SettingsStore(p).load()
    assert s.repeat_count == 2 and s.auto_play is False


def test_corrupt_file_falls_back(tmp_path, caplog):
    p = tmp_path / "settings.json"
    p.write_text("{{{", encoding="utf-8")
    assert SettingsStore(p).load() == Settings()
    assert "settings unreadable" in caplog.text


def test_save_overwrites_whole_object(tmp_path):
    p = tmp_path / "settings.json"
    p.write_text(json.dumps({SETTINGS_KEY: {"timerDuration": 20, "stale": 1}, "other": "keep"}),
                 encoding="utf-8")
    store = SettingsStore(p)
    s = store.load()
    s.update(auto_play=False)
    store.save(s)
    data = json.loads(p.read_text(encoding="utf-8"))
    assert data[SETTINGS_KEY] == {"timerDuration": 20, "autoPlay": False, "repeatCount": 2}
    assert data["other"] == "keep"
    assert not p.with_suffix(".tmp").exists()


def test_update_clamps_and_coerces():
    s = Settings()
    s.update(timerDuration="99", repeat_count=0, autoPlay="off")
    assert (s.timer_duration, s.repeat_count, s.auto_play) == (30, 1, False)
    with pytest.raises(KeyError):
        s.update(volume=3)
