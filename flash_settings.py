# flash_settings.py - 타이머/자동재생/반복횟수 설정 저장
from __future__ import annotations
import os, json, logging
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

SETTINGS_KEY  = "interview-english-settings"
SETTINGS_PATH = os.environ.get("FLASH_SETTINGS") or str(Path.home() / ".interview_flash.json")

TIMER_RANGE  = (3, 30)
REPEAT_RANGE = (1, 5)

# 저장 포맷(camelCase) <-> 필드명
_FIELDS = {"timerDuration": "timer_duration", "autoPlay": "auto_play", "repeatCount": "repeat_count"}


def _clamp(v, lo, hi):
    return max(lo, min(hi, v))


@dataclass(slots=True)
class Settings:
    timer_duration: int = 10
    auto_play: bool = True
    repeat_count: int = 2

    def update(self, **kw) -> "Settings":
        """Apply field updates (snake or camelCase keys), coercing and clamping values."""
        for k, v in kw.items():
            name = _FIELDS.get(k, k)
            if name == "timer_duration":
                self.timer_duration = _clamp(int(v), *TIMER_RANGE)
            elif name == "repeat_count":
                self.repeat_count = _clamp(int(v), *REPEAT_RANGE)
            elif name == "auto_play":
                if isinstance(v, str):
                    v = v.strip().lower() in ("1", "true", "yes", "on")
                self.auto_play = bool(v)
            else:
                raise KeyError(k)
        return self

    def to_dict(self) -> dict:
        return {"timerDuration": self.timer_duration, "autoPlay": self.auto_play,
                "repeatCount": self.repeat_count}


DEFAULT_SETTINGS = Settings().to_dict()


class SettingsStore:
    """One named key inside a JSON file holds the whole settings object."""

    def __init__(self, path: str | os.PathLike | None = None, key: str = SETTINGS_KEY):
        self.path = Path(path if path is not None else SETTINGS_PATH)
        self.key = key

    def _read_file(self) -> dict:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}

    def load(self) -> Settings:
        s = Settings()
        try:
            saved = self._read_file().get(self.key)
        except (OSError, ValueError) as e:
            log.warning("settings unreadable, using defaults: %s", e)
            return s
        if not isinstance(saved, dict):
            return s
        # 기본값 위에 저장값 병합(모르는 키/잘못된 값은 무시)
        for k, v in saved.items():
            try:
                s.update(**{k: v})
            except (KeyError, TypeError, ValueError):
                log.warning("ignoring setting %r=%r", k, v)
        return s

    def save(self, settings: Settings):
        try:
            data = self._read_file()
        except (OSError, ValueError):
            data = {}
        data[self.key] = settings.to_dict()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2, sort_keys=True)
        os.replace(tmp, self.path)
