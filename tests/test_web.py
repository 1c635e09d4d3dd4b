import json
import pytest

import flash_web as webmod
from flash_web import APP, WebCtx
from flash_settings import SETTINGS_KEY


@pytest.fixture
def ctx(data_dir, tmp_path, clock, monkeypatch):
    c = WebCtx(data=data_dir, settings_path=tmp_path / "settings.json", clock=clock)
    monkeypatch.setattr(webmod, "_ctx", c)
    return c


@pytest.fixture
def client(ctx):
    return APP.test_client()


def test_health_and_index(client):
    assert client.get("/health").get_json() == {"ok": True}
    data = client.get("/").get_json()
    assert [c["id"] for c in data["categories"]] == ["intro", "work"]
    assert data["phase"] == "menu"


def test_data_files_served(client):
    rv = client.get("/data/categories.json")
    assert rv.status_code == 200
    assert json.loads(rv.data)["categories"][0]["file"] == "intro.json"
    assert client.get("/data/../settings.json").status_code == 404
    assert client.get("/data/missing.json").status_code == 404


def test_category_api_and_cache(client, ctx):
    rv = client.get("/api/categories/work")
    assert rv.status_code == 200
    assert len(rv.get_json()["sentences"]) == 3
    assert client.get("/api/cache").get_json() == {"size": 1, "categories": ["work"]}
    assert client.delete("/api/cache").get_json()["size"] == 0
    assert client.get("/api/categories/nope").status_code == 404


def test_broken_category_is_502(client, data_dir):
    (data_dir / "intro.json").write_text("[", encoding="utf-8")
    assert client.get("/api/categories/intro").status_code == 502


def test_study_flow(client, clock):
    v = client.post("/api/study/start", json={"mode": "category", "category": "intro"}).get_json()
    assert v["phase"] == "prompt" and v["korean"] == "안녕하세요." and v["time_left"] == 10

    clock.t += 3
    assert client.get("/api/study").get_json()["time_left"] == 7

    v = client.post("/api/study/reveal").get_json()
    assert v["phase"] == "answer" and v["english"] == "Hello." and v["pronunciation"] == "[hello]"

    v = client.post("/api/study/rate", json={"rating": "easy"}).get_json()
    assert v["selected"] == "easy" and v["stats"]["easy"] == 1

    clock.t += 1
    v = client.get("/api/study").get_json()
    assert v["phase"] == "prompt" and v["progress"] == "2/2"

    client.post("/api/study/next")
    v = client.get("/api/study").get_json()
    assert v["phase"] == "complete" and v["stats"]["total"] == 1

    assert client.post("/api/study/restart").get_json()["phase"] == "prompt"
    assert client.post("/api/study/menu").get_json()["phase"] == "menu"


def test_timer_catches_up_between_requests(client, clock):
    client.post("/api/study/start", json={"mode": "all"})
    clock.t += 10
    v = client.get("/api/study").get_json()
    assert v["phase"] == "answer" and v["count"] == 5


def test_study_errors(client):
    assert client.post("/api/study/start", json={"mode": "endless"}).status_code == 400
    assert client.post("/api/study/start", json={"mode": "category", "category": "nope"}).status_code == 404
    client.post("/api/study/start", json={"mode": "random", "seed": 1})
    rv = client.post("/api/study/rate", json={"rating": "easy"})
    assert rv.status_code == 409 and rv.get_json()["phase"] == "prompt"
    assert client.post("/api/study/dance").status_code == 404


def test_settings_roundtrip(client, tmp_path, ctx):
    assert client.get("/api/settings").get_json() == {"timerDuration": 10, "autoPlay": True, "repeatCount": 2}
    rv = client.put("/api/settings", json={"timerDuration": 5, "autoPlay": False})
    assert rv.get_json() == {"timerDuration": 5, "autoPlay": False, "repeatCount": 2}
    saved = json.loads((tmp_path / "settings.json").read_text(encoding="utf-8"))
    assert saved[SETTINGS_KEY]["timerDuration"] == 5
    assert ctx.study.settings.timer_duration == 5
    assert client.put("/api/settings", json={"volume": 1}).status_code == 400
    assert client.put("/api/settings", json=[1]).status_code == 400


def test_rejected_settings_change_nothing(client, tmp_path, ctx):
    rv = client.put("/api/settings", json={"timerDuration": 5, "volume": 1})
    assert rv.status_code == 400
    assert client.get("/api/settings").get_json()["timerDuration"] == 10
    assert ctx.study.settings.timer_duration == 10
    assert not (tmp_path / "settings.json").exists()


def test_non_object_bodies_are_400(client, ctx):
    assert client.post("/api/study/start", json=[1]).status_code == 400
    assert client.post("/api/study/rate", json=[1]).status_code == 400
    assert ctx.study.phase.value == "menu"


@pytest.mark.parametrize("seed", [[1], {"a": 1}, 1.5, True])
def test_bad_seed_is_400(client, seed):
    rv = client.post("/api/study/start", json={"mode": "random", "seed": seed})
    assert rv.status_code == 400 and "seed" in rv.get_json()["error"]


def test_string_seed_is_accepted(client):
    rv = client.post("/api/study/start", json={"mode": "random", "seed": "abc"})
    assert rv.status_code == 200 and rv.get_json()["count"] == 5
