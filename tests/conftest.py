import json
from pathlib import Path
import pytest

from flash_settings import Settings
from flash_study import Scheduler, Study
from flash_speech import SpeechSequencer

STEP = 0.25


class FakeClock:
    def __init__(self):
        self.t = 0.0

    def __call__(self):
        return self.t


class RecordingEngine:
    """Utterances only finish when the test calls finish()."""

    def __init__(self):
        self.spoken = []
        self.speaking = False
        self.cancels = 0
        self._on_done = None

    def speak(self, text, on_done):
        self.spoken.append(text)
        self.speaking = True
        self._on_done = on_done

    def cancel(self):
        self.cancels += 1
        self.speaking = False
        self._on_done = None

    def finish(self):
        cb, self._on_done = self._on_done, None
        self.speaking = False
        cb()


def write_content(root: Path, categories: dict) -> Path:
    """categories: {id: [(korean, english), ...]} -> data dir with categories.json"""
    root.mkdir(parents=True, exist_ok=True)
    index = []
    for cid, rows in categories.items():
        fname = f"{cid}.json"
        info = {"id": cid, "name": cid.title(), "emoji": "📝"}
        (root / fname).write_text(json.dumps({
            "category": info,
            "sentences": [{"korean": ko, "english": en} for ko, en in rows],
        }, ensure_ascii=False), encoding="utf-8")
        index.append({**info, "file": fname, "count": len(rows)})
    (root / "categories.json").write_text(json.dumps({"categories": index}, ensure_ascii=False), encoding="utf-8")
    return root


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sched(clock):
    return Scheduler(clock)


@pytest.fixture
def elapse(clock, sched):
    def run(seconds):
        n = int(round(seconds / STEP))
        for _ in range(n):
            clock.t += STEP
            sched.run_due()
    return run


@pytest.fixture
def engine():
    return RecordingEngine()


@pytest.fixture
def settings():
    return Settings(timer_duration=10, auto_play=True, repeat_count=2)


@pytest.fixture
def study(settings, sched, engine):
    return Study(settings, sched, SpeechSequencer(engine, sched))


@pytest.fixture
def data_dir(tmp_path):
    return write_content(tmp_path / "data", {
        "intro": [("안녕하세요.", "Hello."), ("저는 개발자입니다.", "I'm a developer.")],
        "work": [("회의가 있어요.", "I have a meeting."), ("늦었어요.", "I'm late!"), ("고마워요.", "Thanks, really.")],
    })
