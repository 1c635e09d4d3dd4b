# flash_speech.py - TTS 엔진 래퍼 + 반복 재생 시퀀서
from __future__ import annotations
import threading, logging

import pyttsx3

log = logging.getLogger(__name__)

REPEAT_PAUSE = 0.5     # 반복 사이 쉬는 시간(초)
RATE_FACTOR  = 0.8     # 기본 발화속도 대비
LANG_HINT    = "en"


# --------- engines ---------
class SilentEngine:
    """No audio; every utterance completes on the next scheduler turn."""

    def __init__(self, scheduler):
        self.scheduler = scheduler
        self.speaking = False
        self.spoken: list[str] = []
        self._gen = 0

    def speak(self, text: str, on_done):
        self.spoken.append(text)
        self.speaking = True
        self._gen += 1
        gen = self._gen

        def done():
            if gen != self._gen:
                return
            self.speaking = False
            on_done()
        self.scheduler.post(done)

    def cancel(self):
        self._gen += 1
        self.speaking = False


def pick_voice(engine, lang_hint: str):
    """보이스 목록에서 id/name/languages에 lang_hint가 들어간 첫 보이스."""
    for v in engine.getProperty("voices") or []:
        vid = (getattr(v, "id", "") or "").lower()
        vnm = (getattr(v, "name", "") or "").lower()
        vlangs = []
        for x in getattr(v, "languages", None) or []:
            if isinstance(x, bytes):
                x = x.decode("utf-8", "ignore")
            vlangs.append(str(x).lower())
        if lang_hint in vid or lang_hint in vnm or any(lang_hint in x for x in vlangs):
            return v.id
    return None


class Pyttsx3Engine:
    """
    pyttsx3 in a worker thread per utterance (runAndWait blocks). The worker
    only posts completion back to the scheduler; a cancelled utterance never
    reports completion.
    """

    def __init__(self, scheduler, lang_hint: str = LANG_HINT, rate_factor: float = RATE_FACTOR):
        self.scheduler = scheduler
        self._eng = pyttsx3.init()
        base = self._eng.getProperty("rate") or 200
        self._eng.setProperty("rate", int(base * rate_factor))
        self._eng.setProperty("volume", 1.0)
        self.voice = pick_voice(self._eng, lang_hint)
        if self.voice:
            self._eng.setProperty("voice", self.voice)
        self._lock = threading.Lock()
        self._loop_lock = threading.Lock()
        self._gen = 0
        self.speaking = False

    def speak(self, text: str, on_done):
        with self._lock:
            self._gen += 1
            gen = self._gen
        self.speaking = True

        def finished(g):
            if g != self._gen:
                return
            self.speaking = False
            on_done()

        def run():
            try:
                with self._loop_lock:
                    self._eng.say(text)
                    self._eng.runAndWait()
            except RuntimeError as e:
                # 이미 루프가 돌고 있는 경우 등
                log.warning("tts failed: %s", e)
            self.scheduler.post(finished, gen)

        threading.Thread(target=run, daemon=True).start()

    def cancel(self):
        with self._lock:
            self._gen += 1
        self.speaking = False
        self._eng.stop()


def make_engine(scheduler):
    """pyttsx3 if a driver is available, otherwise silent."""
    try:
        return Pyttsx3Engine(scheduler)
    except (RuntimeError, OSError) as e:
        log.warning("pyttsx3 unavailable, speech disabled: %s", e)
        return SilentEngine(scheduler)


# --------- sequencer ---------
class SpeechSequencer:
    """
    play(text, n): n utterances one after another, REPEAT_PAUSE between them.
    While playing, further play() calls are ignored (not queued).
    """

    def __init__(self, engine, scheduler, pause: float = REPEAT_PAUSE):
        self.engine = engine
        self.scheduler = scheduler
        self.pause = pause
        self.playing = False
        self._text = ""
        self._left = 0
        self._next = None

    def play(self, text: str, repeat_count: int) -> bool:
        if self.playing or not text or repeat_count <= 0:
            return False
        self.playing = True
        self._text = text
        self._left = int(repeat_count)
        self._speak_next()
        return True

    def _speak_next(self):
        self._next = None
        if self.engine.speaking:
            self.engine.cancel()
        self.engine.speak(self._text, self._on_end)

    def _on_end(self):
        if not self.playing:
            return
        self._left -= 1
        if self._left > 0:
            self._next = self.scheduler.call_later(self.pause, self._speak_next)
        else:
            self.playing = False

    def stop(self):
        if self._next is not None:
            self._next.cancel()
            self._next = None
        if self.playing or self.engine.speaking:
            self.engine.cancel()
        self.playing = False
        self._left = 0
