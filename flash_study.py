# flash_study.py - 학습 세션 상태 머신 (menu → prompt → answer → complete) + 타이머
# UI 없이 동작: 렌더러는 view()만 읽고, 시간 흐름은 Scheduler.run_due()로 주입
from __future__ import annotations
import time, heapq, itertools, queue, re, logging
from dataclasses import dataclass, field, asdict
from enum import Enum

from flash_content import Category, Sentence, FlashError
from flash_settings import Settings

log = logging.getLogger(__name__)

TICK           = 1.0   # 카운트다운 단위(초)
RATE_DELAY     = 1.0   # 평가 후 다음 문장까지
AUTOPLAY_DELAY = 0.5   # 정답 공개 후 자동 재생까지
WARNING_AT     = 5
DANGER_AT      = 3

RATINGS = ("easy", "normal", "hard")


class StudyError(FlashError):
    """Operation not allowed in the current phase."""


class Phase(str, Enum):
    MENU = "menu"
    PROMPT = "prompt"
    ANSWER = "answer"
    COMPLETE = "complete"


# --------- scheduler ---------
class Handle:
    __slots__ = ("due", "fn", "args", "cancelled")

    def __init__(self, due, fn, args):
        self.due, self.fn, self.args = due, fn, args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class Scheduler:
    """
    Single-threaded callback queue. Timers fire from run_due(); other threads
    hand work to the main thread only through post().
    """

    def __init__(self, clock=time.monotonic):
        self.clock = clock
        self._heap = []
        self._seq = itertools.count()
        self._posted = queue.SimpleQueue()

    def call_at(self, due: float, fn, *args) -> Handle:
        h = Handle(due, fn, args)
        heapq.heappush(self._heap, (due, next(self._seq), h))
        return h

    def call_later(self, delay: float, fn, *args) -> Handle:
        return self.call_at(self.clock() + delay, fn, *args)

    def post(self, fn, *args):
        self._posted.put((fn, args))

    def run_due(self) -> int:
        n = 0
        while True:
            try:
                fn, args = self._posted.get_nowait()
            except queue.Empty:
                break
            fn(*args); n += 1
        now = self.clock()
        while self._heap and self._heap[0][0] <= now:
            _, _, h = heapq.heappop(self._heap)
            if h.cancelled:
                continue
            h.cancelled = True
            h.fn(*h.args); n += 1
        return n

    def next_delay(self) -> float | None:
        while self._heap and self._heap[0][2].cancelled:
            heapq.heappop(self._heap)
        if not self._heap:
            return None
        return max(0.0, self._heap[0][0] - self.clock())


# --------- state ---------
@dataclass(slots=True)
class Stats:
    total: int = 0
    easy: int = 0
    normal: int = 0
    hard: int = 0

    def record(self, rating: str):
        if rating not in RATINGS:
            raise StudyError(f"unknown rating: {rating}")
        self.total += 1
        setattr(self, rating, getattr(self, rating) + 1)


@dataclass(slots=True)
class ViewState:
    phase: str
    category: dict | None = None
    korean: str = ""
    english: str = ""
    pronunciation: str = ""
    index: int = 0
    count: int = 0
    progress: str = "0/0"
    progress_pct: int = 0
    time_left: int = 0
    urgency: str = "normal"
    timer_running: bool = False
    paused: bool = False
    selected: str | None = None
    playing: bool = False
    stats: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


def pronunciation(text: str) -> str:
    return "[" + re.sub(r"[.,!?]", "", (text or "").lower()) + "]"


def urgency(time_left: int) -> str:
    if time_left <= DANGER_AT:
        return "danger"
    if time_left <= WARNING_AT:
        return "warning"
    return "normal"


class Study:
    """
    Session controller and phase machine for one user.

    start() enters the korean prompt with a countdown; reveal() (or expiry
    with auto_play) shows the answer and schedules speech; rate() tallies and
    advances after RATE_DELAY; advance() past the last sentence completes.
    """

    def __init__(self, settings: Settings, scheduler: Scheduler, sequencer=None):
        self.settings = settings
        self.scheduler = scheduler
        self.sequencer = sequencer
        self.phase = Phase.MENU
        self.category: Category | None = None
        self.sentences: list[Sentence] = []
        self.index = 0
        self.stats = Stats()
        self.time_left = 0
        self.paused = False
        self.selected: str | None = None
        self._timer: Handle | None = None
        self._tick_due = 0.0
        self._pending: Handle | None = None     # 평가 후 지연 advance
        self._autoplay: Handle | None = None

    # ---- queries ----
    @property
    def timer_running(self) -> bool:
        return self._timer is not None

    def current(self) -> Sentence | None:
        if 0 <= self.index < len(self.sentences):
            return self.sentences[self.index]
        return None

    def view(self) -> ViewState:
        n = len(self.sentences)
        cur = min(self.index + 1, n)
        v = ViewState(
            phase=self.phase.value,
            category=self.category.to_dict() if self.category else None,
            index=self.index, count=n,
            progress=f"{cur}/{n}", progress_pct=int(cur / n * 100) if n else 0,
            time_left=self.time_left, urgency=urgency(self.time_left),
            timer_running=self.timer_running, paused=self.paused,
            selected=self.selected,
            playing=bool(self.sequencer and self.sequencer.playing),
            stats=asdict(self.stats),
        )
        s = self.current()
        if s and self.phase in (Phase.PROMPT, Phase.ANSWER):
            v.korean = s.korean
            if self.phase is Phase.ANSWER:
                v.english = s.english
                v.pronunciation = pronunciation(s.english)
        return v

    # ---- session ----
    def start(self, sentences, category: Category | None = None):
        self._cancel_pending()
        self.sentences = list(sentences)
        self.category = category
        self.index = 0
        self.stats = Stats()
        log.info("study start: %s (%d sentences)", category.name if category else "-", len(self.sentences))
        self._show_prompt()

    def restart(self):
        if self.phase is Phase.MENU:
            raise StudyError("no session to restart")
        self._cancel_pending()
        self.index = 0
        self.stats = Stats()
        self._show_prompt()

    def to_menu(self):
        self._cancel_pending()
        self.reset_timer()
        if self.sequencer:
            self.sequencer.stop()
        self.phase = Phase.MENU
        self.category = None
        self.sentences = []
        self.index = 0
        self.stats = Stats()
        self.selected = None
        self.paused = False

    def advance(self):
        if self.phase not in (Phase.PROMPT, Phase.ANSWER):
            raise StudyError(f"cannot advance from {self.phase.value}")
        self._cancel_pending()
        self.index += 1
        self._show_prompt()

    def rate(self, rating: str):
        if self.phase is not Phase.ANSWER:
            raise StudyError(f"cannot rate in {self.phase.value}")
        if self._pending is not None:
            raise StudyError("already rated")
        self.stats.record(rating)
        self.selected = rating
        self._pending = self.scheduler.call_later(RATE_DELAY, self._deferred_advance)

    def _deferred_advance(self):
        self._pending = None
        if self.phase is Phase.ANSWER:
            self.advance()

    # ---- phases ----
    def _show_prompt(self):
        if self.index >= len(self.sentences):
            self._complete()
            return
        self.phase = Phase.PROMPT
        self.selected = None
        self.paused = False
        self.start_timer()

    def reveal(self):
        if self.phase is not Phase.PROMPT:
            raise StudyError(f"cannot reveal in {self.phase.value}")
        self.reset_timer()
        self.paused = False
        self.phase = Phase.ANSWER
        self.selected = None
        if self.settings.auto_play:
            self._autoplay = self.scheduler.call_later(AUTOPLAY_DELAY, self._autoplay_fire)

    def _autoplay_fire(self):
        self._autoplay = None
        if self.phase is Phase.ANSWER:
            self.replay()

    def replay(self) -> bool:
        s = self.current()
        if not s or not self.sequencer or self.phase is not Phase.ANSWER:
            return False
        return self.sequencer.play(s.english, self.settings.repeat_count)

    def _complete(self):
        self.reset_timer()
        self.phase = Phase.COMPLETE
        self.selected = None
        log.info("study complete: %s", asdict(self.stats))

    # ---- timer ----
    def start_timer(self):
        self.reset_timer()
        self.time_left = int(self.settings.timer_duration)
        self._tick_due = self.scheduler.clock() + TICK
        self._timer = self.scheduler.call_at(self._tick_due, self._tick)

    def reset_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.time_left = 0

    def _tick(self):
        self._timer = None
        self.time_left -= 1
        if self.time_left <= 0:
            # 만료: 자동재생 꺼져 있으면 0초에서 멈춘 채 prompt 유지
            self.reset_timer()
            if self.settings.auto_play:
                self.reveal()
            return
        self._tick_due += TICK
        self._timer = self.scheduler.call_at(self._tick_due, self._tick)

    def toggle_pause(self):
        """Stop the countdown (time left drops to 0), or start a full one again."""
        if self.phase is not Phase.PROMPT:
            raise StudyError(f"cannot pause in {self.phase.value}")
        if self.timer_running:
            self.reset_timer()
            self.paused = True
        else:
            self.start_timer()
            self.paused = False

    def _cancel_pending(self):
        for h in (self._pending, self._autoplay):
            if h is not None:
                h.cancel()
        self._pending = self._autoplay = None
