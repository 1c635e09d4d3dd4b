# flash_desktop.py  (Python 3.10+ + PySimpleGUI + pyttsx3)
# 면접 영어 훈련: 한국어 문장 → 말해보기(타이머) → 영어 정답 + TTS 반복 → 난이도 평가

import os, logging
import PySimpleGUI as sg

from flash_content import (ContentStore, CategoryCache, FlashError, make_deck)
from flash_settings import SettingsStore, TIMER_RANGE, REPEAT_RANGE
from flash_study import Study, Scheduler, Phase, StudyError, RATINGS
from flash_speech import SpeechSequencer, make_engine

log = logging.getLogger(__name__)

TITLE     = "Interview Flash"
POLL_MS   = 100
MIN_POLL_MS = 10
COLS      = 3          # 카테고리 버튼 열 수

TEXT_COLOR = "#FFFFFF"
CARD_BG    = "#111111"
URGENCY_COLOR = {"normal": TEXT_COLOR, "warning": "#ffd07f", "danger": "#ff6b6b"}
RATING_LABEL  = {"easy": "😊 쉬움", "normal": "🙂 보통", "hard": "😥 어려움"}
RATING_COLOR  = ("#FFFFFF", "#2a303a")
SELECTED_COLOR = ("#000000", "#58a6ff")

WELCOME = "✨ 학습을 시작해보세요"
LOADING = "⏳ 데이터 로딩 중..."

try:
    sg.set_options(font=("Segoe UI", 11))
except Exception:
    pass


def HSEP():
    return sg.HorizontalSeparator()


# --------- layouts ---------
def layout_menu(categories):
    rows, row = [], []
    for c in categories:
        row.append(sg.Button(f"{c.emoji} {c.name}\n📝 {c.count}개 문장", key=f"-CAT-{c.id}-", size=(22, 3)))
        if len(row) == COLS:
            rows.append(row); row = []
    if row:
        rows.append(row)
    return [
        [sg.Text("면접 영어 말하기", font=("Segoe UI", 20, "bold"))],
        [sg.Text(WELCOME, key="-WELCOME-", font=("Segoe UI", 13))],
        [HSEP()],
        [sg.Button("🔀 랜덤 모드", key="-RANDOM-", size=(16, 1)),
         sg.Button("📚 전체 학습", key="-ALL-", size=(16, 1)),
         sg.Button("⚙ 설정", key="-SETTINGS-", size=(10, 1))],
        *rows,
    ]


def layout_settings(settings):
    return [
        [sg.Text("설정", font=("Segoe UI", 16, "bold"))],
        [sg.Text("타이머(초)"),
         sg.Slider(range=TIMER_RANGE, resolution=1, default_value=settings.timer_duration,
                   orientation="h", key="-TIMER_DUR-", size=(24, 15), enable_events=True)],
        [sg.Checkbox("정답 자동 재생", default=settings.auto_play, key="-AUTO_PLAY-", enable_events=True)],
        [sg.Text("반복 횟수"),
         sg.Combo(list(range(REPEAT_RANGE[0], REPEAT_RANGE[1] + 1)), default_value=settings.repeat_count,
                  key="-REPEAT-", readonly=True, size=(6, 1), enable_events=True)],
        [sg.Button("뒤로", key="-SETTINGS_BACK-", size=(10, 1))],
    ]


def layout_study():
    prompt = [
        [sg.Text("", key="-KOREAN-", font=("Segoe UI", 22, "bold"), size=(40, 3),
                 justification="center", background_color=CARD_BG, text_color=TEXT_COLOR)],
        [sg.Text("0", key="-TIMER-", font=("Consolas", 32, "bold"), size=(4, 1), justification="center")],
        [sg.Button("정답 보기", key="-REVEAL-", size=(12, 1)),
         sg.Button("⏸️ 일시정지", key="-PAUSE-", size=(12, 1))],
    ]
    answer = [
        [sg.Text("", key="-ENGLISH-", font=("Segoe UI", 22, "bold"), size=(40, 3),
                 justification="center", background_color=CARD_BG, text_color=TEXT_COLOR)],
        [sg.Text("", key="-PRON-", font=("Consolas", 13), text_color="#aab2c0")],
        [sg.Button("🔊 다시 듣기", key="-REPLAY-", size=(12, 1)),
         sg.Button("다음 ▶", key="-NEXT-", size=(10, 1))],
        [sg.Button(RATING_LABEL[r], key=f"-RATE-{r}-", size=(10, 1), button_color=RATING_COLOR)
         for r in RATINGS],
    ]
    complete = [
        [sg.Text("🎉 학습 완료!", font=("Segoe UI", 20, "bold"))],
        [sg.Text("", key="-SUMMARY-", font=("Segoe UI", 13))],
        [sg.Button("다시 하기", key="-RESTART-", size=(12, 1)),
         sg.Button("메인으로", key="-HOME-", size=(12, 1))],
    ]
    return [
        [sg.Button("◀ 메뉴", key="-BACK-"), sg.Text("", key="-CATEGORY-", font=("Segoe UI", 13, "bold"))],
        [sg.ProgressBar(100, orientation="h", size=(50, 14), key="-PROG-"),
         sg.Text("0/0", key="-PROG_TXT-", size=(10, 1))],
        [sg.Column(prompt, key="-PH_PROMPT-", element_justification="center")],
        [sg.Column(answer, key="-PH_ANSWER-", element_justification="center", visible=False)],
        [sg.Column(complete, key="-PH_COMPLETE-", element_justification="center", visible=False)],
    ]


def make_window(categories, settings):
    layout = [[
        sg.Column(layout_menu(categories), key="-SC_MENU-"),
        sg.Column(layout_settings(settings), key="-SC_SETTINGS-", visible=False),
        sg.Column(layout_study(), key="-SC_STUDY-", visible=False),
    ]]
    return sg.Window(TITLE, layout, finalize=True, return_keyboard_events=True, resizable=True)


# --------- render ---------
def show_screen(win, screen: str):
    for name in ("menu", "settings", "study"):
        win[f"-SC_{name.upper()}-"].update(visible=(name == screen))


def render(win, study: Study):
    v = study.view()
    if v.phase == Phase.MENU.value:
        return
    cat = v.category or {}
    win["-CATEGORY-"].update(f"{cat.get('emoji', '')} {cat.get('name', '')}")
    win["-PROG-"].update(v.progress_pct)
    win["-PROG_TXT-"].update(v.progress)
    for ph in ("prompt", "answer", "complete"):
        win[f"-PH_{ph.upper()}-"].update(visible=(v.phase == ph))

    if v.phase == Phase.PROMPT.value:
        win["-KOREAN-"].update(v.korean)
        win["-TIMER-"].update(str(v.time_left), text_color=URGENCY_COLOR[v.urgency])
        win["-PAUSE-"].update("▶️ 계속" if v.paused else "⏸️ 일시정지")
    elif v.phase == Phase.ANSWER.value:
        win["-ENGLISH-"].update(v.english)
        win["-PRON-"].update(v.pronunciation)
        for r in RATINGS:
            win[f"-RATE-{r}-"].update(button_color=SELECTED_COLOR if v.selected == r else RATING_COLOR)
    else:
        s = v.stats
        win["-SUMMARY-"].update(f"총 {s['total']}문장 · 쉬움 {s['easy']} · 보통 {s['normal']} · 어려움 {s['hard']}")


# --------- actions ---------
def start_deck(win, cache, study, mode, category_id=None):
    win["-WELCOME-"].update(LOADING); win.refresh()
    try:
        label, rows = make_deck(cache, mode, category_id)
    except FlashError as e:
        log.error("study start failed (%s): %s", mode, e)
        sg.popup_error("데이터를 불러오는 중 오류가 발생했습니다.", keep_on_top=True)
        return False
    finally:
        win["-WELCOME-"].update(WELCOME)
    study.start(rows, label)
    return True


def apply_setting(settings, store, **kw):
    settings.update(**kw)
    store.save(settings)


def poll_timeout(sched) -> int:
    """win.read timeout (ms): wake for the next due timer, never later than POLL_MS."""
    d = sched.next_delay()
    if d is None:
        return POLL_MS
    return max(MIN_POLL_MS, min(POLL_MS, int(d * 1000)))


def handle_study_event(event, study: Study):
    if event in ("-REVEAL-", "space", "space:32") and study.phase is Phase.PROMPT:
        study.reveal()
    elif event == "-PAUSE-":
        study.toggle_pause()
    elif event == "-REPLAY-":
        study.replay()
    elif event in ("-NEXT-", "Right", "Right:39"):
        study.advance()
    elif event.startswith("-RATE-"):
        study.rate(event[len("-RATE-"):-1])
    elif event == "-RESTART-":
        study.restart()


def main():
    logging.basicConfig(level=logging.INFO if os.environ.get("FLASH_VERBOSE") == "1" else logging.WARNING)
    sched = Scheduler()
    seq = SpeechSequencer(make_engine(sched), sched)
    settings_store = SettingsStore()
    settings = settings_store.load()
    study = Study(settings, sched, seq)
    cache = CategoryCache(ContentStore())
    try:
        cache.load_categories()
    except FlashError as e:
        log.error("init failed: %s", e)
        sg.popup_error("앱을 불러오는 중 오류가 발생했습니다.", keep_on_top=True)
        return

    win = make_window(cache.categories, settings)
    screen = "menu"
    while True:
        event, values = win.read(timeout=poll_timeout(sched))
        if event == sg.WIN_CLOSED:
            break
        sched.run_due()

        if screen == "menu":
            if event == "-SETTINGS-":
                screen = "settings"
            elif event in ("-RANDOM-", "-ALL-") or str(event).startswith("-CAT-"):
                if event == "-RANDOM-":
                    ok = start_deck(win, cache, study, "random")
                elif event == "-ALL-":
                    ok = start_deck(win, cache, study, "all")
                else:
                    ok = start_deck(win, cache, study, "category", event[len("-CAT-"):-1])
                if ok:
                    screen = "study"

        elif screen == "settings":
            if event == "-TIMER_DUR-":
                apply_setting(settings, settings_store, timer_duration=int(values["-TIMER_DUR-"]))
            elif event == "-AUTO_PLAY-":
                apply_setting(settings, settings_store, auto_play=bool(values["-AUTO_PLAY-"]))
            elif event == "-REPEAT-":
                apply_setting(settings, settings_store, repeat_count=int(values["-REPEAT-"]))
            elif event == "-SETTINGS_BACK-":
                screen = "menu"

        elif screen == "study":
            if event in ("-BACK-", "-HOME-"):
                study.to_menu()
                screen = "menu"
            elif event and event != sg.TIMEOUT_EVENT:
                try:
                    handle_study_event(event, study)
                except StudyError as e:
                    log.info("ignored %s: %s", event, e)

        show_screen(win, screen)
        if screen == "study":
            render(win, study)

    seq.stop()
    win.close()


if __name__ == "__main__":
    main()
