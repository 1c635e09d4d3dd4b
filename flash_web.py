# flash_web.py - 콘텐츠(data/) 서빙 + 학습 상태 머신 JSON API
# 실행:  pip install -e .   →   interview-flash-web  → http://127.0.0.1:7860
from __future__ import annotations
import os, logging
from dataclasses import asdict, replace
from pathlib import Path
from flask import Flask, request, send_from_directory, jsonify

from flash_content import (ContentStore, CategoryCache, ContentLoadFailure, CategoryNotFound,
                           make_deck, DATA_DIR)
from flash_settings import SettingsStore
from flash_study import Study, Scheduler, StudyError
from flash_speech import SilentEngine, SpeechSequencer

log = logging.getLogger(__name__)

APP = Flask(__name__)
TITLE = "Interview Flash"

ACTIONS = {
    "reveal":  lambda s: s.reveal(),
    "next":    lambda s: s.advance(),
    "pause":   lambda s: s.toggle_pause(),
    "replay":  lambda s: s.replay(),
    "restart": lambda s: s.restart(),
    "menu":    lambda s: s.to_menu(),
}


class WebCtx:
    """Per-process study state. Speech is left to the client, so the engine is silent."""

    def __init__(self, data=None, settings_path=None, clock=None):
        self.store = ContentStore(data if data is not None else DATA_DIR)
        self.cache = CategoryCache(self.store)
        self.settings_store = SettingsStore(settings_path)
        self.settings = self.settings_store.load()
        self.scheduler = Scheduler(clock) if clock is not None else Scheduler()
        self.sequencer = SpeechSequencer(SilentEngine(self.scheduler), self.scheduler)
        self.study = Study(self.settings, self.scheduler, self.sequencer)

    def categories(self):
        if not self.cache.categories:
            self.cache.load_categories()
        return self.cache.categories


_ctx: WebCtx | None = None


def get_ctx() -> WebCtx:
    global _ctx
    if _ctx is None:
        _ctx = WebCtx(settings_path=os.environ.get("FLASH_SETTINGS"))
    return _ctx


def _view(ctx: WebCtx):
    return jsonify(ctx.study.view().to_dict())


def _json_object() -> dict | None:
    """Request body as a dict; an empty body counts as {}, anything else non-dict as None."""
    body = request.get_json(silent=True)
    if body is None:
        return {}
    return body if isinstance(body, dict) else None


@APP.errorhandler(CategoryNotFound)
def _not_found(e):
    log.warning("%s", e)
    return jsonify({"error": str(e)}), 404


@APP.errorhandler(ContentLoadFailure)
def _load_failed(e):
    log.error("content load failed: %s", e)
    return jsonify({"error": str(e)}), 502


@APP.errorhandler(StudyError)
def _bad_state(e):
    return jsonify({"error": str(e), "phase": get_ctx().study.phase.value}), 409


@APP.before_request
def _catch_up():
    # 요청 사이에 지난 타이머 틱/지연 콜백을 먼저 처리
    get_ctx().scheduler.run_due()


@APP.route("/")
def index():
    ctx = get_ctx()
    return jsonify({"app": TITLE, "categories": [c.to_dict() for c in ctx.categories()],
                    "phase": ctx.study.phase.value})


@APP.route("/health")
def health():
    return jsonify({"ok": True})


@APP.route("/data/<path:fname>")
def data(fname):
    # 로컬 data/ 디렉터리일 때만 정적 제공
    ctx = get_ctx()
    if ctx.store.remote:
        return jsonify({"error": "not found"}), 404
    base = Path(ctx.store.base).resolve()
    p = (base / fname).resolve()
    if not p.is_relative_to(base) or not p.exists():
        return jsonify({"error": "not found"}), 404
    return send_from_directory(base, fname)


@APP.route("/api/categories")
def categories():
    return jsonify([c.to_dict() for c in get_ctx().categories()])


@APP.route("/api/categories/<cid>")
def category(cid):
    ctx = get_ctx()
    ctx.categories()
    return jsonify(ctx.cache.get(cid).to_dict())


@APP.route("/api/cache", methods=["GET", "DELETE"])
def cache():
    ctx = get_ctx()
    if request.method == "DELETE":
        ctx.cache.clear()
    return jsonify(ctx.cache.info())


@APP.route("/api/settings", methods=["GET", "PUT"])
def settings():
    ctx = get_ctx()
    if request.method == "PUT":
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return jsonify({"error": "expected a JSON object"}), 400
        # 사본에서 검증한 뒤 한꺼번에 반영 (Study가 같은 객체를 참조)
        try:
            new = replace(ctx.settings).update(**body)
        except (KeyError, TypeError, ValueError) as e:
            return jsonify({"error": f"bad setting: {e}"}), 400
        ctx.settings.update(**asdict(new))
        ctx.settings_store.save(ctx.settings)
    return jsonify(ctx.settings.to_dict())


@APP.route("/api/study")
def study_view():
    return _view(get_ctx())


@APP.route("/api/study/start", methods=["POST"])
def study_start():
    ctx = get_ctx()
    body = _json_object()
    if body is None:
        return jsonify({"error": "expected a JSON object"}), 400
    mode = body.get("mode", "category")
    if mode not in ("category", "all", "random"):
        return jsonify({"error": f"unknown mode: {mode}"}), 400
    seed = body.get("seed")
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, (int, str))):
        return jsonify({"error": f"bad seed: {seed!r}"}), 400
    ctx.categories()
    label, rows = make_deck(ctx.cache, mode, body.get("category"), seed)
    ctx.study.start(rows, label)
    return _view(ctx)


@APP.route("/api/study/rate", methods=["POST"])
def study_rate():
    ctx = get_ctx()
    body = _json_object()
    if body is None:
        return jsonify({"error": "expected a JSON object"}), 400
    ctx.study.rate(str(body.get("rating", "")))
    return _view(ctx)


@APP.route("/api/study/<action>", methods=["POST"])
def study_action(action):
    ctx = get_ctx()
    fn = ACTIONS.get(action)
    if fn is None:
        return jsonify({"error": f"unknown action: {action}"}), 404
    fn(ctx.study)
    return _view(ctx)


def main():
    logging.basicConfig(level=logging.INFO if os.environ.get("FLASH_VERBOSE") == "1" else logging.WARNING)
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "7860"))
    print(f" * open http://127.0.0.1:{port}  (mobile: http://<PC-IP>:{port})")
    APP.run(host=host, port=port, debug=False)


if __name__ == "__main__":
    main()
