from __future__ import annotations

import logging
import secrets
import uuid
from collections import OrderedDict
from functools import lru_cache
from typing import Any, Mapping

from flask import Flask, Response, current_app, jsonify, render_template, request, session

# Project-local core
from .canvas import Surface, draw_brightness_slider, draw_color_wheel
from .colorspace import canon_hex
from .gradient import BlendMode, GradientDescriptor
from .interaction import GradientSession, PointerEvent, WidgetKind

log = logging.getLogger(__name__)

DEFAULTS: Mapping[str, Any] = {
    "SECRET_KEY": None,  # generated per process when unset
    "LOG_LEVEL": "INFO",
    "WHEEL_SIZE": 200,
    "SLIDER_WIDTH": 200,
    "SLIDER_HEIGHT": 30,
    "MAX_IMAGE_SIZE": 1024,
    "MAX_SESSIONS": 256,
}

CLIENT_ERRORS = (ValueError, TypeError)


def parse_bool(val: Any, default: bool = True) -> bool:
    if val is None:
        return default
    if isinstance(val, bool):
        return val
    return str(val).strip().lower() not in {"0", "false", "no", "off", ""}


def parse_size(val: str | None, default: int, limit: int) -> int:
    n = int(val) if val not in (None, "") else default
    if not 1 <= n <= limit:
        raise ValueError(f"size must be between 1 and {limit}")
    return n


@lru_cache(maxsize=32)
def wheel_png(width: int, height: int) -> bytes:
    surface = Surface(width, height)
    draw_color_wheel(surface)
    return surface.to_png()


def brightness_png(base: str, width: int, height: int) -> bytes:
    surface = Surface(width, height)
    draw_brightness_slider(surface, base)
    return surface.to_png()


class SessionStore:
    """In-process ``GradientSession`` per browser, oldest evicted first."""

    def __init__(self, factory, max_sessions: int) -> None:
        self._factory = factory
        self._max = max(1, int(max_sessions))
        self._sessions: OrderedDict[str, GradientSession] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, sid: str) -> GradientSession:
        gs = self._sessions.get(sid)
        if gs is None:
            gs = self._sessions[sid] = self._factory()
            log.debug("new session %s (%d live)", sid, len(self._sessions))
            while len(self._sessions) > self._max:
                old, _ = self._sessions.popitem(last=False)
                log.info("evicted session %s", old)
        else:
            self._sessions.move_to_end(sid)
        return gs


def current_session() -> GradientSession:
    sid = session.get("sid")
    if sid is None:
        sid = session["sid"] = uuid.uuid4().hex
    return current_app.extensions["checker_gradient"].get(sid)


def bad_request(exc: Exception):
    return jsonify({"error": str(exc)}), 400


def server_error(exc: Exception, what: str):
    log.exception("%s failed", what)
    return jsonify({"error": str(exc)}), 500


def required(body: Any, *names: str) -> list[Any]:
    if not isinstance(body, dict):
        raise ValueError("request body must be a JSON object")
    missing = [n for n in names if n not in body]
    if missing:
        raise ValueError(f"missing field(s): {', '.join(missing)}")
    return [body[n] for n in names]


# ----------------------------- Flask app ----------------------------------


def create_app(config: Mapping[str, Any] | None = None) -> Flask:
    app = Flask(__name__, static_folder="static", template_folder="templates")
    app.config.from_mapping(DEFAULTS)
    app.config.from_prefixed_env("CHECKER_GRADIENT")
    if config:
        app.config.from_mapping(config)
    if not app.config["SECRET_KEY"]:
        app.config["SECRET_KEY"] = secrets.token_hex(16)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"], format="%(levelname)s: %(message)s"
    )

    def new_session() -> GradientSession:
        return GradientSession(
            wheel_size=int(app.config["WHEEL_SIZE"]),
            slider_width=int(app.config["SLIDER_WIDTH"]),
            slider_height=int(app.config["SLIDER_HEIGHT"]),
        )

    app.extensions["checker_gradient"] = SessionStore(
        new_session, app.config["MAX_SESSIONS"]
    )

    @app.route("/")
    def index():
        return render_template(
            "index.html",
            state=current_session().snapshot(),
            blend_modes=[b.value for b in BlendMode],
            wheel_size=app.config["WHEEL_SIZE"],
            slider_width=app.config["SLIDER_WIDTH"],
            slider_height=app.config["SLIDER_HEIGHT"],
        )

    @app.route("/wheel.png")
    def wheel():
        limit = app.config["MAX_IMAGE_SIZE"]
        try:
            size = parse_size(request.args.get("size"), app.config["WHEEL_SIZE"], limit)
            png = wheel_png(size, size)
        except ValueError as e:
            return bad_request(e)
        except Exception as exc:
            return server_error(exc, "Wheel rendering")
        return Response(png, mimetype="image/png")

    @app.route("/brightness.png")
    def brightness():
        limit = app.config["MAX_IMAGE_SIZE"]
        try:
            base = canon_hex(request.args.get("color", "ffffff"))
            width = parse_size(request.args.get("width"), app.config["SLIDER_WIDTH"], limit)
            height = parse_size(request.args.get("height"), app.config["SLIDER_HEIGHT"], limit)
            png = brightness_png(base, width, height)
        except ValueError as e:
            return bad_request(e)
        except Exception as exc:
            return server_error(exc, "Slider rendering")
        return Response(png, mimetype="image/png")

    @app.route("/state")
    def state():
        return jsonify(current_session().snapshot())

    @app.route("/pointer", methods=["POST"])
    def pointer():
        body = request.get_json(silent=True) or {}
        gs = current_session()
        try:
            endpoint, event = required(body, "endpoint", "event")
            event = PointerEvent(event)
            widget = WidgetKind(body.get("widget", "wheel"))
            x = float(body.get("x", 0.0))
            y = float(body.get("y", 0.0))
            changed = gs.dispatch(endpoint, widget, event, x, y)
        except CLIENT_ERRORS as e:
            return bad_request(e)
        except Exception as exc:
            return server_error(exc, "Pointer dispatch")
        return jsonify({**gs.snapshot(), "changed": changed})

    @app.route("/gradient", methods=["POST"])
    def gradient():
        body = request.get_json(silent=True) or {}
        gs = current_session()
        try:
            if "angle" in body:
                gs.set_angle(body["angle"])
            if "blend" in body:
                gs.set_blend_mode(body["blend"])
            if "checkerboard" in body:
                gs.set_checkerboard(parse_bool(body["checkerboard"]))
        except CLIENT_ERRORS as e:
            return bad_request(e)
        except Exception as exc:
            return server_error(exc, "Gradient update")
        return jsonify(gs.snapshot())

    @app.route("/css")
    def css():
        try:
            start = canon_hex(request.args.get("start", "efff00"))
            end = canon_hex(request.args.get("end", "ff6400"))
            desc = GradientDescriptor(
                angle=request.args.get("angle", 180),
                blend=request.args.get("blend", "screen"),
                checkerboard=parse_bool(request.args.get("checkerboard")),
            )
        except CLIENT_ERRORS as e:
            return bad_request(e)
        except Exception as exc:
            return server_error(exc, "CSS formatting")
        return jsonify({"background": desc.background(start, end), "css": desc.css(start, end)})

    return app

