"""Pointer-driven widgets and the per-session drag state machine.

Each widget is a self-contained unit: it knows its own size, renders
itself, and turns pointer events into colour updates through the callbacks
it was built with. ``GradientSession`` wires two endpoints (start, end) to
their wheel and slider and owns the shared ``InteractionState``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .canvas import (
    Surface,
    WheelGeometry,
    brightness_color_at,
    draw_brightness_slider,
    draw_color_wheel,
    full_value,
    wheel_color_at,
)
from .colorspace import Hex
from .gradient import BlendMode, GradientDescriptor

log = logging.getLogger(__name__)

DEFAULT_START: Hex = "#efff00"
DEFAULT_END: Hex = "#ff6400"

ColorSink = Callable[[Hex], None]
DragSink = Callable[[bool], None]
ColorSource = Callable[[], Hex]


class CanvasType(str, Enum):
    START = "start"
    END = "end"


class PointerEvent(str, Enum):
    DOWN = "down"
    MOVE = "move"
    UP = "up"
    LEAVE = "leave"


class WidgetKind(str, Enum):
    WHEEL = "wheel"
    BRIGHTNESS = "brightness"


def _parse(enum_cls, val):
    try:
        return enum_cls(val)
    except ValueError:
        supported = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"unknown {enum_cls.__name__} '{val}' (expected one of: {supported})") from None


@dataclass
class InteractionState:
    active: Optional[CanvasType] = None
    dragging: bool = False

    def begin(self, endpoint: CanvasType) -> None:
        self.active = endpoint
        self.dragging = True

    def reset(self) -> None:
        self.active = None
        self.dragging = False


@dataclass
class Endpoint:
    kind: CanvasType
    color: Hex


class _Widget:
    width: int
    height: int

    def __init__(self, set_color: ColorSink, set_dragging: DragSink) -> None:
        self._set_color = set_color
        self._set_dragging = set_dragging
        self._dragging = False

    @property
    def dragging(self) -> bool:
        return self._dragging

    def _color_at(self, x: float, y: float) -> Hex | None:
        raise NotImplementedError

    def _update(self, x: float, y: float) -> bool:
        color = self._color_at(x, y)
        if color is None:
            return False
        self._set_color(color)
        return True

    def pointer_down(self, x: float, y: float) -> bool:
        self._dragging = True
        self._set_dragging(True)
        return self._update(x, y)

    def pointer_move(self, x: float, y: float) -> bool:
        # hover without a press never paints
        if not self._dragging:
            return False
        return self._update(x, y)

    def pointer_up(self) -> None:
        self._dragging = False
        self._set_dragging(False)

    pointer_leave = pointer_up


class ColorWheel(_Widget):
    def __init__(
        self,
        set_color: ColorSink,
        set_dragging: DragSink,
        *,
        width: int = 200,
        height: int = 200,
    ) -> None:
        super().__init__(set_color, set_dragging)
        self.width = int(width)
        self.height = int(height)
        self.geometry = WheelGeometry.for_size(self.width, self.height)

    def _color_at(self, x: float, y: float) -> Hex | None:
        return wheel_color_at(x, y, self.geometry)

    def render(self) -> Surface:
        surface = Surface(self.width, self.height)
        draw_color_wheel(surface)
        return surface


class BrightnessSlider(_Widget):
    def __init__(
        self,
        current_color: ColorSource,
        set_color: ColorSink,
        set_dragging: DragSink,
        *,
        width: int = 200,
        height: int = 30,
    ) -> None:
        super().__init__(set_color, set_dragging)
        self._current_color = current_color
        self.width = int(width)
        self.height = int(height)

    def _color_at(self, x: float, y: float) -> Hex:
        return brightness_color_at(x, self.width, self._current_color())

    def render(self, *, tinted: bool = False) -> Surface:
        """White-ended slider, or ended at the current colour at full value when ``tinted``."""
        surface = Surface(self.width, self.height)
        base = full_value(self._current_color()) if tinted else "#ffffff"
        draw_brightness_slider(surface, base)
        return surface


@dataclass
class GradientSession:
    wheel_size: int = 200
    slider_width: int = 200
    slider_height: int = 30
    state: InteractionState = field(default_factory=InteractionState)
    gradient: GradientDescriptor = field(default_factory=GradientDescriptor)
    start: Endpoint = field(default_factory=lambda: Endpoint(CanvasType.START, DEFAULT_START))
    end: Endpoint = field(default_factory=lambda: Endpoint(CanvasType.END, DEFAULT_END))

    def __post_init__(self) -> None:
        self.widgets: Dict[tuple[CanvasType, WidgetKind], _Widget] = {}
        for ep in (self.start, self.end):
            sink = self._color_sink(ep)
            drag = self._drag_sink(ep.kind)
            self.widgets[(ep.kind, WidgetKind.WHEEL)] = ColorWheel(
                sink, drag, width=self.wheel_size, height=self.wheel_size
            )
            self.widgets[(ep.kind, WidgetKind.BRIGHTNESS)] = BrightnessSlider(
                self._color_source(ep),
                sink,
                drag,
                width=self.slider_width,
                height=self.slider_height,
            )

    # ---- callbacks handed to the widgets ----

    def _color_sink(self, ep: Endpoint) -> ColorSink:
        def set_color(color: Hex) -> None:
            # only the endpoint that owns the drag may change
            if self.state.active is not ep.kind:
                return
            log.debug("%s color %s -> %s", ep.kind.value, ep.color, color)
            ep.color = color

        return set_color

    def _color_source(self, ep: Endpoint) -> ColorSource:
        return lambda: ep.color

    def _drag_sink(self, kind: CanvasType) -> DragSink:
        def set_dragging(dragging: bool) -> None:
            if dragging:
                self.state.begin(kind)
            else:
                self.state.reset()
            log.debug("interaction state: active=%s dragging=%s", self.state.active, self.state.dragging)

        return set_dragging

    # ---- public API ----

    def endpoint(self, kind: CanvasType | str) -> Endpoint:
        kind = _parse(CanvasType, kind)
        return self.start if kind is CanvasType.START else self.end

    def widget(self, endpoint: CanvasType | str, kind: WidgetKind | str) -> _Widget:
        return self.widgets[(_parse(CanvasType, endpoint), _parse(WidgetKind, kind))]

    def dispatch(
        self,
        endpoint: CanvasType | str,
        kind: WidgetKind | str,
        event: PointerEvent | str,
        x: float = 0.0,
        y: float = 0.0,
    ) -> bool:
        """Feed one pointer event; returns True when a colour was updated."""
        widget = self.widget(endpoint, kind)
        event = _parse(PointerEvent, event)
        if event is PointerEvent.DOWN:
            # a press elsewhere ends any drag still held by another widget
            for other in self.widgets.values():
                if other is not widget and other.dragging:
                    other.pointer_up()
            return widget.pointer_down(x, y)
        if event is PointerEvent.MOVE:
            return widget.pointer_move(x, y)
        for other in self.widgets.values():
            if other is widget or other.dragging:
                other.pointer_up()
        return False

    def set_angle(self, angle: int | float | str) -> None:
        self.gradient = self.gradient.with_(angle=angle)

    def set_blend_mode(self, blend: BlendMode | str) -> None:
        self.gradient = self.gradient.with_(blend=BlendMode.parse(blend))

    def set_checkerboard(self, enabled: bool) -> None:
        self.gradient = self.gradient.with_(checkerboard=bool(enabled))

    def css(self) -> str:
        return self.gradient.css(self.start.color, self.end.color)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "start": self.start.color,
            "end": self.end.color,
            "angle": self.gradient.angle,
            "blend": self.gradient.blend.value,
            "checkerboard": self.gradient.checkerboard,
            "background": self.gradient.background(self.start.color, self.end.color),
            "css": self.css(),
            "bases": {
                "start": full_value(self.start.color),
                "end": full_value(self.end.color),
            },
            "active": self.state.active.value if self.state.active else None,
            "dragging": self.state.dragging,
        }


__all__ = [
    "DEFAULT_END",
    "DEFAULT_START",
    "BrightnessSlider",
    "CanvasType",
    "ColorWheel",
    "Endpoint",
    "GradientSession",
    "InteractionState",
    "PointerEvent",
    "WidgetKind",
]
