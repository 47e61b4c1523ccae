"""CSS gradient formatting."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum

from .colorspace import Hex

ANGLE_MIN = 0
ANGLE_MAX = 360


class BlendMode(str, Enum):
    SCREEN = "screen"
    OVERLAY = "overlay"
    HARD_LIGHT = "hard-light"
    COLOR_BURN = "color-burn"

    @classmethod
    def parse(cls, val: str | "BlendMode") -> "BlendMode":
        if isinstance(val, cls):
            return val
        if not isinstance(val, str):
            raise ValueError(f"blend mode must be a string, got {val!r}")
        m = val.strip().lower()
        try:
            return cls(m)
        except ValueError:
            supported = ", ".join(b.value for b in cls)
            raise ValueError(f"unknown blend mode '{val}' (expected one of: {supported})") from None


def clamp_angle(val: int | float | str) -> int:
    try:
        angle = float(val)
    except (TypeError, ValueError):
        raise ValueError(f"angle must be a number, got {val!r}") from None
    if not math.isfinite(angle):
        raise ValueError(f"angle must be finite, got {val!r}")
    angle = int(round(angle))
    return max(ANGLE_MIN, min(ANGLE_MAX, angle))


def linear_gradient(angle: int, start: Hex, end: Hex) -> str:
    return f"linear-gradient({angle}deg, {start}, {end})"


def checkerboard_layer(light: Hex = "#e1e1e1", dark: Hex = "#bdbdbd", tile: int = 40) -> str:
    """Four-quadrant conic tile repeated every ``tile`` px."""
    return (
        f"conic-gradient({light} 0.25turn, {dark} 0.25turn 0.5turn, "
        f"{light} 0.5turn 0.75turn, {dark} 0.75turn) "
        f"top left / {tile}px {tile}px repeat"
    )


@dataclass(frozen=True)
class GradientDescriptor:
    angle: int = 180
    blend: BlendMode = BlendMode.SCREEN
    checkerboard: bool = True
    checker_light: Hex = "#e1e1e1"
    checker_dark: Hex = "#bdbdbd"
    tile: int = 40

    def __post_init__(self) -> None:
        object.__setattr__(self, "angle", clamp_angle(self.angle))
        object.__setattr__(self, "blend", BlendMode.parse(self.blend))
        if self.tile <= 0:
            raise ValueError("tile must be a positive number of pixels")

    def with_(self, **changes) -> "GradientDescriptor":
        return replace(self, **changes)

    def background(self, start: Hex, end: Hex) -> str:
        linear = linear_gradient(self.angle, start, end)
        if not self.checkerboard:
            return linear
        checker = checkerboard_layer(self.checker_light, self.checker_dark, self.tile)
        return f"{checker}, {linear}"

    def css(self, start: Hex, end: Hex) -> str:
        return (
            f"background: {self.background(start, end)}; "
            f"background-blend-mode: {self.blend.value};"
        )


__all__ = [
    "BlendMode",
    "GradientDescriptor",
    "checkerboard_layer",
    "clamp_angle",
    "linear_gradient",
]
