"""Pixel surface, widget rasterisation and pointer → colour mapping."""

from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
from PIL import Image

from .colorspace import Hex, hex_to_hsv, hex_to_rgb, hsv_to_rgb, hsv_to_rgb_array, rgb_to_hex

log = logging.getLogger(__name__)

WHEEL_MARGIN = 5  # px between the wheel edge and the canvas edge

RGBA = Tuple[int, int, int, int]
GradientStop = Tuple[float, Hex]


class Surface:
    """RGBA pixel grid, the 2-D drawing context the widgets paint on."""

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"surface must be non-empty, got {width}x{height}")
        self.pixels = np.zeros((int(height), int(width), 4), dtype=np.uint8)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def _window(self, x: int, y: int, w: int, h: int) -> tuple[slice, slice]:
        x0, y0 = max(0, int(x)), max(0, int(y))
        x1, y1 = min(self.width, int(x + w)), min(self.height, int(y + h))
        return slice(y0, max(y0, y1)), slice(x0, max(x0, x1))

    def clear_rect(self, x: int, y: int, w: int, h: int) -> None:
        self.pixels[self._window(x, y, w, h)] = 0

    def fill_rect(self, x: int, y: int, w: int, h: int, color: Hex) -> None:
        self.pixels[self._window(x, y, w, h)] = (*hex_to_rgb(color), 255)

    def set_pixel(self, x: int, y: int, rgb: Sequence[int]) -> None:
        if 0 <= x < self.width and 0 <= y < self.height:
            self.pixels[int(y), int(x)] = (*rgb[:3], 255)

    def pixel(self, x: int, y: int) -> RGBA:
        r, g, b, a = self.pixels[int(y), int(x)]
        return int(r), int(g), int(b), int(a)

    def fill_linear_gradient(self, stops: Sequence[GradientStop]) -> None:
        """Fill the whole surface with a left → right gradient.

        ``stops`` are ``(offset, hex)`` pairs with offsets in [0, 1]; colour is
        sampled at each pixel centre.
        """
        if len(stops) < 2:
            raise ValueError("a gradient needs at least two stops")
        offsets = np.array([o for o, _ in stops], dtype=np.float64)
        colors = np.array([hex_to_rgb(c) for _, c in stops], dtype=np.float64)
        t = (np.arange(self.width, dtype=np.float64) + 0.5) / self.width
        row = np.stack([np.interp(t, offsets, colors[:, k]) for k in range(3)], axis=-1)
        row = np.floor(row + 0.5).astype(np.uint8)
        self.pixels[:, :, :3] = row[None, :, :]
        self.pixels[:, :, 3] = 255

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        Image.fromarray(self.pixels).save(buf, format="PNG")
        return buf.getvalue()


@dataclass(frozen=True)
class WheelGeometry:
    center_x: float
    center_y: float
    radius: float

    @classmethod
    def for_size(cls, width: int, height: int) -> "WheelGeometry":
        return cls(width / 2, height / 2, min(width, height) / 2 - WHEEL_MARGIN)


def _hue_of(dx, dy):
    # atan2 + π: hue 0 on the negative x axis, 0.5 on the positive x axis
    return (np.arctan2(dy, dx) + np.pi) / (2 * np.pi)


def draw_color_wheel(surface: Surface) -> WheelGeometry:
    """Paint the hue/saturation disc at full value; outside pixels stay clear."""
    geo = WheelGeometry.for_size(surface.width, surface.height)
    surface.clear_rect(0, 0, surface.width, surface.height)
    if geo.radius <= 0:
        return geo

    offsets = np.arange(-geo.radius, geo.radius, 1.0)
    x, y = np.meshgrid(offsets, offsets)
    distance = np.sqrt(x * x + y * y)
    inside = distance <= geo.radius

    px = np.floor(geo.center_x + x).astype(np.int64)
    py = np.floor(geo.center_y + y).astype(np.int64)
    inside &= (px >= 0) & (px < surface.width) & (py >= 0) & (py < surface.height)

    hue = _hue_of(x[inside], y[inside])
    sat = distance[inside] / geo.radius
    rgb = hsv_to_rgb_array(hue, sat, np.ones_like(hue))

    surface.pixels[py[inside], px[inside], :3] = rgb
    surface.pixels[py[inside], px[inside], 3] = 255
    log.debug("wheel drawn: %dx%d radius=%.1f", surface.width, surface.height, geo.radius)
    return geo


def draw_brightness_slider(surface: Surface, base: Hex = "#ffffff") -> None:
    """Black at x=0 to ``base`` at x=width."""
    surface.fill_linear_gradient([(0.0, "#000000"), (1.0, base)])


def wheel_color_at(x: float, y: float, geo: WheelGeometry) -> Hex | None:
    """Colour under the pointer, or ``None`` when the pointer is outside the wheel."""
    dx = x - geo.center_x
    dy = y - geo.center_y
    distance = math.sqrt(dx * dx + dy * dy)
    if distance > geo.radius:
        return None
    hue = (math.atan2(dy, dx) + math.pi) / (math.pi * 2)
    saturation = min(distance / geo.radius, 1.0) if geo.radius > 0 else 0.0
    return rgb_to_hex(*hsv_to_rgb(hue, saturation, 1.0))


def brightness_color_at(x: float, width: float, current: Hex) -> Hex:
    """Keep hue and saturation of ``current``; value follows the pointer."""
    h, s, _ = hex_to_hsv(current)
    v = min(max(x / width, 0.0), 1.0)
    return rgb_to_hex(*hsv_to_rgb(h, s, v))


def full_value(color: Hex) -> Hex:
    """``color`` pushed to value 1, the right-hand end of its brightness slider."""
    h, s, _ = hex_to_hsv(color)
    return rgb_to_hex(*hsv_to_rgb(h, s, 1.0))


__all__ = [
    "Surface",
    "WheelGeometry",
    "brightness_color_at",
    "draw_brightness_slider",
    "draw_color_wheel",
    "full_value",
    "wheel_color_at",
]
