"""HSV / RGB / hex conversions.

All channel rounding is round-half-up (what ``Math.round`` does for
non-negative inputs), so hex strings produced here are stable under
repeated conversion.
"""

from __future__ import annotations

import math
import string
from typing import NamedTuple

import numpy as np
from coloraide import Color

Hex = str

FIT_HEX = {"method": "raytrace"}  # consistent gamut-fit for hex output


class RGB(NamedTuple):
    r: int
    g: int
    b: int


class HSV(NamedTuple):
    h: float
    s: float
    v: float


def _to_u8(x: float) -> int:
    return int(math.floor(x * 255.0 + 0.5))


def hsv_to_rgb(h: float, s: float, v: float) -> RGB:
    """h, s, v in [0, 1] → integer channels in [0, 255]."""
    i = math.floor(h * 6)
    f = h * 6 - i
    p = v * (1 - s)
    q = v * (1 - f * s)
    t = v * (1 - (1 - f) * s)

    sector = i % 6
    if sector == 0:
        r, g, b = v, t, p
    elif sector == 1:
        r, g, b = q, v, p
    elif sector == 2:
        r, g, b = p, v, t
    elif sector == 3:
        r, g, b = p, q, v
    elif sector == 4:
        r, g, b = t, p, v
    else:
        r, g, b = v, p, q

    return RGB(_to_u8(r), _to_u8(g), _to_u8(b))


def hsv_to_rgb_array(h: np.ndarray, s: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Vectorised :func:`hsv_to_rgb`; returns uint8 array of shape ``h.shape + (3,)``."""
    h, s, v = np.broadcast_arrays(
        np.asarray(h, np.float64), np.asarray(s, np.float64), np.asarray(v, np.float64)
    )
    i = np.floor(h * 6)
    f = h * 6 - i
    p = v * (1 - s)
    q = v * (1 - f * s)
    t = v * (1 - (1 - f) * s)
    sector = np.mod(i, 6).astype(np.int64)

    # rows: sector 0..5, same table as the scalar path
    table_r = np.stack([v, q, p, p, t, v])
    table_g = np.stack([t, v, v, q, p, p])
    table_b = np.stack([p, p, t, v, v, q])
    idx = sector[None, ...]
    rgb = np.stack(
        [
            np.take_along_axis(table_r, idx, axis=0)[0],
            np.take_along_axis(table_g, idx, axis=0)[0],
            np.take_along_axis(table_b, idx, axis=0)[0],
        ],
        axis=-1,
    )
    return np.clip(np.floor(rgb * 255.0 + 0.5), 0, 255).astype(np.uint8)


def rgb_to_hex(r: int, g: int, b: int) -> Hex:
    return f"#{int(r):02x}{int(g):02x}{int(b):02x}"


def hex_to_rgb(hex_str: Hex) -> RGB:
    """Parse ``#rrggbb``. Malformed input raises ``ValueError`` from ``int``."""
    value = int(hex_str[1:], 16)
    return RGB((value >> 16) & 255, (value >> 8) & 255, value & 255)


def hex_to_hsv(hex_str: Hex) -> HSV:
    r, g, b = (c / 255 for c in hex_to_rgb(hex_str))

    c_max = max(r, g, b)
    c_min = min(r, g, b)
    delta = c_max - c_min

    h = 0.0
    if delta != 0:
        if c_max == r:
            h = math.fmod((g - b) / delta, 6)
        elif c_max == g:
            h = (b - r) / delta + 2
        else:
            h = (r - g) / delta + 4
    h = (h * 60 + 360) % 360

    s = 0.0 if c_max == 0 else delta / c_max
    return HSV(h / 360, s, c_max)


def canon_hex(s: str) -> Hex:
    """Normalise any CSS colour (``#abc``, ``abc``, ``red``, ``rgb(...)``) to ``#rrggbb``."""
    raw = (s or "").strip()
    if not raw:
        raise ValueError("empty color")
    if len(raw) in (3, 6) and all(c in string.hexdigits for c in raw):
        raw = "#" + raw
    try:
        color = Color(raw)
    except ValueError as exc:
        raise ValueError(f"invalid color: {s!r}") from exc
    return color.convert("srgb").to_string(hex=True, alpha=False, fit=FIT_HEX).lower()


__all__ = [
    "HSV",
    "RGB",
    "Hex",
    "canon_hex",
    "hex_to_hsv",
    "hex_to_rgb",
    "hsv_to_rgb",
    "hsv_to_rgb_array",
    "rgb_to_hex",
]
