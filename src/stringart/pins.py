"""Pin placement around the frame.

Pins are numbered in layout order, which walks the frame outline so that
neighbouring indices are neighbouring pins.  Pin 0 always sits at the
shape's start point:

    circle  top centre, then clockwise
    square  top-left corner of the inscribed square, then clockwise
    border  top-left corner of the border rectangle, then clockwise

Coordinates are integer pixels in the working raster (origin top-left,
y pointing down).
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .errors import ConfigurationError

MIN_PINS = 4


@dataclass(frozen=True)
class Pin:
    """A fixed anchor point in working pixel space."""

    index: int
    x: float
    y: float


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _circle(num_pins: int, width: int, height: int, margin: float) -> list[tuple[float, float]]:
    cx, cy = width / 2, height / 2
    radius = min(width, height) / 2 - margin
    points = []
    for i in range(num_pins):
        angle = 2 * math.pi * i / num_pins - math.pi / 2
        points.append((cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return points


def _square(num_pins: int, width: int, height: int, margin: float) -> list[tuple[float, float]]:
    size = min(width, height) - 2 * margin
    x0 = width / 2 - size / 2
    y0 = height / 2 - size / 2
    per_side = num_pins // 4
    spacing = size / per_side

    points: list[tuple[float, float]] = []
    points += [(x0 + i * spacing, y0) for i in range(per_side)]  # top, L→R
    points += [(x0 + size, y0 + i * spacing) for i in range(per_side)]  # right, T→B
    points += [(x0 + size - i * spacing, y0 + size) for i in range(per_side)]  # bottom, R→L
    points += [(x0, y0 + size - i * spacing) for i in range(per_side)]  # left, B→T
    return points


def _border(num_pins: int, width: int, height: int, margin: float) -> list[tuple[float, float]]:
    rect_w = width - 2 * margin
    rect_h = height - 2 * margin
    perimeter = 2 * (rect_w + rect_h)
    spacing = perimeter / num_pins

    points = []
    for i in range(num_pins):
        d = (i * spacing) % perimeter
        if d < rect_w:
            x, y = margin + d, margin
        elif d < rect_w + rect_h:
            x, y = margin + rect_w, margin + (d - rect_w)
        elif d < 2 * rect_w + rect_h:
            x, y = margin + rect_w - (d - rect_w - rect_h), margin + rect_h
        else:
            x, y = margin, margin + rect_h - (d - 2 * rect_w - rect_h)
        points.append((x, y))
    return points


_LAYOUTS = {
    "circle": _circle,
    "square": _square,
    "border": _border,
}


def expected_pin_count(num_pins: int, shape: str) -> int:
    """Number of pins :func:`layout_pins` returns for *num_pins*.

    The square layout puts ``num_pins // 4`` pins on each side and drops the
    remainder.
    """
    if shape == "square":
        return 4 * (num_pins // 4)
    return num_pins


def layout_pins(
    num_pins: int,
    width: int,
    height: int,
    shape: str = "circle",
    margin: float = 5,
) -> list[Pin]:
    """Place pins along the frame outline.

    Args:
        num_pins: Requested pin count (>= 4).
        width: Working raster width in pixels.
        height: Working raster height in pixels.
        shape: ``circle``, ``square`` or ``border``.
        margin: Pixels kept clear of the raster edge.

    Returns:
        Pins in layout order, positions rounded to whole pixels.

    Raises:
        ConfigurationError: On a pin count below 4, non-positive dimensions,
            an unknown shape or a margin that leaves no room for the frame.
    """
    if num_pins < MIN_PINS:
        raise ConfigurationError(f"num_pins must be >= {MIN_PINS}, got {num_pins}")
    if width <= 0 or height <= 0:
        raise ConfigurationError(f"Raster must be non-empty, got {width}x{height}")
    if margin < 0 or 2 * margin >= min(width, height):
        raise ConfigurationError(
            f"margin {margin} leaves no room in a {width}x{height} raster"
        )
    try:
        layout = _LAYOUTS[shape]
    except KeyError:
        raise ConfigurationError(f"Unknown shape: {shape!r}") from None

    return [
        Pin(index=i, x=_round_half_up(x), y=_round_half_up(y))
        for i, (x, y) in enumerate(layout(num_pins, width, height, margin))
    ]
