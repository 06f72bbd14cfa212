"""Line rasterisation and the per-run line cache.

Every admissible pin pair is rasterised once, before selection starts,
into a contiguous array of flat raster indices (``y * width + x``).  The
selection engine reads these arrays many thousands of times, so they are
kept as plain ``intp`` index vectors rather than coordinate pairs.

A pair is admissible when its cyclic index distance is at least
``min_pin_distance``; inadmissible pairs are simply absent from the cache.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence

import numpy as np

from .errors import ConfigurationError
from .pins import Pin

logger = logging.getLogger(__name__)

LineKey = tuple[int, int]


def bresenham(x0: int, y0: int, x1: int, y1: int) -> np.ndarray:
    """Integer pixels on the line from ``(x0, y0)`` to ``(x1, y1)``.

    Walks the major axis one pixel at a time.  The minor axis steps only
    once the exact offset is strictly past the half-pixel mark (offsets
    round half-down, measured from the start point), which reproduces the
    two-term error-accumulator Bresenham pixel for pixel, ties included.

    Returns:
        ``(N, 2)`` int array of ``(x, y)`` pixels, ordered from the start
        point to the end point, both endpoints included.
    """
    x0, y0, x1, y1 = int(x0), int(y0), int(x1), int(y1)
    dx, dy = abs(x1 - x0), abs(y1 - y0)
    sx = 1 if x1 >= x0 else -1
    sy = 1 if y1 >= y0 else -1

    major = max(dx, dy)
    t = np.arange(major + 1, dtype=np.int64)
    if major == 0:
        return np.array([[x0, y0]], dtype=np.int64)

    if dx >= dy:
        xs = x0 + sx * t
        ys = y0 + sy * ((2 * t * dy + dx - 1) // (2 * dx))
    else:
        ys = y0 + sy * t
        xs = x0 + sx * ((2 * t * dx + dy - 1) // (2 * dy))
    return np.stack([xs, ys], axis=1)


def cyclic_distance(a: int, b: int, num_pins: int) -> int:
    """Index distance between pins *a* and *b* going the short way round."""
    d = abs(a - b)
    return min(d, num_pins - d)


def line_key(a: int, b: int) -> LineKey:
    """Canonical cache key for the unordered pair ``{a, b}``."""
    return (a, b) if a < b else (b, a)


class LineCache:
    """Pixel indices of every admissible line, owned by a single run.

    Args:
        pins: Pins in layout order.
        width: Raster width in pixels.
        height: Raster height in pixels.
        min_pin_distance: Minimum cyclic index distance for a pair to be
            admissible.
    """

    def __init__(
        self,
        pins: Sequence[Pin],
        width: int,
        height: int,
        min_pin_distance: int = 10,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"Raster must be non-empty, got {width}x{height}")
        if min_pin_distance < 1:
            raise ConfigurationError(
                f"min_pin_distance must be >= 1, got {min_pin_distance}"
            )
        self.pins = list(pins)
        self.width = width
        self.height = height
        self.min_pin_distance = min_pin_distance
        self._lines: dict[LineKey, np.ndarray] = {}
        self._build()

    def _build(self) -> None:
        n = len(self.pins)
        for i in range(n):
            p = self.pins[i]
            for j in range(i + 1, n):
                if cyclic_distance(i, j, n) < self.min_pin_distance:
                    continue
                q = self.pins[j]
                pixels = bresenham(p.x, p.y, q.x, q.y)
                xs, ys = pixels[:, 0], pixels[:, 1]
                inside = (xs >= 0) & (xs < self.width) & (ys >= 0) & (ys < self.height)
                flat = (ys[inside] * self.width + xs[inside]).astype(np.intp)
                if flat.size:
                    self._lines[(i, j)] = flat
        logger.debug(
            "Rasterised %d lines between %d pins (min distance %d)",
            len(self._lines),
            n,
            self.min_pin_distance,
        )

    @property
    def num_pins(self) -> int:
        return len(self.pins)

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        return line_key(*pair) in self._lines

    def __iter__(self) -> Iterator[LineKey]:
        return iter(self._lines)

    def get(self, a: int, b: int) -> np.ndarray | None:
        """Flat pixel indices of the line between *a* and *b*, or ``None``."""
        return self._lines.get(line_key(a, b))

    def pixels(self, a: int, b: int) -> np.ndarray:
        """Flat pixel indices of the line between *a* and *b*.

        Raises:
            KeyError: If the pair is not admissible.
        """
        return self._lines[line_key(a, b)]

    def coordinates(self, a: int, b: int) -> np.ndarray:
        """``(N, 2)`` array of ``(x, y)`` pixels for the line between *a* and *b*."""
        ys, xs = np.divmod(self.pixels(a, b), self.width)
        return np.stack([xs, ys], axis=1)

    def neighbours(self, pin: int) -> list[int]:
        """Admissible partners of *pin*, in ascending index order."""
        return [t for t in range(self.num_pins) if t != pin and line_key(pin, t) in self._lines]
