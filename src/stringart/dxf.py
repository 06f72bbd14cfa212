"""Vector export of a projected string art pattern.

Geometry is pushed into a :class:`VectorSink`, which keeps the pattern
independent of the file format.  :class:`DxfSink` is the one sink that
ships with the package; it writes an R12 drawing with ``ezdxf`` using three
layers:

    FRAME    the frame outline
    PINS     a small circle at each pin
    STRINGS  one LINE per thread segment, in winding order
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

import ezdxf

from .constants import LAYER_FRAME, LAYER_PINS, LAYER_STRINGS, PIN_MARK_RADIUS
from .projection import StringArt

logger = logging.getLogger(__name__)

Point = tuple[float, float]


class VectorSink(Protocol):
    """Receiver of vector primitives in output units."""

    def add_line(self, x1: float, y1: float, x2: float, y2: float, layer: str) -> None: ...

    def add_circle(self, cx: float, cy: float, r: float, layer: str) -> None: ...

    def add_polyline(self, points: Sequence[Point], closed: bool, layer: str) -> None: ...


class DxfSink:
    """:class:`VectorSink` backed by an ``ezdxf`` R12 document.

    Polylines are written as individual LINE entities, which every laser
    and CNC importer reads.
    """

    def __init__(self, dxfversion: str = "R12") -> None:
        self.doc = ezdxf.new(dxfversion)
        self.msp = self.doc.modelspace()
        for name in (LAYER_FRAME, LAYER_PINS, LAYER_STRINGS):
            self._ensure_layer(name)

    def _ensure_layer(self, name: str) -> None:
        if name not in self.doc.layers:
            self.doc.layers.new(name=name)

    def add_line(self, x1: float, y1: float, x2: float, y2: float, layer: str = "0") -> None:
        self._ensure_layer(layer)
        self.msp.add_line((x1, y1), (x2, y2), dxfattribs={"layer": layer})

    def add_circle(self, cx: float, cy: float, r: float, layer: str = "0") -> None:
        self._ensure_layer(layer)
        self.msp.add_circle((cx, cy), r, dxfattribs={"layer": layer})

    def add_polyline(
        self, points: Sequence[Point], closed: bool = False, layer: str = "0"
    ) -> None:
        if len(points) < 2:
            return
        for (x1, y1), (x2, y2) in zip(points, points[1:]):
            self.add_line(x1, y1, x2, y2, layer)
        if closed and len(points) > 2:
            (x1, y1), (x2, y2) = points[-1], points[0]
            self.add_line(x1, y1, x2, y2, layer)

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.doc.saveas(path)


def frame_circle(width: float, height: float) -> tuple[Point, float]:
    """Centre and radius of a circular frame in output units."""
    return (width / 2, height / 2), min(width, height) / 2


def frame_polygon(shape: str, width: float, height: float) -> list[Point]:
    """Corner points of a square or border frame, in drawing order."""
    if shape == "square":
        size = min(width, height)
        x0, y0 = (width - size) / 2, (height - size) / 2
        return [(x0, y0), (x0 + size, y0), (x0 + size, y0 + size), (x0, y0 + size)]
    return [(0.0, 0.0), (width, 0.0), (width, height), (0.0, height)]


def write_art(art: StringArt, sink: VectorSink) -> None:
    """Push the frame, pin marks and strings of *art* into *sink*."""
    if art.shape == "circle":
        (cx, cy), r = frame_circle(art.width, art.height)
        sink.add_circle(cx, cy, r, LAYER_FRAME)
    else:
        sink.add_polyline(frame_polygon(art.shape, art.width, art.height), True, LAYER_FRAME)

    for pin in art.pins:
        sink.add_circle(pin.x, pin.y, PIN_MARK_RADIUS, LAYER_PINS)

    for line in art.lines:
        sink.add_line(line.x1, line.y1, line.x2, line.y2, LAYER_STRINGS)


def save_dxf(art: StringArt, path: Path) -> Path:
    """Write *art* to a DXF file at *path* and return the path."""
    sink = DxfSink()
    write_art(art, sink)
    sink.save(path)
    logger.info("Wrote %d strings to %s", len(art.lines), path)
    return path
