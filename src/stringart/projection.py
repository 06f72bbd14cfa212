"""Projection from working pixels to physical output units.

Working space has its origin at the top-left with y pointing down.  Output
space (millimetres) has its origin at the bottom-left with y pointing up,
which is what DXF consumers expect.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .engine import SelectedLine
from .pins import Pin


@dataclass(frozen=True)
class ProjectedPin:
    index: int
    x: float
    y: float


@dataclass(frozen=True)
class ProjectedLine:
    """A selected line with its endpoints in output units."""

    pin1: int
    pin2: int
    step: int
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass
class StringArt:
    """Frame, pins and ordered lines in output units."""

    width: float
    height: float
    shape: str
    pins: list[ProjectedPin] = field(default_factory=list)
    lines: list[ProjectedLine] = field(default_factory=list)


def project(
    pins: Sequence[Pin],
    lines: Sequence[SelectedLine],
    work_width: int,
    work_height: int,
    output_width: float,
    output_height: float,
    shape: str,
) -> StringArt:
    """Rescale pins and lines into output units, flipping the y axis.

    X and Y are scaled independently by ``output / work`` on each axis.
    The inputs are not modified.
    """
    scale_x = output_width / work_width
    scale_y = output_height / work_height

    out_pins = [
        ProjectedPin(index=p.index, x=p.x * scale_x, y=(work_height - p.y) * scale_y)
        for p in pins
    ]
    out_lines = []
    for line in lines:
        a, b = out_pins[line.pin1], out_pins[line.pin2]
        out_lines.append(
            ProjectedLine(
                pin1=line.pin1,
                pin2=line.pin2,
                step=line.step,
                x1=a.x,
                y1=a.y,
                x2=b.x,
                y2=b.y,
            )
        )
    return StringArt(
        width=output_width,
        height=output_height,
        shape=shape,
        pins=out_pins,
        lines=out_lines,
    )


def instructions(lines: Sequence[SelectedLine | ProjectedLine]) -> list[str]:
    """Winding instructions, one per line: ``"{step}. pin {a} → pin {b}"``."""
    return [f"{line.step}. pin {line.pin1} → pin {line.pin2}" for line in lines]


def pin_sequence(lines: Sequence[SelectedLine | ProjectedLine]) -> list[int]:
    """Pins visited in order: the start pin followed by each line's end pin."""
    if not lines:
        return []
    return [lines[0].pin1] + [line.pin2 for line in lines]
