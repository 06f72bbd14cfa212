"""Shared constants: frame shapes, size and quality presets, DXF layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Shape = Literal["circle", "square", "border"]

SHAPES: tuple[str, ...] = ("circle", "square", "border")

SHAPE_DESCRIPTIONS: dict[str, str] = {
    "circle": "Pins placed on a circle",
    "square": "Pins placed along the edges of a square",
    "border": "Pins placed along a rectangular border",
}


@dataclass(frozen=True)
class SizePreset:
    """Physical output size of a named frame, in millimetres."""

    width: float
    height: float
    shape: Shape
    label: str


@dataclass(frozen=True)
class QualityPreset:
    """Pin/line budget trading detail for generation time."""

    num_pins: int
    num_lines: int
    line_opacity: float
    label: str


SIZES: dict[str, SizePreset] = {
    "postcard": SizePreset(148, 105, "border", "Postcard (148x105mm)"),
    "a5": SizePreset(210, 148, "border", "A5 (210x148mm)"),
    "a4": SizePreset(297, 210, "border", "A4 (297x210mm)"),
    "square_small": SizePreset(150, 150, "square", "Square small (150x150mm)"),
    "square_medium": SizePreset(200, 200, "square", "Square medium (200x200mm)"),
    "square_large": SizePreset(250, 250, "square", "Square large (250x250mm)"),
    "circle_small": SizePreset(150, 150, "circle", "Circle small (Ø150mm)"),
    "circle_medium": SizePreset(200, 200, "circle", "Circle medium (Ø200mm)"),
    "circle_large": SizePreset(250, 250, "circle", "Circle large (Ø250mm)"),
}

QUALITY_PRESETS: dict[str, QualityPreset] = {
    "fast": QualityPreset(150, 2000, 0.15, "Fast preview, less detail"),
    "balanced": QualityPreset(200, 3500, 0.10, "Balance between quality and speed"),
    "detailed": QualityPreset(250, 5000, 0.08, "More detail, longer run"),
    "ultra": QualityPreset(300, 8000, 0.06, "Maximum detail, long run"),
}

# Raster values: 0 is black ink, 255 is blank paper.
WHITE: float = 255.0

# DXF layer names.
LAYER_FRAME = "FRAME"
LAYER_PINS = "PINS"
LAYER_STRINGS = "STRINGS"

# Radius of the pin tick marks in exported drawings (mm).
PIN_MARK_RADIUS: float = 0.5
