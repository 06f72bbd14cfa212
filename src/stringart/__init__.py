from stringart.config import CropRect, StringArtConfig, load_defaults
from stringart.dxf import DxfSink, VectorSink, save_dxf, write_art
from stringart.engine import (
    GenerationResult,
    GenerationStats,
    GreedySelector,
    SelectedLine,
    StopReason,
    select_lines,
)
from stringart.errors import ConfigurationError, StringArtError, UpstreamDecodeError
from stringart.instructions import build_document, format_instructions, load_document
from stringart.lines import LineCache, bresenham
from stringart.pins import Pin, layout_pins
from stringart.pipeline import StringArtResult, generate_from_array, process_image
from stringart.preview import render_preview, render_svg
from stringart.projection import StringArt, instructions, pin_sequence, project

__all__ = [
    "ConfigurationError",
    "CropRect",
    "DxfSink",
    "GenerationResult",
    "GenerationStats",
    "GreedySelector",
    "LineCache",
    "Pin",
    "SelectedLine",
    "StopReason",
    "StringArt",
    "StringArtConfig",
    "StringArtError",
    "StringArtResult",
    "UpstreamDecodeError",
    "VectorSink",
    "bresenham",
    "build_document",
    "format_instructions",
    "generate_from_array",
    "instructions",
    "layout_pins",
    "load_defaults",
    "load_document",
    "main",
    "pin_sequence",
    "process_image",
    "project",
    "render_preview",
    "render_svg",
    "save_dxf",
    "select_lines",
    "write_art",
]


def main() -> None:
    """CLI entry point."""
    from stringart.cli import app

    app()
