"""Winding instructions: JSON document, plain text and step replay.

The JSON document is the hand-off format for step-through viewers::

    {
      "metadata": {"generatedAt": ..., "width": ..., "height": ...,
                   "shape": ..., "stats": {...}},
      "pins":     [{"index": 0, "x": 100.0, "y": 196.0}, ...],
      "path":     [0, 57, 112, ...],
      "fullPath": [{"step": 1, "from": 0, "to": 57}, ...]
    }

``path`` lists the pins in the order the thread visits them; ``fullPath``
spells out each step.  Coordinates are millimetres from the bottom-left
corner, rounded to 0.01.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .engine import GenerationStats
from .projection import StringArt, instructions, pin_sequence

_REQUIRED_KEYS = ("metadata", "pins", "path", "fullPath")


def build_document(
    art: StringArt,
    stats: GenerationStats,
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    """Assemble the JSON-serialisable instructions document for *art*."""
    generated_at = generated_at or datetime.now(timezone.utc)
    return {
        "metadata": {
            "generatedAt": generated_at.isoformat(),
            "width": art.width,
            "height": art.height,
            "shape": art.shape,
            "stats": stats.to_dict(),
        },
        "pins": [
            {"index": p.index, "x": round(p.x, 2), "y": round(p.y, 2)} for p in art.pins
        ],
        "path": pin_sequence(art.lines),
        "fullPath": [
            {"step": line.step, "from": line.pin1, "to": line.pin2} for line in art.lines
        ],
    }


def save_document(document: dict[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2, ensure_ascii=False) + "\n")
    return path


def load_document(path: Path) -> dict[str, Any]:
    """Read an instructions document written by :func:`save_document`.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file is not a valid instructions document.
    """
    if not path.exists():
        raise FileNotFoundError(f"Instructions file not found: {path}")
    try:
        document = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    missing = [k for k in _REQUIRED_KEYS if k not in document]
    if missing:
        raise ValueError(f"{path} is missing {', '.join(missing)}")

    num_pins = len(document["pins"])
    for entry in document["fullPath"]:
        try:
            a, b = int(entry["from"]), int(entry["to"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Malformed step in {path}: {entry!r}") from exc
        if not (0 <= a < num_pins and 0 <= b < num_pins):
            raise ValueError(f"Step {entry.get('step')} references an unknown pin")
    return document


def replay_steps(
    document: dict[str, Any],
    start: int = 1,
    count: int | None = None,
) -> Iterator[tuple[int, int, int]]:
    """Yield ``(step, from_pin, to_pin)`` from *document*, beginning at step *start*."""
    steps = [s for s in document["fullPath"] if s["step"] >= start]
    if count is not None:
        steps = steps[:count]
    for s in steps:
        yield s["step"], s["from"], s["to"]


def format_instructions(
    art: StringArt,
    stats: GenerationStats,
    generated_at: datetime | None = None,
) -> str:
    """Human-readable winding instructions for printing next to the board."""
    generated_at = generated_at or datetime.now(timezone.utc)
    lines = [
        "STRING ART INSTRUCTIONS",
        "=======================",
        f"Generated: {generated_at:%Y-%m-%d %H:%M}",
        f"Size: {art.width:g}mm x {art.height:g}mm",
        f"Shape: {art.shape}",
        f"Pins: {stats.num_pins}",
        f"Lines: {stats.num_lines}",
    ]
    if stats.truncated:
        lines.append(f"Note: run stopped early ({stats.stop_reason.value})")
    lines += ["", "PIN POSITIONS (mm from the bottom-left corner):"]
    lines += [f"  Pin {p.index}: ({p.x:.1f}, {p.y:.1f})" for p in art.pins]

    start = art.lines[0].pin1 if art.lines else 0
    lines += ["", "THREADING:", f"Start at pin {start} and follow the steps:"]
    lines += [f"  {text}" for text in instructions(art.lines)]
    return "\n".join(lines) + "\n"
