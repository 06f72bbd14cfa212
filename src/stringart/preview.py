"""Raster and SVG previews of a projected pattern."""

from __future__ import annotations

import math
from pathlib import Path

import cv2
import numpy as np

from .constants import WHITE
from .lines import bresenham
from .projection import StringArt

PREVIEW_PADDING = 10.0  # mm
PREVIEW_LINE_OPACITY = 0.6
FRAME_GRAY = 204
PIN_GRAY = 51


def render_preview(
    art: StringArt,
    px_per_mm: float = 4.0,
    line_opacity: float = PREVIEW_LINE_OPACITY,
    padding: float = PREVIEW_PADDING,
) -> np.ndarray:
    """Render *art* as a grayscale image.

    Each string darkens the pixels it crosses by *line_opacity*, so
    overlapping strings build up the same way thread does.

    Returns:
        ``uint8`` image, white background.
    """
    if px_per_mm <= 0:
        raise ValueError(f"px_per_mm must be > 0, got {px_per_mm}")
    if not 0 < line_opacity <= 1:
        raise ValueError(f"line_opacity must be in (0, 1], got {line_opacity}")

    w = math.ceil((art.width + 2 * padding) * px_per_mm)
    h = math.ceil((art.height + 2 * padding) * px_per_mm)
    canvas = np.full((h, w), WHITE, dtype=np.float32)

    def to_px(x: float, y: float) -> tuple[int, int]:
        # Output space is y-up; image rows grow downwards.
        return (
            int(round((x + padding) * px_per_mm)),
            int(round((art.height + padding - y) * px_per_mm)),
        )

    _draw_frame(canvas, art, to_px, px_per_mm)

    keep = 1.0 - line_opacity
    for line in art.lines:
        (x1, y1), (x2, y2) = to_px(line.x1, line.y1), to_px(line.x2, line.y2)
        pixels = bresenham(x1, y1, x2, y2)
        xs, ys = pixels[:, 0], pixels[:, 1]
        inside = (xs >= 0) & (xs < w) & (ys >= 0) & (ys < h)
        canvas[ys[inside], xs[inside]] *= keep

    pin_radius = max(1, int(round(0.8 * px_per_mm)))
    for pin in art.pins:
        cv2.circle(canvas, to_px(pin.x, pin.y), pin_radius, float(PIN_GRAY), -1)

    return np.clip(canvas, 0, 255).astype(np.uint8)


def _draw_frame(canvas: np.ndarray, art: StringArt, to_px, px_per_mm: float) -> None:
    color = float(FRAME_GRAY)
    if art.shape == "circle":
        centre = to_px(art.width / 2, art.height / 2)
        radius = int(round(min(art.width, art.height) / 2 * px_per_mm))
        cv2.circle(canvas, centre, radius, color, 1)
    elif art.shape == "square":
        size = min(art.width, art.height)
        x0, y0 = (art.width - size) / 2, (art.height - size) / 2
        cv2.rectangle(canvas, to_px(x0, y0 + size), to_px(x0 + size, y0), color, 1)
    else:
        cv2.rectangle(canvas, to_px(0, art.height), to_px(art.width, 0), color, 1)


def encode_png(image: np.ndarray) -> bytes:
    ok, buf = cv2.imencode(".png", image)
    if not ok:
        raise ValueError("PNG encoding failed")
    return buf.tobytes()


def save_preview(image: np.ndarray, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(path), image):
        raise OSError(f"Could not write preview to {path}")
    return path


def render_svg(art: StringArt, padding: float = PREVIEW_PADDING) -> str:
    """SVG markup of the frame, strings and pins, in millimetre units."""
    svg_w = art.width + padding * 2
    svg_h = art.height + padding * 2
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {svg_w:g} {svg_h:g}" '
        f'width="{svg_w:g}mm" height="{svg_h:g}mm">',
        '<rect width="100%" height="100%" fill="white"/>',
    ]

    frame = 'fill="none" stroke="#ccc" stroke-width="0.5"'
    if art.shape == "circle":
        r = min(art.width, art.height) / 2
        parts.append(f'<circle cx="{svg_w / 2:g}" cy="{svg_h / 2:g}" r="{r:g}" {frame}/>')
    elif art.shape == "square":
        size = min(art.width, art.height)
        x0 = padding + (art.width - size) / 2
        y0 = padding + (art.height - size) / 2
        parts.append(
            f'<rect x="{x0:g}" y="{y0:g}" width="{size:g}" height="{size:g}" {frame}/>'
        )
    else:
        parts.append(
            f'<rect x="{padding:g}" y="{padding:g}" width="{art.width:g}" '
            f'height="{art.height:g}" {frame}/>'
        )

    parts.append(
        f'<g stroke="black" stroke-width="0.15" stroke-opacity="{PREVIEW_LINE_OPACITY}">'
    )
    for line in art.lines:
        parts.append(
            f'<line x1="{line.x1 + padding:.2f}" y1="{svg_h - line.y1 - padding:.2f}" '
            f'x2="{line.x2 + padding:.2f}" y2="{svg_h - line.y2 - padding:.2f}"/>'
        )
    parts.append("</g>")

    parts.append('<g fill="#333">')
    for pin in art.pins:
        parts.append(
            f'<circle cx="{pin.x + padding:.2f}" cy="{svg_h - pin.y - padding:.2f}" r="0.8"/>'
        )
    parts.append("</g>")
    parts.append("</svg>")
    return "\n".join(parts)
