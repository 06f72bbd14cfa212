"""Unified CLI for stringart.

All commands are registered on a single ``typer.Typer`` app and exposed
via the ``stringart`` console entry-point.
"""

from __future__ import annotations

import logging
import signal
import threading
from pathlib import Path
from typing import Annotated, Any, Optional

import typer

app = typer.Typer(
    name="stringart",
    help="Turn photos into string art patterns for laser cutting and CNC.",
    add_completion=False,
    no_args_is_help=True,
)

# ---------------------------------------------------------------------------
# Shared option types
# ---------------------------------------------------------------------------

OutputOpt = Annotated[Path, typer.Option(help="Directory for generated files.")]
ConfigOpt = Annotated[
    Optional[Path], typer.Option(help="JSON file with default options.")
]


def _require_path(path: Path, label: str, hint: str = "") -> None:
    """Abort with a clear message when *path* is missing."""
    if not path.exists():
        msg = f"{label} not found at {path}."
        if hint:
            msg += f" {hint}"
        raise typer.BadParameter(msg)


def _parse_crop(value: str | None) -> tuple[float, ...] | None:
    if value is None:
        return None
    try:
        parts = tuple(float(v) for v in value.split(","))
    except ValueError:
        parts = ()
    if len(parts) != 4:
        raise typer.BadParameter(f"--crop expects 'x,y,width,height' in percent, got {value!r}")
    return parts


@app.callback()
def _main(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log progress details.")
    ] = False,
) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ── Generation ────────────────────────────────────────────────────────────


@app.command()
def generate(
    image: Annotated[Path, typer.Argument(help="Source photo.")],
    output: OutputOpt = Path("output"),
    name: Annotated[
        Optional[str], typer.Option(help="File name stem (default: image name).")
    ] = None,
    size: Annotated[
        Optional[str],
        typer.Option(help="Size preset (see `stringart sizes`); overrides the config file."),
    ] = None,
    quality: Annotated[
        Optional[str], typer.Option(help="Quality preset: fast|balanced|detailed|ultra.")
    ] = None,
    pins: Annotated[Optional[int], typer.Option(help="Number of pins.")] = None,
    lines: Annotated[Optional[int], typer.Option(help="Maximum number of lines.")] = None,
    min_distance: Annotated[
        Optional[int], typer.Option(help="Minimum pin index distance per line.")
    ] = None,
    opacity: Annotated[
        Optional[float], typer.Option(help="Darkening per line, 0-1.")
    ] = None,
    threshold: Annotated[
        Optional[float], typer.Option(help="Stop once the best line scores this high.")
    ] = None,
    shape: Annotated[
        Optional[str], typer.Option(help="Override the frame shape: circle|square|border.")
    ] = None,
    width: Annotated[Optional[float], typer.Option(help="Output width (mm).")] = None,
    height: Annotated[Optional[float], typer.Option(help="Output height (mm).")] = None,
    crop: Annotated[
        Optional[str], typer.Option(help="Crop 'x,y,width,height' in percent.")
    ] = None,
    time_limit: Annotated[
        Optional[float], typer.Option(help="Stop selecting after this many seconds.")
    ] = None,
    config: ConfigOpt = None,
    dxf: Annotated[bool, typer.Option(help="Write a DXF drawing.")] = True,
    png: Annotated[bool, typer.Option(help="Write a PNG preview.")] = True,
    svg: Annotated[bool, typer.Option(help="Write an SVG preview.")] = False,
    json_doc: Annotated[
        bool, typer.Option("--json/--no-json", help="Write the JSON instructions document.")
    ] = True,
    txt: Annotated[bool, typer.Option(help="Write plain-text instructions.")] = True,
) -> None:
    """Generate a string art pattern from IMAGE."""
    from tqdm import tqdm

    from .config import StringArtConfig, load_defaults
    from .dxf import save_dxf
    from .errors import StringArtError
    from .instructions import build_document, format_instructions, save_document
    from .pipeline import process_image
    from .preview import render_preview, render_svg, save_preview

    _require_path(image, "Image")
    if config is not None:
        _require_path(config, "Config file")

    overrides: dict[str, Any] = {
        key: value
        for key, value in {
            "num_pins": pins,
            "num_lines": lines,
            "min_pin_distance": min_distance,
            "line_opacity": opacity,
            "score_threshold": threshold,
            "shape": shape,
            "output_width": width,
            "output_height": height,
            "crop": _parse_crop(crop),
            "time_limit": time_limit,
        }.items()
        if value is not None
    }

    try:
        cfg = StringArtConfig.from_presets(
            size, quality, defaults=load_defaults(config), **overrides
        )
    except StringArtError as exc:
        raise typer.BadParameter(str(exc)) from exc

    print(
        f"{cfg.num_pins} pins ({cfg.shape}), up to {cfg.num_lines} lines, "
        f"{cfg.output_width:g}x{cfg.output_height:g}mm"
    )

    # Ctrl+C stops selection and keeps the lines chosen so far.
    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda *_: cancel.set())
    bar = tqdm(total=cfg.num_lines, desc="Lines", unit="line", dynamic_ncols=True)

    def on_progress(count: int, score: float) -> None:
        bar.update(1)
        if count % 50 == 0:
            bar.set_postfix(score=f"{score:.1f}")

    try:
        result = process_image(image, cfg, cancel=cancel, progress=on_progress)
    except StringArtError as exc:
        raise typer.BadParameter(str(exc)) from exc
    finally:
        bar.close()
        signal.signal(signal.SIGINT, previous)

    stats = result.stats
    print(
        f"\n{stats.num_lines} lines selected in {stats.elapsed:.1f}s "
        f"(stopped: {stats.stop_reason.value})"
    )
    if stats.truncated:
        print("Run was cut short; writing the partial pattern.")

    stem = name or image.stem
    output.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    if dxf:
        written.append(save_dxf(result.art, output / f"{stem}.dxf"))
    if png:
        written.append(save_preview(render_preview(result.art), output / f"{stem}.png"))
    if svg:
        svg_path = output / f"{stem}.svg"
        svg_path.write_text(render_svg(result.art))
        written.append(svg_path)
    if json_doc:
        document = build_document(result.art, stats)
        written.append(save_document(document, output / f"{stem}.json"))
    if txt:
        txt_path = output / f"{stem}-instructions.txt"
        txt_path.write_text(format_instructions(result.art, stats))
        written.append(txt_path)

    for path in written:
        print(f"  → {path}")


# ── Presets & replay ──────────────────────────────────────────────────────


@app.command()
def sizes() -> None:
    """List the size and quality presets and the frame shapes."""
    from .constants import QUALITY_PRESETS, SHAPE_DESCRIPTIONS, SIZES

    print(f"{'Size':<16} {'Shape':<8} {'Width':>7} {'Height':>7}")
    print("-" * 41)
    for key, preset in SIZES.items():
        print(f"{key:<16} {preset.shape:<8} {preset.width:>7g} {preset.height:>7g}")

    print(f"\n{'Quality':<16} {'Pins':>6} {'Lines':>7} {'Opacity':>8}")
    print("-" * 40)
    for key, q in QUALITY_PRESETS.items():
        print(f"{key:<16} {q.num_pins:>6} {q.num_lines:>7} {q.line_opacity:>8.2f}")

    print("\nShapes")
    print("-" * 40)
    for key, desc in SHAPE_DESCRIPTIONS.items():
        print(f"{key:<16} {desc}")


@app.command()
def replay(
    document: Annotated[Path, typer.Argument(help="JSON instructions document.")],
    start: Annotated[int, typer.Option(help="First step to show.")] = 1,
    count: Annotated[
        Optional[int], typer.Option(help="Number of steps to show (default: all).")
    ] = None,
) -> None:
    """Print winding steps from a saved JSON document."""
    from .instructions import load_document, replay_steps

    _require_path(document, "Instructions file", "Run `stringart generate` first.")
    try:
        doc = load_document(document)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    meta = doc["metadata"]
    total = len(doc["fullPath"])
    print(f"{meta['shape']} {meta['width']:g}x{meta['height']:g}mm, {total} steps\n")
    for step, a, b in replay_steps(doc, start=start, count=count):
        print(f"  {step:>5}. pin {a:>3} → pin {b:>3}")
