"""Full generation pipeline: load → prepare target → pins → lines → select → project."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from .config import StringArtConfig
from .engine import CancelToken, GenerationStats, ProgressCallback, select_lines
from .image import load_grayscale, prepare_target
from .lines import LineCache
from .pins import layout_pins
from .projection import StringArt, instructions, project

logger = logging.getLogger(__name__)


@dataclass
class StringArtResult:
    """Everything a consumer needs from one run."""

    art: StringArt
    stats: GenerationStats
    config: StringArtConfig
    instructions: list[str] = field(default_factory=list)
    draft: np.ndarray | None = None

    @property
    def truncated(self) -> bool:
        return self.stats.truncated


def generate_from_array(
    image: np.ndarray,
    config: StringArtConfig | None = None,
    *,
    cancel: CancelToken | None = None,
    progress: ProgressCallback | None = None,
) -> StringArtResult:
    """Generate a pattern from an in-memory image.

    Args:
        image: Grayscale, BGR or BGRA image of any size.
        config: Run configuration; defaults to :class:`StringArtConfig()`.
        cancel: Optional token; once set, selection stops and the lines
            chosen so far are returned.
        progress: Optional ``progress(lines_so_far, score)`` callback.

    Returns:
        StringArtResult with the projected pattern and run stats.
    """
    cfg = config if config is not None else StringArtConfig()
    width, height = cfg.work_width, cfg.work_height

    target = prepare_target(image, width, height, cfg.crop)

    logger.info("Placing %d pins (%s)...", cfg.num_pins, cfg.shape)
    pins = layout_pins(cfg.num_pins, width, height, cfg.shape, cfg.margin)

    logger.info("Rasterising candidate lines...")
    cache = LineCache(pins, width, height, cfg.min_pin_distance)
    logger.info("%d candidate lines", len(cache))

    generation = select_lines(
        target,
        cache,
        num_lines=cfg.num_lines,
        opacity=cfg.line_opacity,
        score_threshold=cfg.score_threshold,
        time_limit=cfg.time_limit,
        cancel=cancel,
        progress=progress,
    )

    art = project(
        pins,
        generation.lines,
        width,
        height,
        cfg.output_width,
        cfg.output_height,
        cfg.shape,
    )
    return StringArtResult(
        art=art,
        stats=generation.stats,
        config=cfg,
        instructions=instructions(generation.lines),
        draft=generation.draft,
    )


def process_image(
    image_path: Path,
    config: StringArtConfig | None = None,
    *,
    cancel: CancelToken | None = None,
    progress: ProgressCallback | None = None,
) -> StringArtResult:
    """Load *image_path* and run :func:`generate_from_array` on it.

    Raises:
        FileNotFoundError: If the image does not exist.
        UpstreamDecodeError: If the image cannot be decoded.
    """
    image = load_grayscale(image_path)
    logger.info("Loaded %s (%dx%d)", image_path, image.shape[1], image.shape[0])
    return generate_from_array(image, config, cancel=cancel, progress=progress)
