"""Validated run configuration.

A :class:`StringArtConfig` is built once per generation run and rejects
out-of-range values up front with :class:`~stringart.errors.ConfigurationError`.
Nothing downstream re-checks or coerces options.

Values are resolved in this order (later wins):

1. the built-in :data:`DEFAULTS`,
2. a JSON file (``stringart.json`` by default, see :func:`load_defaults`),
3. a size preset and a quality preset from :mod:`stringart.constants`,
4. explicit keyword overrides.

Usage::

    from stringart.config import StringArtConfig

    cfg = StringArtConfig(num_pins=240, shape="circle")
    cfg = StringArtConfig.from_presets(size="a4", quality="fast", num_lines=1500)
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

from .constants import QUALITY_PRESETS, SHAPES, SIZES, Shape
from .errors import ConfigurationError

DEFAULTS_PATH = Path("stringart.json")

DEFAULTS: dict[str, Any] = {
    "num_pins": 200,
    "num_lines": 4000,
    "min_pin_distance": 10,
    "line_opacity": 0.2,
    "score_threshold": 255.0,
    "shape": "circle",
    "output_width": 200.0,
    "output_height": 200.0,
    "work_resolution": 500,
    "margin": 5,
    "crop": None,
    "time_limit": None,
}

MIN_WORK_RESOLUTION = 16


# ---------------------------------------------------------------------------
# Field checks
# ---------------------------------------------------------------------------


def _require_int(name: str, value: object, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")


def _require_number(name: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value}")
    return float(value)


def _require_positive(name: str, value: object) -> None:
    if _require_number(name, value) <= 0:
        raise ConfigurationError(f"{name} must be > 0, got {value}")


# ---------------------------------------------------------------------------
# Crop rectangle
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CropRect:
    """Crop rectangle in percent of the source image (0–100 on each axis)."""

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        for name in ("x", "y"):
            v = _require_number(f"crop.{name}", getattr(self, name))
            if not 0 <= v < 100:
                raise ConfigurationError(f"crop.{name} must be in [0, 100), got {v}")
        for name in ("width", "height"):
            v = _require_number(f"crop.{name}", getattr(self, name))
            if not 0 < v <= 100:
                raise ConfigurationError(
                    f"crop.{name} must be in (0, 100], got {v}"
                )

    @classmethod
    def from_value(cls, value: object) -> CropRect | None:
        """Accept ``None``, a ``CropRect``, a mapping or an ``(x, y, w, h)`` sequence."""
        if value is None or isinstance(value, CropRect):
            return value
        if isinstance(value, dict):
            try:
                return cls(value["x"], value["y"], value["width"], value["height"])
            except KeyError as exc:
                raise ConfigurationError(f"crop is missing {exc.args[0]!r}") from exc
        if isinstance(value, (list, tuple)) and len(value) == 4:
            return cls(*value)
        raise ConfigurationError(f"Unsupported crop value: {value!r}")


# ---------------------------------------------------------------------------
# Run configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StringArtConfig:
    """All options for one generation run.

    Attributes:
        num_pins: Number of pins around the frame (>= 4).
        num_lines: Upper bound on the number of lines to select (>= 1).
        min_pin_distance: Minimum cyclic index distance between two
            connected pins, in ``[1, num_pins / 2)``.
        line_opacity: Fraction by which one line darkens the draft, in (0, 1).
        score_threshold: Selection stops once the best line scores at or
            above this value.
        shape: Frame shape, one of ``circle``, ``square``, ``border``.
        output_width: Physical output width (mm).
        output_height: Physical output height (mm).
        work_resolution: Working raster width in pixels; the height follows
            the output aspect ratio.
        margin: Pixels kept clear between the pins and the raster edge.
        crop: Optional crop of the source image, in percent.
        time_limit: Optional wall-clock budget for selection (seconds).
    """

    num_pins: int = DEFAULTS["num_pins"]
    num_lines: int = DEFAULTS["num_lines"]
    min_pin_distance: int = DEFAULTS["min_pin_distance"]
    line_opacity: float = DEFAULTS["line_opacity"]
    score_threshold: float = DEFAULTS["score_threshold"]
    shape: Shape = DEFAULTS["shape"]
    output_width: float = DEFAULTS["output_width"]
    output_height: float = DEFAULTS["output_height"]
    work_resolution: int = DEFAULTS["work_resolution"]
    margin: int = DEFAULTS["margin"]
    crop: CropRect | None = None
    time_limit: float | None = None

    def __post_init__(self) -> None:
        _require_int("num_pins", self.num_pins, 4)
        _require_int("num_lines", self.num_lines, 1)
        _require_int("min_pin_distance", self.min_pin_distance, 1)
        if self.min_pin_distance * 2 >= self.num_pins:
            raise ConfigurationError(
                f"min_pin_distance must be < num_pins / 2 "
                f"({self.num_pins / 2:g}), got {self.min_pin_distance}"
            )

        opacity = _require_number("line_opacity", self.line_opacity)
        if not 0 < opacity < 1:
            raise ConfigurationError(
                f"line_opacity must be in (0, 1), got {self.line_opacity}"
            )
        _require_positive("score_threshold", self.score_threshold)

        if self.shape not in SHAPES:
            raise ConfigurationError(
                f"Unknown shape: {self.shape!r} (expected one of {', '.join(SHAPES)})"
            )
        _require_positive("output_width", self.output_width)
        _require_positive("output_height", self.output_height)
        _require_int("work_resolution", self.work_resolution, MIN_WORK_RESOLUTION)
        _require_int("margin", self.margin, 0)
        if 2 * self.margin >= min(self.work_width, self.work_height):
            raise ConfigurationError(
                f"margin {self.margin} leaves no room in a "
                f"{self.work_width}x{self.work_height} working raster"
            )

        # Normalise dict/tuple crops so the frozen instance always holds a CropRect.
        object.__setattr__(self, "crop", CropRect.from_value(self.crop))
        if self.time_limit is not None:
            _require_positive("time_limit", self.time_limit)

    @property
    def work_width(self) -> int:
        return self.work_resolution

    @property
    def work_height(self) -> int:
        aspect = self.output_height / self.output_width
        return max(1, math.floor(self.work_resolution * aspect + 0.5))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def with_overrides(self, **overrides: Any) -> StringArtConfig:
        """Return a copy with *overrides* applied (re-validated)."""
        _check_keys(overrides)
        return replace(self, **overrides)

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> StringArtConfig:
        _check_keys(values)
        return cls(**values)

    @classmethod
    def from_presets(
        cls,
        size: str | None = None,
        quality: str | None = None,
        *,
        defaults: dict[str, Any] | None = None,
        **overrides: Any,
    ) -> StringArtConfig:
        """Build a config from named presets.

        Args:
            size: Key of :data:`~stringart.constants.SIZES` (sets output
                size and frame shape).
            quality: Key of :data:`~stringart.constants.QUALITY_PRESETS`
                (sets pin count, line count and opacity).
            defaults: Base values, e.g. from :func:`load_defaults`.
                Falls back to :data:`DEFAULTS`.
            **overrides: Explicit values that win over everything else.
        """
        values: dict[str, Any] = dict(defaults if defaults is not None else DEFAULTS)
        if size is not None:
            if size not in SIZES:
                raise ConfigurationError(
                    f"Unknown size preset: {size!r} (expected one of {', '.join(SIZES)})"
                )
            preset = SIZES[size]
            values.update(
                output_width=float(preset.width),
                output_height=float(preset.height),
                shape=preset.shape,
            )
        if quality is not None:
            if quality not in QUALITY_PRESETS:
                raise ConfigurationError(
                    f"Unknown quality preset: {quality!r} "
                    f"(expected one of {', '.join(QUALITY_PRESETS)})"
                )
            q = QUALITY_PRESETS[quality]
            values.update(
                num_pins=q.num_pins,
                num_lines=q.num_lines,
                line_opacity=q.line_opacity,
            )
        values.update(overrides)
        return cls.from_dict(values)


def _check_keys(values: dict[str, Any]) -> None:
    known = {f.name for f in fields(StringArtConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError(f"Unknown option(s): {', '.join(unknown)}")


def load_defaults(path: Path | None = None) -> dict[str, Any]:
    """Return option defaults, preferring values saved in a JSON file.

    Args:
        path: JSON file to merge over :data:`DEFAULTS`. Falls back to
            :data:`DEFAULTS_PATH`; a missing file is not an error.

    Raises:
        ConfigurationError: If the file is not a JSON object or names an
            unknown option.
    """
    path = path if path is not None else DEFAULTS_PATH
    if not path.exists():
        return dict(DEFAULTS)
    try:
        saved = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(saved, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")
    _check_keys(saved)
    return {**DEFAULTS, **saved}
