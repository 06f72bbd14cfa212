"""Greedy line selection.

The engine follows the thread from pin to pin.  At each step it scores
every admissible line leaving the current pin against two rasters:

* the **target**, the grayscale image being approximated (read-only), and
* the **draft**, the simulated result of all thread placed so far, which
  starts white and is darkened by every selected line.

The score of a line is the mean over its pixels of
``target + (255 - draft)``.  It is low where the target is dark *and* the
draft is still light, so the lowest-scoring line covers the most
unexplained darkness.  Ties go to the lowest pin index, which keeps runs
reproducible.

Selection stops when the requested number of lines is reached, when the
best score is at or above the threshold, when no admissible line is left,
or when the caller's time limit or cancellation token says so.  All of
these are normal endings; the stop reason is recorded in the stats.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import numpy as np

from .constants import WHITE
from .errors import ConfigurationError
from .lines import LineCache

logger = logging.getLogger(__name__)

LOG_EVERY = 500


class StopReason(str, Enum):
    """Why a selection run ended."""

    COMPLETED = "completed"
    THRESHOLD = "threshold"
    EXHAUSTED = "exhausted"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class CancelToken(Protocol):
    """Anything with an ``is_set()`` method, e.g. :class:`threading.Event`."""

    def is_set(self) -> bool: ...


ProgressCallback = Callable[[int, float], None]


@dataclass(frozen=True)
class SelectedLine:
    """One thread segment, from ``pin1`` to ``pin2``; ``step`` is 1-based."""

    pin1: int
    pin2: int
    step: int


@dataclass
class GenerationStats:
    """Summary of a selection run."""

    num_pins: int
    num_lines: int
    requested_lines: int
    elapsed: float
    stop_reason: StopReason
    last_score: float | None = None

    @property
    def truncated(self) -> bool:
        """True when the run was cut short by a timeout or cancellation."""
        return self.stop_reason in (StopReason.TIMEOUT, StopReason.CANCELLED)

    def to_dict(self) -> dict[str, object]:
        return {
            "numPins": self.num_pins,
            "numLines": self.num_lines,
            "requestedLines": self.requested_lines,
            "totalTime": round(self.elapsed, 3),
            "stopReason": self.stop_reason.value,
        }


@dataclass
class GenerationResult:
    """Selected lines in winding order, run stats and the final draft."""

    lines: list[SelectedLine]
    stats: GenerationStats
    draft: np.ndarray


@dataclass(frozen=True)
class _Candidate:
    pin: int
    pixels: np.ndarray
    # target_sum + 255 * n, so score = (base - draft_sum) / n
    base: float
    n: int


class GreedySelector:
    """Owns the draft raster and adjacency record of one run.

    Args:
        target: ``(height, width)`` grayscale target, 0 = black, 255 = white.
        cache: Line cache built for the same raster size.
        opacity: Fraction by which one line darkens the draft, in (0, 1).
        score_threshold: Stop once the best score is at or above this.
        start_pin: Pin the thread starts from.
    """

    def __init__(
        self,
        target: np.ndarray,
        cache: LineCache,
        *,
        opacity: float,
        score_threshold: float,
        start_pin: int = 0,
    ) -> None:
        target = np.asarray(target, dtype=np.float64)
        if target.shape != (cache.height, cache.width):
            raise ConfigurationError(
                f"Target shape {target.shape} does not match the "
                f"{cache.width}x{cache.height} line cache"
            )
        if not 0 < opacity < 1:
            raise ConfigurationError(f"opacity must be in (0, 1), got {opacity}")
        if cache.num_pins and not 0 <= start_pin < cache.num_pins:
            raise ConfigurationError(
                f"start_pin {start_pin} outside 0..{cache.num_pins - 1}"
            )

        self.cache = cache
        self.opacity = opacity
        self.score_threshold = score_threshold
        self.current_pin = start_pin
        self.draft = np.full(target.shape, WHITE, dtype=np.float64)
        self.adjacency: dict[int, set[int]] = {}
        self.lines: list[SelectedLine] = []
        self.last_score: float | None = None

        self._flat_draft = self.draft.reshape(-1)
        self._candidates = self._index_candidates(target.reshape(-1))

    def _index_candidates(self, flat_target: np.ndarray) -> list[list[_Candidate]]:
        by_pin: list[list[_Candidate]] = [[] for _ in range(self.cache.num_pins)]
        for a, b in self.cache:
            pixels = self.cache.pixels(a, b)
            n = int(pixels.size)
            base = float(flat_target[pixels].sum()) + WHITE * n
            by_pin[a].append(_Candidate(b, pixels, base, n))
            by_pin[b].append(_Candidate(a, pixels, base, n))
        for candidates in by_pin:
            candidates.sort(key=lambda c: c.pin)
        return by_pin

    def best_candidate(self) -> tuple[_Candidate, float] | None:
        """Lowest-scoring unused line from the current pin, or ``None``."""
        if not self._candidates:
            return None
        used = self.adjacency.get(self.current_pin, set())
        draft = self._flat_draft
        best: _Candidate | None = None
        best_score = math.inf
        for cand in self._candidates[self.current_pin]:
            if cand.pin in used:
                continue
            score = (cand.base - float(draft[cand.pixels].sum())) / cand.n
            if score < best_score:
                best, best_score = cand, score
        if best is None:
            return None
        return best, best_score

    def draw(self, cand: _Candidate) -> SelectedLine:
        """Record the line from the current pin to *cand* and darken the draft."""
        a, b = self.current_pin, cand.pin
        self.adjacency.setdefault(a, set()).add(b)
        self.adjacency.setdefault(b, set()).add(a)
        self._flat_draft[cand.pixels] *= 1.0 - self.opacity

        line = SelectedLine(pin1=a, pin2=b, step=len(self.lines) + 1)
        self.lines.append(line)
        self.current_pin = b
        return line

    def step(self) -> StopReason | None:
        """Select and draw one line.

        Returns:
            ``None`` if a line was drawn, otherwise the reason selection
            cannot continue.
        """
        found = self.best_candidate()
        if found is None:
            return StopReason.EXHAUSTED
        cand, score = found
        self.last_score = score
        if score >= self.score_threshold:
            return StopReason.THRESHOLD
        self.draw(cand)
        return None

    def run(
        self,
        num_lines: int,
        *,
        time_limit: float | None = None,
        cancel: CancelToken | None = None,
        progress: ProgressCallback | None = None,
    ) -> GenerationResult:
        """Select up to *num_lines* lines.

        Args:
            num_lines: Upper bound on lines to select.
            time_limit: Wall-clock budget in seconds, checked before each line.
            cancel: Token checked before each line; once set the run stops
                and returns what it has.
            progress: Called as ``progress(lines_so_far, score)`` after each
                selected line.
        """
        start = time.monotonic()
        reason = StopReason.COMPLETED
        logger.info(
            "Selecting up to %d lines between %d pins...", num_lines, self.cache.num_pins
        )

        while len(self.lines) < num_lines:
            if cancel is not None and cancel.is_set():
                reason = StopReason.CANCELLED
                break
            if time_limit is not None and time.monotonic() - start >= time_limit:
                reason = StopReason.TIMEOUT
                break

            stopped = self.step()
            if stopped is not None:
                reason = stopped
                break

            count = len(self.lines)
            if progress is not None:
                progress(count, self.last_score)  # type: ignore[arg-type]
            if count % LOG_EVERY == 0:
                logger.info(
                    "  %d/%d lines (%.1fs, score %.1f)",
                    count,
                    num_lines,
                    time.monotonic() - start,
                    self.last_score,
                )

        elapsed = time.monotonic() - start
        if reason is not StopReason.COMPLETED:
            logger.info(
                "Stopped after %d lines (%s, last score %s)",
                len(self.lines),
                reason.value,
                "n/a" if self.last_score is None else f"{self.last_score:.1f}",
            )
        logger.info("Selected %d lines in %.1fs", len(self.lines), elapsed)

        stats = GenerationStats(
            num_pins=self.cache.num_pins,
            num_lines=len(self.lines),
            requested_lines=num_lines,
            elapsed=elapsed,
            stop_reason=reason,
            last_score=self.last_score,
        )
        return GenerationResult(lines=list(self.lines), stats=stats, draft=self.draft)


def select_lines(
    target: np.ndarray,
    cache: LineCache,
    *,
    num_lines: int,
    opacity: float,
    score_threshold: float,
    start_pin: int = 0,
    time_limit: float | None = None,
    cancel: CancelToken | None = None,
    progress: ProgressCallback | None = None,
) -> GenerationResult:
    """Run greedy selection on a fresh draft and return the result."""
    selector = GreedySelector(
        target,
        cache,
        opacity=opacity,
        score_threshold=score_threshold,
        start_pin=start_pin,
    )
    return selector.run(
        num_lines, time_limit=time_limit, cancel=cancel, progress=progress
    )
