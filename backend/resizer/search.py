"""
Binary search for the widest aspect-preserving size whose encoded length fits a byte budget.

The cost function is a black box (resize + encode) and dominates the runtime,
so the search counts and logs every trial. Two properties of the algorithm are
kept on purpose:

- the first trial is always the original, unscaled size;
- the answer is the search's lower bound, which can sit one pixel away from the
  widest trial actually seen to fit.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from .models import SearchBounds, Size
from .transform import CostFunction

logger = logging.getLogger(__name__)

# Worst case for an uncompressed RGBA pixel
BYTES_PER_PIXEL_FLOOR = 4


@dataclass(frozen=True)
class SearchLimits:
    """
    Optional guards on the search. With both fields unset the search runs to convergence.
    """
    max_trials: Optional[int] = None
    time_budget_seconds: Optional[float] = None

    def __post_init__(self):
        if self.max_trials is not None and self.max_trials <= 0:
            raise ValueError("max_trials must be > 0")
        if self.time_budget_seconds is not None and self.time_budget_seconds <= 0:
            raise ValueError("time_budget_seconds must be > 0")

    def exceeded(self, trials: int, elapsed: float) -> Optional[str]:
        if self.max_trials is not None and trials >= self.max_trials:
            return f"trial limit of {self.max_trials} reached"
        if self.time_budget_seconds is not None and elapsed >= self.time_budget_seconds:
            return f"time budget of {self.time_budget_seconds:.2f}s exhausted"
        return None


def heuristic_lower_bound(original: Size, budget: int) -> int:
    """Width that fits even at 4 bytes per pixel, clamped to 0..original.width."""
    if original.is_empty:
        return 0
    floor = budget // (BYTES_PER_PIXEL_FLOOR * original.height)
    return max(0, min(floor, original.width))


def find_optimal_width(
    original: Size,
    budget: int,
    cost: CostFunction,
    limits: Optional[SearchLimits] = None,
    log: Optional[logging.Logger] = None,
) -> int:
    """
    Find the largest width whose trial cost stays within ``budget``.

    Args:
        original: Size of the unscaled image.
        budget: Maximum encoded length in bytes (> 0).
        cost: Maps a candidate size to its encoded byte length.
        limits: Optional trial/time guards.
        log: Logger for diagnostics (defaults to this module's logger).

    Returns:
        The converged lower bound. When even the heuristic floor does not fit, the
        floor itself is returned rather than searching forever.
    """
    log = log or logger
    if budget <= 0:
        raise ValueError("budget must be > 0")

    if original.is_empty:
        log.debug("Degenerate size %s, skipping search", original)
        return 0

    bounds = SearchBounds(
        min_width=heuristic_lower_bound(original, budget),
        max_width=original.width,
    )
    trial = original
    trials = 0
    started = time.monotonic()

    while True:
        trial_bytes = cost(trial)
        trials += 1

        if trial_bytes > budget:
            bounds.max_width = trial.width - 1
        else:
            bounds.min_width = trial.width

        log.debug(
            "Trial %d: %s -> %d bytes (bounds %d..%d)",
            trials, trial, trial_bytes, bounds.min_width, bounds.max_width,
        )

        if bounds.converged:
            break

        if limits is not None:
            reason = limits.exceeded(trials, time.monotonic() - started)
            if reason:
                log.warning(
                    "Stopping size search early (%s); using width %d", reason, bounds.min_width
                )
                break

        trial = Size.for_width(original, bounds.next_width())

    log.info("Size search finished after %d trials: width %d", trials, bounds.min_width)
    return bounds.min_width


def optimal_size(
    original: Size,
    budget: int,
    cost: CostFunction,
    limits: Optional[SearchLimits] = None,
    log: Optional[logging.Logger] = None,
) -> Size:
    width = find_optimal_width(original, budget, cost, limits=limits, log=log)
    return Size.for_width(original, width)
