"""Observation windowing and weight smoothing.

Daily scale weight swings by a pound or more from water retention, sodium
and gut contents. Before fitting, the weight series is smoothed with a
centered rolling mean:

    S_i = mean(W_j for j in [i - k, i + k], W_j > 0),   k = window // 2

clamped to the ends of the series. The centered window uses future days,
so the smoothed series is only used to measure weight *change* for the
regression, never for display.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from burnrate.tracking.models import DailyObservation

# Default smoothing window (days). 3 = yesterday, today, tomorrow.
DEFAULT_SMOOTHING_WINDOW = 3


def resolve_as_of(as_of: Optional[date] = None) -> date:
    """Return the reference date, reading the wall clock only when none is given."""
    return as_of if as_of is not None else date.today()


def sort_observations(observations: Iterable[DailyObservation]) -> list[DailyObservation]:
    """Return observations in chronological order.

    Same-day duplicates are ordered by every remaining field so the result
    does not depend on input order.
    """
    return sorted(
        observations,
        key=lambda obs: (
            obs.date,
            obs.weight,
            obs.calories,
            obs.is_complete,
            obs.net_steps or 0.0,
            obs.workout_calories or 0.0,
        ),
    )


def is_usable(observation: DailyObservation, exclude_incomplete: bool = True) -> bool:
    """Check whether an observation can take part in a fit."""
    if observation.weight <= 0 or observation.calories <= 0:
        return False
    if exclude_incomplete and not observation.is_complete:
        return False
    return True


def filter_observations(
    observations: Iterable[DailyObservation],
    window_days: int,
    exclude_incomplete: bool = True,
    as_of: Optional[date] = None,
) -> list[DailyObservation]:
    """
    Restrict observations to the trailing window and drop unusable days.

    Args:
        observations: Observations in any order
        window_days: Length of the trailing window in days
        exclude_incomplete: Drop days where not all meals were logged
        as_of: Reference date (default: today). Days after it are ignored.

    Returns:
        Chronologically sorted observations with
        ``as_of - window_days <= date <= as_of``

    Example:
        >>> from datetime import date
        >>> obs = [DailyObservation(date(2025, 1, d), 180.0, 2000.0) for d in (3, 1, 2)]
        >>> [o.date.day for o in filter_observations(obs, 21, as_of=date(2025, 1, 3))]
        [1, 2, 3]
    """
    reference = resolve_as_of(as_of)
    cutoff = reference - timedelta(days=window_days)

    kept = [
        obs
        for obs in observations
        if cutoff <= obs.date <= reference and is_usable(obs, exclude_incomplete)
    ]
    return sort_observations(kept)


def smoothed_weight_at(
    observations: Sequence[DailyObservation],
    index: int,
    window: int = DEFAULT_SMOOTHING_WINDOW,
) -> float:
    """
    Centered rolling mean of weight around ``index``.

    Non-positive weights inside the window are skipped. If nothing valid
    remains, the raw weight at ``index`` is returned.

    Args:
        observations: Chronologically sorted observations
        index: Position to smooth
        window: Window width in days (values below 1 act as 1)

    Returns:
        Smoothed weight
    """
    half = max(window, 1) // 2
    start = max(0, index - half)
    end = min(len(observations) - 1, index + half)

    valid = [
        observations[i].weight
        for i in range(start, end + 1)
        if observations[i].weight > 0
    ]
    if not valid:
        return observations[index].weight
    return sum(valid) / len(valid)


def smooth_weights(
    observations: Sequence[DailyObservation],
    window: int = DEFAULT_SMOOTHING_WINDOW,
) -> list[float]:
    """
    Smoothed weight for every observation.

    Example:
        >>> from datetime import date
        >>> obs = [DailyObservation(date(2025, 1, d), w, 2000.0)
        ...        for d, w in [(1, 180.0), (2, 181.0), (3, 179.0)]]
        >>> smooth_weights(obs)
        [180.5, 180.0, 180.0]
    """
    return [smoothed_weight_at(observations, i, window) for i in range(len(observations))]
