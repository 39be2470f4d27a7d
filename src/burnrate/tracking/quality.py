"""Data quality checks for logged observations.

Flags patterns that make the regression unreliable: missing days, wild
intake swings (usually incomplete logging), a suspiciously flat weight
series (weighing at different times of day or not at all), and large
day-to-day swings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from burnrate.tracking.models import DailyObservation, DataQualityReport
from burnrate.tracking.preprocess import sort_observations


@dataclass
class QualityThresholds:
    """Limits used by ``check_data_quality``."""

    max_gap_days: int = 3
    max_intake_sd: float = 800.0
    min_weight_sd: float = 0.3
    max_daily_swing: float = 4.0
    max_issues: int = 2
    min_days: int = 7


def count_missing_days(observations: Sequence[DailyObservation]) -> int:
    """Number of calendar days missing between the first and last observation."""
    ordered = sort_observations(observations)
    gaps = 0
    for prev, curr in zip(ordered, ordered[1:]):
        days = (curr.date - prev.date).days
        if days > 1:
            gaps += days - 1
    return gaps


def max_daily_weight_swing(observations: Sequence[DailyObservation]) -> float:
    """Largest absolute weight change between consecutive observations."""
    ordered = sort_observations(observations)
    return max(
        (abs(curr.weight - prev.weight) for prev, curr in zip(ordered, ordered[1:])),
        default=0.0,
    )


def check_data_quality(
    observations: Sequence[DailyObservation],
    thresholds: QualityThresholds | None = None,
) -> DataQualityReport:
    """
    Check logged data and suggest how to improve it.

    Args:
        observations: Observations in any order
        thresholds: Limits for each check

    Returns:
        DataQualityReport. ``is_valid`` requires at most ``max_issues``
        issues and at least ``min_days`` days of data.
    """
    if thresholds is None:
        thresholds = QualityThresholds()

    if not observations:
        return DataQualityReport(
            is_valid=False,
            issues=["No data available"],
            suggestions=["Start logging your weight and calories daily"],
            days_with_data=0,
            days_with_gaps=0,
            complete_days=0,
        )

    issues: list[str] = []
    suggestions: list[str] = []

    gaps = count_missing_days(observations)
    if gaps > thresholds.max_gap_days:
        issues.append(f"Missing data for {gaps} days")
        suggestions.append("Log weight and calories daily for best accuracy")

    calories = [obs.calories for obs in observations if obs.calories > 0]
    if len(calories) >= 3 and float(np.std(calories)) > thresholds.max_intake_sd:
        issues.append("Large calorie variations detected")
        suggestions.append("Try to log all meals consistently")

    weights = [obs.weight for obs in observations if obs.weight > 0]
    if len(weights) >= 5 and float(np.std(weights)) < thresholds.min_weight_sd:
        issues.append("Weight appears unusually stable")
        suggestions.append("Weigh at the same time daily, before eating")

    if max_daily_weight_swing(observations) > thresholds.max_daily_swing:
        issues.append("Large day-to-day weight swings detected")
        suggestions.append("This is normal water weight - more data will smooth it out")

    return DataQualityReport(
        is_valid=len(issues) <= thresholds.max_issues and len(observations) >= thresholds.min_days,
        issues=issues,
        suggestions=suggestions,
        days_with_data=len(observations),
        days_with_gaps=gaps,
        complete_days=sum(1 for obs in observations if obs.is_complete),
    )
