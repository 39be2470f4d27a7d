"""Chart-oriented views of a fitted estimate."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from burnrate.config.settings import EstimatorConfig
from burnrate.tracking.models import (
    ActivityContribution,
    DailyObservation,
    Estimate,
    RegressionAnalysis,
    RegressionPair,
    RegressionPoint,
)
from burnrate.tracking.outliers import detect_low_intake_outliers, exclude_residual_outliers
from burnrate.tracking.preprocess import filter_observations, resolve_as_of
from burnrate.tracking.regression import run_two_pass_regression

logger = logging.getLogger(__name__)

# Anything beyond this per day is a logging error, not physiology
MAX_REASONABLE_DAILY_CHANGE = 10.0


def _raw_pairs(
    observations: list[DailyObservation],
    outlier_dates: set[date],
) -> list[RegressionPair]:
    """Consecutive-day pairs using unsmoothed weight changes."""
    pairs: list[RegressionPair] = []
    for today, tomorrow in zip(observations, observations[1:]):
        if today.weight <= 0 or tomorrow.weight <= 0 or today.calories <= 0:
            continue
        if today.date in outlier_dates:
            continue

        change = tomorrow.weight - today.weight
        if abs(change) > MAX_REASONABLE_DAILY_CHANGE:
            logger.info(
                "Skipping %s -> %s: %.2f per day exceeds %.1f",
                today.date,
                tomorrow.date,
                change,
                MAX_REASONABLE_DAILY_CHANGE,
            )
            continue

        pairs.append(
            RegressionPair(
                date=today.date,
                weight=today.weight,
                calories=today.calories,
                net_steps=0.0,
                workout_calories=0.0,
                actual_change=change,
            )
        )
    return pairs


def get_regression_analysis(
    observations: Iterable[DailyObservation],
    current_weight: float,
    config: Optional[EstimatorConfig] = None,
    as_of: Optional[date] = None,
) -> Optional[RegressionAnalysis]:
    """
    Actual vs predicted daily weight change for each pair in the window.

    The burn rate comes from the regular smoothed two-pass fit. The points
    use raw day-to-day weight changes so the chart shows every
    fluctuation, and pairs that the fit would treat as residual outliers
    are left off the chart.

    Args:
        observations: Logged days in any order
        current_weight: Weight used for the displayed TDEE
        config: Estimator settings
        as_of: Reference date (default: today)

    Returns:
        RegressionAnalysis, or None if fewer than 2 raw pairs exist or the
        fit fails
    """
    if config is None:
        config = EstimatorConfig()

    filtered = filter_observations(
        observations, config.window_days, config.exclude_incomplete, as_of=resolve_as_of(as_of)
    )
    if len(filtered) < 2:
        return None

    outlier_dates = detect_low_intake_outliers(filtered, config.intake_outliers)
    pairs = _raw_pairs(filtered, outlier_dates)
    if len(pairs) < 2:
        return None

    model = run_two_pass_regression(filtered, config, use_activity=False)
    if model is None:
        return None

    energy = config.fitter.energy_per_unit
    cleaned, excluded = exclude_residual_outliers(
        pairs, model, config.outlier_threshold, config.fitter
    )

    points = []
    for pair in cleaned:
        predicted = model.predicted_change(pair, energy)
        points.append(
            RegressionPoint(
                date=pair.date,
                weight=pair.weight,
                calories=pair.calories,
                actual_change=pair.actual_change,
                predicted_change=predicted,
                residual=pair.actual_change - predicted,
            )
        )

    base_rate = config.bounds.clamp_base_rate(round(model.base_rate, 1))
    return RegressionAnalysis(
        points=points,
        base_rate=base_rate,
        estimated_tdee=int(round(base_rate * current_weight)),
        r_squared=model.r_squared,
        standard_error=model.standard_error,
        current_weight=current_weight,
        pairs_excluded=excluded,
    )


def analyze_activity_contribution(estimate: Estimate) -> ActivityContribution:
    """Percent of the average-day TDEE from base, steps and workouts."""
    total = estimate.estimated_tdee
    if estimate.breakdown is not None:
        base = estimate.breakdown.base or total
        steps = estimate.breakdown.steps
        workout = estimate.breakdown.workout
    else:
        base, steps, workout = total, 0, 0

    if total <= 0:
        return ActivityContribution(base_percent=0, steps_percent=0, workout_percent=0)

    base_percent = int(round(base / total * 100))
    steps_percent = int(round(steps / total * 100))
    workout_percent = int(round(workout / total * 100))

    insights = []
    if steps_percent > 15:
        insights.append(f"Daily steps contribute {steps_percent}% of your calorie burn")
    elif steps_percent < 5:
        insights.append(
            f"Step activity is low ({steps_percent}% of burn); more daily movement raises TDEE"
        )
    if workout_percent > 10:
        insights.append(f"Workouts add meaningful calorie burn ({workout_percent}%)")
    if estimate.average_steps > 10000:
        insights.append(f"Averaging {estimate.average_steps:,.0f} steps/day is in the active range")

    return ActivityContribution(
        base_percent=base_percent,
        steps_percent=steps_percent,
        workout_percent=workout_percent,
        insights=insights,
    )
