"""Forward projections from a fitted TDEE estimate."""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Optional, Sequence

from burnrate.config.settings import DEFAULT_ENERGY_PER_UNIT, ForecastConfig
from burnrate.tracking.models import (
    ConfidenceLevel,
    DailyProjection,
    Estimate,
    EstimateComparison,
    EstimateSource,
    GoalDateForecast,
    WeightForecast,
)
from burnrate.tracking.preprocess import resolve_as_of

# Minimum observations before a regression estimate is preferred over a formula
MIN_POINTS_FOR_ADAPTIVE = 10


def daily_weight_change(
    estimate: Estimate,
    planned_daily_calories: float,
    energy_per_unit: float = DEFAULT_ENERGY_PER_UNIT,
) -> float:
    """Weight change per day on a constant intake (negative = losing)."""
    return (planned_daily_calories - estimate.estimated_tdee) / energy_per_unit


def daily_weight_error(
    estimate: Estimate,
    energy_per_unit: float = DEFAULT_ENERGY_PER_UNIT,
) -> float:
    """
    Standard error of one day's weight change, in weight units.

    Regression estimates carry the residual SD of daily weight change.
    Formula estimates carry an uncertainty in kcal/day, converted here.
    """
    if estimate.source is EstimateSource.FORMULA:
        return estimate.standard_error / energy_per_unit
    return estimate.standard_error


def predict_future_weight(
    estimate: Estimate,
    current_weight: float,
    planned_daily_calories: float,
    days_ahead: int,
    as_of: Optional[date] = None,
    config: Optional[ForecastConfig] = None,
    energy_per_unit: float = DEFAULT_ENERGY_PER_UNIT,
) -> WeightForecast:
    """
    Project weight ``days_ahead`` days out on a constant daily intake.

    The confidence range grows with the square root of elapsed days scaled
    by the estimate's standard error, and never drops below
    ``config.min_margin`` to allow for water-weight fluctuation.

    Args:
        estimate: Fitted TDEE estimate
        current_weight: Starting weight
        planned_daily_calories: Hypothetical intake per day
        days_ahead: Days to project
        as_of: Start date (default: today)
        config: Forecast settings
        energy_per_unit: kcal per unit of body weight

    Returns:
        WeightForecast (weights rounded to 0.1)
    """
    if config is None:
        config = ForecastConfig()

    change_per_day = daily_weight_change(estimate, planned_daily_calories, energy_per_unit)
    predicted = current_weight + change_per_day * days_ahead

    error_margin = daily_weight_error(estimate, energy_per_unit) * math.sqrt(max(days_ahead, 0))
    margin = max(config.min_margin, error_margin)

    return WeightForecast(
        target_date=resolve_as_of(as_of) + timedelta(days=days_ahead),
        predicted_weight=round(predicted, 1),
        confidence_range=(round(predicted - margin, 1), round(predicted + margin, 1)),
        assumed_daily_calories=planned_daily_calories,
        days_from_now=days_ahead,
    )


def predict_goal_date(
    estimate: Estimate,
    current_weight: float,
    target_weight: float,
    planned_daily_calories: float,
    as_of: Optional[date] = None,
    config: Optional[ForecastConfig] = None,
    energy_per_unit: float = DEFAULT_ENERGY_PER_UNIT,
) -> Optional[GoalDateForecast]:
    """
    Predict when ``target_weight`` is reached on a constant daily intake.

    Returns:
        GoalDateForecast, or None if the intake does not move weight toward
        the target
    """
    if config is None:
        config = ForecastConfig()

    change_per_day = daily_weight_change(estimate, planned_daily_calories, energy_per_unit)
    weight_to_change = target_weight - current_weight

    if (
        change_per_day == 0
        or (weight_to_change > 0 and change_per_day < 0)
        or (weight_to_change < 0 and change_per_day > 0)
    ):
        return None

    days_required = math.ceil(abs(weight_to_change / change_per_day))
    min_days = math.floor(days_required * (1 - config.goal_band))
    max_days = math.ceil(days_required * (1 + config.goal_band))

    start = resolve_as_of(as_of)
    return GoalDateForecast(
        target_weight=target_weight,
        estimated_date=start + timedelta(days=days_required),
        days_required=days_required,
        confidence_range=(start + timedelta(days=min_days), start + timedelta(days=max_days)),
        required_daily_calories=planned_daily_calories,
    )


def project_daily_expenditure(
    estimate: Estimate,
    weight: float,
    total_steps: float = 0.0,
    workout_step_overlaps: Sequence[float] = (),
    workout_calories: float = 0.0,
) -> DailyProjection:
    """
    Project one day's expenditure from that day's logged activity.

    Steps recorded during logged workouts are removed first so they are
    not counted twice. ``vs_average`` is the difference from the average
    day the estimate describes; a calorie-target feature can use it to
    raise or lower the day's intake target.

    Args:
        estimate: Fitted TDEE estimate
        weight: Today's weight
        total_steps: Steps reported by the wearable
        workout_step_overlaps: Steps taken during each logged workout
        workout_calories: Logged workout expenditure

    Returns:
        DailyProjection (rounded kcal)

    Example:
        base 14.0 x 180 + 0.04 x 10,000 steps + 1.0 x 300 = 3220 kcal
    """
    net_steps = max(0.0, total_steps - sum(workout_step_overlaps))

    base = estimate.base_rate * weight
    steps = estimate.step_rate * net_steps
    workout = estimate.workout_multiplier * workout_calories
    total = base + steps + workout

    return DailyProjection(
        base_tdee=int(round(base)),
        step_expenditure=int(round(steps)),
        workout_expenditure=int(round(workout)),
        total_tdee=int(round(total)),
        vs_average=int(round(total - estimate.estimated_tdee)),
    )


def select_best_estimate(
    adaptive: Optional[Estimate],
    fallback: Optional[Estimate],
    min_points: int = MIN_POINTS_FOR_ADAPTIVE,
) -> Optional[Estimate]:
    """
    Prefer the adaptive estimate once it is trustworthy.

    The adaptive estimate wins when it is not unstable and was built from
    at least ``min_points`` observations; otherwise ``fallback`` is used.
    """
    if (
        adaptive is not None
        and adaptive.confidence is not ConfidenceLevel.UNSTABLE
        and adaptive.data_points_used >= min_points
    ):
        return adaptive
    return fallback


def compare_estimates(
    adaptive: Optional[Estimate],
    formula: Estimate,
) -> EstimateComparison:
    """Difference between the adaptive and formula TDEE (kcal and percent)."""
    adaptive_tdee = adaptive.estimated_tdee if adaptive is not None else None
    formula_tdee = formula.estimated_tdee

    if adaptive_tdee is None or formula_tdee == 0:
        difference = 0
        percent = 0
    else:
        difference = adaptive_tdee - formula_tdee
        percent = int(round(difference / formula_tdee * 100))

    return EstimateComparison(
        adaptive=adaptive_tdee,
        formula=formula_tdee,
        difference=difference,
        percent_difference=percent,
    )
