"""Adaptive TDEE estimation from logged weight, intake and activity.

Instead of relying on population formulas (Mifflin-St Jeor,
Harris-Benedict), the estimator back-calculates a personal burn rate from
the person's own data:

    filter window -> smooth weight -> flag low-intake days -> build pairs
    -> fit -> drop residual outliers -> refit -> score confidence

and reruns the same chain on every trailing window to show how the
estimate converged.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional, Sequence

from burnrate.config.settings import BoundsConfig, EstimatorConfig
from burnrate.tracking.confidence import classify_confidence, confidence_score
from burnrate.tracking.models import (
    DailyObservation,
    Estimate,
    EstimateSource,
    ExpenditureBreakdown,
    FittedModel,
    HistoryPoint,
)
from burnrate.tracking.preprocess import (
    filter_observations,
    is_usable,
    resolve_as_of,
    sort_observations,
)
from burnrate.tracking.regression import run_two_pass_regression

logger = logging.getLogger(__name__)


def _round_coefficients(model: FittedModel, bounds: BoundsConfig) -> tuple[float, float, float]:
    """Round to reporting precision without leaving the bounds."""
    alpha = round(model.base_rate, 1)
    beta = round(model.step_rate, 3)
    gamma = round(model.workout_multiplier, 2)
    if model.uses_activity:
        return (
            bounds.clamp_base_rate(alpha),
            bounds.clamp_step_rate(beta),
            bounds.clamp_workout_multiplier(gamma),
        )
    return bounds.clamp_base_rate(alpha), beta, gamma


def _wants_activity(observations: Sequence[DailyObservation], config: EstimatorConfig) -> bool:
    return config.use_activity and any(obs.has_activity for obs in observations)


def fit_window(
    observations: Sequence[DailyObservation],
    config: Optional[EstimatorConfig] = None,
) -> Optional[FittedModel]:
    """
    Run smoothing, outlier handling and two-pass fitting on one window.

    Args:
        observations: Preprocessed, chronologically sorted observations

    Returns:
        FittedModel, or None when too few pairs remain
    """
    if config is None:
        config = EstimatorConfig()
    return run_two_pass_regression(
        observations, config, use_activity=_wants_activity(observations, config)
    )


def build_estimate_history(
    observations: Iterable[DailyObservation],
    config: Optional[EstimatorConfig] = None,
    as_of: Optional[date] = None,
) -> list[HistoryPoint]:
    """
    Rolling burn-rate estimates for a convergence chart.

    Starting at the ``history_min_points``-th usable observation, the whole
    pipeline is rerun on the trailing window ending at each observation.
    Windows that cannot be fitted are skipped. The ``min_data_points`` gate
    is not applied per window.

    Args:
        observations: Observations in any order
        config: Estimator settings
        as_of: Reference date; later observations are ignored

    Returns:
        History points ordered oldest to newest
    """
    if config is None:
        config = EstimatorConfig()

    reference = resolve_as_of(as_of)
    usable = sort_observations(
        obs
        for obs in observations
        if obs.date <= reference and is_usable(obs, config.exclude_incomplete)
    )

    history: list[HistoryPoint] = []
    if len(usable) < config.history_min_points:
        return history

    for end in range(config.history_min_points, len(usable) + 1):
        end_date = usable[end - 1].date
        window = filter_observations(
            usable[:end],
            config.window_days,
            config.exclude_incomplete,
            as_of=end_date,
        )
        model = fit_window(window, config)
        if model is None:
            continue

        alpha, _, _ = _round_coefficients(model, config.bounds)
        history.append(
            HistoryPoint(
                date=end_date,
                burn_rate=alpha,
                confidence_score=confidence_score(
                    model.standard_error, model.pairs_used, config.confidence
                ),
            )
        )

    return history


def estimate_tdee(
    observations: Iterable[DailyObservation],
    current_weight: float,
    config: Optional[EstimatorConfig] = None,
    as_of: Optional[date] = None,
    include_history: bool = True,
) -> Optional[Estimate]:
    """
    Estimate TDEE by least-squares regression on the person's own data.

    If any day in the window carries step or workout data (and
    ``config.use_activity`` is set), the activity model is fitted; otherwise
    only the burn rate is fitted and the step/workout coefficients reported
    on the estimate are the configured priors.

    Args:
        observations: Logged days in any order
        current_weight: Weight used to turn the burn rate into kcal/day
        config: Estimator settings
        as_of: Reference date for the trailing window (default: today)
        include_history: Also compute the rolling estimate history

    Returns:
        Estimate, or None if there is not enough data
    """
    if config is None:
        config = EstimatorConfig()

    observations = list(observations)
    reference = resolve_as_of(as_of)
    filtered = filter_observations(
        observations, config.window_days, config.exclude_incomplete, as_of=reference
    )

    if len(filtered) < config.min_data_points:
        logger.debug(
            "Insufficient data: %d usable observations (need %d)",
            len(filtered),
            config.min_data_points,
        )
        return None

    use_activity = _wants_activity(filtered, config)
    model = run_two_pass_regression(filtered, config, use_activity=use_activity)
    if model is None:
        return None

    alpha, beta, gamma = _round_coefficients(model, config.bounds)
    effective_points = model.pairs_used

    if use_activity:
        average_steps = sum(obs.steps_or_zero for obs in filtered) / len(filtered)
        average_workout = sum(obs.workout_or_zero for obs in filtered) / len(filtered)
        source = EstimateSource.ACTIVITY_REGRESSION
    else:
        average_steps = 0.0
        average_workout = 0.0
        beta = config.fitter.initial_step_rate
        gamma = config.fitter.initial_workout_multiplier
        source = EstimateSource.REGRESSION

    base_tdee = alpha * current_weight
    step_expenditure = beta * average_steps
    workout_expenditure = gamma * average_workout
    total = base_tdee + step_expenditure + workout_expenditure

    history = build_estimate_history(observations, config, reference) if include_history else []

    return Estimate(
        base_rate=alpha,
        step_rate=beta,
        workout_multiplier=gamma,
        estimated_tdee=int(round(total)),
        confidence=classify_confidence(model, effective_points, config.confidence),
        confidence_score=confidence_score(
            model.standard_error, effective_points, config.confidence
        ),
        data_points_used=len(filtered),
        data_points_after_exclusion=effective_points,
        outliers_excluded=model.outliers_excluded,
        window_days=config.window_days,
        standard_error=model.standard_error,
        r_squared=model.r_squared,
        source=source,
        current_weight=current_weight,
        as_of=reference,
        history=history,
        breakdown=ExpenditureBreakdown(
            base=int(round(base_tdee)),
            steps=int(round(step_expenditure)),
            workout=int(round(workout_expenditure)),
            total=int(round(total)),
        ),
        average_steps=round(average_steps),
        average_workout_calories=round(average_workout),
    )
