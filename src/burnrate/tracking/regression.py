"""Least-squares fitting of a personal energy-balance model.

The physics:
    weight_change = (calories_in - TDEE) / E         (E = 3500 kcal per lb)
    TDEE = alpha * weight + beta * net_steps + gamma * workout_calories

alpha is the personal burn rate (kcal per lb), beta the expenditure per
step and gamma a multiplier on logged workout expenditure. When no
activity is logged the model collapses to TDEE = alpha * weight with
beta = gamma = 0.

For each regression pair the model predicts

    predicted_change = (calories - TDEE) / E

and the fit minimizes sum((predicted_change - actual_change)^2), where
actual_change is the smoothed weight change from day N to day N+1. The
model is linear in (alpha, beta, gamma), so with y = calories - E * actual
and X = [weight, net_steps, workout] the problem is ordinary least squares
on X @ theta ~= y.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

import numpy as np
from scipy.optimize import lsq_linear

from burnrate.config.settings import BoundsConfig, EstimatorConfig, FitSolver, FitterConfig
from burnrate.tracking.models import DailyObservation, FittedModel, RegressionPair
from burnrate.tracking.outliers import (
    calculate_residuals,
    detect_low_intake_outliers,
    exclude_residual_outliers,
)
from burnrate.tracking.preprocess import smooth_weights

logger = logging.getLogger(__name__)


@dataclass
class FitMetrics:
    """Error metrics of a model over a set of pairs."""

    standard_error: float
    r_squared: float


def build_regression_pairs(
    observations: Sequence[DailyObservation],
    smoothing_window: int,
    outlier_dates: Optional[set[date]] = None,
) -> list[RegressionPair]:
    """
    Pair day N's intake and activity with the smoothed weight change N -> N+1.

    Args:
        observations: Chronologically sorted observations
        smoothing_window: Width of the centered weight smoothing window
        outlier_dates: Days flagged as low-intake outliers (skipped as day N)

    Returns:
        One pair per usable consecutive day pair
    """
    outlier_dates = outlier_dates or set()
    smoothed = smooth_weights(observations, smoothing_window)

    pairs: list[RegressionPair] = []
    for i in range(len(observations) - 1):
        today = observations[i]
        tomorrow = observations[i + 1]

        if today.weight <= 0 or tomorrow.weight <= 0 or today.calories <= 0:
            continue
        if today.date in outlier_dates:
            continue

        pairs.append(
            RegressionPair(
                date=today.date,
                weight=today.weight,  # Raw weight drives expenditure
                calories=today.calories,
                net_steps=today.steps_or_zero,
                workout_calories=today.workout_or_zero,
                actual_change=smoothed[i + 1] - smoothed[i],
            )
        )

    return pairs


def _design_matrix(
    pairs: Sequence[RegressionPair], energy_per_unit: float
) -> tuple[np.ndarray, np.ndarray]:
    """Build X = [weight, net_steps, workout] and y = calories - E * actual_change."""
    X = np.array(
        [[p.weight, p.net_steps, p.workout_calories] for p in pairs], dtype=float
    ).reshape(-1, 3)
    y = np.array(
        [p.calories - energy_per_unit * p.actual_change for p in pairs], dtype=float
    )
    return X, y


def calculate_fit_metrics(
    pairs: Sequence[RegressionPair],
    model: FittedModel,
    energy_per_unit: float,
) -> FitMetrics:
    """
    Standard error of residuals and R² (clamped to [0, 1]).

    R² is reported as 0 when the actual changes have no variance.
    """
    if not pairs:
        return FitMetrics(standard_error=0.0, r_squared=0.0)

    residuals = calculate_residuals(pairs, model, energy_per_unit)
    actual = np.array([p.actual_change for p in pairs], dtype=float)

    ss_res = float(np.sum(residuals ** 2))
    ss_tot = float(np.sum((actual - actual.mean()) ** 2))
    r_squared = max(0.0, min(1.0, 1 - ss_res / ss_tot)) if ss_tot > 0 else 0.0

    return FitMetrics(standard_error=float(residuals.std()), r_squared=r_squared)


def fit_burn_rate(
    pairs: Sequence[RegressionPair],
    bounds: Optional[BoundsConfig] = None,
    config: Optional[FitterConfig] = None,
) -> FittedModel:
    """
    Solve for alpha alone using the normal equation.

    Setting the derivative of sum((c/E - alpha*w/E - d)^2) to zero gives

        alpha = sum(w * (c/E - d)) / sum(w^2 / E)

    Args:
        pairs: Regression pairs
        bounds: Coefficient bounds
        config: Fitter settings

    Returns:
        FittedModel with clamped base_rate and fit metrics
    """
    if bounds is None:
        bounds = BoundsConfig()
    if config is None:
        config = FitterConfig()

    energy = config.energy_per_unit
    numerator = 0.0
    denominator = 0.0
    for pair in pairs:
        numerator += pair.weight * (pair.calories / energy - pair.actual_change)
        denominator += (pair.weight * pair.weight) / energy

    if denominator == 0:
        alpha = config.default_base_rate
    else:
        alpha = numerator / denominator

    model = FittedModel(base_rate=bounds.clamp_base_rate(alpha))
    metrics = calculate_fit_metrics(pairs, model, energy)
    model.standard_error = metrics.standard_error
    model.r_squared = metrics.r_squared
    model.pairs_used = len(pairs)
    model.pairs_total = len(pairs)
    return model


def _solve_lstsq(X: np.ndarray, y: np.ndarray, bounds: BoundsConfig) -> np.ndarray:
    """Unconstrained least squares followed by a single clamp."""
    theta = np.linalg.lstsq(X, y, rcond=None)[0]
    return np.clip(theta, bounds.lower(), bounds.upper())


def _solve_bounded(X: np.ndarray, y: np.ndarray, bounds: BoundsConfig) -> np.ndarray:
    """Bound-constrained least squares."""
    result = lsq_linear(X, y, bounds=(bounds.lower(), bounds.upper()), method="bvls")
    return np.clip(result.x, bounds.lower(), bounds.upper())


def _solve_gradient(
    pairs: Sequence[RegressionPair],
    bounds: BoundsConfig,
    config: FitterConfig,
) -> np.ndarray:
    """
    Projected gradient descent with a fixed learning rate.

    Parameters are clamped after every step, so values near the bounds
    differ from a clamped closed-form solution.
    """
    energy = config.energy_per_unit
    alpha = config.default_base_rate
    beta = config.initial_step_rate
    gamma = config.initial_workout_multiplier
    n = len(pairs)

    for _ in range(config.iterations):
        alpha_grad = 0.0
        beta_grad = 0.0
        gamma_grad = 0.0

        for pair in pairs:
            expenditure = alpha * pair.weight + beta * pair.net_steps + gamma * pair.workout_calories
            error = (pair.calories - expenditure) / energy - pair.actual_change

            alpha_grad += error * (-pair.weight / energy)
            beta_grad += error * (-pair.net_steps / energy)
            gamma_grad += error * (-pair.workout_calories / energy)

        alpha -= config.learning_rate * alpha_grad / n
        beta -= config.learning_rate * beta_grad / n
        gamma -= config.learning_rate * gamma_grad / n

        alpha = bounds.clamp_base_rate(alpha)
        beta = bounds.clamp_step_rate(beta)
        gamma = bounds.clamp_workout_multiplier(gamma)

    return np.array([alpha, beta, gamma])


def fit_activity_model(
    pairs: Sequence[RegressionPair],
    bounds: Optional[BoundsConfig] = None,
    config: Optional[FitterConfig] = None,
) -> FittedModel:
    """
    Fit alpha (burn rate), beta (per step) and gamma (workout multiplier).

    The solver is chosen by ``config.solver``:
    - ``lstsq``: numpy least squares, then one clamp into the bounds
    - ``bounded``: scipy ``lsq_linear`` constrained to the bounds
    - ``gradient``: projected gradient descent

    Args:
        pairs: Regression pairs
        bounds: Coefficient bounds
        config: Fitter settings

    Returns:
        FittedModel with all three coefficients inside their bounds
    """
    if bounds is None:
        bounds = BoundsConfig()
    if config is None:
        config = FitterConfig()

    energy = config.energy_per_unit
    X, y = _design_matrix(pairs, energy)

    if len(pairs) == 0 or not np.any(X[:, 0]):
        # No usable weights: fall back to the prior coefficients
        theta = np.array(
            [
                bounds.clamp_base_rate(config.default_base_rate),
                bounds.clamp_step_rate(config.initial_step_rate),
                bounds.clamp_workout_multiplier(config.initial_workout_multiplier),
            ]
        )
    elif config.solver is FitSolver.BOUNDED:
        theta = _solve_bounded(X, y, bounds)
    elif config.solver is FitSolver.GRADIENT:
        theta = _solve_gradient(pairs, bounds, config)
    else:
        theta = _solve_lstsq(X, y, bounds)

    model = FittedModel(
        base_rate=float(theta[0]),
        step_rate=float(theta[1]),
        workout_multiplier=float(theta[2]),
        uses_activity=True,
    )
    metrics = calculate_fit_metrics(pairs, model, energy)
    model.standard_error = metrics.standard_error
    model.r_squared = metrics.r_squared
    model.pairs_used = len(pairs)
    model.pairs_total = len(pairs)
    return model


def fit_model(
    pairs: Sequence[RegressionPair],
    config: EstimatorConfig,
    use_activity: bool,
) -> FittedModel:
    """Dispatch to the burn-rate-only or activity fit."""
    if use_activity:
        return fit_activity_model(pairs, config.bounds, config.fitter)
    return fit_burn_rate(pairs, config.bounds, config.fitter)


def run_two_pass_regression(
    observations: Sequence[DailyObservation],
    config: Optional[EstimatorConfig] = None,
    use_activity: bool = False,
) -> Optional[FittedModel]:
    """
    Fit, drop residual outliers, and refit on the cleaned pairs.

    Steps:
    1. Flag low-intake days and build smoothed regression pairs
    2. First pass fit on all pairs
    3. Drop pairs with residual |z| > ``config.outlier_threshold``
    4. If fewer than ``min_pairs`` would remain, keep all pairs instead
    5. Second pass fit on the retained pairs

    Args:
        observations: Chronologically sorted, preprocessed observations
        config: Estimator settings
        use_activity: Fit step and workout terms as well as the burn rate

    Returns:
        Final FittedModel, or None if fewer than ``min_pairs`` pairs exist
    """
    if config is None:
        config = EstimatorConfig()

    min_pairs = config.fitter.min_pairs
    if len(observations) < 2:
        return None

    outlier_dates = detect_low_intake_outliers(observations, config.intake_outliers)
    pairs = build_regression_pairs(observations, config.smoothing_window, outlier_dates)

    if len(pairs) < min_pairs:
        logger.debug("Only %d regression pairs (need %d); no fit", len(pairs), min_pairs)
        return None

    # First pass
    first = fit_model(pairs, config, use_activity)
    logger.debug(
        "Pass 1: alpha=%.3f beta=%.4f gamma=%.3f se=%.3f on %d pairs",
        first.base_rate,
        first.step_rate,
        first.workout_multiplier,
        first.standard_error,
        len(pairs),
    )

    cleaned, excluded = exclude_residual_outliers(
        pairs, first, config.outlier_threshold, config.fitter
    )

    fallback = False
    if len(cleaned) < min_pairs:
        logger.warning(
            "Too many residual outliers excluded (%d of %d), using all pairs",
            excluded,
            len(pairs),
        )
        cleaned = pairs
        excluded = 0
        fallback = True

    # Second pass
    final = fit_model(cleaned, config, use_activity)
    final.outliers_excluded = excluded
    final.pairs_used = len(cleaned)
    final.pairs_total = len(pairs)
    final.exclusion_fallback = fallback

    logger.debug(
        "Pass 2: alpha=%.3f beta=%.4f gamma=%.3f se=%.3f r2=%.3f on %d pairs",
        final.base_rate,
        final.step_rate,
        final.workout_multiplier,
        final.standard_error,
        final.r_squared,
        len(cleaned),
    )
    return final
