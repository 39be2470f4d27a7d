"""Confidence level and score for a fitted model."""

from __future__ import annotations

from typing import Optional

from burnrate.config.settings import ConfidenceConfig
from burnrate.tracking.models import ConfidenceLevel, FittedModel


def classify_confidence(
    model: FittedModel,
    effective_points: int,
    config: Optional[ConfidenceConfig] = None,
) -> ConfidenceLevel:
    """
    Discrete confidence from fit error, R² and sample size.

    Stable needs low error AND a meaningful R² AND enough data.
    Stabilizing needs either moderate error OR a fair amount of data.

    Args:
        model: Final fitted model
        effective_points: Pairs left after outlier exclusion
        config: Thresholds

    Returns:
        ConfidenceLevel
    """
    if config is None:
        config = ConfidenceConfig()

    if (
        model.standard_error < config.stable_max_error
        and model.r_squared > config.stable_min_r_squared
        and effective_points >= config.stable_min_points
    ):
        return ConfidenceLevel.STABLE

    if (
        model.standard_error < config.stabilizing_max_error
        or effective_points >= config.stabilizing_min_points
    ):
        return ConfidenceLevel.STABILIZING

    return ConfidenceLevel.UNSTABLE


def confidence_score(
    standard_error: float,
    effective_points: int,
    config: Optional[ConfidenceConfig] = None,
) -> int:
    """
    Score from 0 to 100.

    Up to 50 points for data (saturating at ``reference_points``) and up to
    50 points for accuracy (losing ``error_penalty`` points per unit of
    standard error, floored at 0). Never decreases with more data or with
    lower error.

    Example:
        >>> confidence_score(0.0, 28)
        100
        >>> confidence_score(0.5, 14)
        60
    """
    if config is None:
        config = ConfidenceConfig()

    data_score = min(max(effective_points, 0) / config.reference_points, 1.0) * 50
    accuracy_score = max(0.0, 50 - standard_error * config.error_penalty)
    return int(round(data_score + accuracy_score))
