"""Outlier handling for the energy-balance regression.

Two kinds of outliers are removed before trusting a fit:

1. Low-intake days. A day where the person ate more than they logged
   looks like "ate little, yet lost no more weight than expected", which
   biases the burn rate high. Such days are flagged from the intake
   distribution before pairs are built.
2. Residual outliers. After a first fit, pairs whose residual z-score
   exceeds a threshold are dropped and the model is refit.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

import numpy as np

from burnrate.config.settings import (
    FitterConfig,
    IntakeOutlierConfig,
    IntakeThresholdPolicy,
)
from burnrate.tracking.models import DailyObservation, FittedModel, RegressionPair

logger = logging.getLogger(__name__)


@dataclass
class IntakeThreshold:
    """Statistics behind a low-intake threshold."""

    mean: float
    sd: float
    sd_threshold: float
    percentile_threshold: float
    final_threshold: float
    trimmed: bool


def compute_intake_threshold(
    calories: Sequence[float],
    config: Optional[IntakeOutlierConfig] = None,
) -> Optional[IntakeThreshold]:
    """
    Compute the low-intake threshold for a set of complete-day intakes.

    Values below ``absolute_floor`` are trimmed first so that clearly
    incomplete days do not drag the mean and SD down. Trimming is only
    applied when at least ``min_samples`` values survive it.

    Args:
        calories: Positive intakes from complete days
        config: Detector settings

    Returns:
        IntakeThreshold, or None if there are fewer than ``min_samples`` values
    """
    if config is None:
        config = IntakeOutlierConfig()

    if len(calories) < config.min_samples:
        return None

    trimmed_values = [c for c in calories if c >= config.absolute_floor]
    use_trimmed = len(trimmed_values) >= config.min_samples
    base = np.asarray(trimmed_values if use_trimmed else calories, dtype=float)

    mean = float(base.mean())
    sd = float(base.std())
    sd_threshold = mean - config.sd_multiplier * sd

    ordered = np.sort(base)
    percentile_threshold = float(ordered[int(math.floor(len(ordered) * config.percentile))])

    if config.policy is IntakeThresholdPolicy.LOWER:
        final = min(sd_threshold, percentile_threshold)
    else:
        final = max(sd_threshold, percentile_threshold)

    return IntakeThreshold(
        mean=mean,
        sd=sd,
        sd_threshold=sd_threshold,
        percentile_threshold=percentile_threshold,
        final_threshold=final,
        trimmed=use_trimmed,
    )


def detect_low_intake_outliers(
    observations: Sequence[DailyObservation],
    config: Optional[IntakeOutlierConfig] = None,
) -> set[date]:
    """
    Flag dates whose logged intake is anomalously low.

    Only complete days with positive intake are considered, both for the
    statistics and for flagging. A day is flagged if it is below the
    absolute floor or below the combined threshold.

    Args:
        observations: Observations (any order)
        config: Detector settings

    Returns:
        Set of flagged dates (empty when there are too few complete days)
    """
    if config is None:
        config = IntakeOutlierConfig()

    candidates = [obs for obs in observations if obs.calories > 0 and obs.is_complete]
    threshold = compute_intake_threshold([obs.calories for obs in candidates], config)
    if threshold is None:
        return set()

    flagged = {
        obs.date
        for obs in candidates
        if obs.calories < config.absolute_floor or obs.calories < threshold.final_threshold
    }

    if flagged:
        extreme = sum(1 for obs in candidates if obs.calories < config.absolute_floor)
        logger.info(
            "Detected %d low-intake outlier days (%d below %.0f kcal, %d below %.0f kcal); "
            "mean=%.0f kcal, sd=%.0f kcal",
            len(flagged),
            extreme,
            config.absolute_floor,
            len(flagged) - extreme,
            threshold.final_threshold,
            threshold.mean,
            threshold.sd,
        )

    return flagged


def calculate_residuals(
    pairs: Sequence[RegressionPair],
    model: FittedModel,
    energy_per_unit: float,
) -> np.ndarray:
    """Residuals (predicted change minus actual change) for each pair."""
    return np.array(
        [model.predicted_change(pair, energy_per_unit) - pair.actual_change for pair in pairs],
        dtype=float,
    )


def exclude_residual_outliers(
    pairs: Sequence[RegressionPair],
    model: FittedModel,
    threshold: float,
    config: Optional[FitterConfig] = None,
) -> tuple[list[RegressionPair], int]:
    """
    Drop pairs whose residual z-score exceeds ``threshold``.

    If the residual SD is below ``residual_sd_floor`` the data is already
    clean and nothing is dropped.

    Args:
        pairs: Pairs used for the fit
        model: Fitted model from the first pass
        threshold: Maximum allowed |z|
        config: Fitter settings (energy density, SD floor)

    Returns:
        Tuple of (kept pairs, number excluded). Never returns more pairs
        than it was given.
    """
    if config is None:
        config = FitterConfig()

    if not pairs:
        return [], 0

    residuals = calculate_residuals(pairs, model, config.energy_per_unit)
    mean = float(residuals.mean())
    sd = float(residuals.std())

    if sd < config.residual_sd_floor:
        return list(pairs), 0

    z_scores = np.abs((residuals - mean) / sd)
    kept = [pair for pair, z in zip(pairs, z_scores) if z <= threshold]
    excluded = len(pairs) - len(kept)

    if excluded:
        logger.info(
            "Excluded %d residual outliers (|z| > %.1f, residual sd=%.3f)",
            excluded,
            threshold,
            sd,
        )

    return kept, excluded
