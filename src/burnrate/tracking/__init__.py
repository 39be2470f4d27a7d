"""Adaptive TDEE estimation.

Fits a personal energy-balance model to logged weight, intake and
activity instead of relying on population formulas.

Key components:
- Trailing-window filtering and centered weight smoothing
- Low-intake and residual outlier exclusion
- Two-pass least-squares fit of burn rate, step rate and workout multiplier
- Confidence scoring, rolling history and forward projections
"""

from __future__ import annotations

from burnrate.tracking.estimator import build_estimate_history, estimate_tdee
from burnrate.tracking.forecast import (
    compare_estimates,
    predict_future_weight,
    predict_goal_date,
    project_daily_expenditure,
    select_best_estimate,
)
from burnrate.tracking.models import (
    ConfidenceLevel,
    DailyObservation,
    Estimate,
    EstimateSource,
    HistoryPoint,
)

__all__ = [
    "ConfidenceLevel",
    "DailyObservation",
    "Estimate",
    "EstimateSource",
    "HistoryPoint",
    "build_estimate_history",
    "compare_estimates",
    "estimate_tdee",
    "predict_future_weight",
    "predict_goal_date",
    "project_daily_expenditure",
    "select_best_estimate",
]
