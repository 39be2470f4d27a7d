"""Data models for adaptive TDEE estimation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class ConfidenceLevel(Enum):
    """Discrete trust level of a fitted estimate."""

    UNSTABLE = "unstable"
    STABILIZING = "stabilizing"
    STABLE = "stable"


class EstimateSource(Enum):
    """Where an estimate came from."""

    REGRESSION = "regression"                    # Burn rate only
    ACTIVITY_REGRESSION = "activity_regression"  # Burn rate + steps + workouts
    FORMULA = "formula"                          # Mifflin-St Jeor fallback


@dataclass(frozen=True)
class DailyObservation:
    """One calendar day of logged data.

    Weight and calories that are zero or negative are allowed here; they
    mark a day as unusable and are dropped during preprocessing.
    """

    date: date
    weight: float
    calories: float
    is_complete: bool = True
    net_steps: Optional[float] = None  # Steps after workout overlap is removed
    workout_calories: Optional[float] = None

    def __post_init__(self) -> None:
        if self.net_steps is not None and self.net_steps < 0:
            raise ValueError(f"net_steps must be non-negative, got {self.net_steps}")
        if self.workout_calories is not None and self.workout_calories < 0:
            raise ValueError(
                f"workout_calories must be non-negative, got {self.workout_calories}"
            )

    @property
    def steps_or_zero(self) -> float:
        return self.net_steps or 0.0

    @property
    def workout_or_zero(self) -> float:
        return self.workout_calories or 0.0

    @property
    def has_activity(self) -> bool:
        """True if any step or workout expenditure was logged."""
        return self.steps_or_zero > 0 or self.workout_or_zero > 0


@dataclass(frozen=True)
class RegressionPair:
    """Day N intake/activity paired with the smoothed weight change N -> N+1.

    Day N's intake is metabolized during day N, so the morning weight on
    day N+1 reflects day N's energy balance.
    """

    date: date
    weight: float
    calories: float
    net_steps: float
    workout_calories: float
    actual_change: float


@dataclass
class FittedModel:
    """Coefficients of the linear energy-balance model plus fit quality.

    Expenditure = base_rate * weight + step_rate * net_steps
                  + workout_multiplier * workout_calories

    A burn-rate-only fit has step_rate = workout_multiplier = 0.
    """

    base_rate: float
    step_rate: float = 0.0
    workout_multiplier: float = 0.0
    standard_error: float = 0.0
    r_squared: float = 0.0
    outliers_excluded: int = 0
    pairs_used: int = 0
    pairs_total: int = 0
    exclusion_fallback: bool = False
    uses_activity: bool = False

    def predicted_expenditure(
        self,
        weight: float,
        net_steps: float = 0.0,
        workout_calories: float = 0.0,
    ) -> float:
        """Expenditure (kcal/day) implied by the model for one day."""
        return (
            self.base_rate * weight
            + self.step_rate * net_steps
            + self.workout_multiplier * workout_calories
        )

    def predicted_change(self, pair: RegressionPair, energy_per_unit: float) -> float:
        """Weight change the model predicts for a pair."""
        expenditure = self.predicted_expenditure(
            pair.weight, pair.net_steps, pair.workout_calories
        )
        return (pair.calories - expenditure) / energy_per_unit


@dataclass
class HistoryPoint:
    """Burn rate fitted on the trailing window ending at ``date``."""

    date: date
    burn_rate: float
    confidence_score: int


@dataclass
class ExpenditureBreakdown:
    """Average-day expenditure split by model component."""

    base: int
    steps: int
    workout: int
    total: int


@dataclass
class Estimate:
    """Externally visible TDEE estimate."""

    base_rate: float
    estimated_tdee: int
    confidence: ConfidenceLevel
    confidence_score: int
    data_points_used: int
    window_days: int
    standard_error: float  # weight/day for regression, kcal/day for formula
    current_weight: float
    as_of: date
    source: EstimateSource = EstimateSource.REGRESSION
    step_rate: float = 0.0
    workout_multiplier: float = 0.0
    r_squared: float = 0.0
    data_points_after_exclusion: Optional[int] = None
    outliers_excluded: int = 0
    history: list[HistoryPoint] = field(default_factory=list)
    breakdown: Optional[ExpenditureBreakdown] = None
    average_steps: float = 0.0
    average_workout_calories: float = 0.0

    @property
    def burn_rate_per_unit(self) -> float:
        """Alias for the base burn rate (kcal per unit body weight)."""
        return self.base_rate

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dict."""
        data = asdict(self)
        data["confidence"] = self.confidence.value
        data["source"] = self.source.value
        data["as_of"] = self.as_of.isoformat()
        data["history"] = [
            {
                "date": point.date.isoformat(),
                "burn_rate": point.burn_rate,
                "confidence_score": point.confidence_score,
            }
            for point in self.history
        ]
        return data


@dataclass
class WeightForecast:
    """Projected weight after a number of days on a fixed intake."""

    target_date: date
    predicted_weight: float
    confidence_range: tuple[float, float]  # (low, high)
    assumed_daily_calories: float
    days_from_now: int


@dataclass
class GoalDateForecast:
    """When a target weight is reached on a fixed intake."""

    target_weight: float
    estimated_date: date
    days_required: int
    confidence_range: tuple[date, date]  # (earliest, latest)
    required_daily_calories: float


@dataclass
class DailyProjection:
    """Expenditure projected for one specific day from its logged activity."""

    base_tdee: int
    step_expenditure: int
    workout_expenditure: int
    total_tdee: int
    vs_average: int  # Positive = burned more than an average day


@dataclass
class DataQualityReport:
    """Result of a data quality check over logged observations."""

    is_valid: bool
    issues: list[str]
    suggestions: list[str]
    days_with_data: int
    days_with_gaps: int
    complete_days: int


@dataclass
class RegressionPoint:
    """A single pair as shown on a regression chart."""

    date: date
    weight: float
    calories: float
    actual_change: float
    predicted_change: float
    residual: float


@dataclass
class RegressionAnalysis:
    """Actual vs predicted daily weight changes for visualization."""

    points: list[RegressionPoint]
    base_rate: float
    estimated_tdee: int
    r_squared: float
    standard_error: float
    current_weight: float
    pairs_excluded: int = 0


@dataclass
class ActivityContribution:
    """Share of the estimated TDEE coming from each model component."""

    base_percent: int
    steps_percent: int
    workout_percent: int
    insights: list[str] = field(default_factory=list)


@dataclass
class EstimateComparison:
    """Adaptive estimate vs formula estimate."""

    adaptive: Optional[int]
    formula: int
    difference: int
    percent_difference: int
