"""Formula-based TDEE for people without enough logged data.

Uses the Mifflin-St Jeor equation for BMR, scaled by a standard activity
multiplier. The result is wrapped in a low-confidence ``Estimate`` so it
can stand in for the adaptive estimate until the regression has enough
observations.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from burnrate.tracking.models import ConfidenceLevel, Estimate, EstimateSource
from burnrate.tracking.preprocess import resolve_as_of

# Formula estimates are a starting point, not a measurement
FORMULA_CONFIDENCE_SCORE = 20
FORMULA_STANDARD_ERROR = 300.0


class Sex(Enum):
    """Biological sex for BMR calculation."""
    MALE = "male"
    FEMALE = "female"


class ActivityLevel(Enum):
    """Activity level multipliers for TDEE calculation."""
    SEDENTARY = "sedentary"          # Little or no exercise
    LIGHT = "light"                  # Light exercise 1-3 days/week
    MODERATE = "moderate"            # Moderate exercise 3-5 days/week
    ACTIVE = "active"                # Hard exercise 6-7 days/week
    VERY_ACTIVE = "very_active"      # Very hard exercise, physical job


ACTIVITY_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}


@dataclass
class BodyProfile:
    """Body metrics needed for a formula estimate."""

    age: int
    sex: Sex
    height_inches: float
    weight_lbs: float
    activity_level: ActivityLevel = ActivityLevel.MODERATE

    def __post_init__(self) -> None:
        if isinstance(self.sex, str):
            self.sex = Sex(self.sex.lower())
        if isinstance(self.activity_level, str):
            self.activity_level = ActivityLevel(self.activity_level.lower())
        if self.age <= 0:
            raise ValueError(f"age must be positive, got {self.age}")
        if self.height_inches <= 0:
            raise ValueError(f"height_inches must be positive, got {self.height_inches}")
        if self.weight_lbs <= 0:
            raise ValueError(f"weight_lbs must be positive, got {self.weight_lbs}")


def calculate_bmr(
    age: int,
    sex: Sex,
    height_inches: float,
    weight_lbs: float,
) -> float:
    """Calculate Basal Metabolic Rate using Mifflin-St Jeor equation.

    Args:
        age: Age in years
        sex: Biological sex
        height_inches: Height in inches
        weight_lbs: Weight in pounds

    Returns:
        BMR in calories per day
    """
    weight_kg = weight_lbs * 0.453592
    height_cm = height_inches * 2.54

    if sex == Sex.MALE:
        return (10 * weight_kg) + (6.25 * height_cm) - (5 * age) + 5
    return (10 * weight_kg) + (6.25 * height_cm) - (5 * age) - 161


def calculate_tdee(bmr: float, activity_level: ActivityLevel) -> float:
    """BMR scaled by the activity multiplier."""
    return bmr * ACTIVITY_MULTIPLIERS[activity_level]


def formula_estimate(profile: BodyProfile, as_of: Optional[date] = None) -> Estimate:
    """
    Formula TDEE expressed as an ``Estimate``.

    Always ``unstable`` with a fixed low confidence score and a wide
    standard error, so ``select_best_estimate`` replaces it as soon as a
    trustworthy adaptive estimate exists.
    """
    bmr = calculate_bmr(profile.age, profile.sex, profile.height_inches, profile.weight_lbs)
    tdee = calculate_tdee(bmr, profile.activity_level)

    return Estimate(
        base_rate=round(tdee / profile.weight_lbs, 1),
        estimated_tdee=int(round(tdee)),
        confidence=ConfidenceLevel.UNSTABLE,
        confidence_score=FORMULA_CONFIDENCE_SCORE,
        data_points_used=0,
        window_days=0,
        standard_error=FORMULA_STANDARD_ERROR,
        current_weight=profile.weight_lbs,
        as_of=resolve_as_of(as_of),
        source=EstimateSource.FORMULA,
    )
