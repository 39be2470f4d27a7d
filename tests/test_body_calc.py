"""Tests for the formula-based TDEE fallback."""

from __future__ import annotations

from datetime import date

import pytest

from burnrate.profiles.body_calc import (
    ActivityLevel,
    BodyProfile,
    Sex,
    calculate_bmr,
    calculate_tdee,
    formula_estimate,
)
from burnrate.tracking.models import ConfidenceLevel, EstimateSource


class TestMifflinStJeor:
    """Tests for BMR and TDEE formulas."""

    def test_bmr_male(self) -> None:
        """30-year-old male, 70 in, 180 lbs."""
        assert calculate_bmr(30, Sex.MALE, 70.0, 180.0) == pytest.approx(1782.7, abs=0.1)

    def test_bmr_female_offset(self) -> None:
        """Female BMR is 166 kcal below male for the same body."""
        male = calculate_bmr(30, Sex.MALE, 65.0, 140.0)
        female = calculate_bmr(30, Sex.FEMALE, 65.0, 140.0)
        assert male - female == pytest.approx(166.0)

    def test_activity_multiplier(self) -> None:
        """TDEE scales BMR by the activity factor."""
        assert calculate_tdee(1000.0, ActivityLevel.SEDENTARY) == pytest.approx(1200.0)
        assert calculate_tdee(1000.0, ActivityLevel.VERY_ACTIVE) == pytest.approx(1900.0)


class TestBodyProfile:
    """Tests for BodyProfile validation."""

    def test_string_values_converted(self) -> None:
        """Sex and activity level accept strings."""
        profile = BodyProfile(age=30, sex="Male", height_inches=70.0, weight_lbs=180.0, activity_level="light")
        assert profile.sex is Sex.MALE
        assert profile.activity_level is ActivityLevel.LIGHT

    def test_invalid_sex(self) -> None:
        """Unknown sex is rejected."""
        with pytest.raises(ValueError):
            BodyProfile(age=30, sex="other", height_inches=70.0, weight_lbs=180.0)

    def test_non_positive_weight(self) -> None:
        """Weight must be positive."""
        with pytest.raises(ValueError, match="weight_lbs"):
            BodyProfile(age=30, sex=Sex.FEMALE, height_inches=64.0, weight_lbs=0.0)


class TestFormulaEstimate:
    """Tests for formula_estimate."""

    def test_low_confidence_estimate(self) -> None:
        """Formula estimates are marked unstable with a wide error."""
        profile = BodyProfile(age=30, sex=Sex.MALE, height_inches=70.0, weight_lbs=180.0)
        est = formula_estimate(profile, as_of=date(2025, 3, 1))
        expected = calculate_tdee(calculate_bmr(30, Sex.MALE, 70.0, 180.0), ActivityLevel.MODERATE)
        assert est.source is EstimateSource.FORMULA
        assert est.confidence is ConfidenceLevel.UNSTABLE
        assert est.confidence_score == 20
        assert est.standard_error == 300.0
        assert est.data_points_used == 0
        assert est.estimated_tdee == int(round(expected))
        assert est.base_rate == pytest.approx(expected / 180.0, abs=0.05)
        assert est.as_of == date(2025, 3, 1)
