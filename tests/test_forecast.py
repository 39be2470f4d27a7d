"""Tests for forward projections and estimate selection."""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from conftest import START, make_estimate, make_series

from burnrate.tracking.estimator import estimate_tdee
from burnrate.tracking.forecast import (
    compare_estimates,
    daily_weight_change,
    daily_weight_error,
    predict_future_weight,
    predict_goal_date,
    project_daily_expenditure,
    select_best_estimate,
)
from burnrate.tracking.models import ConfidenceLevel, EstimateSource


class TestProjectDailyExpenditure:
    """Tests for single-day expenditure projection."""

    def test_reference_day(self) -> None:
        """14.0 x 180 + 0.04 x 10,000 + 1.0 x 300 = 3220."""
        est = make_estimate(base_rate=14.0, step_rate=0.04, workout_multiplier=1.0)
        projection = project_daily_expenditure(est, 180.0, total_steps=10000, workout_calories=300)
        assert projection.base_tdee == 2520
        assert projection.step_expenditure == 400
        assert projection.workout_expenditure == 300
        assert projection.total_tdee == 3220
        assert projection.vs_average == 3220 - est.estimated_tdee

    def test_workout_steps_not_double_counted(self) -> None:
        """Steps during workouts are removed before applying the step rate."""
        est = make_estimate(step_rate=0.04)
        projection = project_daily_expenditure(est, 180.0, 10000, workout_step_overlaps=[1500, 500])
        assert projection.step_expenditure == 320

    def test_net_steps_never_negative(self) -> None:
        """Overlaps larger than the total leave zero step expenditure."""
        est = make_estimate(step_rate=0.04)
        projection = project_daily_expenditure(est, 180.0, 1000, workout_step_overlaps=[5000])
        assert projection.step_expenditure == 0

    def test_rest_day_below_average(self) -> None:
        """No activity on an active person's estimate is below average."""
        est = make_estimate(base_rate=14.0, estimated_tdee=2900)
        assert project_daily_expenditure(est, 180.0).vs_average < 0


class TestPredictFutureWeight:
    """Tests for predict_future_weight."""

    def test_deficit_projection(self) -> None:
        """500 kcal/day under TDEE for 35 days loses 5."""
        est = make_estimate(estimated_tdee=2500, standard_error=0.1)
        forecast = predict_future_weight(est, 200.0, 2000.0, 35, as_of=START)
        assert forecast.predicted_weight == pytest.approx(195.0)
        assert forecast.confidence_range == (194.0, 196.0)
        assert forecast.target_date == START + timedelta(days=35)
        assert forecast.days_from_now == 35

    def test_maintenance(self) -> None:
        """Eating at TDEE keeps weight flat."""
        est = make_estimate(estimated_tdee=2500)
        forecast = predict_future_weight(est, 180.0, 2500.0, 60, as_of=START)
        assert forecast.predicted_weight == 180.0

    def test_range_widens_with_horizon(self) -> None:
        """A fitted estimate's range grows with the square root of the days."""
        weights = [
            round(200.0 - 0.2 * i + (0.9 if i % 2 else -0.9), 3) for i in range(21)
        ]
        obs = make_series(weights, 2200.0)
        est = estimate_tdee(obs, weights[-1], as_of=obs[-1].date, include_history=False)
        assert est is not None
        assert est.standard_error > 0.1

        widths = {}
        for days in (7, 90, 365):
            low, high = predict_future_weight(
                est, weights[-1], 2000.0, days, as_of=START
            ).confidence_range
            widths[days] = high - low
        assert widths[365] > widths[90] > widths[7]

    def test_formula_error_in_kcal(self) -> None:
        """A formula estimate's kcal uncertainty is converted to weight."""
        est = replace(
            make_estimate(estimated_tdee=2500),
            source=EstimateSource.FORMULA,
            standard_error=300.0,
        )
        assert daily_weight_error(est) == pytest.approx(300.0 / 3500.0)
        short_low, short_high = predict_future_weight(est, 200.0, 2000.0, 7, as_of=START).confidence_range
        long_low, long_high = predict_future_weight(est, 200.0, 2000.0, 365, as_of=START).confidence_range
        assert short_high - short_low == pytest.approx(2.0)
        assert long_high - long_low > 3.0

    def test_daily_change_sign(self) -> None:
        """Surplus gains and deficit loses."""
        est = make_estimate(estimated_tdee=2500)
        assert daily_weight_change(est, 3000.0) > 0
        assert daily_weight_change(est, 2000.0) < 0


class TestPredictGoalDate:
    """Tests for predict_goal_date."""

    def test_reachable_goal(self) -> None:
        """0.25 per day for 10 takes 40 days."""
        est = make_estimate(estimated_tdee=2875)
        goal = predict_goal_date(est, 200.0, 190.0, 2000.0, as_of=START)
        assert goal is not None
        assert goal.days_required == 40
        assert goal.estimated_date == START + timedelta(days=40)
        earliest, latest = goal.confidence_range
        assert earliest < goal.estimated_date < latest

    def test_gain_goal(self) -> None:
        """Goals above current weight need a surplus."""
        est = make_estimate(estimated_tdee=2500)
        assert predict_goal_date(est, 150.0, 160.0, 3375.0, as_of=START) is not None

    def test_wrong_direction(self) -> None:
        """A deficit never reaches a higher target."""
        est = make_estimate(estimated_tdee=2500)
        assert predict_goal_date(est, 180.0, 190.0, 2000.0, as_of=START) is None

    def test_no_change(self) -> None:
        """Eating at TDEE never reaches any other weight."""
        est = make_estimate(estimated_tdee=2500)
        assert predict_goal_date(est, 180.0, 170.0, 2500.0, as_of=START) is None


class TestEstimateSelection:
    """Tests for select_best_estimate and compare_estimates."""

    def test_adaptive_preferred_when_trustworthy(self) -> None:
        """Stable adaptive estimates with enough data win."""
        adaptive = make_estimate(confidence=ConfidenceLevel.STABILIZING, data_points_used=14)
        formula = make_estimate(estimated_tdee=2400)
        assert select_best_estimate(adaptive, formula) is adaptive

    def test_unstable_falls_back(self) -> None:
        """Unstable adaptive estimates give way to the fallback."""
        adaptive = make_estimate(confidence=ConfidenceLevel.UNSTABLE)
        formula = make_estimate(estimated_tdee=2400)
        assert select_best_estimate(adaptive, formula) is formula

    def test_too_few_points_falls_back(self) -> None:
        """Fewer than 10 observations is not enough."""
        adaptive = make_estimate(data_points_used=9)
        formula = make_estimate(estimated_tdee=2400)
        assert select_best_estimate(adaptive, formula) is formula
        assert select_best_estimate(None, formula) is formula

    def test_compare(self) -> None:
        """Difference and percent difference against the formula."""
        comparison = compare_estimates(make_estimate(estimated_tdee=2750), make_estimate(estimated_tdee=2500))
        assert comparison.adaptive == 2750
        assert comparison.formula == 2500
        assert comparison.difference == 250
        assert comparison.percent_difference == 10

    def test_compare_without_adaptive(self) -> None:
        """Missing adaptive estimate reports zero difference."""
        comparison = compare_estimates(None, make_estimate(estimated_tdee=2500))
        assert comparison.adaptive is None
        assert comparison.difference == 0
        assert comparison.percent_difference == 0
