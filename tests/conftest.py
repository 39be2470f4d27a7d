"""Pytest fixtures for burnrate tests."""

from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path
from typing import Optional, Sequence

import pytest

from burnrate.tracking.models import (
    ConfidenceLevel,
    DailyObservation,
    Estimate,
    EstimateSource,
    ExpenditureBreakdown,
)

START = date(2025, 1, 1)


def make_series(
    weights: Sequence[float],
    calories: Sequence[float] | float,
    start: date = START,
    steps: Optional[Sequence[float]] = None,
    workouts: Optional[Sequence[float]] = None,
) -> list[DailyObservation]:
    """Build consecutive daily observations."""
    if isinstance(calories, (int, float)):
        calories = [float(calories)] * len(weights)
    return [
        DailyObservation(
            date=start + timedelta(days=i),
            weight=weight,
            calories=calories[i],
            net_steps=steps[i] if steps is not None else None,
            workout_calories=workouts[i] if workouts is not None else None,
        )
        for i, weight in enumerate(weights)
    ]


def make_estimate(
    base_rate: float = 14.0,
    estimated_tdee: int = 2500,
    confidence: ConfidenceLevel = ConfidenceLevel.STABLE,
    data_points_used: int = 21,
    standard_error: float = 0.1,
    step_rate: float = 0.04,
    workout_multiplier: float = 1.0,
    breakdown: Optional[ExpenditureBreakdown] = None,
    average_steps: float = 0.0,
) -> Estimate:
    """Build an Estimate without running the pipeline."""
    return Estimate(
        base_rate=base_rate,
        estimated_tdee=estimated_tdee,
        confidence=confidence,
        confidence_score=80,
        data_points_used=data_points_used,
        window_days=21,
        standard_error=standard_error,
        current_weight=180.0,
        as_of=START,
        source=EstimateSource.ACTIVITY_REGRESSION,
        step_rate=step_rate,
        workout_multiplier=workout_multiplier,
        breakdown=breakdown,
        average_steps=average_steps,
    )


@pytest.fixture
def linear_loss_series() -> list[DailyObservation]:
    """21 consecutive days, weight 200.0 -> 194.9, intake 2200, no activity."""
    return make_series([round(200.0 - 0.255 * i, 3) for i in range(21)], 2200.0)


@pytest.fixture
def linear_as_of(linear_loss_series) -> date:
    """Last day of the linear series."""
    return linear_loss_series[-1].date


@pytest.fixture
def activity_series() -> list[DailyObservation]:
    """28 days simulated from burn rate 14, 0.05 kcal/step and full workout credit."""
    weights = [185.0]
    calories = [2600.0 + 150.0 * ((i * 7) % 5) - 300.0 * (i % 2) for i in range(28)]
    steps = [6000.0 + 1000.0 * ((i * 3) % 7) for i in range(28)]
    workouts = [250.0 if i % 3 == 0 else 0.0 for i in range(28)]
    for i in range(27):
        expenditure = 14.0 * weights[i] + 0.05 * steps[i] + 1.0 * workouts[i]
        weights.append(round(weights[i] + (calories[i] - expenditure) / 3500.0, 4))
    return make_series(weights, calories, steps=steps, workouts=workouts)


@pytest.fixture
def write_csv(tmp_path):
    """Write observations to a CSV file and return its path."""

    def _write(observations: Sequence[DailyObservation], name: str = "log.csv") -> Path:
        path = tmp_path / name
        lines = ["date,weight,calories,is_complete,net_steps,workout_calories"]
        for obs in observations:
            steps = "" if obs.net_steps is None else f"{obs.net_steps:g}"
            workout = "" if obs.workout_calories is None else f"{obs.workout_calories:g}"
            lines.append(
                f"{obs.date.isoformat()},{obs.weight},{obs.calories:g},"
                f"{str(obs.is_complete).lower()},{steps},{workout}"
            )
        path.write_text("\n".join(lines) + "\n")
        return path

    return _write
