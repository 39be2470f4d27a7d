"""Tests for observation windowing and weight smoothing."""

from __future__ import annotations

import random
from datetime import date, timedelta

import pytest

from conftest import START, make_series

from burnrate.tracking.models import DailyObservation
from burnrate.tracking.preprocess import (
    filter_observations,
    is_usable,
    resolve_as_of,
    smooth_weights,
    smoothed_weight_at,
    sort_observations,
)


class TestFilterObservations:
    """Tests for trailing-window filtering."""

    def test_window_bounds_are_inclusive(self) -> None:
        """Days exactly window_days before as_of are kept."""
        obs = make_series([180.0] * 30, 2000.0)
        as_of = START + timedelta(days=29)
        kept = filter_observations(obs, 21, as_of=as_of)
        assert kept[0].date == as_of - timedelta(days=21)
        assert kept[-1].date == as_of
        assert len(kept) == 22

    def test_future_days_ignored(self) -> None:
        """Observations after as_of are dropped."""
        obs = make_series([180.0] * 10, 2000.0)
        kept = filter_observations(obs, 21, as_of=START + timedelta(days=4))
        assert [o.date for o in kept] == [START + timedelta(days=i) for i in range(5)]

    def test_incomplete_and_invalid_days_dropped(self) -> None:
        """Incomplete, zero-weight and zero-calorie days are removed."""
        obs = [
            DailyObservation(START, 180.0, 2000.0),
            DailyObservation(START + timedelta(days=1), 180.0, 2000.0, is_complete=False),
            DailyObservation(START + timedelta(days=2), 0.0, 2000.0),
            DailyObservation(START + timedelta(days=3), 180.0, 0.0),
        ]
        kept = filter_observations(obs, 21, as_of=START + timedelta(days=3))
        assert [o.date for o in kept] == [START]

    def test_incomplete_kept_when_not_excluded(self) -> None:
        """exclude_incomplete=False keeps partially logged days."""
        obs = DailyObservation(START, 180.0, 2000.0, is_complete=False)
        assert is_usable(obs, exclude_incomplete=False)
        assert not is_usable(obs, exclude_incomplete=True)

    def test_output_sorted_regardless_of_input_order(self) -> None:
        """Shuffled input produces chronological output."""
        obs = make_series([180.0 + i for i in range(15)], 2000.0)
        shuffled = obs[:]
        random.seed(7)
        random.shuffle(shuffled)
        as_of = START + timedelta(days=14)
        assert filter_observations(shuffled, 21, as_of=as_of) == obs

    def test_same_day_duplicates_order_is_stable(self) -> None:
        """Duplicates on one date sort by weight before calories."""
        a = DailyObservation(START, 181.0, 2000.0)
        b = DailyObservation(START, 180.0, 2100.0)
        assert sort_observations([a, b]) == sort_observations([b, a]) == [b, a]

    def test_duplicates_differing_only_in_activity(self) -> None:
        """Duplicates with equal weight and intake sort on the remaining fields."""
        plain = DailyObservation(START, 180.0, 2000.0)
        incomplete = DailyObservation(START, 180.0, 2000.0, is_complete=False)
        stepped = DailyObservation(START, 180.0, 2000.0, net_steps=8000.0)
        trained = DailyObservation(START, 180.0, 2000.0, net_steps=8000.0, workout_calories=300.0)
        expected = [incomplete, plain, stepped, trained]
        for seed in range(5):
            shuffled = expected[:]
            random.seed(seed)
            random.shuffle(shuffled)
            assert sort_observations(shuffled) == expected

    def test_resolve_as_of_prefers_explicit_date(self) -> None:
        """An explicit reference date is returned unchanged."""
        assert resolve_as_of(date(2020, 5, 1)) == date(2020, 5, 1)
        assert resolve_as_of(None) == date.today()


class TestSmoothing:
    """Tests for centered rolling-mean smoothing."""

    def test_three_day_window(self) -> None:
        """Edges average over the part of the window that exists."""
        obs = make_series([180.0, 181.0, 179.0], 2000.0)
        assert smooth_weights(obs) == pytest.approx([180.5, 180.0, 180.0])

    def test_window_of_one_returns_raw(self) -> None:
        """A one-day window leaves weights unchanged."""
        obs = make_series([180.0, 185.0, 175.0], 2000.0)
        assert smooth_weights(obs, window=1) == [180.0, 185.0, 175.0]

    def test_invalid_weights_skipped(self) -> None:
        """Zero weights inside the window are ignored."""
        obs = make_series([180.0, 0.0, 182.0], 2000.0)
        assert smoothed_weight_at(obs, 1) == pytest.approx(181.0)

    def test_all_invalid_falls_back_to_raw(self) -> None:
        """With nothing valid in the window the raw value is returned."""
        obs = make_series([0.0], 2000.0)
        assert smoothed_weight_at(obs, 0) == 0.0

    def test_constant_series_unchanged(self) -> None:
        """Smoothing a flat series is a no-op."""
        obs = make_series([180.0] * 7, 2000.0)
        assert smooth_weights(obs, window=5) == pytest.approx([180.0] * 7)
