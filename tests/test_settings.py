"""Tests for YAML-backed settings."""

from __future__ import annotations

import pytest

from burnrate.config.settings import (
    BoundsConfig,
    EstimatorConfig,
    FitSolver,
    IntakeThresholdPolicy,
    Settings,
    reload_settings,
)


class TestSettingsLoad:
    """Tests for Settings.load and save."""

    def test_missing_file_gives_defaults(self, tmp_path) -> None:
        """A missing config file is not an error."""
        settings = Settings.load(tmp_path / "absent.yaml")
        assert settings.estimator.window_days == 21
        assert settings.estimator.min_data_points == 14
        assert settings.estimator.fitter.solver is FitSolver.LSTSQ
        assert settings.logging.level == "WARNING"

    def test_nested_overrides(self, tmp_path) -> None:
        """Nested sections override only the keys they name."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "estimator:\n"
            "  window_days: 28\n"
            "  bounds:\n"
            "    base_rate_max: 20.0\n"
            "  fitter:\n"
            "    solver: bounded\n"
            "  intake_outliers:\n"
            "    policy: higher\n"
            "  unknown_key: 1\n"
            "logging:\n"
            "  level: debug\n"
        )
        settings = Settings.load(path)
        assert settings.estimator.window_days == 28
        assert settings.estimator.min_data_points == 14
        assert settings.estimator.bounds.base_rate_max == 20.0
        assert settings.estimator.bounds.base_rate_min == 11.0
        assert settings.estimator.fitter.solver is FitSolver.BOUNDED
        assert settings.estimator.intake_outliers.policy is IntakeThresholdPolicy.HIGHER
        assert settings.logging.level == "DEBUG"

    def test_empty_file(self, tmp_path) -> None:
        """An empty YAML file gives defaults."""
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert Settings.load(path).estimator.window_days == 21

    def test_save_then_load(self, tmp_path) -> None:
        """Saved settings load back unchanged."""
        path = tmp_path / "nested" / "config.yaml"
        settings = Settings()
        settings.estimator.window_days = 35
        settings.estimator.fitter.solver = FitSolver.GRADIENT
        settings.save(path)
        loaded = Settings.load(path)
        assert loaded.estimator == settings.estimator

    def test_reload_settings(self, tmp_path) -> None:
        """reload_settings replaces the global instance."""
        path = tmp_path / "config.yaml"
        path.write_text("estimator:\n  min_data_points: 10\n")
        assert reload_settings(path).estimator.min_data_points == 10


class TestValidation:
    """Tests for __post_init__ validation."""

    def test_inverted_bounds(self) -> None:
        """min must be below max."""
        with pytest.raises(ValueError, match="base_rate_min"):
            BoundsConfig(base_rate_min=20.0, base_rate_max=15.0)

    def test_bad_window(self) -> None:
        """Window must be at least one day."""
        with pytest.raises(ValueError):
            EstimatorConfig(window_days=0)

    def test_bad_threshold(self) -> None:
        """Residual threshold must be positive."""
        with pytest.raises(ValueError):
            EstimatorConfig(outlier_threshold=0.0)

    def test_invalid_yaml_value(self, tmp_path) -> None:
        """Invalid values in the file raise ValueError."""
        path = tmp_path / "config.yaml"
        path.write_text("estimator:\n  fitter:\n    solver: simplex\n")
        with pytest.raises(ValueError):
            Settings.load(path)

    def test_clamp_helpers(self) -> None:
        """Clamp helpers respect both ends."""
        bounds = BoundsConfig()
        assert bounds.clamp_base_rate(5.0) == 11.0
        assert bounds.clamp_base_rate(25.0) == 18.0
        assert bounds.clamp_step_rate(0.05) == 0.05
        assert bounds.lower() == [11.0, 0.02, 0.5]
        assert bounds.upper() == [18.0, 0.08, 1.5]
