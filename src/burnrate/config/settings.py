"""Application settings and configuration management."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml


# Calories per lb of body weight (fat tissue)
DEFAULT_ENERGY_PER_UNIT = 3500.0


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".burnrate"


class IntakeThresholdPolicy(Enum):
    """How the SD-based and percentile-based intake thresholds combine."""

    LOWER = "lower"    # min(): flags more days
    HIGHER = "higher"  # max(): flags only clearly unusual days


class FitSolver(Enum):
    """Solver for the burn rate + steps + workout model."""

    LSTSQ = "lstsq"        # Closed-form least squares, clamped once
    BOUNDED = "bounded"    # scipy.optimize.lsq_linear with bounds
    GRADIENT = "gradient"  # Projected gradient descent


@dataclass
class BoundsConfig:
    """Physiologically plausible coefficient bounds."""

    base_rate_min: float = 11.0   # kcal per lb (sedentary)
    base_rate_max: float = 18.0   # kcal per lb (very active)
    step_rate_min: float = 0.02   # kcal per step
    step_rate_max: float = 0.08
    workout_multiplier_min: float = 0.5
    workout_multiplier_max: float = 1.5

    def __post_init__(self) -> None:
        for name in ("base_rate", "step_rate", "workout_multiplier"):
            low = getattr(self, f"{name}_min")
            high = getattr(self, f"{name}_max")
            if low >= high:
                raise ValueError(f"{name}_min ({low}) must be below {name}_max ({high})")

    def clamp_base_rate(self, value: float) -> float:
        return min(max(value, self.base_rate_min), self.base_rate_max)

    def clamp_step_rate(self, value: float) -> float:
        return min(max(value, self.step_rate_min), self.step_rate_max)

    def clamp_workout_multiplier(self, value: float) -> float:
        return min(max(value, self.workout_multiplier_min), self.workout_multiplier_max)

    def lower(self) -> list[float]:
        """Lower bounds in (base, step, workout) order."""
        return [self.base_rate_min, self.step_rate_min, self.workout_multiplier_min]

    def upper(self) -> list[float]:
        """Upper bounds in (base, step, workout) order."""
        return [self.base_rate_max, self.step_rate_max, self.workout_multiplier_max]


@dataclass
class FitterConfig:
    """Regression solver configuration."""

    solver: FitSolver = FitSolver.LSTSQ
    energy_per_unit: float = DEFAULT_ENERGY_PER_UNIT
    default_base_rate: float = 13.5  # Used when the regression is degenerate
    initial_step_rate: float = 0.04
    initial_workout_multiplier: float = 1.0
    learning_rate: float = 0.01
    iterations: int = 100
    min_pairs: int = 5
    residual_sd_floor: float = 0.1  # Below this, residual exclusion is skipped

    def __post_init__(self) -> None:
        if isinstance(self.solver, str):
            self.solver = FitSolver(self.solver)
        if self.energy_per_unit <= 0:
            raise ValueError(f"energy_per_unit must be positive, got {self.energy_per_unit}")
        if self.min_pairs < 1:
            raise ValueError(f"min_pairs must be at least 1, got {self.min_pairs}")


@dataclass
class IntakeOutlierConfig:
    """Low-intake (likely under-logged) day detection."""

    policy: IntakeThresholdPolicy = IntakeThresholdPolicy.LOWER
    sd_multiplier: float = 1.5
    percentile: float = 0.2
    absolute_floor: float = 500.0  # Below this a day is clearly incomplete
    min_samples: int = 3

    def __post_init__(self) -> None:
        if isinstance(self.policy, str):
            self.policy = IntakeThresholdPolicy(self.policy)
        if not 0.0 <= self.percentile < 1.0:
            raise ValueError(f"percentile must be in [0, 1), got {self.percentile}")


@dataclass
class ConfidenceConfig:
    """Thresholds for confidence level and score."""

    stable_max_error: float = 0.5
    stable_min_r_squared: float = 0.3
    stable_min_points: int = 18
    stabilizing_max_error: float = 1.0
    stabilizing_min_points: int = 14
    reference_points: int = 28       # Data half of the score saturates here
    error_penalty: float = 30.0      # Points lost per unit of standard error


@dataclass
class ForecastConfig:
    """Forward projection settings."""

    min_margin: float = 1.0         # Water-weight fluctuation floor (lbs)
    goal_band: float = 0.15         # +/- fraction of days for goal dates


@dataclass
class EstimatorConfig:
    """Options recognized by the estimation pipeline."""

    window_days: int = 21
    min_data_points: int = 14
    exclude_incomplete: bool = True
    smoothing_window: int = 3
    outlier_threshold: float = 2.0   # Residual z-score cutoff
    use_activity: bool = True        # Fit step/workout terms when data exists
    history_min_points: int = 7
    bounds: BoundsConfig = field(default_factory=BoundsConfig)
    fitter: FitterConfig = field(default_factory=FitterConfig)
    intake_outliers: IntakeOutlierConfig = field(default_factory=IntakeOutlierConfig)
    confidence: ConfidenceConfig = field(default_factory=ConfidenceConfig)
    forecast: ForecastConfig = field(default_factory=ForecastConfig)

    def __post_init__(self) -> None:
        if self.window_days < 1:
            raise ValueError(f"window_days must be at least 1, got {self.window_days}")
        if self.min_data_points < 0:
            raise ValueError(
                f"min_data_points must be non-negative, got {self.min_data_points}"
            )
        if self.outlier_threshold <= 0:
            raise ValueError(
                f"outlier_threshold must be positive, got {self.outlier_threshold}"
            )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"


@dataclass
class Settings:
    """Main application settings."""

    estimator: EstimatorConfig = field(default_factory=EstimatorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses ~/.burnrate/config.yaml

        Returns:
            Settings instance

        Raises:
            ValueError: If a value fails validation
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        settings = cls()

        # Parse estimator config (nested sections first)
        if "estimator" in data:
            est_data = dict(data["estimator"] or {})
            sections = {
                "bounds": BoundsConfig,
                "fitter": FitterConfig,
                "intake_outliers": IntakeOutlierConfig,
                "confidence": ConfidenceConfig,
                "forecast": ForecastConfig,
            }
            nested = {}
            for name, section_cls in sections.items():
                section_data = est_data.pop(name, None) or {}
                nested[name] = section_cls(**_known_fields(section_cls, section_data))
            settings.estimator = EstimatorConfig(
                **_known_fields(EstimatorConfig, est_data), **nested
            )

        # Parse logging config
        if "logging" in data:
            log_data = data["logging"] or {}
            if "level" in log_data:
                settings.logging.level = str(log_data["level"]).upper()

        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses ~/.burnrate/config.yaml
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        config_path.parent.mkdir(parents=True, exist_ok=True)

        est = self.estimator
        data = {
            "estimator": {
                "window_days": est.window_days,
                "min_data_points": est.min_data_points,
                "exclude_incomplete": est.exclude_incomplete,
                "smoothing_window": est.smoothing_window,
                "outlier_threshold": est.outlier_threshold,
                "use_activity": est.use_activity,
                "history_min_points": est.history_min_points,
                "bounds": _section_to_dict(est.bounds),
                "fitter": _section_to_dict(est.fitter),
                "intake_outliers": _section_to_dict(est.intake_outliers),
                "confidence": _section_to_dict(est.confidence),
                "forecast": _section_to_dict(est.forecast),
            },
            "logging": {
                "level": self.logging.level,
            },
        }

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def _known_fields(section_cls: type, data: dict) -> dict[str, Any]:
    """Keep only keys that are fields of ``section_cls``; unknown keys are ignored."""
    names = {f.name for f in fields(section_cls)}
    return {key: value for key, value in data.items() if key in names}


def _section_to_dict(section: Any) -> dict[str, Any]:
    """Flatten a config section to YAML-friendly values."""
    result = {}
    for f in fields(section):
        value = getattr(section, f.name)
        result[f.name] = value.value if isinstance(value, Enum) else value
    return result


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from disk if needed."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings(config_path: Optional[Path] = None) -> Settings:
    """Force reload settings from disk."""
    global _settings
    _settings = Settings.load(config_path)
    return _settings
