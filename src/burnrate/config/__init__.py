"""Configuration for the estimation engine and CLI."""

from burnrate.config.settings import (
    BoundsConfig,
    ConfidenceConfig,
    EstimatorConfig,
    FitSolver,
    FitterConfig,
    ForecastConfig,
    IntakeOutlierConfig,
    IntakeThresholdPolicy,
    Settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "BoundsConfig",
    "ConfidenceConfig",
    "EstimatorConfig",
    "FitSolver",
    "FitterConfig",
    "ForecastConfig",
    "IntakeOutlierConfig",
    "IntakeThresholdPolicy",
    "Settings",
    "get_settings",
    "reload_settings",
]
