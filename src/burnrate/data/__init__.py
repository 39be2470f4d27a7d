"""Data loading for logged observations."""

from burnrate.data.observation_loader import ObservationLoader, load_observations

__all__ = ["ObservationLoader", "load_observations"]
