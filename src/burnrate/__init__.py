"""Adaptive TDEE estimation from logged weight, intake and activity."""

__version__ = "0.1.0"
