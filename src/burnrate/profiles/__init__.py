"""Body metrics and formula-based TDEE."""
