"""Load and validate daily observations from CSV files."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd

from burnrate.tracking.models import DailyObservation

_TRUE_STRINGS = {"true", "t", "yes", "y", "1", "1.0"}
_FALSE_STRINGS = {"false", "f", "no", "n", "0", "0.0"}


class ObservationLoader:
    """Handles importing daily observations from CSV files."""

    REQUIRED_COLUMNS = ["date", "weight", "calories"]
    OPTIONAL_COLUMNS = ["is_complete", "net_steps", "workout_calories"]

    def __init__(self) -> None:
        self.skipped_rows = 0

    def load_from_csv(self, csv_path: Path) -> list[DailyObservation]:
        """Load observations from a CSV file.

        CSV format:
            date,weight,calories,is_complete,net_steps,workout_calories
            2025-01-15,182.4,2150,true,8400,250

        Rows with a missing date, weight or calories are skipped and
        counted in ``skipped_rows``. Missing optional values fall back to
        complete / no activity.

        Args:
            csv_path: Path to the CSV file

        Returns:
            Observations in file order

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If required columns are missing or a value is invalid
        """
        csv_path = Path(csv_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"Observation file not found: {csv_path}")

        df = pd.read_csv(csv_path, float_precision="round_trip")
        df.columns = [str(col).strip().lower() for col in df.columns]

        missing = set(self.REQUIRED_COLUMNS) - set(df.columns)
        if missing:
            raise ValueError(
                f"Missing required columns: {sorted(missing)}. "
                f"Required columns are: {self.REQUIRED_COLUMNS}"
            )

        df["date"] = pd.to_datetime(df["date"], errors="coerce")

        self.skipped_rows = 0
        observations = []
        for line, row in df.iterrows():
            if pd.isna(row["date"]) or pd.isna(row["weight"]) or pd.isna(row["calories"]):
                self.skipped_rows += 1
                continue

            try:
                observations.append(
                    DailyObservation(
                        date=row["date"].date(),
                        weight=float(row["weight"]),
                        calories=float(row["calories"]),
                        is_complete=_parse_bool(row.get("is_complete")),
                        net_steps=_optional_float(row.get("net_steps")),
                        workout_calories=_optional_float(row.get("workout_calories")),
                    )
                )
            except ValueError as e:
                raise ValueError(f"Row {line + 2}: {e}") from e

        return observations

    def export_template(self, output_path: Path) -> None:
        """Write an empty CSV with all recognized columns."""
        pd.DataFrame(columns=self.REQUIRED_COLUMNS + self.OPTIONAL_COLUMNS).to_csv(
            output_path, index=False
        )


def _optional_float(value: object) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def _parse_bool(value: object) -> bool:
    """Parse an is_complete cell; blanks mean complete."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return True
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS or text == "":
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"is_complete must be true/false, got '{value}'")


def load_observations(csv_path: Path) -> list[DailyObservation]:
    """Convenience wrapper around ``ObservationLoader.load_from_csv``."""
    return ObservationLoader().load_from_csv(csv_path)
