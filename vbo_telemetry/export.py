"""
Export Functions for VBO Telemetry

This module provides tabular views of sessions as pandas DataFrames and
CSV text of a single lap, for external analysis. Nothing is written to disk;
callers decide where the text goes.
"""

import pandas as pd

from .models import Session
from .time_series import samples_frame

LAP_COLUMNS = [
    "lap_number",
    "start_time",
    "end_time",
    "lap_time",
    "distance",
    "sample_count",
    "is_valid",
    "label",
    "fastest_sector",
]


def samples_to_frame(session: Session) -> pd.DataFrame:
    """
    All normalized samples of a session, one row per sample.

    Args:
        session: Parsed session.

    Returns:
        DataFrame with one column per Sample field.
    """
    return samples_frame(session.data_points)


def laps_to_frame(session: Session) -> pd.DataFrame:
    """
    One row per lap, with its sector times as ``sector_<n>_time`` columns.
    """
    rows = []
    for lap in session.laps:
        row = {
            "lap_number": lap.lap_number,
            "start_time": lap.start_time,
            "end_time": lap.end_time,
            "lap_time": lap.lap_time,
            "distance": lap.distance,
            "sample_count": len(lap.data_points),
            "is_valid": lap.is_valid,
            "label": lap.label.value,
            "fastest_sector": lap.fastest_sector,
        }
        for sector in lap.sectors:
            row[f"sector_{sector.sector_number}_time"] = sector.sector_time
        rows.append(row)

    if not rows:
        return pd.DataFrame(columns=LAP_COLUMNS)
    return pd.DataFrame(rows)


def export_lap_csv(session: Session, lap_number: int) -> str:
    """
    Export a single lap's samples to CSV format.

    Adds ``lap_elapsed_s`` (time since the lap started) ahead of the sample
    columns.

    Args:
        session: Parsed session with laps.
        lap_number: Lap number to export.

    Returns:
        CSV string with a header row and one row per lap sample.

    Raises:
        ValueError: If lap_number is not found.
    """
    lap = next((lap for lap in session.laps if lap.lap_number == lap_number), None)
    if lap is None:
        raise ValueError(f"Lap {lap_number} not found in session {session.file_path}")

    df = samples_frame(lap.data_points)
    df.insert(0, "lap_elapsed_s", df["time"] - lap.start_time)
    return df.to_csv(index=False)
