"""
Caller-Supplied Options for VBO Telemetry Processing

The package never reads configuration from disk or the environment. Callers
build these dataclasses and hand them to the parser, the lap detector, and
the session comparison.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from . import constants
from .coordinates import DEFAULT_POLICY, CoordinatePolicy
from .models import SAMPLE_FIELDS


@dataclass(frozen=True)
class LapDetectionOptions:
    min_distance: float = constants.DEFAULT_MIN_DISTANCE_M  # fallback mode only
    sector_count: int = constants.DEFAULT_SECTOR_COUNT
    assumed_lap_time: float = constants.DEFAULT_ASSUMED_LAP_TIME_S

    def __post_init__(self):
        if self.assumed_lap_time <= 0:
            raise ValueError(f"assumed_lap_time must be positive, got {self.assumed_lap_time}")


@dataclass(frozen=True)
class ParserOptions:
    """
    Options for VBOParser.

    Attributes:
        calculate_laps: Run lap detection on the parsed samples.
        custom_column_mappings: Column token -> Sample field overrides. These
            win over the built-in column table.
        max_data_points: Stop decoding [data] after this many samples.
        lap_detection: Options passed to the lap detector.
        coordinate_policy: Thresholds for coordinate system detection.
    """

    calculate_laps: bool = True
    custom_column_mappings: Dict[str, str] = field(default_factory=dict)
    max_data_points: Optional[int] = None
    lap_detection: LapDetectionOptions = field(default_factory=LapDetectionOptions)
    coordinate_policy: CoordinatePolicy = DEFAULT_POLICY

    def __post_init__(self):
        for column, target in self.custom_column_mappings.items():
            if target not in SAMPLE_FIELDS:
                raise ValueError(f"Unknown sample field {target!r} for column {column!r}")
        if self.max_data_points is not None and self.max_data_points < 0:
            raise ValueError(f"max_data_points must be >= 0, got {self.max_data_points}")


@dataclass(frozen=True)
class ComparisonOptions:
    allow_different_tracks: bool = False
    progress_tolerance: float = constants.DEFAULT_PROGRESS_TOLERANCE

    def __post_init__(self):
        if not 0.0 <= self.progress_tolerance <= 1.0:
            raise ValueError(f"progress_tolerance must be within [0, 1], got {self.progress_tolerance}")
