"""
VBO Telemetry

Parse VBO motorsport data logger files into sessions of samples, laps and
sectors, and compare sessions on a shared progress axis.

Example:
    >>> from vbo_telemetry import parse_vbo, SessionComparison
    >>> main = parse_vbo(open("run01.vbo").read(), "run01.vbo")
    >>> other = parse_vbo(open("run05.vbo").read(), "run05.vbo")
    >>> comparison = SessionComparison(main, [other])
    >>> comparison.set_main_progress(0.5)
    >>> comparison.summary()
"""

import logging

from .comparison import (
    ClosestMatch,
    ComparatorSummary,
    ComparisonSummary,
    NormalizedPosition,
    SessionComparison,
    SessionState,
    SessionSummary,
    SynchronizedSamples,
)
from .config import ComparisonOptions, LapDetectionOptions, ParserOptions
from .coordinates import (
    CoordinatePolicy,
    CoordinateSystem,
    convert_coordinate,
    decimal_to_nmea,
    detect_coordinate_system,
    nmea_to_decimal,
    vbox_minutes_to_decimal,
)
from .errors import NavigationError, ParseError, SessionValidationError, VBOError
from .export import export_lap_csv, laps_to_frame, samples_to_frame
from .lap_analysis import (
    build_lap_delta_traces,
    calculate_average_lap_time,
    detect_laps,
    find_best_sector_times,
    find_fastest_lap,
    generate_sectors,
)
from .logging_config import setup_logging
from .metrics import calculate_distance
from .models import (
    Channel,
    CircuitInfo,
    GeoPoint,
    Header,
    Lap,
    LapLabel,
    Sample,
    Sector,
    Session,
    TimingLine,
    VideoFile,
)
from .session import VBOParser, parse_vbo, video_for_sample

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Channel",
    "CircuitInfo",
    "ClosestMatch",
    "ComparatorSummary",
    "ComparisonOptions",
    "ComparisonSummary",
    "CoordinatePolicy",
    "CoordinateSystem",
    "GeoPoint",
    "Header",
    "Lap",
    "LapDetectionOptions",
    "LapLabel",
    "NavigationError",
    "NormalizedPosition",
    "ParseError",
    "ParserOptions",
    "Sample",
    "Sector",
    "Session",
    "SessionComparison",
    "SessionState",
    "SessionSummary",
    "SessionValidationError",
    "SynchronizedSamples",
    "TimingLine",
    "VBOError",
    "VBOParser",
    "VideoFile",
    "build_lap_delta_traces",
    "calculate_average_lap_time",
    "calculate_distance",
    "convert_coordinate",
    "decimal_to_nmea",
    "detect_coordinate_system",
    "detect_laps",
    "export_lap_csv",
    "find_best_sector_times",
    "find_fastest_lap",
    "generate_sectors",
    "laps_to_frame",
    "nmea_to_decimal",
    "parse_vbo",
    "samples_to_frame",
    "setup_logging",
    "vbox_minutes_to_decimal",
    "video_for_sample",
]
