"""
Constants for VBO Telemetry Processing

This module defines the section names, tokens, and heuristic thresholds used
throughout the parsing, lap detection, and comparison pipeline. The numeric
thresholds are heuristics; changing any of them changes how existing files
are interpreted.
"""

# Section headers (compared lower-case, without surrounding whitespace)
SECTION_HEADER = "[header]"
SECTION_CHANNEL_UNITS = "[channel units]"
SECTION_COLUMN_NAMES = "[column names]"
SECTION_DATA = "[data]"
SECTION_COMMENTS = "[comments]"
SECTION_LAP_TIMING = "[laptiming]"
SECTION_CIRCUIT_DETAILS = "[circuit details]"

CREATION_DATE_PREFIX = "File created on"
DEFAULT_FILE_PATH = "unknown.vbo"

# Tokens that decode to "no value"
NULL_TOKENS = frozenset({"", "(null)", "null"})

# Earth radius used by the Haversine formula
EARTH_RADIUS_M = 6371000.0

# Any coordinate above this magnitude is treated as planar track metres
PLANAR_DISTANCE_THRESHOLD = 200.0

# Coordinate system detection policy (v1)
COORD_LOCAL_THRESHOLD = 1000.0
COORD_MINUTES_LOWER = 100.0
COORD_MINUTES_UPPER = 1000.0
COORD_NMEA_LOWER = 1000.0
COORD_SAMPLE_SIZE = 100
MAX_LATITUDE_DEG = 90.0
MAX_LONGITUDE_DEG = 180.0

# Lap detection defaults
DEFAULT_MIN_DISTANCE_M = 1000.0
DEFAULT_SECTOR_COUNT = 3
DEFAULT_ASSUMED_LAP_TIME_S = 120.0
FALLBACK_MIN_SAMPLES = 100

# Session comparison defaults
DEFAULT_PROGRESS_TOLERANCE = 0.01
EXACT_MATCH_EPSILON = 1e-4
