"""
Data Model for VBO Telemetry Sessions

This module defines the immutable records produced by the parsing pipeline:
channels and header metadata, decoded samples, laps and sectors, circuit
information, and the session that owns them all.

Every record is a frozen dataclass. Collections are tuples, so a parsed
session cannot be changed after the fact. A lap's samples are the same
Sample objects the session holds, not copies.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


@dataclass(frozen=True)
class Channel:
    """One telemetry column declared in the [header] section."""

    name: str
    unit: str
    index: int


@dataclass(frozen=True)
class Header:
    """Header metadata of a VBO file."""

    creation_date: datetime
    channels: Tuple[Channel, ...]
    units: Tuple[str, ...]
    sample_rate: Optional[float] = None
    driver_id: Optional[str] = None
    vehicle: Optional[str] = None
    version: Optional[str] = None


@dataclass(frozen=True)
class Sample:
    """
    One timestamped vehicle-state record decoded from a [data] row.

    All fields are numeric and default to 0.0 when the file has no value for
    them. After normalization, ``time`` is seconds since the first sample and
    latitude/longitude are decimal degrees (or planar units for local
    coordinate files).
    """

    satellites: float = 0.0
    time: float = 0.0
    latitude: float = 0.0
    longitude: float = 0.0
    velocity: float = 0.0
    heading: float = 0.0
    height: float = 0.0
    vertical_velocity: float = 0.0
    sample_period: float = 0.0
    solution_type: float = 0.0
    avi_file_index: float = 0.0
    avi_sync_time: float = 0.0
    combo_acc: float = 0.0
    tc_slip: float = 0.0
    tc_gain: float = 0.0
    pps_map: float = 0.0
    eps_map: float = 0.0
    eng_map: float = 0.0
    driver_id: float = 0.0
    ambient_temperature: float = 0.0
    car_on_jack: float = 0.0
    headrest: float = 0.0
    fuel_probe: float = 0.0
    tc_active: float = 0.0
    lap_number: float = 0.0
    lap_gain_loss: float = 0.0
    engine_speed: float = 0.0
    steering_angle: float = 0.0
    brake_pressure_front: float = 0.0
    throttle_pedal: float = 0.0
    vehicle_speed: float = 0.0
    gear: float = 0.0
    combo_g: float = 0.0


# Field names in declaration order; also the column order of sample frames
SAMPLE_FIELDS: Tuple[str, ...] = tuple(f.name for f in fields(Sample))


class LapLabel(str, Enum):
    OFF_TRACK = "off-track"
    IN_LAP = "in-lap"
    OUT_LAP = "out-lap"
    TIMED_LAP = "timed-lap"


@dataclass(frozen=True)
class Sector:
    """A contiguous sub-range of one lap's samples."""

    sector_number: int
    start_time: float
    end_time: float
    sector_time: float
    start_distance: float
    end_distance: float


@dataclass(frozen=True)
class Lap:
    """One circuit of the course, as a run of samples with its sectors."""

    lap_number: int
    start_time: float
    end_time: float
    lap_time: float
    distance: float
    sectors: Tuple[Sector, ...]
    data_points: Tuple[Sample, ...] = field(repr=False)
    is_valid: bool = True
    fastest_sector: Optional[int] = None
    label: LapLabel = LapLabel.TIMED_LAP


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class TimingLine:
    """Start/finish or split line from the [laptiming] section."""

    type: str  # "Start" | "Split"
    start: GeoPoint
    end: GeoPoint
    name: str


@dataclass(frozen=True)
class CircuitInfo:
    country: Optional[str] = None
    circuit: Optional[str] = None
    timing_lines: Tuple[TimingLine, ...] = ()


@dataclass(frozen=True)
class VideoFile:
    """Video recording associated with a session by the caller."""

    filename: str
    index: int


@dataclass(frozen=True, eq=False)
class Session:
    """
    A parsed VBO file: header, normalized samples, and the laps over them.

    Sessions compare and hash by identity, so they can key per-session state
    in the synchronizer even when two files hold identical data.

    Attributes:
        file_path: Label of the source file (not read by this package).
        header: Parsed header metadata.
        data_points: Normalized samples in file order.
        laps: Laps over ``data_points``, ordered by start time.
        fastest_lap: Fastest valid lap, or None.
        total_time: Largest raw time value seen before normalization.
        track_length: Distance of the fastest lap in metres, or None.
        circuit_info: Circuit name, country, and timing lines.
        videos: Video files supplied by the caller.
        dropped_rows: Number of [data] rows that could not be decoded.
    """

    file_path: str
    header: Header
    data_points: Tuple[Sample, ...] = field(repr=False)
    laps: Tuple[Lap, ...] = field(default=(), repr=False)
    fastest_lap: Optional[Lap] = field(default=None, repr=False)
    total_time: float = 0.0
    track_length: Optional[float] = None
    circuit_info: CircuitInfo = field(default_factory=CircuitInfo)
    videos: Tuple[VideoFile, ...] = ()
    dropped_rows: int = 0
