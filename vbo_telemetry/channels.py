"""
Channel Resolution for VBO Telemetry

Column names in VBO files are not standardised: the same channel can appear
as a human-readable header name ("vertical velocity m/s"), an abbreviated
column token ("vert-vel", "vertvel"), or a logger-specific name
("Vertical_Velocity"). This module maps any of them onto Sample field names.

Lookups go through canonical_column_key(), which lower-cases the name, drops
a trailing unit token, and removes separators. The built-in table is a
read-only constant; caller overrides are merged into a new dict at parse time.
"""

import re
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence

from .models import SAMPLE_FIELDS

# Trailing tokens treated as units, e.g. "velocity kmh", "height m"
UNIT_SUFFIXES = frozenset({
    "kmh", "km/h", "kph", "mph", "m/s", "m/s2", "m/s^2", "ms", "m", "ft",
    "deg", "degrees", "s", "sec", "g", "bar", "psi", "rpm", "%", "c", "v",
    "(null)", "hz",
})

_SEPARATORS = re.compile(r"[\s_\-./]+")


def canonical_column_key(name: str) -> str:
    """
    Normalise a column or channel name for table lookup.

    Args:
        name: Column token or header channel name.

    Returns:
        Lower-case key with any trailing unit token and all separators removed,
        e.g. "Vertical velocity m/s" -> "verticalvelocity".
    """
    tokens = name.strip().lower().split()
    if len(tokens) > 1 and tokens[-1] in UNIT_SUFFIXES:
        tokens = tokens[:-1]
    return _SEPARATORS.sub("", "".join(tokens))


_ALIASES = {
    "satellites": ["sats", "satellites"],
    "time": ["time", "utc time"],
    "latitude": ["lat", "latitude"],
    "longitude": ["long", "lon", "lng", "longitude"],
    "velocity": ["velocity", "vel"],
    "heading": ["heading"],
    "height": ["height", "altitude"],
    "vertical_velocity": ["vert-vel", "vertvel", "vertical velocity"],
    "sample_period": ["Tsample", "sampleperiod", "sample period"],
    "solution_type": ["solution_type", "solution type"],
    "avi_file_index": ["avifileindex", "avi file index"],
    "avi_sync_time": ["avisynctime", "avitime", "avi time", "avi sync time"],
    "combo_acc": ["ComboAcc"],
    "tc_slip": ["TC_Slip"],
    "tc_gain": ["TC_Gain"],
    "pps_map": ["PPS_Map"],
    "eps_map": ["EPS_Map"],
    "eng_map": ["ENG_Map"],
    "driver_id": ["DriverID"],
    "ambient_temperature": ["Ambient_Temperature"],
    "car_on_jack": ["Car_On_Jack"],
    "headrest": ["Headrest"],
    "fuel_probe": ["Fuel_Probe"],
    "tc_active": ["TC_Active"],
    "lap_number": ["Lap_Number", "lap"],
    "lap_gain_loss": ["Lap_Gain_Loss"],
    "engine_speed": ["Engine_Speed", "rpm"],
    "steering_angle": ["Steering_Angle"],
    "brake_pressure_front": ["Brake_Pressure_Front"],
    "throttle_pedal": ["Throttle_Pedal"],
    "vehicle_speed": ["Vehicle_Speed"],
    "gear": ["Gear"],
    "combo_g": ["Combo_G"],
}


def _build_default_map() -> Mapping[str, str]:
    table: Dict[str, str] = {}
    for field_name in SAMPLE_FIELDS:
        table[canonical_column_key(field_name)] = field_name
        for alias in _ALIASES.get(field_name, []):
            table[canonical_column_key(alias)] = field_name
    return MappingProxyType(table)


DEFAULT_COLUMN_MAP = _build_default_map()


def build_column_lookup(custom_mappings: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Merge the built-in column table with caller overrides.

    Args:
        custom_mappings: Column name -> Sample field. Keys are canonicalised
            like built-in entries; these entries win on conflict.

    Returns:
        New dict keyed by canonical column key.
    """
    lookup = dict(DEFAULT_COLUMN_MAP)
    for column, field_name in (custom_mappings or {}).items():
        lookup[canonical_column_key(column)] = field_name
    return lookup


def resolve_column(column: str, lookup: Mapping[str, str]) -> Optional[str]:
    """Sample field for one column token, or None if the column is unknown."""
    return lookup.get(canonical_column_key(column))


def resolve_columns(columns: Sequence[str], lookup: Mapping[str, str]) -> List[Optional[str]]:
    """
    Resolve a whole column order at once.

    Args:
        columns: Column tokens in [data] row order.
        lookup: Table from build_column_lookup().

    Returns:
        List parallel to ``columns``; unknown columns resolve to None and are
        ignored by the decoder.
    """
    return [resolve_column(column, lookup) for column in columns]
