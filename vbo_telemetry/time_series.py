"""
Sample Decoding and Normalization for VBO Telemetry

This module turns [data] rows into Sample records and post-processes the full
sample array: timestamps are re-based to session-relative seconds and
coordinates are converted to decimal degrees once the coordinate system of
the whole file is known.

Decoding is a fold over rows. decode_row() returns None for a row that cannot
be placed on the time axis; decode_data_section() counts those rows instead
of raising, so one bad line never aborts a parse.
"""

import logging
import math
from dataclasses import astuple, dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from . import utils
from .channels import resolve_columns
from .coordinates import DEFAULT_POLICY, CoordinatePolicy, convert_array, detect_coordinate_system
from .models import SAMPLE_FIELDS, Sample

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodeResult:
    samples: Tuple[Sample, ...]
    dropped_rows: int = 0


def parse_vbo_time(token: Optional[str]) -> Optional[float]:
    """
    Decode a VBO time token to seconds.

    Tokens are packed time of day, HHMMSS.fff. Values whose hour, minute or
    second part is out of range are taken to be elapsed seconds already and
    returned unchanged.

    Args:
        token: Raw time token.

    Returns:
        Seconds (since midnight for packed values), or None for a null or
        unparseable token. Non-finite tokens (inf, nan) are returned as-is
        so the caller can reject the row.

    Example:
        >>> parse_vbo_time("143025.50")
        52225.5
        >>> parse_vbo_time("90")
        90.0
    """
    value = utils.parse_number(token)
    if value is None or not math.isfinite(value):
        return value

    hours = math.floor(value / 10000)
    minutes = math.floor((value % 10000) / 100)
    seconds = value % 100

    if hours < 0 or hours > 23 or minutes < 0 or minutes > 59 or seconds < 0 or seconds >= 60:
        return value

    return hours * 3600 + minutes * 60 + seconds


def decode_row(values: Sequence[str], fields: Sequence[Optional[str]]) -> Optional[Sample]:
    """
    Decode one [data] row into a Sample.

    Args:
        values: Whitespace-separated tokens of the row.
        fields: Sample field per column position (None for unknown columns),
            from channels.resolve_columns().

    Returns:
        Sample with every unmapped or null field left at 0.0, or None when
        the time token is not a finite number.
    """
    decoded: Dict[str, float] = {}

    for token, field_name in zip(values, fields):
        if field_name is None:
            continue
        if field_name == "time":
            value = parse_vbo_time(token)
            if value is not None and not math.isfinite(value):
                return None
        else:
            value = utils.parse_numeric(token)
        if value is not None:
            decoded[field_name] = value

    return Sample(**decoded)


def decode_data_section(
    data_lines: Sequence[str],
    columns: Sequence[str],
    lookup: Dict[str, str],
    max_data_points: Optional[int] = None,
) -> DecodeResult:
    """
    Decode every row of the [data] section.

    Args:
        data_lines: Body of [data] from data_loading.scan_sections().
        columns: Column tokens in row order.
        lookup: Canonical column key -> Sample field.
        max_data_points: Stop once this many samples are decoded. None for
            no limit; 0 yields no samples.

    Returns:
        DecodeResult with the decoded samples in file order and the number of
        rows that were dropped.
    """
    fields = resolve_columns(columns, lookup)
    unknown = [column for column, field_name in zip(columns, fields) if field_name is None]
    if unknown:
        logger.debug(f"Ignoring unmapped columns: {', '.join(unknown)}")

    samples: List[Sample] = []
    dropped = 0

    for row_number, line in enumerate(data_lines, start=1):
        if max_data_points is not None and len(samples) >= max_data_points:
            break
        sample = decode_row(line.split(), fields)
        if sample is None:
            dropped += 1
            logger.warning(f"Dropping [data] row {row_number}: time is not a finite number")
            continue
        samples.append(sample)

    return DecodeResult(samples=tuple(samples), dropped_rows=dropped)


def raw_total_time(samples: Sequence[Sample]) -> float:
    """Largest raw time value, floored at 0. Must be read before normalize_samples()."""
    if not samples:
        return 0.0
    return max(0.0, max(sample.time for sample in samples))


def samples_frame(samples: Sequence[Sample]) -> pd.DataFrame:
    """One row per sample, one column per Sample field."""
    return pd.DataFrame.from_records(
        [astuple(sample) for sample in samples],
        columns=list(SAMPLE_FIELDS),
    )


def normalize_samples(
    samples: Sequence[Sample],
    policy: CoordinatePolicy = DEFAULT_POLICY,
) -> Tuple[Sample, ...]:
    """
    Re-base time and convert coordinates for a whole session.

    The smallest time value is subtracted from every sample, so the earliest
    sample sits at 0. The coordinate system is detected once from the whole
    array and applied to every latitude and longitude; zero coordinates
    (no GPS fix) are left as they are.

    Args:
        samples: Decoded samples in file order.
        policy: Coordinate detection thresholds.

    Returns:
        New samples, in the same order.
    """
    if not samples:
        return ()

    df = samples_frame(samples)
    df["time"] = df["time"] - df["time"].min()

    pairs = list(zip(df["latitude"].to_numpy(), df["longitude"].to_numpy()))
    system = detect_coordinate_system(pairs, policy)
    logger.debug(f"Detected coordinate system: {system.value}")

    df["latitude"] = convert_array(df["latitude"].to_numpy(dtype=np.float64), system)
    df["longitude"] = convert_array(df["longitude"].to_numpy(dtype=np.float64), system)

    return tuple(Sample(*map(float, row)) for row in df.itertuples(index=False, name=None))
