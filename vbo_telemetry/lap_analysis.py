"""
Lap Analysis for VBO Telemetry

This module groups normalized samples into laps, splits each lap into
sectors, and answers the derived lap queries (fastest lap, average lap time,
best sector times, delta traces against the fastest lap).

Two lap strategies are used, chosen by what the file provides:

- Lap-number channel: if any sample has a positive lap number, samples are
  grouped by that number. Every lap is valid in this mode.
- Time-window fallback: with no lap numbers and at least 100 samples, the
  session is cut into equal-size chunks of roughly one assumed lap duration
  each. Chunks shorter than the minimum distance are dropped.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from . import constants
from . import metrics
from . import utils
from .config import LapDetectionOptions
from .models import Lap, LapLabel, Sample, Sector

logger = logging.getLogger(__name__)


def detect_laps(samples: Sequence[Sample], options: Optional[LapDetectionOptions] = None) -> List[Lap]:
    """
    Detect laps in a normalized sample sequence.

    Args:
        samples: Normalized samples in file order.
        options: Lap detection options. Defaults to LapDetectionOptions().

    Returns:
        Laps ordered by start time. Empty for empty input.
    """
    options = options or LapDetectionOptions()
    if not samples:
        return []

    if any(sample.lap_number > 0 for sample in samples):
        logger.debug("Detecting laps from lap number channel")
        return detect_from_lap_numbers(samples, options)

    logger.debug("No lap numbers present, using time-window lap detection")
    return detect_from_gps(samples, options)


def _build_lap(lap_number: int, points: Sequence[Sample], sector_count: int,
               start_time: float, end_time: float) -> Lap:
    distances = metrics.cumulative_distance(points)
    sectors = generate_sectors(points, sector_count, distances)
    return Lap(
        lap_number=lap_number,
        start_time=start_time,
        end_time=end_time,
        lap_time=end_time - start_time,
        distance=float(distances[-1]),
        sectors=tuple(sectors),
        data_points=tuple(points),
        is_valid=True,
        fastest_sector=fastest_sector_number(sectors),
        label=LapLabel.TIMED_LAP,
    )


def detect_from_lap_numbers(samples: Sequence[Sample], options: LapDetectionOptions) -> List[Lap]:
    """
    Group samples by their lap number channel.

    Samples with lap number 0 or below are not part of any lap. Within each
    group, samples keep file order; start and end time are the group's min
    and max time.

    Args:
        samples: Normalized samples.
        options: Lap detection options (only sector_count is used).

    Returns:
        One lap per distinct positive lap number, sorted by start time.
    """
    groups: Dict[float, List[Sample]] = {}
    for sample in samples:
        if sample.lap_number > 0:
            groups.setdefault(sample.lap_number, []).append(sample)

    laps = []
    for lap_number, points in groups.items():
        times = [point.time for point in points]
        laps.append(_build_lap(
            int(lap_number) if float(lap_number).is_integer() else lap_number,
            points,
            options.sector_count,
            start_time=min(times),
            end_time=max(times),
        ))

    return sorted(laps, key=lambda lap: lap.start_time)


def detect_from_gps(samples: Sequence[Sample], options: LapDetectionOptions) -> List[Lap]:
    """
    Cut the session into equal-size chunks of about one lap each.

    The number of chunks is the elapsed time divided by the assumed lap time
    (at least one). Neighbouring chunks share their boundary sample and the
    last chunk runs to the final sample.

    Args:
        samples: Normalized samples, at least FALLBACK_MIN_SAMPLES of them.
        options: Lap detection options.

    Returns:
        Laps whose distance reaches ``options.min_distance``, numbered by
        chunk position (so numbers can have gaps). Empty for short sessions.
    """
    n = len(samples)
    if n < constants.FALLBACK_MIN_SAMPLES:
        return []

    total_time = samples[-1].time - samples[0].time
    estimated_laps = max(1, math.floor(total_time / options.assumed_lap_time))
    points_per_lap = n // estimated_laps

    laps = []
    for i in range(estimated_laps):
        start_index = i * points_per_lap
        end_index = n - 1 if i == estimated_laps - 1 else (i + 1) * points_per_lap
        points = samples[start_index:end_index + 1]

        lap = _build_lap(i + 1, points, options.sector_count,
                         start_time=points[0].time, end_time=points[-1].time)
        if lap.distance >= options.min_distance:
            laps.append(lap)
        else:
            logger.debug(f"Dropping chunk {i + 1}: {lap.distance:.1f} m below minimum distance")

    return laps


def generate_sectors(points: Sequence[Sample], sector_count: int,
                     distances: Optional[np.ndarray] = None) -> List[Sector]:
    """
    Split a lap's samples into equal-size sectors.

    The last sector absorbs the remainder. When there are more sectors than
    samples, only the sectors that still have samples are produced.

    Args:
        points: Samples of one lap.
        sector_count: Number of sectors; 0 or below gives no sectors.
        distances: Cumulative distance per sample, if already computed.

    Returns:
        Sectors numbered from 1.
    """
    n = len(points)
    if n == 0 or sector_count <= 0:
        return []

    if distances is None:
        distances = metrics.cumulative_distance(points)
    points_per_sector = max(1, n // sector_count)

    sectors = []
    for s in range(sector_count):
        start_index = s * points_per_sector
        end_index = n - 1 if s == sector_count - 1 else (s + 1) * points_per_sector - 1
        if start_index >= n or start_index > end_index:
            break

        start_time = points[start_index].time
        end_time = points[end_index].time
        sectors.append(Sector(
            sector_number=s + 1,
            start_time=start_time,
            end_time=end_time,
            sector_time=end_time - start_time,
            start_distance=float(distances[start_index]),
            end_distance=float(distances[end_index]),
        ))

    return sectors


def fastest_sector_number(sectors: Sequence[Sector]) -> Optional[int]:
    if not sectors:
        return None
    return min(sectors, key=lambda sector: sector.sector_time).sector_number


def find_fastest_lap(laps: Sequence[Lap]) -> Optional[Lap]:
    """Valid lap with the smallest lap time (first on ties), or None."""
    valid = [lap for lap in laps if lap.is_valid]
    if not valid:
        return None
    return min(valid, key=lambda lap: lap.lap_time)


def calculate_average_lap_time(laps: Sequence[Lap]) -> float:
    """Mean lap time over valid laps, 0.0 if there are none."""
    valid = [lap.lap_time for lap in laps if lap.is_valid]
    if not valid:
        return 0.0
    return float(np.mean(valid))


def find_best_sector_times(laps: Sequence[Lap]) -> Dict[int, float]:
    """
    Best time for each sector number across all valid laps.

    Args:
        laps: Laps with sectors.

    Returns:
        Dictionary mapping sector number to the smallest sector time.
    """
    best: Dict[int, float] = {}
    for lap in laps:
        if not lap.is_valid:
            continue
        for sector in lap.sectors:
            current = best.get(sector.sector_number)
            if current is None or sector.sector_time < current:
                best[sector.sector_number] = sector.sector_time
    return best


def build_lap_delta_traces(laps: Sequence[Lap]) -> List[Dict]:
    """
    Build time delta traces comparing each lap to the fastest lap.

    For each valid lap, computes the time difference at each distance point
    compared to the reference (fastest valid) lap. The reference lap's
    elapsed time is interpolated at the other lap's distance into the lap.

    Args:
        laps: Detected laps.

    Returns:
        List of delta trace dictionaries, each containing lap_number,
        reference_lap, trace (list of {distance_m, time_delta_s}),
        lap_time_s, and reference_time_s. Empty with fewer than two valid laps.
    """
    valid_laps = [lap for lap in laps if lap.is_valid]
    if len(valid_laps) < 2:
        return []

    reference = find_fastest_lap(valid_laps)
    if len(reference.data_points) < 2:
        return []

    ref_dist = metrics.cumulative_distance(reference.data_points)
    ref_time = np.array([s.time for s in reference.data_points], dtype=float) - reference.start_time

    deltas = []

    for lap in valid_laps:
        if lap is reference:
            continue

        lap_dist = metrics.cumulative_distance(lap.data_points)
        lap_elapsed = np.array([s.time for s in lap.data_points], dtype=float) - lap.start_time

        # Interpolate reference time at each distance
        ref_time_at_distance = np.interp(
            lap_dist,
            ref_dist,
            ref_time,
            left=ref_time[0],
            right=ref_time[-1],
        )

        trace = [
            {
                "distance_m": utils.round_float(float(distance), 2),
                "time_delta_s": utils.round_float(float(elapsed - ref_elapsed), 3),
            }
            for distance, elapsed, ref_elapsed in zip(lap_dist, lap_elapsed, ref_time_at_distance)
        ]

        if trace:
            deltas.append({
                "lap_number": lap.lap_number,
                "reference_lap": reference.lap_number,
                "trace": trace,
                "lap_time_s": utils.round_float(lap.lap_time),
                "reference_time_s": utils.round_float(reference.lap_time),
            })

    return deltas
