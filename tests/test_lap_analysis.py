import pytest

from conftest import make_track_samples
from vbo_telemetry import lap_analysis
from vbo_telemetry.config import LapDetectionOptions
from vbo_telemetry.models import Lap, LapLabel, Sample, Sector


def make_lap(lap_number, lap_time, is_valid=True, sector_times=()):
    sectors = tuple(
        Sector(sector_number=i + 1, start_time=0.0, end_time=t, sector_time=t,
               start_distance=0.0, end_distance=0.0)
        for i, t in enumerate(sector_times)
    )
    return Lap(
        lap_number=lap_number,
        start_time=0.0,
        end_time=lap_time,
        lap_time=lap_time,
        distance=0.0,
        sectors=sectors,
        data_points=(Sample(),),
        is_valid=is_valid,
    )


def test_detect_laps_empty():
    assert lap_analysis.detect_laps([]) == []


def test_detect_from_lap_numbers_groups_two_laps():
    """Test grouping ten samples into two laps by lap number"""
    samples = [
        Sample(time=float(t), lap_number=float(n))
        for t, n in zip(range(0, 100, 10), [1, 1, 1, 1, 1, 2, 2, 2, 2, 2])
    ]
    laps = lap_analysis.detect_laps(samples)

    assert len(laps) == 2
    assert [(lap.start_time, lap.end_time) for lap in laps] == [(0.0, 40.0), (50.0, 90.0)]
    assert [lap.lap_time for lap in laps] == [40.0, 40.0]
    assert [lap.lap_number for lap in laps] == [1, 2]
    assert all(lap.is_valid and lap.label == LapLabel.TIMED_LAP for lap in laps)


def test_detect_from_lap_numbers_references_session_samples():
    """Test that laps hold the same sample objects, not copies"""
    samples = make_track_samples(5, lap_number=1.0)
    lap = lap_analysis.detect_laps(samples)[0]

    assert all(a is b for a, b in zip(lap.data_points, samples))


def test_detect_from_lap_numbers_sorted_by_start_time():
    """Test that laps are ordered by start time, not by lap number"""
    samples = [
        Sample(time=0.0, lap_number=2.0),
        Sample(time=1.0, lap_number=2.0),
        Sample(time=5.0, lap_number=1.0),
        Sample(time=6.0, lap_number=1.0),
    ]
    laps = lap_analysis.detect_laps(samples)

    assert [lap.lap_number for lap in laps] == [2, 1]


def test_detect_from_lap_numbers_ignores_zero_lap():
    """Test that samples outside any lap are not grouped"""
    samples = [Sample(time=0.0), Sample(time=1.0, lap_number=1.0), Sample(time=2.0, lap_number=1.0)]
    laps = lap_analysis.detect_laps(samples)

    assert len(laps) == 1
    assert len(laps[0].data_points) == 2
    assert laps[0].start_time == 1.0


def test_single_sample_lap_is_kept():
    """Test that degenerate laps still produce a lap"""
    laps = lap_analysis.detect_laps([Sample(time=3.0, lap_number=1.0)])

    assert len(laps) == 1
    assert laps[0].lap_time == 0.0
    assert laps[0].distance == 0.0


def test_lap_distance_is_cumulative():
    samples = make_track_samples(11, lap_number=1.0, step_m=10.0)
    lap = lap_analysis.detect_laps(samples)[0]

    assert lap.distance == pytest.approx(100.0)


def test_fallback_needs_enough_samples():
    """Test that short sessions without lap numbers give no laps"""
    assert lap_analysis.detect_laps(make_track_samples(99)) == []


def test_fallback_splits_by_assumed_lap_time():
    """Test that chunks share their boundary sample and last chunk runs to the end"""
    samples = make_track_samples(300, dt=1.0, step_m=10.0)
    laps = lap_analysis.detect_laps(samples)

    assert [lap.lap_number for lap in laps] == [1, 2]
    assert len(laps[0].data_points) == 151
    assert len(laps[1].data_points) == 150
    assert laps[0].end_time == laps[1].start_time == 150.0
    assert laps[1].end_time == 299.0
    assert laps[0].distance == pytest.approx(1500.0)
    assert laps[1].distance == pytest.approx(1490.0)


def test_fallback_drops_short_chunks():
    """Test that chunks under the minimum distance are dropped silently"""
    samples = make_track_samples(300, dt=1.0, step_m=10.0)
    laps = lap_analysis.detect_laps(samples, LapDetectionOptions(min_distance=1495.0))

    assert [lap.lap_number for lap in laps] == [1]


def test_generate_sectors_equal_chunks():
    samples = make_track_samples(9, step_m=10.0)
    sectors = lap_analysis.generate_sectors(samples, 3)

    assert [s.sector_number for s in sectors] == [1, 2, 3]
    assert [(s.start_time, s.end_time) for s in sectors] == [(0.0, 2.0), (3.0, 5.0), (6.0, 8.0)]
    assert [(s.start_distance, s.end_distance) for s in sectors] == [(0.0, 20.0), (30.0, 50.0), (60.0, 80.0)]
    assert [s.sector_time for s in sectors] == [2.0, 2.0, 2.0]


def test_generate_sectors_last_absorbs_remainder():
    sectors = lap_analysis.generate_sectors(make_track_samples(10), 3)

    assert (sectors[-1].start_time, sectors[-1].end_time) == (6.0, 9.0)


def test_generate_sectors_edge_counts():
    """Test non-positive counts and more sectors than samples"""
    samples = make_track_samples(2)

    assert lap_analysis.generate_sectors(samples, 0) == []
    assert lap_analysis.generate_sectors(samples, -1) == []
    assert len(lap_analysis.generate_sectors(samples, 5)) == 2
    assert lap_analysis.generate_sectors([], 3) == []


def test_lap_fastest_sector():
    """Test that each lap records its quickest sector"""
    samples = [Sample(time=t, lap_number=1.0) for t in [0.0, 5.0, 6.0, 7.0, 9.0, 20.0]]
    lap = lap_analysis.detect_laps(samples, LapDetectionOptions(sector_count=3))[0]

    assert [s.sector_time for s in lap.sectors] == [5.0, 1.0, 11.0]
    assert lap.fastest_sector == 2


def test_find_fastest_lap_skips_invalid():
    laps = [make_lap(1, 60.0), make_lap(2, 45.0), make_lap(3, 50.0, is_valid=False)]

    assert lap_analysis.find_fastest_lap(laps).lap_number == 2


def test_find_fastest_lap_none():
    assert lap_analysis.find_fastest_lap([]) is None
    assert lap_analysis.find_fastest_lap([make_lap(1, 30.0, is_valid=False)]) is None


def test_calculate_average_lap_time():
    laps = [make_lap(1, 60.0), make_lap(2, 45.0), make_lap(3, 10.0, is_valid=False)]

    assert lap_analysis.calculate_average_lap_time(laps) == pytest.approx(52.5)
    assert lap_analysis.calculate_average_lap_time([]) == 0.0


def test_find_best_sector_times():
    """Test per-sector minimum over valid laps, keeping zero times"""
    laps = [
        make_lap(1, 60.0, sector_times=(0.0, 25.0, 20.0)),
        make_lap(2, 55.0, sector_times=(10.0, 20.0, 25.0)),
        make_lap(3, 30.0, is_valid=False, sector_times=(1.0, 1.0, 1.0)),
    ]

    assert lap_analysis.find_best_sector_times(laps) == {1: 0.0, 2: 20.0, 3: 20.0}


def test_build_lap_delta_traces():
    """Test delta against the fastest lap along the same path"""
    fast = make_track_samples(11, start_time=0.0, dt=1.0, lap_number=1.0)
    slow = make_track_samples(11, start_time=20.0, dt=2.0, lap_number=2.0)
    laps = lap_analysis.detect_laps(fast + slow)

    traces = lap_analysis.build_lap_delta_traces(laps)

    assert len(traces) == 1
    trace = traces[0]
    assert trace["lap_number"] == 2
    assert trace["reference_lap"] == 1
    assert trace["lap_time_s"] == 20.0
    assert trace["reference_time_s"] == 10.0
    assert trace["trace"][0] == {"distance_m": 0.0, "time_delta_s": 0.0}
    assert trace["trace"][-1] == {"distance_m": 100.0, "time_delta_s": 10.0}


def test_build_lap_delta_traces_needs_two_laps():
    laps = lap_analysis.detect_laps(make_track_samples(11, lap_number=1.0))
    assert lap_analysis.build_lap_delta_traces(laps) == []
