from datetime import datetime
from typing import List, Optional, Sequence

import pytest

from vbo_telemetry.lap_analysis import detect_laps
from vbo_telemetry.models import CircuitInfo, Header, Sample, Session


def make_sample(**fields) -> Sample:
    return Sample(**fields)


def make_track_samples(count: int, start_time: float = 0.0, dt: float = 1.0,
                       step_m: float = 10.0, lap_number: float = 0.0) -> List[Sample]:
    """Samples along a straight local-coordinate line, ``step_m`` metres apart."""
    return [
        Sample(
            time=start_time + i * dt,
            latitude=1000.0 + i * step_m,
            longitude=1000.0,
            velocity=50.0 + i,
            lap_number=lap_number,
        )
        for i in range(count)
    ]


def make_session(lap_sizes: Sequence[int], file_path: str = "test.vbo",
                 circuit: Optional[str] = None, dt: float = 1.0) -> Session:
    """Session with one lap per entry of ``lap_sizes``, numbered from 1."""
    samples: List[Sample] = []
    for lap_index, size in enumerate(lap_sizes):
        samples.extend(make_track_samples(
            size,
            start_time=len(samples) * dt,
            dt=dt,
            lap_number=lap_index + 1,
        ))
    laps = tuple(detect_laps(samples))
    return Session(
        file_path=file_path,
        header=Header(creation_date=datetime(2024, 3, 15), channels=(), units=()),
        data_points=tuple(samples),
        laps=laps,
        circuit_info=CircuitInfo(circuit=circuit),
    )


VBO_HEADER = """File created on 15/03/2024 @ 14:30:25

[header]
satellites
time
latitude
longitude
velocity kmh
heading
height
Lap_Number

[channel units]
-
s
deg
deg
kmh
deg
m

[comments]
Logging Rate, 10 Hz
VBOX 3i firmware version 2.5.1

[column names]
sats time lat long velocity heading height Lap_Number

[laptiming]
Start +00556.87900 +02737.20100 +00556.88000 +02737.10000 ¬ Start / Finish
Split +00557.12000 +02737.50000 +00557.13000 +02737.40000 ¬ Split 1

[circuit details]
country Italy
circuit Monza

[data]
"""

# Lap 1: 1 s spacing, 4 s long. Lap 2: 0.5 s spacing, 2 s long.
VBO_DATA_ROWS = [
    "008 143025.000 +45.62000 +009.28000 045.500 090.00 +00120.00 1",
    "008 143026.000 +45.62010 +009.28010 046.500 090.00 +00120.00 1",
    "008 143027.000 +45.62020 +009.28020 047.500 090.00 +00120.00 1",
    "008 143028.000 +45.62030 +009.28030 048.500 090.00 +00120.00 1",
    "008 143029.000 +45.62040 +009.28040 049.500 090.00 +00120.00 1",
    "009 143030.000 +45.62050 +009.28050 050.500 091.00 +00121.00 2",
    "009 143030.500 +45.62060 +009.28060 051.500 091.00 +00121.00 2",
    "009 143031.000 +45.62070 +009.28070 052.500 091.00 +00121.00 2",
    "009 143031.500 +45.62080 +009.28080 053.500 091.00 +00121.00 2",
    "009 143032.000 +45.62090 +009.28090 054.500 091.00 +00121.00 2",
]


def build_vbo(rows: Sequence[str] = VBO_DATA_ROWS, header: str = VBO_HEADER) -> str:
    return header + "\n".join(rows) + "\n"


MINIMAL_VBO = """[header]
time
latitude
longitude

[data]
0 600.0 -300.0
1 600.5 -300.5
2 601.0 -301.0
"""


@pytest.fixture
def vbo_text() -> str:
    return build_vbo()


@pytest.fixture
def two_lap_session() -> Session:
    return make_session([11, 11], file_path="main.vbo", circuit="Monza")
