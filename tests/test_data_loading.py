import logging
from datetime import datetime

from vbo_telemetry import data_loading
from vbo_telemetry.models import Header


def test_split_lines_mixed_endings():
    """Test that \\n, \\r\\n and \\r all end a line"""
    assert data_loading.split_lines("a\r\nb\nc\rd") == ["a", "b", "c", "d"]


def test_scan_sections_groups_trimmed_lines():
    """Test that section bodies are trimmed, skip blanks and stop at the next header"""
    lines = ["preamble", "[Header]", "  time  ", "", "latitude", "[data]", "1 2", "   ", "3 4"]
    sections = data_loading.scan_sections(lines)

    assert sections == {"[header]": ["time", "latitude"], "[data]": ["1 2", "3 4"]}


def test_scan_sections_keeps_first_duplicate(caplog):
    """Test that a repeated section is ignored with a warning"""
    lines = ["[data]", "1", "[data]", "2"]
    with caplog.at_level(logging.WARNING, logger="vbo_telemetry"):
        sections = data_loading.scan_sections(lines)

    assert sections["[data]"] == ["1"]
    assert "Duplicate section" in caplog.text


def test_parse_creation_date_formats():
    """Test the supported creation date forms"""
    assert data_loading.parse_creation_date(["File created on 15/03/2024 @ 14:30:25"]) == datetime(2024, 3, 15, 14, 30, 25)
    assert data_loading.parse_creation_date(["File created on 15/03/2024 at 09:05:01"]) == datetime(2024, 3, 15, 9, 5, 1)
    assert data_loading.parse_creation_date(["File created on 15/03/2024"]) == datetime(2024, 3, 15)


def test_parse_creation_date_missing_or_invalid():
    """Test that unusable dates return None instead of raising"""
    assert data_loading.parse_creation_date(["[header]", "time"]) is None
    assert data_loading.parse_creation_date(["File created on yesterday"]) is None
    assert data_loading.parse_creation_date(["File created on 31/02/2024"]) is None


def test_parse_comments_metadata():
    """Test that sample rate and firmware version are read from comments"""
    metadata = data_loading.parse_comments_metadata([
        "(c) 2024 Racelogic",
        "Logging Rate, 100 Hz",
        "VBOX 3i firmware version 1.2.3",
    ])

    assert metadata == {"sample_rate": 100.0, "version": "1.2.3"}


def test_parse_header_assigns_units_by_position():
    """Test that units are matched by position and missing units stay blank"""
    lines = ["[header]", "time", "latitude", "velocity kmh", "[channel units]", "s", "deg"]
    sections = data_loading.scan_sections(lines)
    header = data_loading.parse_header(lines, sections)

    assert [c.name for c in header.channels] == ["time", "latitude", "velocity kmh"]
    assert [c.unit for c in header.channels] == ["s", "deg", ""]
    assert [c.index for c in header.channels] == [0, 1, 2]
    assert header.units == ("s", "deg")


def test_parse_header_defaults_creation_date_to_now():
    """Test that a missing creation date falls back to the current time"""
    lines = ["[header]", "time"]
    before = datetime.now()
    header = data_loading.parse_header(lines, data_loading.scan_sections(lines))

    assert before <= header.creation_date <= datetime.now()


def test_column_order_prefers_column_names():
    """Test that [column names] wins over header names"""
    sections = {"[column names]": ["sats  time lat"], "[header]": ["satellites"]}
    header = Header(creation_date=datetime(2024, 1, 1), channels=(), units=())

    assert data_loading.column_order(sections, header) == ["sats", "time", "lat"]


def test_column_order_falls_back_to_header():
    """Test that header channel names are used without [column names]"""
    lines = ["[header]", "time", "velocity kmh"]
    sections = data_loading.scan_sections(lines)
    header = data_loading.parse_header(lines, sections)

    assert data_loading.column_order(sections, header) == ["time", "velocity kmh"]


def test_parse_timing_line_with_name():
    """Test a start line with a name after the marker"""
    line = data_loading.parse_timing_line(
        "Start +005834.69098 +003117.49920 +005834.71880 +003117.70200 ¬ Start / Finish"
    )

    assert line.type == "Start"
    assert line.name == "Start / Finish"
    assert line.start.longitude == 5834.69098
    assert line.start.latitude == 3117.4992
    assert line.end.longitude == 5834.7188
    assert line.end.latitude == 3117.702


def test_parse_timing_line_default_name():
    """Test that a line without a name gets '<type> Line'"""
    line = data_loading.parse_timing_line("Split +1.0 +2.0 +3.0 +4.0 x")
    assert line.name == "Split Line"


def test_parse_timing_line_rejects_bad_rows():
    """Test that short rows, unknown types and bad numbers are skipped"""
    assert data_loading.parse_timing_line("Start +1 +2 +3 +4") is None
    assert data_loading.parse_timing_line("Finish +1 +2 +3 +4 x") is None
    assert data_loading.parse_timing_line("Start +1 abc +3 +4 x") is None


def test_parse_circuit_info():
    """Test circuit details and timing lines together"""
    sections = data_loading.scan_sections([
        "[laptiming]",
        "Start +1 +2 +3 +4 ¬ Finish Line",
        "garbage",
        "[circuit details]",
        "country Italy",
        "circuit Monza",
    ])
    info = data_loading.parse_circuit_info(sections)

    assert info.country == "Italy"
    assert info.circuit == "Monza"
    assert len(info.timing_lines) == 1
    assert info.timing_lines[0].name == "Finish Line"


def test_parse_circuit_info_missing_sections():
    """Test that missing sections give empty circuit info"""
    info = data_loading.parse_circuit_info({})

    assert info.country is None
    assert info.circuit is None
    assert info.timing_lines == ()
