"""
Data Loading and Section Scanning for VBO Files

This module splits raw VBO text into lines and bracketed sections and parses
the small metadata sections: the creation date line, [header] channels,
[channel units], [comments], [laptiming] and [circuit details].

The [data] section is decoded separately by time_series.decode_data_section().
"""

import logging
import re
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from . import constants
from . import utils
from .models import Channel, CircuitInfo, GeoPoint, Header, TimingLine

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r?\n|\r")

# DD/MM/YYYY @ HH:MM:SS, DD/MM/YYYY at HH:MM:SS, DD/MM/YYYY
_DATE_PATTERNS = (
    re.compile(r"(\d{2})/(\d{2})/(\d{4})\s*(?:@|at)\s*(\d{2}):(\d{2}):(\d{2})"),
    re.compile(r"(\d{2})/(\d{2})/(\d{4})"),
)

_LOGGING_RATE = re.compile(r"logging\s+rate\s*[,:]?\s*([0-9.]+)\s*hz", re.IGNORECASE)
_FIRMWARE_VERSION = re.compile(r"firmware\s+version\s*[,:]?\s*(\S+)", re.IGNORECASE)

TIMING_LINE_TYPES = ("Start", "Split")
TIMING_NAME_MARKER = "¬"


def split_lines(content: str) -> List[str]:
    """Split raw text into lines, accepting \\n, \\r\\n and bare \\r endings."""
    return _LINE_BREAK.split(content)


def is_section_line(line: str) -> bool:
    stripped = line.strip()
    return stripped.startswith("[") and stripped.endswith("]")


def scan_sections(lines: Sequence[str]) -> Dict[str, List[str]]:
    """
    Group lines into sections keyed by their bracketed header.

    A section's body is every non-blank line after its header, trimmed, up to
    the next bracketed line. Lines before the first header are not part of
    any section.

    Args:
        lines: Lines from split_lines().

    Returns:
        Dictionary mapping lower-case section names (e.g. "[data]") to their
        body lines, in file order. If a section appears twice, the first
        occurrence is kept.
    """
    sections: Dict[str, List[str]] = {}
    current: Optional[List[str]] = None

    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue
        if is_section_line(stripped):
            name = stripped.lower()
            if name in sections:
                logger.warning(f"Duplicate section {name} ignored")
                current = None
            else:
                current = sections[name] = []
            continue
        if current is not None:
            current.append(stripped)

    logger.debug(f"Found sections: {', '.join(sections) or 'none'}")
    return sections


def parse_creation_date(lines: Sequence[str]) -> Optional[datetime]:
    """
    Parse the "File created on ..." line.

    Args:
        lines: All lines of the file; the first line with the prefix is used.

    Returns:
        Naive local datetime, or None if the line is missing or no known
        date format matches.
    """
    for line in lines:
        stripped = line.strip()
        if not stripped.startswith(constants.CREATION_DATE_PREFIX):
            continue
        text = stripped[len(constants.CREATION_DATE_PREFIX):].strip()
        for pattern in _DATE_PATTERNS:
            match = pattern.search(text)
            if not match:
                continue
            day, month, year = (int(g) for g in match.groups()[:3])
            hour, minute, second = (int(g) for g in match.groups()[3:]) if match.lastindex > 3 else (0, 0, 0)
            try:
                return datetime(year, month, day, hour, minute, second)
            except ValueError:
                logger.debug(f"Invalid creation date {text!r}")
                return None
        return None
    return None


def parse_comments_metadata(comment_lines: Sequence[str]) -> Dict[str, object]:
    """
    Pull sample rate and firmware version out of the [comments] section.

    Args:
        comment_lines: Body of the [comments] section.

    Returns:
        Dictionary with any of the keys "sample_rate" (float) and "version" (str).
    """
    metadata: Dict[str, object] = {}
    for line in comment_lines:
        if "sample_rate" not in metadata:
            match = _LOGGING_RATE.search(line)
            if match:
                rate = utils.parse_numeric(match.group(1))
                if rate is not None:
                    metadata["sample_rate"] = rate
        if "version" not in metadata:
            match = _FIRMWARE_VERSION.search(line)
            if match:
                metadata["version"] = match.group(1)
    return metadata


def parse_header(lines: Sequence[str], sections: Dict[str, List[str]]) -> Header:
    """
    Build the Header from the [header] and [channel units] sections.

    Each [header] line becomes a Channel named with that exact text. Units are
    assigned by position; extra or missing units are left unmatched.

    Args:
        lines: All lines of the file (for the creation date).
        sections: Output of scan_sections(). Must contain [header].

    Returns:
        Header with channels, units, creation date and [comments] metadata.
    """
    channel_names = sections.get(constants.SECTION_HEADER, [])
    units = sections.get(constants.SECTION_CHANNEL_UNITS, [])

    channels = tuple(
        Channel(name=name, unit=units[i] if i < len(units) else "", index=i)
        for i, name in enumerate(channel_names)
    )

    creation_date = parse_creation_date(lines)
    if creation_date is None:
        creation_date = datetime.now()

    metadata = parse_comments_metadata(sections.get(constants.SECTION_COMMENTS, []))

    return Header(
        creation_date=creation_date,
        channels=channels,
        units=tuple(units),
        sample_rate=metadata.get("sample_rate"),
        version=metadata.get("version"),
    )


def column_order(sections: Dict[str, List[str]], header: Header) -> List[str]:
    """
    Column tokens for [data] rows.

    Uses the first line of [column names] if present, otherwise the header
    channel names in header order.
    """
    column_lines = sections.get(constants.SECTION_COLUMN_NAMES)
    if column_lines:
        return column_lines[0].split()
    return [channel.name for channel in header.channels]


def parse_timing_line(line: str) -> Optional[TimingLine]:
    """
    Parse one [laptiming] row.

    Format: ``Start|Split +Long1 +Lat1 +Long2 +Lat2 [¬ Name]``. Coordinates are
    kept exactly as written.

    Args:
        line: Trimmed row text.

    Returns:
        TimingLine, or None when the row has fewer than six tokens, an unknown
        type, or coordinates that are not numbers.
    """
    parts = line.split()
    if len(parts) < 6 or parts[0] not in TIMING_LINE_TYPES:
        return None

    coords = [utils.parse_numeric(token) for token in parts[1:5]]
    if any(value is None for value in coords):
        return None
    long1, lat1, long2, lat2 = coords

    marker = line.find(TIMING_NAME_MARKER)
    name = line[marker + 1:].strip() if marker >= 0 else f"{parts[0]} Line"

    return TimingLine(
        type=parts[0],
        start=GeoPoint(latitude=lat1, longitude=long1),
        end=GeoPoint(latitude=lat2, longitude=long2),
        name=name,
    )


def parse_circuit_info(sections: Dict[str, List[str]]) -> CircuitInfo:
    """
    Parse [laptiming] and [circuit details]. Either section may be missing.
    """
    timing_lines = []
    for line in sections.get(constants.SECTION_LAP_TIMING, []):
        timing_line = parse_timing_line(line)
        if timing_line is not None:
            timing_lines.append(timing_line)
        else:
            logger.debug(f"Skipping timing line {line!r}")

    country = circuit = None
    for line in sections.get(constants.SECTION_CIRCUIT_DETAILS, []):
        if line.startswith("country "):
            country = line[len("country "):].strip()
        elif line.startswith("circuit "):
            circuit = line[len("circuit "):].strip()

    return CircuitInfo(country=country, circuit=circuit, timing_lines=tuple(timing_lines))
