"""
Session Builder for VBO Telemetry

This module orchestrates the parse pipeline, combining all processing steps
to turn raw VBO text into a Session:

1. Splits text into lines and sections
2. Parses header channels, units and metadata
3. Resolves the column order to Sample fields
4. Decodes [data] rows into samples
5. Normalizes time and coordinates
6. Parses circuit details and timing lines
7. Detects laps and sectors (optional)

The package never touches the filesystem; callers read files themselves and
pass the text or bytes in.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from . import constants
from . import data_loading
from . import lap_analysis
from . import time_series
from .channels import build_column_lookup
from .config import ParserOptions
from .errors import ParseError
from .models import Sample, Session, VideoFile

logger = logging.getLogger(__name__)


class VBOParser:
    """
    Parser for VBO telemetry text.

    A parser holds only its options, so one instance can parse any number of
    files, from any number of threads.

    Args:
        options: Parser options. Defaults to ParserOptions().
    """

    def __init__(self, options: Optional[ParserOptions] = None):
        self.options = options or ParserOptions()
        self._column_lookup = build_column_lookup(self.options.custom_column_mappings)

    def parse(
        self,
        content: Union[str, bytes],
        file_path: str = constants.DEFAULT_FILE_PATH,
        videos: Sequence[VideoFile] = (),
    ) -> Session:
        """
        Parse one VBO file.

        Args:
            content: File contents as text or UTF-8 bytes.
            file_path: Label stored on the session.
            videos: Video files to attach to the session.

        Returns:
            Parsed session.

        Raises:
            ParseError: If the input is not text, is empty, has no [header] or
                [data] section, or [data] yields no samples.
        """
        text = _decode_input(content)
        if not text.strip():
            raise ParseError("VBO file is empty")

        lines = data_loading.split_lines(text)
        sections = data_loading.scan_sections(lines)

        if constants.SECTION_HEADER not in sections:
            raise ParseError("No [header] section found in VBO file", section=constants.SECTION_HEADER)
        header = data_loading.parse_header(lines, sections)

        if constants.SECTION_DATA not in sections:
            found = ", ".join(sections) or "none"
            raise ParseError(
                f"No [data] section found in VBO file (found sections: {found})",
                section=constants.SECTION_DATA,
            )

        columns = data_loading.column_order(sections, header)
        decoded = time_series.decode_data_section(
            sections[constants.SECTION_DATA],
            columns,
            self._column_lookup,
            self.options.max_data_points,
        )

        if not decoded.samples and self.options.max_data_points != 0:
            raise ParseError("No data points found in VBO file", section=constants.SECTION_DATA)

        # Read before normalization rebases time
        total_time = time_series.raw_total_time(decoded.samples)
        data_points = time_series.normalize_samples(decoded.samples, self.options.coordinate_policy)

        circuit_info = data_loading.parse_circuit_info(sections)

        laps: Tuple = ()
        fastest_lap = None
        track_length = None
        if self.options.calculate_laps:
            laps = tuple(lap_analysis.detect_laps(data_points, self.options.lap_detection))
            fastest_lap = lap_analysis.find_fastest_lap(laps)
            track_length = fastest_lap.distance if fastest_lap else None

        logger.info(
            f"Parsed {file_path}: {len(data_points)} samples, {len(laps)} laps, "
            f"{decoded.dropped_rows} dropped rows"
        )

        return Session(
            file_path=file_path,
            header=header,
            data_points=data_points,
            laps=laps,
            fastest_lap=fastest_lap,
            total_time=total_time,
            track_length=track_length,
            circuit_info=circuit_info,
            videos=tuple(videos),
            dropped_rows=decoded.dropped_rows,
        )

    def parse_many(self, inputs: Iterable[Tuple[str, Union[str, bytes]]]) -> List[Session]:
        """
        Parse several files, skipping the ones that fail.

        Args:
            inputs: (file_path, content) pairs.

        Returns:
            Sessions for the inputs that parsed, in input order.
        """
        sessions = []
        for file_path, content in inputs:
            try:
                sessions.append(self.parse(content, file_path))
            except ParseError as exc:
                logger.error(f"Failed to parse VBO file {file_path}: {exc}")
        return sessions


def _decode_input(content: Union[str, bytes]) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, (bytes, bytearray)):
        try:
            return bytes(content).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"VBO input is not valid UTF-8: {exc}") from exc
    raise ParseError("Unsupported input type")


def parse_vbo(
    content: Union[str, bytes],
    file_path: str = constants.DEFAULT_FILE_PATH,
    options: Optional[ParserOptions] = None,
) -> Session:
    """
    Parse VBO text with a one-off parser.

    Args:
        content: File contents as text or UTF-8 bytes.
        file_path: Label stored on the session.
        options: Parser options.

    Returns:
        Parsed session.
    """
    return VBOParser(options).parse(content, file_path)


def video_for_sample(session: Session, sample: Sample) -> Optional[Tuple[str, float]]:
    """
    Video file and timestamp for a sample.

    Uses the sample's avi_file_index to pick the video and its avi_sync_time
    as the position within it.

    Returns:
        (filename, timestamp), or None if the session has no video with
        that index.
    """
    for video in session.videos:
        if video.index == sample.avi_file_index:
            return video.filename, sample.avi_sync_time
    return None
