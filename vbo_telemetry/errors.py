"""
Exception Types for VBO Telemetry Processing

Structural parse problems, synchronizer validation problems, and navigation
problems each get their own type so callers can tell a bad file apart from a
bad request. Row-level decode problems are not exceptions; see
time_series.decode_data_section().
"""

from typing import Optional


class VBOError(Exception):
    """Base class for every error raised by this package."""


class ParseError(VBOError, ValueError):
    """
    Raised when raw VBO text cannot be turned into a session.

    Attributes:
        section: Name of the section involved (e.g. "[data]"), if any.
    """

    def __init__(self, message: str, section: Optional[str] = None):
        super().__init__(message)
        self.section = section


class SessionValidationError(VBOError, ValueError):
    """
    Raised when sessions cannot be compared.

    Attributes:
        file_path: File path of the offending session.
    """

    def __init__(self, message: str, file_path: Optional[str] = None):
        super().__init__(message)
        self.file_path = file_path


class NavigationError(VBOError, IndexError):
    """Raised when a synchronizer query or move targets an invalid position."""
