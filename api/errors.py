"""
Error types raised while loading a performance document.

All of them are recoverable: the HTTP route turns them into a 500 response and
the viewer turns them into a plain-text message, so the app stays interactive.
"""


class PerformanceDataError(Exception):
    """Base class for performance document loading failures."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class UnavailableError(PerformanceDataError):
    """The provider could not be reached or answered with a non-success status."""

    def __init__(self, reason: str, status_code: int | None = None):
        super().__init__(reason)
        self.status_code = status_code


class ParseError(PerformanceDataError):
    """The document body is not valid JSON."""


class ReadError(PerformanceDataError):
    """The local file could not be read."""
