"""
API package for the performance graph viewer FastAPI backend.

This package provides:
- Performance data endpoints (performance.py)
- Health and system info (system.py)
- Viewer state and rendering (viewer.py)
- Configuration (config.py) and error types (errors.py)
"""

from .config import AppConfig
from .errors import ParseError, PerformanceDataError, ReadError, UnavailableError

__all__ = [
    "AppConfig",
    "PerformanceDataError",
    "UnavailableError",
    "ParseError",
    "ReadError",
]
