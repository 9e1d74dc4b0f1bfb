"""
Shared services for the performance graph viewer API.

This module contains the data provider and the transform engine used by the
HTTP routes and the viewer.
"""
from .data_provider import PerformanceDataProvider, parse_document
from .transform import compute_statistics, derive_chart_points

__all__ = [
    "PerformanceDataProvider",
    "parse_document",
    "derive_chart_points",
    "compute_statistics",
]
