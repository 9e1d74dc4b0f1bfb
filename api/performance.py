"""
Performance data API routes.

This module provides FastAPI routes that serve the configured performance
document, its derived chart data, and a parse endpoint for uploaded files.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import AppConfig
from .errors import ParseError, PerformanceDataError
from .shared.data_provider import PerformanceDataProvider, parse_document
from .shared.logger import get_logger
from .shared.transform import (
    ChartPoint,
    DocumentSummary,
    SummaryStatistic,
    compute_statistics,
    derive_chart_points,
    observed_metric_names,
    resolve_timezone,
    summarize_document,
)
from .viewer import INVALID_JSON_MESSAGE, PerformanceViewer, ViewModel

logger = get_logger(__name__)

router = APIRouter()

LOAD_FAILED_MESSAGE = "Failed to load performance data"


class ChartData(BaseModel):
    """Chart-ready form of a performance document."""
    summary: DocumentSummary
    metrics: List[str]
    points: List[Dict[str, Any]]
    statistics: Dict[str, SummaryStatistic]


def _get_provider(request: Request) -> PerformanceDataProvider:
    return request.app.state.provider


def _get_config(request: Request) -> AppConfig:
    return request.app.state.config


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def build_chart_data(document: Any, config: AppConfig) -> ChartData:
    """Derive summary, chart rows and statistics from a document."""
    tz = resolve_timezone(config.display_timezone)
    points: List[ChartPoint] = derive_chart_points(document, tz)
    metrics = observed_metric_names(document)
    return ChartData(
        summary=summarize_document(document, tz),
        metrics=metrics,
        points=[point.as_row() for point in points],
        statistics=compute_statistics(points, metrics),
    )


@router.get("/performance-data")
async def get_performance_data(request: Request):
    """Serve the configured performance document as-is."""
    provider = _get_provider(request)
    try:
        return await provider.load_source_document()
    except PerformanceDataError:
        logger.exception("Error reading performance data from %s", provider.config.source_path)
        return _error_response(500, LOAD_FAILED_MESSAGE)


@router.get("/performance-data/chart", response_model=ChartData)
async def get_chart_data(request: Request):
    """Serve the configured document transformed into chart rows and statistics."""
    provider = _get_provider(request)
    try:
        document = await provider.load_source_document()
    except PerformanceDataError:
        logger.exception("Error reading performance data from %s", provider.config.source_path)
        return _error_response(500, LOAD_FAILED_MESSAGE)
    return build_chart_data(document, _get_config(request))


@router.post("/performance-data/parse", response_model=ChartData)
async def parse_uploaded_data(request: Request):
    """Transform an uploaded document (raw JSON request body)."""
    body = await request.body()
    try:
        document = parse_document(body)
    except ParseError as e:
        logger.info("Rejected uploaded performance data: %s", e.reason)
        return _error_response(400, INVALID_JSON_MESSAGE)
    return build_chart_data(document, _get_config(request))


@router.get("/performance-data/view", response_model=ViewModel)
async def get_view(
    request: Request,
    hidden: Optional[List[str]] = Query(None, description="Components to hide from the component chart"),
):
    """Render the configured document into the full page view model."""
    config = _get_config(request)
    viewer = PerformanceViewer(config, _get_provider(request))
    await viewer.load_file(config.source_path)
    for component in hidden or []:
        if viewer.visibility.get(component):
            viewer.toggle_component(component)
    return viewer.render()
