"""
Presentation layer for the performance graph viewer.

``PerformanceViewer`` holds the state of one viewing session (loaded document,
error message, loading indicator, component visibility) and renders it into a
``ViewModel`` that the frontend draws as line charts and stat cards.

Loads are tagged with a generation number. When a newer load is started before
an older one finishes, the older result is dropped, so the most recently
issued load always wins.
"""

from itertools import cycle
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel

from .config import AppConfig
from .errors import ParseError, PerformanceDataError
from .shared.data_provider import PerformanceDataProvider, Source, is_url
from .shared.logger import get_logger
from .shared.transform import (
    DEFAULT_COMPONENTS,
    DEFAULT_METRICS,
    TOTAL_METRIC,
    ChartPoint,
    DocumentSummary,
    SummaryStatistic,
    compute_statistics,
    derive_chart_points,
    observed_metric_names,
    resolve_timezone,
    summarize_document,
)

logger = get_logger(__name__)

INVALID_JSON_MESSAGE = "Invalid JSON file. Please check the file format."
READ_ERROR_MESSAGE = "Error reading file. Please try again."
LOAD_ERROR_PREFIX = "Error loading performance data: "

OVERVIEW_TITLE = "Performance Data Overview"
COMPONENT_CHART_TITLE = "Component Performance Over Time"
TOTAL_CHART_TITLE = "Total Performance Over Time"

METRIC_COLORS = {
    "slack_mcp": "#4a9eff",
    "gmail_mcp": "#50c878",
    "gmail_api": "#8a2be2",
    "personality": "#ffd700",
    "einstein": "#ff6b35",
    "total": "#ff4757",
}

# Used for metrics without an assigned color
FALLBACK_COLORS = ["#17becf", "#bcbd22", "#e377c2", "#7f7f7f", "#8c564b", "#2ca02c"]


# ============= View Models =============


class Tooltip(BaseModel):
    label: str
    value: str


class SeriesPoint(BaseModel):
    name: str
    value: Optional[float] = None
    tooltip: Optional[Tooltip] = None


class Series(BaseModel):
    metric: str
    label: str
    color: str
    stroke_width: int
    dot_radius: int
    points: List[SeriesPoint]


class ComponentToggle(BaseModel):
    metric: str
    label: str
    checked: bool


class Chart(BaseModel):
    title: str
    series: List[Series]
    toggles: List[ComponentToggle] = []


class StatCard(BaseModel):
    metric: str
    title: str
    color: str
    average: str
    min: str
    max: str


class Controls(BaseModel):
    loading: bool
    refresh_label: str
    refresh_enabled: bool


class SummaryHeader(BaseModel):
    title: str
    run_count: int
    date_range: Optional[str] = None


class ViewModel(BaseModel):
    """Everything the frontend needs to draw the page."""
    controls: Controls
    error: Optional[str] = None
    summary: Optional[SummaryHeader] = None
    charts: List[Chart] = []
    statistics: List[StatCard] = []


# ============= Formatting Helpers =============


def display_name(metric: str) -> str:
    """``slack_mcp`` -> ``SLACK MCP`` (first underscore only)."""
    return metric.replace("_", " ", 1).upper()


def format_seconds(value: float) -> str:
    return f"{value:.2f}s"


def point_label(point: ChartPoint) -> str:
    return f"{point.name} ({point.timestamp})"


class _ColorPicker:
    """Fixed colors for known metrics, a rotating palette for the rest."""

    def __init__(self):
        self._assigned: Dict[str, str] = {}
        self._fallback = cycle(FALLBACK_COLORS)

    def __call__(self, metric: str) -> str:
        if metric in METRIC_COLORS:
            return METRIC_COLORS[metric]
        if metric not in self._assigned:
            self._assigned[metric] = next(self._fallback)
        return self._assigned[metric]


# ============= Viewer =============


class PerformanceViewer:
    """State and rendering for one performance viewing session.

    Attributes:
        document: Last successfully loaded document, or None.
        chart_points: Points derived from ``document``.
        statistics: Per-metric statistics over ``chart_points``.
        error: User-facing message of the last failed load.
        loading: True while the most recently issued load is in flight.
        visibility: Component name -> shown on the component chart.
    """

    def __init__(self, config: AppConfig, provider: Optional[PerformanceDataProvider] = None):
        self.config = config
        self.provider = provider or PerformanceDataProvider(config)
        self.tz = resolve_timezone(config.display_timezone)

        self.document: Optional[Any] = None
        self.chart_points: List[ChartPoint] = []
        self.statistics: Dict[str, SummaryStatistic] = {}
        self.metric_names: List[str] = list(DEFAULT_METRICS)
        self.error: Optional[str] = None
        self.loading = False
        self.visibility: Dict[str, bool] = {name: True for name in DEFAULT_COMPONENTS}

        self._generation = 0
        self._colors = _ColorPicker()

    # ----- loading -----

    async def refresh(self, url: Optional[str] = None) -> bool:
        """Reload the document from the data endpoint.

        Returns:
            True if the result was applied to the view.
        """
        target = url or self.config.data_url
        return await self._load(
            lambda: self.provider.fetch_from_url(target),
            _network_error_message,
        )

    async def load_file(self, source: Source) -> bool:
        """Load a document from a local file path, raw content or file object.

        Returns:
            True if the result was applied to the view.
        """
        if is_url(source):
            raise ValueError("load_file expects a local source; use refresh() for URLs")
        return await self._load(
            lambda: self.provider.fetch_document(source),
            _file_error_message,
        )

    async def _load(
        self,
        loader: Callable[[], Awaitable[Any]],
        describe_error: Callable[[PerformanceDataError], str],
    ) -> bool:
        self._generation += 1
        generation = self._generation
        self.loading = True
        self.error = None

        try:
            document = await loader()
            if generation != self._generation:
                logger.debug("Dropping stale load #%d (latest is #%d)", generation, self._generation)
                return False
            self.set_document(document)
            return True
        except PerformanceDataError as e:
            if generation != self._generation:
                logger.debug("Dropping stale failed load #%d", generation)
                return False
            logger.debug("Load #%d failed: %s", generation, e.reason)
            self.error = describe_error(e)
            if not self.config.keep_document_on_error:
                self.set_document(None)
            return False
        finally:
            # Cleared only after the document is in place
            if generation == self._generation:
                self.loading = False

    def set_document(self, document: Optional[Any]) -> None:
        """Replace the loaded document and rebuild every derived value.

        Derived values are computed before any attribute changes, so a failure
        leaves the previous document and its charts intact.
        """
        if document is None:
            chart_points: List[ChartPoint] = []
            metric_names = list(DEFAULT_METRICS)
        else:
            chart_points = derive_chart_points(document, self.tz)
            metric_names = observed_metric_names(document) or list(DEFAULT_METRICS)
        statistics = compute_statistics(chart_points, metric_names)

        components = [name for name in metric_names if name != TOTAL_METRIC]
        self.document = document
        self.chart_points = chart_points
        self.metric_names = metric_names
        self.statistics = statistics
        self.visibility = {name: self.visibility.get(name, True) for name in components}

    # ----- visibility -----

    def toggle_component(self, component: str) -> bool:
        """Flip one component's visibility and return the new value.

        Raises:
            KeyError: If the component is not part of the current selection.
        """
        if component not in self.visibility:
            raise KeyError(component)
        self.visibility[component] = not self.visibility[component]
        return self.visibility[component]

    def visible_components(self) -> List[str]:
        return [name for name, shown in self.visibility.items() if shown]

    # ----- rendering -----

    def render(self) -> ViewModel:
        """Build the view model for the current state."""
        controls = Controls(
            loading=self.loading,
            refresh_label="Loading..." if self.loading else "Refresh Data",
            refresh_enabled=not self.loading,
        )
        view = ViewModel(controls=controls, error=self.error)
        if self.document is None:
            return view

        view.summary = self._render_summary()
        if not self.chart_points:
            return view

        view.charts = [self._render_component_chart(), self._render_total_chart()]
        view.statistics = [
            self._render_stat_card(metric, stat) for metric, stat in self.statistics.items()
        ]
        return view

    def _render_summary(self) -> SummaryHeader:
        summary: DocumentSummary = summarize_document(self.document, self.tz)
        date_range = None
        if summary.run_count:
            date_range = f"{summary.first_timestamp or ''} to {summary.last_timestamp or ''}"
        return SummaryHeader(title=OVERVIEW_TITLE, run_count=summary.run_count, date_range=date_range)

    def _render_series(self, metric: str, stroke_width: int, dot_radius: int) -> Series:
        points = []
        for point in self.chart_points:
            value = point.value(metric)
            tooltip = None
            if value is not None:
                tooltip = Tooltip(label=point_label(point), value=format_seconds(value))
            points.append(SeriesPoint(name=point.name, value=value, tooltip=tooltip))
        return Series(
            metric=metric,
            label=display_name(metric),
            color=self._colors(metric),
            stroke_width=stroke_width,
            dot_radius=dot_radius,
            points=points,
        )

    def _render_component_chart(self) -> Chart:
        toggles = [
            ComponentToggle(metric=name, label=display_name(name), checked=shown)
            for name, shown in self.visibility.items()
        ]
        series = [self._render_series(name, 2, 4) for name in self.visible_components()]
        return Chart(title=COMPONENT_CHART_TITLE, series=series, toggles=toggles)

    def _render_total_chart(self) -> Chart:
        series = self._render_series(TOTAL_METRIC, 3, 5)
        series.label = "Total Time"
        return Chart(title=TOTAL_CHART_TITLE, series=[series])

    def _render_stat_card(self, metric: str, stat: SummaryStatistic) -> StatCard:
        return StatCard(
            metric=metric,
            title=display_name(metric),
            color=self._colors(metric),
            average=format_seconds(stat.average),
            min=format_seconds(stat.min),
            max=format_seconds(stat.max),
        )


def _network_error_message(error: PerformanceDataError) -> str:
    return LOAD_ERROR_PREFIX + error.reason


def _file_error_message(error: PerformanceDataError) -> str:
    if isinstance(error, ParseError):
        return INVALID_JSON_MESSAGE
    return READ_ERROR_MESSAGE
