"""
Transform & aggregate engine for performance documents.

Turns a raw performance document (``{"runs": [...]}``) into display-ready
chart points and per-metric summary statistics.

Input is treated permissively: a document without a ``runs`` list yields no
points, runs missing ``component_times`` yield points without metric values,
and non-numeric durations are skipped. Values are copied verbatim; rounding is
left to the presentation layer.
"""

from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
from zoneinfo import ZoneInfo

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

# ============= Metric Names =============

TOTAL_METRIC = "total"

DEFAULT_COMPONENTS = [
    "slack_mcp",
    "gmail_mcp",
    "gmail_api",
    "personality",
    "einstein",
]

DEFAULT_METRICS = DEFAULT_COMPONENTS + [TOTAL_METRIC]

INVALID_DATE = "Invalid Date"


# ============= Data Models =============


class ChartPoint(BaseModel):
    """Display-ready representation of one run."""
    model_config = ConfigDict(frozen=True)

    name: str
    timestamp: str
    deal_id: Optional[str] = None
    success: Optional[bool] = None
    metrics: Dict[str, float] = Field(default_factory=dict)

    def value(self, metric: str) -> Optional[float]:
        return self.metrics.get(metric)

    def as_row(self) -> Dict[str, Any]:
        """Flatten into a single chart row, one key per metric."""
        row: Dict[str, Any] = {
            "name": self.name,
            "timestamp": self.timestamp,
            "dealId": self.deal_id,
            "success": self.success,
        }
        row.update(self.metrics)
        return row


class SummaryStatistic(BaseModel):
    """Average, minimum and maximum of one metric over all runs."""
    average: float
    min: float
    max: float


class DocumentSummary(BaseModel):
    """Header information for a loaded document."""
    run_count: int
    first_timestamp: Optional[str] = None
    last_timestamp: Optional[str] = None


# ============= Timestamp Formatting =============


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, returning None when it is not one."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text[-1] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def _localize(moment: datetime, tz: Optional[tzinfo]) -> datetime:
    # Naive timestamps are wall-clock times in the display zone
    if tz is None:
        return moment.astimezone()
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def _display_moment(value: Any, tz: Optional[tzinfo]) -> Optional[datetime]:
    """Parse and convert to the display zone; None if either step fails."""
    moment = parse_timestamp(value)
    if moment is None:
        return None
    try:
        return _localize(moment, tz)
    except (OverflowError, ValueError, OSError):
        # Conversion can leave the supported year range near 0001 / 9999
        return None


def _clock(moment: datetime, seconds: bool) -> str:
    # en-US output regardless of the process locale
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    if seconds:
        return f"{hour}:{moment.minute:02d}:{moment.second:02d} {suffix}"
    return f"{hour:02d}:{moment.minute:02d} {suffix}"


def format_time_of_day(value: Any, tz: Optional[tzinfo] = None) -> str:
    """Format a timestamp as a 12-hour en-US time of day, e.g. ``10:00:00 AM``."""
    moment = _display_moment(value, tz)
    if moment is None:
        return INVALID_DATE
    return _clock(moment, seconds=True)


def format_date_time(value: Any, tz: Optional[tzinfo] = None) -> Optional[str]:
    """Format a timestamp for the document header, e.g. ``Jan 1, 2024, 10:00 AM``."""
    moment = _display_moment(value, tz)
    if moment is None:
        return None
    return f"{_MONTHS[moment.month - 1]} {moment.day}, {moment.year}, {_clock(moment, seconds=False)}"


# ============= Transform =============


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def get_runs(document: Any) -> List[Any]:
    """Return the document's run list, or an empty list when it has none."""
    if not isinstance(document, Mapping):
        return []
    runs = document.get("runs")
    if not isinstance(runs, list):
        return []
    return runs


def _component_times(run: Any) -> Mapping[str, Any]:
    if not isinstance(run, Mapping):
        return {}
    times = run.get("component_times")
    return times if isinstance(times, Mapping) else {}


def derive_chart_points(document: Any, tz: Optional[tzinfo] = None) -> List[ChartPoint]:
    """Convert every run of a document into a chart point.

    Output order is the input order; runs are never re-sorted by timestamp.

    Args:
        document: Parsed performance document.
        tz: Zone used to format timestamps. Defaults to the local zone.

    Returns:
        One ChartPoint per run, labeled ``Run 1`` .. ``Run N``.
    """
    points = []
    for index, run in enumerate(get_runs(document)):
        record = run if isinstance(run, Mapping) else {}
        deal_id = record.get("deal_id")
        success = record.get("success")
        metrics = {
            str(metric): value
            for metric, value in _component_times(run).items()
            if _is_number(value)
        }
        points.append(ChartPoint(
            name=f"Run {index + 1}",
            timestamp=format_time_of_day(record.get("timestamp"), tz),
            deal_id=str(deal_id) if deal_id is not None else None,
            success=success if isinstance(success, bool) else None,
            metrics=metrics,
        ))
    return points


def observed_metric_names(document: Any) -> List[str]:
    """Metric names found in the document in first-seen order, ``total`` last."""
    names: List[str] = []
    seen = set()
    for run in get_runs(document):
        for metric, value in _component_times(run).items():
            if metric not in seen and _is_number(value):
                seen.add(metric)
                names.append(str(metric))
    if TOTAL_METRIC in seen:
        names.remove(TOTAL_METRIC)
        names.append(TOTAL_METRIC)
    return names


def summarize_document(document: Any, tz: Optional[tzinfo] = None) -> DocumentSummary:
    """Run count and first/last formatted timestamps of a document."""
    runs = get_runs(document)
    if not runs:
        return DocumentSummary(run_count=0)

    def stamp(run: Any) -> Optional[str]:
        if not isinstance(run, Mapping):
            return None
        return format_date_time(run.get("timestamp"), tz)

    return DocumentSummary(
        run_count=len(runs),
        first_timestamp=stamp(runs[0]),
        last_timestamp=stamp(runs[-1]),
    )


# ============= Aggregation =============


def compute_statistics(
    chart_points: Sequence[ChartPoint],
    metric_names: Optional[Iterable[str]] = None,
) -> Dict[str, SummaryStatistic]:
    """Compute average, min and max per metric.

    Metrics that no point defines are omitted from the result.

    Args:
        chart_points: Points produced by :func:`derive_chart_points`.
        metric_names: Metrics to summarize. Defaults to :data:`DEFAULT_METRICS`.

    Returns:
        Dict mapping metric name to its SummaryStatistic, in metric_names order.
    """
    if metric_names is None:
        metric_names = DEFAULT_METRICS

    results: Dict[str, SummaryStatistic] = {}
    for metric in metric_names:
        values = [p.metrics[metric] for p in chart_points if metric in p.metrics]
        if not values:
            continue

        arr = np.asarray(values, dtype=np.float64)
        lo = float(arr.min())
        hi = float(arr.max())
        # Summation rounding can push the mean of equal values past the bounds
        avg = float(np.clip(arr.mean(), lo, hi))
        results[metric] = SummaryStatistic(average=avg, min=lo, max=hi)

    return results


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """Resolve an IANA zone name (``UTC`` included) to a tzinfo, None for local."""
    if not name:
        return None
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)
