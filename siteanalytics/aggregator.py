"""
Turns append-only record lists into time-windowed summary statistics.

Everything here is pure: callers fetch records from an EventStore and pass
them in together with the reference instant `now`.
"""
from __future__ import annotations
import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .events import Event, Pageview, PerformanceSample, Record

R = TypeVar("R", bound=Record)

LOOKBACKS = {
    "1h": timedelta(hours=1),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
}
DEFAULT_LOOKBACK = LOOKBACKS["24h"]

TOP_ACTIONS = 10
CONVERSION_ACTIONS = frozenset({"conversion", "get_started"})


class _Out(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TopAction(_Out):
    action: str
    count: int


class VisitorMetrics(_Out):
    page_views: int
    unique_visitors: int
    average_session_time: float
    bounce_rate: float


class PerformanceMetrics(_Out):
    load_time: float
    render_time: float
    interaction_delay: float


class BehaviorMetrics(_Out):
    top_actions: List[TopAction]
    conversion_rate: float
    retention_rate: float


class AnalyticsSummary(_Out):
    metrics: VisitorMetrics
    performance: PerformanceMetrics
    user_behavior: BehaviorMetrics


class DataPoints(_Out):
    sessions: int
    events: int
    performance: int


class WindowReport(_Out):
    analytics: AnalyticsSummary
    data_points: DataPoints


def lookback(timeframe: Optional[str]) -> timedelta:
    return LOOKBACKS.get(timeframe, DEFAULT_LOOKBACK)


def cutoff(now: datetime, timeframe: Optional[str]) -> datetime:
    return now - lookback(timeframe)


def in_window(records: Iterable[R], since: datetime) -> List[R]:
    # exclusive lower bound, no upper bound
    return [r for r in records if r.timestamp is not None and r.timestamp > since]


def _is_number(v) -> bool:
    # inf/nan and ints beyond float range count as non-numeric
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return False
    try:
        return math.isfinite(v)
    except OverflowError:
        return False


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    n = len(values)
    try:
        return math.fsum(values) / n
    except OverflowError:
        # finite values whose sum leaves float range
        return sum(v / n for v in values)


def _pct(part: int, whole: int) -> float:
    return (part / whole) * 100 if whole else 0.0


def unique_visitors(pageviews: Sequence[Pageview]) -> int:
    # pageviews with neither a user nor a session are not counted
    return len({p.user_id or p.session_id for p in pageviews if p.user_id or p.session_id})


def average_session_time(pageviews: Sequence[Pageview]) -> float:
    return _mean([p.session_time for p in pageviews if _is_number(p.session_time) and p.session_time > 0])


def bounce_rate(pageviews: Sequence[Pageview], events: Sequence[Event]) -> float:
    engaged = {e.session_id for e in events if e.session_id}
    bounced = sum(1 for p in pageviews if p.id not in engaged)
    return _pct(bounced, len(pageviews))


def field_average(samples: Sequence[PerformanceSample], field: str) -> float:
    values = [getattr(s, field) for s in samples]
    return _mean([v for v in values if _is_number(v)])


def top_actions(events: Sequence[Event], n: int = TOP_ACTIONS) -> List[TopAction]:
    counts = Counter(e.action or "unknown" for e in events)
    # Counter keeps first-seen order and sorted() is stable, so ties stay in that order
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return [TopAction(action=a, count=c) for a, c in ranked[:n]]


def conversion_rate(pageviews: Sequence[Pageview], events: Sequence[Event]) -> float:
    converted = {e.session_id for e in events if e.action in CONVERSION_ACTIONS and e.session_id}
    hits = sum(1 for p in pageviews if p.id in converted)
    return _pct(hits, len(pageviews))


def retention_rate(pageviews: Sequence[Pageview]) -> float:
    users = {p.user_id for p in pageviews if p.user_id}
    returning = {p.user_id for p in pageviews if p.user_id and p.is_returning is True}
    return _pct(len(returning), len(users))


def summarize(
    pageviews: Sequence[Pageview],
    events: Sequence[Event],
    samples: Sequence[PerformanceSample],
    now: datetime,
    timeframe: Optional[str] = "24h",
) -> WindowReport:
    since = cutoff(now, timeframe)
    pageviews = in_window(pageviews, since)
    events = in_window(events, since)
    samples = in_window(samples, since)

    analytics = AnalyticsSummary(
        metrics=VisitorMetrics(
            page_views=len(pageviews),
            unique_visitors=unique_visitors(pageviews),
            average_session_time=average_session_time(pageviews),
            bounce_rate=bounce_rate(pageviews, events),
        ),
        performance=PerformanceMetrics(
            load_time=field_average(samples, "load_time"),
            render_time=field_average(samples, "render_time"),
            interaction_delay=field_average(samples, "interaction_delay"),
        ),
        user_behavior=BehaviorMetrics(
            top_actions=top_actions(events),
            conversion_rate=conversion_rate(pageviews, events),
            retention_rate=retention_rate(pageviews),
        ),
    )
    return WindowReport(
        analytics=analytics,
        data_points=DataPoints(sessions=len(pageviews), events=len(events), performance=len(samples)),
    )
