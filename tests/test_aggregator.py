from datetime import timedelta

import pytest

from siteanalytics import aggregator
from siteanalytics.events import Event, Pageview, PerformanceSample

from conftest import NOW, ts


def pv(id="p1", when=None, **kw):
    return Pageview(id=id, timestamp=when or ts(minutes=-5), **kw)


def ev(action=None, session_id=None, when=None, **kw):
    return Event(id=kw.pop("id", None), timestamp=when or ts(minutes=-5), action=action, session_id=session_id, **kw)


# =============================================================================
# WINDOW
# =============================================================================

class TestWindow:

    @pytest.mark.parametrize("timeframe,delta", [
        ("1h", timedelta(hours=1)),
        ("24h", timedelta(hours=24)),
        ("7d", timedelta(days=7)),
    ])
    def test_cutoff_is_exclusive(self, timeframe, delta):
        cutoff = NOW - delta
        at_cutoff = pv("edge", when=cutoff)
        just_after = pv("inside", when=cutoff + timedelta(milliseconds=1))

        kept = aggregator.in_window([at_cutoff, just_after], aggregator.cutoff(NOW, timeframe))

        assert [p.id for p in kept] == ["inside"]

    @pytest.mark.parametrize("timeframe", ["30m", "", None, "7D"])
    def test_unknown_timeframe_defaults_to_24h(self, timeframe):
        assert aggregator.lookback(timeframe) == timedelta(hours=24)

    def test_future_records_are_included(self):
        kept = aggregator.in_window([pv(when=ts(days=3))], aggregator.cutoff(NOW, "1h"))
        assert len(kept) == 1

    def test_filters_are_independent(self):
        report = aggregator.summarize(
            [pv("old", when=ts(hours=-2)), pv("new")],
            [ev("click", when=ts(hours=-3))],
            [PerformanceSample(id="s", timestamp=ts(minutes=-1), load_time=100)],
            now=NOW,
            timeframe="1h",
        )
        assert report.data_points.sessions == 1
        assert report.data_points.events == 0
        assert report.data_points.performance == 1


# =============================================================================
# VISITOR METRICS
# =============================================================================

class TestVisitorMetrics:

    def test_average_session_time(self):
        views = [pv(str(i), session_time=t) for i, t in enumerate([10, 20, 30])]
        assert aggregator.average_session_time(views) == 20

    def test_average_session_time_skips_non_positive_and_non_numeric(self):
        views = [
            pv("a", session_time=40),
            pv("b", session_time=0),
            pv("c", session_time=-5),
            pv("d", session_time="12"),
            pv("e", session_time=True),
            pv("f"),
        ]
        assert aggregator.average_session_time(views) == 40

    def test_average_session_time_empty(self):
        assert aggregator.average_session_time([]) == 0

    def test_unique_visitors_prefers_user_then_session(self):
        views = [
            pv("1", user_id="u1", session_id="s1"),
            pv("2", user_id="u1", session_id="s2"),
            pv("3", session_id="s3"),
            pv("4", session_id="s3"),
            pv("5"),
            pv("6", user_id="", session_id=""),
        ]
        assert aggregator.unique_visitors(views) == 2

    def test_bounce_rate(self):
        views = [pv("p1"), pv("p2"), pv("p3"), pv("p4")]
        events = [ev("click", session_id="p1"), ev("scroll", session_id="p1"), ev("click", session_id="p3")]
        assert aggregator.bounce_rate(views, events) == 50.0

    def test_bounce_rate_without_pageviews(self):
        assert aggregator.bounce_rate([], [ev("click", session_id="p1")]) == 0


# =============================================================================
# PERFORMANCE
# =============================================================================

def test_field_average_ignores_missing_and_non_numeric():
    samples = [
        PerformanceSample(load_time=100, render_time=10),
        PerformanceSample(load_time=300, render_time="fast"),
        PerformanceSample(render_time=None, interaction_delay=False),
    ]
    assert aggregator.field_average(samples, "load_time") == 200
    assert aggregator.field_average(samples, "render_time") == 10
    assert aggregator.field_average(samples, "interaction_delay") == 0


# =============================================================================
# BEHAVIOR
# =============================================================================

class TestBehavior:

    def test_top_actions_caps_and_orders_ties_by_first_seen(self):
        names = [f"a{i}" for i in range(11)]
        events = [ev(n) for n in names] + [ev("a7")]

        top = aggregator.top_actions(events)

        assert len(top) == 10
        assert (top[0].action, top[0].count) == ("a7", 2)
        assert [t.action for t in top[1:]] == ["a0", "a1", "a2", "a3", "a4", "a5", "a6", "a8", "a9"]
        assert all(t.count == 1 for t in top[1:])

    def test_top_actions_counts_missing_action_as_unknown(self):
        top = aggregator.top_actions([ev(), ev(), ev("click")])
        assert (top[0].action, top[0].count) == ("unknown", 2)

    def test_conversion_rate_single_pageview(self):
        views = [pv("p1")]
        events = [ev("conversion", session_id="p1")]
        assert aggregator.conversion_rate(views, events) == 100

    def test_conversion_rate_counts_get_started_and_ignores_strays(self):
        views = [pv("p1"), pv("p2"), pv("p3"), pv("p4")]
        events = [
            ev("get_started", session_id="p2"),
            ev("conversion", session_id="p2"),
            ev("conversion", session_id="elsewhere"),
            ev("click", session_id="p3"),
        ]
        assert aggregator.conversion_rate(views, events) == 25.0

    def test_retention_rate(self):
        views = [
            pv("1", user_id="u1"),
            pv("2", user_id="u1", is_returning=True),
            pv("3", user_id="u2", is_returning=False),
            pv("4", is_returning=True),
        ]
        assert aggregator.retention_rate(views) == 50.0

    def test_retention_rate_without_users(self):
        assert aggregator.retention_rate([pv("1", session_id="s", is_returning=True)]) == 0


@pytest.mark.parametrize("views,events", [
    ([], []),
    ([pv("p1")], []),
    ([pv("p1", user_id="u", is_returning=True)], [ev("conversion", session_id="p1")] * 3),
])
def test_rates_stay_within_bounds(views, events):
    m = aggregator.summarize(views, events, [], now=NOW).analytics
    for rate in (m.metrics.bounce_rate, m.user_behavior.conversion_rate, m.user_behavior.retention_rate):
        assert 0 <= rate <= 100


def test_empty_summary_is_all_zero():
    report = aggregator.summarize([], [], [], now=NOW)
    body = report.model_dump(by_alias=True)
    assert body["analytics"]["metrics"] == {
        "pageViews": 0,
        "uniqueVisitors": 0,
        "averageSessionTime": 0,
        "bounceRate": 0,
    }
    assert body["analytics"]["userBehavior"] == {"topActions": [], "conversionRate": 0, "retentionRate": 0}
    assert body["dataPoints"] == {"sessions": 0, "events": 0, "performance": 0}


def test_non_finite_values_are_not_numbers():
    inf, nan = float("inf"), float("nan")
    samples = [PerformanceSample(load_time=inf), PerformanceSample(load_time=nan), PerformanceSample(load_time=50)]
    assert aggregator.field_average(samples, "load_time") == 50
    assert aggregator.average_session_time([pv("a", session_time=inf), pv("b", session_time=10 ** 400)]) == 0
    assert aggregator.field_average([PerformanceSample(load_time=1.7e308), PerformanceSample(load_time=1.7e308)], "load_time") == 1.7e308
