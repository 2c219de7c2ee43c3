from __future__ import annotations

import pytest

from _helpers import entry
from datadash.services.analytics import aggregate, build_analytics, category_sums, daily_trends


ENTRIES = [
    entry(10, "Sales", "Web", "2024-03-01T09:00:00Z", id=1),
    entry(5, "Support", "Web", "2024-03-01T23:59:59Z", id=2),
    entry(20, "Sales", "Mobile", "2024-03-02T00:00:00Z", id=3),
    entry(15, "Marketing", "Store", "2024-03-03T12:00:00+05:00", id=4),
]


def test_empty_set_is_all_zero():
    snap = build_analytics([])
    assert snap.total_entries == 0
    assert snap.total_value == 0
    assert snap.average_value == 0
    assert snap.min_value == 0 and snap.max_value == 0
    assert snap.categories == [] and snap.sum_by_category == [] and snap.trends == []
    assert snap.trend_analysis.direction == "stable"
    assert snap.forecast == []


def test_descriptive_stats():
    snap = aggregate(ENTRIES)
    assert snap.total_entries == 4
    assert snap.total_value == pytest.approx(50)
    assert snap.average_value == pytest.approx(12.5)
    assert snap.min_value == 5 and snap.max_value == 20


def test_categories_follow_first_appearance():
    sums = category_sums(ENTRIES)
    assert [c.category for c in sums] == ["Sales", "Support", "Marketing"]
    assert sums[0].sum == pytest.approx(30) and sums[0].count == 2


def test_daily_buckets_use_utc_day():
    trends = daily_trends(reversed(ENTRIES))
    assert [(t.date, t.total, t.count) for t in trends] == [
        ("2024-03-01", 15.0, 2),
        ("2024-03-02", 20.0, 1),
        # 12:00 at +05:00 is 07:00 UTC
        ("2024-03-03", 15.0, 1),
    ]


def test_analytics_is_idempotent_and_order_independent():
    first = build_analytics(ENTRIES).model_dump()
    again = build_analytics(ENTRIES).model_dump()
    shuffled = build_analytics(list(reversed(ENTRIES))).model_dump()
    assert first == again
    assert first["trends"] == shuffled["trends"]
    assert first["forecast"] == shuffled["forecast"]


def test_build_analytics_fills_trend_and_forecast():
    snap = build_analytics(ENTRIES, horizon_days=3)
    assert snap.trend_analysis.direction in {"increasing", "decreasing", "stable"}
    assert len(snap.forecast) == 3
    assert snap.forecast[0].date == "2024-03-04"
