# datadash/services/analytics.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List

from datadash.schemas.analytics import AnalyticsSnapshot, CategorySum, DailyTrend
from datadash.services.forecast import forecast
from datadash.utils.dates import day_key
from datadash.utils.numeric import safe_divide


def daily_trends(entries: Iterable[Any]) -> List[DailyTrend]:
    """Group by UTC calendar day; ascending by date string."""
    buckets: Dict[str, DailyTrend] = {}
    for e in entries:
        key = day_key(e.timestamp)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = DailyTrend(date=key, total=0.0, count=0)
        bucket.total += float(e.value)
        bucket.count += 1
    return [buckets[k] for k in sorted(buckets)]


def category_sums(entries: Iterable[Any]) -> List[CategorySum]:
    """Sum/count per category, in order of first appearance."""
    sums: Dict[str, CategorySum] = {}
    for e in entries:
        row = sums.get(e.category)
        if row is None:
            row = sums[e.category] = CategorySum(category=e.category, sum=0.0, count=0)
        row.sum += float(e.value)
        row.count += 1
    return list(sums.values())


def aggregate(entries: Iterable[Any]) -> AnalyticsSnapshot:
    """
    Descriptive statistics over an already-filtered entry set.
    Trend/forecast fields are left at their defaults; see build_analytics.
    """
    rows = list(entries)
    values = [float(e.value) for e in rows]
    total = sum(values)
    by_category = category_sums(rows)

    return AnalyticsSnapshot(
        total_entries=len(rows),
        total_value=total,
        average_value=safe_divide(total, len(rows)),
        min_value=min(values) if values else 0.0,
        max_value=max(values) if values else 0.0,
        categories=[c.category for c in by_category],
        sum_by_category=by_category,
        trends=daily_trends(rows),
    )


def build_analytics(entries: Iterable[Any], horizon_days: int = 7) -> AnalyticsSnapshot:
    snapshot = aggregate(entries)
    projected = forecast(snapshot.trends, horizon_days=horizon_days)
    snapshot.trend_analysis.slope = projected.slope
    snapshot.trend_analysis.intercept = projected.intercept
    snapshot.trend_analysis.direction = projected.direction
    snapshot.forecast = projected.forecast
    return snapshot


__all__ = ["aggregate", "build_analytics", "category_sums", "daily_trends"]
