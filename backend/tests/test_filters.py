from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy import and_, select

from _helpers import entry
from datadash.models import DataEntry
from datadash.services.filters import apply_filter, build_filter, filter_clauses


ENTRIES = [
    entry(42, "Sales", "Web", "2024-03-01T09:00:00Z", id=1),
    entry(10, "Region-42", "Store", "2024-03-02T09:00:00Z", id=2),
    entry(15, "Marketing", "Partner 42", "2024-03-03T09:00:00Z", id=3),
    entry(20, "Wholesales", "Mobile", "2024-03-04T23:30:00Z", id=4),
    entry(25, "Support", "Web", "2024-03-05T09:00:00Z", id=5),
]


def _ids(rows):
    return sorted(r.id for r in rows)


def test_no_params_matches_everything():
    f = build_filter()
    assert f.is_valid
    assert _ids(apply_filter(f, ENTRIES)) == [1, 2, 3, 4, 5]


def test_numeric_search_ors_value_and_labels():
    f = build_filter(search="42")
    assert f.search_number == 42.0
    assert _ids(apply_filter(f, ENTRIES)) == [1, 2, 3]


def test_text_search_is_case_insensitive_containment_only():
    f = build_filter(search="SALES")
    assert f.search_number is None
    assert _ids(apply_filter(f, ENTRIES)) == [1, 4]


def test_category_and_source_are_exact_and_anded():
    assert _ids(apply_filter(build_filter(category="Sales"), ENTRIES)) == [1]
    assert _ids(apply_filter(build_filter(source="Web"), ENTRIES)) == [1, 5]
    assert _ids(apply_filter(build_filter(source="Web", search="support"), ENTRIES)) == [5]


def test_date_range_needs_both_bounds_and_is_inclusive():
    only_start = build_filter(start_date="2024-03-04")
    assert not only_start.has_date_range
    assert len(apply_filter(only_start, ENTRIES)) == 5

    f = build_filter(start_date="2024-03-02T09:00:00Z", end_date="2024-03-04")
    # end date without a time covers the whole day
    assert _ids(apply_filter(f, ENTRIES)) == [2, 3, 4]


def test_bad_dates_are_reported_not_raised():
    f = build_filter(start_date="yesterday-ish", end_date="2024-03-04")
    assert not f.is_valid
    assert f.errors == ["Invalid start_date 'yesterday-ish'"]
    assert not f.has_date_range


@pytest.mark.parametrize(
    "params",
    [
        {},
        {"search": "42"},
        {"search": "web"},
        {"category": "Sales"},
        {"start_date": "2024-03-02", "end_date": "2024-03-04", "search": "e"},
    ],
)
def test_sql_and_in_memory_paths_agree(db, params):
    for e in ENTRIES:
        db.add(DataEntry(id=e.id, value=e.value, category=e.category, source=e.source, timestamp=e.timestamp))
    db.commit()

    f = build_filter(**params)
    clauses = filter_clauses(f)
    q = select(DataEntry)
    if clauses:
        q = q.where(and_(*clauses))
    from_db = db.execute(q).scalars().all()
    assert _ids(from_db) == _ids(apply_filter(f, ENTRIES))


def test_search_escapes_like_wildcards():
    rows = [entry(1, "100% organic", "Web", id=1), entry(2, "100 organic", "Web", id=2)]
    assert _ids(apply_filter(build_filter(search="100%"), rows)) == [1]


def test_timestamps_compare_in_utc():
    f = build_filter(start_date="2024-03-01T10:00:00+01:00", end_date="2024-03-01T10:00:00+01:00")
    assert f.start == datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
    assert _ids(apply_filter(f, ENTRIES)) == [1]
