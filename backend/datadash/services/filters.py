# datadash/services/filters.py
"""
Request filters -> one predicate, usable against the database or an in-memory list.

Rules:
  - date range only when both bounds are supplied, inclusive on both ends
    (a date-only end bound covers that whole UTC day)
  - category / source are exact matches
  - search: case-insensitive containment on category OR source, plus exact
    value equality when the text parses as a number
  - every active clause is AND-ed
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, or_

from datadash.models.data_entry import DataEntry
from datadash.utils.dates import as_utc, coerce_timestamp, is_date_only
from datadash.utils.numeric import coerce_float


@dataclass(frozen=True)
class EntryFilter:
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    category: Optional[str] = None
    source: Optional[str] = None
    search: Optional[str] = None
    search_number: Optional[float] = None
    errors: List[str] = field(default_factory=list)

    @property
    def has_date_range(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _clean(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = str(v).strip()
    return v or None


def build_filter(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    category: Optional[str] = None,
    source: Optional[str] = None,
    search: Optional[str] = None,
) -> EntryFilter:
    errors: List[str] = []
    start_raw, end_raw = _clean(start_date), _clean(end_date)

    start = end = None
    if start_raw and end_raw:
        start = coerce_timestamp(start_raw)
        end = coerce_timestamp(end_raw)
        if start is None:
            errors.append(f"Invalid start_date '{start_raw}'")
        if end is None:
            errors.append(f"Invalid end_date '{end_raw}'")
        elif is_date_only(end_raw):
            end = end + timedelta(days=1) - timedelta(microseconds=1)
        if errors:
            start = end = None

    text = _clean(search)
    return EntryFilter(
        start=start,
        end=end,
        category=_clean(category),
        source=_clean(source),
        search=text,
        search_number=coerce_float(text) if text else None,
        errors=errors,
    )


def filter_clauses(f: EntryFilter) -> list:
    """SQLAlchemy WHERE clauses for DataEntry (AND them together)."""
    clauses = []
    if f.has_date_range:
        clauses.append(DataEntry.timestamp >= f.start)
        clauses.append(DataEntry.timestamp <= f.end)
    if f.category:
        clauses.append(DataEntry.category == f.category)
    if f.source:
        clauses.append(DataEntry.source == f.source)
    if f.search:
        needle = f.search.lower()
        search_or = [
            func.lower(DataEntry.category).contains(needle, autoescape=True),
            func.lower(DataEntry.source).contains(needle, autoescape=True),
        ]
        if f.search_number is not None:
            search_or.insert(0, DataEntry.value == f.search_number)
        clauses.append(or_(*search_or))
    return clauses


def matches(f: EntryFilter, entry: Any) -> bool:
    if f.has_date_range:
        ts = as_utc(entry.timestamp)
        if ts < f.start or ts > f.end:
            return False
    if f.category and entry.category != f.category:
        return False
    if f.source and entry.source != f.source:
        return False
    if f.search:
        needle = f.search.lower()
        hit = needle in entry.category.lower() or needle in entry.source.lower()
        if not hit and f.search_number is not None:
            hit = entry.value == f.search_number
        if not hit:
            return False
    return True


def apply_filter(f: EntryFilter, entries: Iterable[Any]) -> List[Any]:
    """In-memory counterpart of filter_clauses; keeps input order."""
    return [e for e in entries if matches(f, e)]


def echo(**raw: Optional[str]) -> Dict[str, Optional[str]]:
    """Filters as the caller sent them, for the response payload."""
    return {k: _clean(v) for k, v in raw.items()}


__all__ = ["EntryFilter", "build_filter", "filter_clauses", "apply_filter", "matches", "echo"]
