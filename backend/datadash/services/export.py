# datadash/services/export.py
from __future__ import annotations

import csv
import io
from typing import Any, Iterable, List

from datadash.schemas.entries import EntryOut
from datadash.utils.dates import as_utc

CSV_HEADER = ["ID", "Timestamp", "Value", "Category", "Source"]
EXPORT_FORMATS = ("csv", "json")


def _iso(ts) -> str:
    return as_utc(ts).isoformat().replace("+00:00", "Z")


def to_csv(entries: Iterable[Any]) -> str:
    """
    Serialize entries to CSV with the fixed header order expected by spreadsheets
    and the dashboard's re-import path.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for e in entries:
        writer.writerow([e.id, _iso(e.timestamp), repr(float(e.value)), e.category, e.source])
    return buf.getvalue()


def to_json_rows(entries: Iterable[Any]) -> List[dict]:
    return [EntryOut.model_validate(e).model_dump(mode="json") for e in entries]


__all__ = ["CSV_HEADER", "EXPORT_FORMATS", "to_csv", "to_json_rows"]
