# datadash/utils/dates.py
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional

import pandas as pd

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(d: datetime) -> datetime:
    if d.tzinfo is None:
        return d.replace(tzinfo=timezone.utc)
    return d.astimezone(timezone.utc)


def coerce_timestamp(v: Any) -> Optional[datetime]:
    """Parse anything pandas understands into an aware UTC datetime; None when unparseable."""
    if v is None:
        return None
    if isinstance(v, datetime):
        return as_utc(v)
    if isinstance(v, str) and not v.strip():
        return None
    try:
        ts = pd.to_datetime(v, errors="coerce", utc=True)
    except (TypeError, ValueError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime() if isinstance(ts, pd.Timestamp) else as_utc(ts)


def is_date_only(v: Any) -> bool:
    return isinstance(v, str) and bool(_DATE_ONLY.match(v.strip()))


def day_key(d: datetime) -> str:
    """UTC calendar day as YYYY-MM-DD."""
    return as_utc(d).date().isoformat()


__all__ = ["utc_now", "as_utc", "coerce_timestamp", "is_date_only", "day_key"]
