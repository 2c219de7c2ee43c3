# datadash/services/store.py
"""
Entry storage seam.

`SqlEntryStore` talks to the database through a Session; `SampleEntryStore`
serves the bundled sample dataset read-only. Both take the same EntryFilter,
so listing/export/analytics behave identically whichever one is in play.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import structlog
from fastapi import Depends, Request
from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from datadash.db.session import NOT_CONFIGURED_MESSAGE, UNREACHABLE_MESSAGE, get_db, reachable
from datadash.errors import NotConfiguredError, NotFoundError
from datadash.models.data_entry import DataEntry
from datadash.services.sample_data import load_sample_entries
from datadash.services.filters import EntryFilter, apply_filter, filter_clauses
from datadash.services.validation import EntryCandidate
from datadash.utils.dates import as_utc

logger = structlog.get_logger(__name__)

STORAGE_DATABASE = "database"
STORAGE_SAMPLE = "sample"

# Ids outside a signed 64-bit column can never exist.
MAX_ENTRY_ID = 2**63 - 1


def _check_id(entry_id: int) -> None:
    if not 0 < entry_id <= MAX_ENTRY_ID:
        raise NotFoundError(f"Data entry {entry_id} not found", details={"id": entry_id})


class EntryStore:
    kind: str = ""
    writable: bool = False
    # Why writes are refused when `writable` is False.
    reason: str = NOT_CONFIGURED_MESSAGE

    def list(self, f: EntryFilter, *, offset: int = 0, limit: Optional[int] = None) -> List[DataEntry]:
        """Entries matching `f`, newest first."""
        raise NotImplementedError

    def get(self, entry_id: int) -> DataEntry:
        raise NotImplementedError

    def find_duplicate(self, value: float, category: str, source: str, since: datetime) -> Optional[DataEntry]:
        raise NotImplementedError

    def create(self, candidate: EntryCandidate) -> DataEntry:
        raise NotImplementedError

    def update(self, entry_id: int, changes: Dict[str, Any]) -> DataEntry:
        raise NotImplementedError

    def delete(self, entry_id: int) -> None:
        raise NotImplementedError


class SqlEntryStore(EntryStore):
    kind = STORAGE_DATABASE
    writable = True

    def __init__(self, db: Session) -> None:
        self.db = db

    def _where(self, f: EntryFilter):
        clauses = filter_clauses(f)
        return and_(*clauses) if clauses else None

    def list(self, f: EntryFilter, *, offset: int = 0, limit: Optional[int] = None) -> List[DataEntry]:
        q = select(DataEntry).order_by(DataEntry.timestamp.desc(), DataEntry.id.desc())
        where = self._where(f)
        if where is not None:
            q = q.where(where)
        if offset:
            q = q.offset(offset)
        if limit is not None:
            q = q.limit(limit)
        return list(self.db.execute(q).scalars().all())

    def get(self, entry_id: int) -> DataEntry:
        _check_id(entry_id)
        entry = self.db.get(DataEntry, entry_id)
        if entry is None:
            raise NotFoundError(f"Data entry {entry_id} not found", details={"id": entry_id})
        return entry

    def find_duplicate(self, value: float, category: str, source: str, since: datetime) -> Optional[DataEntry]:
        q = (
            select(DataEntry)
            .where(
                DataEntry.value == value,
                DataEntry.category == category,
                DataEntry.source == source,
                DataEntry.timestamp >= since,
            )
            .limit(1)
        )
        return self.db.execute(q).scalars().first()

    def create(self, candidate: EntryCandidate) -> DataEntry:
        entry = DataEntry(
            timestamp=candidate.timestamp,
            value=candidate.value,
            category=candidate.category,
            source=candidate.source,
        )
        self.db.add(entry)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(entry)
        return entry

    def update(self, entry_id: int, changes: Dict[str, Any]) -> DataEntry:
        entry = self.get(entry_id)
        for key in ("value", "category", "source"):
            if key in changes:
                setattr(entry, key, changes[key])
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(entry)
        return entry

    def delete(self, entry_id: int) -> None:
        entry = self.get(entry_id)
        self.db.delete(entry)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


class SampleEntryStore(EntryStore):
    """Read-only store over a fixed list of entries; every write raises NotConfiguredError."""

    kind = STORAGE_SAMPLE
    writable = False

    def __init__(self, entries: Sequence[DataEntry], reason: str = NOT_CONFIGURED_MESSAGE) -> None:
        self.reason = reason
        self._entries = sorted(entries, key=lambda e: (as_utc(e.timestamp), e.id), reverse=True)

    def list(self, f: EntryFilter, *, offset: int = 0, limit: Optional[int] = None) -> List[DataEntry]:
        rows = apply_filter(f, self._entries)
        end = None if limit is None else offset + limit
        return rows[offset:end]

    def get(self, entry_id: int) -> DataEntry:
        _check_id(entry_id)
        for e in self._entries:
            if e.id == entry_id:
                return e
        raise NotFoundError(f"Data entry {entry_id} not found", details={"id": entry_id})

    def find_duplicate(self, value: float, category: str, source: str, since: datetime) -> Optional[DataEntry]:
        for e in self._entries:
            if (e.value, e.category, e.source) == (value, category, source) and as_utc(e.timestamp) >= since:
                return e
        return None

    def _read_only(self, *args: Any, **kwargs: Any):
        raise NotConfiguredError(self.reason)

    create = _read_only
    update = _read_only
    delete = _read_only


def _select_store(db: Optional[Session]) -> EntryStore:
    if db is None:
        logger.info("store.fallback_sample", reason="not_configured")
        return SampleEntryStore(load_sample_entries())
    if not reachable(db):
        logger.warning("store.fallback_sample", reason="unreachable")
        return SampleEntryStore(load_sample_entries(), reason=UNREACHABLE_MESSAGE)
    return SqlEntryStore(db)


def get_store(request: Request, db: Optional[Session] = Depends(get_db)) -> EntryStore:
    """
    FastAPI dependency: the database when configured and reachable, otherwise the
    bundled sample data (read-only).
    """
    store = _select_store(db)
    request.state.storage = store.kind
    return store


__all__ = ["get_store", "MAX_ENTRY_ID", "EntryStore", "SqlEntryStore", "SampleEntryStore", "STORAGE_DATABASE", "STORAGE_SAMPLE"]
