# datadash/routers/data.py
from __future__ import annotations

import math
from datetime import timedelta
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status

from datadash.config import get_settings
from datadash.errors import ConflictError, NotConfiguredError, NotFoundError, ValidationError
from datadash.observability.metrics import ENTRY_MUTATIONS
from datadash.schemas.common import ok, meta_now
from datadash.schemas.entries import (
    BulkDeleteIn,
    BulkDeleteOut,
    EntryCreateIn,
    EntryOut,
    EntryUpdateIn,
    FiltersEcho,
    Pagination,
)
from datadash.services.analytics import build_analytics
from datadash.services.filters import EntryFilter, build_filter, echo
from datadash.services.store import EntryStore, get_store
from datadash.services.validation import validate_entry, validate_update
from datadash.utils.dates import utc_now
from datadash.utils.numeric import coerce_int

router = APIRouter(prefix="/api/data", tags=["data"])
logger = structlog.get_logger(__name__)


def _require_writable(store: EntryStore) -> None:
    if not store.writable:
        raise NotConfiguredError(store.reason)


def _checked(f: EntryFilter) -> EntryFilter:
    if not f.is_valid:
        raise ValidationError("Invalid filter parameters", code="INVALID_FILTER", details={"errors": f.errors})
    return f


def _entry_id(raw) -> int:
    entry_id = coerce_int(raw)
    if entry_id is None:
        raise ValidationError("ID is required", details={"id": "A numeric id is required"})
    return entry_id


# ---------------------------------------------------------------------------
# GET /api/data  -> page of entries + analytics over the full filtered set
# ---------------------------------------------------------------------------
@router.get("")
def list_entries(
    start_date: Optional[str] = Query(None, description="Inclusive start (ISO date/datetime); needs end_date"),
    end_date: Optional[str] = Query(None, description="Inclusive end (ISO date/datetime); needs start_date"),
    category: Optional[str] = Query(None),
    source: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Matches category/source, or an exact value when numeric"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    store: EntryStore = Depends(get_store),
):
    settings = get_settings()
    limit = min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
    f = _checked(build_filter(start_date, end_date, category, source, search))

    # Analytics use every filtered entry, not just the requested page.
    matching = store.list(f)
    total_count = len(matching)
    offset = (page - 1) * limit
    page_rows = matching[offset:offset + limit]

    analytics = build_analytics(matching, horizon_days=settings.FORECAST_HORIZON_DAYS)
    filters = FiltersEcho(
        **echo(start_date=start_date, end_date=end_date, category=category, source=source, search=search)
    )

    return ok(
        data={
            "entries": [EntryOut.model_validate(e).model_dump() for e in page_rows],
            "analytics": analytics.model_dump(),
            "pagination": Pagination(
                page=page,
                limit=limit,
                total_count=total_count,
                total_pages=math.ceil(total_count / limit),
            ).model_dump(),
            "filters": filters.model_dump(),
        },
        meta=meta_now(storage=store.kind),
    )


# ---------------------------------------------------------------------------
# POST /api/data  -> create one entry (first validation failure wins)
# ---------------------------------------------------------------------------
@router.post("", status_code=status.HTTP_201_CREATED)
def create_entry(body: EntryCreateIn, store: EntryStore = Depends(get_store)):
    _require_writable(store)
    now = utc_now()
    result = validate_entry(body.model_dump(), now=now, collect_all=False)
    if not result.is_valid:
        issue = result.issues[0]
        raise ValidationError(issue.message, code=issue.code, details=result.details())

    c = result.candidate
    window_start = now - timedelta(minutes=get_settings().DUPLICATE_WINDOW_MINUTES)
    if store.find_duplicate(c.value, c.category, c.source, window_start) is not None:
        raise ConflictError(
            "Duplicate entry",
            code="DUPLICATE_ENTRY",
            details={"reason": "Similar entry exists within the last hour"},
        )

    entry = store.create(c)
    ENTRY_MUTATIONS.labels(operation="create").inc()
    logger.info("entry.created", entry_id=entry.id, category=entry.category, source=entry.source)
    return ok(data=EntryOut.model_validate(entry).model_dump(), meta=meta_now(storage=store.kind), status_code=201)


# ---------------------------------------------------------------------------
# PUT /api/data  -> partial update of value/category/source
# ---------------------------------------------------------------------------
@router.put("")
def update_entry(body: EntryUpdateIn, store: EntryStore = Depends(get_store)):
    _require_writable(store)
    entry_id = _entry_id(body.id)
    result, changes = validate_update(body.model_dump(exclude={"id"}))
    if not result.is_valid:
        issue = result.issues[0]
        raise ValidationError(issue.message, code=issue.code, details=result.details())

    entry = store.update(entry_id, changes)
    ENTRY_MUTATIONS.labels(operation="update").inc()
    logger.info("entry.updated", entry_id=entry_id, fields=sorted(changes))
    return ok(data=EntryOut.model_validate(entry).model_dump(), meta=meta_now(storage=store.kind))


# ---------------------------------------------------------------------------
# DELETE /api/data?id=  -> delete one entry
# ---------------------------------------------------------------------------
@router.delete("")
def delete_entry(
    id: Optional[str] = Query(None, description="Entry id"),
    store: EntryStore = Depends(get_store),
):
    _require_writable(store)
    entry_id = _entry_id(id)
    store.delete(entry_id)
    ENTRY_MUTATIONS.labels(operation="delete").inc()
    logger.info("entry.deleted", entry_id=entry_id)
    return ok(
        data={"id": entry_id, "message": "Data entry deleted successfully"},
        meta=meta_now(storage=store.kind),
    )


# ---------------------------------------------------------------------------
# POST /api/data/bulk-delete  -> one delete per id, no atomicity across the set
# ---------------------------------------------------------------------------
@router.post("/bulk-delete")
def bulk_delete(body: BulkDeleteIn, store: EntryStore = Depends(get_store)):
    _require_writable(store)
    if not body.ids:
        raise ValidationError("No ids supplied", details={"ids": "At least one id is required"})

    deleted, not_found = [], []
    for entry_id in body.ids:
        try:
            store.delete(entry_id)
        except NotFoundError:
            not_found.append(entry_id)
            continue
        deleted.append(entry_id)
    ENTRY_MUTATIONS.labels(operation="delete").inc(len(deleted))
    logger.info("entry.bulk_deleted", deleted=len(deleted), not_found=len(not_found))
    return ok(
        data=BulkDeleteOut(deleted=deleted, not_found=not_found).model_dump(),
        meta=meta_now(storage=store.kind),
    )
