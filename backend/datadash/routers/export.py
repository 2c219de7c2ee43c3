# datadash/routers/export.py
from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse

from datadash.errors import ValidationError
from datadash.services.export import EXPORT_FORMATS, to_csv, to_json_rows
from datadash.services.filters import build_filter
from datadash.services.store import EntryStore, get_store

router = APIRouter(prefix="/api/data/export", tags=["export"])
logger = structlog.get_logger(__name__)


@router.get("", response_class=Response)
def export_entries(
    format: str = Query("csv", description="csv | json"),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    source: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    store: EntryStore = Depends(get_store),
) -> Response:
    """
    Download every entry matching the filters, newest first.
    CSV header: ID,Timestamp,Value,Category,Source. JSON: a bare array of entries.
    """
    fmt = (format or "csv").lower()
    if fmt not in EXPORT_FORMATS:
        raise ValidationError(
            f"Unsupported format '{format}'. Use one of: csv, json",
            code="UNSUPPORTED_FORMAT",
        )
    f = build_filter(start_date, end_date, category, source, search)
    if not f.is_valid:
        raise ValidationError("Invalid filter parameters", code="INVALID_FILTER", details={"errors": f.errors})

    entries = store.list(f)
    logger.info("export.generated", format=fmt, rows=len(entries), storage=store.kind)

    disposition = {"Content-Disposition": f'attachment; filename="data-export.{fmt}"'}
    if fmt == "json":
        return JSONResponse(content=to_json_rows(entries), headers=disposition)
    return Response(
        content=to_csv(entries),
        status_code=status.HTTP_200_OK,
        media_type="text/csv",
        headers=disposition,
    )
