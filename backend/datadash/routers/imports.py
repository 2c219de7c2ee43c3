# datadash/routers/imports.py
from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile, status

from datadash.errors import ValidationError
from datadash.schemas.common import ok, meta_now
from datadash.services.ingestion import decode_upload, ingest_csv
from datadash.services.store import EntryStore, get_store

router = APIRouter(prefix="/api/data/import", tags=["import"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def import_csv(
    file: UploadFile = File(..., description="CSV file upload"),
    store: EntryStore = Depends(get_store),
):
    """
    CSV import.

    Behavior:
    - Only *.csv filenames are accepted (400 otherwise).
    - Structurally broken CSV or more than 50 invalid rows -> 400, nothing saved.
    - Otherwise 201 with per-row errors, duplicates and the saved entries,
      even when only some rows made it in.
    """
    filename = file.filename or ""
    if not filename.lower().endswith(".csv"):
        raise ValidationError(
            "File must be a CSV file",
            code="UNSUPPORTED_FILE_TYPE",
            details={"filename": filename or None},
        )

    raw_bytes = await file.read()
    result = ingest_csv(decode_upload(raw_bytes), store)

    return ok(
        data=result.to_payload(),
        meta=meta_now(storage=store.kind, filename=filename),
        status_code=status.HTTP_201_CREATED,
    )
