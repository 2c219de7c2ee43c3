from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple
import csv, io

import structlog

from datadash.config import get_settings
from datadash.errors import CsvParseError, NotConfiguredError, TooManyErrors
from datadash.observability.metrics import IMPORT_ROWS
from datadash.schemas.entries import EntryOut
from datadash.schemas.ingestion import ImportResult, RejectedRow
from datadash.services.store import EntryStore
from datadash.services.validation import EntryCandidate, validate_entry
from datadash.utils.dates import utc_now

logger = structlog.get_logger(__name__)

HEADER_ROW_OFFSET = 2  # 1-based line numbers plus the header line
REQUIRED_COLUMNS = ("value", "category", "source")
MISSING_REQUIRED = "Missing required fields (value, category, source)"


# ---------------------------------------------------------------------------
# Parsing (text -> row dicts). Structural problems abort the whole import.
# ---------------------------------------------------------------------------

def parse_csv_text(raw_text: str) -> List[Dict[str, str]]:
    """
    Parse CSV text with a header row into dicts keyed by lower-cased, trimmed header names.

    Blank lines are skipped. Raises CsvParseError listing every structural issue
    (missing header, bad quoting, rows with a different field count than the header).
    """
    text = raw_text.lstrip("\ufeff")
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)

    issues: List[str] = []
    header: Optional[List[str]] = None
    rows: List[Dict[str, str]] = []
    try:
        for fields in reader:
            if not any(f.strip() for f in fields):
                continue
            if header is None:
                header = [f.strip().lower() for f in fields]
                continue
            if len(fields) != len(header):
                issues.append(
                    f"Line {reader.line_num}: expected {len(header)} fields, found {len(fields)}"
                )
                continue
            rows.append(dict(zip(header, fields)))
    except csv.Error as exc:
        issues.append(f"Line {reader.line_num}: {exc}")

    if header is None and not issues:
        issues.append("CSV has no header row")
    if issues:
        raise CsvParseError("CSV parsing error", details={"errors": issues})
    return rows


def decode_upload(file_bytes: bytes) -> str:
    """UTF-8 (BOM tolerant) decode of an uploaded file."""
    try:
        return file_bytes.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise CsvParseError("CSV must be UTF-8 encoded", details={"errors": [str(exc)]}) from exc


# ---------------------------------------------------------------------------
# Main processor used by /api/data/import
# ---------------------------------------------------------------------------

def _validate_rows(
    rows: List[Dict[str, str]], now: datetime
) -> Tuple[List[Tuple[int, EntryCandidate]], List[RejectedRow]]:
    valid: List[Tuple[int, EntryCandidate]] = []
    rejected: List[RejectedRow] = []
    for index, row in enumerate(rows):
        row_number = index + HEADER_ROW_OFFSET
        if any(not (row.get(col) or "").strip() for col in REQUIRED_COLUMNS):
            rejected.append(RejectedRow(row=row_number, reasons=[MISSING_REQUIRED]))
            continue
        result = validate_entry(row, now=now, collect_all=True)
        if result.is_valid:
            valid.append((row_number, result.candidate))
        else:
            rejected.append(RejectedRow(row=row_number, reasons=result.errors))
    return valid, rejected


def _row_message(rejected: RejectedRow) -> str:
    return f"Row {rejected.row}: {'; '.join(rejected.reasons)}"


def ingest_csv(raw_text: str, store: EntryStore, *, now: Optional[datetime] = None) -> ImportResult:
    """
    Validate every row, stop early on pathological uploads, skip recent duplicates,
    then persist the rest one row at a time.
    """
    if not store.writable:
        raise NotConfiguredError(store.reason)

    settings = get_settings()
    now = now or utc_now()
    rows = parse_csv_text(raw_text)
    valid, rejected = _validate_rows(rows, now)
    errors = [_row_message(r) for r in rejected]

    max_errors = settings.IMPORT_MAX_ERRORS
    if len(rejected) > max_errors:
        IMPORT_ROWS.labels(outcome="rejected").inc(len(rejected))
        logger.info("ingest.too_many_errors", total_rows=len(rows), total_errors=len(rejected))
        raise TooManyErrors(
            "Too many validation errors",
            details={"errors": errors[:max_errors], "total_errors": len(rejected)},
        )

    window_start = now - timedelta(minutes=settings.DUPLICATE_WINDOW_MINUTES)
    duplicates: List[str] = []
    saved: List[EntryOut] = []
    failed = 0

    # Sequential on purpose: each duplicate probe must see rows saved earlier in this call.
    for row_number, c in valid:
        if store.find_duplicate(c.value, c.category, c.source, window_start) is not None:
            duplicates.append(
                f"Row {row_number}: Duplicate entry found for value: {c.value:g}, "
                f"category: {c.category}, source: {c.source}"
            )
            continue
        try:
            entry = store.create(c)
        except Exception as exc:
            failed += 1
            logger.warning("ingest.row_persist_failed", row=row_number, error=str(exc))
            errors.append(f"Row {row_number}: Failed to save entry")
            continue
        saved.append(EntryOut.model_validate(entry))

    IMPORT_ROWS.labels(outcome="imported").inc(len(saved))
    IMPORT_ROWS.labels(outcome="rejected").inc(len(rejected))
    IMPORT_ROWS.labels(outcome="duplicate").inc(len(duplicates))
    logger.info(
        "ingest.completed",
        total_rows=len(rows),
        valid_rows=len(valid),
        imported=len(saved),
        duplicates=len(duplicates),
        failed=failed,
    )

    return ImportResult(
        total_rows=len(rows),
        valid_rows=len(valid),
        imported=len(saved),
        failed=failed,
        errors=errors,
        duplicates=duplicates,
        rejected=rejected,
        data=saved,
    )
