# datadash/services/validation.py
"""
Field rules for a single data entry.

Used two ways:
- interactive submission stops at the first failure (``collect_all=False``),
- CSV import collects every violation for the row (``collect_all=True``).

Nothing here raises for bad input; callers inspect the returned result.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from datadash.utils.dates import coerce_timestamp, utc_now
from datadash.utils.numeric import coerce_float

MAX_VALUE = 1_000_000
MAX_LABEL_LENGTH = 100

INVALID_VALUE = "InvalidValue"
VALUE_TOO_LARGE = "ValueTooLarge"
MISSING_FIELD = "MissingField"
FIELD_TOO_LONG = "FieldTooLong"
INVALID_TIMESTAMP = "InvalidTimestamp"


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    field: str
    message: str


@dataclass(frozen=True)
class EntryCandidate:
    """A validated, normalised entry ready to be persisted."""

    value: float
    category: str
    source: str
    timestamp: datetime


@dataclass
class ValidationResult:
    issues: List[ValidationIssue] = field(default_factory=list)
    candidate: Optional[EntryCandidate] = None

    @property
    def is_valid(self) -> bool:
        return not self.issues

    @property
    def errors(self) -> List[str]:
        return [i.message for i in self.issues]

    @property
    def codes(self) -> List[str]:
        return [i.code for i in self.issues]

    def details(self) -> Dict[str, str]:
        """First message per field, for the error envelope."""
        out: Dict[str, str] = {}
        for issue in self.issues:
            out.setdefault(issue.field, issue.message)
        return out


class _Collector:
    def __init__(self, collect_all: bool) -> None:
        self.collect_all = collect_all
        self.issues: List[ValidationIssue] = []

    @property
    def done(self) -> bool:
        return bool(self.issues) and not self.collect_all

    def add(self, code: str, field_name: str, message: str) -> None:
        if not self.done:
            self.issues.append(ValidationIssue(code, field_name, message))


def _is_blank(v: Any) -> bool:
    return v is None or (isinstance(v, str) and not v.strip())


def _check_value(raw: Any, out: _Collector) -> Optional[float]:
    if _is_blank(raw):
        out.add(MISSING_FIELD, "value", "Value is required")
        return None
    num = coerce_float(raw)
    if num is None or num <= 0:
        out.add(INVALID_VALUE, "value", f"Invalid value '{raw}' - must be a positive number")
        return None
    if num > MAX_VALUE:
        out.add(VALUE_TOO_LARGE, "value", f"Value '{raw}' exceeds maximum allowed value of 1,000,000")
        return None
    return num


def _check_label(raw: Any, field_name: str, out: _Collector) -> Optional[str]:
    label = "" if raw is None else str(raw).strip()
    if not label:
        out.add(MISSING_FIELD, field_name, f"{field_name.capitalize()} is required")
        return None
    if len(label) > MAX_LABEL_LENGTH:
        out.add(
            FIELD_TOO_LONG,
            field_name,
            f"{field_name.capitalize()} must be at most {MAX_LABEL_LENGTH} characters",
        )
        return None
    return label


def _check_timestamp(raw: Any, now: datetime, out: _Collector) -> Optional[datetime]:
    if _is_blank(raw):
        return now
    ts = coerce_timestamp(raw)
    if ts is None:
        out.add(INVALID_TIMESTAMP, "timestamp", f"Invalid timestamp '{raw}'")
    return ts


def validate_entry(
    candidate: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
    collect_all: bool = True,
) -> ValidationResult:
    out = _Collector(collect_all)
    now = now or utc_now()

    value = _check_value(candidate.get("value"), out)
    category = _check_label(candidate.get("category"), "category", out) if not out.done else None
    source = _check_label(candidate.get("source"), "source", out) if not out.done else None
    timestamp = _check_timestamp(candidate.get("timestamp"), now, out) if not out.done else None

    if out.issues:
        return ValidationResult(issues=out.issues)
    return ValidationResult(
        candidate=EntryCandidate(value=value, category=category, source=source, timestamp=timestamp)
    )


def validate_update(changes: Mapping[str, Any]) -> tuple[ValidationResult, Dict[str, Any]]:
    """
    Validate only the fields present in a partial update (value/category/source).
    Returns the result plus the normalised changes to apply.
    """
    out = _Collector(collect_all=False)
    clean: Dict[str, Any] = {}
    if not _is_blank(changes.get("value")):
        value = _check_value(changes["value"], out)
        if value is not None:
            clean["value"] = value
    for name in ("category", "source"):
        if not _is_blank(changes.get(name)) and not out.done:
            label = _check_label(changes[name], name, out)
            if label is not None:
                clean[name] = label
    return ValidationResult(issues=out.issues), clean


__all__ = [
    "MAX_VALUE",
    "MAX_LABEL_LENGTH",
    "ValidationIssue",
    "EntryCandidate",
    "ValidationResult",
    "validate_entry",
    "validate_update",
]
