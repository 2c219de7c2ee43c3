from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from datadash.schemas.entries import EntryOut


class RejectedRow(BaseModel):
    row: int
    reasons: List[str]


class ImportResult(BaseModel):
    """
    Outcome of one CSV import.

    Counts reconcile as:
      total_rows = valid_rows + len(rejected)
      valid_rows = imported + len(duplicates) + failed
    """

    success: bool = True
    total_rows: int = 0
    valid_rows: int = 0
    imported: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)
    duplicates: List[str] = Field(default_factory=list)
    rejected: List[RejectedRow] = Field(default_factory=list)
    data: List[EntryOut] = Field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def to_payload(self) -> dict:
        payload = self.model_dump()
        payload["error_count"] = self.error_count
        return payload
