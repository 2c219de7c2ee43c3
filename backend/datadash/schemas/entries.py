from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    value: float
    category: str
    source: str


class EntryCreateIn(BaseModel):
    # Raw values are kept loose on purpose; the validation service owns the rules
    # and reports them in the error envelope instead of a 422.
    value: Any = None
    category: Any = None
    source: Any = None
    timestamp: Any = None


class EntryUpdateIn(BaseModel):
    id: Any = None
    value: Any = None
    category: Any = None
    source: Any = None


class BulkDeleteIn(BaseModel):
    ids: List[int] = Field(default_factory=list)


class BulkDeleteOut(BaseModel):
    deleted: List[int]
    not_found: List[int]


class Pagination(BaseModel):
    page: int
    limit: int
    total_count: int
    total_pages: int


class FiltersEcho(BaseModel):
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    category: Optional[str] = None
    source: Optional[str] = None
    search: Optional[str] = None
