# backend/datadash/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import status as http


class AppError(Exception):
    """Base error rendered through the response envelope by the app exception handler."""

    code = "INTERNAL_ERROR"
    status_code = http.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    status_code = http.HTTP_400_BAD_REQUEST


class CsvParseError(ValidationError):
    code = "CSV_PARSE_ERROR"


class TooManyErrors(ValidationError):
    code = "TOO_MANY_ERRORS"


class ConflictError(AppError):
    code = "CONFLICT"
    status_code = http.HTTP_409_CONFLICT


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = http.HTTP_404_NOT_FOUND


class NotConfiguredError(AppError):
    code = "NOT_CONFIGURED"
    status_code = http.HTTP_503_SERVICE_UNAVAILABLE


class InternalError(AppError):
    pass


__all__ = [
    "AppError",
    "ValidationError",
    "CsvParseError",
    "TooManyErrors",
    "ConflictError",
    "NotFoundError",
    "NotConfiguredError",
    "InternalError",
]
