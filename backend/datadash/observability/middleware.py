from __future__ import annotations

import time
import uuid
from typing import Any, Dict, List

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from datadash.errors import AppError, InternalError, ValidationError
from datadash.schemas.common import fail
from .metrics import record_latency, REQUEST_COUNTER, REQUEST_LATENCY

logger = structlog.get_logger("http")

# Set on request.state by the store and auth dependencies.
_DOMAIN_FIELDS = ("storage", "user")


def _domain_context(request: Request) -> Dict[str, Any]:
    return {
        name: getattr(request.state, name)
        for name in _DOMAIN_FIELDS
        if getattr(request.state, name, None) is not None
    }


async def request_context_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    start = time.perf_counter()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=str(request.url.path),
    )
    try:
        response = await call_next(request)
    except Exception:
        duration = (time.perf_counter() - start) * 1000
        _record(request, duration, "500")
        logger.exception(
            "request.error",
            status_code=500,
            duration_ms=round(duration, 2),
            **_domain_context(request),
        )
        structlog.contextvars.clear_contextvars()
        raise

    duration = (time.perf_counter() - start) * 1000
    _record(request, duration, str(response.status_code))
    logger.info(
        "request.completed",
        status_code=response.status_code,
        duration_ms=round(duration, 2),
        **_domain_context(request),
    )
    response.headers["X-Request-Id"] = request_id
    structlog.contextvars.clear_contextvars()
    return response


def _record(request: Request, duration_ms: float, status: str) -> None:
    record_latency(request.url.path, duration_ms)
    REQUEST_COUNTER.labels(
        path=request.url.path,
        method=request.method,
        status=status,
    ).inc()
    REQUEST_LATENCY.labels(path=request.url.path, method=request.method).observe(
        duration_ms / 1000
    )


def register_request_middleware(app: FastAPI) -> None:
    app.middleware("http")(request_context_middleware)


def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render domain errors (validation, conflict, not found, not configured) as the error envelope."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log("request.app_error", code=exc.code, status_code=exc.status_code, error=exc.message)
    return fail(code=exc.code, message=exc.message, status_code=exc.status_code, details=exc.details)


def _field_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    out = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        out.append({"field": ".".join(loc) or "request", "message": err.get("msg", "Invalid value")})
    return out


def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed query/body parameters get the same 400 envelope as domain validation."""
    err = ValidationError("Invalid request parameters", details={"errors": _field_errors(exc)})
    return app_error_handler(request, err)


def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    logger.exception(
        "request.unhandled_exception",
        exc_type=type(exc).__name__,
        error=str(exc),
    )
    err = InternalError("Internal Server Error")
    return fail(
        code=err.code,
        message=err.message,
        status_code=err.status_code,
        details={"request_id": request_id} if request_id else None,
    )
