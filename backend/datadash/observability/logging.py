from __future__ import annotations

import logging
from typing import Any, Dict

import structlog

from datadash.config import get_settings

SERVICE_NAME = "datadash"


def configure_logging(level: str | None = None) -> None:
    """
    One JSON object per line on stdout, through stdlib logging so uvicorn and
    SQLAlchemy records share the handler. Every event carries service/env, and
    request-scoped fields (request_id, method, path) come from contextvars.
    """
    settings = get_settings()
    log_level = (level or settings.LOG_LEVEL).upper()

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[logging.StreamHandler()],
    )
    # request.completed already covers what the access log would say
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            _static_fields(env=settings.ENV),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def _static_fields(env: str):
    def processor(logger: Any, name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("env", env)
        return event_dict

    return processor
