"""Structured JSON logging.

Every record gets ``service`` and ``request_id`` fields injected by
``RequestContextFilter``; the request id comes from a context variable set by
the HTTP middleware in ``main``.

Usage::

    configure_logging(level="INFO", service_name="booking-dashboard")
    logger = logging.getLogger(__name__)
    logger.info("meetings fetched", extra={"count": 3})

Never log tokens, grant ids or participant details.
"""
from __future__ import annotations
import logging
from contextvars import ContextVar
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

LOG_FIELDS = ("asctime", "levelname", "name", "message", "request_id", "service")

FIELD_RENAME_MAP = {
    "levelname": "level",
    "name": "logger",
}

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestContextFilter(logging.Filter):
    def __init__(self, service_name: str):
        super().__init__()
        self._service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        # explicit extra={"request_id": ...} wins over the context variable
        if not getattr(record, "request_id", None):
            record.request_id = request_id_var.get()
        record.service = self._service_name
        return True


def create_json_formatter() -> JsonFormatter:
    format_string = " ".join(f"%({field})s" for field in LOG_FIELDS)
    return JsonFormatter(format_string, rename_fields=FIELD_RENAME_MAP)


def configure_logging(level: str = "INFO", service_name: str = "booking-dashboard",
                      handler: Optional[logging.Handler] = None) -> None:
    """Install a single JSON handler on the root logger.

    Raises ValueError for an unknown level name.
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(f"invalid log level: {level}")

    handler = handler or logging.StreamHandler()
    handler.setLevel(level_upper)
    handler.setFormatter(create_json_formatter())
    handler.addFilter(RequestContextFilter(service_name))

    root = logging.getLogger()
    root.setLevel(level_upper)
    root.handlers = [handler]
