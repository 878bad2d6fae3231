"""
Logging setup for rental-calendar.

Log lines carry the current request id and the authenticated owner
(both held in context variables), plus optional entity/extra fields.
Plain text for local runs, one JSON object per line when LOG_JSON is on.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

request_id_var: ContextVar[str] = ContextVar('request_id', default='')
owner_id_var: ContextVar[str] = ContextVar('owner_id', default='')

# LogRecord attribute -> JSON key
STRUCTURED_ATTRS = (
    ("entity_type", "entity_type"),
    ("entity_id", "entity_id"),
    ("duration_ms", "duration_ms"),
    ("extra_data", "data"),
)

NOISY_LOGGERS = ("httpx", "sqlalchemy.engine", "multipart")


class JSONFormatter(logging.Formatter):
    """One JSON document per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        for key, var in (("request_id", request_id_var), ("owner_id", owner_id_var)):
            value = var.get()
            if value:
                payload[key] = value

        for attr, key in STRUCTURED_ATTRS:
            if hasattr(record, attr):
                payload[key] = getattr(record, attr)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class StructuredLogger(logging.LoggerAdapter):
    """LoggerAdapter with helpers for the events this service emits."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def log_with_context(
        self,
        level: int,
        msg: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        duration_ms: Optional[float] = None,
        **fields
    ):
        extra: Dict[str, Any] = {}
        if entity_type:
            extra["entity_type"] = entity_type
        if entity_id:
            extra["entity_id"] = entity_id
        if duration_ms is not None:
            extra["duration_ms"] = duration_ms
        if fields:
            extra["extra_data"] = fields
        self.log(level, msg, extra=extra)

    def calendar_updated(self, listing_id: str, dates_count: int):
        self.log_with_context(
            logging.INFO,
            f"Calendar updated: {dates_count} date(s)",
            entity_type="listing",
            entity_id=listing_id,
            dates_count=dates_count,
        )

    def dates_blocked(self, listing_id: str, start: str, end: str, reason: Optional[str]):
        """The block reason is not stored anywhere else."""
        self.log_with_context(
            logging.INFO,
            f"Dates blocked: {start} -> {end}",
            entity_type="listing",
            entity_id=listing_id,
            start_date=start,
            end_date=end,
            reason=reason,
        )

    def search_performed(self, kind: str, results: int, **filters):
        self.log_with_context(
            logging.INFO,
            f"Listing search ({kind}): {results} result(s)",
            search_kind=kind,
            results=results,
            filters=filters,
        )

    def api_request(self, method: str, path: str, status_code: int, duration_ms: float):
        level = logging.WARNING if status_code >= 500 else logging.INFO
        self.log_with_context(
            level,
            f"{method} {path} - {status_code}",
            duration_ms=duration_ms,
            method=method,
            path=path,
            status_code=status_code,
        )


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """
    Route all logging (uvicorn included) through a single stdout handler.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s"))

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers = [handler]

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(logging.getLogger(name), {})


def set_request_context(request_id: str, owner_id: Optional[str] = None):
    request_id_var.set(request_id)
    if owner_id:
        owner_id_var.set(owner_id)


def clear_request_context():
    request_id_var.set('')
    owner_id_var.set('')
