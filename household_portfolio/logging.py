"""Root logger setup, per-request correlation and structured rate-fetch fields.

Every log line may carry extra fields passed through ``extra=``; the JSON
formatter emits them alongside the standard ones so household and provider
events can be filtered downstream.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from flask import Flask, g, has_request_context, request
from werkzeug.exceptions import HTTPException

REQUEST_ID_HEADER = "X-Request-ID"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_SETUP_DONE = "_logging_configured"
_REQUEST_HOOKS_DONE = "_request_logging_configured"
_TRUTHY = {"1", "true", "yes", "on"}

# Attributes present on every LogRecord; anything else came in via ``extra``.
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class JSONLogFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        body: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            body["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            body["stack"] = record.stack_info
        for key, value in vars(record).items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                body[key] = value
        return json.dumps(body, separators=(",", ":"), default=_to_json)


def setup_logging(app: Flask) -> None:
    """Route all loggers through a single root handler at ``LOG_LEVEL``."""

    if app.config.get(_SETUP_DONE):
        return

    level = _level(app.config.get("LOG_LEVEL"))
    handler = logging.StreamHandler()
    handler.setLevel(level)
    if _flag(app.config.get("LOG_JSON_ENABLED")):
        handler.setFormatter(JSONLogFormatter())
    else:
        handler.setFormatter(logging.Formatter(app.config.get("LOG_FORMAT") or DEFAULT_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    # Library and Flask loggers propagate to the root handler instead of their own.
    for name in ("werkzeug", "apscheduler"):
        logging.getLogger(name).handlers.clear()
    logging.getLogger("werkzeug").setLevel(level)
    app.logger.handlers.clear()
    app.logger.setLevel(level)
    app.logger.propagate = True

    app.config[_SETUP_DONE] = True


def init_request_logging(app: Flask) -> None:
    """Emit one summary line per request and echo its ``X-Request-ID``."""

    if app.config.get(_REQUEST_HOOKS_DONE):
        return

    @app.before_request
    def _begin():
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        g.request_started = time.perf_counter()
        g.request_logged = False

    @app.after_request
    def _completed(response):
        if getattr(g, "request_id", None):
            response.headers.setdefault(REQUEST_ID_HEADER, g.request_id)
        fields = _request_fields("request.completed", response.status_code)
        if response.status_code >= 500:
            app.logger.warning("Request handled", extra=fields)
        else:
            app.logger.info("Request handled", extra=fields)
        g.request_logged = True
        return response

    @app.teardown_request
    def _failed(exc: BaseException | None):
        if exc is None or getattr(g, "request_logged", False):
            return
        status = exc.code if isinstance(exc, HTTPException) and exc.code else 500
        app.logger.error(
            "Request failed", extra=_request_fields("request.failed", status, error=str(exc))
        )
        g.request_logged = True

    app.config[_REQUEST_HOOKS_DONE] = True


def provider_log_extra(
    *,
    provider: str,
    base: str,
    event: str,
    status: str,
    duration_ms: float | None,
    stale: bool,
    error: str | None = None,
) -> dict[str, Any]:
    """Fields attached to rate-provider fetch and fallback log lines."""

    return _compact(
        event=event,
        provider=provider,
        base=base,
        status=status,
        duration_ms=_ms(duration_ms),
        request_id=getattr(g, "request_id", None) if has_request_context() else None,
        stale=stale,
        error=error,
    )


def _request_fields(event: str, status: int, *, error: str | None = None) -> dict[str, Any]:
    started = getattr(g, "request_started", None)
    elapsed = (time.perf_counter() - started) * 1000 if started is not None else None
    rule = request.url_rule
    return _compact(
        event=event,
        route=rule.rule if rule is not None else request.path,
        method=request.method,
        status=status,
        duration_ms=_ms(elapsed),
        request_id=getattr(g, "request_id", None),
        path=request.path,
        client_ip=request.remote_addr,
        household_id=(request.view_args or {}).get("household_id"),
        error=error,
    )


def _compact(**fields: Any) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


def _ms(value: float | None) -> float | None:
    return round(value, 3) if value is not None else None


def _to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, set | frozenset | tuple):
        return list(value)
    return str(value)


def _level(value: Any) -> int:
    if isinstance(value, int):
        return value
    return getattr(logging, str(value or "INFO").upper(), logging.INFO)


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in _TRUTHY
