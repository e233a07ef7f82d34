from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from flask import Flask

from household_portfolio.logging import (
    JSONLogFormatter,
    init_request_logging,
    provider_log_extra,
    setup_logging,
)
from household_portfolio.services.currency_registry import CurrencyCode


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.INFO)
        self.records: list[logging.LogRecord] = []

    def emit(self, record):
        self.records.append(record)

    def messages(self, message: str) -> list[logging.LogRecord]:
        return [record for record in self.records if record.getMessage() == message]


@pytest.fixture()
def root_logger():
    """Give the test a bare root logger and restore the session's afterwards."""

    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    root.handlers.clear()
    yield root
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def _format(message: str, *args, **extra) -> dict:
    record = logging.LogRecord(
        name="household_portfolio.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(JSONLogFormatter().format(record))


def test_json_formatter_emits_standard_and_extra_fields():
    payload = _format("Summary for %s", "Patel", household_id=3, request_id="req-9")

    assert payload["message"] == "Summary for Patel"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "household_portfolio.test"
    assert payload["household_id"] == 3
    assert payload["request_id"] == "req-9"
    assert "timestamp" in payload
    assert "lineno" not in payload


def test_json_formatter_serializes_money_currency_and_dates():
    payload = _format(
        "Summary computed",
        total=Decimal("1500.00"),
        currency=CurrencyCode.GBP,
        as_of=datetime(2026, 10, 1, tzinfo=UTC),
    )

    assert payload["total"] == "1500.00"
    assert payload["currency"] == "GBP"
    assert payload["as_of"] == "2026-10-01T00:00:00+00:00"


def test_provider_log_extra_drops_empty_fields():
    extra = provider_log_extra(
        provider="ecb",
        base="USD",
        event="provider.fetch",
        status="success",
        duration_ms=12.34567,
        stale=False,
    )
    assert extra == {
        "event": "provider.fetch",
        "provider": "ecb",
        "base": "USD",
        "status": "success",
        "duration_ms": 12.346,
        "stale": False,
    }


@pytest.mark.parametrize(
    ("json_enabled", "level", "expected_level"),
    [("true", "DEBUG", logging.DEBUG), (True, "error", logging.ERROR)],
)
def test_setup_logging_json_mode(root_logger, json_enabled, level, expected_level):
    app = Flask(__name__)
    app.config.update(LOG_JSON_ENABLED=json_enabled, LOG_LEVEL=level)

    setup_logging(app)

    [handler] = root_logger.handlers
    assert isinstance(handler.formatter, JSONLogFormatter)
    assert root_logger.level == expected_level
    assert app.logger.level == expected_level


def test_setup_logging_plain_mode_uses_configured_format(root_logger):
    app = Flask(__name__)
    app.config.update(LOG_JSON_ENABLED=False, LOG_LEVEL="WARNING", LOG_FORMAT="%(levelname)s:%(message)s")

    setup_logging(app)
    setup_logging(app)

    [handler] = root_logger.handlers
    assert not isinstance(handler.formatter, JSONLogFormatter)
    assert handler.formatter._fmt == "%(levelname)s:%(message)s"
    assert root_logger.level == logging.WARNING


@pytest.fixture()
def traced_app(root_logger):
    app = Flask(__name__)
    app.config["TESTING"] = True

    @app.route("/ok")
    def ok():
        return "ok", 200

    @app.route("/households/<int:household_id>/summary")
    def summary(household_id):
        return "summary", 200

    @app.route("/boom")
    def boom():
        raise RuntimeError("boom")

    setup_logging(app)
    init_request_logging(app)
    handler = ListHandler()
    root_logger.addHandler(handler)
    app.captured = handler
    return app


def test_request_logging_assigns_request_id(traced_app):
    response = traced_app.test_client().get("/ok")

    [record] = traced_app.captured.messages("Request handled")
    assert record.event == "request.completed"
    assert (record.method, record.status, record.route) == ("GET", 200, "/ok")
    assert record.request_id == response.headers["X-Request-ID"]
    assert record.duration_ms >= 0
    assert not hasattr(record, "household_id")


def test_request_logging_keeps_incoming_id_and_tags_household(traced_app):
    response = traced_app.test_client().get(
        "/households/7/summary", headers={"X-Request-ID": "abc-123"}
    )

    [record] = traced_app.captured.messages("Request handled")
    assert record.request_id == "abc-123"
    assert response.headers["X-Request-ID"] == "abc-123"
    assert record.household_id == 7
    assert record.route == "/households/<int:household_id>/summary"


def test_request_logging_reports_unhandled_errors(traced_app):
    with pytest.raises(RuntimeError):
        traced_app.test_client().get("/boom")

    [record] = traced_app.captured.messages("Request failed")
    assert record.event == "request.failed"
    assert record.status == 500
    assert record.request_id
    assert record.duration_ms >= 0
    assert "boom" in record.error
