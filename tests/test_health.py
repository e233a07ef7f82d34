"""Smoke tests for health endpoints."""

from __future__ import annotations

from datetime import timedelta

from household_portfolio.services.exchange_rates import EXTENSION_KEY
from household_portfolio.services.fx_conversion import fallback_table


def test_health_endpoint_returns_ok(client):
    response = client.get("/health")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["status"] == "ok"
    assert payload["app"] == "household-portfolio"


def test_health_rates_reports_fresh_table(client, seeded_rates):
    response = client.get("/health/rates")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["status"] == "ok"
    assert payload["source"] == "test"
    assert payload["base_currency"] == "USD"
    assert payload["stale"] is False
    assert payload["last_updated"] is not None
    assert payload["age_seconds"] >= 0
    assert payload["last_error"] is None


def test_health_rates_reports_stale_table(client, seeded_rates):
    cache = client.application.extensions[EXTENSION_KEY]
    cache.seed(seeded_rates.mark_stale())

    payload = client.get("/health/rates").get_json()

    assert payload["status"] == "stale"
    assert payload["stale"] is True
    assert payload["source"] == "test"


def test_health_rates_reports_static_fallback(client, seeded_rates):
    cache = client.application.extensions[EXTENSION_KEY]
    cache.seed(fallback_table())

    payload = client.get("/health/rates").get_json()

    assert payload["status"] == "fallback"
    assert payload["source"] == "static"
    assert payload["last_updated"] is None
    assert payload["age_seconds"] is None


def test_health_rates_uninitialized_without_cache(client):
    app = client.application
    cache = app.extensions.pop(EXTENSION_KEY)
    try:
        payload = client.get("/health/rates").get_json()
    finally:
        app.extensions[EXTENSION_KEY] = cache

    assert payload["status"] == "uninitialized"
    assert payload["source"] is None
    assert payload["stale"] is True
