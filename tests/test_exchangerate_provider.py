from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest
import responses

from household_portfolio.providers.base import ProviderError
from household_portfolio.providers.exchangerate_client import (
    ExchangeRateAPIClient,
    ExchangeRateAPIClientConfig,
)
from household_portfolio.providers.exchangerate_provider import ExchangeRateAPIProvider

from tests.fixtures import load_json

BASE_URL = "https://api.exchangerate-api.com/v4"


@pytest.fixture()
def provider():
    config = ExchangeRateAPIClientConfig(
        base_url=BASE_URL,
        timeout=2,
        max_retries=1,
        backoff_seconds=0,
    )
    return ExchangeRateAPIProvider(ExchangeRateAPIClient(config))


@responses.activate
def test_get_latest_returns_normalized_snapshot(provider):
    responses.add(
        responses.GET,
        f"{BASE_URL}/latest/USD",
        json=load_json("exchangerate_latest_usd.json"),
        status=200,
    )

    snapshot = provider.get_latest("usd")

    assert snapshot.base_currency == "USD"
    assert snapshot.source == "exchange"
    assert snapshot.timestamp == datetime.fromtimestamp(1792108801, tz=UTC)
    assert snapshot.rates["EUR"] == Decimal("0.9213")
    assert snapshot.rates["INR"] == Decimal("83.42")


@responses.activate
def test_get_latest_falls_back_to_date_field(provider):
    payload = load_json("exchangerate_latest_usd.json")
    payload.pop("time_last_updated")
    responses.add(responses.GET, f"{BASE_URL}/latest/USD", json=payload, status=200)

    snapshot = provider.get_latest("USD")

    assert snapshot.timestamp == datetime(2026, 10, 16, tzinfo=UTC)


@responses.activate
def test_provider_wraps_http_errors(provider):
    responses.add(responses.GET, f"{BASE_URL}/latest/USD", status=500)

    with pytest.raises(ProviderError) as exc_info:
        provider.get_latest("USD")

    assert "Server error 500" in str(exc_info.value)


@responses.activate
def test_provider_rejects_error_payload(provider):
    responses.add(
        responses.GET,
        f"{BASE_URL}/latest/USD",
        json={"result": "error", "error-type": "invalid-key"},
        status=200,
    )

    with pytest.raises(ProviderError, match="invalid-key"):
        provider.get_latest("USD")


@responses.activate
def test_provider_rejects_payload_without_rates(provider):
    responses.add(
        responses.GET,
        f"{BASE_URL}/latest/USD",
        json={"base": "USD", "date": "2026-10-16"},
        status=200,
    )

    with pytest.raises(ProviderError, match="missing 'rates'"):
        provider.get_latest("USD")


def test_provider_rejects_blank_base(provider):
    with pytest.raises(ProviderError):
        provider.get_latest("  ")


def test_from_config_uses_defaults_for_blank_url():
    provider = ExchangeRateAPIProvider.from_config({"RATES_API_BASE_URL": ""})
    assert provider._client._config.base_url == BASE_URL  # type: ignore[attr-defined]
