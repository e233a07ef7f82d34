from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest
import responses
from responses import matchers

from household_portfolio.providers.base import ProviderError
from household_portfolio.providers.frankfurter_client import (
    FrankfurterAPIError,
    FrankfurterClient,
    FrankfurterClientConfig,
)
from household_portfolio.providers.frankfurter_provider import FrankfurterProvider

from tests.fixtures import load_json

BASE_URL = "https://api.frankfurter.app"


@pytest.fixture()
def client():
    config = FrankfurterClientConfig(
        base_url=BASE_URL,
        timeout=2,
        max_retries=1,
        backoff_seconds=0,
    )
    return FrankfurterClient(config)


@responses.activate
def test_frankfurter_client_returns_payload(client):
    responses.add(
        responses.GET,
        f"{BASE_URL}/latest",
        json=load_json("frankfurter_latest_usd.json"),
        match=[matchers.query_param_matcher({"from": "USD", "to": "EUR,GBP,INR"})],
        status=200,
    )

    data = client.latest("USD", ["EUR", "GBP", "INR"])

    assert data["base"] == "USD"
    assert data["rates"]["GBP"] == 0.7869


@responses.activate
def test_frankfurter_client_raises_on_http_error(client):
    responses.add(responses.GET, f"{BASE_URL}/latest", status=500)

    with pytest.raises(FrankfurterAPIError):
        client.latest("USD", [])


@responses.activate
def test_frankfurter_client_validates_payload(client):
    responses.add(
        responses.GET,
        f"{BASE_URL}/latest",
        json={"amount": 1.0, "date": "2026-10-16"},
        status=200,
    )

    with pytest.raises(FrankfurterAPIError) as exc_info:
        client.latest("USD", [])

    assert "missing 'rates'" in str(exc_info.value)


@responses.activate
def test_frankfurter_client_surfaces_error_message(client):
    responses.add(
        responses.GET,
        f"{BASE_URL}/latest",
        json={"message": "not found"},
        status=200,
    )

    with pytest.raises(FrankfurterAPIError, match="not found"):
        client.latest("XYZ", [])


@responses.activate
def test_frankfurter_provider_requests_major_catalog_currencies(client):
    responses.add(
        responses.GET,
        f"{BASE_URL}/latest",
        json=load_json("frankfurter_latest_usd.json"),
        match=[matchers.query_param_matcher({"from": "USD", "to": "EUR,GBP,INR"})],
        status=200,
    )
    provider = FrankfurterProvider(client)

    snapshot = provider.get_latest("usd")

    assert snapshot.source == "ecb"
    assert snapshot.base_currency == "USD"
    assert snapshot.timestamp == datetime(2026, 10, 16, tzinfo=UTC)
    assert snapshot.rates == {
        "EUR": Decimal("0.9208"),
        "GBP": Decimal("0.7869"),
        "INR": Decimal("83.39"),
    }


@responses.activate
def test_frankfurter_provider_wraps_errors(client):
    responses.add(responses.GET, f"{BASE_URL}/latest", status=503)

    with pytest.raises(ProviderError):
        FrankfurterProvider(client).get_latest("USD")
