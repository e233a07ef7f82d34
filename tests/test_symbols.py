from __future__ import annotations

import pytest

from household_portfolio.models import StockSymbol


@pytest.fixture()
def symbols(db_session):
    db_session.add_all(
        [
            StockSymbol(ticker="VUSAL_EQ", name="Vanguard S&P 500 UCITS ETF", type="ETF", currency_code="GBX", isin="IE00B3XXRP09"),
            StockSymbol(ticker="LGENL_EQ", name="Legal & General Group", type="STOCK", currency_code="GBX", isin="GB0005603997"),
            StockSymbol(ticker="AAPL_US_EQ", name="Apple Inc", short_name="AAPL", type="STOCK", currency_code="USD", isin="US0378331005"),
        ]
    )
    db_session.commit()


def test_lookup_by_ticker_is_case_insensitive(client, symbols):
    response = client.get("/symbols/aapl_us_eq")

    assert response.status_code == 200
    assert response.get_json() == {
        "ticker": "AAPL_US_EQ",
        "name": "Apple Inc",
        "short_name": "AAPL",
        "isin": "US0378331005",
        "type": "STOCK",
        "currency_code": "USD",
    }


def test_lookup_unknown_ticker(client, symbols):
    response = client.get("/symbols/NOPE")

    assert response.status_code == 404
    assert response.get_json()["ticker"] == "NOPE"


@pytest.mark.parametrize(
    ("params", "expected"),
    [
        ({}, ["AAPL_US_EQ", "LGENL_EQ", "VUSAL_EQ"]),
        ({"search": "general"}, ["LGENL_EQ"]),
        ({"search": "us0378"}, ["AAPL_US_EQ"]),
        ({"type": "etf"}, ["VUSAL_EQ"]),
        ({"currency": "gbx"}, ["LGENL_EQ", "VUSAL_EQ"]),
        ({"currency": "GBX", "limit": 1}, ["LGENL_EQ"]),
    ],
)
def test_search_symbols(client, symbols, params, expected):
    response = client.get("/symbols", query_string=params)

    assert response.status_code == 200
    assert [item["ticker"] for item in response.get_json()["items"]] == expected


def test_search_validates_limit(client, symbols):
    assert client.get("/symbols", query_string={"limit": 0}).status_code == 422
