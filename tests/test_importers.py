from __future__ import annotations

from decimal import Decimal

import pytest

from household_portfolio.errors import ValidationError
from household_portfolio.models import Investment, StockSymbol
from household_portfolio.services.households import DatabaseSymbolDirectory, create_household
from household_portfolio.services.importers import (
    generate_fund_symbol,
    map_trading212_portfolio,
    parse_tickertape_csv,
    upsert_investments,
)


@pytest.fixture()
def member_id(db_session):
    household = create_household("Importers", ["Asha"])
    return household.members[0].id


@pytest.mark.parametrize(
    ("fund_name", "expected"),
    [
        ("Parag Parikh Flexi Cap Fund Direct Growth", "PARA_PARI_FLEX"),
        ("HDFC Index Fund Nifty 50 Plan", "HDFC_INDE_NIFT"),
        ("SBI Fund", "SBI"),
        ("Fund Plan", "UNKNOWN"),
        ("", "UNKNOWN"),
    ],
)
def test_generate_fund_symbol(fund_name, expected):
    assert generate_fund_symbol(fund_name) == expected


def test_parse_tickertape_csv_reads_holdings(fixtures_dir):
    with (fixtures_dir / "tickertape_holdings.csv").open(encoding="utf-8") as handle:
        records, skipped = parse_tickertape_csv(handle)

    assert len(records) == 1
    record = records[0]
    assert record["symbol"] == "PARA_PARI_FLEX"
    assert record["name"] == "Parag Parikh Flexi Cap Fund Direct Growth"
    assert record["investment_type"] == "mutual_fund"
    assert record["currency"] == "INR"
    assert record["source_system"] == "tickertape"
    assert record["quantity"] == Decimal("1520.314")
    assert record["current_price"] == Decimal("71.84")
    assert record["metadata"]["amc_name"] == "PPFAS Mutual Fund"
    assert record["metadata"]["invested_amount"] == "85000.00"
    assert record["metadata"]["current_value"] == "109219.36"

    assert [(row.line, row.reason) for row in skipped] == [
        (6, "no units held"),
        (7, "unparseable numbers"),
    ]


def test_parse_tickertape_csv_requires_header():
    with pytest.raises(ValidationError, match="Fund Name"):
        parse_tickertape_csv("Some,Other,Export\n1,2,3\n")


def test_parse_tickertape_csv_ignores_narrow_header_rows():
    narrow = "Fund Name,AMC,Category,Sub Category,Plan,Option,NAV,Units,Invested Amount,Current Value\n"
    with pytest.raises(ValidationError, match="Fund Name"):
        parse_tickertape_csv(narrow + "Axis Bluechip Fund,Axis,Equity,Large Cap,Direct,Growth,58,10,500,580\n")


def test_map_trading212_portfolio_skips_blank_tickers(load_json_fixture):
    records = map_trading212_portfolio(load_json_fixture("trading212_portfolio.json"))

    assert [record["symbol"] for record in records] == ["VUSAL_EQ", "AAPL_US_EQ"]
    assert all(record["investment_type"] == "isa" for record in records)
    assert all(record["currency"] is None for record in records)
    assert records[0]["average_price"] == 7450.0


def test_upsert_investments_creates_then_updates(db_session, member_id, load_json_fixture):
    db_session.add(
        StockSymbol(ticker="VUSAL_EQ", name="Vanguard S&P 500 UCITS ETF", type="etf", currency_code="GBX")
    )
    db_session.commit()
    records = map_trading212_portfolio(load_json_fixture("trading212_portfolio.json"))

    first = upsert_investments(member_id, records, symbol_directory=DatabaseSymbolDirectory())
    assert (first.created, first.updated, first.skipped) == (2, 0, [])

    records[1]["current_price"] = 200
    second = upsert_investments(member_id, records, symbol_directory=DatabaseSymbolDirectory())
    assert (second.created, second.updated) == (0, 2)
    assert second.imported == 2

    rows = db_session.query(Investment).filter_by(member_id=member_id).order_by(Investment.id).all()
    assert [row.symbol for row in rows] == ["VUSAL_EQ", "AAPL_US_EQ"]
    # Raw values are stored as reported; the currency is resolved at summary time.
    assert rows[0].currency is None
    assert rows[0].current_price == Decimal("8120")
    assert rows[1].current_price == Decimal("200")


def test_upsert_investments_reports_rejected_rows(db_session, member_id):
    records = [
        {"symbol": "GOOD", "quantity": "1", "average_price": "10", "currency": "USD"},
        {"symbol": "BAD", "quantity": "-1", "average_price": "10", "currency": "USD"},
        {"symbol": "ODD", "quantity": "1", "average_price": "10", "currency": "JPY"},
    ]

    report = upsert_investments(member_id, records)

    assert report.created == 1
    assert [row.line for row in report.skipped] == [2, 3]
    assert db_session.query(Investment).filter_by(member_id=member_id).count() == 1


def test_upsert_investments_unknown_member(db_session):
    with pytest.raises(ValidationError, match="Member 999999 not found"):
        upsert_investments(999999, [])
