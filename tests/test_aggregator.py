from __future__ import annotations

from decimal import Decimal

import pytest

from household_portfolio.services.aggregator import (
    DEFAULT_BUCKET_CURRENCIES,
    aggregate,
    gain_loss_percentage,
    parse_bucket_currencies,
)
from household_portfolio.services.currency_registry import (
    CurrencyCode,
    CurrencyConfigurationError,
)
from household_portfolio.services.portfolio_types import (
    InvestmentType,
    Member,
    Position,
    SourceSystem,
)

ALICE = Member(id=1, name="Alice")
BOB = Member(id=2, name="Bob")


def position(
    owner=1,
    *,
    symbol="AAPL",
    investment_type=InvestmentType.STOCK,
    quantity="10",
    average_cost="100",
    current_price="150",
    currency=CurrencyCode.USD,
    source_system=SourceSystem.MANUAL,
):
    return Position(
        owner_id=owner,
        group_id=1,
        symbol=symbol,
        name=symbol,
        investment_type=investment_type,
        quantity=Decimal(quantity),
        average_cost=Decimal(average_cost),
        current_price=Decimal(current_price) if current_price is not None else None,
        source_currency=currency,
        source_system=source_system,
    )


def test_single_usd_stock_summary(rates):
    summary = aggregate([position()], [ALICE], CurrencyCode.USD, rates)

    assert summary.currency is CurrencyCode.USD
    assert summary.total_value == Decimal("1500")
    assert summary.total_invested == Decimal("1000")
    assert summary.total_gain_loss == Decimal("500")
    assert summary.gain_loss_percentage == Decimal("50.00")
    assert summary.investment_count == 1
    assert summary.member(1).total_value == Decimal("1500")
    assert summary.rates_source == "test"
    assert summary.rates_stale is False


def test_unpriced_position_reports_no_gain(rates):
    unpriced = position(
        investment_type=InvestmentType.ISA,
        quantity="5",
        average_cost="20",
        current_price=None,
        currency=CurrencyCode.GBP,
    )
    summary = aggregate([unpriced], [ALICE], CurrencyCode.GBP, rates)

    assert summary.total_value == Decimal("100")
    assert summary.total_invested == Decimal("100")
    assert summary.total_gain_loss == Decimal("0")
    assert summary.gain_loss_percentage == Decimal("0")


def test_empty_household_is_a_zeroed_summary(rates):
    summary = aggregate([], [], CurrencyCode.GBP, rates)

    assert summary.total_value == Decimal("0")
    assert summary.total_invested == Decimal("0")
    assert summary.gain_loss_percentage == Decimal("0")
    assert summary.investment_count == 0
    assert summary.members == ()
    assert [b.investment_type for b in summary.investment_wise_breakdown] == list(InvestmentType)
    assert all(b.total_value == 0 for b in summary.investment_wise_breakdown)


@pytest.mark.parametrize("gain", [Decimal("0"), Decimal("-50"), Decimal("125.5")])
def test_zero_invested_percentage_is_zero(gain):
    assert gain_loss_percentage(gain, Decimal("0")) == Decimal("0")


def test_gain_loss_percentage_rounds_half_up():
    assert gain_loss_percentage(Decimal("1"), Decimal("8")) == Decimal("12.50")
    assert gain_loss_percentage(Decimal("1"), Decimal("3")) == Decimal("33.33")
    assert gain_loss_percentage(Decimal("-2"), Decimal("3")) == Decimal("-66.67")


def test_members_keep_input_order_and_totals_add_up(rates):
    positions = [
        position(1, symbol="AAPL"),
        position(2, symbol="INFY", currency=CurrencyCode.INR, average_cost="1410", current_price="1532.65"),
        position(1, symbol="VUSA", investment_type=InvestmentType.ETF, currency=CurrencyCode.GBP,
                 quantity="3", average_cost="70.11", current_price="81.27"),
        position(2, symbol="PPFAS", investment_type=InvestmentType.MUTUAL_FUND,
                 currency=CurrencyCode.INR, quantity="1520.314", average_cost="55.92",
                 current_price="71.84"),
    ]
    summary = aggregate(positions, [BOB, ALICE], CurrencyCode.GBP, rates)

    assert [m.member_id for m in summary.members] == [2, 1]
    assert [m.name for m in summary.members] == ["Bob", "Alice"]
    member_total = sum(m.total_value for m in summary.members)
    assert abs(member_total - summary.total_value) <= Decimal("0.01") * len(summary.members)
    assert summary.investment_count == 4
    assert summary.member(1).investment_count == 2
    assert summary.member(2).investment_count == 2


def test_duplicate_members_are_listed_once(rates):
    summary = aggregate([position()], [ALICE, ALICE], CurrencyCode.USD, rates)
    assert len(summary.members) == 1
    assert summary.member(1).investment_count == 1


def test_unknown_owner_counts_in_household_only(rates, caplog):
    with caplog.at_level("WARNING"):
        summary = aggregate(
            [position(1), position(99, symbol="ORPHAN")], [ALICE], CurrencyCode.USD, rates
        )

    assert summary.total_value == Decimal("3000")
    assert summary.investment_count == 2
    assert summary.member(1).total_value == Decimal("1500")
    assert summary.member(99) is None
    assert "unknown member 99" in caplog.text


def test_zero_quantity_counts_but_adds_nothing(rates):
    summary = aggregate(
        [position(quantity="0"), position(symbol="MSFT")], [ALICE], CurrencyCode.USD, rates
    )
    assert summary.investment_count == 2
    assert summary.total_value == Decimal("1500")


def test_buckets_use_their_own_currencies(rates):
    isa = position(
        symbol="VUSA",
        investment_type=InvestmentType.ISA,
        quantity="2",
        average_cost="40",
        current_price="50",
        currency=CurrencyCode.GBP,
    )
    fund = position(
        symbol="PPFAS",
        investment_type=InvestmentType.MUTUAL_FUND,
        quantity="100",
        average_cost="80",
        current_price="96",
        currency=CurrencyCode.INR,
    )
    summary = aggregate([isa, fund], [ALICE], CurrencyCode.USD, rates)

    isa_bucket = summary.breakdown(InvestmentType.ISA)
    fund_bucket = summary.breakdown(InvestmentType.MUTUAL_FUND)
    etf_bucket = summary.breakdown(InvestmentType.ETF)

    assert isa_bucket.currency is CurrencyCode.GBP
    assert isa_bucket.total_value == Decimal("100")
    assert isa_bucket.gain_loss_percentage == Decimal("25.00")
    assert fund_bucket.currency is CurrencyCode.INR
    assert fund_bucket.total_value == Decimal("9600")
    assert fund_bucket.investment_count == 1
    assert etf_bucket.currency is CurrencyCode.USD
    assert etf_bucket.investment_count == 0

    # Headline: 100 GBP = 125 USD, 9600 INR = 120 USD.
    assert summary.total_value == Decimal("245.00")
    member_isa = summary.member(1).investment_wise_breakdown
    assert [b.currency for b in member_isa] == [b.currency for b in summary.investment_wise_breakdown]


def test_bucket_values_are_converted_from_source_amounts(rates):
    # 1 GBP -> 1.25 USD; converting the rounded USD figure to INR would drift.
    holding = position(
        symbol="ODD",
        investment_type=InvestmentType.STOCK,
        quantity="1",
        average_cost="0.333",
        current_price="0.333",
        currency=CurrencyCode.GBP,
    )
    summary = aggregate([holding], [ALICE], CurrencyCode.USD, rates)
    assert summary.total_value == Decimal("0.42")
    # 0.333 GBP = 33.30 INR directly; via 0.42 USD it would be 33.60.
    assert summary.breakdown(InvestmentType.STOCK).total_value == Decimal("33.30")


def test_bucket_currency_overrides(rates):
    overrides = {**DEFAULT_BUCKET_CURRENCIES, InvestmentType.ISA: None}
    summary = aggregate(
        [position(investment_type=InvestmentType.ISA)],
        [ALICE],
        CurrencyCode.EUR,
        rates,
        bucket_currencies=overrides,
    )
    assert summary.breakdown(InvestmentType.ISA).currency is CurrencyCode.EUR


def test_minor_unit_equivalent_positions_match(rates):
    from household_portfolio.services.normalizer import normalize

    pence = normalize({"member_id": 1, "symbol": "X", "quantity": "1", "average_price": "1000", "currency": "GBX"})
    pounds = normalize({"member_id": 1, "symbol": "X", "quantity": "1", "average_price": "10", "currency": "GBP"})
    for target in CurrencyCode:
        first = aggregate([pence], [ALICE], target, rates)
        second = aggregate([pounds], [ALICE], target, rates)
        assert first.total_value == second.total_value


def test_aggregate_is_idempotent_and_pure(rates):
    positions = [
        position(1),
        position(2, symbol="INFY", currency=CurrencyCode.INR, average_cost="1410.1", current_price="1532.65"),
    ]
    snapshot = list(positions)
    first = aggregate(positions, [ALICE, BOB], CurrencyCode.GBP, rates)
    second = aggregate(positions, [ALICE, BOB], CurrencyCode.GBP, rates)
    aggregate(positions, [ALICE, BOB], CurrencyCode.INR, rates)

    assert first == second
    assert positions == snapshot


def test_parse_bucket_currencies_overrides_defaults():
    mapping = parse_bucket_currencies("isa=eur, etf=GBP,stock=reporting")
    assert mapping[InvestmentType.ISA] is CurrencyCode.EUR
    assert mapping[InvestmentType.ETF] is CurrencyCode.GBP
    assert mapping[InvestmentType.STOCK] is None
    assert mapping[InvestmentType.MUTUAL_FUND] is CurrencyCode.INR
    assert parse_bucket_currencies("") == DEFAULT_BUCKET_CURRENCIES


@pytest.mark.parametrize("value", ["isa", "savings=GBP", "isa=JPY"])
def test_parse_bucket_currencies_rejects_bad_entries(value):
    with pytest.raises(CurrencyConfigurationError):
        parse_bucket_currencies(value)
