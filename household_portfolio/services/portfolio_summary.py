"""Single entry point from raw holdings to a PortfolioSummary."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from household_portfolio.services.aggregator import BucketCurrencies, aggregate
from household_portfolio.services.currency_registry import CurrencyCode
from household_portfolio.services.fx_conversion import ExchangeRateTable
from household_portfolio.services.normalizer import Rejection, SymbolDirectory, normalize_many
from household_portfolio.services.portfolio_types import (
    Member,
    PortfolioSummary,
    Position,
    RawPosition,
)


@dataclass(frozen=True)
class SummaryResult:
    summary: PortfolioSummary
    positions: tuple[Position, ...]
    rejected: tuple[Rejection, ...]


def summarize(
    raw_positions: Iterable[RawPosition],
    members: Sequence[Member],
    reporting_currency: CurrencyCode,
    rates: ExchangeRateTable,
    *,
    symbol_directory: SymbolDirectory | None = None,
    bucket_currencies: BucketCurrencies | None = None,
) -> SummaryResult:
    """Normalize ``raw_positions`` and aggregate them against one rate table.

    Rows the normalizer rejects are returned alongside the summary instead of
    failing the whole household.
    """

    positions, rejected = normalize_many(raw_positions, symbol_directory=symbol_directory)
    summary = aggregate(
        positions,
        members,
        reporting_currency,
        rates,
        bucket_currencies=bucket_currencies,
    )
    return SummaryResult(summary=summary, positions=tuple(positions), rejected=tuple(rejected))


def compute_portfolio_summary(
    raw_positions: Iterable[RawPosition],
    members: Sequence[Member],
    reporting_currency: CurrencyCode,
    rates: ExchangeRateTable,
    *,
    symbol_directory: SymbolDirectory | None = None,
    bucket_currencies: BucketCurrencies | None = None,
) -> PortfolioSummary:
    return summarize(
        raw_positions,
        members,
        reporting_currency,
        rates,
        symbol_directory=symbol_directory,
        bucket_currencies=bucket_currencies,
    ).summary
