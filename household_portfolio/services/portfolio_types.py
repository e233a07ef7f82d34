"""Canonical portfolio data structures shared by the normalizer and aggregator."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from household_portfolio.services.currency_registry import CurrencyCode

MemberId = Union[int, str]
RawPosition = Mapping[str, Any]


class InvestmentType(str, Enum):
    STOCK = "stock"
    MUTUAL_FUND = "mutual_fund"
    ISA = "isa"
    ETF = "etf"
    BOND = "bond"
    OTHER = "other"


class SourceSystem(str, Enum):
    """Where a holding was recorded."""

    MANUAL = "manual"
    TRADING212 = "trading212"
    TICKERTAPE = "tickertape"
    OTHER = "other"


@dataclass(frozen=True)
class Member:
    id: MemberId
    name: str


@dataclass(frozen=True)
class Position:
    """A normalized holding: major-unit currency, non-negative figures.

    ``average_cost`` and ``current_price`` are per unit and denominated in
    ``source_currency``.
    """

    owner_id: MemberId
    group_id: Optional[MemberId]
    symbol: str
    name: str
    investment_type: InvestmentType
    quantity: Decimal
    average_cost: Decimal
    current_price: Optional[Decimal]
    source_currency: CurrencyCode
    source_system: SourceSystem

    @property
    def unit_value(self) -> Decimal:
        return self.current_price if self.current_price is not None else self.average_cost

    @property
    def total_value(self) -> Decimal:
        """Current value in ``source_currency``; falls back to cost when unpriced."""

        return self.quantity * self.unit_value

    @property
    def invested_value(self) -> Decimal:
        return self.quantity * self.average_cost


@dataclass(frozen=True)
class TypeBreakdown:
    """Totals for one investment type, expressed in ``currency``."""

    investment_type: InvestmentType
    currency: CurrencyCode
    total_value: Decimal
    total_invested: Decimal
    total_gain_loss: Decimal
    gain_loss_percentage: Decimal
    investment_count: int


@dataclass(frozen=True)
class MemberSummary:
    member_id: MemberId
    name: str
    currency: CurrencyCode
    total_value: Decimal
    total_invested: Decimal
    total_gain_loss: Decimal
    gain_loss_percentage: Decimal
    investment_count: int
    investment_wise_breakdown: tuple[TypeBreakdown, ...]


@dataclass(frozen=True)
class PortfolioSummary:
    """Household-level valuation in ``currency`` with per-member detail.

    ``rates_source``, ``rates_as_of`` and ``rates_stale`` describe the single
    rate table every figure was converted with.
    """

    currency: CurrencyCode
    total_value: Decimal
    total_invested: Decimal
    total_gain_loss: Decimal
    gain_loss_percentage: Decimal
    investment_count: int
    members: tuple[MemberSummary, ...]
    investment_wise_breakdown: tuple[TypeBreakdown, ...]
    rates_source: str
    rates_as_of: Optional[datetime]
    rates_stale: bool

    def member(self, member_id: MemberId) -> Optional[MemberSummary]:
        for summary in self.members:
            if summary.member_id == member_id:
                return summary
        return None

    def breakdown(self, investment_type: InvestmentType) -> TypeBreakdown:
        for bucket in self.investment_wise_breakdown:
            if bucket.investment_type is investment_type:
                return bucket
        raise KeyError(investment_type.value)
