"""Currency-normalized aggregation of canonical positions into a PortfolioSummary.

Everything here is pure: callers pass the rate table to use, nothing is
fetched or mutated, and identical inputs give identical summaries.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal, localcontext
from typing import Optional

from household_portfolio.services.currency_registry import (
    CurrencyCode,
    CurrencyConfigurationError,
    parse_currency,
)
from household_portfolio.services.fx_conversion import (
    ExchangeRateTable,
    convert,
    get_decimal_context,
    quantize_amount,
)
from household_portfolio.services.portfolio_types import (
    InvestmentType,
    Member,
    MemberSummary,
    PortfolioSummary,
    Position,
    TypeBreakdown,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# None means "same as the reporting currency".
BucketCurrencies = Mapping[InvestmentType, Optional[CurrencyCode]]

DEFAULT_BUCKET_CURRENCIES: dict[InvestmentType, Optional[CurrencyCode]] = {
    InvestmentType.STOCK: CurrencyCode.INR,
    InvestmentType.MUTUAL_FUND: CurrencyCode.INR,
    InvestmentType.ISA: CurrencyCode.GBP,
    InvestmentType.ETF: None,
    InvestmentType.BOND: None,
    InvestmentType.OTHER: None,
}


def parse_bucket_currencies(value: str | None) -> dict[InvestmentType, Optional[CurrencyCode]]:
    """Parse ``"isa=GBP,stock=INR"`` overrides on top of the defaults.

    ``reporting`` as a currency means the bucket follows the reporting
    currency. Unknown types or currencies raise ``CurrencyConfigurationError``.
    """

    mapping = dict(DEFAULT_BUCKET_CURRENCIES)
    if not value or not value.strip():
        return mapping
    for item in value.split(","):
        if not item.strip():
            continue
        type_name, sep, currency_name = item.partition("=")
        if not sep:
            raise CurrencyConfigurationError(f"Invalid BUCKET_CURRENCIES entry '{item.strip()}'")
        try:
            investment_type = InvestmentType(type_name.strip().lower())
        except ValueError as exc:
            raise CurrencyConfigurationError(
                f"Unknown investment type '{type_name.strip()}' in BUCKET_CURRENCIES"
            ) from exc
        if currency_name.strip().lower() == "reporting":
            mapping[investment_type] = None
            continue
        try:
            mapping[investment_type] = parse_currency(currency_name)
        except ValueError as exc:
            raise CurrencyConfigurationError(f"BUCKET_CURRENCIES: {exc}") from exc
    return mapping


def gain_loss_percentage(gain_loss: Decimal, invested: Decimal) -> Decimal:
    """Return ``gain_loss / invested * 100`` to 2 dp, or 0 when nothing was invested."""

    if invested <= 0:
        return quantize_amount(ZERO)
    with localcontext(get_decimal_context()):
        ratio = gain_loss / invested * HUNDRED
    return quantize_amount(ratio)


@dataclass
class _Bucket:
    currency: CurrencyCode
    value: Decimal = ZERO
    invested: Decimal = ZERO
    count: int = 0

    def freeze(self, investment_type: InvestmentType) -> TypeBreakdown:
        value = quantize_amount(self.value)
        invested = quantize_amount(self.invested)
        gain_loss = value - invested
        return TypeBreakdown(
            investment_type=investment_type,
            currency=self.currency,
            total_value=value,
            total_invested=invested,
            total_gain_loss=gain_loss,
            gain_loss_percentage=gain_loss_percentage(gain_loss, invested),
            investment_count=self.count,
        )


@dataclass
class _Accumulator:
    buckets: dict[InvestmentType, _Bucket]
    value: Decimal = ZERO
    invested: Decimal = ZERO
    count: int = 0

    def add(
        self,
        investment_type: InvestmentType,
        value: Decimal,
        invested: Decimal,
        bucket_value: Decimal,
        bucket_invested: Decimal,
    ) -> None:
        self.value += value
        self.invested += invested
        self.count += 1
        bucket = self.buckets[investment_type]
        bucket.value += bucket_value
        bucket.invested += bucket_invested
        bucket.count += 1

    def totals(self) -> tuple[Decimal, Decimal, Decimal, Decimal]:
        value = quantize_amount(self.value)
        invested = quantize_amount(self.invested)
        gain_loss = value - invested
        return value, invested, gain_loss, gain_loss_percentage(gain_loss, invested)

    def breakdown(self) -> tuple[TypeBreakdown, ...]:
        return tuple(self.buckets[kind].freeze(kind) for kind in InvestmentType)


@dataclass(frozen=True)
class _Converted:
    value: Decimal
    invested: Decimal
    bucket_value: Decimal
    bucket_invested: Decimal


@dataclass
class _Plan:
    reporting_currency: CurrencyCode
    bucket_currencies: dict[InvestmentType, CurrencyCode] = field(default_factory=dict)

    def new_accumulator(self) -> _Accumulator:
        return _Accumulator(
            buckets={
                kind: _Bucket(currency=self.bucket_currencies[kind]) for kind in InvestmentType
            }
        )


def _plan(
    reporting_currency: CurrencyCode, bucket_currencies: BucketCurrencies | None
) -> _Plan:
    configured = DEFAULT_BUCKET_CURRENCIES if bucket_currencies is None else bucket_currencies
    resolved: dict[InvestmentType, CurrencyCode] = {}
    for kind in InvestmentType:
        currency = configured.get(kind)
        resolved[kind] = currency if currency is not None else reporting_currency
    return _Plan(reporting_currency=reporting_currency, bucket_currencies=resolved)


def _convert_position(position: Position, plan: _Plan, rates: ExchangeRateTable) -> _Converted:
    source_value = position.total_value
    source_invested = position.invested_value
    source = position.source_currency
    bucket_currency = plan.bucket_currencies[position.investment_type]
    # Both targets are converted from the source amounts independently.
    return _Converted(
        value=convert(source_value, source, plan.reporting_currency, rates),
        invested=convert(source_invested, source, plan.reporting_currency, rates),
        bucket_value=convert(source_value, source, bucket_currency, rates),
        bucket_invested=convert(source_invested, source, bucket_currency, rates),
    )


def aggregate(
    positions: Iterable[Position],
    members: Sequence[Member],
    reporting_currency: CurrencyCode,
    rates: ExchangeRateTable,
    *,
    bucket_currencies: BucketCurrencies | None = None,
) -> PortfolioSummary:
    """Summarize ``positions`` per member and for the household.

    Headline figures are in ``reporting_currency``; each type breakdown is in
    its bucket currency. Positions owned by an unknown member count towards
    the household only. Members appear in the order given.
    """

    plan = _plan(reporting_currency, bucket_currencies)
    household = plan.new_accumulator()
    per_member: dict[object, _Accumulator] = {}
    for member in members:
        per_member.setdefault(member.id, plan.new_accumulator())

    for position in positions:
        converted = _convert_position(position, plan, rates)
        parts = (
            position.investment_type,
            converted.value,
            converted.invested,
            converted.bucket_value,
            converted.bucket_invested,
        )
        household.add(*parts)

        accumulator = per_member.get(position.owner_id)
        if accumulator is None:
            logger.warning(
                "Position %s belongs to unknown member %s; counted in household totals only",
                position.symbol,
                position.owner_id,
                extra={"event": "aggregate.unknown_member", "member_id": str(position.owner_id)},
            )
            continue
        accumulator.add(*parts)

    member_summaries = []
    seen: set[object] = set()
    for member in members:
        if member.id in seen:
            continue
        seen.add(member.id)
        accumulator = per_member[member.id]
        value, invested, gain_loss, percentage = accumulator.totals()
        member_summaries.append(
            MemberSummary(
                member_id=member.id,
                name=member.name,
                currency=reporting_currency,
                total_value=value,
                total_invested=invested,
                total_gain_loss=gain_loss,
                gain_loss_percentage=percentage,
                investment_count=accumulator.count,
                investment_wise_breakdown=accumulator.breakdown(),
            )
        )

    value, invested, gain_loss, percentage = household.totals()
    return PortfolioSummary(
        currency=reporting_currency,
        total_value=value,
        total_invested=invested,
        total_gain_loss=gain_loss,
        gain_loss_percentage=percentage,
        investment_count=household.count,
        members=tuple(member_summaries),
        investment_wise_breakdown=household.breakdown(),
        rates_source=rates.source,
        rates_as_of=rates.as_of,
        rates_stale=rates.stale,
    )
