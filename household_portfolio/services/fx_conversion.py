"""Exchange-rate tables and currency conversion through the USD base."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import (
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    Decimal,
    InvalidOperation,
    getcontext,
    localcontext,
)
from typing import Dict, Mapping, Optional

from household_portfolio.services.currency_registry import (
    BASE_CURRENCY,
    FALLBACK_RATES,
    MINOR_UNITS,
    CurrencyCode,
    parse_currency,
)
from household_portfolio.utils.datetime import ensure_utc


ROUNDING_PRECISION = 28
MONEY_PLACES = 2


class RateTableError(ValueError):
    """Raised when a rate table would be incomplete or hold unusable rates."""


def get_decimal_context():
    """Return the shared Decimal context used for intermediate FX arithmetic."""

    context = getcontext().copy()
    context.prec = ROUNDING_PRECISION
    context.rounding = ROUND_HALF_EVEN
    return context


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert input into a Decimal using the shared context."""

    context = get_decimal_context()
    with localcontext(context):
        return Decimal(str(value))


def quantize_amount(value: Decimal | int | float | str, places: int = MONEY_PLACES) -> Decimal:
    """Round ``value`` half-up to ``places`` decimal places."""

    exponent = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def _coerce_rates(rates: Mapping[CurrencyCode | str, object]) -> Dict[CurrencyCode, Decimal]:
    coerced: Dict[CurrencyCode, Decimal] = {}
    for code, value in rates.items():
        currency = parse_currency(code)
        try:
            rate = to_decimal(value)
        except (InvalidOperation, TypeError, ValueError) as exc:
            raise RateTableError(f"Rate for {currency.value} is not numeric: {value!r}") from exc
        if not rate.is_finite() or rate <= 0:
            raise RateTableError(f"Rate for {currency.value} must be positive, got {value!r}")
        coerced[currency] = rate
    return coerced


def _derive_minor_units(rates: Dict[CurrencyCode, Decimal]) -> None:
    context = get_decimal_context()
    with localcontext(context):
        for code, unit in MINOR_UNITS.items():
            rates[code] = rates[unit.major] * unit.factor


@dataclass(frozen=True)
class ExchangeRateTable:
    """Immutable table of units-per-USD rates for every supported currency.

    Minor-unit currencies are always derived from their major currency, so a
    table can never disagree with itself about GBP and GBX.
    """

    rates: Dict[CurrencyCode, Decimal]
    source: str
    as_of: Optional[datetime] = None
    stale: bool = False

    def __post_init__(self) -> None:
        rates = _coerce_rates(self.rates)
        rates[BASE_CURRENCY] = Decimal("1")
        missing = [
            code.value for code in CurrencyCode if code not in rates and code not in MINOR_UNITS
        ]
        if missing:
            raise RateTableError(f"Rate table is missing: {', '.join(sorted(missing))}")
        _derive_minor_units(rates)
        object.__setattr__(self, "rates", rates)
        if self.as_of is not None:
            object.__setattr__(self, "as_of", ensure_utc(self.as_of))
        if not self.source or not self.source.strip():
            raise RateTableError("source must be provided for ExchangeRateTable")

    def rate(self, code: CurrencyCode) -> Decimal:
        return self.rates[code]

    def merged(
        self,
        updates: Mapping[str, object],
        *,
        source: str,
        as_of: Optional[datetime],
    ) -> ExchangeRateTable:
        """Return a new table overlaying ``updates`` on this one.

        Codes outside the catalog and minor-unit codes in ``updates`` are
        ignored; supported codes absent from ``updates`` keep their current rate.
        """

        combined: Dict[CurrencyCode | str, object] = dict(self.rates)
        for raw_code, value in updates.items():
            try:
                code = parse_currency(raw_code)
            except ValueError:
                continue
            if code in MINOR_UNITS or code is BASE_CURRENCY:
                continue
            combined[code] = value
        return ExchangeRateTable(rates=combined, source=source, as_of=as_of, stale=False)

    def mark_stale(self) -> ExchangeRateTable:
        if self.stale:
            return self
        return replace(self, stale=True)

    def as_strings(self) -> Dict[str, str]:
        return {code.value: str(self.rates[code]) for code in CurrencyCode}


def fallback_table() -> ExchangeRateTable:
    """Return the hardcoded table used before any successful refresh."""

    return ExchangeRateTable(rates=dict(FALLBACK_RATES), source="static", as_of=None, stale=True)


def convert_exact(
    amount: Decimal | int | float | str,
    from_currency: CurrencyCode,
    to_currency: CurrencyCode,
    rates: ExchangeRateTable,
) -> Decimal:
    """Convert ``amount`` via the USD base without rounding the result."""

    amount_dec = to_decimal(amount)
    if amount_dec == 0 or from_currency is to_currency:
        return amount_dec

    context = get_decimal_context()
    with localcontext(context):
        base_amount = amount_dec / rates.rate(from_currency)
        return base_amount * rates.rate(to_currency)


def convert(
    amount: Decimal | int | float | str,
    from_currency: CurrencyCode,
    to_currency: CurrencyCode,
    rates: ExchangeRateTable,
) -> Decimal:
    """Convert ``amount`` between currencies, rounding half-up to 2 dp.

    Zero and same-currency conversions return the input untouched.
    """

    amount_dec = to_decimal(amount)
    if amount_dec == 0:
        return Decimal("0")
    if from_currency is to_currency:
        return amount_dec
    return quantize_amount(convert_exact(amount_dec, from_currency, to_currency, rates))
