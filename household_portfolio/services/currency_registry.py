"""Closed catalog of supported currencies and their unit conventions."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class CurrencyConfigurationError(RuntimeError):
    """Raised when a static currency table does not cover every supported code."""


class CurrencyCode(str, Enum):
    """Currencies the service can hold, convert and report in."""

    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    GBX = "GBX"
    INR = "INR"


BASE_CURRENCY = CurrencyCode.USD


@dataclass(frozen=True)
class CurrencyInfo:
    code: CurrencyCode
    name: str
    symbol: str


@dataclass(frozen=True)
class MinorUnit:
    """A currency quoted as a fixed fraction of a major currency."""

    major: CurrencyCode
    factor: Decimal


CURRENCY_CATALOG: dict[CurrencyCode, CurrencyInfo] = {
    CurrencyCode.USD: CurrencyInfo(CurrencyCode.USD, "US Dollar", "$"),
    CurrencyCode.EUR: CurrencyInfo(CurrencyCode.EUR, "Euro", "€"),
    CurrencyCode.GBP: CurrencyInfo(CurrencyCode.GBP, "British Pound", "£"),
    CurrencyCode.GBX: CurrencyInfo(CurrencyCode.GBX, "British Pence", "p"),
    CurrencyCode.INR: CurrencyInfo(CurrencyCode.INR, "Indian Rupee", "₹"),
}

# 100 GBX = 1 GBP
MINOR_UNITS: dict[CurrencyCode, MinorUnit] = {
    CurrencyCode.GBX: MinorUnit(major=CurrencyCode.GBP, factor=Decimal("100")),
}

# Units of each currency per 1 USD; used until the first successful refresh.
FALLBACK_RATES: dict[CurrencyCode, Decimal] = {
    CurrencyCode.USD: Decimal("1.0"),
    CurrencyCode.EUR: Decimal("0.85"),
    CurrencyCode.GBP: Decimal("0.79"),
    CurrencyCode.GBX: Decimal("79.0"),
    CurrencyCode.INR: Decimal("83.0"),
}


def ensure_complete(table: Mapping[CurrencyCode, object], *, name: str) -> None:
    """Fail fast when a per-currency table is missing a supported code."""

    missing = [code.value for code in CurrencyCode if code not in table]
    if missing:
        raise CurrencyConfigurationError(
            f"{name} is missing entries for: {', '.join(sorted(missing))}"
        )


def _check_static_tables() -> None:
    ensure_complete(CURRENCY_CATALOG, name="CURRENCY_CATALOG")
    ensure_complete(FALLBACK_RATES, name="FALLBACK_RATES")
    if FALLBACK_RATES[BASE_CURRENCY] != 1:
        raise CurrencyConfigurationError("FALLBACK_RATES must map the base currency to 1.")
    for code, unit in MINOR_UNITS.items():
        if unit.major in MINOR_UNITS:
            raise CurrencyConfigurationError(
                f"Minor unit {code.value} must reference a major currency, not {unit.major.value}."
            )
        if FALLBACK_RATES[code] != FALLBACK_RATES[unit.major] * unit.factor:
            raise CurrencyConfigurationError(
                f"FALLBACK_RATES for {code.value} must equal {unit.major.value} x {unit.factor}."
            )


_check_static_tables()


def parse_currency(value: str | CurrencyCode) -> CurrencyCode:
    """Return the enum member for ``value``; raise ``ValueError`` if unsupported."""

    if isinstance(value, CurrencyCode):
        return value
    if value is None or not str(value).strip():
        raise ValueError("Currency code cannot be blank.")
    normalized = str(value).strip().upper()
    try:
        return CurrencyCode(normalized)
    except ValueError as exc:
        raise ValueError(f"Unsupported currency code '{normalized}'.") from exc


def currency_name(code: CurrencyCode) -> str:
    return CURRENCY_CATALOG[code].name


def currency_symbol(code: CurrencyCode) -> str:
    return CURRENCY_CATALOG[code].symbol


def minor_unit(code: CurrencyCode) -> MinorUnit | None:
    """Return the minor-unit definition for ``code`` or ``None`` for major currencies."""

    return MINOR_UNITS.get(code)


def supported_currencies() -> list[CurrencyInfo]:
    """Return the catalog in declaration order for currency pickers."""

    return [CURRENCY_CATALOG[code] for code in CurrencyCode]

