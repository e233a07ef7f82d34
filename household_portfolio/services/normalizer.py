"""Turn raw holdings from any source into canonical :class:`Position` records."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, Optional, Protocol

from household_portfolio.services.currency_registry import (
    CurrencyCode,
    minor_unit,
    parse_currency,
)
from household_portfolio.services.fx_conversion import get_decimal_context, to_decimal
from household_portfolio.services.portfolio_types import (
    InvestmentType,
    Position,
    RawPosition,
    SourceSystem,
)

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_CURRENCY = CurrencyCode.USD

TYPE_ALIASES: dict[str, InvestmentType] = {
    "stock": InvestmentType.STOCK,
    "stocks": InvestmentType.STOCK,
    "equity": InvestmentType.STOCK,
    "share": InvestmentType.STOCK,
    "shares": InvestmentType.STOCK,
    "mutual_fund": InvestmentType.MUTUAL_FUND,
    "mutual fund": InvestmentType.MUTUAL_FUND,
    "mutual-fund": InvestmentType.MUTUAL_FUND,
    "mf": InvestmentType.MUTUAL_FUND,
    "isa": InvestmentType.ISA,
    "stocks_isa": InvestmentType.ISA,
    "etf": InvestmentType.ETF,
    "bond": InvestmentType.BOND,
    "bonds": InvestmentType.BOND,
    "gilt": InvestmentType.BOND,
    "crypto": InvestmentType.OTHER,
    "cash": InvestmentType.OTHER,
    "other": InvestmentType.OTHER,
}

# Substrings of a free-text type label, checked in order.
TYPE_LABEL_RULES: tuple[tuple[InvestmentType, tuple[str, ...]], ...] = (
    (InvestmentType.MUTUAL_FUND, ("mutual", "fund")),
    (InvestmentType.ETF, ("etf",)),
    (InvestmentType.STOCK, ("stock", "equity")),
    (InvestmentType.BOND, ("bond",)),
)

# Checked in order; fund wording wins, so an index fund reads as a mutual fund.
KEYWORD_RULES: tuple[tuple[InvestmentType, tuple[str, ...]], ...] = (
    (
        InvestmentType.MUTUAL_FUND,
        ("fund", "mutual", "scheme", "plan", "growth", "dividend"),
    ),
    (InvestmentType.ETF, ("etf", "exchange traded")),
    (InvestmentType.BOND, ("bond", "debenture", "fixed income", "government security")),
)

_KEYWORD_PATTERNS = tuple(
    (investment_type, re.compile(r"\b(" + "|".join(re.escape(k) for k in keywords) + r")\b"))
    for investment_type, keywords in KEYWORD_RULES
)


class NormalizationError(ValueError):
    """Raised when a raw record cannot become a canonical position."""

    def __init__(self, message: str, *, field: str | None = None, record: Any = None) -> None:
        super().__init__(message)
        self.field = field
        self.record = record


@dataclass(frozen=True)
class SymbolInfo:
    """Reference data for one ticker."""

    ticker: str
    name: str
    currency: Optional[str] = None
    type: Optional[str] = None


class SymbolDirectory(Protocol):
    def lookup(self, ticker: str) -> Optional[SymbolInfo]:
        ...


class InMemorySymbolDirectory:
    """Case-insensitive ticker lookup over a fixed set of entries."""

    def __init__(self, entries: Iterable[SymbolInfo] = ()) -> None:
        self._entries = {entry.ticker.strip().upper(): entry for entry in entries}

    def lookup(self, ticker: str) -> Optional[SymbolInfo]:
        if not ticker:
            return None
        return self._entries.get(ticker.strip().upper())

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class Rejection:
    """A raw record excluded from a batch and why."""

    index: int
    symbol: Optional[str]
    member_id: Any
    reason: str
    field: Optional[str] = None


def infer_investment_type(name: str | None, symbol: str | None) -> InvestmentType:
    """Guess the type from name and ticker keywords, defaulting to stock."""

    text = f"{name or ''} {symbol or ''}".lower()
    for investment_type, pattern in _KEYWORD_PATTERNS:
        if pattern.search(text):
            return investment_type
    return InvestmentType.STOCK


def resolve_investment_type(
    explicit: str | InvestmentType | None,
    name: str | None = None,
    symbol: str | None = None,
) -> InvestmentType:
    """Return the type named by ``explicit``, otherwise the inferred one.

    Known aliases match exactly; any other label is searched for type words
    ("Equity Mutual Fund" is a mutual fund). Labels that name no type fall
    through to keyword inference on name and symbol.
    """

    if isinstance(explicit, InvestmentType):
        return explicit
    label = _text(explicit).lower()
    if label:
        resolved = TYPE_ALIASES.get(label)
        if resolved is not None:
            return resolved
        for investment_type, words in TYPE_LABEL_RULES:
            if any(word in label for word in words):
                return investment_type
        logger.info("Unrecognised investment type %r for %s; inferring from name", explicit, symbol)
    return infer_investment_type(name, symbol)


def resolve_source_system(value: str | SourceSystem | None) -> SourceSystem:
    if isinstance(value, SourceSystem):
        return value
    if value is None or not str(value).strip():
        return SourceSystem.MANUAL
    try:
        return SourceSystem(str(value).strip().lower())
    except ValueError:
        return SourceSystem.OTHER


def normalize(
    raw: RawPosition,
    source_system: str | SourceSystem | None = None,
    symbol_directory: SymbolDirectory | None = None,
) -> Position:
    """Build a canonical position from one raw record.

    Minor-unit prices (e.g. GBX) are divided into their major currency here,
    once. Negative figures are rejected, never clamped.
    """

    if not isinstance(raw, Mapping):
        raise NormalizationError(
            f"record must be a mapping, got {type(raw).__name__}", record=raw
        )
    symbol = _require_text(raw, "symbol")
    member_id = raw.get("member_id")
    if member_id is None or (isinstance(member_id, str) and not member_id.strip()):
        raise NormalizationError("member_id is required", field="member_id", record=raw)

    quantity = _parse_amount(raw, "quantity", required=True)
    average_cost = _parse_amount(raw, "average_price", required=True)
    current_price = _parse_amount(raw, "current_price", required=False)

    name = _text(raw.get("name"))
    raw_currency = _text(raw.get("currency"))
    explicit_type = raw.get("investment_type")

    reference: Optional[SymbolInfo] = None
    if symbol_directory is not None and (not name or name.upper() == symbol.upper()):
        reference = symbol_directory.lookup(symbol)
        if reference is not None:
            name = reference.name or name
            if not raw_currency and reference.currency:
                raw_currency = reference.currency
            if explicit_type is None or not str(explicit_type).strip():
                explicit_type = reference.type

    try:
        currency = parse_currency(raw_currency) if raw_currency else DEFAULT_SOURCE_CURRENCY
    except ValueError as exc:
        raise NormalizationError(str(exc), field="currency", record=raw) from exc

    unit = minor_unit(currency)
    if unit is not None:
        with localcontext(get_decimal_context()):
            average_cost = average_cost / unit.factor
            if current_price is not None:
                current_price = current_price / unit.factor
        currency = unit.major

    system = resolve_source_system(
        source_system if source_system is not None else raw.get("source_system")
    )

    return Position(
        owner_id=member_id,
        group_id=raw.get("household_id"),
        symbol=symbol,
        name=name or symbol,
        investment_type=resolve_investment_type(explicit_type, name, symbol),
        quantity=quantity,
        average_cost=average_cost,
        current_price=current_price,
        source_currency=currency,
        source_system=system,
    )


def normalize_many(
    raws: Iterable[RawPosition],
    source_system: str | SourceSystem | None = None,
    symbol_directory: SymbolDirectory | None = None,
) -> tuple[list[Position], list[Rejection]]:
    """Normalize a batch; bad rows are logged and returned as rejections."""

    positions: list[Position] = []
    rejected: list[Rejection] = []
    for index, raw in enumerate(raws):
        try:
            positions.append(normalize(raw, source_system, symbol_directory))
        except NormalizationError as exc:
            symbol = raw.get("symbol") if isinstance(raw, Mapping) else None
            member_id = raw.get("member_id") if isinstance(raw, Mapping) else None
            logger.warning(
                "Rejected position %s for member %s: %s",
                symbol,
                member_id,
                exc,
                extra={"event": "position.rejected", "field": exc.field, "row": index},
            )
            rejected.append(
                Rejection(
                    index=index,
                    symbol=symbol,
                    member_id=member_id,
                    reason=str(exc),
                    field=exc.field,
                )
            )
    return positions, rejected


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _require_text(raw: RawPosition, field: str) -> str:
    value = _text(raw.get(field))
    if not value:
        raise NormalizationError(f"{field} is required", field=field, record=raw)
    return value


def _parse_amount(raw: RawPosition, field: str, *, required: bool) -> Optional[Decimal]:
    value = raw.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise NormalizationError(f"{field} is required", field=field, record=raw)
        return None
    if isinstance(value, bool):
        raise NormalizationError(f"{field} must be numeric", field=field, record=raw)
    try:
        amount = to_decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError) as exc:
        raise NormalizationError(f"{field} must be numeric, got {value!r}", field=field, record=raw) from exc
    if not amount.is_finite():
        raise NormalizationError(f"{field} must be finite", field=field, record=raw)
    if amount < 0:
        raise NormalizationError(
            f"{field} must not be negative, got {amount}", field=field, record=raw
        )
    return amount
