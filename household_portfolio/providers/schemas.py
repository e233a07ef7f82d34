"""Dataclasses describing normalized FX provider payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, Mapping

from household_portfolio.utils.datetime import ensure_utc


def _normalize_code(code: str) -> str:
    normalized = code.strip().upper()
    if not normalized.isascii():
        raise ValueError(f"Currency code must be ASCII: {code!r}")
    return normalized


def _normalize_rates(rates: Mapping[str, Decimal | float | int | str]) -> Dict[str, Decimal]:
    normalized: Dict[str, Decimal] = {}
    for code, value in rates.items():
        try:
            normalized[_normalize_code(code)] = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"Rate for {code!r} is not numeric: {value!r}") from exc
    return normalized


@dataclass(frozen=True)
class RateSnapshot:
    """Latest rates from one provider, quoted as units of each currency per ``base_currency``."""

    base_currency: str
    source: str
    timestamp: datetime
    rates: Dict[str, Decimal] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_currency", _normalize_code(self.base_currency))
        object.__setattr__(self, "rates", _normalize_rates(self.rates))
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        if not self.source or not self.source.strip():
            raise ValueError("source must be provided for RateSnapshot")
