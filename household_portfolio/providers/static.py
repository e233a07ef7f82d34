"""Offline provider serving the built-in static rates."""

from __future__ import annotations

from household_portfolio.services.currency_registry import FALLBACK_RATES, MINOR_UNITS
from household_portfolio.utils.datetime import utc_now

from .base import BaseRateProvider, ProviderError
from .schemas import RateSnapshot


class StaticRateProvider(BaseRateProvider):
    """Deterministic provider returning the approximate static USD table.

    Useful for local development without network access and as the last
    provider in a chain.
    """

    name = "static"

    def get_latest(self, base: str) -> RateSnapshot:
        base_currency = str(base).strip().upper()
        if base_currency != "USD":
            raise ProviderError("Static rates are only published against USD.")
        rates = {
            code.value: rate
            for code, rate in FALLBACK_RATES.items()
            if code not in MINOR_UNITS and code.value != base_currency
        }
        return RateSnapshot(
            base_currency=base_currency,
            source=self.name,
            timestamp=utc_now(),
            rates=rates,
        )
