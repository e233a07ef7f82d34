"""ECB (Frankfurter) provider implementation."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime

from household_portfolio.providers.base import BaseRateProvider, ProviderError
from household_portfolio.providers.schemas import RateSnapshot
from household_portfolio.services.currency_registry import MINOR_UNITS, CurrencyCode

from .frankfurter_client import FrankfurterAPIError, FrankfurterClient, FrankfurterClientConfig


class FrankfurterProvider(BaseRateProvider):
    """Provider that fetches ECB reference rates via the Frankfurter API.

    The ECB does not publish minor units, so only major catalog currencies are
    requested.
    """

    name = "ecb"

    def __init__(self, client: FrankfurterClient) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: Mapping[str, str | int | float]) -> FrankfurterProvider:
        client_config = FrankfurterClientConfig(
            base_url=str(config.get("FRANKFURTER_API_BASE_URL") or "https://api.frankfurter.app"),
            timeout=float(config.get("REQUEST_TIMEOUT_SECONDS", 5)),
            max_retries=int(config.get("FRANKFURTER_API_MAX_RETRIES", 2)),
            backoff_seconds=float(config.get("FRANKFURTER_API_BACKOFF_SECONDS", 0.5)),
        )
        return cls(FrankfurterClient(client_config))

    def get_latest(self, base: str) -> RateSnapshot:
        target_base = base.strip().upper()
        symbols = self._symbols(exclude=target_base)
        try:
            payload = self._client.latest(target_base, symbols)
        except FrankfurterAPIError as exc:
            raise ProviderError(str(exc)) from exc

        try:
            return RateSnapshot(
                base_currency=target_base,
                source=self.name,
                timestamp=self._parse_date(payload["date"]),
                rates=payload["rates"],
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(f"Unexpected response payload from Frankfurter: {exc}") from exc

    @staticmethod
    def _symbols(exclude: str) -> list[str]:
        return sorted(
            code.value
            for code in CurrencyCode
            if code not in MINOR_UNITS and code.value != exclude
        )

    @staticmethod
    def _parse_date(value: str) -> datetime:
        dt = datetime.fromisoformat(value)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return dt
