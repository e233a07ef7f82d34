"""ExchangeRate-API provider implementation."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from household_portfolio.providers.base import BaseRateProvider, ProviderError
from household_portfolio.providers.schemas import RateSnapshot
from household_portfolio.utils.datetime import utc_now

from .exchangerate_client import (
    ExchangeRateAPIClient,
    ExchangeRateAPIClientConfig,
    ExchangeRateAPIError,
)


class ExchangeRateAPIProvider(BaseRateProvider):
    """Provider that fetches the latest rates from ExchangeRate-API."""

    name = "exchange"

    def __init__(self, client: ExchangeRateAPIClient) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> ExchangeRateAPIProvider:
        base_url_value = config.get("RATES_API_BASE_URL")
        if not isinstance(base_url_value, str) or not base_url_value.strip():
            base_url = "https://api.exchangerate-api.com/v4"
        else:
            base_url = base_url_value
        client_config = ExchangeRateAPIClientConfig(
            base_url=base_url,
            timeout=float(config.get("REQUEST_TIMEOUT_SECONDS", 5)),
            max_retries=int(config.get("RATES_API_MAX_RETRIES", 2)),
            backoff_seconds=float(config.get("RATES_API_BACKOFF_SECONDS", 0.5)),
        )
        return cls(ExchangeRateAPIClient(client_config))

    def get_latest(self, base: str) -> RateSnapshot:
        base_currency = self._normalize_symbol(base)
        try:
            payload = self._client.latest(base_currency)
        except ExchangeRateAPIError as exc:
            raise ProviderError(str(exc)) from exc

        try:
            return RateSnapshot(
                base_currency=payload.get("base") or base_currency,
                source=self.name,
                timestamp=self._parse_timestamp(payload),
                rates=payload["rates"],
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(f"Unexpected response payload from ExchangeRate-API: {exc}") from exc

    @staticmethod
    def _parse_timestamp(payload: Mapping[str, Any]) -> datetime:
        unix_value = payload.get("time_last_updated") or payload.get("time_last_update_unix")
        if unix_value:
            return datetime.fromtimestamp(int(unix_value), tz=UTC)
        date_value = payload.get("date")
        if date_value:
            parsed = datetime.fromisoformat(str(date_value))
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
        return utc_now()

    @staticmethod
    def _normalize_symbol(value: str) -> str:
        if not value or not str(value).strip():
            raise ProviderError("Currency symbol cannot be empty.")
        return str(value).strip().upper()
