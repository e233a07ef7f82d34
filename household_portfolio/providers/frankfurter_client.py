from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from household_portfolio.providers.http_client import HTTPClient, HTTPClientConfig, HTTPClientError

logger = logging.getLogger(__name__)


class FrankfurterAPIError(RuntimeError):
    """Raised when the Frankfurter API returns an error response."""


class FrankfurterClientConfig:
    """Configuration parameters for the Frankfurter client."""

    def __init__(
        self,
        base_url: str,
        timeout: float,
        max_retries: int = 2,
        backoff_seconds: float = 0.5,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds


class FrankfurterClient:
    """HTTP client for Frankfurter built on the shared wrapper."""

    def __init__(
        self,
        config: FrankfurterClientConfig,
        client: HTTPClient | None = None,
    ) -> None:
        self._config = config
        self._client = client or HTTPClient(
            HTTPClientConfig(
                base_url=config.base_url,
                timeout=config.timeout,
                max_retries=config.max_retries,
                backoff_seconds=config.backoff_seconds,
            )
        )

    def latest(self, base: str, symbols: list[str]) -> dict[str, Any]:
        params: Mapping[str, Any] = {"from": base}
        if symbols:
            params = {"from": base, "to": ",".join(symbols)}
        try:
            payload = self._client.get("/latest", params=params)
        except HTTPClientError as exc:
            raise FrankfurterAPIError(str(exc)) from exc

        if "message" in payload and "rates" not in payload:
            raise FrankfurterAPIError(f"Frankfurter API error payload: {payload['message']}")

        if not isinstance(payload.get("rates"), dict):
            raise FrankfurterAPIError("Frankfurter API response missing 'rates' field")

        return payload
