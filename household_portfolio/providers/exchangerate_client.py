from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from household_portfolio.providers.http_client import HTTPClient, HTTPClientConfig, HTTPClientError

logger = logging.getLogger(__name__)


class ExchangeRateAPIError(RuntimeError):
    """Raised when the ExchangeRate-API service returns an error or an unusable payload."""


class ExchangeRateAPIClientConfig:
    """Configuration parameters for the API client."""

    def __init__(
        self, base_url: str, timeout: float, max_retries: int = 2, backoff_seconds: float = 0.5
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds


class ExchangeRateAPIClient:
    """HTTP client for the ExchangeRate-API ``/latest/<base>`` endpoint."""

    def __init__(
        self, config: ExchangeRateAPIClientConfig, client: Optional[HTTPClient] = None
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

    def latest(self, base: str) -> Dict[str, Any]:
        try:
            payload = self._client.get(f"/latest/{base}")
        except HTTPClientError as exc:
            raise ExchangeRateAPIError(str(exc)) from exc

        # v6 responses carry an explicit result flag; v4 responses do not.
        if payload.get("result", "success") != "success":
            raise ExchangeRateAPIError(
                f"ExchangeRate-API error payload: {payload.get('error-type', 'unknown')}"
            )

        if not isinstance(payload.get("rates"), dict):
            raise ExchangeRateAPIError("ExchangeRate-API response missing 'rates' object")

        return payload
