"""Shared HTTP client wrapper with bounded timeouts, retries and jittered backoff."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import requests
from requests import Response, Session
from requests.exceptions import JSONDecodeError, RequestException

logger = logging.getLogger(__name__)


class HTTPClientError(RuntimeError):
    """Raised when the HTTP client cannot satisfy a request."""

    def __init__(
        self, message: str, *, status_code: Optional[int] = None, retryable: bool = True
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


@dataclass(frozen=True)
class HTTPClientConfig:
    """Configuration for the shared HTTP client."""

    base_url: str
    timeout: float = 5.0
    max_retries: int = 2
    backoff_seconds: float = 0.5
    backoff_jitter: float = 0.2
    headers: Mapping[str, str] = field(
        default_factory=lambda: {"Accept": "application/json", "User-Agent": "household-portfolio"}
    )


class HTTPClient:
    """Small JSON-over-HTTP client.

    Connection failures, timeouts and 5xx responses are retried up to
    ``max_retries`` attempts in total; 4xx responses and undecodable bodies
    fail immediately.
    """

    def __init__(
        self,
        config: HTTPClientConfig,
        session: Optional[Session] = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        url = self._build_url(path)
        attempts = max(self._config.max_retries, 1)
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            try:
                response = self._session.get(
                    url,
                    params=params,
                    headers=dict(self._config.headers),
                    timeout=self._config.timeout,
                )
                return self._handle_response(response)
            except HTTPClientError as exc:
                if not exc.retryable:
                    raise
                last_error = exc
            except RequestException as exc:
                last_error = exc

            if attempt >= attempts:
                break
            sleep_for = self._compute_backoff(attempt)
            logger.warning(
                "HTTP request to %s failed (attempt %s/%s): %s. Retrying in %.2fs.",
                url,
                attempt,
                attempts,
                last_error,
                sleep_for,
            )
            time.sleep(sleep_for)

        raise HTTPClientError(f"Failed to fetch {url}: {last_error}") from last_error

    def _compute_backoff(self, attempt: int) -> float:
        base = self._config.backoff_seconds * (2 ** (attempt - 1))
        jitter = random.uniform(-self._config.backoff_jitter, self._config.backoff_jitter)
        return max(base + jitter, 0.0)

    def _build_url(self, path: str) -> str:
        base = self._config.base_url.rstrip("/")
        suffix = path.lstrip("/")
        return f"{base}/{suffix}"

    @staticmethod
    def _handle_response(response: Response) -> Dict[str, Any]:
        status = response.status_code
        if status >= 500:
            raise HTTPClientError(f"Server error {status}", status_code=status)
        if status >= 400:
            raise HTTPClientError(
                f"Client error {status}: {response.text}", status_code=status, retryable=False
            )

        try:
            payload = response.json()
        except (JSONDecodeError, ValueError) as exc:
            raise HTTPClientError(
                "Invalid JSON response", status_code=status, retryable=False
            ) from exc

        if not isinstance(payload, dict):
            raise HTTPClientError(
                f"Expected a JSON object, got {type(payload).__name__}",
                status_code=status,
                retryable=False,
            )
        return payload
