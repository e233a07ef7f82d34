"""Abstract interface for FX rate providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .schemas import RateSnapshot


class ProviderError(Exception):
    """Raised when an upstream provider cannot fulfill a request."""


class BaseRateProvider(ABC):
    """Defines the interface all FX rate providers must implement."""

    name: str

    @abstractmethod
    def get_latest(self, base: str) -> RateSnapshot:
        """Retrieve the most recent rates quoted against ``base``.

        Implementations raise ``ProviderError`` for transport failures and
        malformed payloads alike.
        """
