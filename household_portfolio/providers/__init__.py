"""Provider interfaces and data structures for FX rate sources."""

from .base import BaseRateProvider, ProviderError
from .exchangerate_client import (
    ExchangeRateAPIClient,
    ExchangeRateAPIClientConfig,
    ExchangeRateAPIError,
)
from .exchangerate_provider import ExchangeRateAPIProvider
from .frankfurter_client import (
    FrankfurterAPIError,
    FrankfurterClient,
    FrankfurterClientConfig,
)
from .frankfurter_provider import FrankfurterProvider
from .schemas import RateSnapshot
from .static import StaticRateProvider

__all__ = [
    "BaseRateProvider",
    "ProviderError",
    "RateSnapshot",
    "ExchangeRateAPIClient",
    "ExchangeRateAPIClientConfig",
    "ExchangeRateAPIError",
    "ExchangeRateAPIProvider",
    "FrankfurterClient",
    "FrankfurterClientConfig",
    "FrankfurterAPIError",
    "FrankfurterProvider",
    "StaticRateProvider",
]
