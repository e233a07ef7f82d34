"""Registry and factory for FX rate providers."""

from __future__ import annotations

import os
from typing import Callable, Dict, Iterable, List

from .base import BaseRateProvider, ProviderError

ProviderFactory = Callable[[], BaseRateProvider]

_PROVIDER_FACTORIES: Dict[str, ProviderFactory] = {}


def _default_factories() -> Iterable[tuple[str, ProviderFactory]]:
    from flask import current_app

    from .exchangerate_provider import ExchangeRateAPIProvider
    from .frankfurter_provider import FrankfurterProvider
    from .static import StaticRateProvider

    def exchangerate_factory() -> ExchangeRateAPIProvider:
        return ExchangeRateAPIProvider.from_config(current_app.config)

    def frankfurter_factory() -> FrankfurterProvider:
        return FrankfurterProvider.from_config(current_app.config)

    return [
        (StaticRateProvider.name, StaticRateProvider),
        (ExchangeRateAPIProvider.name, exchangerate_factory),
        (FrankfurterProvider.name, frankfurter_factory),
    ]


def register_provider(name: str, factory: ProviderFactory) -> None:
    """Register a provider factory under the given name."""

    if not name:
        raise ValueError("Provider name cannot be empty.")
    _PROVIDER_FACTORIES[name.lower()] = factory


def unregister_provider(name: str) -> None:
    """Remove a provider factory; primarily for testing."""

    _PROVIDER_FACTORIES.pop(name.lower(), None)


def list_providers() -> List[str]:
    return sorted(_PROVIDER_FACTORIES.keys())


def _resolve_name(name: str | None = None) -> str:
    return (name or os.getenv("FX_RATE_PROVIDER") or "static").lower()


def get_provider(name: str | None = None) -> BaseRateProvider:
    """Instantiate a provider using the supplied or configured name.

    Factories for network providers read the active Flask config, so callers
    need an application context.
    """

    provider_name = _resolve_name(name)
    try:
        factory = _PROVIDER_FACTORIES[provider_name]
    except KeyError as exc:
        available = ", ".join(list_providers()) or "none registered"
        raise ProviderError(
            f"Unknown provider '{provider_name}'. Available providers: {available}"
        ) from exc
    return factory()


def reset_registry(default_factories: Iterable[tuple[str, ProviderFactory]] | None = None) -> None:
    """Reset provider registry; useful for tests."""

    _PROVIDER_FACTORIES.clear()
    factories = default_factories or _default_factories()
    for name, factory in factories:
        register_provider(name, factory)


reset_registry()
