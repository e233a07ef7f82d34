"""Environment-driven settings for the household portfolio service."""

from __future__ import annotations

import os

RATE_PROVIDERS = {"exchange", "ecb", "static"}
PROVIDER_ALIASES = {"exchangerate_api": "exchange", "frankfurter_ecb": "ecb"}


def _env(name: str, default: str) -> str:
    value = os.getenv(name)
    return default if value is None else value


def _env_int(name: str, default: int) -> int:
    return int(_env(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(_env(name, str(default)))


def _env_flag(name: str, default: bool) -> bool:
    return _env(name, "true" if default else "false").strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    """Settings shared by every environment; read once at import time."""

    APP_NAME = "household-portfolio"
    SECRET_KEY = _env("SECRET_KEY", "change-me")
    SQLALCHEMY_DATABASE_URI = _env("DATABASE_URL", "sqlite:///household-portfolio.db")

    # Reporting
    DEFAULT_REPORTING_CURRENCY = _env("DEFAULT_REPORTING_CURRENCY", "GBP")
    BUCKET_CURRENCIES = _env("BUCKET_CURRENCIES", "")
    SNAPSHOT_TOP_INVESTMENTS = _env_int("SNAPSHOT_TOP_INVESTMENTS", 5)

    # Rate providers
    FX_RATE_PROVIDER = _env("FX_RATE_PROVIDER", "exchange")
    FX_FALLBACK_PROVIDER: str | None = _env("FX_FALLBACK_PROVIDER", "ecb")
    REQUEST_TIMEOUT_SECONDS = _env_int("REQUEST_TIMEOUT_SECONDS", 5)
    RATES_API_BASE_URL = _env("RATES_API_BASE_URL", "https://api.exchangerate-api.com/v4")
    RATES_API_MAX_RETRIES = _env_int("RATES_API_MAX_RETRIES", 2)
    RATES_API_BACKOFF_SECONDS = _env_float("RATES_API_BACKOFF_SECONDS", 0.5)
    FRANKFURTER_API_BASE_URL = _env("FRANKFURTER_API_BASE_URL", "https://api.frankfurter.app")
    FRANKFURTER_API_MAX_RETRIES = _env_int("FRANKFURTER_API_MAX_RETRIES", 2)
    FRANKFURTER_API_BACKOFF_SECONDS = _env_float("FRANKFURTER_API_BACKOFF_SECONDS", 0.5)

    # Rate cache and background refresh
    RATES_REFRESH_INTERVAL_SECONDS = _env_int("RATES_REFRESH_INTERVAL_SECONDS", 86400)
    RATES_RETRY_INTERVAL_SECONDS = _env_int("RATES_RETRY_INTERVAL_SECONDS", 300)
    REFRESH_THROTTLE_SECONDS = _env_int("REFRESH_THROTTLE_SECONDS", 60)
    SCHEDULER_ENABLED = _env_flag("SCHEDULER_ENABLED", True)
    SCHEDULER_TIMEZONE = _env("SCHEDULER_TIMEZONE", "UTC")

    # Logging
    LOG_LEVEL = _env("LOG_LEVEL", "INFO")
    LOG_JSON_ENABLED = _env_flag("LOG_JSON_ENABLED", False)
    LOG_FORMAT = _env("LOG_FORMAT", "%(asctime)s %(levelname)s [%(name)s] %(message)s")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    TESTING = False


class ProductionConfig(BaseConfig):
    DEBUG = False
    TESTING = False


CONFIG_BY_ENV = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
}


def get_config(config_name: str | None = None) -> type[BaseConfig]:
    """Resolve the settings class for ``config_name`` or ``APP_ENV``.

    Provider names and the reporting currency are checked and canonicalised
    here so a typo fails at start-up rather than on the first request.

    Raises:
        KeyError: ``APP_ENV`` names no known environment.
        ValueError: a configured rate provider or reporting currency is not
            supported.
    """

    requested = config_name if config_name is not None else os.getenv("APP_ENV")
    env_name = (requested or "development").strip().lower()
    if env_name not in CONFIG_BY_ENV:
        raise KeyError(f"Unknown APP_ENV '{env_name}'")
    config_cls = CONFIG_BY_ENV[env_name]

    config_cls.FX_RATE_PROVIDER = _checked_provider("FX_RATE_PROVIDER", config_cls.FX_RATE_PROVIDER)
    fallback = config_cls.FX_FALLBACK_PROVIDER
    config_cls.FX_FALLBACK_PROVIDER = (
        _checked_provider("FX_FALLBACK_PROVIDER", fallback) if fallback else None
    )
    config_cls.DEFAULT_REPORTING_CURRENCY = _checked_currency(
        "DEFAULT_REPORTING_CURRENCY", config_cls.DEFAULT_REPORTING_CURRENCY
    )
    return config_cls


def _checked_currency(setting: str, value):
    # Imported late: the package imports this module while it initialises.
    from household_portfolio.services.currency_registry import parse_currency

    try:
        return parse_currency(value)
    except ValueError as exc:
        raise ValueError(f"Invalid {setting}: {exc}") from exc


def _checked_provider(setting: str, value: str | None) -> str:
    name = (value or "").strip().lower()
    name = PROVIDER_ALIASES.get(name, name)
    if name not in RATE_PROVIDERS:
        allowed = sorted(RATE_PROVIDERS | set(PROVIDER_ALIASES))
        raise ValueError(f"Unsupported {setting} '{value}'. Allowed values: {allowed}")
    return name
