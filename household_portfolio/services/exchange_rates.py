"""Process-wide exchange-rate cache backed by primary and fallback providers."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation, localcontext
from time import perf_counter

from sqlalchemy.exc import SQLAlchemyError

from household_portfolio.logging import provider_log_extra
from household_portfolio.providers import BaseRateProvider, ProviderError, RateSnapshot
from household_portfolio.providers.registry import get_provider
from household_portfolio.services.currency_registry import BASE_CURRENCY
from household_portfolio.services.fx_conversion import (
    ExchangeRateTable,
    RateTableError,
    fallback_table,
    get_decimal_context,
)
from household_portfolio.utils.datetime import seconds_since, utc_now

logger = logging.getLogger(__name__)

EXTENSION_KEY = "exchange_rates"

RefreshListener = Callable[[ExchangeRateTable], None]


@dataclass(frozen=True)
class RateCacheInfo:
    """Point-in-time view of the cache used by health and rates endpoints."""

    table: ExchangeRateTable
    last_success: datetime | None
    last_attempt: datetime | None
    last_error: str | None
    refresh_interval: int

    @property
    def age_seconds(self) -> float | None:
        if self.table.as_of is None:
            return None
        return seconds_since(self.table.as_of)


def rebase_to_usd(snapshot: RateSnapshot) -> dict[str, Decimal]:
    """Return ``snapshot`` rates expressed as units per USD."""

    base = snapshot.base_currency
    rates = dict(snapshot.rates)
    if base == BASE_CURRENCY.value:
        return rates
    usd_per_base = rates.get(BASE_CURRENCY.value)
    if usd_per_base is None or usd_per_base <= 0:
        raise RateTableError(f"Cannot rebase {base} rates without a positive USD quote")
    rebased: dict[str, Decimal] = {base: Decimal("1") / usd_per_base}
    try:
        with localcontext(get_decimal_context()):
            for code, value in rates.items():
                rebased[code] = value / usd_per_base
    except InvalidOperation as exc:
        raise RateTableError(f"Unusable rate in {snapshot.source} payload") from exc
    return rebased


class ExchangeRateProvider:
    """Serve a complete :class:`ExchangeRateTable`, refreshing it on an interval.

    ``get_rates`` never raises and never returns a partial table. Failed
    refreshes keep the previous table and flag it stale; the next attempt is
    made after ``retry_interval`` seconds so readers are not blocked on a
    network timeout for every call while offline.
    """

    def __init__(
        self,
        primary: BaseRateProvider,
        fallback: BaseRateProvider | None = None,
        *,
        refresh_interval: int = 86400,
        retry_interval: int = 300,
        initial_table: ExchangeRateTable | None = None,
    ) -> None:
        self._primary = primary
        self._fallback = fallback
        self._refresh_interval = refresh_interval
        self._retry_interval = retry_interval
        self._lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._table = initial_table or fallback_table()
        self._last_success: datetime | None = None
        self._last_attempt: datetime | None = None
        self._last_error: str | None = None
        self._listeners: list[RefreshListener] = []
        if initial_table is not None and not initial_table.stale:
            self._last_success = initial_table.as_of

    @property
    def primary(self) -> BaseRateProvider:
        return self._primary

    @property
    def fallback(self) -> BaseRateProvider | None:
        return self._fallback

    def add_listener(self, listener: RefreshListener) -> None:
        """Call ``listener`` with every table produced by a successful refresh."""

        self._listeners.append(listener)

    def current(self) -> ExchangeRateTable:
        """Return the cached table without attempting a refresh."""

        with self._lock:
            return self._table

    def get_rates(self) -> ExchangeRateTable:
        if self._is_due():
            return self.refresh()
        return self.current()

    def refresh(self, *, force: bool = False) -> ExchangeRateTable:
        """Fetch fresh rates, falling back to the cached table on failure.

        Concurrent callers do not queue behind an in-flight refresh; they get
        the table currently cached.
        """

        if not self._refresh_lock.acquire(blocking=force):
            return self.current()
        try:
            if not force and not self._is_due():
                return self.current()
            return self._refresh_locked()
        finally:
            self._refresh_lock.release()

    def seed(self, table: ExchangeRateTable) -> None:
        """Replace the cached table, e.g. with the last persisted rates."""

        with self._lock:
            self._table = table
            if not table.stale:
                self._last_success = table.as_of

    def info(self) -> RateCacheInfo:
        with self._lock:
            return RateCacheInfo(
                table=self._table,
                last_success=self._last_success,
                last_attempt=self._last_attempt,
                last_error=self._last_error,
                refresh_interval=self._refresh_interval,
            )

    def _is_due(self) -> bool:
        with self._lock:
            last_success = self._last_success
            last_attempt = self._last_attempt
            failed = self._last_error is not None
        if failed and last_attempt is not None:
            return seconds_since(last_attempt) >= self._retry_interval
        if last_success is None:
            return True
        return seconds_since(last_success) >= self._refresh_interval

    def _refresh_locked(self) -> ExchangeRateTable:
        attempted_at = utc_now()
        errors: list[str] = []
        for provider in (self._primary, self._fallback):
            if provider is None:
                continue
            table = self._try_provider(provider, errors)
            if table is None:
                continue
            with self._lock:
                self._table = table
                self._last_success = attempted_at
                self._last_attempt = attempted_at
                self._last_error = None
            self._notify(table)
            return table

        with self._lock:
            self._table = self._table.mark_stale()
            self._last_attempt = attempted_at
            self._last_error = "; ".join(errors) or "no provider configured"
            cached = self._table
        logger.warning(
            "Serving stale rates from %s captured at %s",
            cached.source,
            cached.as_of,
            extra=provider_log_extra(
                provider=cached.source,
                base=BASE_CURRENCY.value,
                event="provider.stale",
                status="stale",
                duration_ms=None,
                stale=True,
            ),
        )
        return cached

    def _try_provider(
        self, provider: BaseRateProvider, errors: list[str]
    ) -> ExchangeRateTable | None:
        name = _provider_name(provider)
        is_primary = provider is self._primary
        start = perf_counter()
        try:
            snapshot = provider.get_latest(BASE_CURRENCY.value)
            with self._lock:
                previous = self._table
            table = previous.merged(
                rebase_to_usd(snapshot), source=snapshot.source, as_of=snapshot.timestamp
            )
        except (ProviderError, RateTableError) as exc:
            duration = (perf_counter() - start) * 1000
            errors.append(f"{name}: {exc}")
            log = logger.warning if is_primary else logger.error
            log(
                "%s provider failure: %s",
                "Primary" if is_primary else "Fallback",
                exc,
                extra=provider_log_extra(
                    provider=name,
                    base=BASE_CURRENCY.value,
                    event="provider.fetch",
                    status="error",
                    duration_ms=duration,
                    stale=False,
                    error=str(exc),
                ),
            )
            return None

        duration = (perf_counter() - start) * 1000
        logger.info(
            "%s provider fetch succeeded",
            "Primary" if is_primary else "Fallback",
            extra=provider_log_extra(
                provider=name,
                base=BASE_CURRENCY.value,
                event="provider.fetch",
                status="success",
                duration_ms=duration,
                stale=False,
            ),
        )
        return table

    def _notify(self, table: ExchangeRateTable) -> None:
        for listener in self._listeners:
            try:
                listener(table)
            except SQLAlchemyError:
                logger.exception("Failed to persist refreshed rates from %s", table.source)


def _provider_name(provider: BaseRateProvider | None) -> str:
    if provider is None:
        return "unknown"
    return getattr(provider, "name", provider.__class__.__name__)


def init_exchange_rates(app) -> ExchangeRateProvider:
    """Create the app-wide cache, seeded from the last persisted table when present."""

    from household_portfolio.services.rate_store import load_latest_table, persist_table

    with app.app_context():
        primary = get_provider(app.config.get("FX_RATE_PROVIDER"))
        fallback: BaseRateProvider | None = None
        fallback_name = app.config.get("FX_FALLBACK_PROVIDER")
        if fallback_name and fallback_name != primary.name:
            try:
                fallback = get_provider(fallback_name)
            except ProviderError as exc:
                logger.warning("Configured fallback provider '%s' unavailable: %s", fallback_name, exc)

        initial: ExchangeRateTable | None = None
        try:
            initial = load_latest_table()
        except (SQLAlchemyError, RateTableError) as exc:
            logger.warning("Could not restore persisted rates, using static table: %s", exc)

    provider = ExchangeRateProvider(
        primary,
        fallback,
        refresh_interval=int(app.config.get("RATES_REFRESH_INTERVAL_SECONDS", 86400)),
        retry_interval=int(app.config.get("RATES_RETRY_INTERVAL_SECONDS", 300)),
        initial_table=initial,
    )

    def _persist(table: ExchangeRateTable) -> None:
        with app.app_context():
            persist_table(table)

    provider.add_listener(_persist)
    app.extensions[EXTENSION_KEY] = provider
    return provider


def get_exchange_rates(app=None) -> ExchangeRateProvider:
    """Return the cache attached to ``app`` (or the current app)."""

    if app is None:
        from flask import current_app

        app = current_app
    provider = app.extensions.get(EXTENSION_KEY)
    if provider is None:
        raise RuntimeError("Exchange rates have not been initialised. Call init_exchange_rates first.")
    return provider
