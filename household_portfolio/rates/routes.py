"""Routes for the cached FX rate table and manual refresh."""

from __future__ import annotations

from datetime import datetime, timedelta

from flask import Response, current_app, jsonify

from household_portfolio.schemas import RateTableSchema
from household_portfolio.services.currency_registry import BASE_CURRENCY
from household_portfolio.services.exchange_rates import get_exchange_rates
from household_portfolio.services.fx_conversion import ExchangeRateTable
from household_portfolio.services.scheduler import ensure_refresh_state
from household_portfolio.utils.datetime import utc_now

from . import bp

DEFAULT_THROTTLE_SECONDS = 60

_table_schema = RateTableSchema()


def _serialize(table: ExchangeRateTable) -> dict:
    return _table_schema.dump(
        {
            "base_currency": BASE_CURRENCY.value,
            "source": table.source,
            "as_of": table.as_of,
            "stale": table.stale,
            "rates": table.as_strings(),
        }
    )


def _throttled(retry_after: int) -> tuple[Response, int]:
    payload = {
        "message": "Refresh throttled. Try again later.",
        "retry_after": max(retry_after, 1),
    }
    return jsonify(payload), 429


@bp.get("")
def get_rates() -> Response:
    """Return the table used for conversions, refreshing it first when due."""

    table = get_exchange_rates().get_rates()
    return jsonify(_serialize(table))


@bp.post("/refresh")
def refresh_rates() -> tuple[Response, int]:
    """Force a refresh of the rate table, throttled per configured window."""

    app = current_app
    state = ensure_refresh_state(app)
    now = utc_now()

    throttle_seconds = max(int(app.config.get("REFRESH_THROTTLE_SECONDS", DEFAULT_THROTTLE_SECONDS)), 0)
    throttle_until = state.get("throttle_until")
    if throttle_seconds > 0 and isinstance(throttle_until, datetime) and throttle_until > now:
        return _throttled(int((throttle_until - now).total_seconds()))

    provider = get_exchange_rates()
    table = provider.refresh(force=True)
    if throttle_seconds > 0:
        state["throttle_until"] = now + timedelta(seconds=throttle_seconds)
    else:
        state.pop("throttle_until", None)

    if table.stale:
        state["last_failure"] = now
        payload = {
            "message": "Rate providers unavailable; serving cached rates.",
            "error": provider.info().last_error,
            "rates": _serialize(table),
        }
        return jsonify(payload), 503

    state["last_success"] = now
    state["last_failure"] = None
    payload = {"message": "Rates refreshed.", "rates": _serialize(table)}
    return jsonify(payload), 202
