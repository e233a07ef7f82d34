"""Route handlers for health checks."""

from __future__ import annotations

from flask import current_app
from flask.views import MethodView

from household_portfolio.schemas import HealthRatesSchema, HealthStatusSchema
from household_portfolio.services.currency_registry import BASE_CURRENCY
from household_portfolio.services.exchange_rates import EXTENSION_KEY, ExchangeRateProvider

from . import blp


@blp.route("")
class HealthStatus(MethodView):
    @blp.response(200, HealthStatusSchema())
    def get(self):
        return {
            "status": "ok",
            "app": current_app.config.get("APP_NAME", "household-portfolio"),
        }


@blp.route("/rates")
class HealthRates(MethodView):
    @blp.response(200, HealthRatesSchema())
    def get(self):
        provider: ExchangeRateProvider | None = current_app.extensions.get(EXTENSION_KEY)
        if provider is None:
            return {
                "status": "uninitialized",
                "source": None,
                "base_currency": None,
                "last_updated": None,
                "age_seconds": None,
                "stale": True,
                "last_error": None,
            }

        info = provider.info()
        table = info.table
        if table.as_of is None:
            status = "fallback"
        elif table.stale:
            status = "stale"
        else:
            status = "ok"
        return {
            "status": status,
            "source": table.source,
            "base_currency": BASE_CURRENCY.value,
            "last_updated": table.as_of,
            "age_seconds": info.age_seconds,
            "stale": table.stale,
            "last_error": info.last_error,
        }
