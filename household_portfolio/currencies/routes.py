"""Routes for the currency catalog, code validation and conversion."""

from __future__ import annotations

from flask.views import MethodView

from household_portfolio.schemas import (
    ConversionRequestSchema,
    ConversionResponseSchema,
    CurrencyCatalogSchema,
    CurrencyValidationRequestSchema,
    CurrencyValidationResponseSchema,
)
from household_portfolio.services.currency_registry import (
    BASE_CURRENCY,
    currency_name,
    currency_symbol,
    minor_unit,
    supported_currencies,
)
from household_portfolio.services.exchange_rates import get_exchange_rates
from household_portfolio.services.fx_conversion import convert
from household_portfolio.validation import validate_currency_code

from . import blp


@blp.route("")
class CurrencyCatalog(MethodView):
    @blp.response(200, CurrencyCatalogSchema())
    def get(self):
        items = []
        for info in supported_currencies():
            unit = minor_unit(info.code)
            items.append(
                {
                    "code": info.code.value,
                    "name": info.name,
                    "symbol": info.symbol,
                    "minor_unit_of": unit.major.value if unit else None,
                    "minor_unit_factor": unit.factor if unit else None,
                }
            )
        return {"base_currency": BASE_CURRENCY.value, "items": items}


@blp.route("/validate")
class CurrencyValidation(MethodView):
    @blp.arguments(CurrencyValidationRequestSchema)
    @blp.response(200, CurrencyValidationResponseSchema())
    def post(self, data):
        code = validate_currency_code(data.get("code"), field="code")
        return {
            "code": code.value,
            "name": currency_name(code),
            "symbol": currency_symbol(code),
            "message": "Currency code is valid.",
        }


@blp.route("/convert")
class CurrencyConversion(MethodView):
    @blp.arguments(ConversionRequestSchema)
    @blp.response(200, ConversionResponseSchema())
    def post(self, data):
        source = validate_currency_code(data["from_currency"], field="from_currency")
        target = validate_currency_code(data["to_currency"], field="to_currency")
        table = get_exchange_rates().get_rates()
        return {
            "amount": data["amount"],
            "from_currency": source.value,
            "to_currency": target.value,
            "converted_amount": convert(data["amount"], source, target, table),
            "rates_source": table.source,
            "rates_as_of": table.as_of,
            "stale": table.stale,
        }
