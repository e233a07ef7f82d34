"""Route handlers for ticker lookup."""

from __future__ import annotations

from flask.views import MethodView

from household_portfolio.services.symbols import find_symbol, search_symbols

from . import blp
from .schemas import SymbolCollectionSchema, SymbolQuerySchema, SymbolSchema


@blp.route("")
class SymbolCollection(MethodView):
    @blp.arguments(SymbolQuerySchema, location="query")
    @blp.response(200, SymbolCollectionSchema())
    def get(self, query_args):
        items = search_symbols(
            query_args["search"],
            type=query_args["type"],
            currency=query_args["currency"],
            limit=query_args["limit"],
        )
        return {"items": items}


@blp.route("/<string:ticker>")
class SymbolItem(MethodView):
    @blp.response(200, SymbolSchema())
    def get(self, ticker: str):
        return find_symbol(ticker)
