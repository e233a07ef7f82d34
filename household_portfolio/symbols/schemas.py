"""Marshmallow schemas for ticker lookup."""

from __future__ import annotations

from marshmallow import Schema, fields
from marshmallow.validate import Range


class SymbolQuerySchema(Schema):
    search = fields.String(load_default=None)
    type = fields.String(load_default=None)
    currency = fields.String(load_default=None)
    limit = fields.Integer(load_default=50, validate=Range(min=1, max=1000))


class SymbolSchema(Schema):
    ticker = fields.String(required=True)
    name = fields.String(required=True)
    short_name = fields.String(allow_none=True)
    isin = fields.String(allow_none=True)
    type = fields.String(allow_none=True)
    currency_code = fields.String(allow_none=True)


class SymbolCollectionSchema(Schema):
    items = fields.List(fields.Nested(SymbolSchema), required=True)
