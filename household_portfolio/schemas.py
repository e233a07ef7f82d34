"""Schemas for health, currency and rate responses."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class HealthStatusSchema(Schema):
    status = fields.String(required=True)
    app = fields.String()


class HealthRatesSchema(Schema):
    status = fields.String(required=True)
    source = fields.String(allow_none=True)
    base_currency = fields.String(allow_none=True)
    last_updated = fields.DateTime(allow_none=True)
    age_seconds = fields.Float(allow_none=True)
    stale = fields.Boolean(required=True)
    last_error = fields.String(allow_none=True)


class CurrencySchema(Schema):
    code = fields.String(required=True)
    name = fields.String(required=True)
    symbol = fields.String(required=True)
    minor_unit_of = fields.String(allow_none=True)
    minor_unit_factor = fields.Decimal(allow_none=True, as_string=True)


class CurrencyCatalogSchema(Schema):
    base_currency = fields.String(required=True)
    items = fields.List(fields.Nested(CurrencySchema), required=True)


class CurrencyValidationRequestSchema(Schema):
    code = fields.String(load_default=None)


class CurrencyValidationResponseSchema(Schema):
    code = fields.String(required=True)
    name = fields.String(required=True)
    symbol = fields.String(required=True)
    message = fields.String(required=True)


class ConversionRequestSchema(Schema):
    amount = fields.Decimal(
        required=True,
        validate=validate.Range(min=0, error="'amount' must not be negative."),
    )
    from_currency = fields.String(required=True)
    to_currency = fields.String(required=True)


class ConversionResponseSchema(Schema):
    amount = fields.Decimal(required=True, as_string=True)
    from_currency = fields.String(required=True)
    to_currency = fields.String(required=True)
    converted_amount = fields.Decimal(required=True, as_string=True)
    rates_source = fields.String(required=True)
    rates_as_of = fields.DateTime(allow_none=True)
    stale = fields.Boolean(required=True)


class RateTableSchema(Schema):
    base_currency = fields.String(required=True)
    source = fields.String(required=True)
    as_of = fields.DateTime(allow_none=True)
    stale = fields.Boolean(required=True)
    rates = fields.Dict(keys=fields.String(), values=fields.String(), required=True)


class RefreshThrottleSchema(Schema):
    message = fields.String(required=True)
    retry_after = fields.Integer(required=True)
