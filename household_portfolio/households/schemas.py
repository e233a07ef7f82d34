"""Marshmallow schemas for household endpoints."""

from __future__ import annotations

from marshmallow import Schema, fields
from marshmallow.validate import Length, Range

from household_portfolio.services.currency_registry import CurrencyCode
from household_portfolio.services.portfolio_types import InvestmentType


class HouseholdCreateSchema(Schema):
    name = fields.String(required=True, validate=Length(min=1, max=100))
    members = fields.List(
        fields.String(validate=Length(min=1, max=100)), load_default=list
    )


class MemberSchema(Schema):
    id = fields.Integer(required=True)
    name = fields.String(required=True)


class HouseholdResponseSchema(Schema):
    id = fields.Integer(required=True)
    name = fields.String(required=True)
    members = fields.List(fields.Nested(MemberSchema), required=True)


class SummaryQuerySchema(Schema):
    currency = fields.String(load_default=None)


class TypeBreakdownSchema(Schema):
    investment_type = fields.Enum(InvestmentType, by_value=True, required=True)
    currency = fields.Enum(CurrencyCode, by_value=True, required=True)
    total_value = fields.Decimal(as_string=True)
    total_invested = fields.Decimal(as_string=True)
    total_gain_loss = fields.Decimal(as_string=True)
    gain_loss_percentage = fields.Decimal(as_string=True)
    investment_count = fields.Integer()


class MemberSummarySchema(Schema):
    member_id = fields.Integer(required=True)
    name = fields.String(required=True)
    currency = fields.Enum(CurrencyCode, by_value=True, required=True)
    total_value = fields.Decimal(as_string=True)
    total_invested = fields.Decimal(as_string=True)
    total_gain_loss = fields.Decimal(as_string=True)
    gain_loss_percentage = fields.Decimal(as_string=True)
    investment_count = fields.Integer()
    investment_wise_breakdown = fields.List(fields.Nested(TypeBreakdownSchema))


class RejectionSchema(Schema):
    index = fields.Integer()
    symbol = fields.String(allow_none=True)
    member_id = fields.Raw(allow_none=True)
    reason = fields.String()
    field = fields.String(allow_none=True)


class PortfolioSummarySchema(Schema):
    household_id = fields.Integer(required=True)
    currency = fields.Enum(CurrencyCode, by_value=True, required=True)
    total_value = fields.Decimal(as_string=True)
    total_invested = fields.Decimal(as_string=True)
    total_gain_loss = fields.Decimal(as_string=True)
    gain_loss_percentage = fields.Decimal(as_string=True)
    investment_count = fields.Integer()
    members = fields.List(fields.Nested(MemberSummarySchema))
    investment_wise_breakdown = fields.List(fields.Nested(TypeBreakdownSchema))
    rates_source = fields.String()
    rates_as_of = fields.DateTime(allow_none=True)
    rates_stale = fields.Boolean()
    rejected = fields.List(fields.Nested(RejectionSchema))


class SnapshotCreateSchema(Schema):
    currency = fields.String(load_default=None)


class SnapshotQuerySchema(Schema):
    member_id = fields.Integer(load_default=None)
    limit = fields.Integer(load_default=50, validate=Range(min=1, max=500))


class SnapshotSchema(Schema):
    id = fields.Integer(required=True)
    household_id = fields.Integer(required=True)
    member_id = fields.Integer(allow_none=True)
    taken_at = fields.DateTime(required=True)
    currency = fields.String(required=True)
    total_value = fields.Decimal(as_string=True)
    total_invested = fields.Decimal(as_string=True)
    investment_count = fields.Integer()
    type_breakdown = fields.List(fields.Dict())
    platform_breakdown = fields.List(fields.Dict())
    top_investments = fields.List(fields.Dict())
    rates_source = fields.String()
    rates_stale = fields.Boolean()


class SnapshotCollectionSchema(Schema):
    items = fields.List(fields.Nested(SnapshotSchema), required=True)


class MemberCreateSchema(Schema):
    name = fields.String(required=True, validate=Length(min=1, max=120))


class InvestmentQuerySchema(Schema):
    member_id = fields.Integer(load_default=None)


class InvestmentCreateSchema(Schema):
    member_id = fields.Integer(required=True)
    symbol = fields.String(required=True, validate=Length(min=1, max=64))
    name = fields.String(load_default=None, validate=Length(max=255))
    investment_type = fields.String(load_default=None, validate=Length(max=32))
    quantity = fields.Decimal(required=True)
    average_price = fields.Decimal(required=True)
    current_price = fields.Decimal(load_default=None, allow_none=True)
    currency = fields.String(load_default=None, validate=Length(min=3, max=3))


class InvestmentUpdateSchema(Schema):
    quantity = fields.Decimal()
    average_price = fields.Decimal()
    current_price = fields.Decimal()
    name = fields.String(validate=Length(min=1, max=255))
    currency = fields.String(validate=Length(min=3, max=3))


class InvestmentSchema(Schema):
    id = fields.Integer(required=True)
    household_id = fields.Integer(required=True)
    member_id = fields.Integer(required=True)
    symbol = fields.String(required=True)
    name = fields.String(allow_none=True)
    investment_type = fields.String(allow_none=True)
    quantity = fields.Decimal(as_string=True)
    average_price = fields.Decimal(as_string=True)
    current_price = fields.Decimal(as_string=True, allow_none=True)
    currency = fields.String(allow_none=True)
    source_system = fields.String()
    updated_at = fields.DateTime(allow_none=True)


class InvestmentCollectionSchema(Schema):
    items = fields.List(fields.Nested(InvestmentSchema), required=True)
