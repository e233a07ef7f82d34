"""Route handlers for households, members, holdings, summaries and snapshots."""

from __future__ import annotations

from flask import current_app, url_for
from flask.views import MethodView

from household_portfolio.services.exchange_rates import get_exchange_rates
from household_portfolio.services.households import (
    compute_household_summary,
    create_household,
    get_household,
)
from household_portfolio.services.investments import (
    InvestmentCreateData,
    InvestmentUpdateData,
    add_member,
    create_investment,
    delete_investment,
    get_investment,
    list_investments,
    remove_member,
    rename_member,
    update_investment,
)
from household_portfolio.services.snapshots import (
    DEFAULT_TOP_INVESTMENTS,
    list_snapshots,
    persist_snapshots,
)
from household_portfolio.validation import validate_currency_code

from . import blp
from .schemas import (
    HouseholdCreateSchema,
    HouseholdResponseSchema,
    InvestmentCollectionSchema,
    InvestmentCreateSchema,
    InvestmentQuerySchema,
    InvestmentSchema,
    InvestmentUpdateSchema,
    MemberCreateSchema,
    MemberSchema,
    PortfolioSummarySchema,
    SnapshotCollectionSchema,
    SnapshotCreateSchema,
    SnapshotQuerySchema,
    SummaryQuerySchema,
)


def _serialize_household(dto) -> dict:
    return {
        "id": dto.id,
        "name": dto.name,
        "members": [{"id": member.id, "name": member.name} for member in dto.members],
    }


def _reporting_currency(value):
    if value is None:
        return None
    return validate_currency_code(value, field="currency")


@blp.route("")
class HouseholdCollection(MethodView):
    @blp.arguments(HouseholdCreateSchema)
    @blp.response(201, HouseholdResponseSchema())
    def post(self, payload):
        dto = create_household(payload["name"], payload["members"])
        headers = {
            "Location": url_for("Households.HouseholdItem", household_id=dto.id, _external=False)
        }
        return _serialize_household(dto), 201, headers


@blp.route("/<int:household_id>")
class HouseholdItem(MethodView):
    @blp.response(200, HouseholdResponseSchema())
    def get(self, household_id: int):
        return _serialize_household(get_household(household_id))


@blp.route("/<int:household_id>/summary")
class HouseholdSummary(MethodView):
    @blp.arguments(SummaryQuerySchema, location="query")
    @blp.response(200, PortfolioSummarySchema())
    def get(self, query_args, household_id: int):
        currency = _reporting_currency(query_args.get("currency"))
        result = compute_household_summary(household_id, currency)
        summary = result.summary
        return {
            "household_id": household_id,
            "currency": summary.currency,
            "total_value": summary.total_value,
            "total_invested": summary.total_invested,
            "total_gain_loss": summary.total_gain_loss,
            "gain_loss_percentage": summary.gain_loss_percentage,
            "investment_count": summary.investment_count,
            "members": summary.members,
            "investment_wise_breakdown": summary.investment_wise_breakdown,
            "rates_source": summary.rates_source,
            "rates_as_of": summary.rates_as_of,
            "rates_stale": summary.rates_stale,
            "rejected": result.rejected,
        }


@blp.route("/<int:household_id>/snapshots")
class HouseholdSnapshots(MethodView):
    @blp.arguments(SnapshotQuerySchema, location="query")
    @blp.response(200, SnapshotCollectionSchema())
    def get(self, query_args, household_id: int):
        get_household(household_id)
        items = list_snapshots(
            household_id, member_id=query_args["member_id"], limit=query_args["limit"]
        )
        return {"items": items}

    @blp.arguments(SnapshotCreateSchema)
    @blp.response(201, SnapshotCollectionSchema())
    def post(self, payload, household_id: int):
        currency = _reporting_currency(payload.get("currency"))
        rates = get_exchange_rates().get_rates()
        result = compute_household_summary(household_id, currency, rates=rates)
        top_n = int(current_app.config.get("SNAPSHOT_TOP_INVESTMENTS", DEFAULT_TOP_INVESTMENTS))
        records = persist_snapshots(household_id, result, rates, top_n=top_n)
        return {"items": records}


@blp.route("/<int:household_id>/members")
class MemberCollection(MethodView):
    @blp.arguments(MemberCreateSchema)
    @blp.response(201, MemberSchema())
    def post(self, payload, household_id: int):
        member = add_member(household_id, payload["name"])
        return {"id": member.id, "name": member.name}


@blp.route("/<int:household_id>/members/<int:member_id>")
class MemberItem(MethodView):
    @blp.arguments(MemberCreateSchema)
    @blp.response(200, MemberSchema())
    def put(self, payload, household_id: int, member_id: int):
        member = rename_member(household_id, member_id, payload["name"])
        return {"id": member.id, "name": member.name}

    @blp.response(204)
    def delete(self, household_id: int, member_id: int):
        remove_member(household_id, member_id)
        return None


@blp.route("/<int:household_id>/investments")
class InvestmentCollection(MethodView):
    @blp.arguments(InvestmentQuerySchema, location="query")
    @blp.response(200, InvestmentCollectionSchema())
    def get(self, query_args, household_id: int):
        return {"items": list_investments(household_id, member_id=query_args["member_id"])}

    @blp.arguments(InvestmentCreateSchema)
    @blp.response(201, InvestmentSchema())
    def post(self, payload, household_id: int):
        dto = create_investment(household_id, InvestmentCreateData(**payload))
        headers = {
            "Location": url_for(
                "Households.InvestmentItem",
                household_id=household_id,
                investment_id=dto.id,
                _external=False,
            )
        }
        return dto, 201, headers


@blp.route("/<int:household_id>/investments/<int:investment_id>")
class InvestmentItem(MethodView):
    @blp.response(200, InvestmentSchema())
    def get(self, household_id: int, investment_id: int):
        return get_investment(household_id, investment_id)

    @blp.arguments(InvestmentUpdateSchema)
    @blp.response(200, InvestmentSchema())
    def put(self, payload, household_id: int, investment_id: int):
        return update_investment(household_id, investment_id, InvestmentUpdateData(**payload))

    @blp.response(204)
    def delete(self, household_id: int, investment_id: int):
        delete_investment(household_id, investment_id)
        return None
