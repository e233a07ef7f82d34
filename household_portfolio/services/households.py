"""Database access for households and the summaries computed over them."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from flask import current_app
from sqlalchemy import asc
from sqlalchemy.exc import IntegrityError

from household_portfolio.database import get_session
from household_portfolio.errors import NotFoundError, ValidationError
from household_portfolio.models import Household, Investment, StockSymbol
from household_portfolio.models import Member as MemberRecord
from household_portfolio.services.aggregator import BucketCurrencies
from household_portfolio.services.currency_registry import CurrencyCode, parse_currency
from household_portfolio.services.exchange_rates import get_exchange_rates
from household_portfolio.services.fx_conversion import ExchangeRateTable
from household_portfolio.services.normalizer import SymbolInfo
from household_portfolio.services.portfolio_summary import SummaryResult, summarize
from household_portfolio.services.portfolio_types import Member

logger = logging.getLogger(__name__)

BUCKET_CURRENCIES_EXT_KEY = "bucket_currencies"


@dataclass(frozen=True)
class HouseholdDTO:
    id: int
    name: str
    members: tuple[Member, ...]


class DatabaseSymbolDirectory:
    """Ticker lookup backed by the stock_symbols table, cached per instance."""

    def __init__(self, session=None) -> None:
        self._session = session or get_session()
        self._cache: dict[str, Optional[SymbolInfo]] = {}

    def lookup(self, ticker: str) -> Optional[SymbolInfo]:
        if not ticker:
            return None
        key = ticker.strip().upper()
        if key not in self._cache:
            record = self._session.query(StockSymbol).filter_by(ticker=key).one_or_none()
            self._cache[key] = (
                SymbolInfo(
                    ticker=record.ticker,
                    name=record.name,
                    currency=record.currency_code,
                    type=record.type,
                )
                if record is not None
                else None
            )
        return self._cache[key]


def create_household(name: str, member_names: Sequence[str]) -> HouseholdDTO:
    """Create a household with members in the given order."""

    normalized = (name or "").strip()
    if not normalized:
        raise ValidationError("Household name is required.", payload={"field": "name"})

    session = get_session()
    household = Household(name=normalized)
    household.members = [MemberRecord(name=member.strip()) for member in member_names]
    session.add(household)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ValidationError(
            f"Household '{normalized}' already exists.", payload={"field": "name"}
        ) from exc
    return _to_dto(household)


def get_household(household_id: int) -> HouseholdDTO:
    return _to_dto(_get_household_or_404(household_id))


def find_household_by_name(name: str) -> Optional[HouseholdDTO]:
    session = get_session()
    household = session.query(Household).filter_by(name=name.strip()).one_or_none()
    return _to_dto(household) if household is not None else None


def load_raw_positions(household_id: int, member_id: Optional[int] = None) -> list[dict]:
    """Return stored holdings in the raw record shape, oldest first."""

    session = get_session()
    query = session.query(Investment).filter(Investment.household_id == household_id)
    if member_id is not None:
        query = query.filter(Investment.member_id == member_id)
    return [row.to_raw() for row in query.order_by(asc(Investment.id)).all()]


def compute_household_summary(
    household_id: int,
    reporting_currency: Optional[CurrencyCode] = None,
    *,
    rates: Optional[ExchangeRateTable] = None,
) -> SummaryResult:
    """Summarize a stored household against one rate snapshot.

    The snapshot is taken from the app's exchange-rate cache before
    aggregation starts when ``rates`` is not supplied.
    """

    household = get_household(household_id)
    currency = reporting_currency or default_reporting_currency()
    table = rates if rates is not None else get_exchange_rates().get_rates()
    result = summarize(
        load_raw_positions(household_id),
        household.members,
        currency,
        table,
        symbol_directory=DatabaseSymbolDirectory(),
        bucket_currencies=configured_bucket_currencies(),
    )
    if result.rejected:
        logger.warning(
            "Household %s: %s holding(s) excluded from summary",
            household_id,
            len(result.rejected),
            extra={"event": "summary.rejected_rows", "household_id": household_id},
        )
    return result


def configured_bucket_currencies() -> Optional[BucketCurrencies]:
    return current_app.extensions.get(BUCKET_CURRENCIES_EXT_KEY)


def default_reporting_currency() -> CurrencyCode:
    return parse_currency(current_app.config.get("DEFAULT_REPORTING_CURRENCY") or "GBP")


def _get_household_or_404(household_id: int) -> Household:
    session = get_session()
    household = session.get(Household, household_id)
    if household is None:
        raise NotFoundError(
            f"Household {household_id} not found.", payload={"household_id": household_id}
        )
    return household


def _to_dto(household: Household) -> HouseholdDTO:
    return HouseholdDTO(
        id=household.id,
        name=household.name,
        members=tuple(Member(id=member.id, name=member.name) for member in household.members),
    )
