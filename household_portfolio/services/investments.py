"""Manual entry of household holdings and member management."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import asc
from sqlalchemy.exc import IntegrityError

from household_portfolio.database import get_session
from household_portfolio.errors import NotFoundError, ValidationError
from household_portfolio.models import Household, Investment
from household_portfolio.models import Member as MemberRecord
from household_portfolio.services.households import DatabaseSymbolDirectory
from household_portfolio.services.normalizer import NormalizationError, normalize
from household_portfolio.services.portfolio_types import Member, SourceSystem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvestmentDTO:
    """Stored holding exactly as entered, before normalization."""

    id: int
    household_id: int
    member_id: int
    symbol: str
    name: Optional[str]
    investment_type: Optional[str]
    quantity: Decimal
    average_price: Decimal
    current_price: Optional[Decimal]
    currency: Optional[str]
    source_system: str
    updated_at: Optional[datetime]


@dataclass(frozen=True)
class InvestmentCreateData:
    member_id: int
    symbol: str
    quantity: Decimal
    average_price: Decimal
    name: Optional[str] = None
    investment_type: Optional[str] = None
    current_price: Optional[Decimal] = None
    currency: Optional[str] = None


@dataclass(frozen=True)
class InvestmentUpdateData:
    """Fields left as ``None`` keep their stored value."""

    quantity: Optional[Decimal] = None
    average_price: Optional[Decimal] = None
    current_price: Optional[Decimal] = None
    name: Optional[str] = None
    currency: Optional[str] = None


def list_investments(household_id: int, member_id: Optional[int] = None) -> list[InvestmentDTO]:
    _get_household(household_id)
    session = get_session()
    query = session.query(Investment).filter(Investment.household_id == household_id)
    if member_id is not None:
        query = query.filter(Investment.member_id == member_id)
    return [_to_dto(row) for row in query.order_by(asc(Investment.id)).all()]


def get_investment(household_id: int, investment_id: int) -> InvestmentDTO:
    return _to_dto(_get_investment(household_id, investment_id))


def create_investment(household_id: int, data: InvestmentCreateData) -> InvestmentDTO:
    """Record a manually entered holding for a household member.

    The record must normalize cleanly before it is stored; a second holding
    with the same member, symbol and type is refused.
    """

    _get_household(household_id)
    member = _get_member(household_id, data.member_id, field="member_id")
    session = get_session()

    symbol = (data.symbol or "").strip().upper()
    investment_type = _optional_text(data.investment_type)
    currency = _optional_text(data.currency)
    raw = {
        "household_id": household_id,
        "member_id": member.id,
        "symbol": symbol,
        "name": _optional_text(data.name),
        "investment_type": investment_type,
        "quantity": data.quantity,
        "average_price": data.average_price,
        "current_price": data.current_price,
        "currency": currency.upper() if currency else None,
        "source_system": SourceSystem.MANUAL.value,
    }
    normalize(raw, symbol_directory=DatabaseSymbolDirectory(session))

    existing = (
        session.query(Investment)
        .filter_by(member_id=member.id, symbol=symbol, investment_type=investment_type)
        .one_or_none()
    )
    if existing is not None:
        raise ValidationError(
            f"Member {member.id} already holds {symbol} as {investment_type or 'unspecified type'}.",
            payload={"field": "symbol", "investment_id": existing.id},
        )

    investment = Investment(**raw)
    session.add(investment)
    _commit(session, f"Investment {symbol} already exists for member {member.id}.")
    logger.info(
        "Added manual holding %s for member %s",
        symbol,
        member.id,
        extra={"event": "investment.created", "household_id": household_id},
    )
    return _to_dto(investment)


def update_investment(
    household_id: int, investment_id: int, data: InvestmentUpdateData
) -> InvestmentDTO:
    """Change figures on a stored holding; the result must still normalize."""

    session = get_session()
    investment = _get_investment(household_id, investment_id)
    changes: dict[str, Any] = {
        "quantity": data.quantity,
        "average_price": data.average_price,
        "current_price": data.current_price,
        "name": _optional_text(data.name),
        "currency": (_optional_text(data.currency) or "").upper() or None,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if not changes:
        raise ValidationError("No fields to update.", payload={"field": "body"})

    for key, value in changes.items():
        setattr(investment, key, value)
    try:
        normalize(investment.to_raw(), symbol_directory=DatabaseSymbolDirectory(session))
    except NormalizationError:
        session.rollback()
        raise

    _commit(session, f"Investment {investment_id} could not be updated.")
    session.refresh(investment)
    return _to_dto(investment)


def delete_investment(household_id: int, investment_id: int) -> None:
    session = get_session()
    investment = _get_investment(household_id, investment_id)
    session.delete(investment)
    session.commit()


def add_member(household_id: int, name: str) -> Member:
    household = _get_household(household_id)
    session = get_session()
    member = MemberRecord(household_id=household.id, name=_required_name(name))
    session.add(member)
    session.commit()
    return Member(id=member.id, name=member.name)


def rename_member(household_id: int, member_id: int, name: str) -> Member:
    session = get_session()
    member = _get_member(household_id, member_id)
    member.name = _required_name(name)
    session.commit()
    return Member(id=member.id, name=member.name)


def remove_member(household_id: int, member_id: int) -> None:
    """Delete a member together with their holdings."""

    session = get_session()
    member = _get_member(household_id, member_id)
    held = len(member.investments)
    session.delete(member)
    session.commit()
    logger.info(
        "Removed member %s and %s holding(s)",
        member_id,
        held,
        extra={"event": "member.removed", "household_id": household_id},
    )


def _get_household(household_id: int) -> Household:
    household = get_session().get(Household, household_id)
    if household is None:
        raise NotFoundError(
            f"Household {household_id} not found.", payload={"household_id": household_id}
        )
    return household


def _get_member(household_id: int, member_id: int, *, field: Optional[str] = None) -> MemberRecord:
    member = get_session().get(MemberRecord, member_id)
    if member is None or member.household_id != household_id:
        message = f"Member {member_id} not found in household {household_id}."
        if field is not None:
            raise ValidationError(message, payload={"field": field})
        raise NotFoundError(message, payload={"member_id": member_id})
    return member


def _get_investment(household_id: int, investment_id: int) -> Investment:
    _get_household(household_id)
    investment = get_session().get(Investment, investment_id)
    if investment is None or investment.household_id != household_id:
        raise NotFoundError(
            f"Investment {investment_id} not found.", payload={"investment_id": investment_id}
        )
    return investment


def _commit(session, conflict_message: str) -> None:
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ValidationError(conflict_message, payload={"field": "symbol"}) from exc


def _required_name(name: str) -> str:
    normalized = (name or "").strip()
    if not normalized:
        raise ValidationError("Member name is required.", payload={"field": "name"})
    return normalized


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip() or None


def _to_dto(investment: Investment) -> InvestmentDTO:
    return InvestmentDTO(
        id=investment.id,
        household_id=investment.household_id,
        member_id=investment.member_id,
        symbol=investment.symbol,
        name=investment.name,
        investment_type=investment.investment_type,
        quantity=investment.quantity,
        average_price=investment.average_price,
        current_price=investment.current_price,
        currency=investment.currency,
        source_system=investment.source_system,
        updated_at=investment.updated_at,
    )
