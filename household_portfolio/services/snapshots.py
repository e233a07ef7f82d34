"""Point-in-time portfolio snapshots for history views."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError

from household_portfolio.database import get_session
from household_portfolio.models import PortfolioSnapshot
from household_portfolio.services.aggregator import gain_loss_percentage
from household_portfolio.services.fx_conversion import ExchangeRateTable, convert, quantize_amount
from household_portfolio.services.portfolio_summary import SummaryResult
from household_portfolio.services.portfolio_types import MemberId, Position
from household_portfolio.utils.datetime import utc_now

DEFAULT_TOP_INVESTMENTS = 5


@dataclass(frozen=True)
class SnapshotData:
    member_id: Optional[MemberId]
    currency: str
    total_value: Decimal
    total_invested: Decimal
    investment_count: int
    type_breakdown: list[dict[str, Any]] = field(default_factory=list)
    platform_breakdown: list[dict[str, Any]] = field(default_factory=list)
    top_investments: list[dict[str, Any]] = field(default_factory=list)


def _share(value: Decimal, total: Decimal) -> Decimal:
    return gain_loss_percentage(value, total)


def _group(
    valued: list[tuple[Position, Decimal]], key, label: str
) -> list[dict[str, Any]]:
    totals: dict[str, Decimal] = defaultdict(Decimal)
    counts: dict[str, int] = defaultdict(int)
    for position, value in valued:
        name = key(position)
        totals[name] += value
        counts[name] += 1
    return [
        {label: name, "value": str(quantize_amount(totals[name])), "count": counts[name]}
        for name in sorted(totals, key=lambda item: (-totals[item], item))
    ]


def build_snapshot(
    result: SummaryResult,
    rates: ExchangeRateTable,
    *,
    member_id: Optional[MemberId] = None,
    top_n: int = DEFAULT_TOP_INVESTMENTS,
) -> SnapshotData:
    """Describe the household (or one member) in the summary's reporting currency."""

    summary = result.summary
    currency = summary.currency
    positions: Iterable[Position] = result.positions
    if member_id is not None:
        member = summary.member(member_id)
        if member is None:
            raise KeyError(member_id)
        positions = [p for p in positions if p.owner_id == member_id]
        total_value, total_invested, count = (
            member.total_value,
            member.total_invested,
            member.investment_count,
        )
    else:
        total_value, total_invested, count = (
            summary.total_value,
            summary.total_invested,
            summary.investment_count,
        )

    valued = [
        (position, convert(position.total_value, position.source_currency, currency, rates))
        for position in positions
    ]

    ranked = sorted(valued, key=lambda item: (-item[1], item[0].symbol))[: max(top_n, 0)]
    top_investments = [
        {
            "symbol": position.symbol,
            "name": position.name,
            "value": str(quantize_amount(value)),
            "percentage": str(_share(value, total_value)),
        }
        for position, value in ranked
    ]

    return SnapshotData(
        member_id=member_id,
        currency=currency.value,
        total_value=total_value,
        total_invested=total_invested,
        investment_count=count,
        type_breakdown=_group(valued, lambda p: p.investment_type.value, "type"),
        platform_breakdown=_group(valued, lambda p: p.source_system.value, "platform"),
        top_investments=top_investments,
    )


def persist_snapshots(
    household_id: int,
    result: SummaryResult,
    rates: ExchangeRateTable,
    *,
    top_n: int = DEFAULT_TOP_INVESTMENTS,
    taken_at: Optional[datetime] = None,
) -> list[PortfolioSnapshot]:
    """Store one household snapshot plus one per member, all sharing ``taken_at``."""

    timestamp = taken_at or utc_now()
    snapshots = [build_snapshot(result, rates, top_n=top_n)]
    snapshots.extend(
        build_snapshot(result, rates, member_id=member.member_id, top_n=top_n)
        for member in result.summary.members
    )

    session = get_session()
    records = [
        PortfolioSnapshot(
            household_id=household_id,
            member_id=data.member_id,
            taken_at=timestamp,
            currency=data.currency,
            total_value=data.total_value,
            total_invested=data.total_invested,
            investment_count=data.investment_count,
            type_breakdown=data.type_breakdown,
            platform_breakdown=data.platform_breakdown,
            top_investments=data.top_investments,
            rates_source=rates.source,
            rates_stale=rates.stale,
        )
        for data in snapshots
    ]
    session.add_all(records)
    try:
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise
    return records


def list_snapshots(
    household_id: int, *, member_id: Optional[int] = None, limit: int = 50
) -> list[PortfolioSnapshot]:
    """Return snapshots newest first; household-level rows unless ``member_id`` is given."""

    session = get_session()
    query = session.query(PortfolioSnapshot).filter(PortfolioSnapshot.household_id == household_id)
    if member_id is None:
        query = query.filter(PortfolioSnapshot.member_id.is_(None))
    else:
        query = query.filter(PortfolioSnapshot.member_id == member_id)
    return query.order_by(desc(PortfolioSnapshot.taken_at), desc(PortfolioSnapshot.id)).limit(limit).all()
