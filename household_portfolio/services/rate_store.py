"""Persist refreshed rate tables and restore the last one on start-up."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from household_portfolio.database import get_session
from household_portfolio.models import FxRate
from household_portfolio.services.currency_registry import BASE_CURRENCY, MINOR_UNITS, CurrencyCode
from household_portfolio.services.fx_conversion import ExchangeRateTable
from household_portfolio.utils.datetime import ensure_utc, utc_now


def persist_table(table: ExchangeRateTable) -> None:
    """Store every major-currency rate of ``table`` in the fx_rates table.

    Minor units are not stored since they are always derived on load.
    """

    session = get_session()
    timestamp = ensure_utc(table.as_of or utc_now())
    try:
        for code in CurrencyCode:
            if code in MINOR_UNITS:
                continue
            _upsert_rate(
                session,
                base=BASE_CURRENCY.value,
                target=code.value,
                timestamp=timestamp,
                rate=table.rate(code),
                source=table.source,
            )
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise


def load_latest_table() -> ExchangeRateTable | None:
    """Rebuild the most recently persisted table, or ``None`` if nothing is stored.

    Raises ``RateTableError`` when the latest stored set is incomplete.
    """

    session = get_session()
    latest = (
        session.query(FxRate.timestamp, FxRate.source)
        .filter(FxRate.base_currency_code == BASE_CURRENCY.value)
        .order_by(FxRate.timestamp.desc(), FxRate.id.desc())
        .first()
    )
    if latest is None:
        return None

    timestamp, source = latest
    rows = (
        session.query(FxRate)
        .filter_by(base_currency_code=BASE_CURRENCY.value, timestamp=timestamp, source=source)
        .all()
    )
    rates = {row.target_currency_code: row.rate for row in rows}
    return ExchangeRateTable(rates=rates, source=source, as_of=ensure_utc(timestamp))


def _upsert_rate(
    session,
    base: str,
    target: str,
    timestamp: datetime,
    rate: Decimal,
    source: str,
) -> None:
    existing = (
        session.query(FxRate)
        .filter_by(
            base_currency_code=base,
            target_currency_code=target,
            timestamp=timestamp,
            source=source,
        )
        .one_or_none()
    )
    if existing:
        existing.rate = rate
    else:
        session.add(
            FxRate(
                base_currency_code=base,
                target_currency_code=target,
                timestamp=timestamp,
                rate=rate,
                source=source,
            )
        )
