"""Read access to the ticker reference directory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import asc, func, or_

from household_portfolio.database import get_session
from household_portfolio.errors import NotFoundError
from household_portfolio.models import StockSymbol


@dataclass(frozen=True)
class SymbolDTO:
    ticker: str
    name: str
    short_name: Optional[str]
    isin: Optional[str]
    type: Optional[str]
    currency_code: Optional[str]


def find_symbol(ticker: str) -> SymbolDTO:
    """Return the directory entry for ``ticker``, matched case-insensitively."""

    key = (ticker or "").strip().upper()
    record = get_session().query(StockSymbol).filter_by(ticker=key).one_or_none()
    if record is None:
        raise NotFoundError(f"Symbol '{key}' not found.", payload={"ticker": key})
    return _to_dto(record)


def search_symbols(
    search: Optional[str] = None,
    *,
    type: Optional[str] = None,
    currency: Optional[str] = None,
    limit: int = 50,
) -> list[SymbolDTO]:
    """Filter the directory by type, currency and a ticker/name/ISIN substring."""

    query = get_session().query(StockSymbol)
    if type:
        query = query.filter(func.lower(StockSymbol.type) == type.strip().lower())
    if currency:
        query = query.filter(StockSymbol.currency_code == currency.strip().upper())
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(StockSymbol.ticker).like(pattern),
                func.lower(StockSymbol.name).like(pattern),
                func.lower(StockSymbol.isin).like(pattern),
            )
        )
    rows = query.order_by(asc(StockSymbol.ticker)).limit(limit).all()
    return [_to_dto(row) for row in rows]


def _to_dto(record: StockSymbol) -> SymbolDTO:
    return SymbolDTO(
        ticker=record.ticker,
        name=record.name,
        short_name=record.short_name,
        isin=record.isin,
        type=record.type,
        currency_code=record.currency_code,
    )
