"""Source adapters that turn broker exports into raw holding records."""

from __future__ import annotations

import csv
import io
import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from household_portfolio.database import get_session
from household_portfolio.errors import ValidationError
from household_portfolio.models import Investment
from household_portfolio.models import Member as MemberRecord
from household_portfolio.services.fx_conversion import to_decimal
from household_portfolio.services.normalizer import (
    NormalizationError,
    SymbolDirectory,
    normalize,
)
from household_portfolio.services.portfolio_types import InvestmentType, SourceSystem

logger = logging.getLogger(__name__)

TICKERTAPE_HEADER = "Fund Name"
TICKERTAPE_MIN_COLUMNS = 11
_SYMBOL_STOPWORDS = {"fund", "scheme", "plan", "direct", "growth", "dividend"}


@dataclass(frozen=True)
class SkippedRow:
    line: int
    reason: str


@dataclass
class ImportReport:
    created: int = 0
    updated: int = 0
    skipped: list[SkippedRow] = field(default_factory=list)

    @property
    def imported(self) -> int:
        return self.created + self.updated


def generate_fund_symbol(fund_name: str) -> str:
    """Derive a short ticker-like symbol from a mutual fund name.

    >>> generate_fund_symbol("Parag Parikh Flexi Cap Fund Direct Growth")
    'PARA_PARI_FLEX'
    """

    if not fund_name:
        return "UNKNOWN"
    cleaned = re.sub(r"[^a-z0-9\s]", "", fund_name.lower())
    words = [
        word for word in cleaned.split() if len(word) > 2 and word not in _SYMBOL_STOPWORDS
    ]
    if not words:
        return "UNKNOWN"
    return "_".join(word[:4] for word in words[:3]).upper()


def _number(value: str | None) -> Decimal:
    text = (value or "").replace(",", "").strip()
    if not text or text in {"-", "--"}:
        return Decimal("0")
    return to_decimal(text)


def _column(columns: Sequence[str], index: int) -> str:
    return columns[index].strip() if index < len(columns) else ""


def _stored_amount(value: Any) -> Optional[Decimal]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_decimal(str(value).replace(",", "").strip())


def parse_tickertape_csv(source: str | Iterable[str]) -> tuple[list[dict[str, Any]], list[SkippedRow]]:
    """Parse a Tickertape mutual-fund holdings export.

    Lines before the ``Fund Name`` header are preamble. Total and blank rows
    are skipped silently; rows with unparseable numbers or no units are
    reported as skipped.
    """

    lines = io.StringIO(source) if isinstance(source, str) else source
    records: list[dict[str, Any]] = []
    skipped: list[SkippedRow] = []
    header_found = False

    for line_no, columns in enumerate(csv.reader(lines), start=1):
        first = columns[0].strip().lstrip("\ufeff") if columns else ""
        if not header_found:
            header_found = first == TICKERTAPE_HEADER and len(columns) >= TICKERTAPE_MIN_COLUMNS
            continue
        if not first or "total" in first.lower():
            continue

        try:
            nav = _number(_column(columns, 6))
            units = _number(_column(columns, 7))
            invested = _number(_column(columns, 8))
            current_value = _number(_column(columns, 9))
        except (InvalidOperation, ValueError):
            logger.warning("Skipping unparseable Tickertape row %s: %s", line_no, first)
            skipped.append(SkippedRow(line=line_no, reason="unparseable numbers"))
            continue

        if units <= 0:
            skipped.append(SkippedRow(line=line_no, reason="no units held"))
            continue

        records.append(
            {
                "symbol": generate_fund_symbol(first),
                "name": first,
                "investment_type": InvestmentType.MUTUAL_FUND.value,
                "quantity": units,
                "average_price": invested / units,
                "current_price": nav if nav > 0 else None,
                "currency": "INR",
                "source_system": SourceSystem.TICKERTAPE.value,
                "source_country": "IN",
                "metadata": {
                    "amc_name": _column(columns, 1),
                    "category": _column(columns, 2),
                    "sub_category": _column(columns, 3),
                    "plan_type": _column(columns, 4),
                    "option_type": _column(columns, 5),
                    "invested_amount": str(invested),
                    "current_value": str(current_value),
                    "invested_since": _column(columns, 14),
                },
            }
        )

    if not header_found:
        raise ValidationError(
            f"No '{TICKERTAPE_HEADER}' header row found in the uploaded file.",
            payload={"field": "file"},
        )
    logger.info("Parsed %s mutual fund holdings from Tickertape export", len(records))
    return records, skipped


def map_trading212_portfolio(payload: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Map Trading212 ``/equity/portfolio`` entries to raw ISA holdings.

    The broker does not report currencies; they are resolved from the symbol
    directory during normalization.
    """

    records = []
    for entry in payload:
        ticker = str(entry.get("ticker") or "").strip()
        if not ticker:
            continue
        records.append(
            {
                "symbol": ticker,
                "name": ticker,
                "investment_type": InvestmentType.ISA.value,
                "quantity": entry.get("quantity"),
                "average_price": entry.get("averagePrice"),
                "current_price": entry.get("currentPrice"),
                "currency": None,
                "source_system": SourceSystem.TRADING212.value,
                "source_country": None,
                "metadata": {},
            }
        )
    return records


def upsert_investments(
    member_id: int,
    records: Iterable[Mapping[str, Any]],
    *,
    symbol_directory: Optional[SymbolDirectory] = None,
) -> ImportReport:
    """Insert or update holdings for a member keyed by (member, symbol, type).

    Each record is checked with the normalizer first; records it rejects are
    skipped and reported instead of stored.
    """

    session = get_session()
    member = session.get(MemberRecord, member_id)
    if member is None:
        raise ValidationError(f"Member {member_id} not found.", payload={"field": "member_id"})

    report = ImportReport()
    seen: dict[tuple[str, Optional[str]], Investment] = {}
    for index, record in enumerate(records, start=1):
        raw = {**record, "member_id": member.id, "household_id": member.household_id}
        try:
            normalize(raw, symbol_directory=symbol_directory)
        except NormalizationError as exc:
            logger.warning("Skipping import row %s (%s): %s", index, record.get("symbol"), exc)
            report.skipped.append(SkippedRow(line=index, reason=str(exc)))
            continue

        investment_type = raw.get("investment_type")
        key = (str(raw["symbol"]), investment_type)
        existing = seen.get(key) or (
            session.query(Investment)
            .filter_by(member_id=member.id, symbol=raw["symbol"], investment_type=investment_type)
            .one_or_none()
        )
        if existing is None:
            existing = Investment(
                household_id=member.household_id,
                member_id=member.id,
                symbol=raw["symbol"],
                investment_type=investment_type,
            )
            session.add(existing)
            report.created += 1
        else:
            report.updated += 1
        seen[key] = existing
        existing.name = raw.get("name")
        existing.quantity = _stored_amount(raw["quantity"])
        existing.average_price = _stored_amount(raw["average_price"])
        existing.current_price = _stored_amount(raw.get("current_price"))
        existing.currency = raw.get("currency")
        existing.source_system = raw.get("source_system") or SourceSystem.MANUAL.value
        existing.source_country = raw.get("source_country")
        existing.extra = dict(raw.get("metadata") or {})

    try:
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise
    logger.info(
        "Imported holdings for member %s: %s created, %s updated, %s skipped",
        member.id,
        report.created,
        report.updated,
        len(report.skipped),
    )
    return report
