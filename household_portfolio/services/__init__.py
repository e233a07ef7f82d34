"""Service layer modules."""

from .aggregator import DEFAULT_BUCKET_CURRENCIES, aggregate, parse_bucket_currencies
from .currency_registry import CurrencyCode, parse_currency, supported_currencies
from .fx_conversion import ExchangeRateTable, convert, fallback_table
from .normalizer import NormalizationError, normalize, normalize_many
from .portfolio_summary import SummaryResult, compute_portfolio_summary, summarize
from .portfolio_types import (
    InvestmentType,
    Member,
    MemberSummary,
    PortfolioSummary,
    Position,
    SourceSystem,
    TypeBreakdown,
)

__all__ = [
    "CurrencyCode",
    "DEFAULT_BUCKET_CURRENCIES",
    "ExchangeRateTable",
    "InvestmentType",
    "Member",
    "MemberSummary",
    "NormalizationError",
    "PortfolioSummary",
    "Position",
    "SourceSystem",
    "SummaryResult",
    "TypeBreakdown",
    "aggregate",
    "compute_portfolio_summary",
    "convert",
    "fallback_table",
    "normalize",
    "normalize_many",
    "parse_bucket_currencies",
    "parse_currency",
    "summarize",
    "supported_currencies",
]
