"""SQLAlchemy ORM models for households, their holdings and FX rates."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    desc,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from household_portfolio.database import Base


class Household(Base):
    """Top-level grouping whose members' holdings are reported together."""

    __tablename__ = "households"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    members: Mapped[list["Member"]] = relationship(
        "Member",
        back_populates="household",
        cascade="all, delete-orphan",
        order_by="Member.id",
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Household id={self.id} name={self.name}>"


class Member(Base):
    """A person in a household owning investments."""

    __tablename__ = "members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    household_id: Mapped[int] = mapped_column(
        ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    household: Mapped["Household"] = relationship("Household", back_populates="members")
    investments: Mapped[list["Investment"]] = relationship(
        "Investment", back_populates="member", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Member id={self.id} household={self.household_id} name={self.name}>"


class Investment(Base):
    """Raw holding as stored by manual entry, broker sync or CSV import.

    Values are kept exactly as the source reported them (including minor-unit
    currencies); normalization happens when summaries are computed.
    """

    __tablename__ = "investments"
    __table_args__ = (
        UniqueConstraint(
            "member_id", "symbol", "investment_type", name="uq_investments_member_symbol_type"
        ),
        Index("ix_investments_household_member", "household_id", "member_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    household_id: Mapped[int] = mapped_column(
        ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    symbol: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    investment_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(20, 6), nullable=False)
    average_price: Mapped[Decimal] = mapped_column(Numeric(20, 6), nullable=False)
    current_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(20, 6), nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(String(12), nullable=True)
    source_system: Mapped[str] = mapped_column(String(32), nullable=False, default="manual")
    source_country: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    extra: Mapped[Optional[dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    member: Mapped["Member"] = relationship("Member", back_populates="investments")

    def to_raw(self) -> dict[str, Any]:
        """Return the raw record shape consumed by the normalizer."""

        return {
            "household_id": self.household_id,
            "member_id": self.member_id,
            "symbol": self.symbol,
            "name": self.name,
            "investment_type": self.investment_type,
            "quantity": self.quantity,
            "average_price": self.average_price,
            "current_price": self.current_price,
            "currency": self.currency,
            "source_system": self.source_system,
        }

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"<Investment member={self.member_id} symbol={self.symbol} "
            f"qty={self.quantity} currency={self.currency}>"
        )


class StockSymbol(Base):
    """Reference directory entry used to enrich ticker-only holdings."""

    __tablename__ = "stock_symbols"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ticker: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    isin: Mapped[Optional[str]] = mapped_column(String(12), nullable=True)
    type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    currency_code: Mapped[Optional[str]] = mapped_column(String(12), nullable=True)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<StockSymbol ticker={self.ticker} currency={self.currency_code}>"


class FxRate(Base):
    """One currency's units-per-base rate from a completed refresh."""

    __tablename__ = "fx_rates"
    __table_args__ = (
        UniqueConstraint(
            "base_currency_code",
            "target_currency_code",
            "timestamp",
            "source",
            name="uq_fx_rates_unique_rate",
        ),
        Index(
            "ix_fx_rates_pair_timestamp_desc",
            "base_currency_code",
            "target_currency_code",
            desc("timestamp"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    base_currency_code: Mapped[str] = mapped_column(String(12), nullable=False)
    target_currency_code: Mapped[str] = mapped_column(String(12), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric(24, 10), nullable=False)
    source: Mapped[str] = mapped_column(String(64), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"<FxRate {self.base_currency_code}->{self.target_currency_code} "
            f"{self.timestamp.isoformat()} rate={self.rate}>"
        )


class PortfolioSnapshot(Base):
    """Point-in-time copy of a household or member summary."""

    __tablename__ = "portfolio_snapshots"
    __table_args__ = (
        Index("ix_portfolio_snapshots_household_taken", "household_id", desc("taken_at")),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    household_id: Mapped[int] = mapped_column(
        ForeignKey("households.id", ondelete="CASCADE"), nullable=False
    )
    member_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"), nullable=True
    )
    taken_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    currency: Mapped[str] = mapped_column(String(12), nullable=False)
    total_value: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False)
    total_invested: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False)
    investment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    type_breakdown: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    platform_breakdown: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    top_investments: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    rates_source: Mapped[str] = mapped_column(String(64), nullable=False)
    rates_stale: Mapped[bool] = mapped_column(nullable=False, default=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"<PortfolioSnapshot household={self.household_id} member={self.member_id} "
            f"taken_at={self.taken_at.isoformat()} value={self.total_value} {self.currency}>"
        )
