"""Demo data seeding helpers."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from household_portfolio.database import SessionLocal, get_session
from household_portfolio.models import Household, Investment, Member, PortfolioSnapshot, StockSymbol

HOUSEHOLD_NAME = "Demo Household"

DEMO_SYMBOLS = [
    {"ticker": "VUSAL_EQ", "name": "Vanguard S&P 500 UCITS ETF", "type": "etf", "currency_code": "GBX", "isin": "IE00B3XXRP09"},
    {"ticker": "LGENL_EQ", "name": "Legal & General Group", "type": "stock", "currency_code": "GBX", "isin": "GB0005603997"},
    {"ticker": "AAPL_US_EQ", "name": "Apple Inc", "type": "stock", "currency_code": "USD", "isin": "US0378331005"},
]

# Values as each source reports them; GBX prices are in pence.
DEMO_MEMBERS = [
    (
        "Asha",
        [
            {"symbol": "VUSAL_EQ", "investment_type": "isa", "quantity": Decimal("40"), "average_price": Decimal("7450"), "current_price": Decimal("8120"), "currency": None, "source_system": "trading212"},
            {"symbol": "AAPL_US_EQ", "investment_type": "isa", "quantity": Decimal("12.5"), "average_price": Decimal("168.40"), "current_price": Decimal("191.20"), "currency": None, "source_system": "trading212"},
            {"symbol": "PARA_PARI_FLEX", "name": "Parag Parikh Flexi Cap Fund Direct Growth", "investment_type": "mutual_fund", "quantity": Decimal("1520.314"), "average_price": Decimal("55.92"), "current_price": Decimal("71.84"), "currency": "INR", "source_system": "tickertape"},
        ],
    ),
    (
        "Rohan",
        [
            {"symbol": "LGENL_EQ", "investment_type": "isa", "quantity": Decimal("900"), "average_price": Decimal("236.5"), "current_price": Decimal("229.1"), "currency": None, "source_system": "trading212"},
            {"symbol": "INFY", "name": "Infosys Ltd", "investment_type": "stock", "quantity": Decimal("25"), "average_price": Decimal("1410"), "current_price": Decimal("1532.65"), "currency": "INR", "source_system": "manual"},
            {"symbol": "IWDA", "name": "iShares Core MSCI World UCITS ETF", "investment_type": None, "quantity": Decimal("30"), "average_price": Decimal("78.10"), "current_price": None, "currency": "EUR", "source_system": "manual"},
        ],
    ),
]


@dataclass(frozen=True)
class SeedResult:
    household_id: int
    members_created: int
    investments_created: int
    created: bool


def seed_demo_household() -> SeedResult:
    """Create or reset the demo household with deterministic holdings."""

    session = get_session()
    created = False
    try:
        for entry in DEMO_SYMBOLS:
            symbol = session.query(StockSymbol).filter_by(ticker=entry["ticker"]).one_or_none()
            if symbol is None:
                session.add(StockSymbol(**entry))

        household = session.query(Household).filter(Household.name == HOUSEHOLD_NAME).one_or_none()
        if household is None:
            household = Household(name=HOUSEHOLD_NAME)
            session.add(household)
            session.flush()
            created = True
        else:
            for model in (PortfolioSnapshot, Investment, Member):
                session.query(model).filter(model.household_id == household.id).delete()
            session.flush()

        investments = 0
        for member_name, holdings in DEMO_MEMBERS:
            member = Member(household_id=household.id, name=member_name)
            session.add(member)
            session.flush()
            for holding in holdings:
                session.add(
                    Investment(
                        household_id=household.id,
                        member_id=member.id,
                        symbol=holding["symbol"],
                        name=holding.get("name"),
                        investment_type=holding["investment_type"],
                        quantity=holding["quantity"],
                        average_price=holding["average_price"],
                        current_price=holding["current_price"],
                        currency=holding["currency"],
                        source_system=holding["source_system"],
                    )
                )
                investments += 1
        session.commit()
        return SeedResult(
            household_id=household.id,
            members_created=len(DEMO_MEMBERS),
            investments_created=investments,
            created=created,
        )
    except SQLAlchemyError:
        session.rollback()
        raise
    finally:
        SessionLocal.remove()
