"""Shared pytest fixtures."""

from __future__ import annotations

import json
import os
import sys
import tempfile
from collections.abc import Callable, Iterator
from decimal import Decimal
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Configuration classes read the environment at import time.
_DB_DIR = Path(tempfile.mkdtemp(prefix="household-portfolio-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'test.db'}"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["FX_RATE_PROVIDER"] = "static"
os.environ["FX_FALLBACK_PROVIDER"] = ""
os.environ["REFRESH_THROTTLE_SECONDS"] = "60"

from household_portfolio import create_app  # noqa: E402
from household_portfolio.database import SessionLocal, get_engine  # noqa: E402
from household_portfolio.models import (  # noqa: E402
    FxRate,
    Household,
    Investment,
    Member,
    PortfolioSnapshot,
    StockSymbol,
)
from household_portfolio.services.currency_registry import CurrencyCode  # noqa: E402
from household_portfolio.services.exchange_rates import get_exchange_rates  # noqa: E402
from household_portfolio.services.fx_conversion import ExchangeRateTable  # noqa: E402
from household_portfolio.utils.datetime import utc_now  # noqa: E402


@pytest.fixture(scope="session")
def app() -> Iterator:
    """Session-wide Flask application configured with a temporary database."""

    alembic_cfg = Config(str(ROOT_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", os.environ["DATABASE_URL"])
    command.upgrade(alembic_cfg, "head")

    flask_app = create_app("development")
    flask_app.config.update(TESTING=True)

    yield flask_app

    engine = get_engine()
    SessionLocal.remove()
    engine.dispose()
    command.downgrade(alembic_cfg, "base")


@pytest.fixture()
def client(app):
    """Provide a Flask test client."""

    with app.test_client() as client:
        yield client


@pytest.fixture()
def db_session(app) -> Iterator:
    """Provide a session and clear every table after the test."""

    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        for model in (PortfolioSnapshot, Investment, Member, Household, StockSymbol, FxRate):
            session.query(model).delete()
        session.commit()
        SessionLocal.remove()


@pytest.fixture()
def rates() -> ExchangeRateTable:
    """Round-number table: 1 USD = 0.8 GBP = 0.9 EUR = 80 INR."""

    return ExchangeRateTable(
        rates={
            CurrencyCode.EUR: Decimal("0.9"),
            CurrencyCode.GBP: Decimal("0.8"),
            CurrencyCode.INR: Decimal("80"),
        },
        source="test",
        as_of=utc_now(),
    )


@pytest.fixture()
def seeded_rates(app, rates) -> Iterator[ExchangeRateTable]:
    """Install ``rates`` into the app cache for the duration of a test."""

    provider = get_exchange_rates(app)
    previous = provider.current()
    provider.seed(rates)
    yield rates
    provider.seed(previous)


@pytest.fixture(scope="session")
def fixtures_dir() -> Path:
    """Return the path to bundled fixtures."""

    return ROOT_DIR / "tests" / "fixtures"


@pytest.fixture()
def load_json_fixture(fixtures_dir: Path) -> Callable[[str], dict]:
    """Load a JSON fixture by filename."""

    def _loader(filename: str) -> dict:
        path = fixtures_dir / filename
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    return _loader
