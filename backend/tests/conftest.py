"""Shared test fixtures: in-memory database, API client and deterministic feeds."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from wealth.database import Base, get_db
from wealth.dependencies.services import (
    get_benchmark_service,
    get_quote_client,
    get_rate_cache,
    get_snapshot_engine,
)
from wealth.main import app
from wealth.models import Portfolio, Position
from wealth.rate_limiter import limiter
from wealth.services.currency.rate_cache import RateCache
from wealth.services.portfolio.benchmark_service import BenchmarkService
from wealth.services.portfolio.snapshot_service import SnapshotEngine
from wealth.services.portfolio.valuation_service import derive_position_values
from wealth.services.portfolio.valuation_types import BenchmarkRates

# Feed quotes: foreign units per 1 BRL
FEED_RATES = {
    "USD": Decimal("0.2"),
    "EUR": Decimal("1") / Decimal("5.5"),
    "GBP": Decimal("0.16"),
}


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    """Database session for a test."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def rate_cache():
    """Rate cache backed by a fixed feed table (USD=5.0, EUR=5.5, GBP=6.25)."""
    return RateCache(fetcher=lambda base: dict(FEED_RATES), reporting_currency="BRL")


@pytest.fixture
def benchmark_service():
    """Benchmark service returning fixed accumulated rates and empty series."""
    service = MagicMock(spec=BenchmarkService)
    service.fetch_accumulated.return_value = BenchmarkRates(Decimal("10.000000"), Decimal("4.000000"))
    service.fetch_rate_a_series.return_value = []
    service.fetch_rate_b_series.return_value = []
    return service


@pytest.fixture
def portfolio(db):
    """An empty portfolio of owner-1."""
    portfolio = Portfolio(owner_id="owner-1", name="Main")
    db.add(portfolio)
    db.commit()
    return portfolio


@pytest.fixture
def make_position(db):
    """Factory adding a position (with derived values) to a portfolio."""

    def _make(portfolio, name="PETR4", instrument_type="Ações", **values):
        position = Position(portfolio_id=portfolio.id, name=name, instrument_type=instrument_type, **values)
        derive_position_values(position)
        db.add(position)
        db.commit()
        return position

    return _make


@pytest.fixture
def client(session_factory, rate_cache, benchmark_service):
    """Test client with the database, rate cache and feeds overridden."""
    limiter.reset()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    quote_client = MagicMock()
    quote_client.get_volatilities.return_value = {}

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_cache] = lambda: rate_cache
    app.dependency_overrides[get_benchmark_service] = lambda: benchmark_service
    app.dependency_overrides[get_quote_client] = lambda: quote_client
    app.dependency_overrides[get_snapshot_engine] = lambda: SnapshotEngine(
        session_factory=session_factory, benchmark_service=benchmark_service, max_workers=1
    )

    yield TestClient(app)

    app.dependency_overrides.clear()
