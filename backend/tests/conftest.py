"""Pytest configuration and fixtures."""

import os

# Must be set before fundscope.core.database builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fundscope.core.database import Base
from fundscope.core.metrics import metrics
import fundscope.models  # noqa: F401
from fundscope.services.fundamentals.normalizer import NormalizedMetrics


@pytest_asyncio.fixture
async def session_factory():
    """Fresh in-memory SQLite database with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    yield factory
    await engine.dispose()


@pytest.fixture(autouse=True)
def clean_metrics():
    """Each test starts with an empty metrics buffer."""
    metrics.enable()
    metrics.clear_buffer()
    yield
    metrics.clear_buffer()


@pytest.fixture
def healthy_metrics() -> NormalizedMetrics:
    """A profitable, liquid, lowly-levered company passing all nine F-score tests."""
    return NormalizedMetrics(
        revenue=1000.0,
        gross_profit=450.0,
        operating_income=200.0,
        net_income=120.0,
        total_assets=1000.0,
        total_liabilities=400.0,
        current_assets=500.0,
        current_liabilities=200.0,
        shareholders_equity=600.0,
        operating_cash_flow=180.0,
        market_cap=2.0e11,
        roe=20.0,
        roa=12.0,
        roce=25.0,
        gross_margin=45.0,
        operating_margin=20.0,
        net_margin=12.0,
        debt_to_equity=0.3,
        current_ratio=2.5,
        interest_coverage=12.0,
        pe_ratio=15.0,
        pb_ratio=1.5,
        earnings_yield=100 / 15,
        fcf_yield=5.0,
        revenue_growth_yoy=15.0,
        eps_growth_yoy=20.0,
        margin_expansion=1.0,
        promoter_pledged=0.0,
    )

