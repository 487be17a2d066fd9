"""
Ratings Cache Service.

Materializes the latest score per security (plus latest close and
multi-horizon CAGR) into ``stock_ratings_cache`` and serves filtered,
sorted reads of that table and of ``fund_quality_scores``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import delete, func, select

from fundscope.core.config import settings
from fundscope.core.database import AsyncSessionLocal
from fundscope.models.fund_quality_score import FundQualityScore
from fundscope.models.price_history import PriceHistory
from fundscope.models.quality_score import CAGR_COLUMNS, SCORE_COLUMNS
from fundscope.models.security import Security
from fundscope.models.stock_ratings_cache import StockRatingsCache
from fundscope.services.batch import BatchResult, chunk_rows, to_float
from fundscope.services.quality_score_service import QualityScoreService
from fundscope.services.returns_calculator import returns_calculator

logger = logging.getLogger(__name__)

STOCK_SORT_COLUMNS = SCORE_COLUMNS + CAGR_COLUMNS + ("market_cap", "current_price")
FUND_SORT_COLUMNS = (
    SCORE_COLUMNS
    + CAGR_COLUMNS
    + ("nav_cagr_1y", "nav_cagr_3y", "nav_cagr_5y", "nav_cagr_10y", "coverage_pct")
)

_HORIZON_COLUMNS = {1: "cagr_1y", 3: "cagr_3y", 5: "cagr_5y", 10: "cagr_10y"}


@dataclass
class StockRatingsQuery:
    sector: Optional[str] = None
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    sort: str = "overall_quality_score"
    order: str = "desc"
    limit: Optional[int] = None


@dataclass
class FundRatingsQuery:
    fund_house: Optional[str] = None
    min_coverage: Optional[float] = None
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    sort: str = "overall_quality_score"
    order: str = "desc"
    limit: Optional[int] = None


@dataclass
class RatingsPage:
    items: list = field(default_factory=list)
    last_updated: Optional[datetime] = None


def _order_by(model, sort: str, order: str, allowed: tuple[str, ...]):
    if sort not in allowed:
        raise ValueError(f"Unsupported sort column: {sort}")
    if order not in ("asc", "desc"):
        raise ValueError(f"Unsupported sort order: {order}")
    column = getattr(model, sort)
    # Nulls last in both directions
    return [column.is_(None), column.asc() if order == "asc" else column.desc()]


class RatingsCacheService:
    JOB = "refresh_stock_ratings"

    def __init__(self, session_factory=None, calculator=None):
        self.session_factory = session_factory or AsyncSessionLocal
        self.calculator = calculator or returns_calculator

    async def refresh_stock_ratings(self) -> int:
        """Truncate and rebuild the stock ratings cache; returns rows cached."""
        result = BatchResult(job=self.JOB)
        cached_at = datetime.utcnow()

        async with self.session_factory() as session:
            latest = await QualityScoreService.latest_scores(session)
            scored = {sid: rec for sid, rec in latest.items() if rec.overall_quality_score is not None}

            securities = {}
            prices: dict[int, list[tuple[Any, float]]] = {}
            if scored:
                ids = sorted(scored)
                rows = (await session.execute(select(Security).where(Security.id.in_(ids)))).scalars().all()
                securities = {s.id: s for s in rows}
                price_rows = (
                    await session.execute(
                        select(PriceHistory.security_id, PriceHistory.date, PriceHistory.close)
                        .where(PriceHistory.security_id.in_(ids))
                        .order_by(PriceHistory.security_id, PriceHistory.date)
                    )
                ).all()
                for security_id, day, close in price_rows:
                    prices.setdefault(security_id, []).append((day, to_float(close)))

            cache_rows = []
            for security_id, record in sorted(scored.items()):
                security = securities.get(security_id)
                if security is None:
                    result.skipped += 1
                    continue
                cache_rows.append(
                    self._cache_row(security, record, prices.get(security_id, []), cached_at, result)
                )

            await session.execute(delete(StockRatingsCache))
            for chunk in chunk_rows(cache_rows):
                await session.execute(StockRatingsCache.__table__.insert(), chunk)
            await session.commit()
            result.processed = len(cache_rows)

        logger.info("Stock ratings cache rebuilt with %d rows", result.processed)
        result.finish()
        return result.processed

    def _cache_row(self, security, record, history, cached_at, result: BatchResult) -> dict[str, Any]:
        row: dict[str, Any] = {
            "security_id": security.id,
            "symbol": security.symbol,
            "name": security.name,
            "sector": security.sector,
            "industry": security.industry,
            "exchange": security.exchange,
            "market_cap": security.market_cap,
            "current_price": None,
            "piotroski_score": record.piotroski_score,
            "calculation_date": record.calculation_date,
            "cached_at": cached_at,
        }
        for column in SCORE_COLUMNS:
            if column != "piotroski_score":
                row[column] = to_float(getattr(record, column))
        for column in CAGR_COLUMNS:
            row[column] = None

        if history:
            row["current_price"] = history[-1][1]
            try:
                cagrs = self.calculator.horizon_cagrs(history, horizons=tuple(_HORIZON_COLUMNS))
                for years, column in _HORIZON_COLUMNS.items():
                    row[column] = cagrs.get(years)
            except Exception as exc:
                # Scores are still cached; only the returns stay empty
                logger.warning("CAGR failed for %s: %s", security.symbol, exc)
                result.fail(security.symbol, exc)
        return row

    async def list_stock_ratings(self, query: StockRatingsQuery | None = None) -> RatingsPage:
        query = query or StockRatingsQuery()
        model = StockRatingsCache
        stmt = select(model).where(model.overall_quality_score.isnot(None))
        if query.sector:
            stmt = stmt.where(model.sector == query.sector)
        if query.min_score is not None:
            stmt = stmt.where(model.overall_quality_score >= query.min_score)
        if query.max_score is not None:
            stmt = stmt.where(model.overall_quality_score <= query.max_score)
        stmt = stmt.order_by(*_order_by(model, query.sort, query.order, STOCK_SORT_COLUMNS), model.symbol)
        if query.limit:
            stmt = stmt.limit(query.limit)

        async with self.session_factory() as session:
            items = (await session.execute(stmt)).scalars().all()
            last_updated = (await session.execute(select(func.max(model.cached_at)))).scalar()
        return RatingsPage(items=list(items), last_updated=last_updated)

    async def list_fund_ratings(self, query: FundRatingsQuery | None = None) -> RatingsPage:
        query = query or FundRatingsQuery()
        model = FundQualityScore
        min_coverage = settings.MIN_FUND_COVERAGE_PCT if query.min_coverage is None else query.min_coverage

        stmt = select(model).where(model.coverage_pct >= min_coverage)
        if query.fund_house:
            stmt = stmt.where(model.fund_house == query.fund_house)
        if query.min_score is not None:
            stmt = stmt.where(model.overall_quality_score >= query.min_score)
        if query.max_score is not None:
            stmt = stmt.where(model.overall_quality_score <= query.max_score)
        stmt = stmt.order_by(*_order_by(model, query.sort, query.order, FUND_SORT_COLUMNS), model.fund_name)
        if query.limit:
            stmt = stmt.limit(query.limit)

        async with self.session_factory() as session:
            items = (await session.execute(stmt)).scalars().all()
            last_updated = (await session.execute(select(func.max(model.calculated_at)))).scalar()
        return RatingsPage(items=list(items), last_updated=last_updated)
