"""Tests for the stock ratings cache and the ratings read path."""

from datetime import date

import pytest
from sqlalchemy import select

from fundscope.models import FundQualityScore, StockRatingsCache
from fundscope.services.ratings_cache_service import (
    FundRatingsQuery,
    RatingsCacheService,
    StockRatingsQuery,
)

from factories import add_prices, add_score, add_security


async def _seed(session_factory):
    async with session_factory() as session:
        tcs = await add_security(session, "TCS", sector="IT", market_cap=10**12)
        hdfc = await add_security(session, "HDFC", sector="Banks")
        itc = await add_security(session, "ITC", sector="FMCG")
        unscored = await add_security(session, "NEWCO", sector="IT")

        await add_score(session, tcs.id, date(2026, 1, 1), overall_quality_score=40.0)
        await add_score(session, tcs.id, date(2026, 2, 1), overall_quality_score=75.0, growth_score=60.0, piotroski_score=8)
        await add_score(session, hdfc.id, date(2026, 2, 1), overall_quality_score=65.0, growth_score=None)
        await add_score(session, itc.id, date(2026, 2, 1), overall_quality_score=55.0, growth_score=80.0)
        await add_score(session, unscored.id, date(2026, 2, 1), overall_quality_score=None)

        await add_prices(session, tcs.id, [(date(2025, 2, 1), 100.0), (date(2026, 2, 1), 120.0)])
        await add_prices(session, hdfc.id, [(date(2026, 1, 30), 50.0)])
        await session.commit()
        return tcs.id


class TestRefreshStockRatings:
    async def test_rebuilds_from_latest_scores(self, session_factory):
        tcs_id = await _seed(session_factory)
        processed = await RatingsCacheService(session_factory).refresh_stock_ratings()
        assert processed == 3

        async with session_factory() as session:
            rows = {r.symbol: r for r in (await session.execute(select(StockRatingsCache))).scalars().all()}
        assert set(rows) == {"TCS", "HDFC", "ITC"}
        tcs = rows["TCS"]
        assert tcs.security_id == tcs_id
        assert float(tcs.overall_quality_score) == 75.0
        assert tcs.piotroski_score == 8
        assert tcs.calculation_date == date(2026, 2, 1)
        assert float(tcs.current_price) == 120.0
        assert float(tcs.cagr_1y) == 20.0
        assert tcs.cagr_3y is None
        assert rows["ITC"].current_price is None

    async def test_refresh_is_idempotent(self, session_factory):
        await _seed(session_factory)
        service = RatingsCacheService(session_factory)
        assert await service.refresh_stock_ratings() == 3
        assert await service.refresh_stock_ratings() == 3

        async with session_factory() as session:
            rows = (await session.execute(select(StockRatingsCache))).scalars().all()
        assert len(rows) == 3

    async def test_cagr_failure_leaves_returns_empty(self, session_factory):
        class BrokenCalculator:
            def horizon_cagrs(self, *args, **kwargs):
                raise RuntimeError("bad series")

        await _seed(session_factory)
        processed = await RatingsCacheService(session_factory, calculator=BrokenCalculator()).refresh_stock_ratings()
        assert processed == 3

        async with session_factory() as session:
            tcs = (await session.execute(select(StockRatingsCache).where(StockRatingsCache.symbol == "TCS"))).scalar_one()
        assert tcs.cagr_1y is None
        assert float(tcs.current_price) == 120.0


class TestListStockRatings:
    @pytest.fixture
    async def service(self, session_factory):
        await _seed(session_factory)
        service = RatingsCacheService(session_factory)
        await service.refresh_stock_ratings()
        return service

    async def test_default_sort_overall_desc(self, service):
        page = await service.list_stock_ratings()
        assert [r.symbol for r in page.items] == ["TCS", "HDFC", "ITC"]
        assert page.last_updated is not None

    async def test_filters(self, service):
        page = await service.list_stock_ratings(StockRatingsQuery(sector="IT"))
        assert [r.symbol for r in page.items] == ["TCS"]
        page = await service.list_stock_ratings(StockRatingsQuery(min_score=56, max_score=70))
        assert [r.symbol for r in page.items] == ["HDFC"]

    async def test_nulls_last_both_directions(self, service):
        desc = await service.list_stock_ratings(StockRatingsQuery(sort="growth_score", order="desc"))
        assert [r.symbol for r in desc.items] == ["ITC", "TCS", "HDFC"]
        asc = await service.list_stock_ratings(StockRatingsQuery(sort="growth_score", order="asc"))
        assert [r.symbol for r in asc.items] == ["TCS", "ITC", "HDFC"]

    async def test_sort_by_cagr(self, service):
        page = await service.list_stock_ratings(StockRatingsQuery(sort="cagr_1y"))
        assert page.items[0].symbol == "TCS"

    async def test_unknown_sort_rejected(self, service):
        with pytest.raises(ValueError):
            await service.list_stock_ratings(StockRatingsQuery(sort="symbol; drop table"))


class TestListFundRatings:
    async def test_min_coverage_defaults_to_setting(self, session_factory):
        async with session_factory() as session:
            session.add_all(
                [
                    FundQualityScore(fund_name="Wide", fund_house="A", coverage_pct=90, total_holdings=50, scored_holdings=45, overall_quality_score=60),
                    FundQualityScore(fund_name="Thin", fund_house="A", coverage_pct=20, total_holdings=50, scored_holdings=5, overall_quality_score=90),
                    FundQualityScore(fund_name="Other", fund_house="B", coverage_pct=70, total_holdings=30, scored_holdings=25, overall_quality_score=70),
                ]
            )
            await session.commit()

        service = RatingsCacheService(session_factory)
        page = await service.list_fund_ratings()
        assert [f.fund_name for f in page.items] == ["Other", "Wide"]

        page = await service.list_fund_ratings(FundRatingsQuery(min_coverage=0, fund_house="A"))
        assert [f.fund_name for f in page.items] == ["Thin", "Wide"]

        page = await service.list_fund_ratings(FundRatingsQuery(sort="coverage_pct", order="asc"))
        assert [f.fund_name for f in page.items] == ["Other", "Wide"]
