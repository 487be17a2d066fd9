"""Tests for holding-weighted fund aggregation and the rebuild job."""

from datetime import date

import pytest
from sqlalchemy import select

from fundscope.core.metrics import metrics
from fundscope.models import FundamentalSnapshot, FundQualityScore, QualityScore, StockRatingsCache
from fundscope.services.fund_aggregation_service import (
    FundAggregationService,
    HoldingScore,
    aggregate_fund_scores,
)
from fundscope.services.quality_score_service import QualityScoreService

from factories import add_holding, add_score, add_security


def _holding(instrument, weight, fund="Alpha Fund", scores=None, returns=None):
    return HoldingScore(
        fund_name=fund,
        instrument=instrument,
        weight=weight,
        scores=scores,
        returns=returns or {},
        fund_house="Alpha AMC",
    )


# =============================================================================
# Pure aggregation
# =============================================================================


class TestAggregateFundScores:
    def test_unmatched_holding_excluded_and_coverage(self):
        [fund] = aggregate_fund_scores(
            [
                _holding("X", 60.0, scores={"overall_quality_score": 80.0}),
                _holding("Y", 40.0, scores=None),
            ]
        )
        assert fund.values["overall_quality_score"] == 80.0
        assert fund.coverage_pct == 60.0
        assert fund.total_holdings == 2
        assert fund.scored_holdings == 1

    def test_each_field_averaged_independently(self):
        [fund] = aggregate_fund_scores(
            [
                _holding("X", 60.0, scores={"overall_quality_score": 80.0, "growth_score": None}),
                _holding("Y", 40.0, scores={"overall_quality_score": 60.0, "growth_score": 50.0}),
            ]
        )
        assert fund.values["overall_quality_score"] == 72.0
        assert fund.values["growth_score"] == 50.0
        assert fund.values["valuation_score"] is None
        assert fund.coverage_pct == 100.0

    def test_non_positive_weights_ignored(self):
        [fund] = aggregate_fund_scores(
            [
                _holding("X", 50.0, scores={"overall_quality_score": 70.0}),
                _holding("Y", 0.0, scores={"overall_quality_score": 10.0}),
                _holding("Z", -2.0, scores={"overall_quality_score": 10.0}),
            ]
        )
        assert fund.values["overall_quality_score"] == 70.0
        assert fund.total_holdings == 1

    def test_record_without_any_score_not_covered(self):
        [fund] = aggregate_fund_scores(
            [
                _holding("X", 30.0, scores={"overall_quality_score": 50.0}),
                _holding("Y", 70.0, scores={"overall_quality_score": None}),
            ]
        )
        assert fund.coverage_pct == 30.0

    def test_partial_scores_without_overall_not_covered(self):
        [fund] = aggregate_fund_scores(
            [
                _holding("X", 60.0, scores={"overall_quality_score": 80.0, "canslim_score": 40.0}),
                _holding("Y", 40.0, scores={"overall_quality_score": None, "canslim_score": 20.0}),
            ]
        )
        assert fund.coverage_pct == 60.0
        assert fund.scored_holdings == 1
        assert fund.values["canslim_score"] == 32.0

    def test_stock_cagr_weighted(self):
        [fund] = aggregate_fund_scores(
            [
                _holding("X", 75.0, returns={"cagr_1y": 20.0}),
                _holding("Y", 25.0, returns={"cagr_1y": 8.0, "cagr_3y": 12.0}),
            ]
        )
        assert fund.values["cagr_1y"] == 17.0
        assert fund.values["cagr_3y"] == 12.0
        assert fund.coverage_pct == 0.0

    def test_one_row_per_fund(self):
        funds = aggregate_fund_scores(
            [
                _holding("X", 50.0, fund="B Fund", scores={"overall_quality_score": 40.0}),
                _holding("X", 50.0, fund="A Fund", scores={"overall_quality_score": 90.0}),
            ]
        )
        assert [f.fund_name for f in funds] == ["A Fund", "B Fund"]

    def test_fund_with_only_zero_weights_produces_nothing(self):
        assert aggregate_fund_scores([_holding("X", 0.0)]) == []


# =============================================================================
# Rebuild job
# =============================================================================


async def _seed(session_factory):
    async with session_factory() as session:
        x = await add_security(session, "XCORP")
        y = await add_security(session, "YCORP")
        await add_score(session, x.id, date(2026, 1, 1), overall_quality_score=50.0)
        await add_score(session, x.id, date(2026, 2, 1), overall_quality_score=80.0, growth_score=40.0)
        await add_holding(session, "Alpha Fund", "X Corp", 60.0, x.id, fund_house="Alpha AMC")
        await add_holding(session, "Alpha Fund", "Y Corp", 30.0, y.id, fund_house="Alpha AMC")
        await add_holding(session, "Alpha Fund", "T-Bill", 10.0, None, fund_house="Alpha AMC")
        await add_holding(session, "Beta Fund", "X Corp", 100.0, x.id, fund_house="Beta AMC")
        session.add(StockRatingsCache(security_id=x.id, symbol="XCORP", cagr_1y=12.0))
        await session.commit()
        return x.id, y.id


def _snapshot(rows):
    ignored = {"id", "calculated_at"}
    return [{k: v for k, v in vars(r).items() if not k.startswith("_") and k not in ignored} for r in rows]


class TestFundAggregationService:
    async def test_rebuild_uses_latest_scores(self, session_factory):
        await _seed(session_factory)
        result = await FundAggregationService(session_factory).rebuild()
        assert result.processed == 2
        assert result.errors == 0

        async with session_factory() as session:
            rows = (await session.execute(select(FundQualityScore).order_by(FundQualityScore.fund_name))).scalars().all()
        alpha = rows[0]
        assert alpha.fund_name == "Alpha Fund"
        assert float(alpha.overall_quality_score) == 80.0
        assert float(alpha.coverage_pct) == 60.0
        assert alpha.total_holdings == 3
        assert alpha.scored_holdings == 1
        assert float(alpha.cagr_1y) == 12.0
        assert alpha.fund_house == "Alpha AMC"
        assert alpha.score_schema_version == "v2"

    async def test_rebuild_is_idempotent(self, session_factory):
        await _seed(session_factory)
        service = FundAggregationService(session_factory)

        await service.rebuild()
        async with session_factory() as session:
            first = _snapshot((await session.execute(select(FundQualityScore).order_by(FundQualityScore.fund_name))).scalars().all())
        await service.rebuild()
        async with session_factory() as session:
            second = _snapshot((await session.execute(select(FundQualityScore).order_by(FundQualityScore.fund_name))).scalars().all())

        assert first == second

    async def test_rebuild_preserves_nav_columns_and_drops_stale_funds(self, session_factory):
        await _seed(session_factory)
        service = FundAggregationService(session_factory)
        await service.rebuild()

        async with session_factory() as session:
            alpha = (await session.execute(select(FundQualityScore).where(FundQualityScore.fund_name == "Alpha Fund"))).scalar_one()
            alpha.scheme_code = 120503
            alpha.nav_cagr_1y = 14.5
            session.add(FundQualityScore(fund_name="Gone Fund", coverage_pct=0, total_holdings=0, scored_holdings=0))
            await session.commit()

        await service.rebuild()

        async with session_factory() as session:
            rows = {r.fund_name: r for r in (await session.execute(select(FundQualityScore))).scalars().all()}
        assert set(rows) == {"Alpha Fund", "Beta Fund"}
        assert rows["Alpha Fund"].scheme_code == 120503
        assert float(rows["Alpha Fund"].nav_cagr_1y) == 14.5

    async def test_low_coverage_metric(self, session_factory, monkeypatch):
        from fundscope.core.config import settings

        monkeypatch.setattr(settings, "MIN_FUND_COVERAGE_PCT", 75.0)
        await _seed(session_factory)
        await FundAggregationService(session_factory).rebuild()

        low = [e for e in metrics.get_buffer() if e.event_type == "low_coverage"]
        assert [e.subject for e in low] == ["Alpha Fund"]

    async def test_check_weight_totals(self, session_factory):
        async with session_factory() as session:
            await add_holding(session, "Full Fund", "A", 60.0)
            await add_holding(session, "Full Fund", "B", 39.0)
            await add_holding(session, "Short Fund", "A", 70.0)
            await session.commit()

        flagged = await FundAggregationService(session_factory).check_weight_totals(tolerance=2.0)
        assert flagged == [{"fund_name": "Short Fund", "total_weight": 70.0}]
        assert any(e.event_type == "weight_total_off" for e in metrics.get_buffer())

    async def test_security_without_usable_fundamentals_not_covered(self, session_factory):
        raw = {
            "revenue": 1000,
            "gross_profit": 450,
            "operating_income": 200,
            "net_income": 120,
            "total_assets": 1000,
            "total_liabilities": 400,
            "current_assets": 500,
            "current_liabilities": 200,
            "operating_cash_flow": 180,
        }
        async with session_factory() as session:
            x = await add_security(session, "XCORP")
            y = await add_security(session, "YCORP")
            session.add_all(
                [
                    FundamentalSnapshot(security_id=x.id, period_end=date(2025, 3, 31), source="fmp", raw=raw),
                    FundamentalSnapshot(security_id=y.id, period_end=date(2025, 3, 31), source="fmp", raw={}),
                ]
            )
            await add_holding(session, "Alpha Fund", "X Corp", 60.0, x.id)
            await add_holding(session, "Alpha Fund", "Y Corp", 40.0, y.id)
            await session.commit()

        scored = await QualityScoreService(session_factory).compute_scores(date(2026, 1, 15))
        assert scored.processed == 2
        await FundAggregationService(session_factory).rebuild()

        async with session_factory() as session:
            records = {r.security_id: r for r in (await session.execute(select(QualityScore))).scalars().all()}
            fund = (await session.execute(select(FundQualityScore))).scalar_one()

        assert records[y.id].overall_quality_score is None
        assert records[y.id].piotroski_score is None
        assert float(fund.coverage_pct) == 60.0
        assert fund.scored_holdings == 1
        assert float(fund.overall_quality_score) == float(records[x.id].overall_quality_score)
        assert float(fund.piotroski_score) == float(records[x.id].piotroski_score)
