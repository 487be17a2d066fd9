"""
Fund Aggregation Service.

Rolls security-level scores up to funds, weighted by each holding's percent
of NAV. Every score field is averaged independently over the holdings that
have it, so an unmatched or partially scored holding only drops out of the
fields it lacks. ``coverage_pct`` records how much of the NAV the scores
actually describe.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy import delete, func, select

from fundscope.core.config import settings
from fundscope.core.database import AsyncSessionLocal, upsert
from fundscope.core.metrics import metrics
from fundscope.models.fund_holding import FundHolding
from fundscope.models.fund_quality_score import FundQualityScore
from fundscope.models.quality_score import CAGR_COLUMNS, SCORE_COLUMNS
from fundscope.models.stock_ratings_cache import StockRatingsCache
from fundscope.scoring.composite import is_present, weighted_score
from fundscope.services.batch import BatchResult, chunk_rows, to_float
from fundscope.services.quality_score_service import QualityScoreService

logger = logging.getLogger(__name__)

AGGREGATED_COLUMNS: tuple[str, ...] = SCORE_COLUMNS + CAGR_COLUMNS


@dataclass
class HoldingScore:
    """One fund holding joined to its security's latest scores."""
    fund_name: str
    instrument: str
    weight: float
    scores: Optional[dict[str, Optional[float]]] = None   # None = no matched score record
    returns: dict[str, Optional[float]] = field(default_factory=dict)
    scheme_name: Optional[str] = None
    fund_house: Optional[str] = None

    @property
    def is_scored(self) -> bool:
        # Covered only when the security has an overall score
        return self.scores is not None and is_present(self.scores.get("overall_quality_score"))


@dataclass
class FundAggregate:
    fund_name: str
    scheme_name: Optional[str]
    fund_house: Optional[str]
    values: dict[str, Optional[float]]
    coverage_pct: float
    total_holdings: int
    scored_holdings: int

    def to_row(self) -> dict[str, Any]:
        row = {
            "fund_name": self.fund_name,
            "scheme_name": self.scheme_name,
            "fund_house": self.fund_house,
            "coverage_pct": self.coverage_pct,
            "total_holdings": self.total_holdings,
            "scored_holdings": self.scored_holdings,
        }
        row.update(self.values)
        return row


def aggregate_fund_scores(
    holdings: Iterable[HoldingScore],
    precision: int = 2,
) -> list[FundAggregate]:
    """
    Holding-weighted fund scores.

    Holdings with weight <= 0 are ignored. For each field the weighted mean
    runs over holdings where that field is present; a field no holding has
    stays None.
    """
    by_fund: dict[str, list[HoldingScore]] = {}
    for holding in holdings:
        if not is_present(holding.weight) or holding.weight <= 0:
            continue
        by_fund.setdefault(holding.fund_name, []).append(holding)

    aggregates = []
    for fund_name in sorted(by_fund):
        fund_holdings = by_fund[fund_name]
        weights = {i: h.weight for i, h in enumerate(fund_holdings)}

        values: dict[str, Optional[float]] = {}
        for column in AGGREGATED_COLUMNS:
            components = {}
            for i, h in enumerate(fund_holdings):
                source = h.returns if column in CAGR_COLUMNS else (h.scores or {})
                components[i] = source.get(column)
            values[column] = weighted_score(components, weights, precision)

        scored = [h for h in fund_holdings if h.is_scored]
        first = fund_holdings[0]
        aggregates.append(
            FundAggregate(
                fund_name=fund_name,
                scheme_name=first.scheme_name,
                fund_house=first.fund_house,
                values=values,
                coverage_pct=round(sum(h.weight for h in scored), precision),
                total_holdings=len(fund_holdings),
                scored_holdings=len({h.instrument for h in scored}),
            )
        )
    return aggregates


class FundAggregationService:
    """Full rebuild of ``fund_quality_scores`` from holdings and latest scores."""

    JOB = "rebuild_fund_scores"

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or AsyncSessionLocal

    async def rebuild(self) -> BatchResult:
        result = BatchResult(job=self.JOB)
        calculated_at = datetime.utcnow()

        async with self.session_factory() as session:
            holdings = await self._load_holdings(session)
            aggregates = aggregate_fund_scores(holdings, settings.SCORE_PRECISION)

            rows = []
            for aggregate in aggregates:
                row = aggregate.to_row()
                row.update(
                    score_schema_version=settings.SCORE_SCHEMA_VERSION,
                    calculated_at=calculated_at,
                )
                rows.append(row)
                if aggregate.coverage_pct < settings.MIN_FUND_COVERAGE_PCT:
                    metrics.low_coverage(
                        aggregate.fund_name, aggregate.coverage_pct, settings.MIN_FUND_COVERAGE_PCT
                    )

            if rows:
                await self._upsert(session, rows)

            # Funds that no longer have any positive-weight holding
            stale = delete(FundQualityScore)
            if rows:
                stale = stale.where(FundQualityScore.fund_name.notin_([r["fund_name"] for r in rows]))
            await session.execute(stale)
            await session.commit()
            result.processed = len(rows)

        logger.info("Rebuilt %d fund scores", result.processed)
        return result.finish()

    async def check_weight_totals(self, tolerance: float | None = None) -> list[dict[str, Any]]:
        """
        Funds whose holding weights do not sum to ~100% of NAV.
        Reported only; aggregation does not rescale weights.
        """
        tolerance = settings.FUND_WEIGHT_TOLERANCE_PCT if tolerance is None else tolerance
        async with self.session_factory() as session:
            stmt = (
                select(FundHolding.fund_name, func.sum(FundHolding.percent_nav))
                .group_by(FundHolding.fund_name)
                .order_by(FundHolding.fund_name)
            )
            totals = (await session.execute(stmt)).all()

        flagged = []
        for fund_name, total in totals:
            total_weight = round(to_float(total) or 0.0, 2)
            if abs(total_weight - 100.0) > tolerance:
                metrics.weight_total_off(fund_name, total_weight, tolerance)
                flagged.append({"fund_name": fund_name, "total_weight": total_weight})
        if flagged:
            logger.warning("%d funds have holding weights outside 100 +/- %s", len(flagged), tolerance)
        return flagged

    async def _load_holdings(self, session) -> list[HoldingScore]:
        fund_holdings = (await session.execute(select(FundHolding))).scalars().all()
        security_ids = sorted({h.security_id for h in fund_holdings if h.security_id is not None})
        latest = await QualityScoreService.latest_scores(session, security_ids)

        returns: dict[int, dict[str, Optional[float]]] = {}
        if security_ids:
            cache_rows = (
                await session.execute(
                    select(StockRatingsCache).where(StockRatingsCache.security_id.in_(security_ids))
                )
            ).scalars().all()
            returns = {
                row.security_id: {c: to_float(getattr(row, c)) for c in CAGR_COLUMNS}
                for row in cache_rows
            }

        holdings = []
        for h in fund_holdings:
            record = latest.get(h.security_id) if h.security_id is not None else None
            scores = None
            if record is not None:
                scores = {c: to_float(getattr(record, c)) for c in SCORE_COLUMNS}
            holdings.append(
                HoldingScore(
                    fund_name=h.fund_name,
                    instrument=str(h.security_id) if h.security_id is not None else h.instrument_name,
                    weight=to_float(h.percent_nav) or 0.0,
                    scores=scores,
                    returns=returns.get(h.security_id, {}),
                    scheme_name=h.scheme_name,
                    fund_house=h.fund_house,
                )
            )
        return holdings

    async def _upsert(self, session, rows: list[dict[str, Any]]) -> None:
        update_columns = [k for k in rows[0] if k != "fund_name"]
        for chunk in chunk_rows(rows):
            stmt = upsert(session, FundQualityScore).values(chunk)
            stmt = stmt.on_conflict_do_update(
                index_elements=["fund_name"],
                set_={name: stmt.excluded[name] for name in update_columns},
            )
            await session.execute(stmt)
