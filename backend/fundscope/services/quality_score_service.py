from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy import and_, func, select

from fundscope.core.database import AsyncSessionLocal, upsert
from fundscope.models.fundamental_snapshot import FundamentalSnapshot
from fundscope.models.quality_score import QualityScore
from fundscope.models.security import Security
from fundscope.models.shareholding_pattern import ShareholdingPattern
from fundscope.scoring.engine import ScoringEngine
from fundscope.services.batch import BatchResult, chunk_rows
from fundscope.services.fundamentals.normalizer import normalize_fundamentals

logger = logging.getLogger(__name__)

_SHAREHOLDING_FIELDS = ("promoter_holding", "promoter_pledged", "fii_holding", "dii_holding")


class QualityScoreService:
    """Compute and persist one score snapshot per security per day."""

    JOB = "compute_quality_scores"

    def __init__(self, session_factory=None, engine: ScoringEngine | None = None):
        self.session_factory = session_factory or AsyncSessionLocal
        self.engine = engine or ScoringEngine()

    async def compute_scores(self, as_of_date: date | None = None) -> BatchResult:
        target_date = as_of_date or date.today()
        result = BatchResult(job=self.JOB)

        async with self.session_factory() as session:
            securities = (await session.execute(select(Security).order_by(Security.id))).scalars().all()
            snapshots = await self._latest_snapshots(session, target_date)
            shareholdings = await self._latest_shareholdings(session, target_date)

            rows: list[dict[str, Any]] = []
            calculated_at = datetime.utcnow()
            for security in securities:
                snapshot = snapshots.get(security.id)
                if snapshot is None:
                    result.skipped += 1
                    continue
                try:
                    metrics_ = normalize_fundamentals(
                        snapshot.raw,
                        market_cap=security.market_cap,
                        shareholding=shareholdings.get(security.id),
                    )
                    card = self.engine.score(metrics_)
                except Exception as exc:
                    logger.exception("Scoring failed for %s", security.symbol)
                    result.fail(security.symbol, exc)
                    continue

                row = card.to_dict()
                row.update(
                    security_id=security.id,
                    calculation_date=target_date,
                    calculated_at=calculated_at,
                )
                rows.append(row)

            if rows:
                await self._upsert(session, rows)
                await session.commit()
            result.processed = len(rows)

        logger.info(
            "Quality scores for %s: processed=%d skipped=%d errors=%d",
            target_date, result.processed, result.skipped, result.errors,
        )
        return result.finish()

    async def get_latest_scores(self, security_ids: list[int] | None = None) -> dict[int, QualityScore]:
        """Newest score record per security, keyed by security id."""
        async with self.session_factory() as session:
            return await self.latest_scores(session, security_ids)

    @staticmethod
    async def latest_scores(session, security_ids: list[int] | None = None) -> dict[int, QualityScore]:
        latest = (
            select(
                QualityScore.security_id,
                func.max(QualityScore.calculation_date).label("latest_date"),
            )
            .group_by(QualityScore.security_id)
        )
        if security_ids is not None:
            if not security_ids:
                return {}
            latest = latest.where(QualityScore.security_id.in_(security_ids))
        latest = latest.subquery()

        stmt = select(QualityScore).join(
            latest,
            and_(
                QualityScore.security_id == latest.c.security_id,
                QualityScore.calculation_date == latest.c.latest_date,
            ),
        )
        rows = (await session.execute(stmt)).scalars().all()
        return {row.security_id: row for row in rows}

    async def _latest_snapshots(self, session, target_date: date) -> dict[int, FundamentalSnapshot]:
        stmt = (
            select(FundamentalSnapshot)
            .where(FundamentalSnapshot.period_end <= target_date)
            .order_by(
                FundamentalSnapshot.security_id,
                FundamentalSnapshot.period_end.desc(),
                FundamentalSnapshot.id.desc(),
            )
        )
        snapshots: dict[int, FundamentalSnapshot] = {}
        for snapshot in (await session.execute(stmt)).scalars().all():
            snapshots.setdefault(snapshot.security_id, snapshot)
        return snapshots

    async def _latest_shareholdings(self, session, target_date: date) -> dict[int, dict[str, Any]]:
        stmt = (
            select(ShareholdingPattern)
            .where(ShareholdingPattern.date <= target_date)
            .order_by(ShareholdingPattern.security_id, ShareholdingPattern.date.desc())
        )
        patterns: dict[int, dict[str, Any]] = {}
        for pattern in (await session.execute(stmt)).scalars().all():
            if pattern.security_id in patterns:
                continue
            patterns[pattern.security_id] = {
                name: getattr(pattern, name) for name in _SHAREHOLDING_FIELDS
            }
        return patterns

    async def _upsert(self, session, rows: list[dict[str, Any]]) -> None:
        update_columns = [k for k in rows[0] if k not in ("security_id", "calculation_date")]
        for chunk in chunk_rows(rows):
            stmt = upsert(session, QualityScore).values(chunk)
            stmt = stmt.on_conflict_do_update(
                index_elements=["security_id", "calculation_date"],
                set_={name: stmt.excluded[name] for name in update_columns},
            )
            await session.execute(stmt)
