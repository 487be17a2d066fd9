"""
Fund NAV returns.

Resolves each fund to a NAV provider scheme (once; the code is kept on the
fund row) and stores multi-horizon CAGR computed from its NAV history.
"""
from __future__ import annotations

import logging

from sqlalchemy import select

from fundscope.core.config import settings
from fundscope.core.database import AsyncSessionLocal
from fundscope.models.fund_quality_score import FundQualityScore
from fundscope.services.batch import BatchResult
from fundscope.services.nav import get_nav_client
from fundscope.services.returns_calculator import returns_calculator

logger = logging.getLogger(__name__)


class FundReturnsService:
    JOB = "refresh_fund_nav_cagr"

    def __init__(self, session_factory=None, nav_client=None, calculator=None):
        self.session_factory = session_factory or AsyncSessionLocal
        self.nav_client = nav_client
        self.calculator = calculator or returns_calculator

    async def refresh_nav_cagr(self) -> BatchResult:
        result = BatchResult(job=self.JOB)
        client = self.nav_client or get_nav_client()
        try:
            async with self.session_factory() as session:
                funds = (
                    await session.execute(select(FundQualityScore).order_by(FundQualityScore.fund_name))
                ).scalars().all()

                for fund in funds:
                    try:
                        await self._refresh_fund(client, fund, result)
                    except Exception as exc:
                        logger.error("NAV CAGR failed for %s: %s", fund.fund_name, exc)
                        result.fail(fund.fund_name, exc)

                await session.commit()
        finally:
            if self.nav_client is None:
                await client.aclose()

        logger.info(
            "NAV CAGR: processed=%d not_found=%d skipped=%d errors=%d",
            result.processed, result.not_found, result.skipped, result.errors,
        )
        return result.finish()

    async def _refresh_fund(self, client, fund: FundQualityScore, result: BatchResult) -> None:
        scheme_code = fund.scheme_code
        if scheme_code is None:
            match = await client.resolve(fund.scheme_name or fund.fund_name, fund.fund_house)
            if match is None:
                logger.info("No scheme match for %s", fund.fund_name)
                result.not_found += 1
                return
            scheme_code = match.scheme_code

        history = await client.fetch_nav_history(scheme_code)
        if len(history) < settings.MIN_NAV_POINTS:
            logger.info("Only %d NAV points for %s, skipping", len(history), fund.fund_name)
            result.skipped += 1
            return

        cagrs = self.calculator.horizon_cagrs(history, horizons=(1, 3, 5, 10))
        fund.scheme_code = scheme_code
        fund.nav_cagr_1y = cagrs[1]
        fund.nav_cagr_3y = cagrs[3]
        fund.nav_cagr_5y = cagrs[5]
        fund.nav_cagr_10y = cagrs[10]
        result.processed += 1
