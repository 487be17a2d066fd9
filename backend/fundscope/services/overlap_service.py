from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import select

from fundscope.core.database import AsyncSessionLocal
from fundscope.models.fund_holding import FundHolding
from fundscope.models.security import Security
from fundscope.services.batch import to_float
from fundscope.strategy.overlap import (
    MAX_FUNDS,
    MIN_FUNDS,
    FundPortfolio,
    OverlapResult,
    analyze_overlap,
)

logger = logging.getLogger(__name__)


class FundNotFoundError(ValueError):
    """A requested fund has no holdings on record."""


class OverlapService:
    def __init__(self, session_factory=None):
        self.session_factory = session_factory or AsyncSessionLocal

    async def compare(self, fund_names: Sequence[str]) -> OverlapResult:
        names = [n.strip() for n in fund_names if n and n.strip()]
        if not MIN_FUNDS <= len(names) <= MAX_FUNDS:
            raise ValueError(f"Select between {MIN_FUNDS} and {MAX_FUNDS} funds, got {len(names)}")

        portfolios = await self.load_portfolios(names)
        missing = [n for n in names if n not in portfolios]
        if missing:
            raise FundNotFoundError(f"No holdings found for: {', '.join(missing)}")
        return analyze_overlap([portfolios[n] for n in names])

    async def load_portfolios(self, fund_names: Sequence[str]) -> dict[str, FundPortfolio]:
        """Matched, positive-weight equity holdings keyed by symbol."""
        async with self.session_factory() as session:
            stmt = (
                select(FundHolding.fund_name, Security.symbol, FundHolding.percent_nav)
                .join(Security, FundHolding.security_id == Security.id)
                .where(FundHolding.fund_name.in_(list(fund_names)))
                .where(FundHolding.percent_nav > 0)
            )
            rows = (await session.execute(stmt)).all()

        portfolios: dict[str, FundPortfolio] = {}
        for fund_name, symbol, weight in rows:
            portfolio = portfolios.setdefault(fund_name, FundPortfolio(name=fund_name, holdings={}))
            # Same security listed twice in a disclosure: add the weights
            portfolio.holdings[symbol] = round(
                portfolio.holdings.get(symbol, 0.0) + (to_float(weight) or 0.0), 4
            )
        logger.debug("Loaded %d portfolios for overlap", len(portfolios))
        return portfolios
