import asyncio
import logging

from fundscope.scheduler.celery_app import app
from fundscope.services.batch import BatchResult
from fundscope.services.fund_aggregation_service import FundAggregationService
from fundscope.services.fund_returns_service import FundReturnsService

logger = logging.getLogger(__name__)


async def _rebuild_fund_scores_async() -> tuple[BatchResult, list[dict]]:
    service = FundAggregationService()
    flagged = await service.check_weight_totals()
    result = await service.rebuild()
    return result, flagged


@app.task(name="fundscope.tasks.fund_scores.rebuild_fund_scores")
def rebuild_fund_scores() -> dict[str, object]:
    """Scheduled full rebuild of holding-weighted fund scores."""
    result, flagged = asyncio.run(_rebuild_fund_scores_async())
    logger.info("Fund scores rebuilt: %d funds", result.processed)
    return {"status": "completed", **result.to_dict(), "weight_total_off": len(flagged)}


@app.task(name="fundscope.tasks.fund_scores.refresh_fund_nav_cagr")
def refresh_fund_nav_cagr() -> dict[str, object]:
    """Scheduled refresh of NAV-based fund CAGR."""
    result = asyncio.run(FundReturnsService().refresh_nav_cagr())
    logger.info("Fund NAV CAGR refreshed: %d funds", result.processed)
    return {"status": "completed", **result.to_dict()}
