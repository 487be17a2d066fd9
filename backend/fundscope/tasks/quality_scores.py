import asyncio
import logging
from datetime import date
from typing import Optional

from fundscope.scheduler.celery_app import app
from fundscope.services.batch import BatchResult
from fundscope.services.quality_score_service import QualityScoreService
from fundscope.services.ratings_cache_service import RatingsCacheService

logger = logging.getLogger(__name__)


async def _compute_quality_scores_async(target_date: Optional[date], refresh_cache: bool) -> tuple[BatchResult, int]:
    result = await QualityScoreService().compute_scores(as_of_date=target_date)
    cached = 0
    if refresh_cache:
        cached = await RatingsCacheService().refresh_stock_ratings()
    return result, cached


@app.task(name="fundscope.tasks.quality_scores.compute_quality_scores")
def compute_quality_scores(as_of_date: str | None = None, refresh_cache: bool = True) -> dict[str, object]:
    """Scheduled task to score every security, then rebuild the stock ratings cache."""
    target_date = date.fromisoformat(as_of_date) if as_of_date else None
    result, cached = asyncio.run(_compute_quality_scores_async(target_date, refresh_cache))
    logger.info("Quality scores computed for %s", as_of_date or "today")
    return {
        "status": "completed",
        **result.to_dict(),
        "cached": cached,
        "date": str(as_of_date or date.today()),
    }


@app.task(name="fundscope.tasks.quality_scores.refresh_stock_ratings")
def refresh_stock_ratings() -> dict[str, object]:
    """Rebuild the stock ratings cache from the latest stored scores."""
    processed = asyncio.run(RatingsCacheService().refresh_stock_ratings())
    logger.info("Stock ratings cache refreshed: %d rows", processed)
    return {"status": "completed", "processed": processed}
