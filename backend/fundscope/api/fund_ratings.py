from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from fundscope.api.dependencies import (
    get_fund_aggregation_service,
    get_ratings_service,
    model_columns,
)
from fundscope.services.fund_aggregation_service import FundAggregationService
from fundscope.services.ratings_cache_service import FundRatingsQuery, RatingsCacheService

router = APIRouter()


class FundRatingResponse(BaseModel):
    rank: int
    fund_name: str
    scheme_name: Optional[str] = None
    fund_house: Optional[str] = None
    coverage_pct: float
    total_holdings: int
    scored_holdings: int
    overall_quality_score: Optional[float] = None
    piotroski_score: Optional[float] = None
    altman_z_score: Optional[float] = None
    magic_formula_score: Optional[float] = None
    canslim_score: Optional[float] = None
    profitability_score: Optional[float] = None
    financial_strength_score: Optional[float] = None
    earnings_quality_score: Optional[float] = None
    growth_score: Optional[float] = None
    valuation_score: Optional[float] = None
    financial_health_score: Optional[float] = None
    management_quality_score: Optional[float] = None
    legacy_earnings_quality_score: Optional[float] = None
    legacy_overall_score: Optional[float] = None
    cagr_1y: Optional[float] = None
    cagr_3y: Optional[float] = None
    cagr_5y: Optional[float] = None
    cagr_10y: Optional[float] = None
    scheme_code: Optional[int] = None
    nav_cagr_1y: Optional[float] = None
    nav_cagr_3y: Optional[float] = None
    nav_cagr_5y: Optional[float] = None
    nav_cagr_10y: Optional[float] = None
    score_schema_version: Optional[str] = None
    calculated_at: Optional[datetime] = None


class FundRatingsResponse(BaseModel):
    items: list[FundRatingResponse]
    total: int
    last_updated: Optional[datetime] = None


class FundRefreshResponse(BaseModel):
    status: str
    processed: int
    errors: int
    calculated_at: datetime


@router.get("", response_model=FundRatingsResponse)
async def list_fund_ratings(
    fund_house: Optional[str] = Query(default=None),
    min_coverage: Optional[float] = Query(default=None, ge=0, le=100, description="Defaults to MIN_FUND_COVERAGE_PCT"),
    min_score: Optional[float] = Query(default=None, ge=0, le=100),
    max_score: Optional[float] = Query(default=None, ge=0, le=100),
    sort: str = Query(default="overall_quality_score"),
    order: str = Query(default="desc"),
    limit: Optional[int] = Query(default=None, ge=1, le=5000),
    service: RatingsCacheService = Depends(get_ratings_service),
):
    query = FundRatingsQuery(
        fund_house=fund_house,
        min_coverage=min_coverage,
        min_score=min_score,
        max_score=max_score,
        sort=sort,
        order=order.lower(),
        limit=limit,
    )
    try:
        page = await service.list_fund_ratings(query)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    items = [
        FundRatingResponse(rank=rank, **model_columns(row, FundRatingResponse))
        for rank, row in enumerate(page.items, start=1)
    ]
    return FundRatingsResponse(items=items, total=len(items), last_updated=page.last_updated)


@router.post("/refresh", response_model=FundRefreshResponse)
async def refresh_fund_ratings(
    service: FundAggregationService = Depends(get_fund_aggregation_service),
):
    """Rebuild holding-weighted fund scores."""
    result = await service.rebuild()
    return FundRefreshResponse(
        status="completed",
        processed=result.processed,
        errors=result.errors,
        calculated_at=datetime.utcnow(),
    )
