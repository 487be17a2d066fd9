from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from fundscope.api.dependencies import get_ratings_service, model_columns
from fundscope.services.ratings_cache_service import RatingsCacheService, StockRatingsQuery

router = APIRouter()


class StockRatingResponse(BaseModel):
    rank: int
    symbol: str
    name: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    exchange: Optional[str] = None
    market_cap: Optional[int] = None
    current_price: Optional[float] = None
    overall_quality_score: Optional[float] = None
    piotroski_score: Optional[int] = None
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
    calculation_date: Optional[date] = None

    class Config:
        from_attributes = True


class StockRatingsResponse(BaseModel):
    items: list[StockRatingResponse]
    total: int
    last_updated: Optional[datetime] = None


class RefreshResponse(BaseModel):
    status: str
    processed: int
    cached_at: datetime


@router.get("", response_model=StockRatingsResponse)
async def list_stock_ratings(
    sector: Optional[str] = Query(default=None),
    min_score: Optional[float] = Query(default=None, ge=0, le=100),
    max_score: Optional[float] = Query(default=None, ge=0, le=100),
    sort: str = Query(default="overall_quality_score"),
    order: str = Query(default="desc"),
    limit: Optional[int] = Query(default=None, ge=1, le=5000),
    service: RatingsCacheService = Depends(get_ratings_service),
):
    query = StockRatingsQuery(
        sector=sector,
        min_score=min_score,
        max_score=max_score,
        sort=sort,
        order=order.lower(),
        limit=limit,
    )
    try:
        page = await service.list_stock_ratings(query)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    items = []
    for rank, row in enumerate(page.items, start=1):
        items.append(StockRatingResponse(rank=rank, **model_columns(row, StockRatingResponse)))
    return StockRatingsResponse(items=items, total=len(items), last_updated=page.last_updated)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_stock_ratings(
    service: RatingsCacheService = Depends(get_ratings_service),
):
    """Rebuild the stock ratings cache from the latest scores and prices."""
    processed = await service.refresh_stock_ratings()
    return RefreshResponse(status="completed", processed=processed, cached_at=datetime.utcnow())

