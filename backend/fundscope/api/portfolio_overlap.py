from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from fundscope.api.dependencies import get_overlap_service
from fundscope.services.overlap_service import FundNotFoundError, OverlapService

router = APIRouter()


class CommonHoldingResponse(BaseModel):
    security: str
    weights: dict[str, float]
    total_weight: float


class PairOverlapResponse(BaseModel):
    fund_a: str
    fund_b: str
    common_count: int
    overlap_pct: float
    exclusive_holdings: list[str]


class UniqueHoldingResponse(BaseModel):
    security: str
    weight: float


class FundOverlapSummaryResponse(BaseModel):
    fund: str
    holdings_count: int
    overlap_pct: float
    common_weight: float


class OverlapResponse(BaseModel):
    funds: list[str]
    common_holdings: list[CommonHoldingResponse]
    pairwise: list[PairOverlapResponse]
    unique_holdings: dict[str, list[UniqueHoldingResponse]]
    per_fund: list[FundOverlapSummaryResponse]
    diversification_score: int
    matrix: dict[str, dict[str, float]]


@router.get("", response_model=OverlapResponse)
async def compare_funds(
    funds: Optional[str] = Query(default=None, description="Comma-separated fund names (2-5)"),
    service: OverlapService = Depends(get_overlap_service),
):
    names = [name.strip() for name in (funds or "").split(",") if name.strip()]
    try:
        result = await service.compare(names)
    except FundNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return OverlapResponse(**result.to_dict())
