"""Service providers for the routers; overridden in tests."""
from fundscope.services.fund_aggregation_service import FundAggregationService
from fundscope.services.overlap_service import OverlapService
from fundscope.services.ratings_cache_service import RatingsCacheService


def get_ratings_service() -> RatingsCacheService:
    return RatingsCacheService()


def get_fund_aggregation_service() -> FundAggregationService:
    return FundAggregationService()


def get_overlap_service() -> OverlapService:
    return OverlapService()


def model_columns(row, response_model) -> dict:
    """ORM attributes named by a response model's fields (``rank`` excluded)."""
    return {
        name: getattr(row, name)
        for name in response_model.model_fields
        if name != "rank" and hasattr(row, name)
    }
