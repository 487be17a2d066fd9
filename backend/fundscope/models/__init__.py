# Base
from fundscope.models.base import IdMixin, SnapshotMixin, TimestampMixin

# Source data (written by ingestion)
from fundscope.models.security import Security
from fundscope.models.fundamental_snapshot import FundamentalSnapshot
from fundscope.models.shareholding_pattern import ShareholdingPattern
from fundscope.models.price_history import PriceHistory
from fundscope.models.fund_holding import FundHolding

# Derived data (rebuilt by batch jobs)
from fundscope.models.quality_score import QualityScore, SCORE_COLUMNS, CAGR_COLUMNS
from fundscope.models.fund_quality_score import FundQualityScore
from fundscope.models.stock_ratings_cache import StockRatingsCache

__all__ = [
    "IdMixin",
    "SnapshotMixin",
    "TimestampMixin",
    "Security",
    "FundamentalSnapshot",
    "ShareholdingPattern",
    "PriceHistory",
    "FundHolding",
    "QualityScore",
    "SCORE_COLUMNS",
    "CAGR_COLUMNS",
    "FundQualityScore",
    "StockRatingsCache",
]
