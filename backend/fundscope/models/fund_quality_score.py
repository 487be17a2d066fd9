from sqlalchemy import Column, Integer, Numeric, String
from fundscope.core.database import Base
from fundscope.models.base import IdMixin, SnapshotMixin
from fundscope.models.quality_score import CagrColumnsMixin, ScoreColumnsMixin

class FundQualityScore(Base, IdMixin, SnapshotMixin, ScoreColumnsMixin, CagrColumnsMixin):
    """
    Holding-weighted fund scores. One row per fund, rebuilt in full by the
    aggregation job. ``cagr_*`` are weighted from the holdings' stock returns;
    ``nav_cagr_*`` come from the fund's own NAV history.
    """
    __tablename__ = "fund_quality_scores"

    fund_name = Column(String(255), nullable=False, unique=True, index=True)
    scheme_name = Column(String(255))
    fund_house = Column(String(120), index=True)
    total_holdings = Column(Integer, nullable=False, default=0)
    scored_holdings = Column(Integer, nullable=False, default=0)
    coverage_pct = Column(Numeric(6, 2), nullable=False, default=0)

    scheme_code = Column(Integer)
    nav_cagr_1y = Column(Numeric(8, 2))
    nav_cagr_3y = Column(Numeric(8, 2))
    nav_cagr_5y = Column(Numeric(8, 2))
    nav_cagr_10y = Column(Numeric(8, 2))
