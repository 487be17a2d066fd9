from datetime import datetime
from sqlalchemy import BigInteger, Column, Date, DateTime, Integer, Numeric, String
from fundscope.core.database import Base
from fundscope.models.base import IdMixin
from fundscope.models.quality_score import CagrColumnsMixin, ScoreColumnsMixin

class StockRatingsCache(Base, IdMixin, ScoreColumnsMixin, CagrColumnsMixin):
    """
    Query-optimized copy of the latest score per security.
    Truncated and rebuilt by the refresh job; read by the ratings API.
    """
    __tablename__ = "stock_ratings_cache"

    security_id = Column(Integer, nullable=False, unique=True)
    symbol = Column(String(30), nullable=False, unique=True, index=True)
    name = Column(String(255))
    sector = Column(String(100), index=True)
    industry = Column(String(100))
    exchange = Column(String(20))
    market_cap = Column(BigInteger)
    current_price = Column(Numeric(14, 4))
    piotroski_score = Column(Integer)
    calculation_date = Column(Date)
    cached_at = Column(DateTime, default=datetime.utcnow, nullable=False)
