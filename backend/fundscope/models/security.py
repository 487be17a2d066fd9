from sqlalchemy import BigInteger, Column, String
from fundscope.core.database import Base
from fundscope.models.base import IdMixin, TimestampMixin

class Security(Base, IdMixin, TimestampMixin):
    """
    Master table for listed securities (sector, industry, market cap).
    Maintained by the ingestion pipeline.
    """
    __tablename__ = "securities"

    symbol = Column(String(30), nullable=False, unique=True, index=True)
    name = Column(String(255))
    isin = Column(String(12), index=True)
    sector = Column(String(100), index=True)
    industry = Column(String(100))
    exchange = Column(String(20), default="NSE")
    market_cap = Column(BigInteger)
