from sqlalchemy import Column, Date, ForeignKey, Integer, Numeric, String, UniqueConstraint
from fundscope.core.database import Base
from fundscope.models.base import IdMixin

class PriceHistory(Base, IdMixin):
    """
    Daily closing prices. Append-only; written by ingestion.
    """
    __tablename__ = "price_history"
    __table_args__ = (
        UniqueConstraint("security_id", "date", name="uq_price_history_security_date"),
    )

    security_id = Column(Integer, ForeignKey("securities.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    close = Column(Numeric(14, 4), nullable=False)
    source = Column(String(50), nullable=False, default="nse")
