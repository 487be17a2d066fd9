from sqlalchemy import Column, Date, ForeignKey, Integer, Numeric, String, Index
from fundscope.core.database import Base
from fundscope.models.base import IdMixin, TimestampMixin

class FundHolding(Base, IdMixin, TimestampMixin):
    """
    Disclosed mutual-fund portfolio line.

    ``security_id`` is null when the instrument could not be matched to a
    listed security (debt, cash, unlisted or foreign paper).
    """
    __tablename__ = "fund_holdings"
    __table_args__ = (
        Index("ix_fund_holdings_fund_security", "fund_name", "security_id"),
    )

    fund_name = Column(String(255), nullable=False, index=True)
    scheme_name = Column(String(255))
    fund_house = Column(String(120), index=True)
    instrument_name = Column(String(255), nullable=False)
    isin = Column(String(12))
    security_id = Column(Integer, ForeignKey("securities.id", ondelete="SET NULL"), index=True)
    percent_nav = Column(Numeric(8, 4), nullable=False)
    as_of_date = Column(Date)
