from sqlalchemy import Column, Date, ForeignKey, Integer, Numeric, UniqueConstraint
from fundscope.core.database import Base
from fundscope.models.base import IdMixin, TimestampMixin

class ShareholdingPattern(Base, IdMixin, TimestampMixin):
    """
    Quarterly shareholding disclosure (percent of equity).
    """
    __tablename__ = "shareholding_patterns"
    __table_args__ = (
        UniqueConstraint("security_id", "date", name="uq_shareholding_patterns_security_date"),
    )

    security_id = Column(Integer, ForeignKey("securities.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    promoter_holding = Column(Numeric(6, 2))
    fii_holding = Column(Numeric(6, 2))
    dii_holding = Column(Numeric(6, 2))
    public_holding = Column(Numeric(6, 2))
    promoter_pledged = Column(Numeric(6, 2))
