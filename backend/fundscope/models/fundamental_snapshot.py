from sqlalchemy import JSON, Column, Date, ForeignKey, Integer, String, UniqueConstraint, Index
from fundscope.core.database import Base
from fundscope.models.base import IdMixin, TimestampMixin

class FundamentalSnapshot(Base, IdMixin, TimestampMixin):
    """
    Provider financial-statement fields for one security and reporting period.

    ``raw`` keeps the provider's own field names; the normalizer maps them onto
    the canonical metric set at scoring time.
    """
    __tablename__ = "fundamental_snapshots"
    __table_args__ = (
        UniqueConstraint(
            "security_id",
            "period_end",
            "period_type",
            "source",
            name="uq_fundamental_snapshots_security_period_source",
        ),
        Index("ix_fundamental_snapshots_security_period", "security_id", "period_end"),
    )

    security_id = Column(Integer, ForeignKey("securities.id", ondelete="CASCADE"), nullable=False)
    period_end = Column(Date, nullable=False)
    period_type = Column(String(10), nullable=False, default="FY")
    fiscal_year = Column(Integer)
    fiscal_quarter = Column(Integer)
    source = Column(String(50), nullable=False)
    raw = Column(JSON, nullable=False, default=dict)
