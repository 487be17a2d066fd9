from sqlalchemy import Column, Date, ForeignKey, Integer, Numeric, UniqueConstraint, Index
from sqlalchemy.orm import declarative_mixin
from fundscope.core.database import Base
from fundscope.models.base import IdMixin, SnapshotMixin

# Score columns carried by the per-security snapshot, the stock ratings cache
# and the fund aggregate, in display order.
SCORE_COLUMNS: tuple[str, ...] = (
    "overall_quality_score",
    "piotroski_score",
    "altman_z_score",
    "magic_formula_score",
    "canslim_score",
    "profitability_score",
    "financial_strength_score",
    "earnings_quality_score",
    "growth_score",
    "valuation_score",
    "financial_health_score",
    "management_quality_score",
    "legacy_earnings_quality_score",
    "legacy_overall_score",
)

CAGR_COLUMNS: tuple[str, ...] = ("cagr_1y", "cagr_3y", "cagr_5y", "cagr_10y")


@declarative_mixin
class ScoreColumnsMixin:
    overall_quality_score = Column(Numeric(5, 2))
    piotroski_score = Column(Numeric(5, 2))
    altman_z_score = Column(Numeric(10, 2))
    magic_formula_score = Column(Numeric(5, 2))
    canslim_score = Column(Numeric(5, 2))

    # Five pillars
    profitability_score = Column(Numeric(5, 2))
    financial_strength_score = Column(Numeric(5, 2))
    earnings_quality_score = Column(Numeric(5, 2))
    growth_score = Column(Numeric(5, 2))
    valuation_score = Column(Numeric(5, 2))

    # Legacy (v1) shape, only filled when SCORE_INCLUDE_LEGACY is on
    financial_health_score = Column(Numeric(5, 2))
    management_quality_score = Column(Numeric(5, 2))
    legacy_earnings_quality_score = Column(Numeric(5, 2))
    legacy_overall_score = Column(Numeric(5, 2))


@declarative_mixin
class CagrColumnsMixin:
    cagr_1y = Column(Numeric(8, 2))
    cagr_3y = Column(Numeric(8, 2))
    cagr_5y = Column(Numeric(8, 2))
    cagr_10y = Column(Numeric(8, 2))


class QualityScore(Base, IdMixin, SnapshotMixin, ScoreColumnsMixin):
    """
    One score snapshot per security per calculation date.
    A rerun on the same date overwrites the row in place.
    """
    __tablename__ = "quality_scores"
    __table_args__ = (
        UniqueConstraint(
            "security_id",
            "calculation_date",
            name="uq_quality_scores_security_date",
        ),
        Index("ix_quality_scores_security_date", "security_id", "calculation_date"),
    )

    security_id = Column(Integer, ForeignKey("securities.id", ondelete="CASCADE"), nullable=False)
    calculation_date = Column(Date, nullable=False, index=True)

    piotroski_score = Column(Integer)
    piotroski_tests_available = Column(Integer)

    # Growth inputs kept for display
    revenue_growth_yoy = Column(Numeric(10, 2))
    eps_growth_yoy = Column(Numeric(10, 2))
    margin_expansion = Column(Numeric(10, 2))
