"""create_quality_rating_tables

Revision ID: a7f3c91d2b40
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "a7f3c91d2b40"
down_revision = None
branch_labels = None
depends_on = None


def _score_columns() -> list[sa.Column]:
    return [
        sa.Column("overall_quality_score", sa.Numeric(5, 2)),
        sa.Column("altman_z_score", sa.Numeric(10, 2)),
        sa.Column("magic_formula_score", sa.Numeric(5, 2)),
        sa.Column("canslim_score", sa.Numeric(5, 2)),
        sa.Column("profitability_score", sa.Numeric(5, 2)),
        sa.Column("financial_strength_score", sa.Numeric(5, 2)),
        sa.Column("earnings_quality_score", sa.Numeric(5, 2)),
        sa.Column("growth_score", sa.Numeric(5, 2)),
        sa.Column("valuation_score", sa.Numeric(5, 2)),
        sa.Column("financial_health_score", sa.Numeric(5, 2)),
        sa.Column("management_quality_score", sa.Numeric(5, 2)),
        sa.Column("legacy_earnings_quality_score", sa.Numeric(5, 2)),
        sa.Column("legacy_overall_score", sa.Numeric(5, 2)),
    ]


def _cagr_columns(prefix: str = "cagr") -> list[sa.Column]:
    return [sa.Column(f"{prefix}_{h}", sa.Numeric(8, 2)) for h in ("1y", "3y", "5y", "10y")]


def upgrade() -> None:
    op.create_table(
        "securities",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("symbol", sa.String(length=30), nullable=False),
        sa.Column("name", sa.String(length=255)),
        sa.Column("isin", sa.String(length=12)),
        sa.Column("sector", sa.String(length=100)),
        sa.Column("industry", sa.String(length=100)),
        sa.Column("exchange", sa.String(length=20)),
        sa.Column("market_cap", sa.BigInteger()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index("ix_securities_symbol", "securities", ["symbol"], unique=True)
    op.create_index("ix_securities_isin", "securities", ["isin"])
    op.create_index("ix_securities_sector", "securities", ["sector"])

    op.create_table(
        "fundamental_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("security_id", sa.Integer(), sa.ForeignKey("securities.id", ondelete="CASCADE"), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("period_type", sa.String(length=10), nullable=False, server_default="FY"),
        sa.Column("fiscal_year", sa.Integer()),
        sa.Column("fiscal_quarter", sa.Integer()),
        sa.Column("source", sa.String(length=50), nullable=False),
        sa.Column("raw", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
        sa.UniqueConstraint(
            "security_id",
            "period_end",
            "period_type",
            "source",
            name="uq_fundamental_snapshots_security_period_source",
        ),
    )
    op.create_index(
        "ix_fundamental_snapshots_security_period",
        "fundamental_snapshots",
        ["security_id", "period_end"],
    )

    op.create_table(
        "shareholding_patterns",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("security_id", sa.Integer(), sa.ForeignKey("securities.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("promoter_holding", sa.Numeric(6, 2)),
        sa.Column("fii_holding", sa.Numeric(6, 2)),
        sa.Column("dii_holding", sa.Numeric(6, 2)),
        sa.Column("public_holding", sa.Numeric(6, 2)),
        sa.Column("promoter_pledged", sa.Numeric(6, 2)),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
        sa.UniqueConstraint("security_id", "date", name="uq_shareholding_patterns_security_date"),
    )
    op.create_index("ix_shareholding_patterns_security_id", "shareholding_patterns", ["security_id"])

    op.create_table(
        "price_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("security_id", sa.Integer(), sa.ForeignKey("securities.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("close", sa.Numeric(14, 4), nullable=False),
        sa.Column("source", sa.String(length=50), nullable=False, server_default="nse"),
        sa.UniqueConstraint("security_id", "date", name="uq_price_history_security_date"),
    )
    op.create_index("ix_price_history_security_id", "price_history", ["security_id"])
    op.create_index("ix_price_history_date", "price_history", ["date"])

    op.create_table(
        "fund_holdings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("fund_name", sa.String(length=255), nullable=False),
        sa.Column("scheme_name", sa.String(length=255)),
        sa.Column("fund_house", sa.String(length=120)),
        sa.Column("instrument_name", sa.String(length=255), nullable=False),
        sa.Column("isin", sa.String(length=12)),
        sa.Column("security_id", sa.Integer(), sa.ForeignKey("securities.id", ondelete="SET NULL")),
        sa.Column("percent_nav", sa.Numeric(8, 4), nullable=False),
        sa.Column("as_of_date", sa.Date()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index("ix_fund_holdings_fund_name", "fund_holdings", ["fund_name"])
    op.create_index("ix_fund_holdings_fund_house", "fund_holdings", ["fund_house"])
    op.create_index("ix_fund_holdings_security_id", "fund_holdings", ["security_id"])
    op.create_index("ix_fund_holdings_fund_security", "fund_holdings", ["fund_name", "security_id"])

    op.create_table(
        "quality_scores",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("security_id", sa.Integer(), sa.ForeignKey("securities.id", ondelete="CASCADE"), nullable=False),
        sa.Column("calculation_date", sa.Date(), nullable=False),
        sa.Column("piotroski_score", sa.Integer()),
        sa.Column("piotroski_tests_available", sa.Integer()),
        *_score_columns(),
        sa.Column("revenue_growth_yoy", sa.Numeric(10, 2)),
        sa.Column("eps_growth_yoy", sa.Numeric(10, 2)),
        sa.Column("margin_expansion", sa.Numeric(10, 2)),
        sa.Column("score_schema_version", sa.String(length=10), nullable=False, server_default="v2"),
        sa.Column("calculated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("security_id", "calculation_date", name="uq_quality_scores_security_date"),
    )
    op.create_index("ix_quality_scores_calculation_date", "quality_scores", ["calculation_date"])
    op.create_index(
        "ix_quality_scores_security_date",
        "quality_scores",
        ["security_id", "calculation_date"],
    )

    op.create_table(
        "fund_quality_scores",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("fund_name", sa.String(length=255), nullable=False),
        sa.Column("scheme_name", sa.String(length=255)),
        sa.Column("fund_house", sa.String(length=120)),
        sa.Column("total_holdings", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("scored_holdings", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("coverage_pct", sa.Numeric(6, 2), nullable=False, server_default="0"),
        sa.Column("piotroski_score", sa.Numeric(5, 2)),
        *_score_columns(),
        *_cagr_columns(),
        sa.Column("scheme_code", sa.Integer()),
        *_cagr_columns("nav_cagr"),
        sa.Column("score_schema_version", sa.String(length=10), nullable=False, server_default="v2"),
        sa.Column("calculated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_fund_quality_scores_fund_name", "fund_quality_scores", ["fund_name"], unique=True)
    op.create_index("ix_fund_quality_scores_fund_house", "fund_quality_scores", ["fund_house"])

    op.create_table(
        "stock_ratings_cache",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("security_id", sa.Integer(), nullable=False, unique=True),
        sa.Column("symbol", sa.String(length=30), nullable=False),
        sa.Column("name", sa.String(length=255)),
        sa.Column("sector", sa.String(length=100)),
        sa.Column("industry", sa.String(length=100)),
        sa.Column("exchange", sa.String(length=20)),
        sa.Column("market_cap", sa.BigInteger()),
        sa.Column("current_price", sa.Numeric(14, 4)),
        sa.Column("piotroski_score", sa.Integer()),
        *_score_columns(),
        *_cagr_columns(),
        sa.Column("calculation_date", sa.Date()),
        sa.Column("cached_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_stock_ratings_cache_symbol", "stock_ratings_cache", ["symbol"], unique=True)
    op.create_index("ix_stock_ratings_cache_sector", "stock_ratings_cache", ["sector"])


def downgrade() -> None:
    op.drop_table("stock_ratings_cache")
    op.drop_table("fund_quality_scores")
    op.drop_table("quality_scores")
    op.drop_table("fund_holdings")
    op.drop_table("price_history")
    op.drop_table("shareholding_patterns")
    op.drop_table("fundamental_snapshots")
    op.drop_table("securities")
