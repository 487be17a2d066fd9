"""
Five-pillar scores (0-100 each) and the overall blend.

Each input metric is mapped to 0-100 by a piecewise-linear curve, then the
pillar is a renormalized weighted mean of whatever mapped metrics exist.
"""
from __future__ import annotations

from fundscope.scoring.composite import interpolate, is_present, safe_ratio, scale_linear, weighted_score
from fundscope.scoring.weights import (
    EARNINGS_QUALITY_WEIGHTS,
    FINANCIAL_STRENGTH_WEIGHTS,
    GROWTH_WEIGHTS,
    OVERALL_WEIGHTS,
    PROFITABILITY_WEIGHTS,
    VALUATION_WEIGHTS,
)
from fundscope.services.fundamentals.normalizer import NormalizedMetrics

# Curves: (x, score) points, x ascending
ALTMAN_CURVE = [(0.0, 0.0), (1.81, 28.0), (1.81 + 1e-9, 32.0), (2.99, 96.0), (2.99 + 1e-9, 100.0)]
INTEREST_COVERAGE_CURVE = [(1.0, 0.0), (3.0, 50.0), (10.0, 100.0)]
PLEDGE_CURVE = [(0.0, 100.0), (50.0, 0.0)]
ACCRUALS_CURVE = [(-0.10, 100.0), (0.10, 0.0)]
PE_CURVE = [(15.0, 100.0), (25.0, 60.0), (40.0, 20.0), (80.0, 0.0)]
PB_CURVE = [(1.5, 100.0), (3.0, 60.0), (6.0, 20.0), (12.0, 0.0)]


def debt_to_equity_band(value: float | None) -> float | None:
    if not is_present(value):
        return None
    if value < 0.5:
        return 100.0
    if value < 1:
        return 80.0
    if value < 2:
        return 60.0
    return 30.0


def altman_band(z: float | None) -> float | None:
    if not is_present(z):
        return None
    if z < 0:
        return 0.0
    return interpolate(z, ALTMAN_CURVE)


def _positive_multiple(value: float | None, curve) -> float | None:
    """Valuation multiples: non-positive (loss-making) maps to 0."""
    if not is_present(value):
        return None
    if value <= 0:
        return 0.0
    return interpolate(value, curve)


def profitability(m: NormalizedMetrics, precision: int = 2) -> float | None:
    components = {
        "roe": scale_linear(m.roe, 0, 25),
        "roce": scale_linear(m.roce, 0, 25),
        "operating_margin": scale_linear(m.operating_margin, 0, 25),
        "net_margin": scale_linear(m.net_margin, 0, 20),
    }
    return weighted_score(components, PROFITABILITY_WEIGHTS, precision)


def financial_strength(
    m: NormalizedMetrics,
    piotroski_score: int | None,
    altman_z: float | None,
    precision: int = 2,
) -> float | None:
    piotroski_pct = None
    if piotroski_score is not None:
        piotroski_pct = piotroski_score / 9 * 100
    components = {
        "piotroski": piotroski_pct,
        "altman_z": altman_band(altman_z),
        "debt_to_equity": debt_to_equity_band(m.debt_to_equity),
        "interest_coverage": interpolate(m.interest_coverage, INTEREST_COVERAGE_CURVE),
        "promoter_pledge": interpolate(m.promoter_pledged, PLEDGE_CURVE),
    }
    return weighted_score(components, FINANCIAL_STRENGTH_WEIGHTS, precision)


def accruals_ratio(m: NormalizedMetrics) -> float | None:
    if m.net_income is None or m.operating_cash_flow is None:
        return None
    return safe_ratio(m.net_income - m.operating_cash_flow, m.total_assets)


def earnings_quality(m: NormalizedMetrics, precision: int = 2) -> float | None:
    ocf_to_ni = None
    if m.net_income is not None and m.net_income > 0:
        ocf_to_ni = safe_ratio(m.operating_cash_flow, m.net_income)
    components = {
        "ocf_to_net_income": scale_linear(ocf_to_ni, 0, 1.5),
        "fcf_yield": scale_linear(m.fcf_yield, 0, 10),
        "accruals": interpolate(accruals_ratio(m), ACCRUALS_CURVE),
    }
    return weighted_score(components, EARNINGS_QUALITY_WEIGHTS, precision)


def growth(m: NormalizedMetrics, precision: int = 2) -> float | None:
    components = {
        "revenue_growth": scale_linear(m.revenue_growth_yoy, -10, 30),
        "eps_growth": scale_linear(m.eps_growth_yoy, -20, 40),
        "margin_expansion": scale_linear(m.margin_expansion, -5, 5),
    }
    return weighted_score(components, GROWTH_WEIGHTS, precision)


def valuation(m: NormalizedMetrics, precision: int = 2) -> float | None:
    components = {
        "pe": _positive_multiple(m.pe_ratio, PE_CURVE),
        "pb": _positive_multiple(m.pb_ratio, PB_CURVE),
        "earnings_yield": scale_linear(m.earnings_yield, 0, 10),
    }
    return weighted_score(components, VALUATION_WEIGHTS, precision)


def overall(pillar_scores: dict[str, float | None], precision: int = 2) -> float | None:
    return weighted_score(pillar_scores, OVERALL_WEIGHTS, precision)
