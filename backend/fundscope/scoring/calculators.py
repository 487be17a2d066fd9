"""
Classic quality screens: Piotroski, Altman Z, Magic Formula and CANSLIM.

Every function is pure over ``NormalizedMetrics`` and returns None (or a
partial score) on missing inputs rather than raising.
"""
from __future__ import annotations

from dataclasses import dataclass

from fundscope.scoring.composite import is_present, safe_ratio, scale_linear, weighted_score
from fundscope.scoring.weights import CANSLIM_WEIGHTS, MAGIC_FORMULA_WEIGHTS
from fundscope.services.fundamentals.normalizer import NormalizedMetrics, CRORE

ALTMAN_X4_CAP = 10.0


@dataclass(frozen=True)
class PiotroskiResult:
    score: int
    tests_available: int


def _test(value: float | None, passed) -> tuple[int, int]:
    """(point, available) for one binary test; missing counts as failed."""
    if not is_present(value):
        return 0, 0
    return (1 if passed(value) else 0), 1


def piotroski(m: NormalizedMetrics) -> PiotroskiResult:
    """
    Nine binary health tests. A missing metric scores no point; the number
    of tests that had data is reported alongside.
    """
    ocf_beats_income = None
    if m.operating_cash_flow is not None and m.net_income is not None:
        ocf_beats_income = m.operating_cash_flow - m.net_income

    tests = [
        _test(m.net_income, lambda v: v > 0),
        _test(m.operating_cash_flow, lambda v: v > 0),
        _test(m.roa, lambda v: v > 0),
        _test(ocf_beats_income, lambda v: v > 0),
        _test(m.debt_to_equity, lambda v: v < 1),
        _test(m.current_ratio, lambda v: v > 1.5),
        _test(m.gross_margin, lambda v: v > 30),
        _test(m.operating_margin, lambda v: v > 15),
        _test(m.net_margin, lambda v: v > 10),
    ]
    return PiotroskiResult(
        score=sum(point for point, _ in tests),
        tests_available=sum(available for _, available in tests),
    )


def altman_z(m: NormalizedMetrics, precision: int = 2) -> float | None:
    """
    Z = 1.2 X1 + 1.4 X2 + 3.3 X3 + 0.6 X4 + 1.0 X5 over total assets.

    Equity stands in for retained earnings in X2. X4 (market cap over total
    liabilities) is capped at 10. Unavailable terms contribute nothing.
    """
    if not is_present(m.total_assets) or m.total_assets == 0:
        return None

    ta = m.total_assets
    x1 = safe_ratio(m.working_capital, ta)
    x2 = safe_ratio(m.shareholders_equity, ta)
    x3 = safe_ratio(m.operating_income, ta)
    x4 = None
    if m.total_liabilities is not None and m.total_liabilities > 0:
        x4 = safe_ratio(m.market_cap, m.total_liabilities)
        if x4 is not None:
            x4 = min(x4, ALTMAN_X4_CAP)
    x5 = safe_ratio(m.revenue, ta)

    z = 0.0
    for coefficient, term in ((1.2, x1), (1.4, x2), (3.3, x3), (0.6, x4), (1.0, x5)):
        if term is not None:
            z += coefficient * term
    return round(z, precision)


def magic_formula(m: NormalizedMetrics, precision: int = 2) -> float | None:
    """Earnings yield (20% ceiling) blended 50/50 with ROCE (30% ceiling)."""
    components = {
        "earnings_yield": _capped_positive(m.earnings_yield, 20.0),
        "roce": _capped_positive(m.roce, 30.0),
    }
    return weighted_score(components, MAGIC_FORMULA_WEIGHTS, precision)


def market_cap_tier(market_cap: float | None) -> float | None:
    if not is_present(market_cap):
        return None
    crores = market_cap / CRORE
    if crores > 10_000:
        return 100.0
    if crores > 1_000:
        return 70.0
    return 40.0


def current_ratio_band(current_ratio: float | None) -> float | None:
    if not is_present(current_ratio):
        return None
    if current_ratio > 2:
        return 100.0
    if current_ratio > 1.5:
        return 80.0
    if current_ratio > 1:
        return 60.0
    return 30.0


def canslim(m: NormalizedMetrics, precision: int = 2) -> float | None:
    components = {
        "current_earnings": _capped_positive(m.net_margin, 15.0),
        "annual_earnings": _capped_positive(m.roe, 25.0),
        "new_highs": _capped_positive(m.operating_margin, 20.0),
        "supply_demand": market_cap_tier(m.market_cap),
        "leader": _capped_positive(m.roce, 25.0),
        "market_direction": current_ratio_band(m.current_ratio),
    }
    return weighted_score(components, CANSLIM_WEIGHTS, precision)


def _capped_positive(value: float | None, ceiling: float) -> float | None:
    # value / ceiling * 100, clamped to 0-100
    return scale_linear(value, 0.0, ceiling)
