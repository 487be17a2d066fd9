"""
Map raw fundamentals onto one canonical metric set.

Providers disagree on field names and encodings (percent vs. fraction
fields, crores vs. rupees, strings vs. numbers). Each canonical metric is
read from the first field of its fallback chain that holds a usable number,
and derived from base statement lines only when no direct field exists.
Missing metrics stay None.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, Mapping

from fundscope.scoring.composite import safe_ratio

CRORE = 10_000_000


@dataclass(frozen=True)
class NormalizedMetrics:
    # Statement lines
    revenue: float | None = None
    gross_profit: float | None = None
    operating_income: float | None = None
    net_income: float | None = None
    eps: float | None = None
    total_assets: float | None = None
    total_liabilities: float | None = None
    current_assets: float | None = None
    current_liabilities: float | None = None
    shareholders_equity: float | None = None
    total_debt: float | None = None
    interest_expense: float | None = None
    operating_cash_flow: float | None = None
    capital_expenditure: float | None = None
    free_cash_flow: float | None = None
    market_cap: float | None = None

    # Ratios (percent unless noted)
    roe: float | None = None
    roa: float | None = None
    roce: float | None = None
    gross_margin: float | None = None
    operating_margin: float | None = None
    net_margin: float | None = None
    debt_to_equity: float | None = None       # ratio
    current_ratio: float | None = None        # ratio
    interest_coverage: float | None = None    # times
    pe_ratio: float | None = None
    pb_ratio: float | None = None
    earnings_yield: float | None = None
    fcf_yield: float | None = None

    # Growth deltas
    revenue_growth_yoy: float | None = None
    eps_growth_yoy: float | None = None
    margin_expansion: float | None = None     # percentage points

    # Shareholding
    promoter_holding: float | None = None
    promoter_pledged: float | None = None
    fii_holding: float | None = None
    dii_holding: float | None = None

    @property
    def working_capital(self) -> float | None:
        if self.current_assets is None or self.current_liabilities is None:
            return None
        return self.current_assets - self.current_liabilities

    def available_count(self) -> int:
        return sum(1 for f in fields(self) if getattr(self, f.name) is not None)


def to_number(value: Any) -> float | None:
    """Parse int/float/Decimal/str; anything unusable becomes None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _first(raw: Mapping[str, Any], *keys: str) -> float | None:
    for key in keys:
        number = to_number(raw.get(key))
        if number is not None:
            return number
    return None


def _pct(numerator: float | None, denominator: float | None) -> float | None:
    ratio = safe_ratio(numerator, denominator)
    return None if ratio is None else ratio * 100.0


def _positive(value: float | None) -> float | None:
    return value if value is not None and value > 0 else None


def _growth(current: float | None, prior: float | None) -> float | None:
    if current is None or prior is None or prior == 0:
        return None
    return (current - prior) / abs(prior) * 100.0


def normalize_fundamentals(
    raw: Mapping[str, Any] | None,
    market_cap: float | None = None,
    shareholding: Mapping[str, Any] | None = None,
) -> NormalizedMetrics:
    """
    Build ``NormalizedMetrics`` from a raw provider payload.

    Args:
        raw: provider fields for one security and period
        market_cap: authoritative market cap in rupees (overrides the payload)
        shareholding: promoter/FII/DII holding and pledge percentages
    """
    raw = raw or {}
    shareholding = shareholding or {}

    revenue = _first(raw, "revenue", "total_revenue", "sales")
    gross_profit = _first(raw, "gross_profit")
    operating_income = _first(raw, "operating_income", "ebit")
    net_income = _first(raw, "net_income", "net_profit")
    eps = _first(raw, "eps", "eps_diluted", "eps_basic")
    total_assets = _first(raw, "total_assets")
    current_assets = _first(raw, "current_assets", "total_current_assets")
    current_liabilities = _first(raw, "current_liabilities", "total_current_liabilities")
    total_debt = _first(raw, "total_debt")
    interest_expense = _first(raw, "interest_expense")
    operating_cash_flow = _first(raw, "operating_cash_flow", "cash_from_operations")
    capital_expenditure = _first(raw, "capital_expenditure", "capex")

    liabilities_direct = _first(raw, "total_liabilities")
    equity = _first(raw, "shareholders_equity", "total_stockholders_equity", "total_equity")
    if equity is None and total_assets is not None and liabilities_direct is not None:
        equity = total_assets - liabilities_direct
    total_liabilities = liabilities_direct
    if total_liabilities is None and total_assets is not None and equity is not None:
        total_liabilities = total_assets - equity

    positive_equity = _positive(equity)

    roe = _first(raw, "roe_pct", "roe", "roe_fmp")
    if roe is None:
        roe = _pct(net_income, positive_equity)

    roa = _first(raw, "roa_pct", "roa")
    if roa is None:
        roa = _pct(net_income, total_assets)

    roce = _first(raw, "roce_pct", "roce", "roce_fmp")
    if roce is None and total_assets is not None and current_liabilities is not None:
        roce = _pct(operating_income, total_assets - current_liabilities)

    gross_margin = _first(raw, "gross_margin")
    if gross_margin is None:
        gross_margin = _pct(gross_profit, revenue)
    operating_margin = _first(raw, "operating_margin")
    if operating_margin is None:
        operating_margin = _pct(operating_income, revenue)
    net_margin = _first(raw, "net_margin", "net_profit_margin")
    if net_margin is None:
        net_margin = _pct(net_income, revenue)

    debt_to_equity = _first(raw, "debt_to_equity")
    if debt_to_equity is None:
        debt_to_equity = safe_ratio(total_debt, equity)

    current_ratio = _first(raw, "current_ratio")
    if current_ratio is None:
        current_ratio = safe_ratio(current_assets, current_liabilities)

    interest_coverage = _first(raw, "interest_coverage")
    if interest_coverage is None:
        interest_coverage = safe_ratio(operating_income, interest_expense)

    mcap = to_number(market_cap)
    if mcap is None:
        mcap = _first(raw, "market_cap")
    if mcap is None:
        mcap_cr = _first(raw, "market_cap_cr")
        mcap = mcap_cr * CRORE if mcap_cr is not None else None

    pe_ratio = _first(raw, "pe_ratio", "pe_ttm", "pe")
    if pe_ratio is None:
        pe_ratio = safe_ratio(mcap, _positive(net_income))

    pb_ratio = _first(raw, "pb_ratio", "price_to_book")
    if pb_ratio is None:
        pb_ratio = safe_ratio(mcap, positive_equity)

    earnings_yield = None
    if pe_ratio is not None and pe_ratio > 0:
        earnings_yield = 100.0 / pe_ratio

    free_cash_flow = _first(raw, "free_cash_flow")
    if free_cash_flow is None and operating_cash_flow is not None and capital_expenditure is not None:
        free_cash_flow = operating_cash_flow - abs(capital_expenditure)

    fcf_yield = _first(raw, "fcf_yield_pct")
    if fcf_yield is None:
        fcf_yield = _pct(free_cash_flow, mcap)

    revenue_growth = _first(raw, "revenue_growth_yoy")
    if revenue_growth is None:
        revenue_growth = _growth(revenue, _first(raw, "prior_revenue"))

    eps_growth = _first(raw, "eps_growth_yoy")
    if eps_growth is None:
        eps_growth = _growth(eps, _first(raw, "prior_eps"))

    prior_margin = _first(raw, "prior_operating_margin")
    if prior_margin is None:
        prior_margin = _pct(_first(raw, "prior_operating_income"), _first(raw, "prior_revenue"))
    margin_expansion = None
    if operating_margin is not None and prior_margin is not None:
        margin_expansion = operating_margin - prior_margin

    return NormalizedMetrics(
        revenue=revenue,
        gross_profit=gross_profit,
        operating_income=operating_income,
        net_income=net_income,
        eps=eps,
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        current_assets=current_assets,
        current_liabilities=current_liabilities,
        shareholders_equity=equity,
        total_debt=total_debt,
        interest_expense=interest_expense,
        operating_cash_flow=operating_cash_flow,
        capital_expenditure=capital_expenditure,
        free_cash_flow=free_cash_flow,
        market_cap=mcap,
        roe=roe,
        roa=roa,
        roce=roce,
        gross_margin=gross_margin,
        operating_margin=operating_margin,
        net_margin=net_margin,
        debt_to_equity=debt_to_equity,
        current_ratio=current_ratio,
        interest_coverage=interest_coverage,
        pe_ratio=pe_ratio,
        pb_ratio=pb_ratio,
        earnings_yield=earnings_yield,
        fcf_yield=fcf_yield,
        revenue_growth_yoy=revenue_growth,
        eps_growth_yoy=eps_growth,
        margin_expansion=margin_expansion,
        promoter_holding=to_number(shareholding.get("promoter_holding")),
        promoter_pledged=to_number(shareholding.get("promoter_pledged")),
        fii_holding=to_number(shareholding.get("fii_holding")),
        dii_holding=to_number(shareholding.get("dii_holding")),
    )
