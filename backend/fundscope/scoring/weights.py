"""
Declarative weight tables, one per score type.

Weights are relative; ``weighted_score`` renormalizes over the components
that are present, so a table does not need to sum to exactly 1.
"""

MAGIC_FORMULA_WEIGHTS = {
    "earnings_yield": 0.50,
    "roce": 0.50,
}

CANSLIM_WEIGHTS = {
    "current_earnings": 0.20,   # C: net margin
    "annual_earnings": 0.20,    # A: ROE
    "new_highs": 0.20,          # N: operating margin
    "supply_demand": 0.15,      # S: market-cap tier
    "leader": 0.15,             # L: ROCE
    "market_direction": 0.10,   # M: current ratio
}

PROFITABILITY_WEIGHTS = {
    "roe": 0.30,
    "roce": 0.30,
    "operating_margin": 0.20,
    "net_margin": 0.20,
}

FINANCIAL_STRENGTH_WEIGHTS = {
    "piotroski": 0.30,
    "altman_z": 0.25,
    "debt_to_equity": 0.20,
    "interest_coverage": 0.15,
    "promoter_pledge": 0.10,
}

EARNINGS_QUALITY_WEIGHTS = {
    "ocf_to_net_income": 0.35,
    "fcf_yield": 0.35,
    "accruals": 0.30,
}

GROWTH_WEIGHTS = {
    "revenue_growth": 0.40,
    "eps_growth": 0.40,
    "margin_expansion": 0.20,
}

VALUATION_WEIGHTS = {
    "pe": 0.40,
    "pb": 0.30,
    "earnings_yield": 0.30,
}

OVERALL_WEIGHTS = {
    "profitability": 0.25,
    "financial_strength": 0.20,
    "earnings_quality": 0.20,
    "growth": 0.15,
    "valuation": 0.20,
}

# Legacy (v1) family
FINANCIAL_HEALTH_WEIGHTS = {
    "debt_to_equity": 0.30,
    "current_ratio": 0.25,
    "altman_z": 0.25,
    "cash_flow": 0.20,
}

MANAGEMENT_QUALITY_WEIGHTS = {
    "roe": 0.40,
    "roa": 0.30,
    "operating_margin": 0.30,
}

LEGACY_EARNINGS_QUALITY_WEIGHTS = {
    "ocf_to_net_income": 0.40,
    "net_margin": 0.30,
    "gross_margin": 0.30,
}

LEGACY_OVERALL_WEIGHTS = {
    "piotroski": 1.0,
    "magic_formula": 1.0,
    "canslim": 1.0,
}
