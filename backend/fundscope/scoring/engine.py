"""
Score one security end to end: screens, pillars, overall and (optionally)
the legacy v1 shape.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass

from fundscope.core.config import settings
from fundscope.scoring import calculators, pillars
from fundscope.scoring.composite import is_present, safe_ratio, scale_linear, weighted_score
from fundscope.scoring.weights import (
    FINANCIAL_HEALTH_WEIGHTS,
    LEGACY_EARNINGS_QUALITY_WEIGHTS,
    LEGACY_OVERALL_WEIGHTS,
    MANAGEMENT_QUALITY_WEIGHTS,
)
from fundscope.services.fundamentals.normalizer import NormalizedMetrics


@dataclass
class ScoreCard:
    piotroski_score: int | None = None
    piotroski_tests_available: int = 0
    altman_z_score: float | None = None
    magic_formula_score: float | None = None
    canslim_score: float | None = None
    profitability_score: float | None = None
    financial_strength_score: float | None = None
    earnings_quality_score: float | None = None
    growth_score: float | None = None
    valuation_score: float | None = None
    overall_quality_score: float | None = None
    revenue_growth_yoy: float | None = None
    eps_growth_yoy: float | None = None
    margin_expansion: float | None = None
    financial_health_score: float | None = None
    management_quality_score: float | None = None
    legacy_earnings_quality_score: float | None = None
    legacy_overall_score: float | None = None
    score_schema_version: str = "v2"

    def to_dict(self) -> dict:
        return asdict(self)


class ScoringEngine:
    """Pure scoring over normalized metrics."""

    def __init__(
        self,
        precision: int | None = None,
        include_legacy: bool | None = None,
        schema_version: str | None = None,
    ):
        self.precision = settings.SCORE_PRECISION if precision is None else precision
        self.include_legacy = settings.SCORE_INCLUDE_LEGACY if include_legacy is None else include_legacy
        self.schema_version = schema_version or settings.SCORE_SCHEMA_VERSION

    def score(self, m: NormalizedMetrics) -> ScoreCard:
        p = self.precision
        f_score = calculators.piotroski(m)
        # No evaluable test means no F-score, not a score of 0
        piotroski_input = f_score.score if f_score.tests_available else None
        z = calculators.altman_z(m, p)

        pillar_scores = {
            "profitability": pillars.profitability(m, p),
            "financial_strength": pillars.financial_strength(m, piotroski_input, z, p),
            "earnings_quality": pillars.earnings_quality(m, p),
            "growth": pillars.growth(m, p),
            "valuation": pillars.valuation(m, p),
        }

        card = ScoreCard(
            piotroski_score=piotroski_input,
            piotroski_tests_available=f_score.tests_available,
            altman_z_score=z,
            magic_formula_score=calculators.magic_formula(m, p),
            canslim_score=calculators.canslim(m, p),
            profitability_score=pillar_scores["profitability"],
            financial_strength_score=pillar_scores["financial_strength"],
            earnings_quality_score=pillar_scores["earnings_quality"],
            growth_score=pillar_scores["growth"],
            valuation_score=pillar_scores["valuation"],
            overall_quality_score=pillars.overall(pillar_scores, p),
            revenue_growth_yoy=_round(m.revenue_growth_yoy, p),
            eps_growth_yoy=_round(m.eps_growth_yoy, p),
            margin_expansion=_round(m.margin_expansion, p),
            score_schema_version=self.schema_version,
        )
        if self.include_legacy:
            self._apply_legacy(card, m)
        return card

    def _apply_legacy(self, card: ScoreCard, m: NormalizedMetrics) -> None:
        p = self.precision
        cash_flow = None
        if is_present(m.operating_cash_flow):
            cash_flow = 100.0 if m.operating_cash_flow > 0 else 0.0

        card.financial_health_score = weighted_score(
            {
                "debt_to_equity": pillars.debt_to_equity_band(m.debt_to_equity),
                "current_ratio": calculators.current_ratio_band(m.current_ratio),
                "altman_z": pillars.altman_band(card.altman_z_score),
                "cash_flow": cash_flow,
            },
            FINANCIAL_HEALTH_WEIGHTS,
            p,
        )

        card.management_quality_score = weighted_score(
            {
                "roe": scale_linear(m.roe, 0, 25),
                "roa": scale_linear(m.roa, 0, 15),
                "operating_margin": scale_linear(m.operating_margin, 0, 25),
            },
            MANAGEMENT_QUALITY_WEIGHTS,
            p,
        )

        ocf_to_ni = None
        if m.net_income is not None and m.net_income > 0:
            ocf_to_ni = safe_ratio(m.operating_cash_flow, m.net_income)
        card.legacy_earnings_quality_score = weighted_score(
            {
                "ocf_to_net_income": scale_linear(ocf_to_ni, 0, 1.5),
                "net_margin": scale_linear(m.net_margin, 0, 20),
                "gross_margin": scale_linear(m.gross_margin, 0, 50),
            },
            LEGACY_EARNINGS_QUALITY_WEIGHTS,
            p,
        )

        piotroski_pct = None
        if card.piotroski_tests_available:
            piotroski_pct = card.piotroski_score / 9 * 100
        card.legacy_overall_score = weighted_score(
            {
                "piotroski": piotroski_pct,
                "magic_formula": card.magic_formula_score,
                "canslim": card.canslim_score,
            },
            LEGACY_OVERALL_WEIGHTS,
            p,
        )


def _round(value: float | None, precision: int) -> float | None:
    return round(value, precision) if is_present(value) else None


def score_security(m: NormalizedMetrics, include_legacy: bool | None = None) -> ScoreCard:
    return ScoringEngine(include_legacy=include_legacy).score(m)
