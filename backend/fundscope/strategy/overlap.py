"""
Portfolio overlap analysis across 2-5 funds.

Provides:
- Holdings common to every selected fund
- Pairwise overlap (shared count over the smaller portfolio) and pair-only stocks
- Holdings unique to a single fund
- Per-fund overlap and a diversification score
"""

from dataclasses import asdict, dataclass, field
from itertools import combinations
from typing import Dict, List, Sequence

MIN_FUNDS = 2
MAX_FUNDS = 5


@dataclass
class FundPortfolio:
    """Matched equity holdings of one fund: security key -> percent of NAV."""
    name: str
    holdings: Dict[str, float]


@dataclass
class CommonHolding:
    security: str
    weights: Dict[str, float]
    total_weight: float


@dataclass
class PairOverlap:
    fund_a: str
    fund_b: str
    common_count: int
    overlap_pct: float
    exclusive_holdings: List[str] = field(default_factory=list)


@dataclass
class UniqueHolding:
    security: str
    weight: float


@dataclass
class FundOverlapSummary:
    fund: str
    holdings_count: int
    overlap_pct: float
    common_weight: float


@dataclass
class OverlapResult:
    funds: List[str]
    common_holdings: List[CommonHolding]
    pairwise: List[PairOverlap]
    unique_holdings: Dict[str, List[UniqueHolding]]
    per_fund: List[FundOverlapSummary]
    diversification_score: int
    matrix: Dict[str, Dict[str, float]]

    def to_dict(self) -> dict:
        return asdict(self)


def _pct(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 1)


def analyze_overlap(funds: Sequence[FundPortfolio]) -> OverlapResult:
    """
    Compare the holdings of 2-5 funds.

    Raises:
        ValueError: fewer than 2 or more than 5 funds, or a fund listed twice
    """
    if not MIN_FUNDS <= len(funds) <= MAX_FUNDS:
        raise ValueError(f"Select between {MIN_FUNDS} and {MAX_FUNDS} funds, got {len(funds)}")
    names = [f.name for f in funds]
    if len(set(names)) != len(names):
        raise ValueError("Each fund can only be selected once")

    sets = {f.name: set(f.holdings) for f in funds}
    common = set.intersection(*sets.values())

    common_holdings = [
        CommonHolding(
            security=security,
            weights={f.name: f.holdings[security] for f in funds},
            total_weight=round(sum(f.holdings[security] for f in funds), 2),
        )
        for security in common
    ]
    common_holdings.sort(key=lambda h: (-h.total_weight, h.security))

    pairwise = []
    matrix: Dict[str, Dict[str, float]] = {name: {name: 100.0} for name in names}
    for a, b in combinations(funds, 2):
        shared = sets[a.name] & sets[b.name]
        pct = _pct(len(shared), min(len(sets[a.name]), len(sets[b.name])))
        pairwise.append(
            PairOverlap(
                fund_a=a.name,
                fund_b=b.name,
                common_count=len(shared),
                overlap_pct=pct,
                exclusive_holdings=sorted(shared - common),
            )
        )
        matrix[a.name][b.name] = pct
        matrix[b.name][a.name] = pct

    held_by: Dict[str, int] = {}
    for holdings in sets.values():
        for security in holdings:
            held_by[security] = held_by.get(security, 0) + 1

    unique_holdings = {}
    for f in funds:
        unique = [
            UniqueHolding(security=s, weight=w)
            for s, w in f.holdings.items()
            if held_by[s] == 1
        ]
        unique.sort(key=lambda h: (-h.weight, h.security))
        unique_holdings[f.name] = unique

    per_fund = [
        FundOverlapSummary(
            fund=f.name,
            holdings_count=len(f.holdings),
            overlap_pct=_pct(len(common), len(f.holdings)),
            common_weight=round(sum(f.holdings[s] for s in common), 2),
        )
        for f in funds
    ]
    mean_overlap = sum(s.overlap_pct for s in per_fund) / len(per_fund)

    return OverlapResult(
        funds=names,
        common_holdings=common_holdings,
        pairwise=pairwise,
        unique_holdings=unique_holdings,
        per_fund=per_fund,
        diversification_score=int(round(100 - mean_overlap)),
        matrix=matrix,
    )
