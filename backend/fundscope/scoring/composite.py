"""
Weighted-average primitive shared by every score in the package.

A score is ``sum(component * weight) / sum(weight of present components)``.
Components that are missing (``None``) or not finite drop out and the
remaining weights are renormalized, so missing data lowers resolution but
never drags a score towards zero.
"""
from __future__ import annotations

import math
from typing import Mapping, Sequence

import numpy as np


def is_present(value: float | None) -> bool:
    """True when ``value`` is a usable finite number."""
    if value is None:
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def weighted_score(
    components: Mapping[str, float | None],
    weights: Mapping[str, float],
    precision: int | None = 2,
) -> float | None:
    """
    Renormalized weighted mean of ``components`` under ``weights``.

    Only keys present in ``weights`` are considered. Returns None when no
    weighted component is available.
    """
    numerator = 0.0
    denominator = 0.0
    for name, weight in weights.items():
        value = components.get(name)
        if not is_present(value) or weight <= 0:
            continue
        numerator += float(value) * weight
        denominator += weight

    if denominator == 0:
        return None

    score = numerator / denominator
    if precision is None:
        return score
    return round(score, precision)


def scale_linear(value: float | None, floor: float, ceiling: float) -> float | None:
    """Map ``value`` onto 0-100 between ``floor`` and ``ceiling``, clamped."""
    if not is_present(value):
        return None
    if ceiling == floor:
        return 100.0 if value >= ceiling else 0.0
    scaled = (float(value) - floor) / (ceiling - floor) * 100.0
    return float(min(100.0, max(0.0, scaled)))


def interpolate(value: float | None, points: Sequence[tuple[float, float]]) -> float | None:
    """
    Piecewise-linear curve through ``points`` (x ascending), flat beyond the ends.
    """
    if not is_present(value):
        return None
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return float(np.interp(float(value), xs, ys))


def safe_ratio(numerator: float | None, denominator: float | None) -> float | None:
    """``numerator / denominator`` or None on a missing or zero denominator."""
    if not is_present(numerator) or not is_present(denominator):
        return None
    if float(denominator) == 0:
        return None
    return float(numerator) / float(denominator)
