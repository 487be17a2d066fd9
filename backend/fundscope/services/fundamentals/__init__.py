from fundscope.services.fundamentals.normalizer import (
    NormalizedMetrics,
    normalize_fundamentals,
    to_number,
)

__all__ = ["NormalizedMetrics", "normalize_fundamentals", "to_number"]
