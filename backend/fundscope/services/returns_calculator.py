"""
Returns Calculator Service.

Multi-horizon CAGR from a (date, price) series with nearest-date matching.
Used for both equity closes and fund NAVs.
"""
from datetime import date, datetime
from typing import Dict, Iterable, Optional, Sequence, Tuple, Union

import pandas as pd

from fundscope.core.config import settings
from fundscope.services.batch import to_float

PriceSeries = Union[pd.Series, Iterable[Tuple[date, float]]]


class ReturnsCalculator:
    """
    Annualized returns over calendar-year horizons.

    For a target date T the price used is the most recent entry dated on or
    before T, and only if it is no more than ``tolerance_days`` older than T.
    """

    def __init__(self, tolerance_days: Optional[int] = None, precision: int = 2):
        self.tolerance_days = settings.CAGR_TOLERANCE_DAYS if tolerance_days is None else tolerance_days
        self.precision = precision

    @staticmethod
    def to_series(prices: PriceSeries) -> pd.Series:
        """Date-indexed float series, oldest first, non-positive/NaN dropped."""
        if isinstance(prices, pd.Series):
            series = prices.copy()
        else:
            rows = list(prices)
            if not rows:
                return pd.Series(dtype=float)
            dates, values = zip(*rows)
            series = pd.Series(list(values), index=list(dates))

        if series.empty:
            return pd.Series(dtype=float)

        series.index = pd.to_datetime(series.index)
        series = series.map(to_float).astype(float)
        series = series[series.notna() & (series > 0)]
        series = series[~series.index.duplicated(keep="last")]
        return series.sort_index()

    def price_on_or_before(
        self,
        prices: PriceSeries,
        target: date,
        tolerance_days: Optional[int] = None,
    ) -> Optional[float]:
        """Most recent price dated <= target, within tolerance, else None."""
        tolerance = self.tolerance_days if tolerance_days is None else tolerance_days
        series = prices if self._is_prepared(prices) else self.to_series(prices)
        if series.empty:
            return None

        target_ts = pd.Timestamp(target)
        candidates = series.loc[:target_ts]
        if candidates.empty:
            return None

        matched_date = candidates.index[-1]
        if (target_ts - matched_date).days > tolerance:
            return None
        return float(candidates.iloc[-1])

    def compute_cagr(
        self,
        latest: Optional[float],
        past: Optional[float],
        years: float,
        precision: Optional[int] = None,
    ) -> Optional[float]:
        """((latest / past) ** (1 / years) - 1) * 100, rounded."""
        if latest is None or past is None or years is None:
            return None
        if latest <= 0 or past <= 0 or years <= 0:
            return None
        cagr = ((latest / past) ** (1.0 / years) - 1.0) * 100.0
        return round(cagr, self.precision if precision is None else precision)

    def horizon_cagrs(
        self,
        prices: PriceSeries,
        as_of: Optional[date] = None,
        horizons: Sequence[int] = None,
    ) -> Dict[int, Optional[float]]:
        """
        CAGR per horizon in years. Horizons are independent: one without a
        matching historical price stays None without affecting the others.

        Args:
            prices: (date, price) pairs or a date-indexed Series, any order
            as_of: anchor date for the lookbacks (defaults to newest entry)
            horizons: lookbacks in whole years
        """
        horizons = tuple(horizons or settings.CAGR_HORIZONS)
        series = self.to_series(prices)
        results: Dict[int, Optional[float]] = {years: None for years in horizons}
        if series.empty:
            return results

        anchor = as_of or series.index[-1].date()
        # End price sits at the anchor, not at the newest entry
        latest_price = self.price_on_or_before(series, anchor)

        for years in horizons:
            past = self.price_on_or_before(series, years_before(anchor, years))
            results[years] = self.compute_cagr(latest_price, past, years)
        return results

    @staticmethod
    def _is_prepared(prices: PriceSeries) -> bool:
        return (
            isinstance(prices, pd.Series)
            and isinstance(prices.index, pd.DatetimeIndex)
            and prices.index.is_monotonic_increasing
        )


def years_before(anchor: Union[date, datetime], years: int) -> date:
    """Same calendar day ``years`` earlier; Feb 29 falls back to Feb 28."""
    if isinstance(anchor, datetime):
        anchor = anchor.date()
    try:
        return anchor.replace(year=anchor.year - years)
    except ValueError:
        return anchor.replace(year=anchor.year - years, day=28)


# Singleton instance
returns_calculator = ReturnsCalculator()
