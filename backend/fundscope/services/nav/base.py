from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class SchemeMatch:
    scheme_code: int
    scheme_name: str


class SchemeResolver(ABC):
    """Resolves a fund's display name to a NAV provider scheme identifier."""

    @abstractmethod
    async def resolve(self, fund_name: str, fund_house: Optional[str] = None) -> Optional[SchemeMatch]:
        """Best matching scheme, or None when nothing matches."""
        raise NotImplementedError


class NavHistoryProvider(ABC):
    """Abstract base class for fund NAV history providers."""

    @abstractmethod
    async def fetch_nav_history(self, scheme_code: int) -> list[tuple[date, float]]:
        """(date, nav) pairs for a scheme, in provider order."""
        raise NotImplementedError
