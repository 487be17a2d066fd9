from typing import Dict, Type

from fundscope.services.nav.base import NavHistoryProvider, SchemeMatch, SchemeResolver
from fundscope.services.nav.mfapi_client import MfapiClient

PROVIDERS: Dict[str, Type[MfapiClient]] = {
    "mfapi": MfapiClient,
}


def get_nav_client(name: str = "mfapi") -> MfapiClient:
    """Factory for a client implementing both SchemeResolver and NavHistoryProvider."""
    provider_class = PROVIDERS.get(name)
    if not provider_class:
        raise ValueError(f"Unknown NAV provider: {name}")
    return provider_class()


__all__ = ["NavHistoryProvider", "SchemeMatch", "SchemeResolver", "MfapiClient", "get_nav_client"]
