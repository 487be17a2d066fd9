import asyncio
import logging
import re
from datetime import date, datetime
from typing import Any, Optional

import httpx

from fundscope.core.config import settings
from fundscope.services.nav.base import NavHistoryProvider, SchemeMatch, SchemeResolver

logger = logging.getLogger(__name__)

_NOISE_PATTERNS = [
    re.compile(r"\s*-\s*Direct\s*(Plan)?", re.IGNORECASE),
    re.compile(r"\s*-\s*Regular\s*(Plan)?", re.IGNORECASE),
    re.compile(r"\s*-\s*Growth\s*(Option)?", re.IGNORECASE),
    re.compile(r"\s*-\s*IDCW\s*(Option)?", re.IGNORECASE),
    re.compile(r"\s*-\s*Dividend\s*(Option)?", re.IGNORECASE),
    re.compile(r"\s*Fund$", re.IGNORECASE),
]
_DIRECT_PLAN = re.compile(r"direct\s*plan", re.IGNORECASE)
_DIRECT = re.compile(r"direct", re.IGNORECASE)
_GROWTH = re.compile(r"growth", re.IGNORECASE)
_PAYOUT = re.compile(r"idcw|dividend", re.IGNORECASE)


def clean_fund_name(fund_name: str) -> str:
    """Strip plan/option suffixes that hurt mfapi.in search recall."""
    cleaned = fund_name
    for pattern in _NOISE_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    return re.sub(r"\s+", " ", cleaned).strip()


def pick_best_scheme(results: list[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Direct Plan + Growth > Growth > Direct > first result."""
    if not results:
        return None

    def name(row: dict[str, Any]) -> str:
        return str(row.get("schemeName") or "")

    preferences = (
        lambda n: bool(_DIRECT_PLAN.search(n) and _GROWTH.search(n)),
        lambda n: bool(_GROWTH.search(n)),
        lambda n: bool(_DIRECT.search(n)),
    )
    for prefers in preferences:
        for row in results:
            n = name(row)
            if prefers(n) and not _PAYOUT.search(n):
                return row
    return results[0]


def parse_nav_date(value: str) -> date:
    return datetime.strptime(value, "%d-%m-%Y").date()


class MfapiClient(SchemeResolver, NavHistoryProvider):
    """mfapi.in scheme search and NAV history."""

    def __init__(
        self,
        base_url: str | None = None,
        request_delay_sec: float | None = None,
        max_retries: int | None = None,
        backoff_sec: float = 1.0,
        timeout_sec: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.MFAPI_BASE_URL).rstrip("/")
        self.request_delay_sec = (
            settings.MFAPI_REQUEST_DELAY_SECONDS if request_delay_sec is None else request_delay_sec
        )
        self.max_retries = settings.MFAPI_MAX_RETRIES if max_retries is None else max_retries
        self.backoff_sec = backoff_sec
        self.timeout_sec = settings.MFAPI_TIMEOUT_SECONDS if timeout_sec is None else timeout_sec
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "MfapiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def resolve(self, fund_name: str, fund_house: Optional[str] = None) -> Optional[SchemeMatch]:
        for query in self._search_queries(fund_name, fund_house):
            results = await self.search(query)
            best = pick_best_scheme(results)
            if best is not None:
                return SchemeMatch(
                    scheme_code=int(best["schemeCode"]),
                    scheme_name=str(best.get("schemeName") or ""),
                )
        return None

    async def search(self, query: str) -> list[dict[str, Any]]:
        data = await self._get_json("/search", params={"q": query})
        return data if isinstance(data, list) else []

    async def fetch_nav_history(self, scheme_code: int) -> list[tuple[date, float]]:
        data = await self._get_json(f"/{scheme_code}")
        entries = data.get("data") or [] if isinstance(data, dict) else []

        history = []
        for entry in entries:
            try:
                history.append((parse_nav_date(entry["date"]), float(entry["nav"])))
            except (KeyError, TypeError, ValueError):
                continue
        return history

    def _search_queries(self, fund_name: str, fund_house: Optional[str]) -> list[str]:
        cleaned = clean_fund_name(fund_name)
        queries = [cleaned]

        if fund_house:
            key_words = re.sub(re.escape(fund_house), "", cleaned, flags=re.IGNORECASE).strip()
            if len(key_words) > 3:
                queries.append(f"{fund_house} {key_words}")

        words = " ".join([w for w in cleaned.split(" ") if len(w) > 2][:4])
        if words != cleaned and len(words) > 5:
            queries.append(words)

        unique: list[str] = []
        for query in queries:
            if query and query not in unique:
                unique.append(query)
        return unique

    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        client = self._ensure_client()
        url = f"{self.base_url}{path}"
        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await client.get(url, params=params)
                resp.raise_for_status()
                return resp.json()
            except (httpx.HTTPError, ValueError) as exc:
                if attempt >= self.max_retries:
                    logger.warning("mfapi request failed for %s: %s", path, exc)
                    raise
                await asyncio.sleep(self.backoff_sec * (2 ** (attempt - 1)))
            finally:
                if self.request_delay_sec > 0:
                    await asyncio.sleep(self.request_delay_sec)
        return None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_sec)
        return self._client
