"""Tests for the mfapi.in scheme resolver and NAV history client."""

from datetime import date

import httpx
import pytest

from fundscope.services.nav import MfapiClient, SchemeMatch, get_nav_client
from fundscope.services.nav.mfapi_client import clean_fund_name, parse_nav_date, pick_best_scheme


def _client(handler, **kwargs) -> MfapiClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MfapiClient(
        base_url="https://api.mfapi.in/mf",
        request_delay_sec=0,
        backoff_sec=0,
        client=http,
        **kwargs,
    )


# =============================================================================
# Name cleaning and scheme preference
# =============================================================================

class TestSchemeMatching:
    def test_clean_fund_name_strips_plan_and_option(self):
        assert clean_fund_name("Parag Parikh Flexi Cap Fund - Direct Plan - Growth") == "Parag Parikh Flexi Cap"
        assert clean_fund_name("HDFC Mid-Cap Opportunities Fund - Regular Plan - IDCW") == "HDFC Mid-Cap Opportunities"

    def test_prefers_direct_growth(self):
        results = [
            {"schemeCode": 1, "schemeName": "Axis Bluechip Fund - Regular Plan - IDCW"},
            {"schemeCode": 2, "schemeName": "Axis Bluechip Fund - Regular Plan - Growth"},
            {"schemeCode": 3, "schemeName": "Axis Bluechip Fund - Direct Plan - Growth"},
        ]
        assert pick_best_scheme(results)["schemeCode"] == 3

    def test_growth_beats_direct_payout(self):
        results = [
            {"schemeCode": 1, "schemeName": "Axis Bluechip Fund - Direct Plan - IDCW"},
            {"schemeCode": 2, "schemeName": "Axis Bluechip Fund - Regular Plan - Growth"},
        ]
        assert pick_best_scheme(results)["schemeCode"] == 2

    def test_falls_back_to_first(self):
        results = [
            {"schemeCode": 7, "schemeName": "Axis Bluechip Fund - Dividend"},
            {"schemeCode": 8, "schemeName": "Axis Bluechip Fund - IDCW"},
        ]
        assert pick_best_scheme(results)["schemeCode"] == 7
        assert pick_best_scheme([]) is None

    def test_nav_dates_are_day_first(self):
        assert parse_nav_date("03-01-2024") == date(2024, 1, 3)


# =============================================================================
# HTTP behaviour
# =============================================================================

class TestMfapiClient:
    async def test_resolve_uses_search_endpoint(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.url.path, request.url.params.get("q")))
            return httpx.Response(
                200,
                json=[
                    {"schemeCode": 122639, "schemeName": "Parag Parikh Flexi Cap Fund - Direct Plan - Growth"},
                    {"schemeCode": 122640, "schemeName": "Parag Parikh Flexi Cap Fund - Regular Plan - Growth"},
                ],
            )

        client = _client(handler)
        match = await client.resolve("Parag Parikh Flexi Cap Fund - Direct Plan - Growth")
        assert match == SchemeMatch(122639, "Parag Parikh Flexi Cap Fund - Direct Plan - Growth")
        assert seen == [("/mf/search", "Parag Parikh Flexi Cap")]

    async def test_resolve_tries_fund_house_query_then_gives_up(self):
        queries = []

        def handler(request: httpx.Request) -> httpx.Response:
            queries.append(request.url.params.get("q"))
            return httpx.Response(200, json=[])

        client = _client(handler)
        assert await client.resolve("Parag Parikh Flexi Cap Fund", fund_house="PPFAS") is None
        assert queries == ["Parag Parikh Flexi Cap", "PPFAS Parag Parikh Flexi Cap"]

    async def test_fetch_nav_history_skips_bad_entries(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/mf/122639"
            return httpx.Response(
                200,
                json={
                    "meta": {"scheme_code": 122639},
                    "data": [
                        {"date": "17-10-2026", "nav": "85.12300"},
                        {"date": "2026-10-16", "nav": "84.00000"},
                        {"date": "15-10-2026", "nav": "n/a"},
                        {"date": "14-10-2026", "nav": "83.50000"},
                    ],
                },
            )

        history = await _client(handler).fetch_nav_history(122639)
        assert history == [(date(2026, 10, 17), 85.123), (date(2026, 10, 14), 83.5)]

    async def test_retries_then_raises(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            return httpx.Response(503)

        client = _client(handler, max_retries=3)
        with pytest.raises(httpx.HTTPStatusError):
            await client.fetch_nav_history(1)
        assert len(calls) == 3

    async def test_recovers_after_transient_failure(self):
        attempts = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            attempts["count"] += 1
            if attempts["count"] == 1:
                return httpx.Response(502)
            return httpx.Response(200, json=[{"schemeCode": 5, "schemeName": "Tiny Fund - Growth"}])

        results = await _client(handler, max_retries=2).search("Tiny")
        assert results[0]["schemeCode"] == 5
        assert attempts["count"] == 2


def test_unknown_provider_rejected():
    with pytest.raises(ValueError):
        get_nav_client("valueresearch")
