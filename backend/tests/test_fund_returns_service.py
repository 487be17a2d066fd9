"""Tests for the fund NAV CAGR refresh."""

from datetime import date, timedelta

from sqlalchemy import select

from fundscope.core.metrics import metrics
from fundscope.models import FundQualityScore
from fundscope.services.fund_returns_service import FundReturnsService
from fundscope.services.nav import SchemeMatch

LATEST = date(2026, 10, 19)


def weekly_history(points: int) -> list[tuple[date, float]]:
    """Newest NAV 121, every older point 100; newest first like mfapi.in."""
    return [(LATEST - timedelta(days=7 * k), 121.0 if k == 0 else 100.0) for k in range(points)]


class FakeNavClient:
    def __init__(self):
        self.resolved = []
        self.schemes = {"Alpha Fund": 101, "Gamma Fund": 103}
        self.histories = {101: weekly_history(60), 103: weekly_history(10)}
        self.closed = False

    async def resolve(self, fund_name, fund_house=None):
        self.resolved.append(fund_name)
        code = self.schemes.get(fund_name)
        return SchemeMatch(code, f"{fund_name} - Direct Plan - Growth") if code else None

    async def fetch_nav_history(self, scheme_code):
        if scheme_code not in self.histories:
            raise RuntimeError("upstream 500")
        return self.histories[scheme_code]

    async def aclose(self):
        self.closed = True


async def _seed(session_factory):
    async with session_factory() as session:
        for name, code in (("Alpha Fund", None), ("Beta Fund", None), ("Gamma Fund", None), ("Delta Fund", 104)):
            session.add(
                FundQualityScore(
                    fund_name=name,
                    fund_house="House",
                    total_holdings=10,
                    scored_holdings=10,
                    coverage_pct=100,
                    scheme_code=code,
                )
            )
        await session.commit()


class TestRefreshNavCagr:
    async def test_outcomes_are_tallied(self, session_factory):
        await _seed(session_factory)
        client = FakeNavClient()

        result = await FundReturnsService(session_factory, nav_client=client).refresh_nav_cagr()

        assert (result.processed, result.not_found, result.skipped, result.errors) == (1, 1, 1, 1)
        # Delta already carries a scheme code, so it is never searched
        assert client.resolved == ["Alpha Fund", "Beta Fund", "Gamma Fund"]
        assert client.closed is False

        events = [e.event_type for e in metrics.get_buffer()]
        assert events.count("unit_failed") == 1
        assert events[-1] == "job_completed"

    async def test_cagr_and_scheme_code_stored(self, session_factory):
        await _seed(session_factory)
        await FundReturnsService(session_factory, nav_client=FakeNavClient()).refresh_nav_cagr()

        async with session_factory() as session:
            funds = {f.fund_name: f for f in (await session.execute(select(FundQualityScore))).scalars().all()}

        alpha = funds["Alpha Fund"]
        assert alpha.scheme_code == 101
        assert float(alpha.nav_cagr_1y) == 21.0
        assert alpha.nav_cagr_3y is None
        assert funds["Beta Fund"].scheme_code is None
        assert funds["Gamma Fund"].nav_cagr_1y is None
        assert funds["Delta Fund"].scheme_code == 104

    async def test_cached_scheme_code_skips_search(self, session_factory):
        await _seed(session_factory)
        client = FakeNavClient()
        service = FundReturnsService(session_factory, nav_client=client)
        await service.refresh_nav_cagr()

        client.resolved.clear()
        result = await service.refresh_nav_cagr()

        assert "Alpha Fund" not in client.resolved
        assert result.processed == 1
