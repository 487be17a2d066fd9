"""Row builders shared by the database-backed tests."""

from datetime import date

from fundscope.models import FundHolding, PriceHistory, QualityScore, Security


async def add_security(session, symbol: str, **kwargs) -> Security:
    security = Security(symbol=symbol, name=kwargs.pop("name", symbol), **kwargs)
    session.add(security)
    await session.flush()
    return security


async def add_score(session, security_id: int, calculation_date: date, **scores) -> QualityScore:
    record = QualityScore(security_id=security_id, calculation_date=calculation_date, **scores)
    session.add(record)
    await session.flush()
    return record


async def add_holding(session, fund_name: str, instrument: str, weight: float, security_id=None, **kwargs) -> FundHolding:
    holding = FundHolding(
        fund_name=fund_name,
        instrument_name=instrument,
        percent_nav=weight,
        security_id=security_id,
        **kwargs,
    )
    session.add(holding)
    await session.flush()
    return holding


async def add_prices(session, security_id: int, prices: list[tuple[date, float]]) -> None:
    for day, close in prices:
        session.add(PriceHistory(security_id=security_id, date=day, close=close))
    await session.flush()
