from datetime import datetime, timedelta, timezone

import pytest

from auditcord.datatypes.strike_datatypes import STRIKE_MONTH, strike_expiry
from auditcord.services.strike_service import StrikeService

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_strike_month_is_31_days():
    assert strike_expiry(NOW, 3) == NOW + timedelta(days=93)
    assert STRIKE_MONTH == timedelta(days=31)


@pytest.mark.asyncio
async def test_strikes_accumulate(db):
    service = StrikeService(connection=db, default_expiry_months=3)

    first = await service.add_strike(1, 2, "spam", now=NOW)
    second = await service.add_strike(1, 2, "more spam", now=NOW + timedelta(minutes=1))

    assert len(first) == 1
    assert [strike.reason for strike in second] == ["spam", "more spam"]
    assert second[0].expire_at == NOW + timedelta(days=93)


@pytest.mark.asyncio
async def test_expired_strikes_are_purged_on_add(db):
    service = StrikeService(connection=db, default_expiry_months=1)

    await service.add_strike(1, 2, "ancient", now=NOW - timedelta(days=40))
    active = await service.add_strike(1, 2, "recent", now=NOW)

    assert [strike.reason for strike in active] == ["recent"]


@pytest.mark.asyncio
async def test_strikes_are_per_member(db):
    service = StrikeService(connection=db, default_expiry_months=3)

    await service.add_strike(1, 2, "spam", now=NOW)
    await service.add_strike(1, 3, "spam", now=NOW)
    await service.add_strike(9, 2, "spam", now=NOW)

    assert len(await service.active_strikes(1, 2, now=NOW)) == 1


@pytest.mark.asyncio
async def test_guild_expiry_overrides_default(db):
    service = StrikeService(connection=db, default_expiry_months=3)

    assert await service.expiry_months(1) == 3
    await service.set_expiry_months(1, 6)
    assert await service.expiry_months(1) == 6

    strikes = await service.add_strike(1, 2, "spam", now=NOW)
    assert strikes[0].expire_at == NOW + timedelta(days=186)


@pytest.mark.parametrize("months", [0, 121, -3])
@pytest.mark.asyncio
async def test_expiry_must_be_in_range(db, months):
    service = StrikeService(connection=db, default_expiry_months=3)

    with pytest.raises(ValueError):
        await service.set_expiry_months(1, months)
