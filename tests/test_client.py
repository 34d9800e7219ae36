from __future__ import annotations

from attrs import define, field
import asyncio
import pytest
import pyguild


@define(slots=True)
class WarnEvent(pyguild.BaseEvent):
    """A moderator warned a member."""

    guild_id: str = field(repr=True, kw_only=True)
    user_id: str = field(repr=True, kw_only=True)
    points: int = field(repr=True, kw_only=True)


@define(slots=True)
class PardonEvent(WarnEvent):
    """A moderator took warning points back. Listeners of :class:`WarnEvent` see it too."""


@pytest.mark.asyncio
async def test_subscribe_and_wait_for():
    client = pyguild.Client()
    points: dict[str, int] = {}
    seen: asyncio.Queue[str] = asyncio.Queue()

    async def on_warn(event: WarnEvent, /) -> None:
        if not isinstance(event, PardonEvent):
            points[event.user_id] = points.get(event.user_id, 0) + event.points
            await seen.put('warn')

    def on_pardon(event: PardonEvent, /) -> None:
        points[event.user_id] = max(0, points.get(event.user_id, 0) - event.points)
        seen.put_nowait('pardon')

    client.subscribe(WarnEvent, on_warn)
    client.subscribe(PardonEvent, on_pardon)

    await client.dispatch(WarnEvent(guild_id='1001', user_id='2001', points=3))
    await client.dispatch(PardonEvent(guild_id='1001', user_id='2001', points=1))

    assert await asyncio.wait_for(seen.get(), timeout=1) == 'warn'
    assert await asyncio.wait_for(seen.get(), timeout=1) == 'pardon'
    assert points == {'2001': 2}

    subscription = client.wait_for(WarnEvent, check=lambda event, /: event.user_id == '2002', count=1, timeout=3)
    await client.dispatch(WarnEvent(guild_id='1001', user_id='2001', points=1))
    await client.dispatch(WarnEvent(guild_id='1001', user_id='2002', points=5))

    event = await subscription
    assert event.user_id == '2002'
    assert event.points == 5

    subscription = client.wait_for(WarnEvent, check=lambda event, /: event.guild_id == '1002', count=3, timeout=3)

    await client.dispatch(WarnEvent(guild_id='1002', user_id='2003', points=1))
    await client.dispatch(WarnEvent(guild_id='1001', user_id='2003', points=100))
    await client.dispatch(WarnEvent(guild_id='1002', user_id='2003', points=2))
    await client.dispatch(PardonEvent(guild_id='1002', user_id='2003', points=4))

    collected = [event.points async for event in subscription]
    assert collected == [1, 2, 4]


@pytest.mark.asyncio
async def test_first_wait_for_registers_subscription():
    client = pyguild.Client()

    # No handlers are registered for this event type yet
    subscription = client.wait_for(PardonEvent, timeout=3)
    await client.dispatch(PardonEvent(guild_id='1001', user_id='2001', points=2))

    event = await subscription
    assert event.points == 2


@pytest.mark.asyncio
async def test_wait_for_times_out():
    client = pyguild.Client()

    with pytest.raises(asyncio.TimeoutError):
        await client.wait_for(WarnEvent, timeout=0.1)


@pytest.mark.asyncio
async def test_listen():
    client = pyguild.Client()
    warned = []

    @client.listen()
    async def on_warn(event: WarnEvent) -> None:
        warned.append((event.guild_id, event.user_id))

    await client.dispatch(WarnEvent(guild_id='1001', user_id='2001', points=1))
    assert warned == [('1001', '2001')]

    assert isinstance(on_warn, pyguild.EventSubscription)
    on_warn.remove()
    await client.dispatch(WarnEvent(guild_id='1001', user_id='2002', points=1))
    assert warned == [('1001', '2001')]
