from __future__ import annotations

import asyncio
import pytest
import pyguild


def guild_payload(**overrides) -> dict:
    payload = {
        'id': '1001',
        'name': 'Lovelace Fan Club',
        'owner_id': '2001',
        'icon': None,
        'description': None,
        'member_count': 2,
        'roles': [
            {'id': '1001', 'name': '@everyone', 'permissions': '1024', 'position': 0},
            {'id': '3001', 'name': 'Moderator', 'permissions': '8', 'position': 1, 'hoist': True},
        ],
    }
    payload.update(overrides)
    return payload


def user_payload(user_id: str, name: str) -> dict:
    return {'id': user_id, 'username': name, 'discriminator': '0', 'avatar': None}


def member_payload(user_id: str, name: str, *roles: str) -> dict:
    return {
        'user': user_payload(user_id, name),
        'roles': list(roles),
        'joined_at': '2024-05-01T12:00:00+00:00',
        'nick': None,
        'deaf': False,
        'mute': False,
    }


def make_client(**kwargs) -> pyguild.Client:
    return pyguild.Client(token='token', **kwargs)


async def create_guild(client: pyguild.Client) -> pyguild.Guild:
    payload = guild_payload(
        members=[
            member_payload('2001', 'ada', '3001'),
            member_payload('2002', 'grace'),
        ]
    )
    event = client.state.parser.parse_guild_create_event(client.shard, payload)
    assert isinstance(event, pyguild.GuildCreateEvent)
    await client.dispatch(event)

    guild = client.get_guild('1001')
    assert guild is not None
    return guild


@pytest.mark.asyncio
async def test_guild_update_creates_guild():
    client = make_client()
    parser = client.state.parser

    event = parser.parse_guild_update_event(client.shard, guild_payload())
    assert isinstance(event, pyguild.GuildUpdateEvent)
    await client.dispatch(event)

    assert event.before is None
    guild = client.get_guild('1001')
    assert guild is event.guild
    assert guild.name == 'Lovelace Fan Club'
    assert guild.member_count == 2
    assert guild.unavailable is False

    assert list(guild.roles) == ['1001', '3001']
    moderator = guild.get_role('3001')
    assert moderator is not None
    assert moderator.name == 'Moderator'
    assert moderator.raw_permissions == 8
    assert moderator.hoist is True


@pytest.mark.asyncio
async def test_guild_update_merges_in_place():
    client = make_client()
    guild = await create_guild(client)

    payload = guild_payload(name='Hopper Fan Club', roles=[{'id': '1001', 'name': '@everyone'}])
    del payload['member_count']

    event = client.state.parser.parse_guild_update_event(client.shard, payload)
    assert isinstance(event, pyguild.GuildUpdateEvent)
    await client.dispatch(event)

    # The cached instance is updated rather than replaced
    assert event.guild is guild
    assert client.get_guild('1001') is guild
    assert guild.name == 'Hopper Fan Club'
    assert guild.member_count == 2
    assert list(guild.roles) == ['1001']

    before = event.before
    assert before is not None
    assert before is not guild
    assert before.name == 'Lovelace Fan Club'
    assert list(before.roles) == ['1001', '3001']


@pytest.mark.asyncio
async def test_guild_update_unavailable():
    client = make_client()
    guild = await create_guild(client)

    received = []

    @client.listen()
    async def on_guild_unavailable(event: pyguild.GuildUnavailableEvent) -> None:
        received.append(event)

    event = client.state.parser.parse_guild_update_event(client.shard, {'id': '1001', 'unavailable': True})
    assert isinstance(event, pyguild.GuildUnavailableEvent)
    await client.dispatch(event)

    assert len(received) == 1
    assert received[0].guild_id == '1001'
    assert client.get_guild('1001') is guild
    assert guild.name == 'Lovelace Fan Club'
    assert guild.unavailable is False


@pytest.mark.asyncio
async def test_guild_create_stores_members():
    client = make_client()
    guild = await create_guild(client)

    assert set(guild.members) == {'2001', '2002'}
    ada = client.get_member('1001', '2001')
    assert ada is not None
    assert [role.name for role in ada.roles] == ['Moderator']
    assert client.get_user('2002') is not None


@pytest.mark.asyncio
async def test_guild_member_remove():
    client = make_client()
    guild = await create_guild(client)

    event = client.state.parser.parse_guild_member_remove_event(
        client.shard, {'guild_id': '1001', 'user': user_payload('2002', 'grace')}
    )
    await client.dispatch(event)

    assert event.member.id == '2002'
    assert event.member.guild_id == '1001'
    assert event.before is not None
    assert event.before.id == '2002'

    assert guild.member_count == 1
    assert client.get_member('1001', '2002') is None
    assert client.get_member('1001', '2001') is not None
    # The user stays cached
    assert client.get_user('2002') is not None
    assert client.get_guild('1001') is guild


@pytest.mark.asyncio
async def test_guild_member_remove_uncached_member():
    client = make_client()
    guild = await create_guild(client)

    event = client.state.parser.parse_guild_member_remove_event(
        client.shard, {'guild_id': '1001', 'user': user_payload('2999', 'stranger')}
    )
    await client.dispatch(event)

    assert event.before is None
    assert guild.member_count == 1
    assert client.get_user('2999') is not None


@pytest.mark.asyncio
async def test_guild_member_remove_without_storing():
    client = make_client(store_users=False, store_members=False)
    guild = await create_guild(client)

    # Nothing was stored on guild creation
    assert guild.members == {}

    event = client.state.parser.parse_guild_member_remove_event(
        client.shard, {'guild_id': '1001', 'user': user_payload('2002', 'grace')}
    )
    await client.dispatch(event)

    assert event.before is None
    assert guild.member_count == 1
    assert client.get_user('2002') is None


@pytest.mark.asyncio
async def test_guild_member_remove_unknown_guild():
    client = make_client()

    event = client.state.parser.parse_guild_member_remove_event(
        client.shard, {'guild_id': '7777', 'user': user_payload('2002', 'grace')}
    )
    await client.dispatch(event)

    assert event.before is None
    assert client.get_guild('7777') is None
    assert client.get_user('2002') is not None


@pytest.mark.asyncio
async def test_handle_raw_dispatches():
    client = make_client()
    await create_guild(client)

    subscription = client.wait_for(pyguild.GuildMemberRemoveEvent, timeout=3)

    handler = client.shard.handler
    assert handler is not None
    r = handler.handle_raw(
        client.shard,
        {
            'op': 0,
            't': 'GUILD_MEMBER_REMOVE',
            's': 3,
            'd': {'guild_id': '1001', 'user': user_payload('2001', 'ada')},
        },
    )
    if asyncio.iscoroutine(r):
        await r

    event = await subscription
    assert event.user.name == 'ada'
    assert client.get_member('1001', '2001') is None
    assert client.get_guild('1001').member_count == 1  # type: ignore


@pytest.mark.asyncio
async def test_ready_sets_me():
    client = make_client()

    event = client.state.parser.parse_ready_event(
        client.shard,
        {
            'v': 10,
            'user': user_payload('9000', 'bot'),
            'guilds': [{'id': '1001', 'unavailable': True}],
            'session_id': 'abc',
            'resume_gateway_url': 'wss://example.invalid',
        },
    )
    await client.dispatch(event)

    assert event.guild_ids == ['1001']
    assert client.me is not None
    assert client.me.id == '9000'
    assert client.get_user('9000') is client.me


@pytest.mark.asyncio
async def test_guild_create_then_update_with_slow_handler():
    client = make_client()

    @client.listen()
    async def on_guild_create(event: pyguild.GuildCreateEvent) -> None:
        await asyncio.sleep(0.05)

    parser = client.state.parser
    create = parser.parse_guild_create_event(client.shard, guild_payload(name='Old', members=[]))
    update = parser.parse_guild_update_event(client.shard, guild_payload(name='New'))

    # Both are in flight at once, the create handler is still sleeping when the update arrives
    await asyncio.gather(client.dispatch(create), client.dispatch(update))

    guild = client.get_guild('1001')
    assert guild is not None
    assert guild.name == 'New'


@pytest.mark.asyncio
async def test_guild_member_add_then_remove_with_slow_handler():
    client = make_client()
    guild = await create_guild(client)

    @client.listen()
    async def on_guild_member_add(event: pyguild.GuildMemberAddEvent) -> None:
        await asyncio.sleep(0.05)

    parser = client.state.parser
    payload = member_payload('2005', 'katherine')
    payload['guild_id'] = '1001'
    add = parser.parse_guild_member_add_event(client.shard, payload)  # type: ignore
    remove = parser.parse_guild_member_remove_event(
        client.shard, {'guild_id': '1001', 'user': user_payload('2005', 'katherine')}
    )

    await asyncio.gather(client.dispatch(add), client.dispatch(remove))

    assert remove.before is not None
    assert client.get_member('1001', '2005') is None
    assert guild.member_count == 2


@pytest.mark.asyncio
async def test_canceled_event_still_updates_cache():
    client = make_client()

    @client.listen()
    def on_guild_create(event: pyguild.GuildCreateEvent) -> None:
        event.cancel()

    event = client.state.parser.parse_guild_create_event(client.shard, guild_payload(members=[]))
    await client.dispatch(event)

    assert event.is_canceled
    assert client.get_guild('1001') is not None
