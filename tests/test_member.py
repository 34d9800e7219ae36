from __future__ import annotations

from aiohttp import ClientSession, web
from multidict import CIMultiDict
import pytest
import pyguild

received: list[tuple[str, str, CIMultiDict[str], object]] = []


def member_payload(*, nick: str | None = None) -> dict:
    return {
        'user': {
            'id': '2001',
            'username': 'grace',
            'discriminator': '0',
            'global_name': 'Grace',
            'avatar': None,
        },
        'roles': ['3001'],
        'joined_at': '2024-05-01T12:00:00+00:00',
        'nick': nick,
        'deaf': False,
        'mute': False,
    }


async def record(request: web.Request) -> None:
    body = await request.json() if request.can_read_body else None
    received.append((request.method, request.path, request.headers.copy(), body))


routes = web.RouteTableDef()


@routes.put('/guilds/{guild_id}/bans/{user_id}')
async def create_ban(request: web.Request) -> web.Response:
    await record(request)
    return web.Response(status=204)


@routes.patch('/guilds/{guild_id}/members/{user_id}')
async def edit_member(request: web.Request) -> web.Response:
    await record(request)
    body = await request.json()
    return web.json_response(member_payload(nick=body.get('nick') or None))


@routes.put('/guilds/{guild_id}/members/{user_id}/roles/{role_id}')
async def add_role(request: web.Request) -> web.Response:
    await record(request)
    return web.Response(status=204)


@routes.delete('/guilds/{guild_id}/members/{user_id}/roles/{role_id}')
async def remove_role(request: web.Request) -> web.Response:
    await record(request)
    return web.Response(status=204)


# Guild 1403 lacks permissions, guild 1404 does not know the member, anything else answers with no content
failing_routes = web.RouteTableDef()


def respond_for(request: web.Request) -> web.Response:
    guild_id = request.match_info['guild_id']
    if guild_id == '1403':
        return web.json_response({'message': 'Missing Permissions', 'code': 50013}, status=403)
    if guild_id == '1404':
        return web.json_response({'message': 'Unknown Member', 'code': 10007}, status=404)
    return web.Response(status=204)


@failing_routes.put('/guilds/{guild_id}/bans/{user_id}')
async def failing_ban(request: web.Request) -> web.Response:
    await record(request)
    return respond_for(request)


@failing_routes.patch('/guilds/{guild_id}/members/{user_id}')
async def failing_edit_member(request: web.Request) -> web.Response:
    await record(request)
    return respond_for(request)


async def run_api_site(port: int, table: web.RouteTableDef = routes) -> web.TCPSite:
    app = web.Application()
    app.add_routes(table)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host='127.0.0.1', port=port)

    await site.start()
    return site


def make_state(port: int) -> pyguild.State:
    state = pyguild.State(cache=pyguild.MapCache())
    http = pyguild.HTTPClient('token', base=f'http://127.0.0.1:{port}', session=ClientSession(), state=state)
    state.setup(http=http)
    return state


def make_member(state: pyguild.State, guild_id: str = '1001') -> pyguild.Member:
    return state.parser.parse_member(member_payload(nick='gracie'), guild_id)


@pytest.mark.asyncio
async def test_add_role_locally():
    state = pyguild.State()
    member = state.parser.parse_member({'user': member_payload()['user'], 'roles': ['3001', '3001', '3002']}, '1001')
    assert member.role_ids == ['3001', '3002']

    assert await member.add_role('3003') is True
    assert member.role_ids == ['3001', '3002', '3003']

    assert await member.add_role('3001') is False
    assert member.role_ids == ['3001', '3002', '3003']


@pytest.mark.asyncio
async def test_remove_role_locally():
    state = pyguild.State()
    member = make_member(state)

    await member.remove_role('9999')
    assert member.role_ids == ['3001']

    await member.remove_role('3001')
    assert member.role_ids == []


@pytest.mark.asyncio
async def test_ban():
    site = await run_api_site(5201)
    received.clear()

    state = make_state(5201)
    member = make_member(state)

    ban = await member.ban(delete_message_days=2, reason='spam links')
    assert ban.guild_id == '1001'
    assert ban.user_id == '2001'
    assert ban.reason == 'spam links'
    assert ban.user is not None
    assert ban.user.name == 'grace'

    method, path, headers, body = received[0]
    assert method == 'PUT'
    assert path == '/guilds/1001/bans/2001'
    assert headers['Authorization'] == 'Bot token'
    assert headers['X-Audit-Log-Reason'] == 'spam links'
    assert body == {'delete_message_seconds': 172800}

    await member.ban()
    assert received[1][3] == {}
    assert 'X-Audit-Log-Reason' not in received[1][2]

    await state.http.cleanup()
    await site.stop()


@pytest.mark.asyncio
async def test_set_nickname():
    site = await run_api_site(5202)
    received.clear()

    state = make_state(5202)
    member = make_member(state)

    updated = await member.set_nickname('Gigi')
    assert updated is not None
    assert updated.nick == 'Gigi'

    method, path, _, body = received[0]
    assert method == 'PATCH'
    assert path == '/guilds/1001/members/2001'
    assert body == {'nick': 'Gigi'}

    updated = await member.set_nickname(None)
    assert updated is not None
    assert updated.nick is None
    assert received[1][3] == {'nick': ''}

    await state.http.cleanup()
    await site.stop()


@pytest.mark.asyncio
async def test_set_own_nickname():
    site = await run_api_site(5203)
    received.clear()

    state = make_state(5203)
    member = make_member(state)
    state._me = member.user
    assert member.is_me()

    await member.set_nickname('Me', reason='rebrand')

    method, path, headers, body = received[0]
    assert method == 'PATCH'
    assert path == '/guilds/1001/members/@me'
    assert headers['X-Audit-Log-Reason'] == 'rebrand'
    assert body == {'nick': 'Me'}

    await state.http.cleanup()
    await site.stop()


@pytest.mark.asyncio
async def test_move_member():
    site = await run_api_site(5204)
    received.clear()

    state = make_state(5204)
    member = make_member(state)

    await member.move_member('4001')

    method, path, _, body = received[0]
    assert method == 'PATCH'
    assert path == '/guilds/1001/members/2001'
    assert body == {'channel_id': '4001'}

    await state.http.cleanup()
    await site.stop()


@pytest.mark.asyncio
async def test_assign_and_unassign_role():
    site = await run_api_site(5205)
    received.clear()

    state = make_state(5205)
    member = make_member(state)

    assert await member.assign_role('3002', reason='promoted') is True
    assert member.role_ids == ['3001', '3002']

    method, path, headers, _ = received[0]
    assert method == 'PUT'
    assert path == '/guilds/1001/members/2001/roles/3002'
    assert headers['X-Audit-Log-Reason'] == 'promoted'

    await member.unassign_role('3001')
    assert member.role_ids == ['3002']
    assert received[1][:2] == ('DELETE', '/guilds/1001/members/2001/roles/3001')

    await state.http.cleanup()
    await site.stop()


@pytest.mark.asyncio
async def test_ban_forbidden():
    site = await run_api_site(5206, failing_routes)
    received.clear()

    state = make_state(5206)
    member = make_member(state, '1403')

    ban = None
    with pytest.raises(pyguild.Forbidden) as exc_info:
        ban = await member.ban(reason='spam links')
    assert ban is None
    assert exc_info.value.status == 403
    assert exc_info.value.code == 50013
    assert exc_info.value.text == 'Missing Permissions'
    assert received[0][:2] == ('PUT', '/guilds/1403/bans/2001')

    await state.http.cleanup()
    await site.stop()


@pytest.mark.asyncio
async def test_ban_unknown_member():
    site = await run_api_site(5207, failing_routes)
    received.clear()

    state = make_state(5207)
    member = make_member(state, '1404')

    ban = None
    with pytest.raises(pyguild.NotFound) as exc_info:
        ban = await member.ban()
    assert ban is None
    assert exc_info.value.code == 10007

    await state.http.cleanup()
    await site.stop()


@pytest.mark.asyncio
async def test_edit_member_errors():
    site = await run_api_site(5208, failing_routes)
    received.clear()

    state = make_state(5208)

    forbidden = make_member(state, '1403')
    with pytest.raises(pyguild.Forbidden):
        await forbidden.set_nickname('Gigi')
    with pytest.raises(pyguild.Forbidden):
        await forbidden.move_member('4001')

    unknown = make_member(state, '1404')
    with pytest.raises(pyguild.NotFound):
        await unknown.set_nickname('Gigi')
    with pytest.raises(pyguild.NotFound):
        await unknown.move_member('4001')

    assert [path for _, path, _, _ in received] == [
        '/guilds/1403/members/2001',
        '/guilds/1403/members/2001',
        '/guilds/1404/members/2001',
        '/guilds/1404/members/2001',
    ]

    await state.http.cleanup()
    await site.stop()


@pytest.mark.asyncio
async def test_edit_member_no_content():
    site = await run_api_site(5209, failing_routes)
    received.clear()

    state = make_state(5209)
    member = make_member(state)

    assert await member.move_member('4001') is None
    assert received[0][3] == {'channel_id': '4001'}

    assert await member.set_nickname('Gigi') is None
    assert received[1][3] == {'nick': 'Gigi'}

    await state.http.cleanup()
    await site.stop()
