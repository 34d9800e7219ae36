from __future__ import annotations

from aiohttp import ClientSession, web
import pytest
import pyguild

attempts: dict[str, int] = {}

routes = web.RouteTableDef()


@routes.get('/guilds/{guild_id}/members/{user_id}')
async def get_member(request: web.Request) -> web.Response:
    return web.json_response({'message': 'Unknown Member', 'code': 10007}, status=404)


@routes.get('/users/{user_id}')
async def get_user(request: web.Request) -> web.Response:
    user_id = request.match_info['user_id']
    attempts[user_id] = attempts.get(user_id, 0) + 1
    if attempts[user_id] == 1:
        return web.json_response(
            {'message': 'You are being rate limited.', 'retry_after': 0.05, 'global': False}, status=429
        )

    return web.json_response(
        {'id': user_id, 'username': 'ada', 'discriminator': '0', 'avatar': None},
        headers={
            'X-RateLimit-Bucket': 'abcd1234',
            'X-RateLimit-Limit': '5',
            'X-RateLimit-Remaining': '4',
            'X-RateLimit-Reset-After': '1.5',
        },
    )


@routes.get('/guilds/{guild_id}')
async def get_guild(request: web.Request) -> web.Response:
    return web.json_response({'message': 'Missing Access', 'code': 50001}, status=403)


async def run_api_site(port: int) -> web.TCPSite:
    app = web.Application()
    app.add_routes(routes)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host='127.0.0.1', port=port)

    await site.start()
    return site


def test_ratelimit_keys():
    first = pyguild.routes.GUILDS_MEMBER_FETCH.compile(guild_id='1001', user_id='2001')
    second = pyguild.routes.GUILDS_MEMBER_FETCH.compile(guild_id='1001', user_id='2002')
    other = pyguild.routes.GUILDS_MEMBER_FETCH.compile(guild_id='1002', user_id='2001')

    assert first.build() == '/guilds/1001/members/2001'
    assert first.build_ratelimit_key() == 'GET /guilds/1001/members/{user_id}'
    assert first.build_ratelimit_key() == second.build_ratelimit_key()
    assert first.build_ratelimit_key() != other.build_ratelimit_key()


def test_quote_reason():
    assert pyguild.utils.quote_reason('spam links') == 'spam links'
    assert pyguild.utils.quote_reason('naïve') == 'na%C3%AFve'


@pytest.mark.asyncio
async def test_errors():
    site = await run_api_site(5401)

    state = pyguild.State()
    http = pyguild.HTTPClient('token', base='http://127.0.0.1:5401', session=ClientSession(), state=state)
    state.setup(http=http)

    with pytest.raises(pyguild.NotFound) as exc_info:
        await http.get_member('1001', '2001')

    exc = exc_info.value
    assert exc.status == 404
    assert exc.code == 10007
    assert exc.text == 'Unknown Member'

    with pytest.raises(pyguild.Forbidden) as exc_info:
        await http.get_guild('1001')
    assert exc_info.value.code == 50001

    await http.cleanup()
    await site.stop()


@pytest.mark.asyncio
async def test_retry_on_ratelimit():
    site = await run_api_site(5402)
    attempts.clear()

    state = pyguild.State()
    http = pyguild.HTTPClient('token', base='http://127.0.0.1:5402', session=ClientSession(), state=state)
    state.setup(http=http)

    user = await http.get_user('2001')
    assert user.name == 'ada'
    assert attempts['2001'] == 2

    rate_limiter = http.rate_limiter
    assert isinstance(rate_limiter, pyguild.DefaultRateLimiter)

    route = pyguild.routes.USERS_USER_FETCH.compile(user_id='2001')
    ratelimit = rate_limiter.fetch_ratelimit_for(route, route.build())
    assert isinstance(ratelimit, pyguild.DefaultRateLimit)
    assert ratelimit.bucket == 'abcd1234'
    assert ratelimit.remaining == 4
    assert not ratelimit.is_expired()

    await http.cleanup()
    await site.stop()
