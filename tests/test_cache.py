from __future__ import annotations

import pyguild
from pyguild.cache import _GUILD_CREATE_EVENT as ctx


def make_users(state: pyguild.State, count: int) -> dict[str, pyguild.User]:
    users = {}
    for i in range(count):
        user_id = str(2000 + i)
        users[user_id] = state.parser.parse_user(
            {'id': user_id, 'username': f'user{i}', 'discriminator': '0', 'avatar': None}
        )
    return users


def make_members(state: pyguild.State, guild_id: str, count: int) -> dict[str, pyguild.Member]:
    return {
        user.id: state.parser.parse_member({'roles': []}, guild_id, user=user)  # type: ignore
        for user in make_users(state, count).values()
    }


def make_guild(state: pyguild.State, guild_id: str) -> pyguild.Guild:
    return state.parser.parse_guild({'id': guild_id, 'name': f'Guild {guild_id}', 'owner_id': '2000'})  # type: ignore


def test_bulk_store_users_respects_limit():
    state = pyguild.State()
    cache = pyguild.MapCache(users_max_size=2)

    cache.bulk_store_users(make_users(state, 5), ctx)

    # The oldest ones make room for later ones
    assert list(cache.get_users_mapping()) == ['2003', '2004']


def test_bulk_store_users_disabled():
    state = pyguild.State()
    cache = pyguild.MapCache(users_max_size=0)

    cache.bulk_store_users(make_users(state, 3), ctx)
    assert cache.get_users_mapping() == {}


def test_bulk_store_guild_members_respects_limit():
    state = pyguild.State()
    cache = pyguild.MapCache(guild_members_max_size=2)
    cache.store_guild(make_guild(state, '1001'), ctx)

    cache.bulk_store_guild_members('1001', make_members(state, '1001', 5), ctx)

    members = cache.get_guild_members_mapping_of('1001', ctx)
    assert members is not None
    assert list(members) == ['2003', '2004']

    # Replacing a cached member does not evict anyone
    replacement = make_members(state, '1001', 5)['2004']
    cache.store_guild_member(replacement, ctx)
    assert list(members) == ['2003', '2004']
    assert members['2004'] is replacement


def test_evicted_guild_drops_members():
    state = pyguild.State()
    cache = pyguild.MapCache(guilds_max_size=1)

    cache.store_guild(make_guild(state, '1001'), ctx)
    cache.bulk_store_guild_members('1001', make_members(state, '1001', 2), ctx)
    assert cache.get_guild_member('1001', '2000', ctx) is not None

    cache.store_guild(make_guild(state, '1002'), ctx)

    assert list(cache.get_guilds_mapping()) == ['1002']
    assert cache.get_guild_members_mapping_of('1001', ctx) is None
    assert cache.get_guild_member('1001', '2000', ctx) is None
    assert cache.get_guild_members_mapping_of('1002', ctx) == {}


def test_guilds_disabled_stores_nothing():
    state = pyguild.State()
    cache = pyguild.MapCache(guilds_max_size=0)

    cache.store_guild(make_guild(state, '1001'), ctx)

    assert cache.get_guild('1001', ctx) is None
    assert cache.get_guild_members_mapping_of('1001', ctx) is None
