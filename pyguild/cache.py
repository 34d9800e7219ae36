"""
The MIT License (MIT)

Copyright (c) 2024-present MCausc78

Permission is hereby granted, free of charge, to any person obtaining a
copy of this software and associated documentation files (the "Software"),
to deal in the Software without restriction, including without limitation
the rights to use, copy, modify, merge, publish, distribute, sublicense,
and/or sell copies of the Software, and to permit persons to whom the
Software is furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in
all copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS
OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING
FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER
DEALINGS IN THE SOFTWARE.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
import typing

from attrs import define, field

from .user import User

if typing.TYPE_CHECKING:
    from collections.abc import Mapping

    from .events import (
        ReadyEvent,
        GuildCreateEvent,
        GuildUpdateEvent,
        GuildMemberAddEvent,
        GuildMemberRemoveEvent,
        MessageCreateEvent,
    )
    from .guild import Guild, Member


class CacheContextType(Enum):
    """Why the cache is being accessed."""

    custom = 'CUSTOM'
    undefined = 'UNDEFINED'
    user_request = 'USER_REQUEST'

    ready_event = 'ReadyEvent'
    guild_create_event = 'GuildCreateEvent'
    guild_update_event = 'GuildUpdateEvent'
    guild_member_add_event = 'GuildMemberAddEvent'
    guild_member_remove_event = 'GuildMemberRemoveEvent'
    message_create_event = 'MessageCreateEvent'


@define(slots=True)
class BaseCacheContext:
    """Passed to every :class:`Cache` call, so custom caches can decide what to keep."""

    type: CacheContextType = field(repr=True, hash=True, kw_only=True, eq=True)
    """:class:`.CacheContextType`: Why the cache is being accessed."""


@define(slots=True)
class UndefinedCacheContext(BaseCacheContext):
    """A context that only carries its :attr:`~BaseCacheContext.type`."""


@define(slots=True)
class EventCacheContext(BaseCacheContext):
    """A context carrying the gateway event that caused the access.

    These are only built for event types listed in :attr:`State.provide_cache_context_in`.
    """


@define(slots=True)
class ReadyEventCacheContext(EventCacheContext):
    event: ReadyEvent = field(repr=True, hash=True, kw_only=True, eq=True)


@define(slots=True)
class GuildCreateEventCacheContext(EventCacheContext):
    event: GuildCreateEvent = field(repr=True, hash=True, kw_only=True, eq=True)


@define(slots=True)
class GuildUpdateEventCacheContext(EventCacheContext):
    event: GuildUpdateEvent = field(repr=True, hash=True, kw_only=True, eq=True)


@define(slots=True)
class GuildMemberAddEventCacheContext(EventCacheContext):
    event: GuildMemberAddEvent = field(repr=True, hash=True, kw_only=True, eq=True)


@define(slots=True)
class GuildMemberRemoveEventCacheContext(EventCacheContext):
    event: GuildMemberRemoveEvent = field(repr=True, hash=True, kw_only=True, eq=True)


@define(slots=True)
class MessageCreateEventCacheContext(EventCacheContext):
    event: MessageCreateEvent = field(repr=True, hash=True, kw_only=True, eq=True)


# Shared contexts used when an event type is not in provide_cache_context_in
_USER_REQUEST: typing.Final = UndefinedCacheContext(type=CacheContextType.user_request)
_READY_EVENT: typing.Final = UndefinedCacheContext(type=CacheContextType.ready_event)
_GUILD_CREATE_EVENT: typing.Final = UndefinedCacheContext(type=CacheContextType.guild_create_event)
_GUILD_UPDATE_EVENT: typing.Final = UndefinedCacheContext(type=CacheContextType.guild_update_event)
_GUILD_MEMBER_ADD_EVENT: typing.Final = UndefinedCacheContext(type=CacheContextType.guild_member_add_event)
_GUILD_MEMBER_REMOVE_EVENT: typing.Final = UndefinedCacheContext(type=CacheContextType.guild_member_remove_event)
_MESSAGE_CREATE_EVENT: typing.Final = UndefinedCacheContext(type=CacheContextType.message_create_event)

ProvideCacheContextIn = typing.Literal[
    'ReadyEvent',
    'GuildCreateEvent',
    'GuildUpdateEvent',
    'GuildMemberAddEvent',
    'GuildMemberRemoveEvent',
    'MessageCreateEvent',
]


class Cache(ABC):
    """The storage behind :class:`State`.

    Subclass this to plug in your own storage; :class:`MapCache` and
    :class:`EmptyCache` are the built-in implementations. Every method takes
    a :class:`BaseCacheContext` describing why it was called.
    """

    __slots__ = ()

    # Guilds

    @abstractmethod
    def get_guild(self, guild_id: str, ctx: BaseCacheContext, /) -> typing.Optional[Guild]:
        """Optional[:class:`.Guild`]: Looks up a guild by ID."""
        ...

    @abstractmethod
    def get_guilds_mapping(self) -> Mapping[str, Guild]:
        """Mapping[:class:`str`, :class:`.Guild`]: Every cached guild, keyed by ID."""
        ...

    @abstractmethod
    def store_guild(self, guild: Guild, ctx: BaseCacheContext, /) -> None:
        """Stores a guild, replacing any guild cached under the same ID.

        Parameters
        ----------
        guild: :class:`.Guild`
            The guild.
        ctx: :class:`.BaseCacheContext`
            The context.
        """
        ...

    @abstractmethod
    def delete_guild(self, guild_id: str, ctx: BaseCacheContext, /) -> typing.Optional[Guild]:
        """Optional[:class:`.Guild`]: Removes a guild and its members, returning the removed guild."""
        ...

    # Members

    @abstractmethod
    def get_guild_member(self, guild_id: str, user_id: str, ctx: BaseCacheContext, /) -> typing.Optional[Member]:
        """Optional[:class:`.Member`]: Looks up a member by guild and user ID."""
        ...

    @abstractmethod
    def get_guild_members_mapping_of(
        self, guild_id: str, ctx: BaseCacheContext, /
    ) -> typing.Optional[Mapping[str, Member]]:
        """Optional[Mapping[:class:`str`, :class:`.Member`]]: The members of a guild keyed by user ID,
        or ``None`` when nothing is cached for the guild.
        """
        ...

    @abstractmethod
    def bulk_store_guild_members(self, guild_id: str, members: dict[str, Member], ctx: BaseCacheContext, /) -> None:
        """Stores many members of one guild at once.

        Parameters
        ----------
        guild_id: :class:`str`
            The guild the members belong to.
        members: Dict[:class:`str`, :class:`.Member`]
            The members, keyed by user ID.
        ctx: :class:`.BaseCacheContext`
            The context.
        """
        ...

    @abstractmethod
    def store_guild_member(self, member: Member, ctx: BaseCacheContext, /) -> None:
        """Stores a member under :attr:`Member.guild_id`."""
        ...

    @abstractmethod
    def delete_guild_member(self, guild_id: str, user_id: str, ctx: BaseCacheContext, /) -> typing.Optional[Member]:
        """Optional[:class:`.Member`]: Removes a member, returning it if it was cached."""
        ...

    # Users

    @abstractmethod
    def get_user(self, user_id: str, ctx: BaseCacheContext, /) -> typing.Optional[User]:
        """Optional[:class:`.User`]: Looks up a user by ID."""
        ...

    @abstractmethod
    def get_users_mapping(self) -> Mapping[str, User]:
        """Mapping[:class:`str`, :class:`.User`]: Every cached user, keyed by ID."""
        ...

    @abstractmethod
    def store_user(self, user: User, ctx: BaseCacheContext, /) -> None:
        """Stores a user, replacing any user cached under the same ID."""
        ...

    @abstractmethod
    def bulk_store_users(self, users: dict[str, User], ctx: BaseCacheContext, /) -> None:
        """Stores many users at once.

        Parameters
        ----------
        users: Dict[:class:`str`, :class:`.User`]
            The users, keyed by ID.
        ctx: :class:`.BaseCacheContext`
            The context.
        """
        ...


class EmptyCache(Cache):
    """A cache that forgets everything it is given."""

    __slots__ = ()

    def get_guild(self, guild_id: str, ctx: BaseCacheContext, /) -> typing.Optional[Guild]:
        return None

    def get_guilds_mapping(self) -> dict[str, Guild]:
        return {}

    def store_guild(self, guild: Guild, ctx: BaseCacheContext, /) -> None:
        pass

    def delete_guild(self, guild_id: str, ctx: BaseCacheContext, /) -> typing.Optional[Guild]:
        return None

    def get_guild_member(self, guild_id: str, user_id: str, ctx: BaseCacheContext, /) -> typing.Optional[Member]:
        return None

    def get_guild_members_mapping_of(
        self, guild_id: str, ctx: BaseCacheContext, /
    ) -> typing.Optional[Mapping[str, Member]]:
        return None

    def bulk_store_guild_members(self, guild_id: str, members: dict[str, Member], ctx: BaseCacheContext, /) -> None:
        pass

    def store_guild_member(self, member: Member, ctx: BaseCacheContext, /) -> None:
        pass

    def delete_guild_member(self, guild_id: str, user_id: str, ctx: BaseCacheContext, /) -> typing.Optional[Member]:
        return None

    def get_user(self, user_id: str, ctx: BaseCacheContext, /) -> typing.Optional[User]:
        return None

    def get_users_mapping(self) -> dict[str, User]:
        return {}

    def store_user(self, user: User, ctx: BaseCacheContext, /) -> None:
        pass

    def bulk_store_users(self, users: dict[str, User], ctx: BaseCacheContext, /) -> None:
        pass


V = typing.TypeVar('V')


def _bounded_put(d: dict[str, V], key: str, value: V, max_size: int, /) -> typing.Optional[str]:
    # max_size: negative is unbounded, zero disables storing.
    # Replacing an existing key never evicts; otherwise the oldest entry makes room.
    # Returns the evicted key, if any.
    if max_size == 0:
        return None
    evicted = None
    if key not in d and 0 < max_size <= len(d):
        evicted = next(iter(d))
        del d[evicted]
    d[key] = value
    return evicted


class MapCache(Cache):
    """A :class:`Cache` kept in plain dicts.

    Each limit is a maximum entry count. A negative limit means unbounded and
    zero turns caching of that kind of object off. When a limit is hit, the
    oldest entry is dropped.

    Parameters
    ----------
    guild_members_max_size: :class:`int`
        The maximum number of members kept per guild. Defaults to ``-1``.
    guilds_max_size: :class:`int`
        The maximum number of guilds. Defaults to ``-1``.
    users_max_size: :class:`int`
        The maximum number of users. Defaults to ``-1``.
    """

    __slots__ = (
        '_guilds',
        '_guilds_max_size',
        '_guild_members',
        '_guild_members_max_size',
        '_users',
        '_users_max_size',
    )

    def __init__(
        self,
        *,
        guild_members_max_size: int = -1,
        guilds_max_size: int = -1,
        users_max_size: int = -1,
    ) -> None:
        self._guilds: dict[str, Guild] = {}
        self._guilds_max_size: int = guilds_max_size
        self._guild_members: dict[str, dict[str, Member]] = {}
        self._guild_members_max_size: int = guild_members_max_size
        self._users: dict[str, User] = {}
        self._users_max_size: int = users_max_size

    def _members_of(self, guild_id: str, /) -> typing.Optional[dict[str, Member]]:
        if self._guild_members_max_size == 0:
            return None
        return self._guild_members.setdefault(guild_id, {})

    def get_guild(self, guild_id: str, ctx: BaseCacheContext, /) -> typing.Optional[Guild]:
        return self._guilds.get(guild_id)

    def get_guilds_mapping(self) -> Mapping[str, Guild]:
        return self._guilds

    def store_guild(self, guild: Guild, ctx: BaseCacheContext, /) -> None:
        if self._guilds_max_size == 0:
            return
        evicted = _bounded_put(self._guilds, guild.id, guild, self._guilds_max_size)
        if evicted is not None:
            self._guild_members.pop(evicted, None)
        self._members_of(guild.id)

    def delete_guild(self, guild_id: str, ctx: BaseCacheContext, /) -> typing.Optional[Guild]:
        self._guild_members.pop(guild_id, None)
        return self._guilds.pop(guild_id, None)

    def get_guild_member(self, guild_id: str, user_id: str, ctx: BaseCacheContext, /) -> typing.Optional[Member]:
        return self._guild_members.get(guild_id, {}).get(user_id)

    def get_guild_members_mapping_of(
        self, guild_id: str, ctx: BaseCacheContext, /
    ) -> typing.Optional[Mapping[str, Member]]:
        return self._guild_members.get(guild_id)

    def bulk_store_guild_members(self, guild_id: str, members: dict[str, Member], ctx: BaseCacheContext, /) -> None:
        existing = self._members_of(guild_id)
        if existing is None:
            return
        for user_id, member in members.items():
            _bounded_put(existing, user_id, member, self._guild_members_max_size)

    def store_guild_member(self, member: Member, ctx: BaseCacheContext, /) -> None:
        members = self._members_of(member.guild_id)
        if members is not None:
            _bounded_put(members, member.id, member, self._guild_members_max_size)

    def delete_guild_member(self, guild_id: str, user_id: str, ctx: BaseCacheContext, /) -> typing.Optional[Member]:
        members = self._guild_members.get(guild_id)
        if members is None:
            return None
        return members.pop(user_id, None)

    def get_user(self, user_id: str, ctx: BaseCacheContext, /) -> typing.Optional[User]:
        return self._users.get(user_id)

    def get_users_mapping(self) -> Mapping[str, User]:
        return self._users

    def store_user(self, user: User, ctx: BaseCacheContext, /) -> None:
        _bounded_put(self._users, user.id, user, self._users_max_size)

    def bulk_store_users(self, users: dict[str, User], ctx: BaseCacheContext, /) -> None:
        for user_id, user in users.items():
            _bounded_put(self._users, user_id, user, self._users_max_size)


__all__ = (
    'CacheContextType',
    'BaseCacheContext',
    'UndefinedCacheContext',
    'EventCacheContext',
    'ReadyEventCacheContext',
    'GuildCreateEventCacheContext',
    'GuildUpdateEventCacheContext',
    'GuildMemberAddEventCacheContext',
    'GuildMemberRemoveEventCacheContext',
    'MessageCreateEventCacheContext',
    '_USER_REQUEST',
    '_READY_EVENT',
    '_GUILD_CREATE_EVENT',
    '_GUILD_UPDATE_EVENT',
    '_GUILD_MEMBER_ADD_EVENT',
    '_GUILD_MEMBER_REMOVE_EVENT',
    '_MESSAGE_CREATE_EVENT',
    'ProvideCacheContextIn',
    'Cache',
    'EmptyCache',
    'MapCache',
)
