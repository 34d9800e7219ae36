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

from copy import copy
import typing

# attrs Factory results need to be cast for type checkers
from typing import cast as _cast

from attrs import Factory, define, field

from . import cache as caching
from .guild import PartialGuild, Guild, Member
from .user import User

if typing.TYPE_CHECKING:
    from .message import Message
    from .shard import Shard


@define(slots=True)
class BaseEvent:
    """Base class for all events."""

    is_canceled: bool = field(default=False, repr=True, kw_only=True)
    """:class:`bool`: Whether the event is canceled."""

    def set_canceled(self, value: bool, /) -> bool:
        """Whether to skip :meth:`.process` after handlers ran or not."""
        if self.is_canceled is value:
            return False
        self.is_canceled = value
        return True

    def cancel(self) -> bool:
        """Cancels the event processing.

        Returns
        -------
        :class:`bool`
            Whether the event was not canceled before.
        """
        return self.set_canceled(True)

    def uncancel(self) -> bool:
        """Uncancels the event processing.

        Returns
        -------
        :class:`bool`
            Whether the event was not canceled before.
        """
        return self.set_canceled(False)

    async def abefore_dispatch(self) -> None:
        """|coro|

        Asynchronous version of :meth:`.before_dispatch`.
        """
        pass

    def before_dispatch(self) -> None:
        """Called before handlers are invoked."""
        pass

    async def aprocess(self) -> typing.Any:
        """|coro|

        Asynchronous version of :meth:`.process`.
        """
        pass

    def process(self) -> typing.Any:
        """Any: Called when handlers got invoked and temporary subscriptions were handled and removed."""
        pass


@define(slots=True)
class ShardEvent(BaseEvent):
    """Base class for events arrived over the gateway."""

    shard: Shard = field(repr=True, kw_only=True)
    """:class:`.Shard`: The shard the event arrived on."""


@define(slots=True)
class ReadyEvent(ShardEvent):
    """Dispatched when the shard has identified and initial state is available.

    .. warning::
        This event may be dispatched multiple times due to reconnects.
    """

    event_name: typing.ClassVar[typing.Literal['ready']] = 'ready'

    me: User = field(repr=True, kw_only=True)
    """:class:`.User`: The connected user."""

    guild_ids: list[str] = field(repr=True, kw_only=True)
    """List[:class:`str`]: The IDs of guilds the user is in. Their data arrives in :class:`.GuildCreateEvent`'s."""

    session_id: str = field(repr=True, kw_only=True)
    """:class:`str`: The gateway session's ID, used for resuming."""

    def before_dispatch(self) -> None:
        state = self.shard.state
        # Handlers expect client.me to be set by the time they see this event
        state._me = self.me

        cache = state.cache
        if not cache:
            return

        ctx = (
            caching.ReadyEventCacheContext(
                type=caching.CacheContextType.ready_event,
                event=self,
            )
            if 'ReadyEvent' in state.provide_cache_context_in
            else caching._READY_EVENT
        )

        cache.store_user(self.me, ctx)


@define(slots=True)
class GuildCreateEvent(ShardEvent):
    """Dispatched when a guild becomes available, or the client joined a guild."""

    event_name: typing.ClassVar[typing.Literal['guild_create']] = 'guild_create'

    guild: Guild = field(repr=True, kw_only=True)
    """:class:`.Guild`: The guild."""

    members: list[Member] = field(repr=True, kw_only=True)
    """List[:class:`.Member`]: The members sent along with the guild."""

    def before_dispatch(self) -> None:
        state = self.shard.state
        cache = state.cache

        if not cache:
            return

        ctx = (
            caching.GuildCreateEventCacheContext(
                type=caching.CacheContextType.guild_create_event,
                event=self,
            )
            if 'GuildCreateEvent' in state.provide_cache_context_in
            else caching._GUILD_CREATE_EVENT
        )

        cache.store_guild(self.guild, ctx)

        if state.store_users:
            cache.bulk_store_users({m.id: m._user for m in self.members if isinstance(m._user, User)}, ctx)
        if state.store_members:
            cache.bulk_store_guild_members(self.guild.id, {m.id: m for m in self.members}, ctx)


@define(slots=True)
class GuildUpdateEvent(ShardEvent):
    """Dispatched when the guild details are updated.

    The cache is updated before handlers are invoked: if the guild was cached,
    it is updated in place and :attr:`before` holds a copy of it taken beforehand.
    Otherwise, :attr:`guild` is cached as a new guild.
    """

    event_name: typing.ClassVar[typing.Literal['guild_update']] = 'guild_update'

    data: PartialGuild = field(repr=True, kw_only=True)
    """:class:`.PartialGuild`: The fields that were updated."""

    guild: Guild = field(repr=True, kw_only=True)
    """:class:`.Guild`: The updated guild."""

    before: typing.Optional[Guild] = field(repr=True, kw_only=True, default=None)
    """Optional[:class:`.Guild`]: The guild as it was before being updated, if it was cached."""

    cache_context: caching.UndefinedCacheContext | caching.GuildUpdateEventCacheContext = field(
        default=Factory(
            lambda self: _cast(
                'typing.Any',
                caching.GuildUpdateEventCacheContext(
                    type=caching.CacheContextType.guild_update_event,
                    event=self,
                )
                if 'GuildUpdateEvent' in self.shard.state.provide_cache_context_in
                else caching._GUILD_UPDATE_EVENT,
            ),
            takes_self=True,
        ),
        repr=False,
        hash=False,
        init=False,
        eq=False,
    )
    """Union[:class:`.UndefinedCacheContext`, :class:`.GuildUpdateEventCacheContext`]: The cache context used."""

    def before_dispatch(self) -> None:
        cache = self.shard.state.cache
        if not cache:
            return

        cached = cache.get_guild(self.data.id, self.cache_context)
        if cached is None:
            cache.store_guild(self.guild, self.cache_context)
            return

        self.before = copy(cached)
        cached.locally_update(self.data)
        self.guild = cached


@define(slots=True)
class GuildUnavailableEvent(ShardEvent):
    """Dispatched instead of :class:`.GuildUpdateEvent` or :class:`.GuildCreateEvent`
    when the guild is unavailable due to an outage.

    This is only a notification, the cache is left untouched.
    """

    event_name: typing.ClassVar[typing.Literal['guild_unavailable']] = 'guild_unavailable'

    guild_id: str = field(repr=True, kw_only=True)
    """:class:`str`: The unavailable guild's ID."""

    message: str = field(repr=True, kw_only=True, default='Guild is unavailable.')
    """:class:`str`: The informational message."""


@define(slots=True)
class GuildMemberAddEvent(ShardEvent):
    """Dispatched when a user joins a guild."""

    event_name: typing.ClassVar[typing.Literal['guild_member_add']] = 'guild_member_add'

    member: Member = field(repr=True, kw_only=True)
    """:class:`.Member`: The joined member."""

    def before_dispatch(self) -> None:
        state = self.shard.state
        cache = state.cache

        if not cache:
            return

        ctx = (
            caching.GuildMemberAddEventCacheContext(
                type=caching.CacheContextType.guild_member_add_event,
                event=self,
            )
            if 'GuildMemberAddEvent' in state.provide_cache_context_in
            else caching._GUILD_MEMBER_ADD_EVENT
        )

        user = self.member._user
        if state.store_users and isinstance(user, User):
            cache.store_user(user, ctx)

        guild = cache.get_guild(self.member.guild_id, ctx)
        if guild is not None:
            guild.member_count += 1
            if state.store_members:
                cache.store_guild_member(self.member, ctx)
            cache.store_guild(guild, ctx)


@define(slots=True)
class GuildMemberRemoveEvent(ShardEvent):
    """Dispatched when a member leaves, or gets kicked or banned from a guild.

    The cache is updated before handlers are invoked. When
    :attr:`State.store_users` is enabled, the user stays cached even though the member is gone.
    """

    event_name: typing.ClassVar[typing.Literal['guild_member_remove']] = 'guild_member_remove'

    guild_id: str = field(repr=True, kw_only=True)
    """:class:`str`: The guild's ID from which the user was removed from."""

    user: User = field(repr=True, kw_only=True)
    """:class:`.User`: The removed user."""

    member: Member = field(repr=True, kw_only=True)
    """:class:`.Member`: The removed member, built from the event payload."""

    before: typing.Optional[Member] = field(repr=True, kw_only=True, default=None)
    """Optional[:class:`.Member`]: The member as it was cached before removal, if available."""

    cache_context: caching.UndefinedCacheContext | caching.GuildMemberRemoveEventCacheContext = field(
        default=Factory(
            lambda self: _cast(
                'typing.Any',
                caching.GuildMemberRemoveEventCacheContext(
                    type=caching.CacheContextType.guild_member_remove_event,
                    event=self,
                )
                if 'GuildMemberRemoveEvent' in self.shard.state.provide_cache_context_in
                else caching._GUILD_MEMBER_REMOVE_EVENT,
            ),
            takes_self=True,
        ),
        repr=False,
        hash=False,
        init=False,
        eq=False,
    )
    """Union[:class:`.UndefinedCacheContext`, :class:`.GuildMemberRemoveEventCacheContext`]: The cache context used."""

    def before_dispatch(self) -> None:
        state = self.shard.state
        cache = state.cache
        if not cache:
            return

        if state.store_users:
            cache.store_user(self.user, self.cache_context)

        guild = cache.get_guild(self.guild_id, self.cache_context)
        if guild is None:
            return

        # Not atomic: the count is decremented even if the member was never cached
        guild.member_count -= 1
        if state.store_members:
            self.before = cache.delete_guild_member(self.guild_id, self.user.id, self.cache_context)
        cache.store_guild(guild, self.cache_context)


@define(slots=True)
class MessageCreateEvent(ShardEvent):
    """Dispatched when someone sends message in a channel."""

    event_name: typing.ClassVar[typing.Literal['message_create']] = 'message_create'

    message: Message = field(repr=True, kw_only=True)
    """:class:`.Message`: The message sent."""

    def before_dispatch(self) -> None:
        state = self.shard.state
        cache = state.cache

        if not cache:
            return

        ctx = (
            caching.MessageCreateEventCacheContext(
                type=caching.CacheContextType.message_create_event,
                event=self,
            )
            if 'MessageCreateEvent' in state.provide_cache_context_in
            else caching._MESSAGE_CREATE_EVENT
        )

        author = self.message.author
        if isinstance(author, Member):
            if state.store_users and isinstance(author._user, User):
                cache.store_user(author._user, ctx)
            if state.store_members:
                cache.store_guild_member(author, ctx)
        elif state.store_users and isinstance(author, User):
            cache.store_user(author, ctx)


__all__ = (
    'BaseEvent',
    'ShardEvent',
    'ReadyEvent',
    'GuildCreateEvent',
    'GuildUpdateEvent',
    'GuildUnavailableEvent',
    'GuildMemberAddEvent',
    'GuildMemberRemoveEvent',
    'MessageCreateEvent',
)
