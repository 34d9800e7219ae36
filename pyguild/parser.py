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

import typing

from .core import UNDEFINED
from .enums import ActivityType, Status
from .events import (
    ReadyEvent,
    GuildCreateEvent,
    GuildUpdateEvent,
    GuildUnavailableEvent,
    GuildMemberAddEvent,
    GuildMemberRemoveEvent,
    MessageCreateEvent,
)
from .guild import (
    Activity,
    Role,
    PartialGuild,
    Guild,
    Ban,
    Member,
)
from .message import MessageReference, Message
from .user import User
from .utils import parse_time

if typing.TYPE_CHECKING:
    from . import raw
    from .shard import Shard
    from .state import State

_parse_dt = parse_time


class Parser:
    """Converts raw API payloads into library objects."""

    __slots__ = ('state',)

    def __init__(self, *, state: State) -> None:
        self.state = state

    def parse_activity(self, payload: raw.Activity, /) -> Activity:
        return Activity(
            name=payload['name'],
            type=ActivityType(payload['type']),
            url=payload.get('url'),
        )

    def parse_ban(self, payload: raw.Ban, guild_id: str, /) -> Ban:
        """Parses a ban object.

        Parameters
        ----------
        payload: Dict[:class:`str`, Any]
            The ban payload to parse.
        guild_id: :class:`str`
            The guild's ID the ban belongs to.

        Returns
        -------
        :class:`Ban`
            The parsed ban object.
        """
        user = self.parse_user(payload['user'])
        return Ban(
            guild_id=guild_id,
            user_id=user.id,
            reason=payload.get('reason'),
            user=user,
        )

    def parse_guild(self, payload: raw.Guild, /) -> Guild:
        """Parses a guild object.

        Parameters
        ----------
        payload: Dict[:class:`str`, Any]
            The guild payload to parse.

        Returns
        -------
        :class:`Guild`
            The parsed guild object.
        """
        guild_id = payload['id']

        return Guild(
            state=self.state,
            id=guild_id,
            name=payload['name'],
            owner_id=payload['owner_id'],
            internal_icon=payload.get('icon'),
            description=payload.get('description'),
            member_count=payload.get('member_count', payload.get('approximate_member_count', 0)),
            roles=self.parse_roles(payload.get('roles', ()), guild_id),
            unavailable=False,
        )

    def parse_partial_guild(self, payload: raw.Guild, /) -> PartialGuild:
        """Parses a guild payload into fields that should be updated.

        Keys missing from the payload are :data:`.UNDEFINED`.
        """
        guild_id = payload['id']
        roles = payload.get('roles')
        return PartialGuild(
            state=self.state,
            id=guild_id,
            name=payload.get('name', UNDEFINED),
            owner_id=payload.get('owner_id', UNDEFINED),
            internal_icon=payload.get('icon', UNDEFINED),
            description=payload.get('description', UNDEFINED),
            member_count=payload.get('member_count', UNDEFINED),
            roles=UNDEFINED if roles is None else self.parse_roles(roles, guild_id),
        )

    def parse_member(
        self,
        payload: raw.Member,
        guild_id: str,
        /,
        *,
        user: typing.Optional[User] = None,
    ) -> Member:
        """Parses a member object.

        Missing keys get their defaults, since some events only send a partial member.

        Parameters
        ----------
        payload: Dict[:class:`str`, Any]
            The member payload to parse.
        guild_id: :class:`str`
            The guild's ID the member is in.
        user: Optional[:class:`User`]
            The user, if the payload does not carry one.

        Returns
        -------
        :class:`Member`
            The parsed member object.
        """
        user_payload = payload.get('user')
        if user_payload is not None:
            user = self.parse_user(user_payload)

        assert user is not None, 'Member payload has no user'

        role_ids: list[str] = []
        for role_id in payload.get('roles', ()):
            if role_id not in role_ids:
                role_ids.append(role_id)

        status = payload.get('status')
        game = payload.get('game')

        return Member(
            state=self.state,
            guild_id=guild_id,
            _user=user,
            role_ids=role_ids,
            deaf=payload.get('deaf', False),
            mute=payload.get('mute', False),
            joined_at=_parse_dt(payload.get('joined_at')),
            nick=payload.get('nick'),
            status=None if status is None else Status(status),
            game=None if game is None else self.parse_activity(game),
        )

    def parse_message(self, payload: raw.Message, /, *, member: typing.Optional[raw.Member] = None) -> Message:
        """Parses a message object.

        Parameters
        ----------
        payload: Dict[:class:`str`, Any]
            The message payload to parse.
        member: Optional[Dict[:class:`str`, Any]]
            The partial member payload of the author, sent along with guild messages.

        Returns
        -------
        :class:`Message`
            The parsed message object.
        """
        guild_id = payload.get('guild_id')
        author: typing.Union[User, Member] = self.parse_user(payload['author'])
        if guild_id is not None and member is not None:
            author = self.parse_member(member, guild_id, user=author)  # type: ignore

        reference = payload.get('message_reference')

        return Message(
            state=self.state,
            id=payload['id'],
            channel_id=payload['channel_id'],
            guild_id=guild_id,
            content=payload.get('content', ''),
            author=author,
            tts=payload.get('tts', False),
            embeds=payload.get('embeds', []),
            edited_at=_parse_dt(payload.get('edited_timestamp')),
            reference=None
            if reference is None or 'message_id' not in reference
            else MessageReference(
                message_id=reference['message_id'],
                channel_id=reference.get('channel_id', payload['channel_id']),
                guild_id=reference.get('guild_id'),
            ),
        )

    def parse_role(self, payload: raw.Role, guild_id: str, /) -> Role:
        """Parses a role object.

        Parameters
        ----------
        payload: Dict[:class:`str`, Any]
            The role payload to parse.
        guild_id: :class:`str`
            The guild's ID the role belongs to.

        Returns
        -------
        :class:`Role`
            The parsed role object.
        """
        return Role(
            state=self.state,
            id=payload['id'],
            guild_id=guild_id,
            name=payload['name'],
            color=payload.get('color', 0),
            hoist=payload.get('hoist', False),
            position=payload.get('position', 0),
            raw_permissions=int(payload.get('permissions', 0)),
            managed=payload.get('managed', False),
            mentionable=payload.get('mentionable', False),
        )

    def parse_roles(self, payload: typing.Iterable[raw.Role], guild_id: str, /) -> dict[str, Role]:
        """Dict[:class:`str`, :class:`Role`]: Parses a role array into a mapping of role IDs to roles."""
        roles = {}
        for p in payload:
            role = self.parse_role(p, guild_id)
            roles[role.id] = role
        return roles

    def parse_user(self, payload: raw.User, /) -> User:
        """Parses a user object.

        Parameters
        ----------
        payload: Dict[:class:`str`, Any]
            The user payload to parse.

        Returns
        -------
        :class:`User`
            The parsed user object.
        """
        return User(
            state=self.state,
            id=payload['id'],
            name=payload['username'],
            discriminator=payload.get('discriminator', '0'),
            global_name=payload.get('global_name'),
            internal_avatar=payload.get('avatar'),
            bot=payload.get('bot', False),
        )

    # Events

    def parse_ready_event(self, shard: Shard, payload: raw.ClientReadyEvent, /) -> ReadyEvent:
        """Parses a Ready event.

        Parameters
        ----------
        shard: :class:`Shard`
            The shard the event arrived on.
        payload: Dict[:class:`str`, Any]
            The event payload to parse.

        Returns
        -------
        :class:`ReadyEvent`
            The parsed ready event object.
        """
        return ReadyEvent(
            shard=shard,
            me=self.parse_user(payload['user']),
            guild_ids=[g['id'] for g in payload.get('guilds', ())],
            session_id=payload['session_id'],
        )

    def parse_guild_create_event(
        self, shard: Shard, payload: raw.ClientGuildCreateEvent, /
    ) -> typing.Union[GuildCreateEvent, GuildUnavailableEvent]:
        """Parses a guild create event.

        Returns
        -------
        Union[:class:`GuildCreateEvent`, :class:`GuildUnavailableEvent`]
            The parsed event. :class:`GuildUnavailableEvent` is returned if the guild is unavailable.
        """
        if payload.get('unavailable'):
            return GuildUnavailableEvent(shard=shard, guild_id=payload['id'])

        guild = self.parse_guild(payload)  # type: ignore
        return GuildCreateEvent(
            shard=shard,
            guild=guild,
            members=[self.parse_member(m, guild.id) for m in payload.get('members', ())],
        )

    def parse_guild_update_event(
        self, shard: Shard, payload: raw.ClientGuildUpdateEvent, /
    ) -> typing.Union[GuildUpdateEvent, GuildUnavailableEvent]:
        """Parses a guild update event.

        Parameters
        ----------
        shard: :class:`Shard`
            The shard the event arrived on.
        payload: Dict[:class:`str`, Any]
            The event payload to parse.

        Returns
        -------
        Union[:class:`GuildUpdateEvent`, :class:`GuildUnavailableEvent`]
            The parsed event. :class:`GuildUnavailableEvent` is returned if the guild is unavailable.
        """
        if payload.get('unavailable'):
            return GuildUnavailableEvent(shard=shard, guild_id=payload['id'])

        return GuildUpdateEvent(
            shard=shard,
            data=self.parse_partial_guild(payload),  # type: ignore
            guild=self.parse_guild(payload),  # type: ignore
        )

    def parse_guild_member_add_event(
        self, shard: Shard, payload: raw.ClientGuildMemberAddEvent, /
    ) -> GuildMemberAddEvent:
        return GuildMemberAddEvent(
            shard=shard,
            member=self.parse_member(payload, payload['guild_id']),
        )

    def parse_guild_member_remove_event(
        self, shard: Shard, payload: raw.ClientGuildMemberRemoveEvent, /
    ) -> GuildMemberRemoveEvent:
        """Parses a guild member remove event.

        Parameters
        ----------
        shard: :class:`Shard`
            The shard the event arrived on.
        payload: Dict[:class:`str`, Any]
            The event payload to parse.

        Returns
        -------
        :class:`GuildMemberRemoveEvent`
            The parsed guild member remove event object.
        """
        guild_id = payload['guild_id']
        user = self.parse_user(payload['user'])

        return GuildMemberRemoveEvent(
            shard=shard,
            guild_id=guild_id,
            user=user,
            member=self.parse_member(payload, guild_id, user=user),  # type: ignore
        )

    def parse_message_create_event(
        self, shard: Shard, payload: raw.ClientMessageCreateEvent, /
    ) -> MessageCreateEvent:
        return MessageCreateEvent(
            shard=shard,
            message=self.parse_message(payload, member=payload.get('member')),
        )


__all__ = ('Parser',)
