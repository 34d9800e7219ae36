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

from attrs import define, field
from datetime import datetime
import typing

from . import cache as caching
from .base import Base
from .core import UNDEFINED, UndefinedOr, SnowflakeOr, resolve_id
from .enums import ActivityType, Status
from .errors import NoData
from .user import BaseUser, User

if typing.TYPE_CHECKING:
    from collections.abc import Mapping

    from .state import State


@define(slots=True)
class Activity:
    """Represents the game or activity a member is doing."""

    name: str = field(repr=True, kw_only=True)
    """:class:`str`: The activity's name."""

    type: ActivityType = field(repr=True, kw_only=True)
    """:class:`.ActivityType`: The activity's type."""

    url: typing.Optional[str] = field(repr=True, kw_only=True)
    """Optional[:class:`str`]: The stream URL. Only set when :attr:`type` is :attr:`ActivityType.streaming`."""


@define(slots=True)
class BaseRole(Base):
    """Represents a role in a guild known only by its ID."""

    guild_id: str = field(repr=True, kw_only=True)
    """:class:`str`: The guild's ID the role belongs to."""

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other: object, /) -> bool:
        return self is other or isinstance(other, BaseRole) and self.id == other.id

    @property
    def mention(self) -> str:
        """:class:`str`: The role mention."""
        return f'<@&{self.id}>'


@define(slots=True)
class Role(BaseRole):
    """Represents a role in a guild."""

    name: str = field(repr=True, kw_only=True)
    """:class:`str`: The role's name."""

    color: int = field(repr=True, kw_only=True)
    """:class:`int`: The role's color as RGB integer. ``0`` means no color."""

    hoist: bool = field(repr=True, kw_only=True)
    """:class:`bool`: Whether this role should be shown separately on the member sidebar."""

    position: int = field(repr=True, kw_only=True)
    """:class:`int`: The role's position."""

    raw_permissions: int = field(repr=True, kw_only=True)
    """:class:`int`: The role's permissions raw value."""

    managed: bool = field(repr=True, kw_only=True)
    """:class:`bool`: Whether this role is managed by an integration."""

    mentionable: bool = field(repr=True, kw_only=True)
    """:class:`bool`: Whether this role is mentionable."""

    def __str__(self) -> str:
        return self.name


@define(slots=True)
class BaseGuild(Base):
    """Represents a guild."""

    @property
    def members(self) -> Mapping[str, Member]:
        """Mapping[:class:`str`, :class:`.Member`]: The cached members of the guild."""
        cache = self.state.cache
        if cache:
            return cache.get_guild_members_mapping_of(self.id, caching._USER_REQUEST) or {}
        return {}

    def get_member(self, user_id: str, /) -> typing.Optional[Member]:
        """Retrieves a guild member from cache.

        Parameters
        ----------
        user_id: :class:`str`
            The user's ID.

        Returns
        -------
        Optional[:class:`.Member`]
            The member or ``None`` if not found.
        """
        cache = self.state.cache
        if cache:
            return cache.get_guild_member(self.id, user_id, caching._USER_REQUEST)

    async def fetch(self) -> Guild:
        """|coro|

        Fetches the guild from the API.
        """
        return await self.state.http.get_guild(self.id)

    async def fetch_member(self, member: SnowflakeOr[BaseUser], /) -> Member:
        """|coro|

        Fetches a member of this guild.

        Parameters
        ----------
        member: Union[:class:`str`, :class:`.BaseUser`]
            The user to fetch the membership of.
        """
        return await self.state.http.get_member(self.id, member)

    async def ban(
        self,
        user: SnowflakeOr[typing.Union[BaseUser, BaseMember]],
        *,
        delete_message_days: typing.Optional[int] = None,
        reason: typing.Optional[str] = None,
    ) -> None:
        """|coro|

        Bans a user from the guild.

        You must have ``BAN_MEMBERS`` permission to do this.
        """
        await self.state.http.ban(self.id, user, delete_message_days=delete_message_days, reason=reason)

    async def unban(self, user: SnowflakeOr[BaseUser], *, reason: typing.Optional[str] = None) -> None:
        """|coro|

        Unbans a user from the guild.
        """
        await self.state.http.unban(self.id, user, reason=reason)

    async def kick(
        self, member: SnowflakeOr[typing.Union[BaseUser, BaseMember]], *, reason: typing.Optional[str] = None
    ) -> None:
        """|coro|

        Removes a member from the guild.
        """
        await self.state.http.kick_member(self.id, member, reason=reason)


@define(slots=True)
class PartialGuild(BaseGuild):
    """Represents a partial guild.

    Unmodified fields will have :data:`.UNDEFINED` value.
    """

    name: UndefinedOr[str] = field(repr=True, kw_only=True)
    """UndefinedOr[:class:`str`]: The new guild's name."""

    owner_id: UndefinedOr[str] = field(repr=True, kw_only=True)
    """UndefinedOr[:class:`str`]: The new guild owner's ID."""

    internal_icon: UndefinedOr[typing.Optional[str]] = field(repr=True, kw_only=True)
    """UndefinedOr[Optional[:class:`str`]]: The new guild's icon hash."""

    description: UndefinedOr[typing.Optional[str]] = field(repr=True, kw_only=True)
    """UndefinedOr[Optional[:class:`str`]]: The new guild's description."""

    member_count: UndefinedOr[int] = field(repr=True, kw_only=True)
    """UndefinedOr[:class:`int`]: The new guild's member count."""

    roles: UndefinedOr[dict[str, Role]] = field(repr=True, kw_only=True)
    """UndefinedOr[Dict[:class:`str`, :class:`.Role`]]: The new guild's roles."""


@define(slots=True)
class Guild(BaseGuild):
    """Represents a guild."""

    name: str = field(repr=True, kw_only=True)
    """:class:`str`: The guild's name."""

    owner_id: str = field(repr=True, kw_only=True)
    """:class:`str`: The user's ID who owns this guild."""

    internal_icon: typing.Optional[str] = field(repr=True, kw_only=True)
    """Optional[:class:`str`]: The guild's icon hash."""

    description: typing.Optional[str] = field(repr=True, kw_only=True)
    """Optional[:class:`str`]: The guild's description."""

    member_count: int = field(repr=True, kw_only=True)
    """:class:`int`: The guild's member count. Decremented when a member leaves."""

    roles: dict[str, Role] = field(repr=True, kw_only=True)
    """Dict[:class:`str`, :class:`.Role`]: The guild's roles, keyed by ID."""

    unavailable: bool = field(repr=True, kw_only=True, default=False)
    """:class:`bool`: Whether the guild is unavailable due to an outage."""

    def locally_update(self, data: PartialGuild, /) -> None:
        """Locally updates guild with provided data.

        .. warning::
            This is called by library internally to keep cache up to date.
        """
        if data.name is not UNDEFINED:
            self.name = data.name
        if data.owner_id is not UNDEFINED:
            self.owner_id = data.owner_id
        if data.internal_icon is not UNDEFINED:
            self.internal_icon = data.internal_icon
        if data.description is not UNDEFINED:
            self.description = data.description
        if data.member_count is not UNDEFINED:
            self.member_count = data.member_count
        if data.roles is not UNDEFINED:
            self.roles = data.roles
        self.unavailable = False

    def get_role(self, role_id: str, /) -> typing.Optional[Role]:
        """Optional[:class:`.Role`]: Retrieves a guild role."""
        return self.roles.get(role_id)

    @property
    def icon_url(self) -> typing.Optional[str]:
        """Optional[:class:`str`]: The URL to the guild's icon."""
        if self.internal_icon is None:
            return None
        ext = 'gif' if self.internal_icon.startswith('a_') else 'png'
        return f'https://cdn.discordapp.com/icons/{self.id}/{self.internal_icon}.{ext}'

    @property
    def me(self) -> typing.Optional[Member]:
        """Optional[:class:`.Member`]: The current user's membership in this guild, if cached."""
        me = self.state.me
        if me:
            return self.get_member(me.id)

    def __str__(self) -> str:
        return self.name


@define(slots=True)
class Ban:
    """Represents a guild ban."""

    guild_id: str = field(repr=False, kw_only=True)
    """:class:`str`: The guild's ID."""

    user_id: str = field(repr=False, kw_only=True)
    """:class:`str`: The user's ID that was banned."""

    reason: typing.Optional[str] = field(repr=False, kw_only=True)
    """Optional[:class:`str`]: The ban's reason."""

    user: typing.Optional[User] = field(repr=False, kw_only=True)
    """Optional[:class:`.User`]: The user that was banned."""

    def __hash__(self) -> int:
        return hash((self.guild_id, self.user_id))

    def __eq__(self, other: object, /) -> bool:
        return (
            self is other
            or isinstance(other, Ban)
            and (self.guild_id == other.guild_id and self.user_id == other.user_id)
        )


@define(slots=True)
class BaseMember:
    """Represents a user's membership in a :class:`.Guild`, keyed by guild and user IDs."""

    state: State = field(repr=False, kw_only=True)
    """:class:`.State`: State that controls this member."""

    guild_id: str = field(repr=True, kw_only=True)
    """:class:`str`: The guild's ID the member in."""

    _user: typing.Union[User, str] = field(repr=True, kw_only=True, alias='_user')

    def get_user(self) -> typing.Optional[User]:
        """Optional[:class:`.User`]: Grabs the user from cache."""
        if isinstance(self._user, User):
            return self._user
        cache = self.state.cache
        if not cache:
            return None
        return cache.get_user(self._user, caching._USER_REQUEST)

    def get_guild(self) -> typing.Optional[Guild]:
        """Optional[:class:`.Guild`]: Grabs the guild from cache."""
        cache = self.state.cache
        if not cache:
            return None
        return cache.get_guild(self.guild_id, caching._USER_REQUEST)

    def __eq__(self, other: object, /) -> bool:
        return (
            self is other
            or (isinstance(other, BaseMember) and self.id == other.id and self.guild_id == other.guild_id)
            or isinstance(other, BaseUser)
            and self.id == other.id
        )

    def __hash__(self) -> int:
        return hash((self.guild_id, self.id))

    def __str__(self) -> str:
        return self.mention

    @property
    def id(self) -> str:
        """:class:`str`: The member's user ID."""
        return self._user.id if isinstance(self._user, User) else self._user

    @property
    def user(self) -> User:
        """:class:`.User`: The member user."""
        user = self.get_user()
        if user is None:
            raise NoData(self.id, 'member user')
        return user

    @property
    def guild(self) -> Guild:
        """:class:`.Guild`: The guild the member is in."""
        guild = self.get_guild()
        if guild is None:
            raise NoData(self.guild_id, 'guild')
        return guild

    @property
    def mention(self) -> str:
        """:class:`str`: The member mention."""
        return f'<@{self.id}>'

    @property
    def name(self) -> typing.Optional[str]:
        """Optional[:class:`str`]: The member's username."""
        user = self.get_user()
        if user is not None:
            return user.name

    @property
    def discriminator(self) -> typing.Optional[str]:
        """Optional[:class:`str`]: The member's discriminator."""
        user = self.get_user()
        if user is not None:
            return user.discriminator

    def is_me(self) -> bool:
        """:class:`bool`: Whether this member is the current user."""
        me = self.state.me
        return me is not None and me.id == self.id

    async def ban(
        self, *, delete_message_days: typing.Optional[int] = None, reason: typing.Optional[str] = None
    ) -> Ban:
        """|coro|

        Bans the member from the guild.

        You must have ``BAN_MEMBERS`` permission to do this.

        Parameters
        ----------
        delete_message_days: Optional[:class:`int`]
            The number of days worth of messages to delete from the user. Can be between 0 and 7.
        reason: Optional[:class:`str`]
            The reason shown in the audit log.

        Raises
        ------
        :class:`Forbidden`
            You do not have the proper permissions to ban.
        :class:`HTTPException`
            Banning failed.

        Returns
        -------
        :class:`.Ban`
            The ban, built from the cached user and this member's guild ID.
        """
        await self.state.http.ban(self.guild_id, self.id, delete_message_days=delete_message_days, reason=reason)
        return Ban(
            guild_id=self.guild_id,
            user_id=self.id,
            reason=reason,
            user=self.get_user(),
        )

    async def kick(self, *, reason: typing.Optional[str] = None) -> None:
        """|coro|

        Removes the member from the guild.

        You must have ``KICK_MEMBERS`` permission to do this.
        """
        await self.state.http.kick_member(self.guild_id, self.id, reason=reason)

    async def set_nickname(
        self, nick: typing.Optional[str] = None, *, reason: typing.Optional[str] = None
    ) -> typing.Optional[Member]:
        """|coro|

        Changes the member's nickname.

        Parameters
        ----------
        nick: Optional[:class:`str`]
            The new nickname. ``None`` removes it.
        reason: Optional[:class:`str`]
            The reason shown in the audit log.

        Raises
        ------
        :class:`Forbidden`
            You do not have the proper permissions to change nicknames.
        :class:`HTTPException`
            Changing the nickname failed.

        Returns
        -------
        Optional[:class:`.Member`]
            The member as returned by the API, or ``None`` if the API responded with no content.
        """
        if nick is None:
            nick = ''

        if self.is_me():
            return await self.state.http.edit_my_member(self.guild_id, nick=nick, reason=reason)
        return await self.state.http.edit_member(self.guild_id, self.id, nick=nick, reason=reason)

    async def move_member(self, channel: SnowflakeOr[Base], *, reason: typing.Optional[str] = None) -> None:
        """|coro|

        Moves the member to another voice channel.

        .. note::
            The API accepts the request even if the member ends up not being moved,
            so this completes on any successful response without verifying the move.

        Parameters
        ----------
        channel: Union[:class:`str`, :class:`.Base`]
            The voice channel to move the member to.
        reason: Optional[:class:`str`]
            The reason shown in the audit log.
        """
        await self.state.http.move_member(self.guild_id, self.id, channel, reason=reason)

    async def edit(
        self,
        *,
        nick: UndefinedOr[typing.Optional[str]] = UNDEFINED,
        roles: UndefinedOr[list[SnowflakeOr[BaseRole]]] = UNDEFINED,
        mute: UndefinedOr[bool] = UNDEFINED,
        deaf: UndefinedOr[bool] = UNDEFINED,
        channel: UndefinedOr[typing.Optional[SnowflakeOr[Base]]] = UNDEFINED,
        reason: typing.Optional[str] = None,
    ) -> typing.Optional[Member]:
        """|coro|

        Edits the member.

        Parameters
        ----------
        nick: UndefinedOr[Optional[:class:`str`]]
            The new nickname. ``None`` removes it.
        roles: UndefinedOr[List[Union[:class:`str`, :class:`.BaseRole`]]]
            The roles to replace the member's roles with.
        mute: UndefinedOr[:class:`bool`]
            Whether the member is muted in voice channels.
        deaf: UndefinedOr[:class:`bool`]
            Whether the member is deafened in voice channels.
        channel: UndefinedOr[Optional[Union[:class:`str`, :class:`.Base`]]]
            The voice channel to move to. ``None`` disconnects the member.
        reason: Optional[:class:`str`]
            The reason shown in the audit log.

        Returns
        -------
        Optional[:class:`.Member`]
            The updated member, or ``None`` if the API responded with no content.
        """
        return await self.state.http.edit_member(
            self.guild_id,
            self.id,
            nick=nick,
            roles=roles,
            mute=mute,
            deaf=deaf,
            channel=channel,
            reason=reason,
        )


@define(slots=True)
class Member(BaseMember):
    """Represents a user's membership in a :class:`.Guild`."""

    role_ids: list[str] = field(repr=True, kw_only=True)
    """List[:class:`str`]: The IDs of the member's roles. Each ID appears at most once."""

    deaf: bool = field(repr=True, kw_only=True)
    """:class:`bool`: Whether the member is deafened in voice channels."""

    mute: bool = field(repr=True, kw_only=True)
    """:class:`bool`: Whether the member is muted in voice channels."""

    joined_at: typing.Optional[datetime] = field(repr=True, kw_only=True)
    """Optional[:class:`~datetime.datetime`]: When the member joined the guild. May be ``None`` in removal events."""

    nick: typing.Optional[str] = field(repr=True, kw_only=True)
    """Optional[:class:`str`]: The member's nick."""

    status: typing.Optional[Status] = field(repr=True, kw_only=True, default=None)
    """Optional[:class:`.Status`]: The member's status, if known."""

    game: typing.Optional[Activity] = field(repr=True, kw_only=True, default=None)
    """Optional[:class:`.Activity`]: The member's current game, if any."""

    @property
    def roles(self) -> list[Role]:
        """List[:class:`.Role`]: The member's roles, resolved through the guild's roles.

        Roles the guild does not know about are omitted.
        """
        guild = self.get_guild()
        if guild is None:
            return []
        return [role for role in guild.roles.values() if role.id in self.role_ids]

    @property
    def display_name(self) -> typing.Optional[str]:
        """Optional[:class:`str`]: The member's nick if set, otherwise the user's display name."""
        if self.nick:
            return self.nick
        user = self.get_user()
        if user is not None:
            return user.display_name

    async def add_role(self, role: SnowflakeOr[BaseRole], /) -> bool:
        """|coro|

        Adds a role to the member locally.

        This only updates the cached member and makes no API request.
        Use :meth:`assign_role` to persist the change.

        Parameters
        ----------
        role: Union[:class:`str`, :class:`.BaseRole`]
            The role to add.

        Returns
        -------
        :class:`bool`
            ``False`` if the member already had the role, ``True`` otherwise.
        """
        role_id = resolve_id(role)
        if role_id in self.role_ids:
            return False
        self.role_ids.append(role_id)
        return True

    async def remove_role(self, role: SnowflakeOr[BaseRole], /) -> None:
        """|coro|

        Removes a role from the member locally. Does nothing if the member does not have the role.

        This only updates the cached member and makes no API request.
        Use :meth:`unassign_role` to persist the change.
        """
        role_id = resolve_id(role)
        try:
            self.role_ids.remove(role_id)
        except ValueError:
            pass

    async def assign_role(self, role: SnowflakeOr[BaseRole], /, *, reason: typing.Optional[str] = None) -> bool:
        """|coro|

        Assigns a role to the member through the API, then adds it locally.

        You must have ``MANAGE_ROLES`` permission to do this.

        Returns
        -------
        :class:`bool`
            ``False`` if the member already had the role cached.
        """
        await self.state.http.add_role_to_member(self.guild_id, self.id, role, reason=reason)
        return await self.add_role(role)

    async def unassign_role(self, role: SnowflakeOr[BaseRole], /, *, reason: typing.Optional[str] = None) -> None:
        """|coro|

        Removes a role from the member through the API, then removes it locally.
        """
        await self.state.http.remove_role_from_member(self.guild_id, self.id, role, reason=reason)
        await self.remove_role(role)


__all__ = (
    'Activity',
    'BaseRole',
    'Role',
    'BaseGuild',
    'PartialGuild',
    'Guild',
    'Ban',
    'BaseMember',
    'Member',
)
