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
import typing

from .base import Base

if typing.TYPE_CHECKING:
    from .guild import Member


@define(slots=True)
class BaseUser(Base):
    """Represents a user."""

    def __eq__(self, other: object, /) -> bool:
        from .guild import BaseMember

        return self is other or isinstance(other, (BaseUser, BaseMember)) and self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def mention(self) -> str:
        """:class:`str`: The user mention."""
        return f'<@{self.id}>'

    async def fetch(self) -> User:
        """|coro|

        Fetches the user from the API.

        Returns
        -------
        :class:`User`
            The fetched user.
        """
        return await self.state.http.get_user(self.id)

    async def fetch_member(self, guild_id: str, /) -> Member:
        """|coro|

        Fetches this user's membership in a guild.
        """
        return await self.state.http.get_member(guild_id, self.id)


@define(slots=True)
class User(BaseUser):
    """Represents a user on the platform."""

    name: str = field(repr=True, kw_only=True)
    """:class:`str`: The username of the user."""

    discriminator: str = field(repr=True, kw_only=True)
    """:class:`str`: The discriminator of the user. ``'0'`` for users on unique usernames."""

    global_name: typing.Optional[str] = field(repr=True, kw_only=True)
    """Optional[:class:`str`]: The user's display name."""

    internal_avatar: typing.Optional[str] = field(repr=True, kw_only=True)
    """Optional[:class:`str`]: The avatar hash of the user."""

    bot: bool = field(repr=True, kw_only=True)
    """:class:`bool`: Whether the user is a bot."""

    def __str__(self) -> str:
        return self.tag

    @property
    def tag(self) -> str:
        """:class:`str`: The tag of the user.

        Users that migrated to unique usernames have no discriminator,
        so their tag is just the name.
        """
        if self.discriminator in ('0', '0000', ''):
            return self.name
        return f'{self.name}#{self.discriminator}'

    @property
    def display_name(self) -> str:
        """:class:`str`: The user's global name if set, otherwise the username."""
        return self.global_name or self.name

    @property
    def avatar_url(self) -> typing.Optional[str]:
        """Optional[:class:`str`]: The URL to the user's avatar."""
        if self.internal_avatar is None:
            return None
        ext = 'gif' if self.internal_avatar.startswith('a_') else 'png'
        return f'https://cdn.discordapp.com/avatars/{self.id}/{self.internal_avatar}.{ext}'


__all__ = (
    'BaseUser',
    'User',
)
