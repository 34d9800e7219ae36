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
from urllib.parse import quote

from .core import UndefinedOr, UNDEFINED

HTTPMethod = typing.Literal['GET', 'POST', 'PATCH', 'DELETE', 'PUT']

# Path parameters that get their own ratelimit bucket. Any other parameter is
# left as a placeholder in the ratelimit key.
MAJOR_PARAMETERS: typing.Final[tuple[str, ...]] = ('guild_id', 'channel_id', 'webhook_id')


class _KeepPlaceholders(dict[str, str]):
    __slots__ = ()

    def __missing__(self, key: str) -> str:
        return f'{{{key}}}'


def _quoted(args: dict[str, typing.Any], /) -> dict[str, str]:
    return {name: quote(str(value)) for name, value in args.items()}


class CompiledRoute:
    """A :class:`Route` together with the values for its path parameters.

    Attributes
    ----------
    route: :class:`Route`
        The route that was compiled.
    args: Dict[:class:`str`, Any]
        The path parameters.
    """

    __slots__ = ('route', 'args')

    def __init__(self, route: Route, /, **args: typing.Any) -> None:
        self.route: Route = route
        self.args: dict[str, typing.Any] = args

    def __repr__(self) -> str:
        return f'<CompiledRoute route={self.route!r} args={self.args!r}>'

    def __str__(self) -> str:
        return f'{self.route} {self.args!r}'

    def build(self) -> str:
        """:class:`str`: The request path with every parameter filled in and percent-encoded."""
        return self.route.path.format_map(_quoted(self.args))

    def build_ratelimit_key(self) -> str:
        """:class:`str`: The key used to look up the ratelimit bucket.

        Only :data:`MAJOR_PARAMETERS` are filled in, so requests against different
        users of the same guild share a key.
        """
        major = {name: value for name, value in self.args.items() if name in MAJOR_PARAMETERS}
        return self.route.ratelimit_key_template.format_map(_KeepPlaceholders(_quoted(major)))


class Route:
    """An API endpoint: an HTTP method and a path template.

    Parameters
    ----------
    method: :class:`str`
        The HTTP method.
    path: :class:`str`
        The path, with ``{name}`` placeholders for parameters.
    ratelimit_key_template: Optional[:class:`str`]
        The template for ratelimit keys. Defaults to ``'{method} {path}'``.
        Pass ``None`` to share buckets between methods of the same path.
    """

    __slots__ = (
        'method',
        'path',
        'ratelimit_key_template',
    )

    def __init__(
        self, method: HTTPMethod, path: str, /, *, ratelimit_key_template: UndefinedOr[typing.Optional[str]] = UNDEFINED
    ) -> None:
        self.method: HTTPMethod = method
        self.path: str = path

        if ratelimit_key_template is None:
            self.ratelimit_key_template: str = path
        elif ratelimit_key_template is UNDEFINED:
            self.ratelimit_key_template = f'{method} {path}'
        else:
            self.ratelimit_key_template = ratelimit_key_template

    def __repr__(self) -> str:
        return f'<Route method={self.method!r} path={self.path!r}>'

    def __str__(self) -> str:
        return f'{self.method} {self.path}'

    def compile(self, **args: typing.Any) -> CompiledRoute:
        """:class:`CompiledRoute`: Binds path parameters to this route."""
        return CompiledRoute(self, **args)


GET: typing.Final[HTTPMethod] = 'GET'
POST: typing.Final[HTTPMethod] = 'POST'
PUT: typing.Final[HTTPMethod] = 'PUT'
DELETE: typing.Final[HTTPMethod] = 'DELETE'
PATCH: typing.Final[HTTPMethod] = 'PATCH'


# Channels control
CHANNELS_MESSAGE_FETCH: typing.Final[Route] = Route(GET, '/channels/{channel_id}/messages/{message_id}')
CHANNELS_MESSAGE_SEND: typing.Final[Route] = Route(POST, '/channels/{channel_id}/messages')

# Gateway
GATEWAY_FETCH_BOT: typing.Final[Route] = Route(GET, '/gateway/bot')

# Guilds control
GUILDS_BAN_CREATE: typing.Final[Route] = Route(PUT, '/guilds/{guild_id}/bans/{user_id}')
GUILDS_BAN_FETCH: typing.Final[Route] = Route(GET, '/guilds/{guild_id}/bans/{user_id}')
GUILDS_BAN_REMOVE: typing.Final[Route] = Route(DELETE, '/guilds/{guild_id}/bans/{user_id}')
GUILDS_GUILD_FETCH: typing.Final[Route] = Route(GET, '/guilds/{guild_id}')
GUILDS_MEMBER_EDIT: typing.Final[Route] = Route(PATCH, '/guilds/{guild_id}/members/{user_id}')
GUILDS_MEMBER_EDIT_ME: typing.Final[Route] = Route(PATCH, '/guilds/{guild_id}/members/@me')
GUILDS_MEMBER_FETCH: typing.Final[Route] = Route(GET, '/guilds/{guild_id}/members/{user_id}')
GUILDS_MEMBER_REMOVE: typing.Final[Route] = Route(DELETE, '/guilds/{guild_id}/members/{user_id}')
GUILDS_MEMBER_ROLE_ADD: typing.Final[Route] = Route(PUT, '/guilds/{guild_id}/members/{user_id}/roles/{role_id}')
GUILDS_MEMBER_ROLE_REMOVE: typing.Final[Route] = Route(
    DELETE, '/guilds/{guild_id}/members/{user_id}/roles/{role_id}'
)
GUILDS_ROLES_FETCH: typing.Final[Route] = Route(GET, '/guilds/{guild_id}/roles')

# Users control
USERS_USER_FETCH: typing.Final[Route] = Route(GET, '/users/{user_id}')
USERS_USER_FETCH_ME: typing.Final[Route] = Route(GET, '/users/@me')

__all__ = (
    'HTTPMethod',
    'MAJOR_PARAMETERS',
    'CompiledRoute',
    'Route',
    'GET',
    'POST',
    'PUT',
    'DELETE',
    'PATCH',
    'CHANNELS_MESSAGE_FETCH',
    'CHANNELS_MESSAGE_SEND',
    'GATEWAY_FETCH_BOT',
    'GUILDS_BAN_CREATE',
    'GUILDS_BAN_FETCH',
    'GUILDS_BAN_REMOVE',
    'GUILDS_GUILD_FETCH',
    'GUILDS_MEMBER_EDIT',
    'GUILDS_MEMBER_EDIT_ME',
    'GUILDS_MEMBER_FETCH',
    'GUILDS_MEMBER_REMOVE',
    'GUILDS_MEMBER_ROLE_ADD',
    'GUILDS_MEMBER_ROLE_REMOVE',
    'GUILDS_ROLES_FETCH',
    'USERS_USER_FETCH',
    'USERS_USER_FETCH_ME',
)
