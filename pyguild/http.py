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
import asyncio
from inspect import isawaitable
import logging
import time
import typing

import aiohttp
from multidict import CIMultiDict

from . import routes, utils
from .core import (
    UNDEFINED,
    UndefinedOr,
    SnowflakeOr,
    resolve_id,
    __version__ as version,
)
from .errors import (
    HTTPException,
    Unauthorized,
    Forbidden,
    NotFound,
    Ratelimited,
    InternalServerError,
    BadGateway,
)

if typing.TYPE_CHECKING:
    from collections.abc import Callable

    from . import raw
    from .base import Base
    from .guild import BaseGuild, Guild, BaseRole, Role, BaseMember, Member, Ban
    from .message import BaseMessage, Message, MessageBuilder, Multipart
    from .state import State
    from .user import BaseUser, User


DEFAULT_HTTP_USER_AGENT = f'DiscordBot (https://github.com/pyguild/pyguild, {version})'


_L = logging.getLogger(__name__)
_STATUS_TO_ERRORS = {
    401: Unauthorized,
    403: Forbidden,
    404: NotFound,
    429: Ratelimited,
    500: InternalServerError,
}


def _parse_bucket_headers(headers: typing.Mapping[str, str], /) -> typing.Optional[tuple[str, int, float]]:
    try:
        bucket = headers['X-RateLimit-Bucket']
    except KeyError:
        return None
    return bucket, int(headers['X-RateLimit-Remaining']), float(headers['X-RateLimit-Reset-After'])


class RateLimit(ABC):
    """The known state of a ratelimit bucket."""

    __slots__ = ()

    bucket: str
    remaining: int

    @abstractmethod
    async def block(self) -> None:
        """|coro|

        Takes a request from the bucket, sleeping until the bucket resets if it is exhausted.
        """
        ...

    @abstractmethod
    def is_expired(self) -> bool:
        """:class:`bool`: Whether the bucket has reset since the last response."""
        ...

    @abstractmethod
    def on_response(self, route: routes.CompiledRoute, response: aiohttp.ClientResponse, /) -> None:
        """Updates the bucket from the headers of a response to one of its routes."""
        ...


class RateLimitBlocker(ABC):
    """Serializes requests to a route until its bucket is known."""

    __slots__ = ()

    async def increment(self) -> None:
        """|coro|

        Called before a request is sent.
        """

    async def decrement(self) -> None:
        """|coro|

        Called once the request got a response, or failed to get one.
        """


class RateLimiter(ABC):
    """Decides when requests may be sent."""

    __slots__ = ()

    @abstractmethod
    def fetch_ratelimit_for(self, route: routes.CompiledRoute, path: str, /) -> typing.Optional[RateLimit]:
        """Optional[:class:`.RateLimit`]: The bucket of the route, or ``None`` if it is not known yet."""
        ...

    @abstractmethod
    def fetch_blocker_for(self, route: routes.CompiledRoute, path: str, /) -> RateLimitBlocker:
        """:class:`.RateLimitBlocker`: The blocker used while the route's bucket is unknown."""
        ...

    @abstractmethod
    async def on_response(self, route: routes.CompiledRoute, path: str, response: aiohttp.ClientResponse, /) -> None:
        """|coro|

        Called with every response, successful or not.
        """
        ...

    @abstractmethod
    def on_bucket_update(
        self, response: aiohttp.ClientResponse, route: routes.CompiledRoute, old_bucket: str, new_bucket: str, /
    ) -> None:
        """Called when a route was moved to another bucket.

        Parameters
        ----------
        response: :class:`aiohttp.ClientResponse`
            The response carrying the new bucket.
        route: :class:`~routes.CompiledRoute`
            The moved route.
        old_bucket: :class:`str`
            The bucket the route was in.
        new_bucket: :class:`str`
            The bucket the route is in now.
        """
        ...


class DefaultRateLimit(RateLimit):
    __slots__ = ('_rate_limiter', 'bucket', 'remaining', '_resets_at')

    def __init__(self, rate_limiter: RateLimiter, bucket: str, /, *, remaining: int, reset_after: float) -> None:
        self._rate_limiter: RateLimiter = rate_limiter
        self.bucket: str = bucket
        self.remaining: int = remaining
        self._resets_at: float = time.monotonic() + reset_after

    def reset_in(self) -> float:
        """:class:`float`: Seconds until the bucket resets. Negative once it did."""
        return self._resets_at - time.monotonic()

    @utils.copy_doc(RateLimit.block)
    async def block(self) -> None:
        self.remaining -= 1
        if self.remaining > 0:
            return

        delay = self.reset_in()
        if delay > 0:
            _L.info('Bucket %s is exhausted, waiting %.3f seconds for it to reset', self.bucket, delay)
            await asyncio.sleep(delay)

    @utils.copy_doc(RateLimit.is_expired)
    def is_expired(self) -> bool:
        return self.reset_in() <= 0

    @utils.copy_doc(RateLimit.on_response)
    def on_response(self, route: routes.CompiledRoute, response: aiohttp.ClientResponse, /) -> None:
        parsed = _parse_bucket_headers(response.headers)
        if parsed is None:
            return

        bucket, self.remaining, reset_after = parsed
        self._resets_at = time.monotonic() + reset_after

        if bucket != self.bucket:
            _L.warning('%s moved from bucket %s to %s', route.route, self.bucket, bucket)
            self._rate_limiter.on_bucket_update(response, route, self.bucket, bucket)
            self.bucket = bucket


class DefaultRateLimitBlocker(RateLimitBlocker):
    __slots__ = ('_lock',)

    def __init__(self) -> None:
        self._lock: asyncio.Lock = asyncio.Lock()

    async def increment(self) -> None:
        await self._lock.acquire()

    async def decrement(self) -> None:
        self._lock.release()


class _NoopRateLimitBlocker(RateLimitBlocker):
    __slots__ = ()


class DefaultRateLimiter(RateLimiter):
    """The default rate limiter.

    Buckets are learned from ``X-RateLimit-Bucket`` response headers. Until the
    bucket of a route is known, requests to it are sent one at a time.

    Parameters
    ----------
    no_concurrent_block: :class:`bool`
        Whether to send requests to routes with unknown buckets concurrently. Defaults to ``False``.
    no_expired_ratelimit_remove: :class:`bool`
        Whether to keep buckets around after they reset. Defaults to ``False``.
    """

    __slots__ = (
        '_blockers',
        '_buckets',
        '_keep_expired',
        '_noop_blocker',
        '_route_buckets',
        '_serialize_unknown',
    )

    def __init__(
        self,
        *,
        no_concurrent_block: bool = False,
        no_expired_ratelimit_remove: bool = False,
    ) -> None:
        self._serialize_unknown: bool = not no_concurrent_block
        self._keep_expired: bool = no_expired_ratelimit_remove
        self._noop_blocker: RateLimitBlocker = _NoopRateLimitBlocker()
        self._blockers: dict[str, RateLimitBlocker] = {}
        # bucket -> ratelimit
        self._buckets: dict[str, RateLimit] = {}
        # ratelimit key -> bucket
        self._route_buckets: dict[str, str] = {}

    def get_ratelimit_key_for(self, route: routes.CompiledRoute, /) -> str:
        """:class:`str`: The key grouping requests that share a bucket, such as requests to the same guild."""
        return route.build_ratelimit_key()

    @utils.copy_doc(RateLimiter.fetch_ratelimit_for)
    def fetch_ratelimit_for(self, route: routes.CompiledRoute, path: str, /) -> typing.Optional[RateLimit]:
        if not self._keep_expired:
            self.try_remove_expired_ratelimits()

        bucket = self._route_buckets.get(self.get_ratelimit_key_for(route))
        if bucket is None:
            return None
        return self._buckets.get(bucket)

    @utils.copy_doc(RateLimiter.fetch_blocker_for)
    def fetch_blocker_for(self, route: routes.CompiledRoute, path: str, /) -> RateLimitBlocker:
        if not self._serialize_unknown:
            return self._noop_blocker

        key = self.get_ratelimit_key_for(route)
        blocker = self._blockers.get(key)
        if blocker is None:
            blocker = self._blockers[key] = DefaultRateLimitBlocker()
        return blocker

    @utils.copy_doc(RateLimiter.on_response)
    async def on_response(self, route: routes.CompiledRoute, path: str, response: aiohttp.ClientResponse, /) -> None:
        parsed = _parse_bucket_headers(response.headers)
        if parsed is None:
            return

        bucket, remaining, reset_after = parsed
        ratelimit = self._buckets.get(bucket)
        if ratelimit is not None:
            ratelimit.on_response(route, response)
            return

        _L.debug('%s %s is in bucket %s', route.route.method, path, bucket)
        self._buckets[bucket] = DefaultRateLimit(self, bucket, remaining=remaining, reset_after=reset_after)
        self._route_buckets[self.get_ratelimit_key_for(route)] = bucket

    @utils.copy_doc(RateLimiter.on_bucket_update)
    def on_bucket_update(
        self, response: aiohttp.ClientResponse, route: routes.CompiledRoute, old_bucket: str, new_bucket: str, /
    ) -> None:
        ratelimit = self._buckets.pop(old_bucket, None)
        if ratelimit is not None:
            self._buckets[new_bucket] = ratelimit
        self._route_buckets[self.get_ratelimit_key_for(route)] = new_bucket

    def try_remove_expired_ratelimits(self) -> None:
        """Forgets buckets that have reset, along with the routes pointing to them."""
        expired = {bucket for bucket, ratelimit in self._buckets.items() if ratelimit.is_expired()}
        if not expired:
            return

        for bucket in expired:
            del self._buckets[bucket]

        stale = [key for key, bucket in self._route_buckets.items() if bucket not in self._buckets]
        for key in stale:
            del self._route_buckets[key]


class HTTPClient:
    """The REST API client.

    Attributes
    ----------
    bot: :class:`bool`
        Whether :attr:`token` belongs to a bot account.
    max_retries: :class:`int`
        How many attempts a request gets when the API responds with 429 or 502.
    rate_limiter: Optional[:class:`RateLimiter`]
        The rate limiter. ``None`` disables ratelimit handling.
    state: :class:`State`
        The state models are attached to.
    token: :class:`str`
        The token requests are authenticated with. Empty until the client logs in.
    user_agent: :class:`str`
        The ``User-Agent`` header sent with requests.
    """

    __slots__ = (
        '_base',
        '_session',
        'bot',
        'max_retries',
        'rate_limiter',
        'state',
        'token',
        'user_agent',
    )

    def __init__(
        self,
        token: typing.Optional[str] = None,
        *,
        base: typing.Optional[str] = None,
        bot: bool = True,
        max_retries: typing.Optional[int] = None,
        rate_limiter: UndefinedOr[
            typing.Optional[typing.Union[Callable[[HTTPClient], typing.Optional[RateLimiter]], RateLimiter]]
        ] = UNDEFINED,
        state: State,
        session: typing.Union[utils.MaybeAwaitableFunc[[HTTPClient], aiohttp.ClientSession], aiohttp.ClientSession],
        user_agent: typing.Optional[str] = None,
    ) -> None:
        if base is None:
            base = 'https://discord.com/api/v10'
        self._base: str = base.rstrip('/')
        self.bot: bool = bot
        self._session: typing.Union[
            utils.MaybeAwaitableFunc[[HTTPClient], aiohttp.ClientSession], aiohttp.ClientSession
        ] = session
        self.max_retries: int = max_retries or 3

        if rate_limiter is UNDEFINED:
            self.rate_limiter: typing.Optional[RateLimiter] = DefaultRateLimiter()
        elif callable(rate_limiter):
            self.rate_limiter = rate_limiter(self)
        else:
            self.rate_limiter = rate_limiter

        self.state: State = state
        self.token: str = token or ''
        self.user_agent: str = user_agent or DEFAULT_HTTP_USER_AGENT

    @property
    def base(self) -> str:
        """:class:`str`: The API URL routes are appended to."""
        return self._base

    def url_for(self, route: routes.CompiledRoute, /) -> str:
        """:class:`str`: The full URL of a route."""
        return self._base + route.build()

    def with_credentials(self, token: str, *, bot: bool = True) -> None:
        """Switches the token requests are authenticated with.

        Parameters
        ----------
        token: :class:`str`
            The new token.
        bot: :class:`bool`
            Whether the token belongs to a bot account. Defaults to ``True``.
        """
        self.token = token
        self.bot = bot

    def add_headers(
        self,
        headers: CIMultiDict[typing.Any],
        route: routes.CompiledRoute,
        /,
        *,
        accept_json: bool = True,
        bot: UndefinedOr[bool] = UNDEFINED,
        json_body: bool = False,
        reason: typing.Optional[str] = None,
        token: UndefinedOr[typing.Optional[str]] = UNDEFINED,
        user_agent: UndefinedOr[typing.Optional[str]] = UNDEFINED,
    ) -> utils.MaybeAwaitable[None]:
        if accept_json:
            headers['Accept'] = 'application/json'

        if json_body:
            headers['Content-Type'] = 'application/json'

        if bot is UNDEFINED:
            bot = self.bot

        if token is UNDEFINED:
            token = self.token

        if token:
            headers['Authorization'] = f'Bot {token}' if bot else token

        if user_agent is UNDEFINED:
            user_agent = self.user_agent

        if user_agent is not None:
            headers['User-Agent'] = user_agent

        if reason:
            headers['X-Audit-Log-Reason'] = utils.quote_reason(reason)

    async def send_request(
        self,
        session: aiohttp.ClientSession,
        /,
        *,
        method: str,
        url: str,
        headers: CIMultiDict[typing.Any],
        **kwargs,
    ) -> aiohttp.ClientResponse:
        return await session.request(
            method,
            url,
            headers=headers,
            **kwargs,
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        session = self._session
        if callable(session):
            session = await utils.maybe_coroutine(session, self)
            if callable(session):
                raise TypeError(f'Session factory returned {type(session)!r} instead of aiohttp.ClientSession')
            # The factory is called once
            self._session = session
        return session

    async def _acquire(self, route: routes.CompiledRoute, path: str, /) -> typing.Optional[RateLimitBlocker]:
        rate_limiter = self.rate_limiter
        if rate_limiter is None:
            return None

        blocker = None
        rate_limit = rate_limiter.fetch_ratelimit_for(route, path)
        if rate_limit is None:
            blocker = rate_limiter.fetch_blocker_for(route, path)
            await blocker.increment()
            # Another request could have learned the bucket while this one waited
            rate_limit = rate_limiter.fetch_ratelimit_for(route, path)

        if rate_limit is not None:
            await rate_limit.block()
        return blocker

    async def raw_request(
        self,
        route: routes.CompiledRoute,
        *,
        accept_json: bool = True,
        bot: UndefinedOr[bool] = UNDEFINED,
        json: UndefinedOr[typing.Any] = UNDEFINED,
        multipart: typing.Optional[Multipart] = None,
        reason: typing.Optional[str] = None,
        token: UndefinedOr[typing.Optional[str]] = UNDEFINED,
        user_agent: UndefinedOr[str] = UNDEFINED,
        **kwargs,
    ) -> aiohttp.ClientResponse:
        """|coro|

        Sends a request, waiting for ratelimits and retrying when the API asks to.

        Responses with ``429`` and ``502`` status codes are retried up to :attr:`max_retries` times,
        and responses with ``525`` status code are always retried.

        Parameters
        ----------
        route: :class:`~routes.CompiledRoute`
            The route to request.
        accept_json: :class:`bool`
            Whether to send ``Accept: application/json``. Defaults to ``True``.
        bot: UndefinedOr[:class:`bool`]
            Whether the token belongs to a bot account. Defaults to :attr:`bot`.
        json: UndefinedOr[Any]
            The JSON body.
        multipart: Optional[:class:`.Multipart`]
            The multipart body. Encoded again for every attempt, since form data can only be sent once.
        reason: Optional[:class:`str`]
            The reason shown in the audit log.
        token: UndefinedOr[Optional[:class:`str`]]
            The token to authenticate with. Defaults to :attr:`token`.
        user_agent: UndefinedOr[:class:`str`]
            The ``User-Agent`` header. Defaults to :attr:`user_agent`.
        \\*\\*kwargs
            Passed to :meth:`aiohttp.ClientSession.request`.

        Raises
        ------
        :class:`HTTPException`
            The API responded with an error.

        Returns
        -------
        :class:`aiohttp.ClientResponse`
            The response. The caller must release it.
        """
        headers: CIMultiDict[str] = CIMultiDict(kwargs.pop('headers', ()))

        r = self.add_headers(
            headers,
            route,
            accept_json=accept_json,
            bot=bot,
            json_body=json is not UNDEFINED,
            reason=reason,
            token=token,
            user_agent=user_agent,
        )
        if isawaitable(r):
            await r

        if json is not UNDEFINED:
            kwargs['data'] = utils.to_json(json)

        method = route.route.method
        path = route.build()
        url = self._base + path
        retries = 0

        while True:
            if multipart is not None:
                kwargs['data'] = multipart.to_form_data()
            blocker = await self._acquire(route, path)
            _L.debug('%s %s with %s', method, path, kwargs.get('data'))

            try:
                response = await self.send_request(
                    await self._get_session(),
                    method=method,
                    url=url,
                    headers=headers,
                    **kwargs,
                )
            except OSError as exc:
                if blocker is not None:
                    await blocker.decrement()
                # Connection reset by peer
                if exc.errno in (54, 10054):
                    await asyncio.sleep(1.5)
                    continue
                raise

            if self.rate_limiter is not None:
                await self.rate_limiter.on_response(route, path, response)
            if blocker is not None:
                await blocker.decrement()

            status = response.status
            if status < 400:
                return response

            _L.debug('%s %s responded with %i', method, path, status)
            data = await utils._json_or_text(response)
            response.release()

            if status == 525:
                await asyncio.sleep(1)
                continue

            retries += 1
            if retries < self.max_retries:
                if status == 502:
                    continue
                if status == 429:
                    retry_after = data.get('retry_after', 1) if isinstance(data, dict) else 1
                    _L.debug('Ratelimited on %s %s, retrying in %.3f seconds', method, path, retry_after)
                    await asyncio.sleep(retry_after)
                    continue

            if status == 502:
                raise BadGateway(response, data)
            raise _STATUS_TO_ERRORS.get(status, HTTPException)(response, data)

    async def request(
        self,
        route: routes.CompiledRoute,
        *,
        accept_json: bool = True,
        bot: UndefinedOr[bool] = UNDEFINED,
        json: UndefinedOr[typing.Any] = UNDEFINED,
        log: bool = True,
        multipart: typing.Optional[Multipart] = None,
        reason: typing.Optional[str] = None,
        token: UndefinedOr[typing.Optional[str]] = UNDEFINED,
        user_agent: UndefinedOr[str] = UNDEFINED,
        **kwargs,
    ) -> typing.Any:
        """|coro|

        Same as :meth:`raw_request`, but reads the response body.

        Parameters
        ----------
        log: :class:`bool`
            Whether to log the response body. Defaults to ``True``.

        Returns
        -------
        Any
            The decoded JSON body, or the text if the response is not JSON.
        """
        response = await self.raw_request(
            route,
            accept_json=accept_json,
            bot=bot,
            json=json,
            multipart=multipart,
            reason=reason,
            token=token,
            user_agent=user_agent,
            **kwargs,
        )
        try:
            result = await utils._json_or_text(response)
        finally:
            response.release()

        if log:
            _L.debug('%s %s received %i: %s', route.route.method, response.url, response.status, result)
        else:
            _L.debug('%s %s received %i', route.route.method, response.url, response.status)
        return result

    async def cleanup(self) -> None:
        """|coro|

        Closes the aiohttp session.
        """
        if not callable(self._session):
            await self._session.close()

    # Channels control
    async def get_message(self, channel: SnowflakeOr[Base], message: SnowflakeOr[BaseMessage], /) -> Message:
        """|coro|

        Retrieves a message.

        Parameters
        ----------
        channel: Union[:class:`str`, :class:`.Base`]
            The channel the message is in.
        message: Union[:class:`str`, :class:`.BaseMessage`]
            The message to retrieve.

        Raises
        ------
        :class:`NotFound`
            The message was not found.
        :class:`Forbidden`
            You do not have permissions to read the channel history.

        Returns
        -------
        :class:`.Message`
            The retrieved message.
        """
        resp: raw.Message = await self.request(
            routes.CHANNELS_MESSAGE_FETCH.compile(channel_id=resolve_id(channel), message_id=resolve_id(message))
        )
        return self.state.parser.parse_message(resp)

    async def send_message(self, channel: SnowflakeOr[Base], builder: MessageBuilder, /) -> Message:
        """|coro|

        Sends a message to the given channel.

        The body is sent as multipart form data when the builder has files attached,
        and as JSON otherwise.

        Parameters
        ----------
        channel: Union[:class:`str`, :class:`.Base`]
            The channel to send the message to.
        builder: :class:`.MessageBuilder`
            The message to send.

        Raises
        ------
        :class:`Forbidden`
            You do not have permissions to send messages in the channel.
        :class:`HTTPException`
            Sending the message failed.

        Returns
        -------
        :class:`.Message`
            The message that was sent.
        """
        route = routes.CHANNELS_MESSAGE_SEND.compile(channel_id=resolve_id(channel))

        if builder.requires_multipart():
            resp: raw.Message = await self.request(route, multipart=builder.to_multipart())
        else:
            resp = await self.request(route, json=builder.to_dict())
        return self.state.parser.parse_message(resp)

    # Gateway
    async def get_gateway_bot(self) -> raw.GatewayBot:
        """|coro|

        Retrieves the gateway URL and recommended shard count.

        Returns
        -------
        Dict[:class:`str`, Any]
            The gateway information.
        """
        return await self.request(routes.GATEWAY_FETCH_BOT.compile())

    # Guilds control
    async def ban(
        self,
        guild: SnowflakeOr[BaseGuild],
        user: typing.Union[str, BaseUser, BaseMember],
        *,
        delete_message_days: typing.Optional[int] = None,
        reason: typing.Optional[str] = None,
    ) -> None:
        """|coro|

        Bans a user from the guild.

        Parameters
        ----------
        guild: Union[:class:`str`, :class:`.BaseGuild`]
            The guild.
        user: Union[:class:`str`, :class:`.BaseUser`, :class:`.BaseMember`]
            The user to ban.
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
        """
        payload: raw.DataBanCreate = {}
        if delete_message_days is not None:
            payload['delete_message_seconds'] = delete_message_days * 86400

        await self.request(
            routes.GUILDS_BAN_CREATE.compile(guild_id=resolve_id(guild), user_id=resolve_id(user)),
            json=payload,
            reason=reason,
        )

    async def get_ban(self, guild: SnowflakeOr[BaseGuild], user: SnowflakeOr[BaseUser], /) -> Ban:
        """|coro|

        Retrieves a ban for the user.

        Raises
        ------
        :class:`NotFound`
            The user is not banned.

        Returns
        -------
        :class:`.Ban`
            The ban.
        """
        guild_id = resolve_id(guild)
        resp: raw.Ban = await self.request(
            routes.GUILDS_BAN_FETCH.compile(guild_id=guild_id, user_id=resolve_id(user))
        )
        return self.state.parser.parse_ban(resp, guild_id)

    async def unban(
        self,
        guild: SnowflakeOr[BaseGuild],
        user: SnowflakeOr[BaseUser],
        *,
        reason: typing.Optional[str] = None,
    ) -> None:
        """|coro|

        Unbans a user from the guild.

        Parameters
        ----------
        guild: Union[:class:`str`, :class:`.BaseGuild`]
            The guild.
        user: Union[:class:`str`, :class:`.BaseUser`]
            The user to unban.
        reason: Optional[:class:`str`]
            The reason shown in the audit log.
        """
        await self.request(
            routes.GUILDS_BAN_REMOVE.compile(guild_id=resolve_id(guild), user_id=resolve_id(user)),
            reason=reason,
        )

    async def get_guild(self, guild: SnowflakeOr[BaseGuild], /) -> Guild:
        """|coro|

        Retrieves a guild.

        Raises
        ------
        :class:`NotFound`
            The guild was not found.

        Returns
        -------
        :class:`.Guild`
            The retrieved guild.
        """
        resp: raw.Guild = await self.request(
            routes.GUILDS_GUILD_FETCH.compile(guild_id=resolve_id(guild)),
            params={'with_counts': 'true'},
        )
        return self.state.parser.parse_guild(resp)

    async def get_roles(self, guild: SnowflakeOr[BaseGuild], /) -> dict[str, Role]:
        """|coro|

        Retrieves all roles of a guild.

        Returns
        -------
        Dict[:class:`str`, :class:`.Role`]
            The roles mapped by their IDs.
        """
        guild_id = resolve_id(guild)
        resp: list[raw.Role] = await self.request(routes.GUILDS_ROLES_FETCH.compile(guild_id=guild_id))
        return self.state.parser.parse_roles(resp, guild_id)

    async def edit_member(
        self,
        guild: SnowflakeOr[BaseGuild],
        member: typing.Union[str, BaseUser, BaseMember],
        *,
        nick: UndefinedOr[typing.Optional[str]] = UNDEFINED,
        roles: UndefinedOr[list[SnowflakeOr[BaseRole]]] = UNDEFINED,
        mute: UndefinedOr[bool] = UNDEFINED,
        deaf: UndefinedOr[bool] = UNDEFINED,
        channel: UndefinedOr[typing.Optional[SnowflakeOr[Base]]] = UNDEFINED,
        reason: typing.Optional[str] = None,
    ) -> typing.Optional[Member]:
        """|coro|

        Edits a member.

        Parameters
        ----------
        guild: Union[:class:`str`, :class:`.BaseGuild`]
            The guild.
        member: Union[:class:`str`, :class:`.BaseUser`, :class:`.BaseMember`]
            The member to edit.
        nick: UndefinedOr[Optional[:class:`str`]]
            The new nickname. Empty string or ``None`` removes it.
        roles: UndefinedOr[List[Union[:class:`str`, :class:`.BaseRole`]]]
            The roles to replace the member's roles with.
        mute: UndefinedOr[:class:`bool`]
            Whether the member is muted in voice channels.
        deaf: UndefinedOr[:class:`bool`]
            Whether the member is deafened in voice channels.
        channel: UndefinedOr[Optional[Union[:class:`str`, :class:`.Base`]]]
            The voice channel to move the member to. ``None`` disconnects them.
        reason: Optional[:class:`str`]
            The reason shown in the audit log.

        Raises
        ------
        :class:`Forbidden`
            You do not have the proper permissions to edit the member.
        :class:`HTTPException`
            Editing the member failed.

        Returns
        -------
        Optional[:class:`.Member`]
            The updated member, or ``None`` if the API responded with no content.
        """
        payload: raw.DataMemberEdit = {}
        if nick is not UNDEFINED:
            payload['nick'] = nick
        if roles is not UNDEFINED:
            payload['roles'] = [resolve_id(role) for role in roles]
        if mute is not UNDEFINED:
            payload['mute'] = mute
        if deaf is not UNDEFINED:
            payload['deaf'] = deaf
        if channel is not UNDEFINED:
            payload['channel_id'] = None if channel is None else resolve_id(channel)

        guild_id = resolve_id(guild)
        resp: typing.Union[raw.MemberWithUser, str] = await self.request(
            routes.GUILDS_MEMBER_EDIT.compile(guild_id=guild_id, user_id=resolve_id(member)),
            json=payload,
            reason=reason,
        )
        if isinstance(resp, dict):
            return self.state.parser.parse_member(resp, guild_id)
        return None

    async def edit_my_member(
        self,
        guild: SnowflakeOr[BaseGuild],
        *,
        nick: UndefinedOr[typing.Optional[str]] = UNDEFINED,
        reason: typing.Optional[str] = None,
    ) -> typing.Optional[Member]:
        """|coro|

        Edits the current user's member.

        Parameters
        ----------
        guild: Union[:class:`str`, :class:`.BaseGuild`]
            The guild.
        nick: UndefinedOr[Optional[:class:`str`]]
            The new nickname. Empty string or ``None`` removes it.
        reason: Optional[:class:`str`]
            The reason shown in the audit log.

        Returns
        -------
        Optional[:class:`.Member`]
            The updated member, or ``None`` if the API responded with no content.
        """
        payload: raw.DataEditCurrentMember = {}
        if nick is not UNDEFINED:
            payload['nick'] = nick

        guild_id = resolve_id(guild)
        resp: typing.Union[raw.MemberWithUser, str] = await self.request(
            routes.GUILDS_MEMBER_EDIT_ME.compile(guild_id=guild_id),
            json=payload,
            reason=reason,
        )
        if isinstance(resp, dict):
            return self.state.parser.parse_member(resp, guild_id)
        return None

    async def move_member(
        self,
        guild: SnowflakeOr[BaseGuild],
        member: typing.Union[str, BaseUser, BaseMember],
        channel: typing.Optional[SnowflakeOr[Base]],
        *,
        reason: typing.Optional[str] = None,
    ) -> None:
        """|coro|

        Moves a member to another voice channel. The move is not verified.

        Parameters
        ----------
        guild: Union[:class:`str`, :class:`.BaseGuild`]
            The guild.
        member: Union[:class:`str`, :class:`.BaseUser`, :class:`.BaseMember`]
            The member to move.
        channel: Optional[Union[:class:`str`, :class:`.Base`]]
            The voice channel to move the member to. ``None`` disconnects them.
        reason: Optional[:class:`str`]
            The reason shown in the audit log.

        Raises
        ------
        :class:`Forbidden`
            You do not have the proper permissions to move the member.
        :class:`HTTPException`
            Moving the member failed.
        """
        payload: raw.DataMemberEdit = {'channel_id': None if channel is None else resolve_id(channel)}
        await self.request(
            routes.GUILDS_MEMBER_EDIT.compile(guild_id=resolve_id(guild), user_id=resolve_id(member)),
            json=payload,
            reason=reason,
        )

    async def get_member(
        self, guild: SnowflakeOr[BaseGuild], member: typing.Union[str, BaseUser, BaseMember], /
    ) -> Member:
        """|coro|

        Retrieves a member.

        Raises
        ------
        :class:`NotFound`
            The member was not found.

        Returns
        -------
        :class:`.Member`
            The retrieved member.
        """
        guild_id = resolve_id(guild)
        resp: raw.MemberWithUser = await self.request(
            routes.GUILDS_MEMBER_FETCH.compile(guild_id=guild_id, user_id=resolve_id(member))
        )
        return self.state.parser.parse_member(resp, guild_id)

    async def kick_member(
        self,
        guild: SnowflakeOr[BaseGuild],
        member: typing.Union[str, BaseUser, BaseMember],
        /,
        *,
        reason: typing.Optional[str] = None,
    ) -> None:
        """|coro|

        Removes a member from the guild.

        Raises
        ------
        :class:`Forbidden`
            You do not have the proper permissions to kick.
        """
        await self.request(
            routes.GUILDS_MEMBER_REMOVE.compile(guild_id=resolve_id(guild), user_id=resolve_id(member)),
            reason=reason,
        )

    async def add_role_to_member(
        self,
        guild: SnowflakeOr[BaseGuild],
        member: typing.Union[str, BaseUser, BaseMember],
        role: SnowflakeOr[BaseRole],
        /,
        *,
        reason: typing.Optional[str] = None,
    ) -> None:
        """|coro|

        Adds a role to a member.

        Raises
        ------
        :class:`Forbidden`
            You do not have the proper permissions to manage roles.
        """
        await self.request(
            routes.GUILDS_MEMBER_ROLE_ADD.compile(
                guild_id=resolve_id(guild),
                user_id=resolve_id(member),
                role_id=resolve_id(role),
            ),
            reason=reason,
        )

    async def remove_role_from_member(
        self,
        guild: SnowflakeOr[BaseGuild],
        member: typing.Union[str, BaseUser, BaseMember],
        role: SnowflakeOr[BaseRole],
        /,
        *,
        reason: typing.Optional[str] = None,
    ) -> None:
        """|coro|

        Removes a role from a member.

        Raises
        ------
        :class:`Forbidden`
            You do not have the proper permissions to manage roles.
        """
        await self.request(
            routes.GUILDS_MEMBER_ROLE_REMOVE.compile(
                guild_id=resolve_id(guild),
                user_id=resolve_id(member),
                role_id=resolve_id(role),
            ),
            reason=reason,
        )

    # Users control
    async def get_me(self) -> User:
        """|coro|

        Retrieves the current user.
        """
        resp: raw.User = await self.request(routes.USERS_USER_FETCH_ME.compile())
        return self.state.parser.parse_user(resp)

    async def get_user(self, user: SnowflakeOr[BaseUser], /) -> User:
        """|coro|

        Retrieves a user.

        Raises
        ------
        :class:`NotFound`
            The user was not found.

        Returns
        -------
        :class:`.User`
            The retrieved user.
        """
        resp: raw.User = await self.request(routes.USERS_USER_FETCH.compile(user_id=resolve_id(user)))
        return self.state.parser.parse_user(resp)


__all__ = (
    'DEFAULT_HTTP_USER_AGENT',
    'RateLimit',
    'RateLimitBlocker',
    'RateLimiter',
    'DefaultRateLimit',
    'DefaultRateLimitBlocker',
    'DefaultRateLimiter',
    'HTTPClient',
)
