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
import aiohttp
import asyncio
import logging
import random
import sys
import typing

from . import utils
from .core import __version__ as version
from .enums import GatewayOpcode
from .errors import PyguildError, GatewayError, AuthenticationError, ConnectError
from .flags import Intents

if typing.TYPE_CHECKING:
    from datetime import datetime

    from . import raw
    from .enums import Status
    from .guild import Activity
    from .state import State

_L = logging.getLogger(__name__)

# Close codes after which reconnecting makes no sense
_FATAL_CLOSE_CODES: typing.Final[dict[int, str]] = {
    4010: 'Invalid shard',
    4011: 'Sharding required',
    4012: 'Invalid API version',
    4013: 'Invalid intents',
    4014: 'Disallowed intents',
}

# Close codes that invalidate the session
_RESET_SESSION_CLOSE_CODES: typing.Final[tuple[int, ...]] = (4007, 4009)


class Close(Exception):
    __slots__ = ()


class Reconnect(Exception):
    __slots__ = ()


class EventHandler(ABC):
    """Receives what a :class:`Shard` reads off the gateway.

    Every hook may be a plain function or a coroutine function.
    """

    __slots__ = ()

    @abstractmethod
    def handle_raw(self, shard: Shard, payload: raw.GatewayPayload, /) -> utils.MaybeAwaitable[None]:
        """Called for every dispatch (op 0) payload.

        Parameters
        ----------
        shard: :class:`Shard`
            The shard the payload arrived on.
        payload: Dict[:class:`str`, Any]
            The whole payload. The event name is under ``t`` and its data under ``d``.
        """
        ...

    def before_connect(self, shard: Shard, /) -> utils.MaybeAwaitable[None]:
        """Called before every connection attempt, including reconnects."""
        ...

    def after_connect(self, shard: Shard, socket: aiohttp.ClientWebSocketResponse, /) -> utils.MaybeAwaitable[None]:
        """Called once the WebSocket handshake succeeded, before HELLO is read.

        Parameters
        ----------
        socket: :class:`aiohttp.ClientWebSocketResponse`
            The new connection.
        """
        ...


DEFAULT_SHARD_USER_AGENT = f'DiscordBot (https://github.com/pyguild/pyguild, {version})'


class Shard:
    """Implements the gateway WebSocket client.

    Attributes
    ----------
    base: :class:`str`
        The base WebSocket URL.
    connect_delay: Optional[:class:`float`]
        The duration in seconds to sleep when reconnecting to WebSocket due to aiohttp errors. Defaults to 2.
    handler: Optional[:class:`.EventHandler`]
        The handler that receives events. Defaults to ``None`` if not provided.
    heartbeat_interval: Optional[:class:`float`]
        The heartbeat interval in seconds the gateway asked for.
    intents: :class:`Intents`
        The intents to identify with.
    last_ping_at: Optional[:class:`~datetime.datetime`]
        When the shard sent heartbeat.
    last_pong_at: Optional[:class:`~datetime.datetime`]
        When the shard received heartbeat acknowledgement.
    reconnect_on_timeout: :class:`bool`
        Whether to reconnect when the previous heartbeat was not acknowledged. Defaults to ``True``.
    resume_url: Optional[:class:`str`]
        The URL to use when resuming the session.
    retries: :class:`int`
        How many times to retry connecting before giving up.
    session_id: Optional[:class:`str`]
        The session ID, used for resuming.
    state: :class:`State`
        The state.
    token: :class:`str`
        The shard token. May be empty if not started.
    user_agent: :class:`str`
        The HTTP user agent used when connecting to WebSocket.
    """

    _socket: aiohttp.ClientWebSocketResponse | None

    __slots__ = (
        '_closed',
        '_heartbeat_acked',
        '_last_close_code',
        '_sequence',
        '_session',
        '_socket',
        'base',
        'connect_delay',
        'handler',
        'heartbeat_interval',
        'intents',
        'last_ping_at',
        'last_pong_at',
        'reconnect_on_timeout',
        'resume_url',
        'retries',
        'session_id',
        'state',
        'token',
        'user_agent',
    )

    def __init__(
        self,
        token: str,
        *,
        base: str | None = None,
        connect_delay: float | None = 2,
        handler: EventHandler | None = None,
        intents: Intents | None = None,
        reconnect_on_timeout: bool = True,
        retries: int | None = None,
        session: utils.MaybeAwaitableFunc[[Shard], aiohttp.ClientSession] | aiohttp.ClientSession,
        state: State,
        user_agent: str | None = None,
    ) -> None:
        self._closed: bool = False
        self._heartbeat_acked: bool = True
        self._last_close_code: int | None = None
        self._sequence: int | None = None
        self._session = session
        self._socket: aiohttp.ClientWebSocketResponse | None = None
        self.base: str = base or 'wss://gateway.discord.gg/'
        self.connect_delay: int | float | None = connect_delay
        self.handler: EventHandler | None = handler
        self.heartbeat_interval: float | None = None
        self.intents: Intents = Intents.default() if intents is None else intents
        self.last_ping_at: datetime | None = None
        self.last_pong_at: datetime | None = None
        self.reconnect_on_timeout: bool = reconnect_on_timeout
        self.resume_url: str | None = None
        self.retries: int = retries or 150
        self.session_id: str | None = None
        self.state: State = state
        self.token: str = token
        self.user_agent: str = user_agent or DEFAULT_SHARD_USER_AGENT

    def is_closed(self) -> bool:
        return self._closed and not self._socket

    @property
    def sequence(self) -> int | None:
        """Optional[:class:`int`]: The sequence number of the last received dispatch."""
        return self._sequence

    @property
    def latency(self) -> float:
        """:class:`float`: The duration in seconds between last heartbeat and its acknowledgement."""
        if self.last_ping_at is None or self.last_pong_at is None:
            return float('inf')
        return (self.last_pong_at - self.last_ping_at).total_seconds()

    async def cleanup(self) -> None:
        """|coro|

        Closes the aiohttp session.
        """
        if not callable(self._session):
            await self._session.close()

    async def close(self) -> None:
        """|coro|

        Closes the connection to the gateway.
        """
        if self._closed:
            return
        self._closed = True
        if self._socket:
            await self._socket.close(code=1000)

    @property
    def socket(self) -> aiohttp.ClientWebSocketResponse:
        """:class:`aiohttp.ClientWebSocketResponse`: The current WebSocket connection."""
        if self._socket is None:
            raise TypeError('No websocket')
        return self._socket

    def with_credentials(self, token: str, /) -> None:
        """Modifies the token used to identify."""
        self.token = token

    def can_resume(self) -> bool:
        """:class:`bool`: Whether the session can be resumed instead of identifying again."""
        return self.session_id is not None and self._sequence is not None

    def reset_session(self) -> None:
        """Forgets the current session, so next connection identifies from scratch."""
        self.session_id = None
        self.resume_url = None
        self._sequence = None

    async def identify(self) -> None:
        """|coro|

        Identifies the currently connected WebSocket. This is called right after receiving HELLO.
        """
        payload: raw.Identify = {
            'token': self.token,
            'intents': int(self.intents),
            'properties': {
                'os': sys.platform,
                'browser': 'pyguild',
                'device': 'pyguild',
            },
        }
        await self.send(GatewayOpcode.identify, payload)

    async def resume(self) -> None:
        """|coro|

        Resumes the previous session.
        """
        assert self.session_id is not None and self._sequence is not None
        payload: raw.Resume = {
            'token': self.token,
            'session_id': self.session_id,
            'seq': self._sequence,
        }
        await self.send(GatewayOpcode.resume, payload)

    async def heartbeat(self) -> None:
        """|coro|

        Sends a heartbeat with the last received sequence number.
        """
        self._heartbeat_acked = False
        await self.send(GatewayOpcode.heartbeat, self._sequence)
        self.last_ping_at = utils.utcnow()

    async def change_presence(
        self,
        *,
        status: Status,
        activity: Activity | None = None,
        afk: bool = False,
    ) -> None:
        """|coro|

        Changes the current user's presence.

        Parameters
        ----------
        status: :class:`Status`
            The new status.
        activity: Optional[:class:`Activity`]
            The activity to display.
        afk: :class:`bool`
            Whether the client is idle.
        """
        activities = []
        if activity is not None:
            d: dict[str, typing.Any] = {'name': activity.name, 'type': activity.type.value}
            if activity.url is not None:
                d['url'] = activity.url
            activities.append(d)

        await self.send(
            GatewayOpcode.presence_update,
            {
                'since': None,
                'activities': activities,
                'status': status.value,
                'afk': afk,
            },
        )

    async def send(self, op: GatewayOpcode, d: typing.Any, /) -> None:
        _L.debug('sending op %s: %s', op, d if op is not GatewayOpcode.identify else '[censored]')
        await self.socket.send_str(utils.to_json({'op': op.value, 'd': d}))

    async def recv(self) -> raw.GatewayPayload:
        try:
            message = await self.socket.receive()
        except (KeyboardInterrupt, asyncio.CancelledError):
            raise Close

        kind = message.type
        if kind in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.CLOSING):
            await self._on_socket_closed()

        if kind is not aiohttp.WSMsgType.TEXT:
            _L.debug('Got %s frame instead of TEXT, reconnecting.', kind)
            raise Reconnect

        payload: raw.GatewayPayload = utils.from_json(message.data)
        # READY carries the whole guild list; too noisy for debug logs
        if payload.get('t') != 'READY':
            _L.debug('Received %s', payload)
        return payload

    async def _on_socket_closed(self) -> typing.NoReturn:
        code = self.socket.close_code
        self._last_close_code = code
        _L.debug('Socket closed with code %s (closed by us: %s)', code, self._closed)

        if self._closed:
            raise Close
        if code == 4004:
            raise AuthenticationError(code)
        if code in _FATAL_CLOSE_CODES:
            raise GatewayError(f'{_FATAL_CLOSE_CODES[code]} (close code {code})')
        if code in _RESET_SESSION_CLOSE_CODES:
            self.reset_session()

        await asyncio.sleep(0.5)
        raise Reconnect

    def get_headers(self) -> dict[str, str]:
        """Dict[:class:`str`, :class:`str`]: The HTTP headers sent with the WebSocket handshake."""
        return {'User-Agent': self.user_agent}

    async def _heartbeat(self, interval: float, /) -> None:
        await asyncio.sleep(interval * random.random())
        while True:
            if not self._heartbeat_acked:
                if self.reconnect_on_timeout:
                    _L.warning('Heartbeat was not acknowledged, reconnecting.')
                    # Non-1000 close code keeps the session resumable
                    await self.socket.close(code=4000)
                    return
                _L.warning('Heartbeat was not acknowledged.')
            await self.heartbeat()
            await asyncio.sleep(interval)

    async def ws_connect(
        self, session: aiohttp.ClientSession, url: str, /, *, headers: dict[str, str], params: dict[str, str]
    ) -> aiohttp.ClientWebSocketResponse:
        """|coro|

        Opens the WebSocket. Override this to customize the handshake, for example to add a proxy.

        Parameters
        ----------
        session: :class:`aiohttp.ClientSession`
            The session to connect with.
        url: :class:`str`
            The gateway URL.
        headers: Dict[:class:`str`, :class:`str`]
            Handshake headers, from :meth:`get_headers`.
        params: Dict[:class:`str`, :class:`str`]
            Query parameters selecting the gateway version and encoding.

        Returns
        -------
        :class:`aiohttp.ClientWebSocketResponse`
            The open connection.
        """
        return await session.ws_connect(url, headers=headers, params=params)

    async def _resolve_session(self) -> aiohttp.ClientSession:
        session = self._session
        if not callable(session):
            return session

        session = await utils.maybe_coroutine(session, self)
        if callable(session):
            raise TypeError(f'Session factory returned {type(session)!r}, expected aiohttp.ClientSession')
        # The factory runs once; later connections reuse its session
        self._session = session
        return session

    async def _socket_connect(self) -> aiohttp.ClientWebSocketResponse:
        session = await self._resolve_session()
        url = self.resume_url if self.can_resume() and self.resume_url else self.base
        headers = self.get_headers()
        params = {'v': '10', 'encoding': 'json'}

        _L.debug('Connecting to %s', url)

        errors: list[Exception] = []
        while len(errors) < self.retries:
            try:
                return await self.ws_connect(session, url, headers=headers, params=params)
            except aiohttp.WSServerHandshakeError as exc:
                _L.debug('Handshake failed with status %i', exc.status)
                # Cloudflare hiccups; these do not count as attempts
                if exc.status not in (502, 525):
                    raise
                await asyncio.sleep(1.5)
            except OSError as exc:
                if not errors:
                    _L.warning('Could not reach the gateway (errno %s)', exc.errno)
                errors.append(exc)
                # WSAHOST_NOT_FOUND
                if exc.errno == 11001:
                    await asyncio.sleep(1)
            except Exception as exc:
                errors.append(exc)
                _L.exception('Connection attempt %i failed', len(errors))
                if self.connect_delay is not None:
                    await asyncio.sleep(self.connect_delay)

        raise ConnectError(self.retries, errors)

    async def _hello(self) -> float:
        message = await self.recv()
        if message['op'] != GatewayOpcode.hello:
            raise GatewayError(f'Expected HELLO, got op {message["op"]}')
        hello: raw.Hello = message['d']
        return hello['heartbeat_interval'] / 1000.0

    async def connect(self) -> None:
        """|coro|

        Connects and keeps the shard connected, resuming or identifying again after
        every recoverable disconnect. Returns once :meth:`close` is called.

        Raises
        ------
        :class:`AuthenticationError`
            The gateway rejected the token.
        :class:`GatewayError`
            The gateway closed the connection with a non-recoverable close code.
        :class:`ConnectError`
            Every connection attempt failed.
        """
        if self._socket:
            raise PyguildError('The connection is already open.')

        self._closed = False
        while not self._closed:
            if self.handler:
                await utils.maybe_coroutine(self.handler.before_connect, self)

            socket = await self._socket_connect()
            if self.handler:
                await utils.maybe_coroutine(self.handler.after_connect, self, socket)

            self._last_close_code = None
            self._heartbeat_acked = True
            self._socket = socket
            try:
                if not await self._run_session(socket):
                    return
            finally:
                self._socket = None
                await self._discard_socket(socket)
        self._last_close_code = None

    async def _run_session(self, socket: aiohttp.ClientWebSocketResponse, /) -> bool:
        # Returns whether to reconnect
        try:
            self.heartbeat_interval = interval = await self._hello()
        except (Close, Reconnect):
            return not self._closed

        heartbeat_task = asyncio.create_task(self._heartbeat(interval))
        try:
            if self.can_resume():
                _L.debug('Resuming session %s at sequence %s', self.session_id, self._sequence)
                await self.resume()
            else:
                await self.identify()

            while not self._closed:
                await self._handle(await self.recv())
        except Close:
            return False
        except Reconnect:
            await asyncio.sleep(1)
        finally:
            heartbeat_task.cancel()
        return True

    async def _discard_socket(self, socket: aiohttp.ClientWebSocketResponse, /) -> None:
        if socket.closed:
            return
        try:
            await socket.close()
        except Exception as exc:
            _L.warning('Failed to close the WebSocket', exc_info=exc)

    async def _handle(self, payload: raw.GatewayPayload, /) -> None:
        op = payload['op']
        sequence = payload.get('s')
        if sequence is not None:
            self._sequence = sequence

        if op == GatewayOpcode.dispatch:
            t = payload.get('t')
            if t == 'READY':
                d = payload['d']
                self.session_id = d['session_id']
                self.resume_url = d.get('resume_gateway_url')
            elif t == 'RESUMED':
                _L.info('Resumed session %s.', self.session_id)

            if self.handler is not None:
                await utils.maybe_coroutine(self.handler.handle_raw, self, payload)
        elif op == GatewayOpcode.heartbeat:
            await self.heartbeat()
        elif op == GatewayOpcode.heartbeat_ack:
            self._heartbeat_acked = True
            self.last_pong_at = utils.utcnow()
        elif op == GatewayOpcode.reconnect:
            _L.debug('Gateway requested reconnect.')
            raise Reconnect
        elif op == GatewayOpcode.invalid_session:
            if not payload.get('d'):
                self.reset_session()
            _L.debug('Session invalidated (resumable: %s).', bool(payload.get('d')))
            await asyncio.sleep(1 + random.random() * 4)
            raise Reconnect
        else:
            _L.debug('Unknown op %s, ignoring.', op)


__all__ = ('Close', 'Reconnect', 'EventHandler', 'DEFAULT_SHARD_USER_AGENT', 'Shard')
