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

import asyncio
import builtins
from inspect import Parameter, isawaitable, signature, unwrap
import logging
import typing

import aiohttp

from . import cache as caching, utils
from .cache import Cache, MapCache
from .core import (
    UNDEFINED,
    UndefinedOr,
    SnowflakeOr,
)
from .events import BaseEvent
from .flags import Intents
from .http import HTTPClient
from .message import MessageBuilder
from .parser import Parser
from .shard import EventHandler, Shard
from .state import State

if typing.TYPE_CHECKING:
    from collections.abc import Callable, Coroutine, Generator, Mapping
    from types import TracebackType
    from typing_extensions import Self

    from . import raw
    from .base import Base
    from .embed import Embed
    from .events import (
        ReadyEvent,
        GuildCreateEvent,
        GuildUpdateEvent,
        GuildUnavailableEvent,
        GuildMemberAddEvent,
        GuildMemberRemoveEvent,
        MessageCreateEvent,
    )
    from .guild import Guild, Member
    from .message import Message
    from .user import User


_L = logging.getLogger(__name__)


def _session_factory(_) -> aiohttp.ClientSession:
    return aiohttp.ClientSession()


class ClientEventHandler(EventHandler):
    """The default event handler for the client."""

    __slots__ = ('_client', '_state', 'dispatch', '_handlers')

    def __init__(self, client: Client) -> None:
        self._client = client
        self._state = client._state
        self.dispatch = client.dispatch

        self._handlers = {
            'READY': self.handle_ready,
            'GUILD_CREATE': self.handle_guild_create,
            'GUILD_UPDATE': self.handle_guild_update,
            'GUILD_MEMBER_ADD': self.handle_guild_member_add,
            'GUILD_MEMBER_REMOVE': self.handle_guild_member_remove,
            'MESSAGE_CREATE': self.handle_message_create,
        }

    def handle_ready(self, shard: Shard, payload: raw.ClientReadyEvent, /) -> None:
        event = self._state.parser.parse_ready_event(shard, payload)
        self.dispatch(event)

    def handle_guild_create(self, shard: Shard, payload: raw.ClientGuildCreateEvent, /) -> None:
        event = self._state.parser.parse_guild_create_event(shard, payload)
        self.dispatch(event)

    def handle_guild_update(self, shard: Shard, payload: raw.ClientGuildUpdateEvent, /) -> None:
        event = self._state.parser.parse_guild_update_event(shard, payload)
        self.dispatch(event)

    def handle_guild_member_add(self, shard: Shard, payload: raw.ClientGuildMemberAddEvent, /) -> None:
        event = self._state.parser.parse_guild_member_add_event(shard, payload)
        self.dispatch(event)

    def handle_guild_member_remove(self, shard: Shard, payload: raw.ClientGuildMemberRemoveEvent, /) -> None:
        event = self._state.parser.parse_guild_member_remove_event(shard, payload)
        self.dispatch(event)

    def handle_message_create(self, shard: Shard, payload: raw.ClientMessageCreateEvent, /) -> None:
        event = self._state.parser.parse_message_create_event(shard, payload)
        self.dispatch(event)

    async def _handle_library_error(
        self, shard: Shard, payload: raw.GatewayPayload, exc: Exception, name: str, /
    ) -> None:
        try:
            await utils.maybe_coroutine(self._client.on_library_error, shard, payload, exc)
        except Exception:
            _L.exception('on_library_error (task: %s) failed', name)

    async def _handle(self, shard: Shard, payload: raw.GatewayPayload, /) -> None:
        event_type = payload['t']
        handler = self._handlers.get(event_type)  # type: ignore
        if handler is None:
            _L.debug('Discarding %s event, there is no handler for it', event_type)
            return

        _L.debug('Handling %s', event_type)
        try:
            await utils.maybe_coroutine(handler, shard, payload['d'])
        except Exception as exc:
            # Without READY there is no session to continue with
            if event_type == 'READY':
                raise

            _L.exception('Failed to handle %s event', event_type)
            name = f'pyguild-dispatch-{self._client._get_i()}'
            asyncio.create_task(self._handle_library_error(shard, payload, exc, name), name=name)

    def handle_raw(self, shard: Shard, payload: raw.GatewayPayload, /) -> utils.MaybeAwaitable[None]:
        return self._handle(shard, payload)


EventT = typing.TypeVar('EventT', bound='BaseEvent')


def _parents_of(type: type[BaseEvent], /) -> tuple[type[BaseEvent], ...]:
    """Tuple[Type[:class:`.BaseEvent`], ...]: The event class followed by its bases, up to :class:`.BaseEvent`."""
    if type is BaseEvent:
        return (BaseEvent,)
    parents: typing.Any = type.__mro__[:-1]
    return parents


class EventSubscription(typing.Generic[EventT]):
    """A permanent subscription to an event.

    Attributes
    ----------
    client: :class:`Client`
        The client the subscription is registered in.
    id: :class:`int`
        The subscription's ID, unique within the client.
    callback: MaybeAwaitableFunc[[EventT], None]
        The function called with each event.
    event: Type[EventT]
        The event class the subscription is registered for.
    """

    __slots__ = ('client', 'id', 'callback', 'event')

    def __init__(
        self,
        *,
        client: Client,
        id: int,
        callback: utils.MaybeAwaitableFunc[[EventT], None],
        event: type[EventT],
    ) -> None:
        self.client: Client = client
        self.id: int = id
        self.callback: utils.MaybeAwaitableFunc[[EventT], None] = callback
        self.event: type[EventT] = event

    def __call__(self, arg: EventT, /) -> utils.MaybeAwaitable[None]:
        return self.callback(arg)

    async def _handle(self, arg: EventT, name: str, /) -> None:
        await self.client._run_callback(self.callback, arg, name)

    def remove(self) -> None:
        """Unregisters the subscription. Does nothing if it was already removed."""
        self.client._handlers_of(self.event)[0].pop(self.id, None)


class _TemporarySubscriptionBase(typing.Generic[EventT]):
    __slots__ = ('client', 'id', 'event', 'check')

    def __init__(
        self,
        *,
        client: Client,
        id: int,
        event: type[EventT],
        check: Callable[[EventT], utils.MaybeAwaitable[bool]],
    ) -> None:
        self.client: Client = client
        self.id: int = id
        self.event: type[EventT] = event
        self.check: Callable[[EventT], utils.MaybeAwaitable[bool]] = check

    async def _matches(self, arg: EventT, /) -> bool:
        result = self.check(arg)
        if isawaitable(result):
            result = await result
        return bool(result)

    def _unregister(self) -> None:
        self.client._handlers_of(self.event)[1].pop(self.id, None)


class TemporarySubscription(_TemporarySubscriptionBase[EventT]):
    """A subscription resolved by the first event passing its check.

    Await it to get the event.
    """

    __slots__ = ('future', 'coro')

    def __init__(
        self,
        *,
        client: Client,
        id: int,
        event: type[EventT],
        future: asyncio.Future[EventT],
        check: Callable[[EventT], utils.MaybeAwaitable[bool]],
        coro: Coroutine[typing.Any, typing.Any, EventT],
    ) -> None:
        super().__init__(client=client, id=id, event=event, check=check)
        self.future: asyncio.Future[EventT] = future
        self.coro: Coroutine[typing.Any, typing.Any, EventT] = coro

    def __await__(self) -> Generator[typing.Any, typing.Any, EventT]:
        return self.coro.__await__()

    async def _handle(self, arg: EventT, name: str, /) -> bool:
        # Timed out or canceled
        if self.future.done():
            return True

        try:
            matched = await self._matches(arg)
        except Exception as exc:
            _L.exception('Check of temporary subscription %i (task: %s) raised an exception', self.id, name)
            if not self.future.done():
                self.future.set_exception(exc)
            return True

        if matched:
            self.future.set_result(arg)
        return matched

    def cancel(self) -> None:
        """Cancels the subscription. Anyone awaiting it gets :exc:`asyncio.CancelledError`."""
        self.future.cancel()
        self._unregister()


class TemporarySubscriptionListIterator(typing.Generic[EventT]):
    __slots__ = ('subscription',)

    def __init__(self, *, subscription: TemporarySubscriptionList[EventT]) -> None:
        self.subscription: TemporarySubscriptionList[EventT] = subscription

    async def __anext__(self) -> EventT:
        subscription = self.subscription

        if subscription.exception is not None:
            raise subscription.exception

        if subscription.done.is_set() and subscription.queue.empty():
            raise StopAsyncIteration

        # -1 is a wakeup after the check failed
        index = -1
        while index < 0:
            index = await subscription.queue.get()
            if subscription.exception is not None:
                raise subscription.exception

        return subscription.result[index]


class TemporarySubscriptionList(_TemporarySubscriptionBase[EventT]):
    """A subscription collecting a fixed number of events passing its check.

    Await it to get all of them at once, or iterate it with ``async for``
    to get them as they are dispatched.

    Attributes
    ----------
    expected: :class:`int`
        How many events to collect.
    result: List[EventT]
        The events collected so far.
    timeout: Optional[:class:`float`]
        How many seconds awaiting the subscription may take.
    """

    __slots__ = ('done', 'result', 'exception', 'expected', 'queue', 'timeout')

    def __init__(
        self,
        *,
        client: Client,
        expected: int,
        id: int,
        event: type[EventT],
        check: Callable[[EventT], utils.MaybeAwaitable[bool]],
        timeout: float | None = None,
    ) -> None:
        super().__init__(client=client, id=id, event=event, check=check)
        self.done: asyncio.Event = asyncio.Event()
        self.result: list[EventT] = []
        self.exception: Exception | None = None
        self.expected: int = expected
        self.timeout: float | None = timeout

        # Room for every index plus the failure wakeup
        self.queue: asyncio.Queue[int] = asyncio.Queue(expected + 1)

    async def wait(self) -> list[EventT]:
        """|coro|

        Waits until all events are collected.

        Raises
        ------
        asyncio.TimeoutError
            The timeout was reached, or the subscription was canceled early.
        """
        if len(self.result) >= self.expected:
            return self.result

        try:
            await asyncio.wait_for(self.done.wait(), timeout=self.timeout)
        except asyncio.TimeoutError:
            self.cancel()
            raise

        if self.exception is not None:
            raise self.exception
        if len(self.result) < self.expected:
            raise asyncio.TimeoutError('Subscription was canceled before collecting all events')
        return self.result

    def __await__(self) -> Generator[typing.Any, typing.Any, list[EventT]]:
        return self.wait().__await__()

    def __aiter__(self) -> TemporarySubscriptionListIterator[EventT]:
        return TemporarySubscriptionListIterator(subscription=self)

    async def _handle(self, arg: EventT, name: str, /) -> bool:
        if self.done.is_set():
            return True

        try:
            matched = await self._matches(arg)
        except Exception as exc:
            _L.exception('Check of temporary subscription %i (task: %s) raised an exception', self.id, name)
            self.exception = exc
            self.done.set()
            self.queue.put_nowait(-1)
            return True

        if matched:
            self.result.append(arg)
            if len(self.result) >= self.expected:
                self.done.set()
            self.queue.put_nowait(len(self.result) - 1)

        return self.done.is_set()

    def cancel(self) -> None:
        """Stops collecting events."""
        self.done.set()
        self._unregister()


_DEFAULT_HANDLERS = ({}, {})


class Client:
    """A client connecting to the gateway and the REST API.

    Parameters
    ----------
    token: :class:`str`
        The bot token.
    bot: :class:`bool`
        Whether the token belongs to a bot account. Defaults to ``True``.
    intents: Optional[:class:`Intents`]
        The gateway intents. Defaults to :meth:`Intents.default`.
    cache: UndefinedOr[Optional[:class:`Cache`]]
        The cache to use. Defaults to a :class:`MapCache`. Pass ``None`` to disable caching.
    store_users: :class:`bool`
        Whether to cache users seen in events. Defaults to ``True``.
    store_members: :class:`bool`
        Whether to cache guild members seen in events. Defaults to ``True``.
    http_base: Optional[:class:`str`]
        The REST API base URL.
    websocket_base: Optional[:class:`str`]
        The gateway URL.
    """

    __slots__ = (
        '_handlers',
        '_i',
        '_state',
        '_token',
        '_types',
        'bot',
        'closed',
        'extra',
    )

    def __init__(
        self,
        *,
        token: str = '',
        bot: bool = True,
        intents: Intents | None = None,
        cache: Callable[[Client, State], UndefinedOr[Cache | None]] | UndefinedOr[Cache | None] = UNDEFINED,
        store_users: bool = True,
        store_members: bool = True,
        http_base: str | None = None,
        http: Callable[[Client, State], HTTPClient] | None = None,
        parser: Callable[[Client, State], Parser] | None = None,
        shard: Callable[[Client, State], Shard] | None = None,
        state: Callable[[Client], State] | State | None = None,
        websocket_base: str | None = None,
    ) -> None:
        self.closed: bool = True
        self._handlers: dict[
            type[BaseEvent],
            tuple[
                dict[int, EventSubscription[BaseEvent]],
                dict[int, TemporarySubscription[BaseEvent] | TemporarySubscriptionList[BaseEvent]],
            ],
        ] = {}
        self._types: dict[type[BaseEvent], tuple[type[BaseEvent], ...]] = {}
        self._i = 0

        self.extra = {}
        if state:
            if callable(state):
                self._state: State = state(self)
            else:
                self._state = state
        else:
            state = State(store_users=store_users, store_members=store_members)

            if callable(cache):
                cr = cache(self, state)
            else:
                cr = cache
            c = cr if cr is not UNDEFINED else MapCache()

            if parser:
                state.setup(parser=parser(self, state))
            state.setup(
                cache=c,
                http=(
                    http(self, state)
                    if http
                    else HTTPClient(
                        token,
                        base=http_base,
                        bot=bot,
                        session=_session_factory,
                        state=state,
                    )
                ),
            )
            self._state = state
            state.setup(
                shard=(
                    shard(self, state)
                    if shard
                    else Shard(
                        token,
                        base=websocket_base,
                        handler=ClientEventHandler(self),
                        intents=intents,
                        session=_session_factory,
                        state=state,
                    )
                )
            )
        self._token: str = token
        self.bot: bool = bot

    def _get_i(self) -> int:
        self._i += 1
        return self._i

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException],
        exc_value: BaseException | None,
        traceback: TracebackType | None,
        /,
    ) -> None:
        await self.close()

    async def on_user_error(self, event: BaseEvent) -> None:
        """Called when one of the event's handlers raises.

        The exception is available through :func:`sys.exc_info`. Logs it by default.
        """
        _L.exception('A %s handler failed', event.__class__.__name__)

    async def on_library_error(self, _shard: Shard, payload: raw.GatewayPayload, exc: Exception, /) -> None:
        """Called when a gateway event could not be parsed or handled. Logs the exception by default.

        .. note::
            Failures while handling ``READY`` are not reported here, they stop the shard instead.
        """
        _L.exception('Handling %s failed', payload.get('t'), exc_info=exc)

    async def _run_callback(
        self, callback: Callable[[EventT], utils.MaybeAwaitable[None]], arg: EventT, name: str, /
    ) -> None:
        try:
            await utils.maybe_coroutine(callback, arg)
        except Exception:
            try:
                await utils.maybe_coroutine(self.on_user_error, arg)
            except Exception:
                _L.exception('on_user_error (task: %s) failed', name)

    async def _dispatch(self, types: tuple[type[BaseEvent], ...], event: BaseEvent, name: str, /) -> None:
        event.before_dispatch()
        await event.abefore_dispatch()

        for type in types:
            handlers, temporary_handlers = self._handlers.get(type, _DEFAULT_HANDLERS)
            _L.debug(
                'Dispatching %s to %i handlers of %s',
                event.__class__.__name__,
                len(handlers) + len(temporary_handlers),
                type.__name__,
            )

            # Every waiter resolved by this event gets unregistered
            finished = [sub.id for sub in list(temporary_handlers.values()) if await sub._handle(event, name)]
            for sub_id in finished:
                temporary_handlers.pop(sub_id, None)

            for sub in list(handlers.values()):
                await sub._handle(event, name)

            event_name: str | None = getattr(type, 'event_name', None)
            method = getattr(self, f'on_{event_name}', None) if event_name else None
            if method:
                await self._run_callback(method, event, name)

        method = getattr(self, 'on_event', None)
        if method:
            await self._run_callback(method, event, name)

        if event.is_canceled:
            _L.debug('A handler canceled processing of %s', event.__class__.__name__)
            return

        _L.debug('Processing %s', event.__class__.__name__)
        event.process()
        await event.aprocess()

    def dispatch(self, event: BaseEvent, /) -> asyncio.Task[None]:
        """Schedules an event to be handled.

        The event goes through its ``before_dispatch`` hooks, then through the handlers
        registered for its class and every parent class, and finally gets processed
        unless one of the handlers canceled it.

        Custom events can be dispatched too: ::

            @define(slots=True)
            class GreetingEvent(pyguild.BaseEvent):
                member: pyguild.Member = field(repr=True, kw_only=True)


            @client.on(pyguild.GuildMemberAddEvent)
            async def on_join(event):
                # Awaiting the task waits until all greeting handlers have run
                await client.dispatch(GreetingEvent(member=event.member))

        Parameters
        ----------
        event: :class:`.BaseEvent`
            The event to dispatch.

        Returns
        -------
        :class:`asyncio.Task`
            The task handling the event.
        """

        et = builtins.type(event)
        types = self._types.get(et)
        if types is None:
            types = self._types[et] = _parents_of(et)

        name = f'pyguild-dispatch-{self._get_i()}'
        return asyncio.create_task(self._dispatch(types, event, name), name=name)

    def _handlers_of(
        self, event: type[BaseEvent], /
    ) -> tuple[
        dict[int, EventSubscription[BaseEvent]],
        dict[int, TemporarySubscription[BaseEvent] | TemporarySubscriptionList[BaseEvent]],
    ]:
        return self._handlers.setdefault(event, ({}, {}))

    def subscribe(
        self,
        event: type[EventT],
        /,
        callback: utils.MaybeAwaitableFunc[[EventT], None],
    ) -> EventSubscription[EventT]:
        """Registers a callback that is called every time the event is dispatched.

        Parameters
        ----------
        event: Type[EventT]
            The event class. Subclasses of it are delivered as well.
        callback: MaybeAwaitableFunc[[EventT], None]
            The function to call.
        """
        sub: EventSubscription[EventT] = EventSubscription(
            client=self,
            id=self._get_i(),
            callback=callback,
            event=event,
        )
        self._handlers_of(event)[0][sub.id] = sub  # type: ignore
        return sub

    def unsubscribe(
        self,
        event: type[EventT],
        callback: utils.MaybeAwaitableFunc[[EventT], None],
        /,
    ) -> list[EventSubscription[EventT]]:
        """List[EventSubscription[EventT]]: Removes and returns the subscriptions of ``event`` using ``callback``."""
        subscriptions = self._handlers.get(event, _DEFAULT_HANDLERS)[0]
        matching = [sub_id for sub_id, sub in subscriptions.items() if sub.callback == callback]
        return [subscriptions.pop(sub_id) for sub_id in matching]  # type: ignore

    def listen(
        self,
        event: type[EventT] | None = None,
        /,
    ) -> Callable[
        [utils.MaybeAwaitableFunc[[EventT], None]],
        EventSubscription[EventT],
    ]:
        """A decorator that subscribes the decorated function to an event.

        :meth:`on` is the same thing under a shorter name.

        .. code-block:: python3

            @client.listen()
            async def on_member_leave(event: pyguild.GuildMemberRemoveEvent):
                print(event.user, 'left', event.guild_id)

            # Later on
            on_member_leave.remove()

        Parameters
        ----------
        event: Optional[Type[EventT]]
            The event to listen to. When omitted, the annotation of the function's first parameter is used.

        Raises
        ------
        TypeError
            No event was given and the first parameter is not annotated.
        """

        def decorator(callback: utils.MaybeAwaitableFunc[[EventT], None], /) -> EventSubscription[EventT]:
            target = event

            if target is None:
                parameters = list(signature(callback).parameters.values())
                if not parameters or parameters[0].annotation is Parameter.empty:
                    raise TypeError('listen() needs an event type or an annotated first parameter')

                globalns = getattr(unwrap(callback), '__globals__', {})
                target = utils.resolve_annotation(parameters[0].annotation, globalns, None)

            return self.subscribe(target, callback)  # type: ignore

        return decorator

    on = listen

    @typing.overload
    def wait_for(  # pyright: ignore[reportOverlappingOverload]
        self,
        event: type[EventT],
        /,
        *,
        check: Callable[[EventT], bool] | None = None,
        count: typing.Literal[1] = 1,
        timeout: float | None = None,
    ) -> TemporarySubscription[EventT]: ...

    @typing.overload
    def wait_for(
        self,
        event: type[EventT],
        /,
        *,
        check: Callable[[EventT], bool] | None = None,
        count: int = 1,
        timeout: float | None = None,
    ) -> TemporarySubscriptionList[EventT]: ...

    def wait_for(
        self,
        event: type[EventT],
        /,
        *,
        check: Callable[[EventT], bool] | None = None,
        count: int = 1,
        timeout: float | None = None,
    ) -> TemporarySubscription[EventT] | TemporarySubscriptionList[EventT]:
        """Waits until the event is dispatched.

        The subscription is registered immediately, so events dispatched before
        it is awaited are not missed. By the time an event is handed over,
        the cache has been updated with it.

        .. code-block:: python3

            await message.reply('Who are you?')
            event = await client.wait_for(
                pyguild.MessageCreateEvent,
                check=lambda e: e.message.channel_id == message.channel_id,
                timeout=30,
            )

        Waiting for several events yields them as they come: ::

            async for event in client.wait_for(pyguild.GuildMemberAddEvent, count=3):
                print(event.member, 'joined')

        Parameters
        ----------
        event: Type[EventT]
            The event to wait for.
        check: Optional[Callable[[EventT], :class:`bool`]]
            Only events passing this predicate are accepted.
        count: :class:`int`
            How many events to wait for. Defaults to 1.
        timeout: Optional[:class:`float`]
            How many seconds to wait. By default, waits forever.

        Raises
        ------
        TypeError
            ``count`` is not positive.
        asyncio.TimeoutError
            The timeout was reached. Raised when awaiting the subscription.

        Returns
        -------
        Union[:class:`TemporarySubscription`, :class:`TemporarySubscriptionList`]
            An awaitable subscription. With ``count`` greater than 1, it can also be iterated with ``async for``.
        """

        if count <= 0:
            raise TypeError('count must be a positive number')

        if check is None:
            check = lambda _, /: True

        sub: TemporarySubscription[EventT] | TemporarySubscriptionList[EventT]
        if count > 1:
            sub = TemporarySubscriptionList(
                client=self,
                expected=count,
                id=self._get_i(),
                event=event,
                check=check,
                timeout=timeout,
            )
        else:
            future = asyncio.get_running_loop().create_future()
            sub = TemporarySubscription(
                client=self,
                id=self._get_i(),
                event=event,
                future=future,
                check=check,
                coro=asyncio.wait_for(future, timeout=timeout),
            )

        self._handlers_of(event)[1][sub.id] = sub  # type: ignore
        return sub

    def _subscriptions_of(
        self, event: type[BaseEvent], include_subclasses: bool, /
    ) -> list[dict[int, EventSubscription[BaseEvent]]]:
        if include_subclasses:
            return [handlers for k, (handlers, _) in self._handlers.items() if issubclass(k, event)]
        return [self._handlers.get(event, _DEFAULT_HANDLERS)[0]]

    def all_subscriptions(self) -> list[EventSubscription[BaseEvent]]:
        """List[EventSubscription[:class:`BaseEvent`]]: Every permanent subscription, across all events."""
        return [sub for handlers, _ in self._handlers.values() for sub in handlers.values()]

    def subscriptions_for(
        self, event: type[EventT], /, *, include_subclasses: bool = False
    ) -> list[EventSubscription[EventT]]:
        """List[EventSubscription[EventT]]: The permanent subscriptions to an event.

        Parameters
        ----------
        event: Type[EventT]
            The event class.
        include_subclasses: :class:`bool`
            Whether subscriptions to subclasses of ``event`` are included. Defaults to ``False``.
        """
        ret = []
        for handlers in self._subscriptions_of(event, include_subclasses):
            ret.extend(handlers.values())
        return ret  # type: ignore

    def subscriptions_count_for(self, event: type[EventT], /, *, include_subclasses: bool = False) -> int:
        """:class:`int`: How many permanent subscriptions an event has."""
        return sum(len(handlers) for handlers in self._subscriptions_of(event, include_subclasses))

    @property
    def me(self) -> User | None:
        """Optional[:class:`User`]: The currently logged in user. ``None`` if not logged in."""
        return self._state._me

    @property
    def user(self) -> User | None:
        """Optional[:class:`User`]: The currently logged in user. ``None`` if not logged in.

        Alias to :attr:`.me`.
        """
        return self._state._me

    @property
    def http(self) -> HTTPClient:
        """:class:`HTTPClient`: The HTTP client."""
        return self._state.http

    @property
    def shard(self) -> Shard:
        """:class:`Shard`: The gateway client."""
        return self._state.shard

    @property
    def state(self) -> State:
        """:class:`State`: The controller for all entities and components."""
        return self._state

    @property
    def guilds(self) -> Mapping[str, Guild]:
        """Mapping[:class:`str`, :class:`Guild`]: Mapping of cached guilds."""
        cache = self._state.cache
        if cache:
            return cache.get_guilds_mapping()
        return {}

    @property
    def users(self) -> Mapping[str, User]:
        """Mapping[:class:`str`, :class:`User`]: Mapping of cached users."""
        cache = self._state.cache
        if cache:
            return cache.get_users_mapping()
        return {}

    def get_guild(self, guild_id: str, /) -> Guild | None:
        """Retrieves a guild from cache.

        Parameters
        ----------
        guild_id: :class:`str`
            The guild ID.

        Returns
        -------
        Optional[:class:`.Guild`]
            The guild or ``None`` if not found.
        """
        cache = self._state.cache
        if cache:
            return cache.get_guild(guild_id, caching._USER_REQUEST)

    async def fetch_guild(self, guild_id: str, /) -> Guild:
        """|coro|

        Retrieves a guild from API. This is shortcut to :meth:`.HTTPClient.get_guild`.
        """
        return await self.http.get_guild(guild_id)

    def get_member(self, guild_id: str, user_id: str, /) -> Member | None:
        """Optional[:class:`.Member`]: Retrieves a guild member from cache."""
        cache = self._state.cache
        if cache:
            return cache.get_guild_member(guild_id, user_id, caching._USER_REQUEST)

    async def fetch_member(self, guild_id: str, user_id: str, /) -> Member:
        """|coro|

        Retrieves a guild member from API. This is shortcut to :meth:`.HTTPClient.get_member`.
        """
        return await self.http.get_member(guild_id, user_id)

    def get_user(self, user_id: str, /) -> User | None:
        """Retrieves a user from cache.

        Parameters
        ----------
        user_id: :class:`str`
            The user ID.

        Returns
        -------
        Optional[:class:`.User`]
            The user or ``None`` if not found.
        """
        cache = self._state.cache
        if cache:
            return cache.get_user(user_id, caching._USER_REQUEST)

    async def fetch_user(self, user_id: str, /) -> User:
        """|coro|

        Retrieves a user from API. This is shortcut to :meth:`HTTPClient.get_user`.
        """
        return await self.http.get_user(user_id)

    async def send_message(
        self,
        channel: SnowflakeOr[Base],
        content: str | None = None,
        *,
        tts: bool = False,
        embeds: list[Embed | raw.Embed] | None = None,
        builder: MessageBuilder | None = None,
    ) -> Message:
        """|coro|

        Sends a message to the channel.

        Parameters
        ----------
        channel: Union[:class:`str`, :class:`.Base`]
            The channel to send the message to.
        content: Optional[:class:`str`]
            The message content. Ignored when ``builder`` is passed.
        tts: :class:`bool`
            Whether the message should be read aloud. Ignored when ``builder`` is passed.
        embeds: Optional[List[Union[:class:`.Embed`, Dict[:class:`str`, Any]]]]
            The embeds to attach. Ignored when ``builder`` is passed.
        builder: Optional[:class:`.MessageBuilder`]
            A prepared message.

        Raises
        ------
        :class:`InvalidArgument`
            More than 10 embeds were given.

        Returns
        -------
        :class:`.Message`
            The message that was sent.
        """
        if builder is None:
            builder = MessageBuilder.new().set_content(content).set_tts(tts)
            if embeds:
                builder.set_embeds(embeds)
        return await self.http.send_message(channel, builder)

    async def start(self) -> None:
        """|coro|

        Starts up the client.
        """
        self.closed = False
        await self._state.shard.connect()

    async def close(self, *, http: bool = True, cleanup_websocket: bool = True) -> None:
        """|coro|

        Closes all HTTP sessions, and websocket connections.
        """

        self.closed = True

        await self.shard.close()
        if cleanup_websocket:
            await self.shard.cleanup()

        if http:
            await self.http.cleanup()

    def run(
        self,
        token: str = '',
        *,
        bot: UndefinedOr[bool] = UNDEFINED,
        log_handler: UndefinedOr[logging.Handler | None] = UNDEFINED,
        log_formatter: UndefinedOr[logging.Formatter] = UNDEFINED,
        log_level: UndefinedOr[int] = UNDEFINED,
        root_logger: bool = False,
        asyncio_debug: bool = False,
        cleanup: bool = True,
    ) -> None:
        """Connects to the gateway and blocks until the client is closed.

        This creates its own event loop, so it must be the last call of the program.
        Use :meth:`start` to run the client inside an existing loop.

        Unless ``log_handler`` is ``None``, logging is configured as well.

        Parameters
        ----------
        token: :class:`str`
            The token to log in with. Defaults to the token passed to the constructor.
        bot: UndefinedOr[:class:`bool`]
            Whether ``token`` belongs to a bot account. Defaults to :attr:`bot`.
        log_handler: UndefinedOr[Optional[:class:`logging.Handler`]]
            The handler for the library's log records. Defaults to a :class:`logging.StreamHandler`.
            Pass ``None`` to leave logging alone.
        log_formatter: UndefinedOr[:class:`logging.Formatter`]
            The formatter for ``log_handler``. Defaults to a colored one when the stream supports colors.
        log_level: UndefinedOr[:class:`int`]
            The level of the library's logger. Defaults to :data:`logging.INFO`.
        root_logger: :class:`bool`
            Whether to configure the root logger instead of the library's one. Defaults to ``False``.
        asyncio_debug: :class:`bool`
            Whether to enable asyncio debug mode. Defaults to ``False``.
        cleanup: :class:`bool`
            Whether to close the HTTP session and the websocket on exit. Defaults to ``True``.

        Raises
        ------
        TypeError
            No token was given here nor to the constructor.
        """

        if token:
            bot = self.bot if bot is UNDEFINED else bot

            self.http.with_credentials(token, bot=bot)
            self.shard.with_credentials(token)
        elif not self._token:
            raise TypeError('No token was provided')

        async def runner():
            try:
                await self.start()
            finally:
                if cleanup and not self.closed:
                    await self.close()
                self.closed = True

        if log_handler is not None:
            utils.setup_logging(
                handler=log_handler,
                formatter=log_formatter,
                level=log_level,
                root=root_logger,
            )

        try:
            asyncio.run(runner(), debug=asyncio_debug)
        except KeyboardInterrupt:
            # `asyncio.run` cancels the runner, which closes the sessions
            return

    if typing.TYPE_CHECKING:

        def on_event(self, arg: BaseEvent, /) -> utils.MaybeAwaitable[None]: ...

        def on_ready(self, arg: ReadyEvent, /) -> utils.MaybeAwaitable[None]: ...
        def on_guild_create(self, arg: GuildCreateEvent, /) -> utils.MaybeAwaitable[None]: ...
        def on_guild_update(self, arg: GuildUpdateEvent, /) -> utils.MaybeAwaitable[None]: ...
        def on_guild_unavailable(self, arg: GuildUnavailableEvent, /) -> utils.MaybeAwaitable[None]: ...
        def on_guild_member_add(self, arg: GuildMemberAddEvent, /) -> utils.MaybeAwaitable[None]: ...
        def on_guild_member_remove(self, arg: GuildMemberRemoveEvent, /) -> utils.MaybeAwaitable[None]: ...
        def on_message_create(self, arg: MessageCreateEvent, /) -> utils.MaybeAwaitable[None]: ...


__all__ = (
    'ClientEventHandler',
    'EventSubscription',
    'TemporarySubscription',
    'TemporarySubscriptionListIterator',
    'TemporarySubscriptionList',
    'Client',
)
