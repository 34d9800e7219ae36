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

# setup_logging and copy_doc are adapted from discord.py (Rapptz/discord.py, discord/utils.py).

from __future__ import annotations

import datetime
import inspect
import json
import logging
import os
import sys
import typing
from urllib.parse import quote

import aiohttp

try:
    import orjson  # type: ignore
except ModuleNotFoundError:
    HAS_ORJSON = False
else:
    HAS_ORJSON = True

if typing.TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    P = typing.ParamSpec('P')
    T = typing.TypeVar('T')

    MaybeAwaitable = T | Awaitable[T]
    MaybeAwaitableFunc = Callable[P, MaybeAwaitable[T]]


from .core import UNDEFINED, UndefinedOr


if HAS_ORJSON:

    def to_json(obj: typing.Any) -> str:
        return orjson.dumps(obj).decode('utf-8')  # type: ignore

    from_json = orjson.loads  # type: ignore

else:

    def to_json(obj: typing.Any) -> str:
        return json.dumps(obj, separators=(',', ':'), ensure_ascii=True)

    from_json = json.loads


async def maybe_coroutine(f: MaybeAwaitableFunc[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """|coro|

    Calls ``f`` and awaits the result if it is awaitable.
    """
    result = f(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result  # type: ignore


def copy_doc(original: Callable[..., typing.Any]) -> Callable[[T], T]:
    """Returns a decorator that gives the wrapped function the docstring and signature of ``original``.

    Parameters
    ----------
    original: Callable[..., Any]
        The function to take documentation from.
    """

    def decorator(target: T) -> T:
        target.__doc__ = original.__doc__
        target.__signature__ = inspect.signature(original)  # type: ignore
        return target

    return decorator


async def _json_or_text(response: aiohttp.ClientResponse) -> typing.Any:
    text = await response.text(encoding='utf-8')
    # Proxies in front of the API sometimes omit the content type entirely
    content_type = response.headers.get('content-type', '')
    if content_type.startswith('application/json'):
        return from_json(text)
    return text


def parse_time(timestamp: str | None, /) -> datetime.datetime | None:
    """Optional[:class:`~datetime.datetime`]: Parses an ISO 8601 timestamp, if one was given."""
    return datetime.datetime.fromisoformat(timestamp) if timestamp else None


def quote_reason(reason: str, /) -> str:
    """:class:`str`: Percent-encodes an audit log reason so it can be sent as a header value."""
    return quote(reason, safe='/ ')


def utcnow() -> datetime.datetime:
    """:class:`~datetime.datetime`: The current time, timezone-aware in UTC."""
    return datetime.datetime.now(datetime.timezone.utc)


def is_docker() -> bool:
    if os.path.exists('/.dockerenv'):
        return True
    try:
        with open('/proc/self/cgroup') as fp:
            return any('docker' in line for line in fp)
    except OSError:
        return False


def stream_supports_color(stream: typing.Any, /) -> bool:
    isatty = getattr(stream, 'isatty', None)
    tty = bool(isatty and isatty())

    # Editor terminals render colors but are not always reported as TTYs
    if os.environ.get('TERM_PROGRAM') == 'vscode' or 'PYCHARM_HOSTED' in os.environ:
        return tty

    if sys.platform == 'win32':
        return tty and ('WT_SESSION' in os.environ or 'ANSICON' in os.environ)

    return tty or is_docker()


_LEVEL_COLORS: dict[int, str] = {
    logging.DEBUG: '\x1b[40;1m',
    logging.INFO: '\x1b[34;1m',
    logging.WARNING: '\x1b[33;1m',
    logging.ERROR: '\x1b[31m',
    logging.CRITICAL: '\x1b[41m',
}

_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class _ColorFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(datefmt=_DATE_FORMAT)
        self._by_level: dict[int, logging.Formatter] = {}
        for level, color in _LEVEL_COLORS.items():
            fmt = f'\x1b[30;1m%(asctime)s\x1b[0m {color}%(levelname)-8s\x1b[0m \x1b[35m%(name)s\x1b[0m %(message)s'
            self._by_level[level] = logging.Formatter(fmt, _DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        formatter = self._by_level.get(record.levelno, self._by_level[logging.DEBUG])

        if record.exc_info:
            record.exc_text = '\x1b[31m' + formatter.formatException(record.exc_info) + '\x1b[0m'

        try:
            return formatter.format(record)
        finally:
            record.exc_text = None


def new_formatter(handler: logging.Handler) -> logging.Formatter:
    """Picks a formatter for ``handler``: colored when it writes to a color-capable stream, plain otherwise.

    Parameters
    ----------
    handler: :class:`logging.Handler`
        The handler the formatter is for.

    Returns
    -------
    :class:`logging.Formatter`
        The formatter.
    """
    if isinstance(handler, logging.StreamHandler) and stream_supports_color(handler.stream):
        return _ColorFormatter()
    return logging.Formatter('[{asctime}] [{levelname:<8}] {name}: {message}', _DATE_FORMAT, style='{')


def setup_logging(
    *,
    handler: UndefinedOr[logging.Handler] = UNDEFINED,
    formatter: UndefinedOr[logging.Formatter] = UNDEFINED,
    level: UndefinedOr[int] = UNDEFINED,
    root: bool = True,
) -> None:
    """Attaches a handler to the root logger, or to the ``pyguild`` logger when ``root`` is ``False``.

    :meth:`Client.run` calls this unless ``log_handler`` is ``None``.

    Parameters
    ----------
    handler: :class:`logging.Handler`
        Where records go. Defaults to a :class:`logging.StreamHandler` writing to stderr.
    formatter: :class:`logging.Formatter`
        How records look. Defaults to :func:`new_formatter` for the handler.
    level: :class:`int`
        The minimum level to emit. Defaults to ``logging.INFO``.
    root: :class:`bool`
        Whether to configure the root logger.
    """
    if handler is UNDEFINED:
        handler = logging.StreamHandler()
    if formatter is UNDEFINED:
        formatter = new_formatter(handler)
    if level is UNDEFINED:
        level = logging.INFO

    logger = logging.getLogger() if root else logging.getLogger(__name__.partition('.')[0])

    handler.setFormatter(formatter)
    logger.setLevel(level)
    logger.addHandler(handler)


def resolve_annotation(
    annotation: typing.Any,
    globalns: dict[str, typing.Any],
    localns: dict[str, typing.Any] | None,
    /,
) -> typing.Any:
    """Turns a parameter annotation into a type, evaluating string annotations in the given namespaces."""
    if annotation is None:
        return type(None)
    if not isinstance(annotation, str):
        return annotation
    return eval(annotation, globalns, globalns if localns is None else localns)


__all__ = (
    'to_json',
    'from_json',
    'maybe_coroutine',
    'copy_doc',
    '_json_or_text',
    'parse_time',
    'quote_reason',
    'utcnow',
    'is_docker',
    'stream_supports_color',
    'new_formatter',
    'setup_logging',
    'resolve_annotation',
)
