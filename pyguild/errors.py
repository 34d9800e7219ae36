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

if typing.TYPE_CHECKING:
    from aiohttp import ClientResponse as Response


class PyguildError(Exception):
    """The root of every exception raised by pyguild."""

    __slots__ = ()


class InvalidArgument(PyguildError, ValueError):
    """Raised when an argument breaks an API limit before any request is made,
    such as attaching an eleventh embed to a message.
    """

    __slots__ = ()


class HTTPException(PyguildError):
    """Raised when the API answers with a non-success status.

    Attributes
    ----------
    response: :class:`aiohttp.ClientResponse`
        The response that carried the error.
    data: Union[Dict[:class:`str`, Any], :class:`str`]
        The decoded body: a dict for JSON errors, otherwise the raw text.
    status: :class:`int`
        The HTTP status code.
    code: :class:`int`
        The API error code, or ``0`` when the body had none.
    text: :class:`str`
        The error message. May be empty.
    errors: Optional[Dict[:class:`str`, Any]]
        Per-field validation errors, when the API sent them.
    retry_after: Optional[:class:`float`]
        Seconds until a ratelimit lifts. Only set on 429 responses.
    """

    __slots__ = (
        'response',
        'data',
        'status',
        'code',
        'text',
        'errors',
        'retry_after',
    )

    def __init__(
        self,
        response: Response,
        data: dict[str, typing.Any] | str,
        /,
    ) -> None:
        self.response: Response = response
        self.data: dict[str, typing.Any] | str = data
        self.status: int = response.status

        body: dict[str, typing.Any] = {'message': data} if isinstance(data, str) else data
        self.code: int = body.get('code', 0)
        self.text: str = body.get('message', '')
        self.errors: dict[str, typing.Any] | None = body.get('errors')
        self.retry_after: float | None = body.get('retry_after')

        message = f'{self.status} {response.reason} (error code: {self.code})'
        if self.text:
            message = f'{message}: {self.text}'
        super().__init__(message)


class Unauthorized(HTTPException):
    __slots__ = ()


class Forbidden(HTTPException):
    __slots__ = ()


class NotFound(HTTPException):
    __slots__ = ()


class Ratelimited(HTTPException):
    __slots__ = ()


class InternalServerError(HTTPException):
    __slots__ = ()


class BadGateway(HTTPException):
    __slots__ = ()


class GatewayError(PyguildError):
    __slots__ = ()


class AuthenticationError(GatewayError):
    """Exception that's raised when the gateway rejects the token."""

    __slots__ = ('code',)

    def __init__(self, code: int | None, /) -> None:
        self.code: int | None = code
        super().__init__(f'Failed to authenticate shard (close code {code})')


class ConnectError(GatewayError):
    __slots__ = ('errors',)

    def __init__(self, tries: int, errors: list[Exception], /) -> None:
        self.errors = errors
        super().__init__(f'Giving up, after {tries} tries, last 3 errors:', errors[-3:])


class InvalidData(PyguildError):
    """Exception that's raised when the library encounters unknown
    or invalid data from the API.
    """

    __slots__ = ('reason',)

    def __init__(self, reason: str, /) -> None:
        self.reason: str = reason
        super().__init__(reason)


class NoData(PyguildError):
    __slots__ = ('what', 'type')

    def __init__(self, what: str, type: str) -> None:
        self.what = what
        self.type = type
        super().__init__(f'Unable to find {type} {what} in cache')


__all__ = (
    'PyguildError',
    'InvalidArgument',
    'HTTPException',
    'Unauthorized',
    'Forbidden',
    'NotFound',
    'Ratelimited',
    'InternalServerError',
    'BadGateway',
    'GatewayError',
    'AuthenticationError',
    'ConnectError',
    'InvalidData',
    'NoData',
)
