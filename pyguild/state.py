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

from .parser import Parser

if typing.TYPE_CHECKING:
    from .cache import ProvideCacheContextIn, Cache
    from .http import HTTPClient
    from .shard import Shard
    from .user import User


class State:
    """Represents a manager for all pyguild objects.

    Attributes
    ----------
    provide_cache_context_in: List[:class:`ProvideCacheContextIn`]
        The methods/properties that do provide cache context.
    parser: :class:`Parser`
        The parser.
    store_users: :class:`bool`
        Whether users seen in events should be cached.
    store_members: :class:`bool`
        Whether guild members seen in events should be cached.
    """

    __slots__ = (
        '_cache',
        'provide_cache_context_in',
        '_http',
        'parser',
        '_shard',
        '_me',
        'store_users',
        'store_members',
    )

    def __init__(
        self,
        *,
        cache: Cache | None = None,
        provide_cache_context_in: list[ProvideCacheContextIn] | None = None,
        http: HTTPClient | None = None,
        parser: Parser | None = None,
        shard: Shard | None = None,
        store_users: bool = True,
        store_members: bool = True,
    ) -> None:
        self._cache = cache
        self.provide_cache_context_in: list[ProvideCacheContextIn] = provide_cache_context_in or []
        self._http = http
        self.parser = parser if parser else Parser(state=self)
        self._shard = shard
        self._me: User | None = None
        self.store_users: bool = store_users
        self.store_members: bool = store_members

    def setup(
        self,
        *,
        cache: Cache | None = None,
        http: HTTPClient | None = None,
        parser: Parser | None = None,
        shard: Shard | None = None,
    ) -> State:
        if cache:
            self._cache = cache
        if http:
            self._http = http
        if parser:
            self.parser = parser
        if shard:
            self._shard = shard
        return self

    @property
    def cache(self) -> Cache | None:
        return self._cache

    @property
    def http(self) -> HTTPClient:
        assert self._http, 'State has no HTTP client attached'
        return self._http

    @property
    def shard(self) -> Shard:
        assert self._shard, 'State has no shard attached'
        return self._shard

    @property
    def me(self) -> User | None:
        """Optional[:class:`User`]: The currently logged in user."""
        return self._me


__all__ = ('State',)
