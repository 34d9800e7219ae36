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

from datetime import datetime
import typing

from .errors import InvalidArgument

if typing.TYPE_CHECKING:
    from typing_extensions import Self

    from . import raw


class Embed:
    """Represents a rich embed before it is sent.

    Setters return the embed itself, so calls can be chained.

    Attributes
    ----------
    title: Optional[:class:`str`]
        The embed's title.
    description: Optional[:class:`str`]
        The embed's description.
    url: Optional[:class:`str`]
        The URL the title links to.
    color: Optional[:class:`int`]
        The embed color as RGB integer.
    timestamp: Optional[:class:`~datetime.datetime`]
        The timestamp shown in the footer.
    """

    MAX_FIELDS: typing.ClassVar[int] = 25

    __slots__ = (
        'title',
        'description',
        'url',
        'color',
        'timestamp',
        '_footer',
        '_image',
        '_thumbnail',
        '_author',
        '_fields',
    )

    def __init__(
        self,
        title: typing.Optional[str] = None,
        description: typing.Optional[str] = None,
        *,
        url: typing.Optional[str] = None,
        color: typing.Optional[int] = None,
        timestamp: typing.Optional[datetime] = None,
    ) -> None:
        self.title: typing.Optional[str] = title
        self.description: typing.Optional[str] = description
        self.url: typing.Optional[str] = url
        self.color: typing.Optional[int] = color
        self.timestamp: typing.Optional[datetime] = timestamp
        self._footer: typing.Optional[raw.EmbedFooter] = None
        self._image: typing.Optional[raw.EmbedMedia] = None
        self._thumbnail: typing.Optional[raw.EmbedMedia] = None
        self._author: typing.Optional[raw.EmbedAuthor] = None
        self._fields: list[raw.EmbedField] = []

    def __len__(self) -> int:
        total = len(self.title or '') + len(self.description or '')
        for f in self._fields:
            total += len(f['name']) + len(f['value'])
        if self._footer:
            total += len(self._footer['text'])
        if self._author:
            total += len(self._author['name'])
        return total

    def set_footer(self, text: str, *, icon_url: typing.Optional[str] = None) -> Self:
        footer: raw.EmbedFooter = {'text': text}
        if icon_url is not None:
            footer['icon_url'] = icon_url
        self._footer = footer
        return self

    def set_image(self, url: str, /) -> Self:
        self._image = {'url': url}
        return self

    def set_thumbnail(self, url: str, /) -> Self:
        self._thumbnail = {'url': url}
        return self

    def set_author(self, name: str, *, url: typing.Optional[str] = None, icon_url: typing.Optional[str] = None) -> Self:
        author: raw.EmbedAuthor = {'name': name}
        if url is not None:
            author['url'] = url
        if icon_url is not None:
            author['icon_url'] = icon_url
        self._author = author
        return self

    def add_field(self, name: str, value: str, *, inline: bool = True) -> Self:
        """Adds a field to the embed.

        Raises
        ------
        :class:`InvalidArgument`
            The embed already has 25 fields.
        """
        if len(self._fields) >= self.MAX_FIELDS:
            raise InvalidArgument(f'You can only have {self.MAX_FIELDS} fields per embed.')
        self._fields.append({'name': name, 'value': value, 'inline': inline})
        return self

    def clear_fields(self) -> Self:
        self._fields.clear()
        return self

    @property
    def fields(self) -> list[raw.EmbedField]:
        return list(self._fields)

    def to_dict(self) -> raw.Embed:
        payload: raw.Embed = {'type': 'rich'}
        if self.title is not None:
            payload['title'] = self.title
        if self.description is not None:
            payload['description'] = self.description
        if self.url is not None:
            payload['url'] = self.url
        if self.color is not None:
            payload['color'] = self.color
        if self.timestamp is not None:
            payload['timestamp'] = self.timestamp.isoformat()
        if self._footer is not None:
            payload['footer'] = self._footer
        if self._image is not None:
            payload['image'] = self._image
        if self._thumbnail is not None:
            payload['thumbnail'] = self._thumbnail
        if self._author is not None:
            payload['author'] = self._author
        if self._fields:
            payload['fields'] = list(self._fields)
        return payload


__all__ = ('Embed',)
