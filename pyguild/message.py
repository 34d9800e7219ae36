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
import os
import typing

import aiohttp

from .base import Base
from .core import SnowflakeOr, resolve_id
from .embed import Embed
from .errors import InvalidArgument
from .utils import to_json

if typing.TYPE_CHECKING:
    from typing_extensions import Self

    from . import raw
    from .guild import Member
    from .user import User


@define(slots=True)
class MessageReference:
    """Represents a reference to another message, such as the message being replied to."""

    message_id: str = field(repr=True, kw_only=True)
    """:class:`str`: The referenced message's ID."""

    channel_id: str = field(repr=True, kw_only=True)
    """:class:`str`: The referenced message channel's ID."""

    guild_id: typing.Optional[str] = field(repr=True, kw_only=True, default=None)
    """Optional[:class:`str`]: The referenced message guild's ID."""

    def build(self) -> raw.MessageReference:
        payload: raw.MessageReference = {
            'message_id': self.message_id,
            'channel_id': self.channel_id,
        }
        if self.guild_id is not None:
            payload['guild_id'] = self.guild_id
        return payload


@define(slots=True)
class BaseMessage(Base):
    """Represents a message in a channel."""

    channel_id: str = field(repr=True, kw_only=True)
    """:class:`str`: The channel's ID this message was sent in."""

    def __hash__(self) -> int:
        return hash((self.channel_id, self.id))

    def __eq__(self, other: object, /) -> bool:
        return (
            self is other
            or isinstance(other, BaseMessage)
            and self.channel_id == other.channel_id
            and self.id == other.id
        )

    def to_reference(self) -> MessageReference:
        """:class:`.MessageReference`: Creates a reference to this message."""
        return MessageReference(message_id=self.id, channel_id=self.channel_id)

    async def fetch(self) -> Message:
        """|coro|

        Fetches the message from the API.
        """
        return await self.state.http.get_message(self.channel_id, self.id)

    async def reply(
        self,
        content: typing.Optional[str] = None,
        *,
        tts: bool = False,
        embeds: typing.Optional[list[typing.Union[Embed, raw.Embed]]] = None,
    ) -> Message:
        """|coro|

        Replies to this message.

        Parameters
        ----------
        content: Optional[:class:`str`]
            The message content.
        tts: :class:`bool`
            Whether the message should be read aloud.
        embeds: Optional[List[Union[:class:`.Embed`, Dict[:class:`str`, Any]]]]
            The embeds to attach. Up to 10.

        Returns
        -------
        :class:`.Message`
            The message that was sent.
        """
        builder = MessageBuilder.new().set_tts(tts).set_reply_to(self)
        if content is not None:
            builder.set_content(content)
        if embeds:
            builder.set_embeds(embeds)
        return await self.state.http.send_message(self.channel_id, builder)


@define(slots=True)
class Message(BaseMessage):
    """Represents a message in a channel."""

    guild_id: typing.Optional[str] = field(repr=True, kw_only=True)
    """Optional[:class:`str`]: The guild's ID this message was sent in."""

    content: str = field(repr=True, kw_only=True)
    """:class:`str`: The message's content."""

    author: typing.Union[User, Member] = field(repr=True, kw_only=True)
    """Union[:class:`.User`, :class:`.Member`]: The user or member that sent this message."""

    tts: bool = field(repr=True, kw_only=True)
    """:class:`bool`: Whether the message was read aloud."""

    embeds: list[raw.Embed] = field(repr=True, kw_only=True)
    """List[Dict[:class:`str`, Any]]: The message's embeds."""

    edited_at: typing.Optional[datetime] = field(repr=True, kw_only=True)
    """Optional[:class:`~datetime.datetime`]: When the message was last edited."""

    reference: typing.Optional[MessageReference] = field(repr=True, kw_only=True)
    """Optional[:class:`.MessageReference`]: The message this message replies to."""


class MultipartField:
    """Represents a part of a multipart form.

    Attributes
    ----------
    name: :class:`str`
        The part's name.
    value: Union[:class:`str`, :class:`bytes`]
        The part's content.
    content_type: Optional[:class:`str`]
        The part's content type.
    filename: Optional[:class:`str`]
        The filename, for file parts.
    """

    __slots__ = ('name', 'value', 'content_type', 'filename')

    def __init__(
        self,
        name: str,
        value: typing.Union[str, bytes],
        *,
        content_type: typing.Optional[str] = None,
        filename: typing.Optional[str] = None,
    ) -> None:
        self.name: str = name
        self.value: typing.Union[str, bytes] = value
        self.content_type: typing.Optional[str] = content_type
        self.filename: typing.Optional[str] = filename

    def __repr__(self) -> str:
        return f'<MultipartField name={self.name!r} filename={self.filename!r} content_type={self.content_type!r}>'


class Multipart:
    """Represents a multipart form body."""

    __slots__ = ('fields',)

    def __init__(self, fields: typing.Optional[list[MultipartField]] = None) -> None:
        self.fields: list[MultipartField] = fields or []

    def add(self, field: MultipartField, /) -> Self:
        self.fields.append(field)
        return self

    def to_form_data(self) -> aiohttp.FormData:
        """:class:`aiohttp.FormData`: Converts the multipart into form data ready to be sent."""
        form = aiohttp.FormData(quote_fields=False)
        for f in self.fields:
            form.add_field(f.name, f.value, content_type=f.content_type, filename=f.filename)
        return form


class MessageBuilder:
    """Builds a message to send.

    Setters return the builder itself, so calls can be chained:

    .. code-block:: python3

        builder = MessageBuilder.new().set_content('Hello!').add_embed(Embed(title='Hi'))

    Attributes
    ----------
    content: Optional[:class:`str`]
        The message content.
    embeds: List[Dict[:class:`str`, Any]]
        The embeds, already converted to payloads.
    reply_to: Optional[:class:`.MessageReference`]
        The message being replied to.
    files: List[Tuple[:class:`str`, :class:`bytes`]]
        The attachments as ``(filename, content)`` pairs.
    """

    MAX_EMBEDS: typing.ClassVar[int] = 10

    __slots__ = ('content', '_tts', 'embeds', 'reply_to', 'files')

    def __init__(self) -> None:
        self.content: typing.Optional[str] = None
        self._tts: bool = False
        self.embeds: list[raw.Embed] = []
        self.reply_to: typing.Optional[MessageReference] = None
        self.files: list[tuple[str, bytes]] = []

    @classmethod
    def new(cls) -> Self:
        """Creates a new, empty builder."""
        return cls()

    def set_content(self, content: typing.Optional[str], /) -> Self:
        self.content = content
        return self

    def set_tts(self, tts: bool = False, /) -> Self:
        self._tts = tts
        return self

    @property
    def tts(self) -> bool:
        """:class:`bool`: Whether the message will be read aloud."""
        return self._tts

    def add_embed(self, *embeds: typing.Union[Embed, raw.Embed]) -> Self:
        """Adds embeds to the message.

        Raises
        ------
        :class:`InvalidArgument`
            The message would have more than 10 embeds. No embeds are added in that case.
        """
        if len(self.embeds) + len(embeds) > self.MAX_EMBEDS:
            raise InvalidArgument(f'You can only have {self.MAX_EMBEDS} embeds per message.')

        for embed in embeds:
            if isinstance(embed, Embed):
                self.embeds.append(embed.to_dict())
            else:
                self.embeds.append(embed)
        return self

    def set_embeds(self, embeds: list[typing.Union[Embed, raw.Embed]], /) -> Self:
        """Replaces the message embeds.

        Raises
        ------
        :class:`InvalidArgument`
            More than 10 embeds were given. The embeds are left unchanged in that case.
        """
        if len(embeds) > self.MAX_EMBEDS:
            raise InvalidArgument(f'You can only have {self.MAX_EMBEDS} embeds per message.')
        self.embeds.clear()
        return self.add_embed(*embeds)

    def set_reply_to(self, message: typing.Optional[typing.Union[BaseMessage, MessageReference]], /) -> Self:
        """Sets the message to reply to. ``None`` removes the reply."""
        if isinstance(message, BaseMessage):
            message = message.to_reference()
        self.reply_to = message
        return self

    def add_file(self, path: typing.Union[str, os.PathLike[str]], /, filename: typing.Optional[str] = None) -> Self:
        """Attaches a local file to the message.

        .. warning::
            The file is read synchronously and blocks the event loop while doing so.
            For remote or large content, read it yourself and use :meth:`add_file_from_content`.

        Parameters
        ----------
        path: Union[:class:`str`, :class:`os.PathLike`]
            The path to the file.
        filename: Optional[:class:`str`]
            The filename to upload as. Defaults to the path's basename.

        Raises
        ------
        :class:`FileNotFoundError`
            The file does not exist.
        """
        path = os.fspath(path)
        if not os.path.isfile(path):
            raise FileNotFoundError(f'File does not exist at path {path}.')

        if filename is None:
            filename = os.path.basename(path)

        with open(path, 'rb') as fp:
            return self.add_file_from_content(filename, fp.read())

    def add_file_from_content(self, filename: str, content: typing.Union[str, bytes], /) -> Self:
        """Attaches a file with the given content to the message."""
        if isinstance(content, str):
            content = content.encode('utf-8')
        self.files.append((filename, content))
        return self

    def num_files(self) -> int:
        """:class:`int`: The number of attached files."""
        return len(self.files)

    def clear_files(self) -> Self:
        self.files.clear()
        return self

    def requires_multipart(self) -> bool:
        """:class:`bool`: Whether the message must be sent as multipart form data."""
        return len(self.files) > 0

    def to_multipart(self) -> Multipart:
        """Builds the multipart body of the message.

        The first part is always ``payload_json``, followed by ``file0``, ``file1`` and so on.
        """
        multipart = Multipart()
        multipart.add(MultipartField('payload_json', to_json(self.to_dict()), content_type='application/json'))
        for idx, (filename, content) in enumerate(self.files):
            multipart.add(
                MultipartField(f'file{idx}', content, content_type='application/octet-stream', filename=filename)
            )
        return multipart

    def to_dict(self) -> raw.DataMessageSend:
        """Builds the JSON body of the message.

        Unset fields are omitted rather than sent as ``null``.
        """
        payload: raw.DataMessageSend = {}
        if self.content:
            payload['content'] = self.content
        if self._tts:
            payload['tts'] = True
        if self.embeds:
            payload['embeds'] = list(self.embeds)
        if self.reply_to is not None:
            payload['message_reference'] = self.reply_to.build()
        return payload


__all__ = (
    'MessageReference',
    'BaseMessage',
    'Message',
    'MultipartField',
    'Multipart',
    'MessageBuilder',
)
