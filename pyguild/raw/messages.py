from __future__ import annotations

import typing
import typing_extensions

from .users import User


class EmbedFooter(typing.TypedDict):
    text: str
    icon_url: typing_extensions.NotRequired[str]


class EmbedMedia(typing.TypedDict):
    url: str


class EmbedAuthor(typing.TypedDict):
    name: str
    url: typing_extensions.NotRequired[str]
    icon_url: typing_extensions.NotRequired[str]


class EmbedField(typing.TypedDict):
    name: str
    value: str
    inline: bool


class Embed(typing.TypedDict):
    title: typing_extensions.NotRequired[str]
    type: typing_extensions.NotRequired[str]
    description: typing_extensions.NotRequired[str]
    url: typing_extensions.NotRequired[str]
    timestamp: typing_extensions.NotRequired[str]
    color: typing_extensions.NotRequired[int]
    footer: typing_extensions.NotRequired[EmbedFooter]
    image: typing_extensions.NotRequired[EmbedMedia]
    thumbnail: typing_extensions.NotRequired[EmbedMedia]
    author: typing_extensions.NotRequired[EmbedAuthor]
    fields: typing_extensions.NotRequired[list[EmbedField]]


class MessageReference(typing.TypedDict):
    message_id: typing_extensions.NotRequired[str]
    channel_id: typing_extensions.NotRequired[str]
    guild_id: typing_extensions.NotRequired[str]


class Message(typing.TypedDict):
    id: str
    channel_id: str
    guild_id: typing_extensions.NotRequired[str]
    author: User
    content: str
    timestamp: str
    edited_timestamp: typing.Optional[str]
    tts: bool
    embeds: list[Embed]
    message_reference: typing_extensions.NotRequired[MessageReference]


class DataMessageSend(typing.TypedDict):
    content: typing_extensions.NotRequired[str]
    tts: typing_extensions.NotRequired[bool]
    embeds: typing_extensions.NotRequired[list[Embed]]
    message_reference: typing_extensions.NotRequired[MessageReference]
