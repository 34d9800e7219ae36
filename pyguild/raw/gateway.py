from __future__ import annotations

import typing
import typing_extensions

from .guilds import GatewayGuild, Guild, Member, MemberWithUser, UnavailableGuild
from .messages import Message
from .users import User


class GatewayPayload(typing.TypedDict):
    op: int
    d: typing.Any
    s: typing.Optional[int]
    t: typing.Optional[str]


class Hello(typing.TypedDict):
    heartbeat_interval: int


class GatewayBot(typing.TypedDict):
    url: str
    shards: int


class IdentifyProperties(typing.TypedDict):
    os: str
    browser: str
    device: str


class Identify(typing.TypedDict):
    token: str
    intents: int
    properties: IdentifyProperties
    compress: typing_extensions.NotRequired[bool]
    large_threshold: typing_extensions.NotRequired[int]


class Resume(typing.TypedDict):
    token: str
    session_id: str
    seq: int


class ClientReadyEvent(typing.TypedDict):
    v: int
    user: User
    guilds: list[UnavailableGuild]
    session_id: str
    resume_gateway_url: str


ClientGuildCreateEvent = typing.Union[GatewayGuild, UnavailableGuild]
ClientGuildUpdateEvent = typing.Union[Guild, UnavailableGuild]


class ClientGuildMemberAddEvent(MemberWithUser):
    guild_id: str


class ClientGuildMemberRemoveEvent(typing.TypedDict):
    guild_id: str
    user: User


class ClientMessageCreateEvent(Message):
    member: typing_extensions.NotRequired[Member]


__all__ = (
    'GatewayPayload',
    'Hello',
    'GatewayBot',
    'IdentifyProperties',
    'Identify',
    'Resume',
    'ClientReadyEvent',
    'ClientGuildCreateEvent',
    'ClientGuildUpdateEvent',
    'ClientGuildMemberAddEvent',
    'ClientGuildMemberRemoveEvent',
    'ClientMessageCreateEvent',
)
