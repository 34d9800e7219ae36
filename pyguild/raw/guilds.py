from __future__ import annotations

import typing
import typing_extensions

from .users import User

StatusType = typing.Literal['online', 'idle', 'dnd', 'offline', 'invisible']
ActivityType = typing.Literal[0, 1, 2, 3, 4, 5]


class Role(typing.TypedDict):
    id: str
    name: str
    color: int
    hoist: bool
    position: int
    permissions: str
    managed: bool
    mentionable: bool


class Activity(typing.TypedDict):
    name: str
    type: ActivityType
    url: typing_extensions.NotRequired[typing.Optional[str]]


class Member(typing.TypedDict):
    user: typing_extensions.NotRequired[User]
    nick: typing_extensions.NotRequired[typing.Optional[str]]
    roles: list[str]
    joined_at: str
    deaf: bool
    mute: bool


class MemberWithUser(Member):
    user: User  # type: ignore


class UnavailableGuild(typing.TypedDict):
    id: str
    unavailable: typing_extensions.NotRequired[bool]


class Guild(typing.TypedDict):
    id: str
    name: str
    icon: typing.Optional[str]
    description: typing.Optional[str]
    owner_id: str
    roles: list[Role]
    member_count: typing_extensions.NotRequired[int]
    approximate_member_count: typing_extensions.NotRequired[int]
    unavailable: typing_extensions.NotRequired[bool]


class GatewayGuild(Guild):
    members: typing_extensions.NotRequired[list[MemberWithUser]]


class Ban(typing.TypedDict):
    reason: typing.Optional[str]
    user: User


class DataBanCreate(typing.TypedDict):
    delete_message_seconds: typing_extensions.NotRequired[int]


class DataMemberEdit(typing.TypedDict):
    nick: typing_extensions.NotRequired[typing.Optional[str]]
    roles: typing_extensions.NotRequired[list[str]]
    mute: typing_extensions.NotRequired[bool]
    deaf: typing_extensions.NotRequired[bool]
    channel_id: typing_extensions.NotRequired[typing.Optional[str]]


class DataEditCurrentMember(typing.TypedDict):
    nick: typing_extensions.NotRequired[typing.Optional[str]]
