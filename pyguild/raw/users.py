from __future__ import annotations

import typing
import typing_extensions


class User(typing.TypedDict):
    id: str
    username: str
    discriminator: str
    global_name: typing.Optional[str]
    avatar: typing.Optional[str]
    bot: typing_extensions.NotRequired[bool]
    system: typing_extensions.NotRequired[bool]
