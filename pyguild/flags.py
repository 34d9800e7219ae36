from __future__ import annotations

from enum import IntFlag


class Intents(IntFlag):
    """Gateway intents control which events the gateway sends to a shard.

    ``members`` and ``message_content`` are privileged and must be enabled
    for the application before identifying with them.
    """

    guilds = 1 << 0
    members = 1 << 1
    moderation = 1 << 2
    voice_states = 1 << 7
    presences = 1 << 8
    guild_messages = 1 << 9
    direct_messages = 1 << 12
    message_content = 1 << 15

    @classmethod
    def default(cls) -> Intents:
        """:class:`Intents`: All intents except the privileged ones."""
        return cls.guilds | cls.moderation | cls.voice_states | cls.guild_messages | cls.direct_messages

    @classmethod
    def all(cls) -> Intents:
        value = cls(0)
        for member in cls:
            value |= member
        return value


__all__ = ('Intents',)
