import pyguild


def test_intents():
    intents = pyguild.Intents(0)
    assert intents.value == 0

    intents |= pyguild.Intents.members
    assert pyguild.Intents.members in intents
    assert intents.value == 2

    intents &= ~pyguild.Intents.members
    assert pyguild.Intents.members not in intents
    assert intents.value == 0

    intents = pyguild.Intents.default()
    assert pyguild.Intents.guilds in intents
    assert pyguild.Intents.guild_messages in intents
    assert pyguild.Intents.members not in intents
    assert pyguild.Intents.message_content not in intents
    assert pyguild.Intents.presences not in intents

    intents = pyguild.Intents.all()
    assert intents.value == 0b1001001110000111
