import pyguild

client = pyguild.Client(
    token='token',
    intents=pyguild.Intents.default() | pyguild.Intents.members | pyguild.Intents.message_content,
)


@client.on(pyguild.MessageCreateEvent)
async def on_message(event: pyguild.MessageCreateEvent):
    message = event.message
    author = message.author

    if not isinstance(author, pyguild.Member):
        return

    if message.content == '!quiet':
        await author.set_nickname('quiet one', reason='Asked for it')
        await message.reply('Done.')
    elif message.content.startswith('!ban') and author.id == author.guild.owner_id:
        user_id = message.content.removeprefix('!ban').strip()
        await author.guild.ban(user_id, delete_message_days=1, reason=f'Banned by {author}')
        await message.reply(f'Banned <@{user_id}>.')


@client.on(pyguild.GuildMemberRemoveEvent)
async def on_member_remove(event: pyguild.GuildMemberRemoveEvent):
    guild = client.get_guild(event.guild_id)
    if guild:
        print(f'{event.user} left {guild.name}, {guild.member_count} members remain')


client.run()
