import pyguild

client = pyguild.Client(token='token', intents=pyguild.Intents.default() | pyguild.Intents.message_content)


@client.on(pyguild.ReadyEvent)
async def on_ready(_) -> None:
    print('Logged on as', client.me)


@client.on(pyguild.MessageCreateEvent)
async def on_message(event: pyguild.MessageCreateEvent):
    message = event.message

    # don't respond to ourselves
    if client.me and client.me.id == message.author.id:
        return

    if message.content == 'ping':
        await message.reply('pong')


client.run()
