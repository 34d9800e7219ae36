from __future__ import annotations

from aiohttp import ClientSession, web
import json
import pytest
import pyguild

sent: list[tuple[str, list[tuple[str, str | None, bytes]]]] = []

routes = web.RouteTableDef()


@routes.post('/channels/{channel_id}/messages')
async def create_message(request: web.Request) -> web.Response:
    if request.content_type == 'multipart/form-data':
        parts = []
        reader = await request.multipart()
        async for part in reader:
            parts.append((part.name, part.filename, await part.read()))  # type: ignore
        sent.append(('multipart', parts))
        payload = json.loads(parts[0][2])
    else:
        payload = await request.json()
        sent.append(('json', [('body', None, await request.read())]))

    return web.json_response(
        {
            'id': '5001',
            'channel_id': request.match_info['channel_id'],
            'content': payload.get('content', ''),
            'author': {'id': '2001', 'username': 'grace'},
            'tts': payload.get('tts', False),
            'embeds': payload.get('embeds', []),
            'edited_timestamp': None,
        }
    )


async def run_api_site(port: int) -> web.TCPSite:
    app = web.Application()
    app.add_routes(routes)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host='127.0.0.1', port=port)

    await site.start()
    return site


def test_empty_builder():
    builder = pyguild.MessageBuilder.new()
    assert builder.to_dict() == {}
    assert not builder.requires_multipart()

    builder.set_content('')
    assert builder.to_dict() == {}


def test_tts_only():
    builder = pyguild.MessageBuilder.new().set_tts(True)
    assert builder.tts is True
    assert builder.to_dict() == {'tts': True}


def test_embed_limit():
    builder = pyguild.MessageBuilder()
    embeds = [pyguild.Embed(title=f'Embed #{i}') for i in range(10)]

    builder.add_embed(*embeds)
    assert len(builder.embeds) == 10

    with pytest.raises(pyguild.InvalidArgument):
        builder.add_embed(pyguild.Embed(title='One too many'))
    assert len(builder.embeds) == 10

    builder = pyguild.MessageBuilder()
    builder.add_embed(*embeds[:9])

    # Adding two would overflow, so neither is added
    with pytest.raises(pyguild.InvalidArgument):
        builder.add_embed(*embeds[:2])
    assert len(builder.embeds) == 9

    with pytest.raises(pyguild.InvalidArgument):
        builder.set_embeds([pyguild.Embed(title='x')] * 11)
    assert len(builder.embeds) == 9

    builder.set_embeds([{'title': 'raw'}])
    assert builder.to_dict() == {'embeds': [{'title': 'raw'}]}


def test_reply_reference():
    reference = pyguild.MessageReference(message_id='5000', channel_id='4000')
    builder = pyguild.MessageBuilder.new().set_content('Hi!').set_reply_to(reference)

    assert builder.to_dict() == {
        'content': 'Hi!',
        'message_reference': {'message_id': '5000', 'channel_id': '4000'},
    }

    builder.set_reply_to(None)
    assert builder.to_dict() == {'content': 'Hi!'}


def test_add_file(tmp_path):
    path = tmp_path / 'notes.txt'
    path.write_bytes(b'hello world')

    builder = pyguild.MessageBuilder.new()
    builder.add_file(path)
    builder.add_file(str(path), 'renamed.txt')

    assert builder.num_files() == 2
    assert builder.files == [('notes.txt', b'hello world'), ('renamed.txt', b'hello world')]
    assert builder.requires_multipart()

    with pytest.raises(FileNotFoundError):
        builder.add_file(tmp_path / 'missing.png')
    assert builder.num_files() == 2

    builder.clear_files()
    assert not builder.requires_multipart()


def test_multipart_order():
    builder = (
        pyguild.MessageBuilder.new()
        .set_content('files')
        .add_file_from_content('a.txt', 'first')
        .add_file_from_content('b.bin', b'\x00\x01')
    )

    fields = builder.to_multipart().fields
    assert [f.name for f in fields] == ['payload_json', 'file0', 'file1']

    payload_json = fields[0]
    assert payload_json.content_type == 'application/json'
    assert json.loads(payload_json.value) == {'content': 'files'}

    assert fields[1].filename == 'a.txt'
    assert fields[1].value == b'first'
    assert fields[2].filename == 'b.bin'
    assert fields[2].value == b'\x00\x01'


@pytest.mark.asyncio
async def test_send_message():
    site = await run_api_site(5301)
    sent.clear()

    state = pyguild.State()
    http = pyguild.HTTPClient('token', base='http://127.0.0.1:5301', session=ClientSession(), state=state)
    state.setup(http=http)

    message = await http.send_message('4000', pyguild.MessageBuilder.new().set_content('plain'))
    assert message.id == '5001'
    assert message.channel_id == '4000'
    assert message.content == 'plain'

    kind, parts = sent[0]
    assert kind == 'json'
    assert json.loads(parts[0][2]) == {'content': 'plain'}

    builder = pyguild.MessageBuilder.new().set_content('attached').add_file_from_content('a.txt', 'data')
    message = await http.send_message('4000', builder)
    assert message.content == 'attached'

    kind, parts = sent[1]
    assert kind == 'multipart'
    assert [(name, filename) for name, filename, _ in parts] == [('payload_json', None), ('file0', 'a.txt')]
    assert parts[1][2] == b'data'

    await http.cleanup()
    await site.stop()
