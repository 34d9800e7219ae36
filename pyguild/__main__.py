from __future__ import annotations

import aiohttp
import argparse
import asyncio
import platform
import pyguild
import sys


def show_version() -> None:
    entries = []

    entries.append('- Python v{0.major}.{0.minor}.{0.micro}-{0.releaselevel}'.format(sys.version_info))
    entries.append('- pyguild v{}'.format(pyguild.__version__))

    entries.append(f'- aiohttp v{aiohttp.__version__}')
    uname = platform.uname()
    entries.append('- system info: {0.system} {0.release} {0.version}'.format(uname))
    print('\n'.join(entries))


async def send(token: str, channel_id: str, content: str, *, tts: bool, files: list[str]) -> None:
    builder = pyguild.MessageBuilder.new().set_content(content).set_tts(tts)
    for path in files:
        builder.add_file(path)

    session = aiohttp.ClientSession()
    state = pyguild.State()
    http = pyguild.HTTPClient(token, session=session, state=state)
    state.setup(http=http)

    async with session:
        message = await http.send_message(channel_id, builder)

    print('Sent message', message.id, 'to channel', message.channel_id)


def _send(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        asyncio.run(send(args.token, args.channel, args.content, tts=args.tts, files=args.file or []))
    except FileNotFoundError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)
    except pyguild.HTTPException as exc:
        print('Sending failed:', exc, file=sys.stderr)
        sys.exit(1)


def add_send_args(subparser: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparser.add_parser('send', help='send a message to a channel')
    parser.set_defaults(func=_send)

    parser.add_argument('channel', help='channel ID')
    parser.add_argument('content', help='message content')
    parser.add_argument('--token', required=True, help='bot token')
    parser.add_argument('--tts', action='store_true', help='read the message aloud')
    parser.add_argument('--file', action='append', metavar='PATH', help='attach a file, can be repeated')


def core(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if args.version:
        show_version()
    else:
        parser.print_help()


def parse_args() -> tuple[argparse.ArgumentParser, argparse.Namespace]:
    parser = argparse.ArgumentParser(prog='pyguild', description='Tools for helping with pyguild')
    parser.add_argument('-v', '--version', action='store_true', help='shows the library version')
    parser.set_defaults(func=core)

    subparser = parser.add_subparsers(dest='subcommand', title='subcommands')
    add_send_args(subparser)

    return parser, parser.parse_args()


def main() -> None:
    parser, args = parse_args()
    args.func(parser, args)


if __name__ == '__main__':
    main()
