"""
Terminal chat client.

Run from project root:
  python -m scripts.chat_client --room r1 --user alice [--passphrase secret] [--server http://localhost:8000]

Commands: /destroy destroys the room, /quit leaves. Anything else is sent as a message.
"""
import argparse
import asyncio
import logging
import sys
from datetime import datetime

# Add project root so chatroom imports work
sys.path.insert(0, ".")

from chatroom.client import RoomApiClient, RoomSession, RoomView

logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)


class TerminalView:
    """Prints only what changed since the last snapshot."""

    def __init__(self) -> None:
        self.printed_until = 0
        self.users: list = []

    def render(self, view: RoomView) -> None:
        for msg in view.messages:
            if msg.timestamp <= self.printed_until:
                continue
            at = datetime.fromtimestamp(msg.timestamp / 1000).strftime("%H:%M:%S")
            print(f"[{at}] {msg.username}: {msg.message}")
        if view.messages:
            self.printed_until = max(self.printed_until, view.messages[-1].timestamp)
        for line in view.system_messages:
            print(f"** {line}")
        view.system_messages.clear()
        if sorted(view.users) != sorted(self.users):
            self.users = list(view.users)
            print(f"-- online: {', '.join(sorted(self.users)) or '(nobody)'}")
        if view.notice:
            print(f"-- {view.notice}")
            view.notice = None


async def run_client(args: argparse.Namespace) -> None:
    terminal = TerminalView()
    async with RoomApiClient(args.server) as api:
        session = RoomSession(
            api,
            args.room,
            passphrase=args.passphrase,
            min_request_interval_ms=args.min_interval_ms,
            on_update=terminal.render,
        )
        await session.enter_room()
        if not await session.join(args.user):
            terminal.render(session.view)
            await session.stop()
            return

        loop = asyncio.get_running_loop()
        suggested = False
        try:
            while True:
                if not suggested and session.should_suggest_cleanup():
                    print("-- room has been idle for a while, consider /destroy")
                    suggested = True
                line = await loop.run_in_executor(None, sys.stdin.readline)
                if not line or line.strip() == "/quit":
                    break
                if line.strip() == "/destroy":
                    await session.destroy()
                    break
                if not await session.send(line):
                    terminal.render(session.view)
                else:
                    suggested = False
        finally:
            await session.stop()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chatroom terminal client")
    parser.add_argument("--server", default="http://localhost:8000")
    parser.add_argument("--room", required=True)
    parser.add_argument("--user", required=True)
    parser.add_argument("--passphrase", default=None, help="End-to-end room passphrase (never sent to the server)")
    parser.add_argument(
        "--min-interval-ms",
        type=int,
        default=1000,
        help="Spacing between requests; match the server's RATE_LIMIT_WINDOW_MS",
    )
    return parser.parse_args(argv)


if __name__ == "__main__":
    try:
        asyncio.run(run_client(parse_args()))
    except KeyboardInterrupt:
        pass
