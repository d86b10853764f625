"""
Pytest configuration and shared fixtures for wabot tests.
"""

import asyncio
import itertools
from pathlib import Path

import pytest

from wabot.auto_reply.commands import CommandRegistry
from wabot.auto_reply.rate_limit import RateLimiter
from wabot.channels.base import BaseTransport, InboundMessage, MessageKey, OutboundMessage
from wabot.security.roles import RoleManager


OWNER = "1111"
ADMIN = "2222"
USER = "3333"

BUNDLED_PLUGINS_DIR = Path(__file__).parent.parent / "plugins"


class FakeTransport(BaseTransport):
    """Records everything the bot sends."""

    name = "fake"

    def __init__(self):
        self.sent: list[OutboundMessage] = []
        self.read: list[MessageKey] = []
        self.presence: list[tuple[str, str]] = []
        self.fail_send = False
        self._stopped = asyncio.Event()

    async def send(self, message: OutboundMessage) -> None:
        if self.fail_send:
            raise ConnectionError("send failed")
        self.sent.append(message)

    async def read_messages(self, keys: list[MessageKey]) -> None:
        self.read.extend(keys)

    async def send_presence_update(self, state: str, jid: str) -> None:
        self.presence.append((state, jid))

    async def listen(self, on_upsert) -> None:
        await self._stopped.wait()

    async def stop(self) -> None:
        self._stopped.set()

    @property
    def texts(self) -> list[str]:
        return [m.text or m.caption or "" for m in self.sent]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


_ids = itertools.count(1)


def make_message(
    text: str | None = None,
    sender: str = USER,
    chat: str | None = None,
    content: dict | None = None,
    message_id: str | None = None,
) -> InboundMessage:
    """Build an inbound message from `sender` (a bare number)."""
    sender_jid = f"{sender}@s.whatsapp.net"
    if content is None:
        content = {"conversation": text} if text is not None else {}

    if chat and chat.endswith("@g.us"):
        key = MessageKey(remote_jid=chat, id=message_id or f"MSG{next(_ids)}", participant=sender_jid)
    else:
        key = MessageKey(remote_jid=chat or sender_jid, id=message_id or f"MSG{next(_ids)}")

    return InboundMessage(key=key, message=content)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def roles():
    return RoleManager(owner_number=OWNER, admin_numbers=[ADMIN])


@pytest.fixture
def rate_limiter(clock):
    return RateLimiter(max_commands=10, window_seconds=60.0, clock=clock)


@pytest.fixture
def registry(roles, rate_limiter):
    return CommandRegistry(roles, rate_limiter, prefix="!")


@pytest.fixture
def plugins_dir(tmp_path):
    path = tmp_path / "plugins"
    path.mkdir()
    return path
