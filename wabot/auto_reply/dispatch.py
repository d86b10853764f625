"""
Message dispatcher for wabot.

Runs every inbound message through the command pipeline:
1. Drop broadcasts and empty events
2. Drop duplicates
3. Extract text
4. Require the command prefix
5. Parse command and arguments
6. Auto-read / auto-typing (best-effort)
7. Execute through the command registry
"""

import asyncio
from typing import Any, Iterator
from dataclasses import dataclass

from loguru import logger

from wabot.auto_reply.commands import CommandRegistry, parse_command
from wabot.channels.base import BaseTransport, InboundMessage
from wabot.security.roles import normalize_number


CAPTIONED_MESSAGE_TYPES = ("imageMessage", "videoMessage", "documentMessage")


@dataclass
class DispatchConfig:
    """Configuration for the dispatcher."""
    prefix: str = "!"
    auto_read: bool = False
    auto_typing: bool = False
    typing_seconds: float = 1.0
    dedup_capacity: int = 1000


class ProcessedMessages:
    """
    Bounded set of recently seen message IDs.

    Once more than `capacity` IDs are held, the oldest
    capacity // 2 are evicted.
    """

    def __init__(self, capacity: int = 1000):
        self.capacity = capacity
        self._ids: dict[str, None] = {}

    def __contains__(self, message_id: str) -> bool:
        return message_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def add(self, message_id: str) -> bool:
        """
        Record a message ID.

        Returns:
            False if the ID was already present.
        """
        if message_id in self._ids:
            return False

        self._ids[message_id] = None

        if len(self._ids) > self.capacity:
            stale = list(self._ids)[: self.capacity // 2]
            for old_id in stale:
                del self._ids[old_id]

        return True


def _iter_text(content: dict[str, Any]) -> Iterator[str | None]:
    """Yield text candidates in precedence order, computing each on demand."""
    yield content.get("conversation")

    extended = content.get("extendedTextMessage") or {}
    yield extended.get("text")

    for message_type in CAPTIONED_MESSAGE_TYPES:
        yield (content.get(message_type) or {}).get("caption")

    # Quoted text only stands in when there is no own text at this level
    if not extended.get("text"):
        quoted = (extended.get("contextInfo") or {}).get("quotedMessage")
        if quoted:
            yield extract_text(quoted)


def extract_text(content: dict[str, Any] | None) -> str | None:
    """
    Extract the text of a message payload.

    Precedence: plain conversation text, extended text, media caption
    (image, video, document), then the text of the quoted message.
    Own text always wins over quoted text.

    Returns:
        The first non-empty text, or None.
    """
    if not content or not isinstance(content, dict):
        return None

    for candidate in _iter_text(content):
        if candidate and isinstance(candidate, str):
            return candidate
    return None


def is_ignored_chat(jid: str) -> bool:
    """Status updates and broadcast lists are not conversations."""
    return not jid or jid == "status@broadcast" or jid.endswith("@broadcast")


class MessageDispatcher:
    """
    Dispatches inbound messages to the command registry.

    Never raises: every failure is logged and the next
    message is handled normally.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        config: DispatchConfig | None = None,
    ):
        self.registry = registry
        self.config = config or DispatchConfig()
        self.processed = ProcessedMessages(self.config.dedup_capacity)

        # Pending "available" presence reverts
        self._presence_tasks: set[asyncio.Task] = set()

        # Stats
        self._received_count = 0
        self._duplicate_count = 0
        self._command_count = 0
        self._error_count = 0

    async def handle(self, transport: BaseTransport, message: InboundMessage) -> None:
        """Handle a single inbound message."""
        try:
            await self._handle(transport, message)
        except Exception as e:
            self._error_count += 1
            logger.exception(f"Error handling message: {e}")

    async def handle_upsert(self, transport: BaseTransport, payload: dict[str, Any]) -> None:
        """
        Handle a messages.upsert event.

        Args:
            transport: Transport the event came from.
            payload: {"messages": [...], "type": "notify"} as sent by the bridge.
        """
        try:
            raw_messages = payload.get("messages") or []
        except AttributeError:
            logger.warning(f"Malformed upsert payload: {type(payload).__name__}")
            return

        for raw in raw_messages:
            try:
                message = InboundMessage.from_dict(raw)
            except Exception as e:
                logger.warning(f"Skipping malformed message: {e}")
                continue
            await self.handle(transport, message)

    async def _handle(self, transport: BaseTransport, message: InboundMessage) -> None:
        self._received_count += 1

        if not message.message or is_ignored_chat(message.chat_id):
            return

        if message.id:
            if not self.processed.add(message.id):
                self._duplicate_count += 1
                logger.debug(f"Duplicate message ignored: {message.id}")
                return

        text = extract_text(message.message)
        if not text:
            return

        command = parse_command(text, self.config.prefix)
        if command is None:
            return

        self._command_count += 1
        logger.info(f"Command received: {command.name} from {normalize_number(message.sender)}")

        await self._auto_presence(transport, message)

        await self.registry.execute(transport, message, command.name, command.arguments)

    async def _auto_presence(self, transport: BaseTransport, message: InboundMessage) -> None:
        """Mark read and show typing, if enabled. Failures are only logged."""
        if self.config.auto_read:
            try:
                await transport.read_messages([message.key])
            except Exception as e:
                logger.warning(f"Auto-read failed for {message.id}: {e}")

        if self.config.auto_typing:
            try:
                await transport.send_presence_update("composing", message.chat_id)
            except Exception as e:
                logger.warning(f"Typing presence failed for {message.chat_id}: {e}")
                return

            task = asyncio.create_task(self._revert_presence(transport, message.chat_id))
            self._presence_tasks.add(task)
            task.add_done_callback(self._presence_tasks.discard)

    async def _revert_presence(self, transport: BaseTransport, chat_id: str) -> None:
        await asyncio.sleep(self.config.typing_seconds)
        try:
            await transport.send_presence_update("available", chat_id)
        except Exception as e:
            logger.warning(f"Presence revert failed for {chat_id}: {e}")

    async def close(self) -> None:
        """Cancel pending presence updates."""
        for task in list(self._presence_tasks):
            task.cancel()
        if self._presence_tasks:
            await asyncio.gather(*self._presence_tasks, return_exceptions=True)
        self._presence_tasks.clear()

    def get_stats(self) -> dict[str, Any]:
        """Get dispatcher statistics."""
        return {
            "received_count": self._received_count,
            "duplicate_count": self._duplicate_count,
            "command_count": self._command_count,
            "error_count": self._error_count,
            "tracked_message_ids": len(self.processed),
        }
