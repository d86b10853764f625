"""
Transport interface for wabot.

The transport owns the WhatsApp session. wabot only needs to:
- receive message events
- send text or image messages
- mark messages read and update presence
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable
from dataclasses import dataclass


GROUP_SUFFIX = "@g.us"


@dataclass
class MessageKey:
    """Identifies a message within a conversation."""
    remote_jid: str
    id: str
    from_me: bool = False
    participant: str | None = None  # Author inside a group

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MessageKey":
        return cls(
            remote_jid=data.get("remoteJid") or "",
            id=data.get("id") or "",
            from_me=bool(data.get("fromMe", False)),
            participant=data.get("participant") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "remoteJid": self.remote_jid,
            "id": self.id,
            "fromMe": self.from_me,
        }
        if self.participant:
            data["participant"] = self.participant
        return data


@dataclass
class InboundMessage:
    """A message event delivered by the transport."""
    key: MessageKey
    message: dict[str, Any] | None = None  # Polymorphic payload
    push_name: str = ""
    timestamp: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InboundMessage":
        """Build from a bridge/Baileys-style message dict."""
        timestamp = data.get("messageTimestamp") or 0
        try:
            timestamp = int(timestamp)
        except (TypeError, ValueError):
            timestamp = 0

        return cls(
            key=MessageKey.from_dict(data.get("key") or {}),
            message=data.get("message") or None,
            push_name=data.get("pushName") or "",
            timestamp=timestamp,
        )

    @property
    def id(self) -> str:
        return self.key.id

    @property
    def chat_id(self) -> str:
        """Conversation replies go to."""
        return self.key.remote_jid

    @property
    def sender(self) -> str:
        """Author address: the group participant, or the chat itself."""
        return self.key.participant or self.key.remote_jid

    @property
    def is_group(self) -> bool:
        return self.key.remote_jid.endswith(GROUP_SUFFIX)

    @property
    def context_info(self) -> dict[str, Any]:
        """Reply/mention context of an extended text message."""
        if not self.message:
            return {}
        extended = self.message.get("extendedTextMessage") or {}
        return extended.get("contextInfo") or {}


@dataclass
class OutboundMessage:
    """Content to send to a conversation."""
    chat_id: str
    text: str | None = None
    image_url: str | None = None
    caption: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Content in the bridge's sendMessage shape."""
        if self.image_url:
            content: dict[str, Any] = {"image": {"url": self.image_url}}
            if self.caption:
                content["caption"] = self.caption
            return content
        return {"text": self.text or ""}


class BaseTransport(ABC):
    """
    Messaging primitives the dispatch pipeline depends on.

    Implementations may raise on transient failures; callers
    decide whether a failure matters.
    """

    name: str = "base"

    @abstractmethod
    async def send(self, message: OutboundMessage) -> None:
        """Send a message."""

    @abstractmethod
    async def read_messages(self, keys: list[MessageKey]) -> None:
        """Mark messages as read."""

    @abstractmethod
    async def send_presence_update(self, state: str, jid: str) -> None:
        """Set presence ("composing", "available", ...) in a conversation."""

    async def listen(self, on_upsert: Callable[[dict[str, Any]], Awaitable[None]]) -> None:
        """Deliver messages.upsert payloads to `on_upsert` until stopped."""
        raise NotImplementedError(f"{type(self).__name__} does not deliver events")

    async def stop(self) -> None:
        """Release transport resources."""

    async def send_text(self, chat_id: str, text: str) -> None:
        await self.send(OutboundMessage(chat_id=chat_id, text=text))

    async def send_image(self, chat_id: str, url: str, caption: str = "") -> None:
        await self.send(OutboundMessage(chat_id=chat_id, image_url=url, caption=caption))
