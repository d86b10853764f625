"""
WhatsApp transport for wabot.

Talks HTTP to a WhatsApp bridge process that owns the socket,
the pairing flow and the stored credentials:
- GET  /events   server-sent events, one JSON event per "data:" line
- POST /send     {"jid": ..., "content": {...}}
- POST /read     {"keys": [...]}
- POST /presence {"state": ..., "jid": ...}
"""

import asyncio
import json
from typing import Any, Callable, Awaitable

import httpx
from loguru import logger

from wabot.channels.base import BaseTransport, MessageKey, OutboundMessage
from wabot.config.schema import WhatsAppConfig


UpsertHandler = Callable[[dict[str, Any]], Awaitable[None]]


class WhatsAppBridge(BaseTransport):
    """
    Transport backed by a WhatsApp bridge.

    Configuration (via WhatsAppConfig):
    - bridge_url: Base URL of the bridge HTTP API
    - timeout: Request timeout in seconds
    """

    name = "whatsapp"

    def __init__(self, config: WhatsAppConfig, client: httpx.AsyncClient | None = None):
        self.bridge_url = config.bridge_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=config.timeout)
        self._running = False
        self.connected = False

    async def send(self, message: OutboundMessage) -> None:
        """Send a message. Raises httpx.HTTPError on failure."""
        response = await self._client.post(
            f"{self.bridge_url}/send",
            json={"jid": message.chat_id, "content": message.to_payload()},
        )
        response.raise_for_status()

    async def read_messages(self, keys: list[MessageKey]) -> None:
        response = await self._client.post(
            f"{self.bridge_url}/read",
            json={"keys": [key.to_dict() for key in keys]},
        )
        response.raise_for_status()

    async def send_presence_update(self, state: str, jid: str) -> None:
        response = await self._client.post(
            f"{self.bridge_url}/presence",
            json={"state": state, "jid": jid},
        )
        response.raise_for_status()

    async def listen(self, on_upsert: UpsertHandler) -> None:
        """
        Consume bridge events until stop() is called.

        messages.upsert events are passed to `on_upsert`; connection
        events only update `connected`.
        """
        self._running = True
        reconnect_delay = 1
        max_delay = 60

        while self._running:
            try:
                async with self._client.stream(
                    "GET",
                    f"{self.bridge_url}/events",
                    timeout=None,
                ) as response:
                    response.raise_for_status()
                    reconnect_delay = 1  # Reset on successful connection
                    logger.info(f"Connected to WhatsApp bridge at {self.bridge_url}")

                    async for line in response.aiter_lines():
                        if not self._running:
                            break

                        if not line or not line.startswith("data:"):
                            continue

                        try:
                            event = json.loads(line[5:].strip())
                        except json.JSONDecodeError:
                            logger.debug(f"Skipping malformed bridge event: {line[:80]}")
                            continue

                        await self._process_event(event, on_upsert)

            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.connected = False
                if self._running:
                    logger.warning(f"WhatsApp bridge connection error: {e}")
                    await asyncio.sleep(reconnect_delay)
                    reconnect_delay = min(reconnect_delay * 2, max_delay)

        self.connected = False

    async def _process_event(self, event: dict[str, Any], on_upsert: UpsertHandler) -> None:
        event_type = event.get("type")
        data = event.get("data") or {}

        if event_type == "messages.upsert":
            await on_upsert(data)
        elif event_type == "connection.update":
            connection = data.get("connection")
            if connection == "open":
                self.connected = True
                logger.info("WhatsApp connection open")
            elif connection == "close":
                self.connected = False
                logger.warning("WhatsApp connection closed")
        else:
            logger.debug(f"Ignoring bridge event: {event_type}")

    async def stop(self) -> None:
        """Stop listening and close the HTTP client."""
        self._running = False
        self.connected = False
        await self._client.aclose()

    @property
    def is_running(self) -> bool:
        return self._running
