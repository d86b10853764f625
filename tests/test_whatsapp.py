"""
Tests for the WhatsApp bridge transport.
"""

import json

import httpx
import pytest

from wabot.channels.base import InboundMessage, MessageKey, OutboundMessage
from wabot.channels.whatsapp import WhatsAppBridge
from wabot.config.schema import WhatsAppConfig


def make_bridge(handler) -> WhatsAppBridge:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WhatsAppBridge(WhatsAppConfig(bridge_url="http://bridge/"), client=client)


class TestMessages:

    def test_inbound_from_dict(self):
        message = InboundMessage.from_dict({
            "key": {"remoteJid": "120363@g.us", "id": "X", "participant": "5@s.whatsapp.net"},
            "message": {"conversation": "!ping"},
            "messageTimestamp": "1700000000",
        })
        assert message.is_group
        assert message.sender == "5@s.whatsapp.net"
        assert message.chat_id == "120363@g.us"
        assert message.timestamp == 1700000000

    def test_direct_sender_is_chat(self):
        message = InboundMessage.from_dict({"key": {"remoteJid": "5@s.whatsapp.net", "id": "X"}})
        assert message.sender == "5@s.whatsapp.net"
        assert not message.is_group
        assert message.message is None

    def test_outbound_payloads(self):
        assert OutboundMessage("c", text="hi").to_payload() == {"text": "hi"}
        assert OutboundMessage("c", image_url="http://i", caption="cap").to_payload() == {
            "image": {"url": "http://i"},
            "caption": "cap",
        }


class TestBridge:

    @pytest.mark.asyncio
    async def test_send_posts_content(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"ok": True})

        bridge = make_bridge(handler)
        await bridge.send_text("5@s.whatsapp.net", "hello")
        await bridge.read_messages([MessageKey(remote_jid="5@s.whatsapp.net", id="X")])
        await bridge.send_presence_update("composing", "5@s.whatsapp.net")

        assert [r.url.path for r in requests] == ["/send", "/read", "/presence"]
        assert json.loads(requests[0].content) == {
            "jid": "5@s.whatsapp.net",
            "content": {"text": "hello"},
        }
        assert json.loads(requests[1].content)["keys"][0]["remoteJid"] == "5@s.whatsapp.net"
        await bridge.stop()

    @pytest.mark.asyncio
    async def test_send_raises_on_error(self):
        bridge = make_bridge(lambda request: httpx.Response(500))
        with pytest.raises(httpx.HTTPStatusError):
            await bridge.send_text("5@s.whatsapp.net", "hello")
        await bridge.stop()

    @pytest.mark.asyncio
    async def test_listen_dispatches_events(self):
        events = [
            {"type": "connection.update", "data": {"connection": "open"}},
            {"type": "messages.upsert", "data": {"messages": [{"key": {"id": "1"}}]}},
            {"type": "unknown", "data": {}},
        ]
        body = "".join(f"data: {json.dumps(e)}\n\n" for e in events) + "data: {broken\n\n"

        bridge = make_bridge(lambda request: httpx.Response(200, text=body))
        received = []
        connected = []

        async def on_upsert(payload):
            received.append(payload)
            connected.append(bridge.connected)
            bridge._running = False

        await bridge.listen(on_upsert)

        assert received == [{"messages": [{"key": {"id": "1"}}]}]
        assert connected == [True]
        assert not bridge.connected
        await bridge.stop()
