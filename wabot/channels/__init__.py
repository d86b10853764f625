"""Messaging transports for wabot."""

from wabot.channels.base import (
    BaseTransport,
    InboundMessage,
    MessageKey,
    OutboundMessage,
)
from wabot.channels.whatsapp import WhatsAppBridge

__all__ = [
    "BaseTransport",
    "InboundMessage",
    "MessageKey",
    "OutboundMessage",
    "WhatsAppBridge",
]
