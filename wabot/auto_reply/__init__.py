"""
Command pipeline for wabot.

Provides:
- Command parsing and the command registry
- Per-sender rate limiting
- Message dispatch with deduplication
"""

from wabot.auto_reply.commands import (
    Command,
    CommandContext,
    CommandDescriptor,
    CommandRegistry,
    parse_command,
)
from wabot.auto_reply.rate_limit import (
    RateLimiter,
    RateLimitEntry,
)
from wabot.auto_reply.dispatch import (
    MessageDispatcher,
    DispatchConfig,
    ProcessedMessages,
    extract_text,
)

__all__ = [
    # Commands
    "Command",
    "CommandContext",
    "CommandDescriptor",
    "CommandRegistry",
    "parse_command",
    # Rate limiting
    "RateLimiter",
    "RateLimitEntry",
    # Dispatch
    "MessageDispatcher",
    "DispatchConfig",
    "ProcessedMessages",
    "extract_text",
]
