"""
Example plugin for wabot.

Shows the plugin shape: setup() registers commands and returns metadata.
"""

import random
from datetime import datetime, timezone

from wabot.plugins import PluginInfo


GREETINGS = [
    "Hello {name}! 👋",
    "Hi there {name}! 🌟",
    "Greetings {name}! ✨",
    "Hey {name}! How's it going? 😊",
]

JOKES = [
    "Why do programmers prefer dark mode? Because light attracts bugs!",
    "How many programmers does it take to change a light bulb? None, that's a hardware problem!",
    "Why do Java developers wear glasses? Because they don't see sharp!",
    "What's a programmer's favorite hangout place? The Foo Bar!",
    "Why did the programmer quit his job? He didn't get arrays!",
    "What do you call a programmer from Finland? Nerdic!",
    "Why do programmers always mix up Halloween and Christmas? Because Oct 31 equals Dec 25!",
    "What's the best part about TCP jokes? I get to keep telling them until you get them!",
]


async def hello(transport, ctx, args):
    name = " ".join(args) if args else "Friend"
    greeting = random.choice(GREETINGS).format(name=name)
    await transport.send_text(ctx.chat_id, f"🤖 *Bot Says:*\n\n{greeting}")


async def current_time(transport, ctx, args):
    now = datetime.now(timezone.utc)
    await transport.send_text(
        ctx.chat_id,
        "🕐 *Current Server Time*\n\n"
        f"📅 {now.strftime('%A, %B %d, %Y %H:%M:%S')} UTC\n\n"
        f"⏰ Unix Timestamp: {int(now.timestamp() * 1000)}",
    )


async def setup(registry):
    registry.register(
        "hello", hello,
        description="Send a personalized greeting",
        usage=f"{registry.prefix}hello [name]",
        category="fun",
    )
    registry.register(
        "time", current_time,
        description="Get current server time",
        category="utility",
    )

    @registry.command("joke", description="Get a random programming joke", category="fun")
    async def joke(transport, ctx, args):
        await transport.send_text(ctx.chat_id, f"😄 *Programming Joke*\n\n{random.choice(JOKES)}")

    return PluginInfo(
        name="Example Plugin",
        version="1.0.0",
        description="Demonstrates plugin functionality with example commands",
        author="wabot",
        commands=["hello", "time", "joke"],
    )
