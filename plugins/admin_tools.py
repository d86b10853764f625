"""
Administrative commands.

broadcast, restart and diag are owner-only; info is admin.
"""

import os
import platform
import socket

from loguru import logger

from wabot.plugins import PluginInfo
from wabot.security.roles import Role
from wabot.utils.helpers import format_uptime


DIAG_TOPICS = ("uptime", "commands", "plugins", "ratelimit", "admins")


async def broadcast(transport, ctx, args):
    if not args:
        await transport.send_text(
            ctx.chat_id,
            "❌ Please provide a message to broadcast.\n"
            f"Example: {ctx.registry.prefix}broadcast Hello everyone!",
        )
        return

    # Delivery to every chat needs a chat list from the transport; preview only.
    text = " ".join(args)
    await transport.send_text(
        ctx.chat_id,
        f"📢 *Broadcast Preview*\n\n{text}\n\n"
        "⚠️ Broadcast delivery is not available; message shown as preview only.",
    )


async def info(transport, ctx, args):
    lines = [
        "🖥️ *System Information*",
        "",
        f"💻 *Platform:* {platform.system()} {platform.release()}",
        f"🐍 *Python:* {platform.python_version()}",
        f"🧠 *CPUs:* {os.cpu_count() or 'unknown'}",
        f"🏠 *Hostname:* {socket.gethostname()}",
    ]
    if ctx.app is not None:
        lines.append(f"⏰ *Uptime:* {format_uptime(ctx.app.uptime_seconds)}")
    await transport.send_text(ctx.chat_id, "\n".join(lines))


async def restart(transport, ctx, args):
    if ctx.app is None:
        await transport.send_text(ctx.chat_id, "❌ Restart is not available in this environment.")
        return

    await transport.send_text(ctx.chat_id, "🔄 *Restarting Bot...*\n\nThe bot will be back online shortly.")
    logger.info(f"Restart requested by {ctx.sender_number}")
    ctx.app.request_restart(delay=2.0)


def _diag_report(ctx, topic: str) -> str:
    registry = ctx.registry
    if topic == "uptime":
        if ctx.app is None:
            return "unavailable"
        return format_uptime(ctx.app.uptime_seconds)
    if topic == "commands":
        stats = registry.get_stats()
        return (
            f"registered: {stats['commands']}\n"
            f"executed: {stats['executed_count']}\n"
            f"errors: {stats['error_count']}"
        )
    if topic == "plugins":
        if ctx.app is None:
            return "unavailable"
        records = ctx.app.plugins.get_loaded_plugins()
        return "\n".join(f"{r.file_name}: {', '.join(r.commands)}" for r in records) or "none"
    if topic == "ratelimit":
        stats = registry.rate_limiter.get_stats()
        return "\n".join(f"{key}: {value}" for key, value in stats.items())
    # admins
    return "\n".join(registry.roles.admins) or "none"


async def diag(transport, ctx, args):
    topic = args[0].lower() if args else ""
    if topic not in DIAG_TOPICS:
        await transport.send_text(
            ctx.chat_id,
            f"❌ Usage: {ctx.registry.prefix}diag <{'|'.join(DIAG_TOPICS)}>",
        )
        return

    await transport.send_text(ctx.chat_id, f"🩺 *Diagnostics: {topic}*\n\n{_diag_report(ctx, topic)}")


def setup(registry):
    prefix = registry.prefix

    registry.register(
        "broadcast", broadcast,
        description="Broadcast message (owner only)",
        usage=f"{prefix}broadcast <message>",
        role=Role.OWNER, category="owner",
    )
    registry.register(
        "info", info,
        description="Get system information",
        role=Role.ADMIN, category="admin",
    )
    registry.register(
        "restart", restart,
        description="Restart the bot (owner only)",
        role=Role.OWNER, category="owner",
    )
    registry.register(
        "diag", diag,
        description="Show internal diagnostics (owner only)",
        usage=f"{prefix}diag <topic>",
        role=Role.OWNER, category="owner",
    )

    return PluginInfo(
        name="Admin Tools",
        version="1.0.0",
        description="Administrative commands for bot management",
        author="wabot",
        commands=["broadcast", "info", "restart", "diag"],
    )
