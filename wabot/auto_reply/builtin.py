"""
Built-in commands for wabot.

General: ping, menu, help
Admin: status, plugins, reloadplugin, loadplugins, unloadplugin
Owner: addadmin, removeadmin
"""

import platform
import time
from datetime import datetime
from typing import TYPE_CHECKING

from loguru import logger

from wabot.auto_reply.commands import CommandContext, CommandDescriptor, CommandRegistry
from wabot.security.roles import Role, digits_only
from wabot.utils.helpers import format_uptime

if TYPE_CHECKING:
    from wabot.channels.base import BaseTransport
    from wabot.plugins.manager import PluginManager


CATEGORY_ICONS = {
    "general": "🎯",
    "fun": "🎮",
    "utility": "🛠️",
    "admin": "⚙️",
    "owner": "👑",
}

COMMAND_EMOJIS = {
    "ping": "🏓",
    "menu": "📋",
    "help": "❓",
    "status": "📊",
    "hello": "👋",
    "time": "🕐",
    "joke": "😂",
    "calc": "🧮",
    "qr": "📱",
    "quote": "💭",
    "base64": "🔐",
    "password": "🔑",
    "plugins": "📦",
    "reloadplugin": "🔄",
    "loadplugins": "🔄",
    "unloadplugin": "🗑️",
    "addadmin": "➕",
    "removeadmin": "➖",
    "broadcast": "📢",
    "info": "🖥️",
    "restart": "🔄",
    "diag": "🩺",
}


def command_emoji(name: str) -> str:
    return COMMAND_EMOJIS.get(name, "🔧")


def build_menu(
    registry: CommandRegistry,
    jid: str,
    bot_name: str,
    now: datetime | None = None,
) -> str:
    """Render the command menu for a sender, grouped by category."""
    available = registry.available_commands(jid)
    now = now or datetime.now()

    lines = [
        "╭─────────────────────────╮",
        f"│    🤖 *{bot_name}*    │",
        "╰─────────────────────────╯",
        "",
        "┌─ 👤 *USER INFO* ─┐",
        f"│ Role: {registry.roles.role_display(jid)}",
        "│ Status: ✅ Verified",
        "└────────────────┘",
        "",
    ]

    categories: dict[str, list[CommandDescriptor]] = {}
    for descriptor in available:
        categories.setdefault(descriptor.category, []).append(descriptor)

    for category, commands in categories.items():
        icon = CATEGORY_ICONS.get(category, "📁")
        lines.append(f"┌─ {icon} *{category.upper()} COMMANDS* ─┐")
        for index, descriptor in enumerate(commands):
            is_last = index == len(commands) - 1
            lines.append(f"{'└' if is_last else '├'} {command_emoji(descriptor.name)} `{descriptor.usage}`")
            lines.append(f"{' ' if is_last else '│'} ↳ {descriptor.description}")
        lines.append(f"└{'─' * 25}┘")
        lines.append("")

    lines.extend([
        "┌─ ℹ️ *INFORMATION* ─┐",
        f"├ 💡 Prefix: `{registry.prefix}`",
        "├ ⚡ Status: 🟢 Online",
        f"├ 🕐 Time: {now.strftime('%Y-%m-%d %H:%M:%S')}",
        f"└ 📊 Commands: {len(available)}",
        f"└{'─' * 25}┘",
        "",
        "╭─────────────────────────╮",
        "│  💬 Happy Chatting! 🎉  │",
        "╰─────────────────────────╯",
    ])
    return "\n".join(lines)


def resolve_target(ctx: CommandContext, args: list[str]) -> str | None:
    """
    Find who an admin command is about.

    Order: author of the quoted message, first mention, first argument.
    """
    context_info = ctx.message.context_info

    if context_info.get("quotedMessage"):
        return context_info.get("participant") or context_info.get("remoteJid")

    mentioned = context_info.get("mentionedJid") or []
    if mentioned:
        return mentioned[0]

    if args:
        number = digits_only(args[0])
        if number:
            return f"{number}@s.whatsapp.net"

    return None


def register_builtin_commands(
    registry: CommandRegistry,
    plugins: "PluginManager",
    bot_name: str = "WhatsApp Bot",
    menu_image_url: str = "",
    started_at: float | None = None,
) -> None:
    """Register the commands every wabot instance has."""
    started_at = started_at if started_at is not None else time.monotonic()
    prefix = registry.prefix

    def uptime() -> str:
        return format_uptime(time.monotonic() - started_at)

    async def ping(transport: "BaseTransport", ctx: CommandContext, args: list[str]) -> None:
        start = time.perf_counter()
        await transport.send_text(ctx.chat_id, "🏓 Pinging...")
        latency = int((time.perf_counter() - start) * 1000)
        await transport.send_text(
            ctx.chat_id,
            f"🏓 *Pong!*\n\n⚡ *Latency:* {latency}ms\n🤖 *Bot:* Online\n⏰ *Uptime:* {uptime()}",
        )

    async def menu(transport: "BaseTransport", ctx: CommandContext, args: list[str]) -> None:
        text = build_menu(registry, ctx.sender, bot_name)
        if menu_image_url:
            try:
                await transport.send_image(ctx.chat_id, menu_image_url, caption=text)
                return
            except Exception as e:
                logger.error(f"Failed to send menu with image: {e}")
        await transport.send_text(ctx.chat_id, text)

    async def help_command(transport: "BaseTransport", ctx: CommandContext, args: list[str]) -> None:
        name = args[0] if args else ""
        if name.startswith(prefix):
            name = name[len(prefix):]
        await transport.send_text(ctx.chat_id, registry.get_help(ctx.sender, name))

    async def status(transport: "BaseTransport", ctx: CommandContext, args: list[str]) -> None:
        text = (
            "📊 *Bot Status*\n\n"
            f"🤖 *Name:* {bot_name}\n"
            f"⏰ *Uptime:* {uptime()}\n"
            f"🔧 *Commands:* {len(registry)}\n"
            f"📦 *Plugins:* {len(plugins.get_loaded_plugins())}\n"
            f"👥 *Admins:* {len(registry.roles.admins)}\n"
            f"🐍 *Python:* {platform.python_version()}"
        )
        await transport.send_text(ctx.chat_id, text)

    async def addadmin(transport: "BaseTransport", ctx: CommandContext, args: list[str]) -> None:
        target = resolve_target(ctx, args)
        if not target:
            await transport.send_text(
                ctx.chat_id,
                "❌ Please mention a user or reply to their message to add as admin.",
            )
            return

        if registry.roles.add_admin(target, ctx.sender):
            await transport.send_text(ctx.chat_id, "✅ Successfully added user as admin!")
        else:
            await transport.send_text(ctx.chat_id, "❌ User is already an admin or error occurred.")

    async def removeadmin(transport: "BaseTransport", ctx: CommandContext, args: list[str]) -> None:
        target = resolve_target(ctx, args)
        if not target:
            await transport.send_text(
                ctx.chat_id,
                "❌ Please mention a user or reply to their message to remove from admins.",
            )
            return

        if registry.roles.remove_admin(target, ctx.sender):
            await transport.send_text(ctx.chat_id, "✅ Successfully removed user from admins!")
        else:
            await transport.send_text(ctx.chat_id, "❌ User is not an admin or error occurred.")

    async def list_plugins(transport: "BaseTransport", ctx: CommandContext, args: list[str]) -> None:
        records = plugins.get_loaded_plugins()
        if not records:
            await transport.send_text(
                ctx.chat_id,
                "📦 *No Plugins Loaded*\n\nNo plugins are currently active.",
            )
            return

        lines = [f"📦 *Loaded Plugins ({len(records)})*", ""]
        for index, record in enumerate(records, start=1):
            lines.append(f"{index}. *{record.name}* v{record.version}")
            lines.append(f"   📝 {record.description or 'No description'}")
            if record.commands:
                lines.append(f"   🔧 Commands: {', '.join(record.commands)}")
            lines.append(f"   📅 Loaded: {record.loaded_at.strftime('%Y-%m-%d %H:%M:%S')}")
            lines.append("")
        await transport.send_text(ctx.chat_id, "\n".join(lines).rstrip())

    async def reloadplugin(transport: "BaseTransport", ctx: CommandContext, args: list[str]) -> None:
        if not args:
            await transport.send_text(
                ctx.chat_id,
                "❌ Please specify a plugin filename to reload.\n"
                f"Example: {prefix}reloadplugin example_plugin.py",
            )
            return

        file_name = args[0]
        if await plugins.reload(file_name):
            await transport.send_text(ctx.chat_id, f"✅ Plugin *{file_name}* reloaded successfully!")
        else:
            await transport.send_text(
                ctx.chat_id,
                f"❌ Failed to reload plugin *{file_name}*. Check if the file exists and is valid.",
            )

    async def loadplugins(transport: "BaseTransport", ctx: CommandContext, args: list[str]) -> None:
        await transport.send_text(ctx.chat_id, "🔄 Reloading all plugins...")
        count = await plugins.load_all()
        await transport.send_text(
            ctx.chat_id,
            f"✅ Plugin reload complete!\n\n📦 *{count}* plugin(s) loaded successfully.",
        )

    async def unloadplugin(transport: "BaseTransport", ctx: CommandContext, args: list[str]) -> None:
        if not args:
            await transport.send_text(
                ctx.chat_id,
                "❌ Please specify a plugin filename to unload.\n"
                f"Example: {prefix}unloadplugin example_plugin.py",
            )
            return

        file_name = args[0]
        if await plugins.unload(file_name):
            await transport.send_text(ctx.chat_id, f"✅ Plugin *{file_name}* unloaded.")
        else:
            await transport.send_text(ctx.chat_id, f"❌ Plugin *{file_name}* is not loaded.")

    registry.register(
        "ping", ping,
        description="Check if the bot is responsive",
        category="general",
    )
    registry.register(
        "menu", menu,
        description="Display available commands",
        category="general",
    )
    registry.register(
        "help", help_command,
        description="Show usage for a command",
        usage=f"{prefix}help [command]",
        category="general",
    )
    registry.register(
        "status", status,
        description="Check bot status and statistics",
        role=Role.ADMIN, category="admin",
    )
    registry.register(
        "addadmin", addadmin,
        description="Add a user as admin (mention or reply)",
        usage=f"{prefix}addadmin @user",
        role=Role.OWNER, category="owner",
    )
    registry.register(
        "removeadmin", removeadmin,
        description="Remove a user from admins (mention or reply)",
        usage=f"{prefix}removeadmin @user",
        role=Role.OWNER, category="owner",
    )
    registry.register(
        "plugins", list_plugins,
        description="List all loaded plugins",
        role=Role.ADMIN, category="admin",
    )
    registry.register(
        "reloadplugin", reloadplugin,
        description="Reload a specific plugin",
        usage=f"{prefix}reloadplugin <filename>",
        role=Role.ADMIN, category="admin",
    )
    registry.register(
        "loadplugins", loadplugins,
        description="Reload all plugins from plugins directory",
        role=Role.ADMIN, category="admin",
    )
    registry.register(
        "unloadplugin", unloadplugin,
        description="Unload a plugin and remove its commands",
        usage=f"{prefix}unloadplugin <filename>",
        role=Role.ADMIN, category="admin",
    )
