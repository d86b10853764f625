"""
wabot application.

Creates the services once and wires them together:
roles -> rate limiter -> command registry -> plugins -> dispatcher,
all driven by a transport.
"""

import asyncio
import time
from pathlib import Path
from typing import Any

from loguru import logger

from wabot import __version__
from wabot.auto_reply.builtin import register_builtin_commands
from wabot.auto_reply.commands import CommandRegistry
from wabot.auto_reply.dispatch import DispatchConfig, MessageDispatcher
from wabot.auto_reply.rate_limit import RateLimiter
from wabot.channels.base import BaseTransport
from wabot.channels.whatsapp import WhatsAppBridge
from wabot.config.schema import Config
from wabot.plugins.manager import PluginManager
from wabot.plugins.watcher import PluginWatcher
from wabot.security.roles import RoleManager


STARTUP_TEXT = (
    "🤖 *Bot Started Successfully!*\n\n"
    "The WhatsApp bot is now online and ready to receive commands."
)


class WhatsAppBot:
    """
    A running bot: services plus the transport they talk through.

    Lifecycle:
    - start(): load plugins, start watcher, begin listening
    - stop() / request_restart(): end run()
    - shutdown(): release everything
    """

    def __init__(
        self,
        config: Config,
        transport: BaseTransport | None = None,
        plugins_dir: Path | str | None = None,
    ):
        self.config = config
        self.started_at = time.monotonic()
        self.started_wall = time.time()

        self.roles = RoleManager(config.bot.owner_number, config.bot.admin_numbers)
        self.rate_limiter = RateLimiter(
            max_commands=config.rate_limit.max_commands,
            window_seconds=config.rate_limit.window_seconds,
        )
        self.registry = CommandRegistry(
            self.roles,
            self.rate_limiter,
            prefix=config.bot.prefix,
            app=self,
        )
        self.plugins = PluginManager(
            self.registry,
            plugins_dir or config.plugins.directory,
            extensions=config.plugins.extensions,
        )
        self.dispatcher = MessageDispatcher(
            self.registry,
            DispatchConfig(
                prefix=config.bot.prefix,
                auto_read=config.bot.auto_read,
                auto_typing=config.bot.auto_typing,
                typing_seconds=config.bot.typing_seconds,
            ),
        )

        self.transport = transport or WhatsAppBridge(config.whatsapp)

        self.watcher: PluginWatcher | None = None
        if config.plugins.watch:
            self.watcher = PluginWatcher(
                self.plugins,
                debounce_seconds=config.plugins.debounce_ms / 1000,
                poll_interval=config.plugins.poll_interval_ms / 1000,
            )

        register_builtin_commands(
            self.registry,
            self.plugins,
            bot_name=config.bot.name,
            menu_image_url=config.bot.menu_image_url,
            started_at=self.started_at,
        )

        self.restart_requested = False
        self._stop_event = asyncio.Event()
        self._listen_task: asyncio.Task | None = None

    @property
    def name(self) -> str:
        return self.config.bot.name

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self.started_at

    async def on_upsert(self, payload: dict[str, Any]) -> None:
        """Transport callback for messages.upsert events."""
        await self.dispatcher.handle_upsert(self.transport, payload)

    async def start(self) -> None:
        """Load plugins and start receiving messages."""
        logger.info(f"Starting {self.name} v{__version__}...")

        await self.plugins.load_all()

        if self.watcher:
            self.watcher.start()

        self._listen_task = asyncio.create_task(self.transport.listen(self.on_upsert))
        self._listen_task.add_done_callback(self._on_listen_done)

        await self.notify_owner(STARTUP_TEXT)
        logger.info("Bot initialization completed")

    def _on_listen_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error:
            logger.error(f"Transport listener stopped: {error}")
            self.stop()

    async def notify_owner(self, text: str) -> bool:
        """Send a message to the owner. Failures are logged."""
        if not self.roles.owner_number:
            return False
        try:
            await self.transport.send_text(self.config.owner_jid, text)
            return True
        except Exception as e:
            logger.error(f"Error sending notification to owner: {e}")
            return False

    async def run(self) -> bool:
        """
        Run until stopped.

        Returns:
            True if a restart was requested.
        """
        await self.start()
        try:
            await self._stop_event.wait()
        finally:
            await self.shutdown()
        return self.restart_requested

    def stop(self) -> None:
        """Make run() return."""
        self._stop_event.set()

    def request_restart(self, delay: float = 0.0) -> None:
        """Ask the process to rebuild the bot after `delay` seconds."""
        logger.info(f"Restart requested (in {delay:.1f}s)")
        self.restart_requested = True
        if delay > 0:
            asyncio.get_running_loop().call_later(delay, self.stop)
        else:
            self.stop()

    async def shutdown(self) -> None:
        """Stop the watcher, pending presence updates and the transport."""
        logger.info("Stopping bot...")
        if self.watcher:
            await self.watcher.stop()

        if self._listen_task and not self._listen_task.done():
            self._listen_task.cancel()
            await asyncio.gather(self._listen_task, return_exceptions=True)

        await self.dispatcher.close()

        try:
            await self.transport.stop()
        except Exception as e:
            logger.warning(f"Error stopping transport: {e}")

    def get_status(self) -> dict[str, Any]:
        """Snapshot for the health server and diagnostics."""
        return {
            "bot": self.name,
            "version": __version__,
            "connected": bool(getattr(self.transport, "connected", False)),
            "uptime_seconds": round(self.uptime_seconds, 1),
            "commands": len(self.registry),
            "plugins": [record.name for record in self.plugins.get_loaded_plugins()],
            "dispatcher": self.dispatcher.get_stats(),
            "rate_limiter": self.rate_limiter.get_stats(),
            "watcher": self.watcher.get_stats() if self.watcher else None,
        }
