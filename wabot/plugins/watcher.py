"""
Plugin directory watcher for wabot.

Polls the plugins directory for modified files and reloads them
after a debounce delay. A new change to the same file restarts
its delay instead of queueing a second reload.
"""

import asyncio
from typing import Any

from loguru import logger

from wabot.plugins.manager import PluginManager


class PluginWatcher:
    """Hot-reloads plugins when their files change."""

    def __init__(
        self,
        manager: PluginManager,
        debounce_seconds: float = 1.0,
        poll_interval: float = 1.0,
    ):
        self.manager = manager
        self.debounce_seconds = debounce_seconds
        self.poll_interval = poll_interval

        self._mtimes: dict[str, float] = {}
        self._pending: dict[str, asyncio.Task] = {}
        self._task: asyncio.Task | None = None
        self._reload_count = 0

    def _snapshot(self) -> dict[str, float]:
        mtimes = {}
        for file_name in self.manager.discover():
            try:
                mtimes[file_name] = (self.manager.plugins_dir / file_name).stat().st_mtime
            except OSError:
                continue  # Removed between listing and stat
        return mtimes

    def start(self) -> None:
        """Start polling in the background."""
        if self._task and not self._task.done():
            return
        self._mtimes = self._snapshot()
        self._task = asyncio.create_task(self._run())
        logger.info("Plugin hot reloading enabled")

    async def stop(self) -> None:
        """Stop polling and cancel pending reloads."""
        tasks = list(self._pending.values())
        if self._task:
            tasks.append(self._task)
            self._task = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._pending.clear()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                self.check()
            except Exception as e:
                logger.error(f"Plugin watcher error: {e}")

    def check(self) -> list[str]:
        """
        Compare the directory against the last snapshot.

        Returns:
            File names that changed or appeared.
        """
        current = self._snapshot()
        changed = [
            name for name, mtime in current.items()
            if self._mtimes.get(name) != mtime
        ]
        for name in self._mtimes.keys() - current.keys():
            logger.info(f"Plugin file removed: {name}")

        self._mtimes = current
        for name in changed:
            logger.info(f"Plugin file changed: {name}")
            self.notify(name)
        return changed

    def notify(self, file_name: str) -> None:
        """Schedule a reload of `file_name`, restarting any pending delay."""
        pending = self._pending.get(file_name)
        if pending and not pending.done():
            pending.cancel()
        self._pending[file_name] = asyncio.create_task(self._delayed_reload(file_name))

    def pending(self) -> list[str]:
        return [name for name, task in self._pending.items() if not task.done()]

    async def _delayed_reload(self, file_name: str) -> None:
        await asyncio.sleep(self.debounce_seconds)

        if self._pending.get(file_name) is asyncio.current_task():
            del self._pending[file_name]

        if self.manager.is_loaded(file_name):
            success = await self.manager.reload(file_name)
        else:
            success = await self.manager.load_one(file_name)

        if success:
            self._reload_count += 1

    def get_stats(self) -> dict[str, Any]:
        return {
            "running": self.is_running,
            "watched_files": len(self._mtimes),
            "pending": len(self.pending()),
            "reload_count": self._reload_count,
        }
