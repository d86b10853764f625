"""
Plugin manager for wabot.

A plugin is a Python file in the plugins directory that defines:

    async def setup(registry) -> PluginInfo | dict

`setup` registers commands on the registry and returns the plugin's
metadata. Plugins are executed as fresh module objects on every load,
so reloading a file always runs its current source.
"""

import asyncio
import importlib.util
import inspect
import sys
from datetime import datetime
from pathlib import Path
from types import ModuleType
from typing import Any, Mapping
from dataclasses import dataclass, field

from loguru import logger

from wabot.auto_reply.commands import CommandRegistry


MODULE_NAMESPACE = "wabot_plugin"


class PluginLoadError(Exception):
    """A plugin file could not be turned into a plugin."""


@dataclass
class PluginInfo:
    """Metadata a plugin's setup() returns."""
    name: str
    version: str = "1.0.0"
    description: str = ""
    author: str = ""
    commands: list[str] = field(default_factory=list)


@dataclass
class PluginRecord:
    """A loaded plugin."""
    name: str
    version: str
    description: str
    author: str
    commands: list[str]
    file_name: str
    loaded_at: datetime
    generation: int  # Increases on every successful load of any plugin

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "author": self.author,
            "commands": list(self.commands),
            "file_name": self.file_name,
            "loaded_at": self.loaded_at.isoformat(),
            "generation": self.generation,
        }


def _coerce_info(result: Any, default_name: str) -> PluginInfo:
    """Turn whatever setup() returned into PluginInfo."""
    if isinstance(result, PluginInfo):
        return result

    if result is None:
        return PluginInfo(name=default_name)

    if isinstance(result, Mapping):
        commands = result.get("commands") or []
        return PluginInfo(
            name=str(result.get("name") or default_name),
            version=str(result.get("version") or "1.0.0"),
            description=str(result.get("description") or ""),
            author=str(result.get("author") or ""),
            commands=[str(c).lower() for c in commands],
        )

    raise PluginLoadError(f"setup() returned {type(result).__name__}, expected PluginInfo or dict")


class PluginManager:
    """
    Discovers, loads, reloads and unloads command plugins.

    Records are keyed by file name. Loads are serialized so a
    manual reload and a file-watch reload cannot interleave.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        plugins_dir: Path | str,
        extensions: list[str] | tuple[str, ...] = (".py",),
    ):
        self.registry = registry
        self.plugins_dir = Path(plugins_dir)
        self.extensions = tuple(ext.lower() for ext in extensions)

        self._records: dict[str, PluginRecord] = {}
        self._generation = 0
        self._lock = asyncio.Lock()

        # Stats
        self._load_failures = 0

    def is_plugin_file(self, path: Path) -> bool:
        """Non-hidden file with a recognized extension."""
        return (
            path.is_file()
            and not path.name.startswith((".", "_"))
            and path.suffix.lower() in self.extensions
        )

    def discover(self) -> list[str]:
        """List plugin file names in the plugins directory."""
        if not self.plugins_dir.is_dir():
            return []
        return sorted(p.name for p in self.plugins_dir.iterdir() if self.is_plugin_file(p))

    async def load_all(self) -> int:
        """
        Load every plugin in the plugins directory.

        Returns:
            Number of loaded plugins.
        """
        if not self.plugins_dir.exists():
            logger.info(f"Plugins directory not found, creating {self.plugins_dir}")
            self.plugins_dir.mkdir(parents=True, exist_ok=True)
            return 0

        files = self.discover()
        if not files:
            logger.info("No plugins found in plugins directory")
            return len(self._records)

        logger.info(f"Loading {len(files)} plugin(s)...")
        for file_name in files:
            await self.load_one(file_name)

        logger.info(f"Successfully loaded {len(self._records)} plugin(s)")
        return len(self._records)

    async def load_one(self, file_name: str) -> bool:
        """
        Load (or load again) a single plugin file.

        Invalid plugins are logged and skipped. A failed reload keeps
        the previous record, but commands the failed setup() managed to
        register before failing stay registered.

        Returns:
            True if the plugin loaded and its record was stored.
        """
        async with self._lock:
            try:
                record = await self._load(file_name)
            except PluginLoadError as e:
                self._load_failures += 1
                logger.error(f"Invalid plugin {file_name}: {e}")
                return False
            except Exception as e:
                self._load_failures += 1
                logger.exception(f"Error loading plugin {file_name}: {e}")
                return False

        logger.info(f"Plugin loaded: {record.name} v{record.version} ({file_name})")
        return True

    async def _load(self, file_name: str) -> PluginRecord:
        path = self._resolve(file_name)

        generation = self._generation + 1
        module = self._import(path, generation)

        setup = getattr(module, "setup", None)
        if not callable(setup):
            raise PluginLoadError("must define a setup(registry) function")

        with self.registry.plugin_scope(file_name) as registered:
            result = setup(self.registry)
            if inspect.isawaitable(result):
                result = await result

        info = _coerce_info(result, default_name=path.stem)

        commands = list(registered)
        for name in info.commands:
            if name not in commands:
                logger.debug(f"Plugin {file_name} lists '{name}' but did not register it")

        previous = self._records.get(file_name)
        if previous:
            for name in previous.commands:
                if name in commands:
                    continue
                descriptor = self.registry.get(name)
                if descriptor and descriptor.plugin == file_name:
                    self.registry.unregister(name)
                    logger.debug(f"Removed stale command '{name}' from {file_name}")

        self._generation = generation
        record = PluginRecord(
            name=info.name,
            version=info.version,
            description=info.description,
            author=info.author,
            commands=commands,
            file_name=file_name,
            loaded_at=datetime.now(),
            generation=generation,
        )
        self._records[file_name] = record
        return record

    def _resolve(self, file_name: str) -> Path:
        """Map a file name to a path inside the plugins directory."""
        if not file_name or Path(file_name).name != file_name:
            raise PluginLoadError("plugin must be a bare file name")

        path = self.plugins_dir / file_name
        if not path.is_file():
            raise PluginLoadError(f"file not found in {self.plugins_dir}")
        if not self.is_plugin_file(path):
            raise PluginLoadError("not a plugin file")
        return path

    def _import(self, path: Path, generation: int) -> ModuleType:
        """Execute a plugin file as a new module object."""
        module_name = f"{MODULE_NAMESPACE}_{path.stem.replace('-', '_')}_{generation}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise PluginLoadError("cannot create module spec")

        module = importlib.util.module_from_spec(spec)

        # Cached bytecode is stale when a file is rewritten within the same second
        Path(importlib.util.cache_from_source(str(path))).unlink(missing_ok=True)

        # Registered only while executing, for code that looks itself up
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            raise PluginLoadError(f"import failed: {e}") from e
        finally:
            sys.modules.pop(module_name, None)

        return module

    async def reload(self, file_name: str) -> bool:
        """
        Reload a plugin that is already loaded.

        Returns:
            False if the plugin was never loaded or the reload failed.
        """
        if file_name not in self._records:
            return False

        logger.info(f"Reloading plugin: {file_name}")
        return await self.load_one(file_name)

    async def unload(self, file_name: str) -> bool:
        """
        Unload a plugin and remove its commands.

        Side effects of the plugin beyond its commands are not undone.

        Returns:
            False if the plugin was not loaded.
        """
        async with self._lock:
            record = self._records.pop(file_name, None)
            if record is None:
                return False

            for name in record.commands:
                descriptor = self.registry.get(name)
                if descriptor and descriptor.plugin == file_name:
                    self.registry.unregister(name)

        logger.info(f"Plugin unloaded: {record.name}")
        return True

    def is_loaded(self, file_name: str) -> bool:
        return file_name in self._records

    def get_record(self, file_name: str) -> PluginRecord | None:
        return self._records.get(file_name)

    def get_loaded_plugins(self) -> list[PluginRecord]:
        return list(self._records.values())

    def get_plugin(self, name: str) -> PluginRecord | None:
        """Find a loaded plugin by its declared name."""
        for record in self._records.values():
            if record.name == name:
                return record
        return None

    def get_stats(self) -> dict[str, Any]:
        """Get plugin manager statistics."""
        return {
            "plugins_dir": str(self.plugins_dir),
            "loaded": len(self._records),
            "commands": sum(len(r.commands) for r in self._records.values()),
            "load_failures": self._load_failures,
            "generation": self._generation,
        }
