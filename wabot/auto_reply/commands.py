"""
Command registry and parsing for wabot.

Supports:
- Prefixed commands parsed from message text
- Registration by name with role, category and usage metadata
- Rate limiting and permission checks before a handler runs
"""

import inspect
from contextlib import contextmanager
from typing import Any, Callable, Awaitable, Iterator, TYPE_CHECKING
from dataclasses import dataclass, field

from loguru import logger

from wabot.auto_reply.rate_limit import RateLimiter
from wabot.security.roles import Role, RoleManager, normalize_number

if TYPE_CHECKING:
    from wabot.channels.base import BaseTransport, InboundMessage


RATE_LIMITED_TEXT = (
    "⚠️ *Rate Limited*\n\n"
    "You are sending commands too quickly. Please wait a moment before trying again."
)

COMMAND_ERROR_TEXT = (
    "❌ *Command Error*\n\n"
    "An error occurred while executing this command. Please try again later."
)


@dataclass
class Command:
    """A parsed command."""
    name: str
    arguments: list[str] = field(default_factory=list)
    raw: str = ""


@dataclass
class CommandContext:
    """What a handler knows about the message that invoked it."""
    message: "InboundMessage"
    command: str
    sender: str
    role: Role
    registry: "CommandRegistry"
    app: Any = None  # Owning bot, when running inside one

    @property
    def chat_id(self) -> str:
        return self.message.chat_id

    @property
    def sender_number(self) -> str:
        return normalize_number(self.sender)


# Type alias for command handlers
CommandHandler = Callable[["BaseTransport", CommandContext, list[str]], Awaitable[None] | None]


@dataclass
class CommandDescriptor:
    """A registered command."""
    name: str
    handler: CommandHandler
    description: str = "No description"
    usage: str = ""
    role: Role = Role.USER
    category: str = "general"
    plugin: str | None = None  # Plugin file that registered it


class CommandRegistry:
    """
    Registry for command handlers.

    Each name maps to exactly one descriptor; registering a name
    again replaces the previous descriptor. Iteration order is
    registration order.
    """

    def __init__(
        self,
        roles: RoleManager,
        rate_limiter: RateLimiter,
        prefix: str = "!",
        app: Any = None,
    ):
        self.roles = roles
        self.rate_limiter = rate_limiter
        self.prefix = prefix
        self.app = app
        self._commands: dict[str, CommandDescriptor] = {}

        # (plugin file, names registered so far) while a plugin is loading
        self._plugin_scope: tuple[str, list[str]] | None = None

        # Stats
        self._executed_count = 0
        self._error_count = 0

    def register(
        self,
        name: str,
        handler: CommandHandler,
        description: str = "",
        usage: str = "",
        role: Role | str = Role.USER,
        category: str = "",
        plugin: str | None = None,
    ) -> CommandDescriptor:
        """
        Register a command handler.

        Args:
            name: Command name (matched case-insensitively).
            handler: Function(transport, ctx, args), sync or async.
            description: Help text for the command.
            usage: Usage line; defaults to prefix + name.
            role: Minimum role allowed to run it.
            category: Menu section.
            plugin: Plugin file that owns the command.

        Returns:
            The stored descriptor.
        """
        name = name.strip().lower()
        if not name:
            raise ValueError("Command name must not be empty")
        if not callable(handler):
            raise TypeError(f"Handler for '{name}' is not callable")

        if self._plugin_scope is not None:
            scope_plugin, scope_names = self._plugin_scope
            plugin = plugin or scope_plugin
            if name not in scope_names:
                scope_names.append(name)

        descriptor = CommandDescriptor(
            name=name,
            handler=handler,
            description=description or "No description",
            usage=usage or f"{self.prefix}{name}",
            role=Role(role or Role.USER),
            category=category or "general",
            plugin=plugin,
        )

        if name in self._commands:
            logger.debug(f"Command overwritten: {name}")
        self._commands[name] = descriptor
        return descriptor

    def command(self, name: str, **meta: Any) -> Callable[[CommandHandler], CommandHandler]:
        """
        Decorator form of register().

        Example:
            @registry.command("hello", description="Say hello")
            async def hello(transport, ctx, args): ...
        """
        def decorator(func: CommandHandler) -> CommandHandler:
            self.register(name, func, **meta)
            return func
        return decorator

    @contextmanager
    def plugin_scope(self, plugin: str) -> Iterator[list[str]]:
        """
        Attribute commands registered inside the block to a plugin.

        Yields the list of names registered so far.
        """
        previous = self._plugin_scope
        names: list[str] = []
        self._plugin_scope = (plugin, names)
        try:
            yield names
        finally:
            self._plugin_scope = previous

    def unregister(self, name: str) -> bool:
        """Remove a command. Returns False if it was not registered."""
        return self._commands.pop(name.lower(), None) is not None

    def get(self, name: str) -> CommandDescriptor | None:
        return self._commands.get(name.lower())

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._commands

    def __len__(self) -> int:
        return len(self._commands)

    def list_commands(self) -> list[CommandDescriptor]:
        """All commands in registration order."""
        return list(self._commands.values())

    def available_commands(self, jid: str) -> list[CommandDescriptor]:
        """Commands the sender is allowed to run, in registration order."""
        return [
            descriptor for descriptor in self._commands.values()
            if self.roles.has_permission(jid, descriptor.role)
        ]

    async def execute(
        self,
        transport: "BaseTransport",
        message: "InboundMessage",
        name: str,
        args: list[str],
    ) -> bool:
        """
        Execute a command on behalf of a message's sender.

        Unknown commands are ignored. Rate limiting (skipped for the
        owner) and permissions are checked first; rejections are
        reported to the sender. Handler failures are logged and turned
        into a generic error notice.

        Returns:
            True if the handler ran to completion.
        """
        chat_id = message.chat_id
        name = name.lower()
        try:
            descriptor = self._commands.get(name)
            if descriptor is None:
                return False

            sender = message.sender
            number = normalize_number(sender)
            role = self.roles.role_of(sender)

            if role is not Role.OWNER and self.rate_limiter.is_limited(number):
                logger.warning(f"Rate limited: {name} from {number}")
                await transport.send_text(chat_id, RATE_LIMITED_TEXT)
                return False

            if not self.roles.has_permission(sender, descriptor.role):
                logger.warning(
                    f"Access denied: {name} requires {descriptor.role.value}, "
                    f"{number} is {role.value}"
                )
                await transport.send_text(
                    chat_id,
                    "❌ *Access Denied*\n\n"
                    f"This command requires {descriptor.role.value} role or higher.\n"
                    f"Your role: {role.display}",
                )
                return False

            ctx = CommandContext(
                message=message,
                command=name,
                sender=sender,
                role=role,
                registry=self,
                app=self.app,
            )
            result = descriptor.handler(transport, ctx, args)
            if inspect.isawaitable(result):
                await result

            self._executed_count += 1
            logger.info(f"Command executed: {name} by {number} ({role.value})")
            return True

        except Exception as e:
            self._error_count += 1
            logger.exception(
                f"Error executing command {name} from {normalize_number(message.sender)}: {e}"
            )
            try:
                await transport.send_text(chat_id, COMMAND_ERROR_TEXT)
            except Exception as send_error:
                logger.error(f"Failed to send error notice to {chat_id}: {send_error}")
            return False

    def get_help(self, jid: str, name: str = "") -> str:
        """Get help text for one command or every command the sender can run."""
        if name:
            descriptor = self.get(name)
            if descriptor is None or not self.roles.has_permission(jid, descriptor.role):
                return f"No help for: {name}"
            return f"{descriptor.usage} - {descriptor.description}"

        lines = ["Available commands:"]
        for descriptor in self.available_commands(jid):
            lines.append(f"  {descriptor.usage} - {descriptor.description}")
        return "\n".join(lines)

    def get_stats(self) -> dict[str, Any]:
        """Get registry statistics."""
        return {
            "commands": len(self._commands),
            "executed_count": self._executed_count,
            "error_count": self._error_count,
        }


def parse_command(text: str, prefix: str = "!") -> Command | None:
    """
    Parse a single command from text.

    Examples (prefix "!"):
        !ping -> Command(name="ping")
        !calc 2 + 2 -> Command(name="calc", arguments=["2", "+", "2"])
        !MENU -> Command(name="menu")

    Args:
        text: Message text.
        prefix: Command prefix.

    Returns:
        Parsed Command or None if the text is not a command.
    """
    if not text or not prefix or not text.startswith(prefix):
        return None

    parts = text[len(prefix):].split()
    if not parts:
        return None

    name = parts[0].lower()
    if not name:
        return None

    return Command(name=name, arguments=parts[1:], raw=text)
