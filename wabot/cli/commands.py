"""CLI commands for wabot."""

import asyncio
import signal
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from wabot import __version__, __logo__

app = typer.Typer(
    name="wabot",
    help=f"{__logo__} wabot - command-driven WhatsApp bot",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} wabot v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """wabot - command-driven WhatsApp bot."""
    pass


# ============================================================================
# Onboard / Setup
# ============================================================================


@app.command()
def onboard(
    owner: str = typer.Option("", "--owner", "-o", help="Owner phone number"),
):
    """Create the default configuration file."""
    from wabot.config.loader import get_config_path, save_config
    from wabot.config.schema import Config

    config_path = get_config_path()

    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    config = Config()
    if owner:
        config.bot.owner_number = owner
    save_config(config)
    console.print(f"[green]✓[/green] Created config at {config_path}")

    console.print(f"\n{__logo__} wabot is ready!")
    console.print("\nNext steps:")
    console.print(f"  1. Set [cyan]bot.owner_number[/cyan] in [cyan]{config_path}[/cyan]")
    console.print("  2. Start the WhatsApp bridge and pair your phone")
    console.print("  3. Run: [cyan]wabot run[/cyan]")


# ============================================================================
# Bot
# ============================================================================


@app.command()
def run(
    config_file: Path = typer.Option(None, "--config", "-c", help="Config file path"),
    plugins_dir: Path = typer.Option(None, "--plugins", "-p", help="Plugins directory"),
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging"),
):
    """Start the bot and its health server."""
    from wabot.config.loader import load_config
    from wabot.utils.helpers import setup_logging

    config = load_config(config_file)
    setup_logging("DEBUG" if verbose else config.logging.level)

    if not config.bot.owner_number:
        console.print("[yellow]Warning: no owner number configured; owner commands are unavailable[/yellow]")

    console.print(f"{__logo__} Starting {config.bot.name} (prefix [cyan]{config.bot.prefix}[/cyan])")
    if config.server.enabled:
        console.print(f"[green]✓[/green] Health check: http://localhost:{config.server.port}/health")
    if config.plugins.watch:
        console.print("[green]✓[/green] Plugin hot reloading enabled")

    try:
        asyncio.run(_serve(config, plugins_dir))
    except KeyboardInterrupt:
        console.print("\nShutting down...")


async def _serve(config, plugins_dir: Path | None) -> None:
    """Run the bot, rebuilding it whenever a restart is requested."""
    import uvicorn
    from loguru import logger

    from wabot.bot import WhatsAppBot
    from wabot.server.main import create_app

    loop = asyncio.get_running_loop()

    while True:
        bot = WhatsAppBot(config, plugins_dir=plugins_dir)

        try:
            loop.add_signal_handler(signal.SIGTERM, bot.stop)
        except (NotImplementedError, RuntimeError):
            pass  # Not supported on Windows

        server = None
        server_task = None
        if config.server.enabled:
            server = uvicorn.Server(uvicorn.Config(
                create_app(bot),
                host=config.server.host,
                port=config.server.port,
                log_level="warning",
            ))
            server_task = asyncio.create_task(server.serve())

        try:
            restart = await bot.run()
        finally:
            if server and server_task:
                server.should_exit = True
                await asyncio.gather(server_task, return_exceptions=True)

        if not restart:
            break
        logger.info("Restarting bot...")


# ============================================================================
# Plugins / Commands
# ============================================================================


def _offline_registry(plugins_dir: Path | None):
    """Build a registry with built-ins and plugins, without a transport."""
    from wabot.auto_reply.builtin import register_builtin_commands
    from wabot.auto_reply.commands import CommandRegistry
    from wabot.auto_reply.rate_limit import RateLimiter
    from wabot.config.loader import load_config
    from wabot.plugins.manager import PluginManager
    from wabot.security.roles import RoleManager

    config = load_config()
    roles = RoleManager(config.bot.owner_number, config.bot.admin_numbers)
    registry = CommandRegistry(roles, RateLimiter(), prefix=config.bot.prefix)
    plugins = PluginManager(
        registry,
        plugins_dir or config.plugins.directory,
        extensions=config.plugins.extensions,
    )
    register_builtin_commands(registry, plugins, bot_name=config.bot.name)
    asyncio.run(plugins.load_all())
    return registry, plugins


plugins_app = typer.Typer(help="Inspect plugins")
app.add_typer(plugins_app, name="plugins")


@plugins_app.command("list")
def plugins_list(
    plugins_dir: Path = typer.Option(None, "--plugins", "-p", help="Plugins directory"),
):
    """Load plugins and list them."""
    _, plugins = _offline_registry(plugins_dir)
    records = plugins.get_loaded_plugins()

    if not records:
        console.print(f"No plugins loaded from {plugins.plugins_dir}")
        return

    table = Table(title="Plugins")
    table.add_column("File", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Version")
    table.add_column("Author")
    table.add_column("Commands", style="yellow")

    for record in records:
        table.add_row(
            record.file_name,
            record.name,
            record.version,
            record.author,
            ", ".join(record.commands),
        )

    console.print(table)


@app.command()
def commands(
    jid: str = typer.Option("", "--jid", "-j", help="Show commands available to this sender"),
    plugins_dir: Path = typer.Option(None, "--plugins", "-p", help="Plugins directory"),
):
    """List registered commands."""
    registry, _ = _offline_registry(plugins_dir)
    descriptors = registry.available_commands(jid) if jid else registry.list_commands()

    title = f"Commands for {jid}" if jid else "Commands"
    table = Table(title=title)
    table.add_column("Usage", style="cyan")
    table.add_column("Role", style="green")
    table.add_column("Category")
    table.add_column("Plugin", style="yellow")
    table.add_column("Description")

    for descriptor in descriptors:
        table.add_row(
            descriptor.usage,
            descriptor.role.value,
            descriptor.category,
            descriptor.plugin or "-",
            descriptor.description,
        )

    console.print(table)


@app.command()
def calc(
    expression: list[str] = typer.Argument(..., help="Arithmetic expression"),
):
    """Evaluate an arithmetic expression the way !calc does."""
    from wabot.utils.arith import ArithmeticSyntaxError, evaluate

    text = " ".join(expression)
    try:
        console.print(f"{text} = [green]{evaluate(text)}[/green]")
    except (ArithmeticSyntaxError, ZeroDivisionError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
