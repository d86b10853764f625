"""Entry point for running wabot as a module."""

from wabot.cli.commands import app

if __name__ == "__main__":
    app()
