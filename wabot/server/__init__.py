"""Health server for wabot."""

from wabot.server.main import create_app

__all__ = ["create_app"]
