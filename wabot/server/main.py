"""
FastAPI health server for wabot.

Provides:
- /health - Liveness check
- /status - Bot status summary
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from wabot import __version__
from wabot.utils.helpers import format_uptime

if TYPE_CHECKING:
    from wabot.bot import WhatsAppBot


ENDPOINTS = ["/health", "/status"]


def create_app(bot: "WhatsAppBot") -> FastAPI:
    """
    Create the health server application.

    Args:
        bot: The running bot to report on.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="wabot",
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )
    app.state.bot = bot

    @app.get("/health")
    async def health(request: Request):
        """Lightweight liveness check."""
        current = request.app.state.bot
        return JSONResponse({
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": format_uptime(current.uptime_seconds),
            "uptime_seconds": round(current.uptime_seconds, 1),
        })

    @app.get("/status")
    async def status(request: Request):
        """Bot status summary."""
        current = request.app.state.bot
        data = current.get_status()
        data["endpoints"] = ENDPOINTS
        return JSONResponse(data)

    return app
