"""Small helpers shared by commands and the health server."""

import sys

from loguru import logger


def format_uptime(seconds: float) -> str:
    """Format seconds as "1h 2m 3s"."""
    seconds = max(0, int(seconds))
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    return f"{hours}h {minutes}m {secs}s"


def setup_logging(level: str = "INFO") -> None:
    """Send log records to stderr at the given level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan> - <level>{message}</level>"
        ),
    )
