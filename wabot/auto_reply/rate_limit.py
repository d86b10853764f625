"""
Per-sender rate limiting for wabot commands.

Each sender gets an independent fixed window: at most `max_commands`
commands are accepted until the window expires, then the count restarts.
"""

import time
from typing import Any, Callable
from dataclasses import dataclass


@dataclass
class RateLimitEntry:
    """Command count for one sender's current window."""
    count: int
    reset_at: float


class RateLimiter:
    """
    Fixed-window rate limiter keyed by sender.

    Owners are exempt, but that decision belongs to the caller.
    """

    def __init__(
        self,
        max_commands: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        prune_threshold: int = 1000,
    ):
        self.max_commands = max_commands
        self.window_seconds = window_seconds
        self.prune_threshold = prune_threshold  # Tracked senders before expired windows are dropped
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._limited_count = 0

    def is_limited(self, key: str) -> bool:
        """
        Record a command from `key` and report whether it is over the limit.

        A limited call does not count towards the window.
        """
        now = self._clock()
        if len(self._entries) >= self.prune_threshold:
            self.prune(now)

        entry = self._entries.get(key)
        if entry is None:
            entry = RateLimitEntry(count=0, reset_at=now + self.window_seconds)
            self._entries[key] = entry

        if now > entry.reset_at:
            entry.count = 1
            entry.reset_at = now + self.window_seconds
            return False

        if entry.count >= self.max_commands:
            self._limited_count += 1
            return True

        entry.count += 1
        return False

    def prune(self, now: float | None = None) -> int:
        """
        Drop senders whose window has expired.

        Returns:
            Number of entries removed.
        """
        now = self._clock() if now is None else now
        expired = [key for key, entry in self._entries.items() if now > entry.reset_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def get_entry(self, key: str) -> RateLimitEntry | None:
        return self._entries.get(key)

    def reset(self, key: str) -> None:
        """Forget a sender's window."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def get_stats(self) -> dict[str, Any]:
        """Get rate limiter statistics."""
        return {
            "tracked_senders": len(self._entries),
            "limited_total": self._limited_count,
            "max_commands": self.max_commands,
            "window_seconds": self.window_seconds,
        }
