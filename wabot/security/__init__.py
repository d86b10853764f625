"""
Security module for wabot.

Provides role resolution and permission checks for command senders.
"""

from wabot.security.roles import (
    Role,
    RoleManager,
    normalize_number,
    digits_only,
)

__all__ = [
    "Role",
    "RoleManager",
    "normalize_number",
    "digits_only",
]
