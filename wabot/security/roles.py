"""
Role resolution for wabot.

Every sender resolves to one of three tiers:
- owner: the single configured owner number
- admin: numbers in the mutable admin list
- user: everyone else

Tiers are ordered, so owner passes every admin check and
admin passes every user check.
"""

import re
from enum import Enum

from loguru import logger


JID_SUFFIXES = ("@s.whatsapp.net", "@c.us")


class Role(str, Enum):
    """Permission tier of a sender."""
    USER = "user"
    ADMIN = "admin"
    OWNER = "owner"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def display(self) -> str:
        return _DISPLAY[self]


_RANKS = {Role.USER: 0, Role.ADMIN: 1, Role.OWNER: 2}

_DISPLAY = {
    Role.OWNER: "👑 Owner",
    Role.ADMIN: "⭐ Admin",
    Role.USER: "👤 User",
}


def normalize_number(jid: str) -> str:
    """
    Reduce a sender address to a bare number.

    Examples:
        27831234567@s.whatsapp.net -> 27831234567
        27831234567:12@s.whatsapp.net -> 27831234567
        27831234567@c.us -> 27831234567
    """
    number = jid or ""
    for suffix in JID_SUFFIXES:
        number = number.replace(suffix, "")
    # Strip the multi-device suffix
    if ":" in number:
        number = number.split(":", 1)[0]
    return number


def digits_only(value: str) -> str:
    """Keep only the digits of a phone number or JID."""
    return re.sub(r"[^0-9]", "", normalize_number(value))


class RoleManager:
    """
    Resolves senders to roles and manages the admin list.

    The admin list is owned by the manager; mutate it only through
    add_admin/remove_admin so changes are checked and logged.
    """

    def __init__(self, owner_number: str = "", admin_numbers: list[str] | None = None):
        self.owner_number = digits_only(owner_number)
        self._admins: list[str] = []
        for number in admin_numbers or []:
            number = digits_only(number)
            if number and number not in self._admins:
                self._admins.append(number)

    @property
    def admins(self) -> list[str]:
        """Current admin numbers (copy)."""
        return list(self._admins)

    def role_of(self, jid: str) -> Role:
        """Get the role of a sender."""
        number = normalize_number(jid)

        if self.owner_number and number == self.owner_number:
            return Role.OWNER

        if number in self._admins:
            return Role.ADMIN

        return Role.USER

    def is_owner(self, jid: str) -> bool:
        return self.role_of(jid) is Role.OWNER

    def is_admin(self, jid: str) -> bool:
        """True for admins and the owner."""
        return self.role_of(jid) in (Role.ADMIN, Role.OWNER)

    def has_permission(self, jid: str, required: Role | str) -> bool:
        """
        Check if a sender meets the required role.

        Args:
            jid: Sender address.
            required: Required role (enum or its string value).

        Returns:
            True if the sender's role is at least the required one.
            Unknown role names never pass.
        """
        try:
            required_role = Role(required)
        except ValueError:
            return False

        return self.role_of(jid).rank >= required_role.rank

    def role_display(self, jid: str) -> str:
        """Get the role label shown to users."""
        return self.role_of(jid).display

    def add_admin(self, target: str, requester: str) -> bool:
        """
        Add a number to the admin list.

        Args:
            target: Number or JID to promote.
            requester: Sender asking for the change; must be the owner.

        Returns:
            True if the admin list changed.
        """
        if not self.is_owner(requester):
            return False

        number = digits_only(target)
        if not number or number in self._admins:
            return False

        self._admins.append(number)
        logger.info(f"Added {number} as admin by {normalize_number(requester)}")
        return True

    def remove_admin(self, target: str, requester: str) -> bool:
        """
        Remove a number from the admin list.

        Args:
            target: Number or JID to demote.
            requester: Sender asking for the change; must be the owner.

        Returns:
            True if the admin list changed.
        """
        if not self.is_owner(requester):
            return False

        number = digits_only(target)
        if number not in self._admins:
            return False

        self._admins.remove(number)
        logger.info(f"Removed {number} from admin by {normalize_number(requester)}")
        return True
