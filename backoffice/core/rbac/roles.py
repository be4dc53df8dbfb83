"""Role definitions for the back office.

Roles arrive as Cognito groups on the caller's token. Two of them confer
approval authority: a holder commits changes directly and may approve or
deny changes staged by others.
"""

from enum import Enum
from typing import FrozenSet, Iterable


class UserRole(str, Enum):
    """Cognito groups known to the back office."""

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    USER = "USER"


APPROVAL_ROLES: FrozenSet[str] = frozenset([
    UserRole.SUPER_ADMIN.value,
    UserRole.ADMIN.value,
])


def parse_roles(value: str) -> FrozenSet[str]:
    """Parse a comma-separated role list like ``"SUPER_ADMIN,ADMIN"``."""
    return frozenset(role.strip() for role in value.split(",") if role.strip())


def normalize_roles(roles: Iterable[str]) -> FrozenSet[str]:
    """Normalize a role collection, dropping blanks."""
    return frozenset(str(role).strip() for role in roles or [] if str(role).strip())
