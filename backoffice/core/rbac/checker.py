"""Approval authority checks.

The permission rule is defined once here and injected into the workflow
engine, so it can be swapped or tested independently of the transitions.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

from .roles import APPROVAL_ROLES, normalize_roles


@dataclass(frozen=True)
class Actor:
    """The user performing an operation, as supplied by the auth layer."""

    username: str
    roles: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_claims(cls, username: str, roles: Optional[Iterable[str]] = None) -> "Actor":
        return cls(username=username, roles=normalize_roles(roles or []))


class ApprovalAuthority:
    """Predicate deciding whether an actor may commit or review changes."""

    def __init__(self, approval_roles: Optional[Iterable[str]] = None):
        """
        Initialize with the roles that confer authority.

        Args:
            approval_roles: Role names granting authority. Defaults to
                SUPER_ADMIN and ADMIN.
        """
        self.approval_roles = frozenset(approval_roles) if approval_roles is not None else APPROVAL_ROLES

    def __call__(self, actor: Optional[Actor]) -> bool:
        if not actor or not actor.roles:
            return False
        return bool(self.approval_roles & actor.roles)


_default_authority = ApprovalAuthority()


def has_approval_authority(actor: Optional[Actor]) -> bool:
    """Check if an actor holds SUPER_ADMIN or ADMIN."""
    return _default_authority(actor)
