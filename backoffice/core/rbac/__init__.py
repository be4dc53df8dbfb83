"""Role-based access control for the back office.

Defines the known roles and the approval authority predicate.
"""

from .roles import UserRole, APPROVAL_ROLES, parse_roles
from .checker import Actor, ApprovalAuthority, has_approval_authority

__all__ = [
    "UserRole",
    "APPROVAL_ROLES",
    "parse_roles",
    "Actor",
    "ApprovalAuthority",
    "has_approval_authority",
]
