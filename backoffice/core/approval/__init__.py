"""Approval workflow module for the back office.

Implements the record approval state machine shared by every approvable
entity kind. The persistence-aware ``RecordService`` lives in
``backoffice.core.approval.service``.
"""

from .states import RecordStatus, Verdict, VALID_VERDICTS
from .activity import ActivityAction, ActivityEntry, ACTIVITY_LOG_LIMIT, append_activity, render
from .clock import SystemClock, FixedClock
from .errors import (
    WorkflowError,
    ForbiddenError,
    InvalidTransitionError,
    RecordNotFoundError,
    RecordConflictError,
    RecordValidationError,
)
from .kinds import EntityKind, DEFAULT_KINDS, build_kinds, get_kind
from .machine import ApprovableRecord, ApprovalWorkflow, Decision

__all__ = [
    "RecordStatus",
    "Verdict",
    "VALID_VERDICTS",
    "ActivityAction",
    "ActivityEntry",
    "ACTIVITY_LOG_LIMIT",
    "append_activity",
    "render",
    "SystemClock",
    "FixedClock",
    "WorkflowError",
    "ForbiddenError",
    "InvalidTransitionError",
    "RecordNotFoundError",
    "RecordConflictError",
    "RecordValidationError",
    "EntityKind",
    "DEFAULT_KINDS",
    "build_kinds",
    "get_kind",
    "ApprovableRecord",
    "ApprovalWorkflow",
    "Decision",
]
