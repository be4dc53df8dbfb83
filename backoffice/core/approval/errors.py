"""Errors raised by the approval workflow and the record service."""

from .states import RecordStatus, Verdict


class WorkflowError(Exception):
    """Base class for approval workflow failures."""


class ForbiddenError(WorkflowError):
    """Raised when the actor lacks approval authority."""

    def __init__(self, message: str = "Current user is not authorized to review change requests"):
        super().__init__(message)


class InvalidTransitionError(WorkflowError):
    """Raised when a verdict has no rule for the record's status."""

    def __init__(self, from_status: RecordStatus, verdict: Verdict):
        super().__init__(f"Cannot {verdict.value} record with status: {from_status.value}")
        self.from_status = from_status
        self.verdict = verdict


class RecordNotFoundError(WorkflowError):
    """Raised when a record id does not exist for the entity kind."""

    def __init__(self, label: str, record_id: str):
        super().__init__(f"{label} record not found for id {record_id}")
        self.record_id = record_id


class RecordConflictError(WorkflowError):
    """Raised on duplicate names and on concurrent modification."""


class RecordValidationError(WorkflowError, ValueError):
    """Raised when a payload does not fit the entity kind."""
