"""Approval workflow engine.

Computes the next state of an approvable record for each intent (create,
update, delete, approve, deny). The engine performs no I/O: callers load the
record, invoke the engine and execute the returned :class:`Decision` against
storage.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Mapping, Optional
import uuid

from backoffice.core.rbac.checker import Actor, ApprovalAuthority

from .activity import ActivityAction, ActivityEntry, ACTIVITY_LOG_LIMIT, append_activity
from .clock import SystemClock
from .errors import ForbiddenError, InvalidTransitionError
from .kinds import EntityKind
from .states import RecordStatus, Verdict, get_transition_rule


@dataclass(frozen=True)
class ApprovableRecord:
    """Snapshot of a record as seen by the engine."""

    id: str
    kind: str
    status: RecordStatus
    fields: Dict[str, Any] = field(default_factory=dict)
    pending_change: Dict[str, Any] = field(default_factory=dict)
    activity_log: List[ActivityEntry] = field(default_factory=list)
    version: Optional[int] = None

    @property
    def has_pending_change(self) -> bool:
        return bool(self.pending_change)


@dataclass(frozen=True)
class Decision:
    """Result of an engine operation.

    Attributes:
        record: Next record state, ``None`` when the record must be purged
        entry: Activity entry appended to the log, if any
        authorized: Whether the actor held approval authority
        purge: Caller must physically remove the record
    """
    record: Optional[ApprovableRecord]
    entry: Optional[ActivityEntry]
    authorized: bool
    purge: bool = False


class ApprovalWorkflow:
    """
    Decision engine shared by every approvable entity kind.

    Handles:
    - Initial status on create, depending on the creator's authority
    - Direct commits vs staged changes on update
    - Staged deletions
    - Approve/deny verdicts on staged records
    - Bounded activity logging
    """

    def __init__(
        self,
        kind: EntityKind,
        *,
        clock=None,
        authority: Optional[Callable[[Actor], bool]] = None,
        activity_limit: int = ACTIVITY_LOG_LIMIT,
    ):
        """
        Initialize the workflow.

        Args:
            kind: Entity kind the records belong to
            clock: Object with a ``now()`` method returning an aware datetime
            authority: Predicate telling whether an actor may commit changes
            activity_limit: Maximum activity entries kept on a record
        """
        self.kind = kind
        self.clock = clock or SystemClock()
        self.authority = authority or ApprovalAuthority()
        self.activity_limit = activity_limit

    def decide_create(
        self,
        payload: Mapping[str, Any],
        actor: Actor,
        *,
        record_id: Optional[str] = None,
    ) -> Decision:
        """Decide the initial state of a new record."""
        fields = dict(payload)
        authorized = self.authority(actor)

        if authorized:
            status = RecordStatus.ACTIVE
            pending: Dict[str, Any] = {}
            entry = self._entry(actor, ActivityAction.CREATED, status)
        else:
            status = self.kind.pending_status
            pending = dict(payload)
            entry = self._entry(actor, ActivityAction.CREATED_FOR_APPROVAL)

        record = ApprovableRecord(
            id=record_id or str(uuid.uuid4()),
            kind=self.kind.key,
            status=status,
            fields=fields,
            pending_change=pending,
            activity_log=append_activity([], entry, self.activity_limit),
        )
        return Decision(record=record, entry=entry, authorized=authorized)

    def decide_update(
        self,
        existing: ApprovableRecord,
        payload: Mapping[str, Any],
        actor: Actor,
    ) -> Decision:
        """Decide how a submitted change applies to an existing record."""
        authorized = self.authority(actor)

        if authorized:
            entry = self._entry(actor, ActivityAction.UPDATED, RecordStatus.ACTIVE)
            record = replace(
                existing,
                status=RecordStatus.ACTIVE,
                fields=self.kind.merge(existing.fields, payload),
                pending_change={},
                activity_log=self._append(existing, entry),
            )
        else:
            entry = self._entry(actor, ActivityAction.UPDATED_FOR_APPROVAL)
            record = replace(
                existing,
                status=RecordStatus.FOR_APPROVAL,
                fields=dict(existing.fields),
                pending_change=self.kind.merge(existing.pending_change, payload),
                activity_log=self._append(existing, entry),
            )

        return Decision(record=record, entry=entry, authorized=authorized)

    def decide_delete(self, existing: ApprovableRecord, actor: Actor) -> Decision:
        """Stage a deletion.

        The record always moves to FOR_DELETION. ``Decision.authorized`` tells
        the caller whether to remove it right away or keep it for review.
        """
        authorized = self.authority(actor)
        action = ActivityAction.DELETED if authorized else ActivityAction.MARKED_FOR_DELETION
        entry = self._entry(actor, action)
        record = replace(
            existing,
            status=RecordStatus.FOR_DELETION,
            fields=dict(existing.fields),
            pending_change=dict(existing.pending_change),
            activity_log=self._append(existing, entry),
        )
        return Decision(record=record, entry=entry, authorized=authorized)

    def decide_approve_or_deny(
        self,
        existing: ApprovableRecord,
        actor: Actor,
        verdict: Verdict,
    ) -> Decision:
        """
        Apply an approver's verdict to a staged record.

        Raises:
            ForbiddenError: If the actor lacks approval authority
            InvalidTransitionError: If the status has no rule for the verdict
        """
        if not self.authority(actor):
            raise ForbiddenError(
                f"Current user is not authorized to {verdict.value} "
                f"{self.kind.label.lower()} change request"
            )

        rule = get_transition_rule(existing.status, verdict)
        if not rule:
            raise InvalidTransitionError(existing.status, verdict)

        if rule.to_status is None:
            return Decision(record=None, entry=None, authorized=True, purge=True)

        if verdict == Verdict.APPROVE:
            entry = self._entry(actor, ActivityAction.APPROVED, rule.to_status)
        elif existing.status == RecordStatus.FOR_DELETION:
            entry = self._entry(actor, ActivityAction.DELETION_DENIED)
        else:
            entry = self._entry(actor, ActivityAction.DENIED)

        fields = dict(existing.fields)
        if rule.commit_pending:
            fields = self.kind.merge(fields, existing.pending_change)

        record = replace(
            existing,
            status=rule.to_status,
            fields=fields,
            pending_change={},
            activity_log=self._append(existing, entry),
        )
        return Decision(record=record, entry=entry, authorized=True)

    def decide_approve(self, existing: ApprovableRecord, actor: Actor) -> Decision:
        return self.decide_approve_or_deny(existing, actor, Verdict.APPROVE)

    def decide_deny(self, existing: ApprovableRecord, actor: Actor) -> Decision:
        return self.decide_approve_or_deny(existing, actor, Verdict.DENY)

    def _entry(
        self,
        actor: Actor,
        action: ActivityAction,
        status: Optional[RecordStatus] = None,
    ) -> ActivityEntry:
        return ActivityEntry(
            actor=actor.username if actor else None,
            action=action,
            timestamp=self.clock.now(),
            status=status,
        )

    def _append(self, existing: ApprovableRecord, entry: ActivityEntry) -> List[ActivityEntry]:
        return append_activity(existing.activity_log, entry, self.activity_limit)
