"""Record service for approvable entities.

Provides the command and query operations behind each entity's HTTP
endpoints: it loads records, validates existence and uniqueness, asks the
approval workflow for a decision and persists the outcome.
"""

import logging
from typing import Optional, Dict, Any, Mapping

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from backoffice.core.rbac.checker import Actor
from backoffice.db.models.record import ApprovableRecordModel
from backoffice.db.repository import RecordRepository

from .activity import ActivityEntry, DEFAULT_TIMEZONE, render
from .errors import RecordConflictError, RecordNotFoundError
from .kinds import EntityKind
from .machine import ApprovalWorkflow, Decision
from .states import RecordStatus, Verdict


logger = logging.getLogger(__name__)


class RecordService:
    """
    High-level service for one approvable entity kind.

    Handles:
    - Create/update/delete with direct commit or staging for approval
    - Approve/deny of staged records
    - Lookups by id and name, paginated listing by status
    - Optimistic concurrency on writes
    """

    def __init__(
        self,
        db: Session,
        kind: EntityKind,
        *,
        workflow: Optional[ApprovalWorkflow] = None,
        timezone: str = DEFAULT_TIMEZONE,
    ):
        """
        Initialize the record service.

        Args:
            db: Database session
            kind: Entity kind handled by this service
            workflow: Decision engine; a default one is built for ``kind``
            timezone: Zone used to render activity entries
        """
        self.db = db
        self.kind = kind
        self.workflow = workflow or ApprovalWorkflow(kind)
        self.timezone = timezone
        self.repository = RecordRepository(db, kind)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create(self, payload: Mapping[str, Any], actor: Actor) -> Dict[str, Any]:
        """
        Create a record, active or awaiting approval depending on the actor.

        Raises:
            RecordValidationError: If the payload has unknown fields or no name
            RecordConflictError: If the name is taken or reserved by a staged rename
        """
        fields = self.kind.clean(payload)
        self.kind.require_name(fields)
        name = self.kind.name_of(fields)
        logger.info(f"Processing create request for {self.kind.label.lower()}: {name or '-'}")

        self._ensure_name_available(name)

        decision = self.workflow.decide_create(fields, actor)
        row = ApprovableRecordModel(
            id=decision.record.id,
            kind=self.kind.key,
            created_by=actor.username,
            updated_by=actor.username,
        )
        row.apply_snapshot(decision.record, name=name)
        self.repository.create(row)

        logger.info(f"{self.kind.label} created successfully: {row.id} [{row.status}]")
        return self._record_to_dict(row)

    def update(
        self,
        record_id: str,
        payload: Mapping[str, Any],
        actor: Actor,
        *,
        expected_version: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Update a record directly or stage the change for approval.

        Raises:
            RecordNotFoundError: If the record does not exist
            RecordConflictError: On a duplicate or reserved name, or a stale version
        """
        logger.info(f"Processing update request for {self.kind.label.lower()}: {record_id}")
        fields = self.kind.clean(payload)
        row = self._fetch(record_id, expected_version)

        new_name = self.kind.name_of(fields)
        if new_name is not None and new_name != row.name:
            self._ensure_name_available(new_name, exclude_id=row.id)

        decision = self.workflow.decide_update(row.to_snapshot(), fields, actor)
        self._save(row, decision, actor)

        logger.info(f"{self.kind.label} updated successfully: {row.id} [{row.status}]")
        return self._record_to_dict(row)

    def delete(
        self,
        record_id: str,
        actor: Actor,
        *,
        expected_version: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Delete a record, or mark it for deletion if the actor lacks authority.

        Raises:
            RecordNotFoundError: If the record does not exist
            RecordConflictError: On a stale version
        """
        logger.info(f"Processing delete request for {self.kind.label.lower()}: {record_id}")
        row = self._fetch(record_id, expected_version)

        decision = self.workflow.decide_delete(row.to_snapshot(), actor)
        row.apply_snapshot(decision.record, name=row.name)
        row.updated_by = actor.username

        if decision.authorized:
            result = self._record_to_dict(row, deleted=True)
            self._execute(self.repository.delete, row)
            logger.info(f"{self.kind.label} deleted: {record_id}")
        else:
            self._execute(self.repository.update, row)
            result = self._record_to_dict(row)
            logger.info(f"{self.kind.label} marked for deletion: {record_id}")
        return result

    def approve(
        self,
        record_id: str,
        actor: Actor,
        *,
        expected_version: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Approve the staged state of a record."""
        return self.review(record_id, actor, Verdict.APPROVE, expected_version=expected_version)

    def deny(
        self,
        record_id: str,
        actor: Actor,
        *,
        expected_version: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Deny the staged state of a record."""
        return self.review(record_id, actor, Verdict.DENY, expected_version=expected_version)

    def review(
        self,
        record_id: str,
        actor: Actor,
        verdict: Verdict,
        *,
        expected_version: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Apply an approver's verdict.

        Raises:
            RecordNotFoundError: If the record does not exist
            ForbiddenError: If the actor lacks approval authority
            InvalidTransitionError: If the record is not awaiting this verdict
            RecordConflictError: On a stale version, or if the approved name is taken
        """
        logger.info(f"Processing {verdict.value} request for {self.kind.label.lower()}: {record_id}")
        row = self._fetch(record_id, expected_version)

        decision = self.workflow.decide_approve_or_deny(row.to_snapshot(), actor, verdict)

        if decision.purge:
            result = self._record_to_dict(row, deleted=True)
            self._execute(self.repository.delete, row)
            logger.info(f"{self.kind.label} {verdict.value} removed record: {record_id}")
            return result

        committed_name = self.kind.name_of(decision.record.fields)
        if committed_name is not None and committed_name != row.name:
            self._ensure_name_available(committed_name, exclude_id=row.id, include_pending=False)

        self._save(row, decision, actor)
        logger.info(f"{self.kind.label} {verdict.value} applied: {record_id} [{row.status}]")
        return self._record_to_dict(row)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, record_id: str) -> Dict[str, Any]:
        """Get a record by id."""
        row = self.repository.find_by_id(record_id)
        if not row:
            logger.warning(f"{self.kind.label} not found: {record_id}")
            raise RecordNotFoundError(self.kind.label, record_id)
        return self._record_to_dict(row)

    def get_by_name(self, name: str) -> Dict[str, Any]:
        """Get a record by its unique name."""
        row = self.repository.find_by_name(name)
        if not row:
            logger.warning(f"{self.kind.label} not found by name: {name}")
            raise RecordNotFoundError(self.kind.label, name)
        return self._record_to_dict(row)

    def list(
        self,
        *,
        status: Optional[RecordStatus] = None,
        page: int = 1,
        per_page: int = 20,
        direction: str = "desc",
    ) -> Dict[str, Any]:
        """List records, newest first unless ``direction`` is ``asc``."""
        logger.info(
            f"Processing pagination request for {self.kind.label.lower()} with status: "
            f"{status.value if status else 'any'}"
        )
        rows, total = self.repository.list(
            status=status.value if status else None,
            direction=direction,
            limit=per_page,
            offset=(page - 1) * per_page,
        )
        return {
            "items": [self._record_to_dict(r) for r in rows],
            "total": total,
            "page": page,
            "per_page": per_page,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fetch(self, record_id: str, expected_version: Optional[int]) -> ApprovableRecordModel:
        row = self.repository.find_by_id(record_id, for_update=True)
        if not row:
            logger.warning(f"{self.kind.label} not found: {record_id}")
            raise RecordNotFoundError(self.kind.label, record_id)
        if expected_version is not None and row.version != expected_version:
            raise RecordConflictError(
                f"{self.kind.label} {record_id} was modified: "
                f"expected version {expected_version}, found {row.version}"
            )
        return row

    def _ensure_name_available(
        self,
        name: Optional[str],
        *,
        exclude_id: Optional[str] = None,
        include_pending: bool = True,
    ) -> None:
        """Raise a conflict if ``name`` is taken, or reserved by a staged rename."""
        if name is None:
            return
        taken = self.repository.find_by_name(name, exclude_id=exclude_id)
        if not taken and include_pending:
            taken = self.repository.find_by_pending_name(name, exclude_id=exclude_id)
        if taken:
            logger.warning(f"{self.kind.label} name already exists: {name}")
            raise RecordConflictError(f"{self.kind.label} name already exists")

    def _save(self, row: ApprovableRecordModel, decision: Decision, actor: Actor) -> None:
        record = decision.record
        row.apply_snapshot(record, name=self.kind.name_of(record.fields))
        row.updated_by = actor.username
        self._execute(self.repository.update, row)

    def _execute(self, operation, row: ApprovableRecordModel) -> ApprovableRecordModel:
        try:
            return operation(row)
        except StaleDataError as e:
            raise RecordConflictError(
                f"{self.kind.label} {row.id} was modified concurrently"
            ) from e

    def _record_to_dict(self, row: ApprovableRecordModel, *, deleted: bool = False) -> Dict[str, Any]:
        """Convert a record row to a dictionary with rendered activity."""
        data = row.to_dict()
        entries = [ActivityEntry.from_dict(e) for e in (row.activity_log or [])]
        data["activity_log"] = [
            {
                **entry.to_dict(),
                "message": entry.message,
                "text": render(entry, self.timezone, self.kind.label),
            }
            for entry in entries
        ]
        data["deleted"] = deleted
        return data
