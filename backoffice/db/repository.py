"""Persistence port for approvable records, backed by SQLAlchemy."""

from typing import List, Optional, Tuple

from sqlalchemy import and_
from sqlalchemy.orm import Session

from backoffice.core.approval.kinds import EntityKind
from backoffice.core.approval.states import RecordStatus
from backoffice.db.models.record import ApprovableRecordModel


# Statuses whose pending change may carry a new name
PENDING_NAME_STATUSES = [RecordStatus.NEW_RECORD.value, RecordStatus.FOR_APPROVAL.value]


class RecordRepository:
    """Reads and writes records of one entity kind."""

    def __init__(self, db: Session, kind: EntityKind):
        self.db = db
        self.kind = kind

    def find_by_id(self, record_id: str, *, for_update: bool = False) -> Optional[ApprovableRecordModel]:
        query = self.db.query(ApprovableRecordModel).filter(
            and_(
                ApprovableRecordModel.id == record_id,
                ApprovableRecordModel.kind == self.kind.key,
            )
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def find_by_name(self, name: str, *, exclude_id: Optional[str] = None) -> Optional[ApprovableRecordModel]:
        query = self.db.query(ApprovableRecordModel).filter(
            and_(
                ApprovableRecordModel.kind == self.kind.key,
                ApprovableRecordModel.name == name,
            )
        )
        if exclude_id:
            query = query.filter(ApprovableRecordModel.id != exclude_id)
        return query.first()

    def find_by_pending_name(self, name: str, *, exclude_id: Optional[str] = None) -> Optional[ApprovableRecordModel]:
        """Find a record whose staged change would rename it to ``name``."""
        query = self.db.query(ApprovableRecordModel).filter(
            and_(
                ApprovableRecordModel.kind == self.kind.key,
                ApprovableRecordModel.status.in_(PENDING_NAME_STATUSES),
            )
        )
        if exclude_id:
            query = query.filter(ApprovableRecordModel.id != exclude_id)
        # pending_change is JSON, so the name is compared in Python
        for row in query.all():
            if self.kind.name_of(row.pending_change) == name:
                return row
        return None

    def create(self, row: ApprovableRecordModel) -> ApprovableRecordModel:
        self.db.add(row)
        self.db.flush()
        return row

    def update(self, row: ApprovableRecordModel) -> ApprovableRecordModel:
        self.db.flush()
        return row

    def delete(self, row: ApprovableRecordModel) -> ApprovableRecordModel:
        self.db.delete(row)
        self.db.flush()
        return row

    def list(
        self,
        *,
        status: Optional[str] = None,
        direction: str = "desc",
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[ApprovableRecordModel], int]:
        """List records of the kind, optionally filtered by status.

        Returns:
            Tuple of (records, total matching)
        """
        query = self.db.query(ApprovableRecordModel).filter(
            ApprovableRecordModel.kind == self.kind.key
        )
        if status:
            query = query.filter(ApprovableRecordModel.status == status)

        total = query.count()

        order = ApprovableRecordModel.created_at.asc() if direction == "asc" else ApprovableRecordModel.created_at.desc()
        records = query.order_by(order, ApprovableRecordModel.id.asc()).offset(offset).limit(limit).all()
        return records, total
