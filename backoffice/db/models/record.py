"""Approvable record database model.

A single table backs every entity kind; the domain payload, the staged
change and the activity log are stored as JSON.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict
from sqlalchemy import Column, String, DateTime, Integer, JSON, Index

from backoffice.db.base import Base
from backoffice.core.approval.activity import ActivityEntry
from backoffice.core.approval.machine import ApprovableRecord
from backoffice.core.approval.states import RecordStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ApprovableRecordModel(Base):
    """
    Stores a record of any approvable entity kind.

    ``version`` is used by SQLAlchemy as an optimistic lock: an UPDATE or
    DELETE only succeeds if the row still has the version that was read.
    """
    __tablename__ = "approvable_records"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    kind = Column(String(50), nullable=False, index=True)

    # Unique name within the kind, copied from the committed fields
    name = Column(String(255), nullable=True)

    status = Column(String(20), nullable=False, default=RecordStatus.ACTIVE.value, index=True)

    fields = Column(JSON, nullable=False, default=dict)
    pending_change = Column(JSON, nullable=False, default=dict)
    activity_log = Column(JSON, nullable=False, default=list)

    version = Column(Integer, nullable=False)

    created_by = Column(String(255), nullable=True)
    updated_by = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=_utcnow, index=True)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("ix_approvable_records_kind_name", "kind", "name"),
        Index("ix_approvable_records_kind_status", "kind", "status"),
    )

    __mapper_args__ = {"version_id_col": version}

    def to_snapshot(self) -> ApprovableRecord:
        """Convert to the engine's record snapshot."""
        return ApprovableRecord(
            id=self.id,
            kind=self.kind,
            status=RecordStatus(self.status),
            fields=dict(self.fields or {}),
            pending_change=dict(self.pending_change or {}),
            activity_log=[ActivityEntry.from_dict(e) for e in (self.activity_log or [])],
            version=self.version,
        )

    def apply_snapshot(self, record: ApprovableRecord, name: Any = None) -> None:
        """Copy a snapshot's state onto this row (new containers, so JSON changes are detected)."""
        self.status = record.status.value
        self.fields = dict(record.fields)
        self.pending_change = dict(record.pending_change)
        self.activity_log = [e.to_dict() for e in record.activity_log]
        self.name = name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "name": self.name,
            "status": self.status,
            "fields": self.fields,
            "pending_change": self.pending_change,
            "activity_log": self.activity_log,
            "version": self.version,
            "created_by": self.created_by,
            "updated_by": self.updated_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<ApprovableRecord {self.kind}:{self.id} [{self.status}]>"
