"""Database models for the back office."""

from backoffice.db.models.record import ApprovableRecordModel

__all__ = [
    "ApprovableRecordModel",
]
