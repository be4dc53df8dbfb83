"""Activity log entries attached to approvable records.

Entries are stored as structured data (actor, action, status, timestamp).
Rendering to the human-readable text shown in the back office happens at
the edge via :func:`render`.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from .states import RecordStatus


ACTIVITY_LOG_LIMIT = 10
DEFAULT_TIMEZONE = "Asia/Manila"


class ActivityAction(str, Enum):
    """What happened to a record."""

    CREATED = "created"
    CREATED_FOR_APPROVAL = "created_for_approval"
    UPDATED = "updated"
    UPDATED_FOR_APPROVAL = "updated_for_approval"
    DELETED = "deleted"
    MARKED_FOR_DELETION = "marked_for_deletion"
    APPROVED = "approved"
    DENIED = "denied"
    DELETION_DENIED = "deletion_denied"


MESSAGE_TEMPLATES: Dict[ActivityAction, str] = {
    ActivityAction.CREATED: "{actor} created, status set to {status}",
    ActivityAction.CREATED_FOR_APPROVAL: "{actor} created for approval",
    ActivityAction.UPDATED: "{actor} updated, status set to {status}",
    ActivityAction.UPDATED_FOR_APPROVAL: "{actor} updated for approval",
    ActivityAction.DELETED: "{actor} deleted",
    ActivityAction.MARKED_FOR_DELETION: "{actor} marked for deletion",
    ActivityAction.APPROVED: "{actor} approved, status set to {status}",
    ActivityAction.DENIED: "{actor} denied",
    ActivityAction.DELETION_DENIED: "deletion denied",
}


@dataclass(frozen=True)
class ActivityEntry:
    """A single audit line on a record."""

    actor: Optional[str]
    action: ActivityAction
    timestamp: datetime
    status: Optional[RecordStatus] = None

    @property
    def message(self) -> str:
        return MESSAGE_TEMPLATES[self.action].format(
            actor=self.actor or "system",
            status=self.status.value if self.status else "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actor": self.actor,
            "action": self.action.value,
            "status": self.status.value if self.status else None,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ActivityEntry":
        status = data.get("status")
        return cls(
            actor=data.get("actor"),
            action=ActivityAction(data["action"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            status=RecordStatus(status) if status else None,
        )


def append_activity(
    log: List[ActivityEntry],
    entry: ActivityEntry,
    limit: int = ACTIVITY_LOG_LIMIT,
) -> List[ActivityEntry]:
    """Return a new log with ``entry`` appended, keeping the last ``limit`` entries."""
    if limit < 0:
        raise ValueError("Activity log limit must be a non-negative number")
    if limit == 0:
        return []
    return (list(log) + [entry])[-limit:]


def render(entry: ActivityEntry, tz: str = DEFAULT_TIMEZONE, label: Optional[str] = None) -> str:
    """Render an entry the way the back office displays it.

    Example::

        Date: 10/16/2026, 3:04:05 PM, Stock alice updated for approval
    """
    local = entry.timestamp.astimezone(ZoneInfo(tz))
    hour = local.hour % 12 or 12
    stamp = (
        f"{local.month}/{local.day}/{local.year}, "
        f"{hour}:{local.minute:02d}:{local.second:02d} {'AM' if local.hour < 12 else 'PM'}"
    )
    text = f"{label} {entry.message}" if label else entry.message
    return f"Date: {stamp}, {text}"
