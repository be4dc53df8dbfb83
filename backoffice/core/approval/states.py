"""Approval workflow statuses and transitions.

State Machine Diagram:

    ┌────────────┐  approve   ┌──────────┐
    │ NEW_RECORD │───────────►│          │◄──── create (approver)
    └─────┬──────┘            │          │
          │ deny              │          │  update (no authority)  ┌──────────────┐
          ▼                   │  ACTIVE  │────────────────────────►│ FOR_APPROVAL │
      [deleted]               │          │◄────────────────────────│              │
                              │          │     approve / deny      └──────────────┘
                              │          │
                              │          │  delete                 ┌──────────────┐
                              │          │────────────────────────►│ FOR_DELETION │
                              │          │◄────────────────────────│              │
                              └──────────┘         deny            └──────┬───────┘
                                                                          │ approve
                                                                          ▼
                                                                      [deleted]

Initial states: NEW_RECORD or FOR_APPROVAL when the creator lacks approval
authority (configured per entity kind), ACTIVE otherwise.
"""

from enum import Enum
from typing import Set, Dict, Optional, NamedTuple


class RecordStatus(str, Enum):
    """Lifecycle stage of an approvable record."""

    NEW_RECORD = "NEW_RECORD"        # Created by a user without authority
    FOR_APPROVAL = "FOR_APPROVAL"    # Staged change awaiting a second party
    ACTIVE = "ACTIVE"                # Committed
    FOR_DELETION = "FOR_DELETION"    # Deletion staged


class Verdict(str, Enum):
    """Decision taken by an approver on a staged record."""

    APPROVE = "approve"
    DENY = "deny"


class TransitionRule(NamedTuple):
    """Outcome of a verdict on a record in a given status.

    A ``to_status`` of ``None`` means the record is purged from storage.
    """
    from_status: RecordStatus
    verdict: Verdict
    to_status: Optional[RecordStatus]
    commit_pending: bool = False


TRANSITION_RULES: list[TransitionRule] = [
    TransitionRule(RecordStatus.NEW_RECORD, Verdict.APPROVE, RecordStatus.ACTIVE, commit_pending=True),
    TransitionRule(RecordStatus.NEW_RECORD, Verdict.DENY, None),

    TransitionRule(RecordStatus.FOR_APPROVAL, Verdict.APPROVE, RecordStatus.ACTIVE, commit_pending=True),
    TransitionRule(RecordStatus.FOR_APPROVAL, Verdict.DENY, RecordStatus.ACTIVE),

    TransitionRule(RecordStatus.FOR_DELETION, Verdict.APPROVE, None),
    TransitionRule(RecordStatus.FOR_DELETION, Verdict.DENY, RecordStatus.ACTIVE),
]

VALID_VERDICTS: Dict[RecordStatus, Set[Verdict]] = {}
TRANSITION_TARGETS: Dict[tuple[RecordStatus, Verdict], TransitionRule] = {}

for rule in TRANSITION_RULES:
    VALID_VERDICTS.setdefault(rule.from_status, set()).add(rule.verdict)
    TRANSITION_TARGETS[(rule.from_status, rule.verdict)] = rule


# Statuses a creator can leave a record in
INITIAL_STATES: Set[RecordStatus] = {
    RecordStatus.NEW_RECORD,
    RecordStatus.FOR_APPROVAL,
    RecordStatus.ACTIVE,
}

# Statuses that require an approver's attention
PENDING_REVIEW_STATES: Set[RecordStatus] = {
    RecordStatus.NEW_RECORD,
    RecordStatus.FOR_APPROVAL,
    RecordStatus.FOR_DELETION,
}

# Statuses a permissionless create may be configured to start in
PENDING_CREATE_STATES: Set[RecordStatus] = {
    RecordStatus.NEW_RECORD,
    RecordStatus.FOR_APPROVAL,
}


def can_transition(from_status: RecordStatus, verdict: Verdict) -> bool:
    """Check if a verdict can be applied to a record in the given status."""
    return verdict in VALID_VERDICTS.get(from_status, set())


def get_transition_rule(from_status: RecordStatus, verdict: Verdict) -> Optional[TransitionRule]:
    """Get the transition rule for a status/verdict combination."""
    return TRANSITION_TARGETS.get((from_status, verdict))


def get_target_state(from_status: RecordStatus, verdict: Verdict) -> Optional[RecordStatus]:
    """Get the resulting status, ``None`` for invalid or purging transitions."""
    rule = get_transition_rule(from_status, verdict)
    return rule.to_status if rule else None
