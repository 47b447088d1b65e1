"""
License lifecycle state machine.

Pure precondition checks for administrative transitions. The state
machine never writes to the ledger and never stamps timestamps; the
ledger stamps issue and expiry dates itself on approval.

Transitions:
    Pending  --approve--> Approved
    Pending  --reject-->  Rejected
    Approved --revoke-->  Revoked

Rejected and Revoked are terminal.
"""

from enum import Enum

from .errors import InvalidTransitionError
from .models import LicenseRecord, LicenseStatus


class LicenseAction(Enum):
    """Administrative actions on a license record."""
    APPROVE = "approve"
    REJECT = "reject"
    REVOKE = "revoke"


TRANSITIONS: dict[LicenseAction, tuple[LicenseStatus, LicenseStatus]] = {
    LicenseAction.APPROVE: (LicenseStatus.PENDING, LicenseStatus.APPROVED),
    LicenseAction.REJECT: (LicenseStatus.PENDING, LicenseStatus.REJECTED),
    LicenseAction.REVOKE: (LicenseStatus.APPROVED, LicenseStatus.REVOKED),
}


def allowed_actions(status: LicenseStatus) -> list[LicenseAction]:
    """Actions that are legal from the given state, in declaration order."""
    return [
        action
        for action, (source, _) in TRANSITIONS.items()
        if source is status
    ]


def can_transition(status: LicenseStatus, action: LicenseAction) -> bool:
    source, _ = TRANSITIONS[action]
    return status is source


def next_status(status: LicenseStatus, action: LicenseAction) -> LicenseStatus | None:
    """Target state of `action` from `status`, or None if illegal."""
    source, target = TRANSITIONS[action]
    return target if status is source else None


def check_transition(record: LicenseRecord, action: LicenseAction) -> LicenseStatus:
    """
    Validate that `action` may be applied to `record`.

    Returns:
        The status the record will have once the ledger applies the action

    Raises:
        InvalidTransitionError: If the record is not in the action's source state
    """
    target = next_status(record.status, action)
    if target is None:
        raise InvalidTransitionError(record.id, record.status.value, action.value)
    return target
