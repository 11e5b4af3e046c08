"""
State machine for a (user, event) registration pair.

    NONE -> ACTIVE -> CANCELLED -> ACTIVE -> CANCELLED ...

NONE is only the state before the pair's row exists; once written the row
cycles between ACTIVE and CANCELLED and never returns to NONE.
All status changes in the ledger MUST go through here.
"""
from typing import Dict, FrozenSet, Optional
from eventhub.models.enums import RegistrationStatus


ALLOWED_TRANSITIONS: Dict[Optional[RegistrationStatus], FrozenSet[RegistrationStatus]] = {
    None: frozenset({RegistrationStatus.ACTIVE}),
    RegistrationStatus.ACTIVE: frozenset({RegistrationStatus.CANCELLED}),
    RegistrationStatus.CANCELLED: frozenset({RegistrationStatus.ACTIVE}),
}


class InvalidTransitionError(Exception):
    """Raised when a registration is asked to move to a state it cannot reach."""

    def __init__(self, current: Optional[RegistrationStatus], target: RegistrationStatus):
        self.current = current
        self.target = target
        current_label = current.value if current is not None else "none"
        super().__init__(f"Cannot move registration from {current_label} to {target.value}")


def transition(
    current: Optional[RegistrationStatus],
    target: RegistrationStatus
) -> RegistrationStatus:
    """Return ``target`` if the move from ``current`` is allowed, else raise."""
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(current, target)
    return target


def activate(current: Optional[RegistrationStatus]) -> RegistrationStatus:
    """Register: NONE or CANCELLED -> ACTIVE."""
    return transition(current, RegistrationStatus.ACTIVE)


def cancel(current: Optional[RegistrationStatus]) -> RegistrationStatus:
    """Cancel: ACTIVE -> CANCELLED."""
    return transition(current, RegistrationStatus.CANCELLED)
