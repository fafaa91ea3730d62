"""
Progress service layer: status and slot changes on a single assignment.

Any status may move to any other while the owning period is active.
Once the period is locked the assignment is frozen: every change is
rejected and nothing is written.
"""

import logging

from tilawah.core.exceptions import NotFoundError, ValidationError
from tilawah.models import db
from tilawah.models.rotation import (
    ASSIGNMENT_STATUSES,
    SLOT_COUNT,
    Assignment,
    validate_assignment_transition,
)
from tilawah.services.period_service import get_period_or_404

logger = logging.getLogger(__name__)


def get_assignment_or_404(assignment_id: int) -> Assignment:
    assignment = db.session.get(Assignment, assignment_id)
    if assignment is None:
        raise NotFoundError(resource="Assignment", resource_id=assignment_id)
    return assignment


def _lock_open_period(assignment: Assignment, action: str) -> None:
    """Take the same period row lock as lock_period, then refuse locked periods.

    Holding the lock until commit serializes this change with a concurrent lock.
    """
    period = get_period_or_404(assignment.period_id, for_update=True)
    if period.is_locked:
        raise ValidationError(f"Cannot update {action} for a locked period")


def set_status(assignment_id: int, new_status) -> dict:
    """
    Set an assignment's status.

    Marking it completed clears missed_streak immediately rather than at the
    next period open.
    """
    if not isinstance(new_status, str) or new_status not in ASSIGNMENT_STATUSES:
        raise ValidationError(
            f"Invalid status. Must be one of: {', '.join(sorted(ASSIGNMENT_STATUSES))}",
            details={"status": new_status},
        )
    assignment = get_assignment_or_404(assignment_id)

    try:
        _lock_open_period(assignment, "progress")
        old = assignment.status
        if not validate_assignment_transition(old, new_status):
            raise ValidationError(f"Invalid transition: {old} → {new_status}")

        assignment.status = new_status
        if new_status == "completed":
            assignment.missed_streak = 0
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Assignment status set assignment_id=%s %s → %s", assignment_id, old, new_status)
    return assignment.to_dict()


def set_slot(assignment_id: int, new_slot) -> dict:
    """Manual coordinator override of the slot; no balancing check."""
    if isinstance(new_slot, bool) or not isinstance(new_slot, int) or not 1 <= new_slot <= SLOT_COUNT:
        raise ValidationError(
            f"Slot number must be an integer between 1 and {SLOT_COUNT}",
            details={"slot_number": new_slot},
        )
    assignment = get_assignment_or_404(assignment_id)

    try:
        _lock_open_period(assignment, "slot")
        old = assignment.slot_number
        assignment.slot_number = new_slot
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Assignment slot set assignment_id=%s %s → %s", assignment_id, old, new_slot)
    return assignment.to_dict()
