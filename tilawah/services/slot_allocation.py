"""
Slot allocation: pure functions shared by period opening and enrolment.

    - pick_least_occupied_slot:  least-loaded slot for a participant with no history
    - rotate_assignment:         next slot + streak from the previous period's outcome
    - round_robin_slot:          first-period distribution by traversal index

No database access here. Callers build the occupancy snapshot inside their
own transaction and pass it in explicitly.
"""

from collections.abc import Iterable, Mapping

from tilawah.core.exceptions import ValidationError
from tilawah.models.rotation import ASSIGNMENT_STATUSES, SLOT_COUNT, SLOT_NUMBERS


def empty_occupancy() -> dict[int, int]:
    """Return a snapshot with every slot present and unoccupied."""
    return {slot: 0 for slot in SLOT_NUMBERS}


def occupancy_from_slots(slots: Iterable[int]) -> dict[int, int]:
    """Fold a sequence of assigned slot numbers into a full 1..30 snapshot."""
    occupancy = empty_occupancy()
    for slot in slots:
        _require_slot(slot)
        occupancy[slot] += 1
    return occupancy


def pick_least_occupied_slot(occupancy: Mapping[int, int]) -> int:
    """Return the slot with the fewest occupants; ties go to the lowest slot.

    Slots missing from ``occupancy`` count as empty.
    """
    best_slot = 1
    best_count = None
    for slot in SLOT_NUMBERS:
        count = occupancy.get(slot, 0)
        if best_count is None or count < best_count:
            best_slot, best_count = slot, count
    return best_slot


def round_robin_slot(index: int) -> int:
    """Slot for the index-th participant (0-based) of a group's first period."""
    return index % SLOT_COUNT + 1


def rotate_assignment(previous_slot: int, previous_status: str, previous_streak: int) -> tuple[int, int]:
    """
    Compute (next_slot, next_streak) from the previous period's assignment.

    A missed segment is retried: same slot, streak + 1. Anything else
    (completed, or a pending row left over) advances one slot, wrapping
    30 → 1, and clears the streak.
    """
    _require_slot(previous_slot)
    if previous_status not in ASSIGNMENT_STATUSES:
        raise ValidationError(f"Unknown assignment status: {previous_status!r}")

    if previous_status == "missed":
        return previous_slot, (previous_streak or 0) + 1
    next_slot = 1 if previous_slot == SLOT_COUNT else previous_slot + 1
    return next_slot, 0


def _require_slot(slot: int) -> None:
    if isinstance(slot, bool) or not isinstance(slot, int) or not 1 <= slot <= SLOT_COUNT:
        raise ValidationError(
            f"Slot number must be between 1 and {SLOT_COUNT}",
            details={"slot_number": slot},
        )
