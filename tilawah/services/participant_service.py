"""
Participant service layer.

Business logic for:
    - enroll / enroll_bulk:  create active participants; when the group has an
                             active period, give each one a pending assignment on
                             the least-occupied slot of that period
    - list / get / update / deactivate (soft delete, assignments are kept)

Names are unique per group, compared case-insensitively, including
deactivated participants.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from tilawah.core.exceptions import NotFoundError, ValidationError
from tilawah.models import db
from tilawah.models.rotation import Assignment, Participant, Period
from tilawah.services.group_service import get_group_or_404
from tilawah.services.period_service import get_active_period
from tilawah.services.slot_allocation import occupancy_from_slots, pick_least_occupied_slot
from tilawah.utils.helpers import clean_name, normalize_contact

logger = logging.getLogger(__name__)

MAX_BULK_PARTICIPANTS = 100


def get_participant_or_404(participant_id: int) -> Participant:
    participant = db.session.get(Participant, participant_id)
    if participant is None:
        raise NotFoundError(resource="Participant", resource_id=participant_id)
    return participant


def _name_taken(group_id: int, name: str, *, exclude_id: int | None = None) -> bool:
    stmt = select(Participant.id).where(
        Participant.group_id == group_id,
        func.lower(Participant.name) == func.lower(name),
    )
    if exclude_id is not None:
        stmt = stmt.where(Participant.id != exclude_id)
    return db.session.execute(stmt.limit(1)).first() is not None


def _duplicate_name_error(name: str) -> ValidationError:
    return ValidationError(
        f'A participant named "{name}" already exists in this group',
        details={"name": name},
    )


def _clean_item(item) -> tuple[str, str | None]:
    if not isinstance(item, dict):
        raise ValidationError("Each participant must be an object with a name")
    return (
        clean_name(item.get("name"), label="Participant name"),
        normalize_contact(item.get("contact")),
    )


def _period_occupancy(period: Period) -> dict[int, int]:
    """Fresh slot-occupancy snapshot for a period, read in the caller's transaction."""
    slots = db.session.execute(
        select(Assignment.slot_number).where(Assignment.period_id == period.id)
    ).scalars()
    return occupancy_from_slots(slots)


def _enroll_many(group_id: int, items: list[tuple[str, str | None]]) -> list[tuple[Participant, Assignment | None]]:
    """Create participants (and late-joiner assignments) in one transaction."""
    try:
        get_group_or_404(group_id, for_update=True)

        for name, _contact in items:
            if _name_taken(group_id, name):
                raise _duplicate_name_error(name)

        period = get_active_period(group_id)
        occupancy = _period_occupancy(period) if period is not None else None

        created = []
        for name, contact in items:
            participant = Participant(group_id=group_id, name=name, contact=contact, is_active=True)
            db.session.add(participant)
            db.session.flush()

            assignment = None
            if period is not None:
                slot = pick_least_occupied_slot(occupancy)
                occupancy[slot] += 1
                assignment = Assignment(
                    period_id=period.id,
                    participant_id=participant.id,
                    slot_number=slot,
                    status="pending",
                    missed_streak=0,
                )
                db.session.add(assignment)
            created.append((participant, assignment))

        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError("A participant with one of these names already exists in this group")
    except Exception:
        db.session.rollback()
        raise
    return created


def _enrollment_dict(participant: Participant, assignment: Assignment | None) -> dict:
    return {
        "participant": participant.to_dict(),
        "assignment": assignment.to_dict() if assignment is not None else None,
    }


# ── Enrolment ────────────────────────────────────────────────────────────────


def enroll(group_id: int, name, contact=None) -> dict:
    """
    Add one participant to a group.

    If the group has an active period the participant is placed on the
    least-occupied slot of that period right away.

    Returns:
        {"participant": {...}, "assignment": {...} | None}
    """
    item = _clean_item({"name": name, "contact": contact})
    (participant, assignment), = _enroll_many(group_id, [item])
    logger.info(
        "Participant enrolled group_id=%s participant_id=%s slot=%s",
        group_id, participant.id, assignment.slot_number if assignment else None,
    )
    return _enrollment_dict(participant, assignment)


def enroll_bulk(group_id: int, items) -> dict:
    """
    Add a batch of participants in one transaction.

    Each chosen slot is folded into the occupancy snapshot before the next
    participant is placed, so a batch spreads across slots.

    Returns:
        {"participants": [{"participant": ..., "assignment": ...}, ...], "count": n}
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("Participants array is required and must not be empty")
    if len(items) > MAX_BULK_PARTICIPANTS:
        raise ValidationError(f"At most {MAX_BULK_PARTICIPANTS} participants per batch")

    cleaned = [_clean_item(item) for item in items]
    seen = set()
    for name, _contact in cleaned:
        key = name.casefold()
        if key in seen:
            raise ValidationError(f'Name "{name}" appears more than once in this batch', details={"name": name})
        seen.add(key)

    created = _enroll_many(group_id, cleaned)
    logger.info("Participants enrolled in bulk group_id=%s count=%s", group_id, len(created))
    return {
        "participants": [_enrollment_dict(p, a) for p, a in created],
        "count": len(created),
    }


# ── CRUD ─────────────────────────────────────────────────────────────────────


def list_participants(group_id: int, include_inactive: bool = False) -> list[dict]:
    get_group_or_404(group_id)
    stmt = select(Participant).where(Participant.group_id == group_id)
    if not include_inactive:
        stmt = stmt.where(Participant.is_active.is_(True))
    stmt = stmt.order_by(Participant.is_active.desc(), Participant.name)
    return [p.to_dict() for p in db.session.execute(stmt).scalars()]


def get_participant(participant_id: int) -> dict:
    return get_participant_or_404(participant_id).to_dict()


def update_participant(participant_id: int, data: dict) -> dict:
    """Update name, contact and/or is_active. Only supplied keys change."""
    participant = get_participant_or_404(participant_id)
    changes = {}

    if "name" in data:
        name = clean_name(data["name"], label="Participant name")
        if _name_taken(participant.group_id, name, exclude_id=participant.id):
            raise _duplicate_name_error(name)
        changes["name"] = name

    if "contact" in data:
        changes["contact"] = normalize_contact(data["contact"] or None)

    if "is_active" in data:
        if not isinstance(data["is_active"], bool):
            raise ValidationError("is_active must be a boolean", details={"is_active": data["is_active"]})
        changes["is_active"] = data["is_active"]

    for field, value in changes.items():
        setattr(participant, field, value)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise _duplicate_name_error(data.get("name", participant.name))
    return participant.to_dict()


def deactivate_participant(participant_id: int) -> dict:
    """Soft delete: the participant is skipped by future periods, history stays."""
    participant = get_participant_or_404(participant_id)
    participant.is_active = False
    db.session.commit()
    logger.info("Participant deactivated participant_id=%s", participant_id)
    return {"deactivated": True, "participant": participant.to_dict()}
