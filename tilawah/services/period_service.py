"""
Period service layer: opening, locking and reading weekly periods.

Business logic for:
    - open_period:    create the next period and one assignment per active participant
                      (rotation for returning readers, round-robin or least-occupied
                      slot for newcomers), all in one transaction
    - lock_period:    reclassify pending → missed, freeze the period, report totals
    - list_periods / get_period / build_share_message: read-side helpers

Streak timing: locking only flips pending rows to missed; the streak itself
is incremented when the *next* period is opened (rotate_assignment).
"""

import calendar
import logging
from datetime import datetime, timedelta, timezone

from flask import current_app
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from tilawah.core.exceptions import AlreadyLockedError, NotFoundError, ValidationError
from tilawah.models import db
from tilawah.models.rotation import (
    ASSIGNMENT_STATUSES,
    PERIOD_LENGTH_DAYS,
    SLOT_NUMBERS,
    Assignment,
    Participant,
    Period,
)
from tilawah.services.group_service import get_group_or_404
from tilawah.services.slot_allocation import (
    empty_occupancy,
    pick_least_occupied_slot,
    rotate_assignment,
    round_robin_slot,
)
from tilawah.utils.helpers import parse_date_input
from tilawah.utils.share_text import (
    MAX_CUSTOM_MESSAGE_LENGTH,
    build_period_share_text,
    whatsapp_share_url,
)

logger = logging.getLogger(__name__)

ACTIVE_PERIOD_EXISTS = "There is already an active period. Lock it first before creating a new one."
NO_ACTIVE_PARTICIPANTS = "Add at least one participant before creating a period."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Lookups ──────────────────────────────────────────────────────────────────


def get_period_or_404(period_id: int, *, for_update: bool = False) -> Period:
    stmt = select(Period).where(Period.id == period_id)
    if for_update:
        stmt = stmt.with_for_update()
    period = db.session.execute(stmt).scalar_one_or_none()
    if period is None:
        raise NotFoundError(resource="Period", resource_id=period_id)
    return period


def get_active_period(group_id: int) -> Period | None:
    return db.session.execute(
        select(Period).where(Period.group_id == group_id, Period.status == "active")
    ).scalar_one_or_none()


def status_counts(period_id: int) -> dict:
    """Return ``{completed, pending, missed}`` totals for one period."""
    counts = {status: 0 for status in ("completed", "pending", "missed")}
    rows = db.session.execute(
        select(Assignment.status, func.count(Assignment.id))
        .where(Assignment.period_id == period_id)
        .group_by(Assignment.status)
    ).all()
    for status, count in rows:
        counts[status] = count
    return counts


# ── Period opening ───────────────────────────────────────────────────────────


def _check_start_weekday(start_date) -> None:
    weekday = current_app.config.get("PERIOD_START_WEEKDAY", 6)
    if start_date.weekday() != weekday:
        raise ValidationError(
            f"A period must start on a {calendar.day_name[weekday]}",
            details={"start_date": start_date.isoformat()},
        )


def _previous_assignments(period: Period | None) -> dict[int, Assignment]:
    if period is None:
        return {}
    rows = db.session.execute(
        select(Assignment).where(Assignment.period_id == period.id)
    ).scalars()
    return {a.participant_id: a for a in rows}


def _build_assignment(period: Period, participant: Participant, slot: int, streak: int) -> Assignment:
    assignment = Assignment(
        period_id=period.id,
        participant_id=participant.id,
        slot_number=slot,
        status="pending",
        missed_streak=streak,
    )
    db.session.add(assignment)
    return assignment


def open_period(group_id: int, start_date) -> dict:
    """
    Open the next weekly period for a group.

    Preconditions (each a distinct ValidationError): start_date on the
    configured weekday, no active period, at least one active participant.

    Slot rules per active participant, in creation order:
        - has an assignment in the immediately preceding period → rotate_assignment
        - new, and this is the group's first period           → round-robin by index
        - new, later period → least-occupied slot among rows created so far here

    Returns:
        Period dict plus ``assignment_count``.

    Raises:
        NotFoundError: group does not exist.
        ValidationError: a precondition failed, or a concurrent open won the race.
    """
    start = parse_date_input(start_date)
    _check_start_weekday(start)

    try:
        get_group_or_404(group_id, for_update=True)

        if get_active_period(group_id) is not None:
            raise ValidationError(ACTIVE_PERIOD_EXISTS)

        participants = db.session.execute(
            select(Participant)
            .where(Participant.group_id == group_id, Participant.is_active.is_(True))
            .order_by(Participant.id)
        ).scalars().all()
        if not participants:
            raise ValidationError(NO_ACTIVE_PARTICIPANTS)

        previous = db.session.execute(
            select(Period)
            .where(Period.group_id == group_id)
            .order_by(Period.period_number.desc())
            .limit(1)
        ).scalar_one_or_none()

        period = Period(
            group_id=group_id,
            period_number=(previous.period_number if previous else 0) + 1,
            start_date=start,
            end_date=start + timedelta(days=PERIOD_LENGTH_DAYS - 1),
            status="active",
        )
        db.session.add(period)
        db.session.flush()

        history = _previous_assignments(previous)
        first_period = not history
        occupancy = empty_occupancy()

        for index, participant in enumerate(participants):
            prior = history.get(participant.id)
            if prior is not None:
                slot, streak = rotate_assignment(prior.slot_number, prior.status, prior.missed_streak)
            elif first_period:
                slot, streak = round_robin_slot(index), 0
            else:
                slot, streak = pick_least_occupied_slot(occupancy), 0
            occupancy[slot] += 1
            _build_assignment(period, participant, slot, streak)

        db.session.flush()
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning("Concurrent period open rejected group_id=%s", group_id)
        raise ValidationError(ACTIVE_PERIOD_EXISTS)
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Period opened group_id=%s period_id=%s number=%s assignments=%s",
        group_id, period.id, period.period_number, len(participants),
    )
    return {**period.to_dict(), "assignment_count": len(participants)}


# ── Period locking ───────────────────────────────────────────────────────────


def reclassify_pending_as_missed(period_id: int) -> int:
    """Flip every pending assignment of a period to missed. Streaks are untouched.

    Does not commit; lock_period runs it inside its own transaction.
    Returns the number of rows changed.
    """
    result = db.session.execute(
        update(Assignment)
        .where(Assignment.period_id == period_id, Assignment.status == "pending")
        .values(status="missed", updated_at=_utcnow())
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount


def lock_period(period_id: int) -> dict:
    """
    Close a period: pending → missed, status → locked, locked_at → now.

    Raises:
        NotFoundError: period does not exist.
        AlreadyLockedError: period was locked before; nothing is changed.
    """
    period = get_period_or_404(period_id, for_update=True)
    if period.is_locked:
        db.session.rollback()
        raise AlreadyLockedError(period_id)

    try:
        reclassified = reclassify_pending_as_missed(period.id)
        period.status = "locked"
        period.locked_at = _utcnow()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    counts = status_counts(period.id)
    logger.info(
        "Period locked period_id=%s group_id=%s reclassified_missed=%s",
        period.id, period.group_id, reclassified,
    )
    return {
        "id": period.id,
        "status": period.status,
        "locked_at": period.locked_at.isoformat(),
        "status_counts": counts,
    }


# ── Read side ────────────────────────────────────────────────────────────────


def list_periods(group_id: int, limit: int | None = None) -> list[dict]:
    """Periods of a group, newest first, with participant and status totals."""
    get_group_or_404(group_id)
    stmt = (
        select(Period)
        .where(Period.group_id == group_id)
        .order_by(Period.period_number.desc())
    )
    if limit:
        stmt = stmt.limit(limit)
    periods = db.session.execute(stmt).scalars().all()

    totals = {p.id: {s: 0 for s in ("completed", "pending", "missed")} for p in periods}
    if totals:
        rows = db.session.execute(
            select(Assignment.period_id, Assignment.status, func.count(Assignment.id))
            .where(Assignment.period_id.in_(list(totals)))
            .group_by(Assignment.period_id, Assignment.status)
        ).all()
        for period_id, status, count in rows:
            totals[period_id][status] = count

    return [
        {
            **p.to_dict(),
            "participant_count": sum(totals[p.id].values()),
            "status_counts": totals[p.id],
        }
        for p in periods
    ]


def period_assignments(period_id: int) -> list[Assignment]:
    """Assignments of a period ordered by slot, then participant name."""
    return db.session.execute(
        select(Assignment)
        .join(Participant, Assignment.participant_id == Participant.id)
        .where(Assignment.period_id == period_id)
        .order_by(Assignment.slot_number, Participant.name)
    ).scalars().all()


def get_period(period_id: int) -> dict:
    """Period detail with assignments, per-slot grouping and totals."""
    period = get_period_or_404(period_id)
    assignments = [a.to_dict(include_participant=True) for a in period_assignments(period.id)]

    by_slot = {slot: [] for slot in SLOT_NUMBERS}
    for a in assignments:
        by_slot[a["slot_number"]].append(a)

    stats = {"total": len(assignments)}
    for status in sorted(ASSIGNMENT_STATUSES):
        stats[status] = sum(1 for a in assignments if a["status"] == status)

    return {
        **period.to_dict(),
        "group_name": period.group.name,
        "assignments": assignments,
        "by_slot": by_slot,
        "stats": stats,
    }


def build_share_message(period_id: int, custom_message: str | None = None) -> dict:
    """WhatsApp text for a period's reading list plus a ready-to-open wa.me link."""
    if custom_message is not None:
        if not isinstance(custom_message, str):
            raise ValidationError("custom_message must be a string")
        if len(custom_message) > MAX_CUSTOM_MESSAGE_LENGTH:
            raise ValidationError(
                f"custom_message must be at most {MAX_CUSTOM_MESSAGE_LENGTH} characters"
            )
    period = get_period_or_404(period_id)
    entries = [
        (a.slot_number, a.participant.name, a.status)
        for a in period_assignments(period.id)
    ]
    text = build_period_share_text(
        period.group.name,
        period.period_number,
        period.start_date,
        period.end_date,
        entries,
        custom_message=custom_message,
    )
    return {"text": text, "url": whatsapp_share_url(text)}
