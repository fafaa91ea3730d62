"""
Public read-only view, addressed by a group's permanent public token.

Nothing here writes. Participant contact numbers are never exposed.
"""

from flask import current_app
from sqlalchemy import select

from tilawah.core.exceptions import NotFoundError
from tilawah.models import db
from tilawah.models.rotation import Group, Period
from tilawah.services.period_service import get_active_period, period_assignments, status_counts


def get_group_by_token(token: str) -> Group:
    group = db.session.execute(
        select(Group).where(Group.public_token == token)
    ).scalar_one_or_none()
    if group is None:
        raise NotFoundError(resource="Group")
    return group


def _public_group(group: Group) -> dict:
    return {
        "id": group.id,
        "name": group.name,
        "public_token": group.public_token,
        "created_at": group.created_at.isoformat() if group.created_at else None,
    }


def _period_with_counts(period: Period) -> dict:
    counts = status_counts(period.id)
    return {
        **period.to_dict(),
        "participant_count": sum(counts.values()),
        "status_counts": counts,
    }


def get_public_overview(token: str) -> dict:
    """Group plus its active period (with status totals), if one is open."""
    group = get_group_by_token(token)
    active = get_active_period(group.id)
    return {
        "group": _public_group(group),
        "active_period": _period_with_counts(active) if active else None,
    }


def list_public_periods(token: str) -> dict:
    """Locked periods of the group, newest first, capped at PUBLIC_HISTORY_LIMIT."""
    group = get_group_by_token(token)
    limit = current_app.config.get("PUBLIC_HISTORY_LIMIT", 52)
    periods = db.session.execute(
        select(Period)
        .where(Period.group_id == group.id, Period.status == "locked")
        .order_by(Period.period_number.desc())
        .limit(limit)
    ).scalars()
    return {
        "group": _public_group(group),
        "periods": [_period_with_counts(p) for p in periods],
    }


def get_public_period(token: str, period_id: int) -> dict:
    """One period of the token's group with its assignments."""
    group = get_group_by_token(token)
    period = db.session.execute(
        select(Period).where(Period.id == period_id, Period.group_id == group.id)
    ).scalar_one_or_none()
    if period is None:
        raise NotFoundError(resource="Period", resource_id=period_id)

    assignments = []
    for a in period_assignments(period.id):
        assignments.append({
            "id": a.id,
            "slot_number": a.slot_number,
            "status": a.status,
            "missed_streak": a.missed_streak,
            "participant": {
                "id": a.participant.id,
                "name": a.participant.name,
                "is_active": a.participant.is_active,
            },
        })
    return {
        "group": _public_group(group),
        "period": _period_with_counts(period),
        "assignments": assignments,
    }
