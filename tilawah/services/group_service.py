"""
Group service layer.

Business logic for creating, reading, renaming and deleting groups.
Deleting a group cascades to its participants, periods and assignments.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from tilawah.core.exceptions import NotFoundError, ValidationError
from tilawah.models import db
from tilawah.models.rotation import Group, Participant, Period
from tilawah.utils.helpers import clean_name
from tilawah.utils.tokens import generate_public_token

logger = logging.getLogger(__name__)

GROUP_NAME_MIN_LENGTH = 3
TOKEN_ATTEMPTS = 5
TOKEN_EXHAUSTED = "Could not generate a unique public token, please retry"


def get_group_or_404(group_id: int, *, for_update: bool = False) -> Group:
    """Load a group or raise NotFoundError.

    ``for_update`` takes a row lock (PostgreSQL) so that concurrent
    period opens / enrolments on the same group serialize.
    """
    stmt = select(Group).where(Group.id == group_id)
    if for_update:
        stmt = stmt.with_for_update()
    group = db.session.execute(stmt).scalar_one_or_none()
    if group is None:
        raise NotFoundError(resource="Group", resource_id=group_id)
    return group


def _unique_public_token() -> str:
    """Return a token no group holds yet; give up after TOKEN_ATTEMPTS draws."""
    for _ in range(TOKEN_ATTEMPTS):
        token = generate_public_token()
        taken = db.session.execute(
            select(Group.id).where(Group.public_token == token)
        ).first()
        if not taken:
            return token
    logger.error("Public token generation exhausted after %s attempts", TOKEN_ATTEMPTS)
    raise ValidationError(TOKEN_EXHAUSTED)


def _group_summary(group: Group) -> dict:
    participant_count = db.session.execute(
        select(func.count(Participant.id)).where(
            Participant.group_id == group.id, Participant.is_active.is_(True),
        )
    ).scalar() or 0
    period_count = db.session.execute(
        select(func.count(Period.id)).where(Period.group_id == group.id)
    ).scalar() or 0
    active = db.session.execute(
        select(Period.id).where(Period.group_id == group.id, Period.status == "active")
    ).first()
    return {
        **group.to_dict(),
        "participant_count": participant_count,
        "period_count": period_count,
        "has_active_period": active is not None,
    }


def create_group(name) -> dict:
    """Create a group with a fresh public token."""
    name = clean_name(name, label="Group name", min_length=GROUP_NAME_MIN_LENGTH)
    try:
        group = Group(name=name, public_token=_unique_public_token())
        db.session.add(group)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError(TOKEN_EXHAUSTED)
    except Exception:
        db.session.rollback()
        raise
    logger.info("Group created id=%s", group.id)
    return group.to_dict()


def list_groups() -> list[dict]:
    groups = db.session.execute(select(Group).order_by(Group.created_at.desc(), Group.id.desc())).scalars()
    return [_group_summary(g) for g in groups]


def get_group(group_id: int) -> dict:
    """Group detail with counts and the most recent period (if any)."""
    group = get_group_or_404(group_id)
    latest = group.periods.first()
    result = _group_summary(group)
    result["latest_period"] = latest.to_dict() if latest else None
    return result


def update_group(group_id: int, data: dict) -> dict:
    group = get_group_or_404(group_id)
    if "name" in data:
        group.name = clean_name(data["name"], label="Group name", min_length=GROUP_NAME_MIN_LENGTH)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("Group updated id=%s", group.id)
    return group.to_dict()


def delete_group(group_id: int) -> None:
    """Delete a group; the database cascades to everything it owns."""
    group = get_group_or_404(group_id)
    try:
        db.session.delete(group)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("Group deleted id=%s", group_id)
