"""
Tilawah Rotation Tracker
Rotation domain models.

Models:
    - Group:        a community running its own independent rotation (public token access)
    - Participant:  a reader enrolled in one group (soft-deleted via is_active)
    - Period:       one weekly cycle of the rotation for a group
    - Assignment:   participant × period join row carrying slot, status and missed streak

Architecture:
    Group ──1:N──▶ Participant
    Group ──1:N──▶ Period ──1:N──▶ Assignment ◀──N:1── Participant

Lifecycle states:
    Period:      active → locked
    Assignment:  pending ⇄ completed ⇄ missed  (frozen once the period is locked)
"""

from datetime import datetime, timezone

from tilawah.models import db


# ── Constants ────────────────────────────────────────────────────────────────

SLOT_COUNT = 30
SLOT_NUMBERS = range(1, SLOT_COUNT + 1)

PERIOD_LENGTH_DAYS = 7

PERIOD_STATUSES = {"active", "locked"}

ASSIGNMENT_STATUSES = {"pending", "completed", "missed"}

# No status is terminal while the owning period is active.
ASSIGNMENT_TRANSITIONS = {
    "pending":   ["pending", "completed", "missed"],
    "completed": ["pending", "completed", "missed"],
    "missed":    ["pending", "completed", "missed"],
}


def validate_assignment_transition(old_status, new_status):
    """Return True if Assignment status transition is valid."""
    return new_status in ASSIGNMENT_TRANSITIONS.get(old_status, [])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


# ═════════════════════════════════════════════════════════════════════════════
# 1. Group
# ═════════════════════════════════════════════════════════════════════════════


class Group(db.Model):
    """
    A named collection of participants and periods.
    The public_token is generated once at creation and never rotated.
    """

    __tablename__ = "groups"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    public_token = db.Column(
        db.String(32), unique=True, nullable=False, index=True,
        comment="Permanent read-only access token for the public view",
    )
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # ── Relationships ────────────────────────────────────────────────────
    participants = db.relationship(
        "Participant", back_populates="group", lazy="dynamic",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    periods = db.relationship(
        "Period", back_populates="group", lazy="dynamic",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="Period.period_number.desc()",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "public_token": self.public_token,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Group {self.id}: {self.name}>"


# ═════════════════════════════════════════════════════════════════════════════
# 2. Participant
# ═════════════════════════════════════════════════════════════════════════════


class Participant(db.Model):
    """
    A reader enrolled in exactly one group.
    Deactivated participants are skipped by new periods; their assignments stay.
    """

    __tablename__ = "participants"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(
        db.Integer, db.ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    contact = db.Column(
        db.String(20), nullable=True,
        comment="WhatsApp number, normalised to +<digits>",
    )
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # ── Relationships ────────────────────────────────────────────────────
    group = db.relationship("Group", back_populates="participants")
    assignments = db.relationship(
        "Assignment", back_populates="participant", lazy="dynamic",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "group_id": self.group_id,
            "name": self.name,
            "contact": self.contact,
            "is_active": self.is_active,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Participant {self.id}: {self.name}{'' if self.is_active else ' [inactive]'}>"


# Case-insensitive name uniqueness per group
db.Index(
    "uq_participants_group_name_ci",
    Participant.group_id,
    db.func.lower(Participant.name),
    unique=True,
)


# ═════════════════════════════════════════════════════════════════════════════
# 3. Period
# ═════════════════════════════════════════════════════════════════════════════


class Period(db.Model):
    """
    One weekly cycle (start_date .. start_date + 6 days) of a group's rotation.
    At most one active period per group, enforced by a partial unique index.
    """

    __tablename__ = "periods"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(
        db.Integer, db.ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    period_number = db.Column(
        db.Integer, nullable=False,
        comment="Sequential per group: 1, 2, 3 ... never reused",
    )
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(10), nullable=False, default="active", comment="active | locked")
    locked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    # ── Constraints ──────────────────────────────────────────────────────
    __table_args__ = (
        db.UniqueConstraint("group_id", "period_number", name="uq_periods_group_number"),
        db.CheckConstraint("status IN ('active','locked')", name="ck_periods_status"),
        db.Index(
            "uq_periods_one_active_per_group",
            "group_id",
            unique=True,
            sqlite_where=db.text("status = 'active'"),
            postgresql_where=db.text("status = 'active'"),
        ),
    )

    # ── Relationships ────────────────────────────────────────────────────
    group = db.relationship("Group", back_populates="periods")
    assignments = db.relationship(
        "Assignment", back_populates="period", lazy="dynamic",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    @property
    def is_locked(self):
        return self.status == "locked"

    def to_dict(self):
        return {
            "id": self.id,
            "group_id": self.group_id,
            "period_number": self.period_number,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "status": self.status,
            "locked_at": _iso(self.locked_at),
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<Period {self.id}: group={self.group_id} #{self.period_number} [{self.status}]>"


# ═════════════════════════════════════════════════════════════════════════════
# 4. Assignment
# ═════════════════════════════════════════════════════════════════════════════


class Assignment(db.Model):
    """
    Links one participant to one slot within one period.
    missed_streak counts consecutive periods resolved as missed; completion resets it.
    """

    __tablename__ = "assignments"

    id = db.Column(db.Integer, primary_key=True)
    participant_id = db.Column(
        db.Integer, db.ForeignKey("participants.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    period_id = db.Column(
        db.Integer, db.ForeignKey("periods.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    slot_number = db.Column(db.Integer, nullable=False, comment="Segment 1..30")
    status = db.Column(
        db.String(10), nullable=False, default="pending",
        comment="pending | completed | missed",
    )
    missed_streak = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # ── Constraints ──────────────────────────────────────────────────────
    __table_args__ = (
        db.UniqueConstraint("participant_id", "period_id", name="uq_assignments_participant_period"),
        db.CheckConstraint("slot_number BETWEEN 1 AND 30", name="ck_assignments_slot"),
        db.CheckConstraint(
            "status IN ('pending','completed','missed')",
            name="ck_assignments_status",
        ),
        db.CheckConstraint("missed_streak >= 0", name="ck_assignments_streak"),
    )

    # ── Relationships ────────────────────────────────────────────────────
    participant = db.relationship("Participant", back_populates="assignments")
    period = db.relationship("Period", back_populates="assignments")

    def to_dict(self, include_participant=False):
        result = {
            "id": self.id,
            "participant_id": self.participant_id,
            "period_id": self.period_id,
            "slot_number": self.slot_number,
            "status": self.status,
            "missed_streak": self.missed_streak,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if include_participant:
            result["participant"] = {
                "id": self.participant.id,
                "name": self.participant.name,
                "contact": self.participant.contact,
                "is_active": self.participant.is_active,
            }
        return result

    def __repr__(self):
        return f"<Assignment {self.id}: p={self.participant_id} slot={self.slot_number} [{self.status}]>"
