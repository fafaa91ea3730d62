"""rotation_tables

Creates the rotation tables:
  - groups       : named rotation units with a permanent public token
  - participants : readers (soft-deleted via is_active), name unique per group (case-insensitive)
  - periods      : weekly cycles; at most one 'active' per group (partial unique index)
  - assignments  : participant × period rows with slot, status and missed streak

Tables created conditionally (IF NOT EXISTS semantics) to support idempotent
execution against databases that already received these tables via db.create_all()
in a development environment.

Revision ID: 5c1e9a7d2b40
Revises:
Create Date: 2026-10-19 09:12:41.518203
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '5c1e9a7d2b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    # ── Group ─────────────────────────────────────────────────────────────
    if "groups" not in existing:
        op.create_table(
            "groups",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column(
                "public_token", sa.String(length=32), nullable=False,
                comment="Permanent read-only access token for the public view",
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_groups_public_token", "groups", ["public_token"], unique=True)

    # ── Participant ───────────────────────────────────────────────────────
    if "participants" not in existing:
        op.create_table(
            "participants",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("group_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column(
                "contact", sa.String(length=20), nullable=True,
                comment="WhatsApp number, normalised to +<digits>",
            ),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_participants_group_id", "participants", ["group_id"])
        op.create_index(
            "uq_participants_group_name_ci",
            "participants",
            ["group_id", sa.text("lower(name)")],
            unique=True,
        )

    # ── Period ────────────────────────────────────────────────────────────
    if "periods" not in existing:
        op.create_table(
            "periods",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("group_id", sa.Integer(), nullable=False),
            sa.Column(
                "period_number", sa.Integer(), nullable=False,
                comment="Sequential per group: 1, 2, 3 ... never reused",
            ),
            sa.Column("start_date", sa.Date(), nullable=False),
            sa.Column("end_date", sa.Date(), nullable=False),
            sa.Column(
                "status", sa.String(length=10), nullable=False,
                server_default="active", comment="active | locked",
            ),
            sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("group_id", "period_number", name="uq_periods_group_number"),
            sa.CheckConstraint("status IN ('active','locked')", name="ck_periods_status"),
        )
        op.create_index("ix_periods_group_id", "periods", ["group_id"])
        op.create_index(
            "uq_periods_one_active_per_group",
            "periods",
            ["group_id"],
            unique=True,
            sqlite_where=sa.text("status = 'active'"),
            postgresql_where=sa.text("status = 'active'"),
        )

    # ── Assignment ────────────────────────────────────────────────────────
    if "assignments" not in existing:
        op.create_table(
            "assignments",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("participant_id", sa.Integer(), nullable=False),
            sa.Column("period_id", sa.Integer(), nullable=False),
            sa.Column("slot_number", sa.Integer(), nullable=False, comment="Segment 1..30"),
            sa.Column(
                "status", sa.String(length=10), nullable=False,
                server_default="pending", comment="pending | completed | missed",
            ),
            sa.Column("missed_streak", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["participant_id"], ["participants.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["period_id"], ["periods.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("participant_id", "period_id", name="uq_assignments_participant_period"),
            sa.CheckConstraint("slot_number BETWEEN 1 AND 30", name="ck_assignments_slot"),
            sa.CheckConstraint(
                "status IN ('pending','completed','missed')", name="ck_assignments_status",
            ),
            sa.CheckConstraint("missed_streak >= 0", name="ck_assignments_streak"),
        )
        op.create_index("ix_assignments_participant_id", "assignments", ["participant_id"])
        op.create_index("ix_assignments_period_id", "assignments", ["period_id"])


def downgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    for table in ("assignments", "periods", "participants", "groups"):
        if table in existing:
            op.drop_table(table)
