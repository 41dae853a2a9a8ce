"""create_checkin_tables

Revision ID: 8d42e5b0c7a1
Revises:
Create Date: 2026-10-19 09:05:00.000000
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "8d42e5b0c7a1"
down_revision = None
branch_labels = None
depends_on = None


MEMBER_STATUS = sa.Enum(
    "lead", "ativo", "bloqueado", "pausado", "cancelado", name="member_status_enum"
)
ACCESS_TYPE = sa.Enum(
    "subscription", "credits", "daily_pass", name="member_access_type_enum"
)
CHECK_IN_TYPE = sa.Enum("member", "guest", name="check_in_type_enum")
CHECK_IN_RESULT = sa.Enum("allowed", "blocked", name="check_in_result_enum")


def upgrade() -> None:
    op.create_table(
        "members",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("qr_code", sa.String(), nullable=False),
        sa.Column("status", MEMBER_STATUS, nullable=False),
        sa.Column("access_type", ACCESS_TYPE, nullable=True),
        sa.Column("access_expires_at", sa.Date(), nullable=True),
        sa.Column("credits_remaining", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_members"),
        sa.UniqueConstraint("qr_code", name="uq_members_qr_code"),
    )
    op.create_index("ix_members_name", "members", ["name"])

    op.create_table(
        "check_ins",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", CHECK_IN_TYPE, nullable=False),
        sa.Column("result", CHECK_IN_RESULT, nullable=False),
        sa.Column("reason_code", sa.String(), nullable=False),
        sa.Column("member_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("guest_name", sa.String(), nullable=True),
        sa.Column("rental_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("checked_in_by", sa.String(), nullable=True),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["member_id"], ["members.id"], name="fk_check_ins_member_id_members"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_check_ins"),
    )
    op.create_index("ix_check_ins_member_id", "check_ins", ["member_id"])
    op.create_index("ix_check_ins_rental_id", "check_ins", ["rental_id"])
    op.create_index("ix_check_ins_checked_in_at", "check_ins", ["checked_in_at"])


def downgrade() -> None:
    op.drop_index("ix_check_ins_checked_in_at", table_name="check_ins")
    op.drop_index("ix_check_ins_rental_id", table_name="check_ins")
    op.drop_index("ix_check_ins_member_id", table_name="check_ins")
    op.drop_table("check_ins")
    op.drop_index("ix_members_name", table_name="members")
    op.drop_table("members")

    bind = op.get_bind()
    CHECK_IN_RESULT.drop(bind, checkfirst=True)
    CHECK_IN_TYPE.drop(bind, checkfirst=True)
    ACCESS_TYPE.drop(bind, checkfirst=True)
    MEMBER_STATUS.drop(bind, checkfirst=True)
