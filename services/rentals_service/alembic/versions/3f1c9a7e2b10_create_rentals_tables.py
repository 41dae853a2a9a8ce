"""create_rentals_tables

Revision ID: 3f1c9a7e2b10
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "3f1c9a7e2b10"
down_revision = None
branch_labels = None
depends_on = None


RENTAL_STATUS = sa.Enum(
    "scheduled", "completed", "cancelled", name="rental_status_enum"
)
FEE_TYPE = sa.Enum("fixed", "percentage", name="coach_fee_type_enum")
CREDIT_REASON = sa.Enum(
    "cancellation", "adjustment", "used", name="coach_credit_reason_enum"
)


def upgrade() -> None:
    op.create_table(
        "areas",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("is_exclusive", sa.Boolean(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("capacity >= 1", name="ck_areas_capacity_positive"),
        sa.PrimaryKeyConstraint("id", name="pk_areas"),
        sa.UniqueConstraint("name", name="uq_areas_name"),
    )

    op.create_table(
        "external_coaches",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("modality", sa.String(), nullable=True),
        sa.Column("fee_type", FEE_TYPE, nullable=False),
        sa.Column("fee_value", sa.Integer(), nullable=False),
        sa.Column("credits_balance", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("linked_user_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "fee_value >= 0", name="ck_external_coaches_fee_value_non_negative"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_external_coaches"),
        sa.UniqueConstraint(
            "linked_user_id", name="uq_external_coaches_linked_user_id"
        ),
    )

    op.create_table(
        "rentals",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("area_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("coach_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("rental_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("status", RENTAL_STATUS, nullable=False),
        sa.Column("fee_charged_cents", sa.Integer(), nullable=False),
        sa.Column("guest_count", sa.Integer(), nullable=False),
        sa.Column("is_recurring", sa.Boolean(), nullable=False),
        sa.Column("series_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("credit_generated", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by", sa.String(), nullable=True),
        sa.CheckConstraint("end_time > start_time", name="ck_rentals_end_after_start"),
        sa.CheckConstraint("fee_charged_cents >= 0", name="ck_rentals_fee_non_negative"),
        sa.CheckConstraint(
            "guest_count >= 0", name="ck_rentals_guest_count_non_negative"
        ),
        sa.ForeignKeyConstraint(
            ["area_id"], ["areas.id"], name="fk_rentals_area_id_areas"
        ),
        sa.ForeignKeyConstraint(
            ["coach_id"],
            ["external_coaches.id"],
            name="fk_rentals_coach_id_external_coaches",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_rentals"),
    )
    op.create_index("ix_rentals_area_date", "rentals", ["area_id", "rental_date"])
    op.create_index("ix_rentals_coach_id", "rentals", ["coach_id"])
    op.create_index("ix_rentals_rental_date", "rentals", ["rental_date"])
    op.create_index("ix_rentals_series_id", "rentals", ["series_id"])

    op.create_table(
        "coach_credits",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("coach_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("reason", CREDIT_REASON, nullable=False),
        sa.Column("rental_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("expires_at", sa.Date(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount <> 0", name="ck_coach_credits_amount_non_zero"),
        sa.CheckConstraint(
            "reason <> 'used' OR (amount < 0 AND expires_at IS NULL)",
            name="ck_coach_credits_used_is_debit",
        ),
        sa.CheckConstraint(
            "reason <> 'cancellation' OR amount > 0",
            name="ck_coach_credits_cancellation_is_credit",
        ),
        sa.ForeignKeyConstraint(
            ["coach_id"],
            ["external_coaches.id"],
            name="fk_coach_credits_coach_id_external_coaches",
        ),
        sa.ForeignKeyConstraint(
            ["rental_id"], ["rentals.id"], name="fk_coach_credits_rental_id_rentals"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_coach_credits"),
    )
    op.create_index("ix_coach_credits_coach_id", "coach_credits", ["coach_id"])
    op.create_index("ix_coach_credits_rental_id", "coach_credits", ["rental_id"])

    if op.get_bind().dialect.name == "postgresql":
        # Storage-level guard: no two live rentals overlap in one area.
        # tsrange defaults to [start, end), so back-to-back slots are allowed.
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE rentals
            ADD CONSTRAINT ex_rentals_no_overlap
            EXCLUDE USING gist (
                area_id WITH =,
                tsrange(rental_date + start_time, rental_date + end_time) WITH &&
            )
            WHERE (status <> 'cancelled')
            """
        )


def downgrade() -> None:
    if op.get_bind().dialect.name == "postgresql":
        op.execute("ALTER TABLE rentals DROP CONSTRAINT IF EXISTS ex_rentals_no_overlap")

    op.drop_index("ix_coach_credits_rental_id", table_name="coach_credits")
    op.drop_index("ix_coach_credits_coach_id", table_name="coach_credits")
    op.drop_table("coach_credits")

    op.drop_index("ix_rentals_series_id", table_name="rentals")
    op.drop_index("ix_rentals_rental_date", table_name="rentals")
    op.drop_index("ix_rentals_coach_id", table_name="rentals")
    op.drop_index("ix_rentals_area_date", table_name="rentals")
    op.drop_table("rentals")
    op.drop_table("external_coaches")
    op.drop_table("areas")

    bind = op.get_bind()
    CREDIT_REASON.drop(bind, checkfirst=True)
    RENTAL_STATUS.drop(bind, checkfirst=True)
    FEE_TYPE.drop(bind, checkfirst=True)
