"""CoachCreditEntry model: append-only coach credit ledger."""

import uuid
from datetime import date, datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.rentals_service.models.enums import CreditReason, enum_values
from sqlalchemy import CheckConstraint, Date, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column


class CoachCreditEntry(Base):
    """Immutable ledger of credit movements. Source of truth for balances.

    Balance is the sum of ``amount`` over entries that have no expiry or
    expire today or later.
    """

    __tablename__ = "coach_credits"
    __table_args__ = (
        CheckConstraint("amount <> 0", name="amount_non_zero"),
        CheckConstraint(
            "reason <> 'used' OR (amount < 0 AND expires_at IS NULL)",
            name="used_is_debit",
        ),
        CheckConstraint(
            "reason <> 'cancellation' OR amount > 0",
            name="cancellation_is_credit",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    coach_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("external_coaches.id"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[CreditReason] = mapped_column(
        SAEnum(
            CreditReason,
            name="coach_credit_reason_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    rental_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("rentals.id"), nullable=True, index=True
    )
    expires_at: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    def __repr__(self):
        return f"<CoachCreditEntry {self.reason.value} {self.amount:+d}>"
