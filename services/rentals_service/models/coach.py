"""Coach model: an external coach renting studio time."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.rentals_service.models.enums import FeeType, enum_values
from sqlalchemy import Boolean, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column


class Coach(Base):
    """External coach.

    ``credits_balance`` is a write-through cache of the coach_credits ledger
    and is only written by the credit ledger operations.
    """

    __tablename__ = "external_coaches"
    __table_args__ = (CheckConstraint("fee_value >= 0", name="fee_value_non_negative"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    modality: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    fee_type: Mapped[FeeType] = mapped_column(
        SAEnum(
            FeeType,
            name="coach_fee_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=FeeType.FIXED,
        nullable=False,
    )
    fee_value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    credits_balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # Supabase user id of the coach's own login, if they have one
    linked_user_id: Mapped[Optional[str]] = mapped_column(
        String, unique=True, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    def __repr__(self):
        return f"<Coach {self.name} balance={self.credits_balance}>"
