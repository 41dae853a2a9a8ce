"""CheckInRecord model: append-only audit trail of every access decision."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.checkin_service.models.enums import (
    CheckInResult,
    CheckInType,
    enum_values,
)
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column


class CheckInRecord(Base):
    """One evaluated check-in, allowed or blocked."""

    __tablename__ = "check_ins"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    type: Mapped[CheckInType] = mapped_column(
        SAEnum(
            CheckInType,
            name="check_in_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    result: Mapped[CheckInResult] = mapped_column(
        SAEnum(
            CheckInResult,
            name="check_in_result_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    reason_code: Mapped[str] = mapped_column(String, nullable=False)
    member_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("members.id"), nullable=True, index=True
    )
    guest_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    # Rentals service reference (no cross-service FK)
    rental_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), nullable=True, index=True
    )
    checked_in_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    checked_in_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False, index=True
    )
