"""Rental model: a coach's booking of an area for a time slot."""

import uuid
from datetime import date, datetime, time
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.rentals_service.models.enums import RentalStatus, enum_values
from sqlalchemy import Boolean, CheckConstraint, Date, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, String, Time
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column


class Rental(Base):
    """Booking of an area on a studio-local date between two wall-clock times.

    Non-cancelled rentals of the same area and date never overlap; the
    PostgreSQL migration adds the ``ex_rentals_no_overlap`` exclusion
    constraint on top of the application-level check.
    """

    __tablename__ = "rentals"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="end_after_start"),
        CheckConstraint("fee_charged_cents >= 0", name="fee_non_negative"),
        CheckConstraint("guest_count >= 0", name="guest_count_non_negative"),
        Index("ix_rentals_area_date", "area_id", "rental_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    area_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("areas.id"), nullable=False
    )
    coach_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("external_coaches.id"), nullable=False, index=True
    )
    rental_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    status: Mapped[RentalStatus] = mapped_column(
        SAEnum(
            RentalStatus,
            name="rental_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=RentalStatus.SCHEDULED,
        nullable=False,
    )
    fee_charged_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    guest_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Series members share series_id but are otherwise independent
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    series_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), nullable=True, index=True
    )
    credit_generated: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    created_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cancelled_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    @property
    def is_terminal(self) -> bool:
        return self.status != RentalStatus.SCHEDULED

    def __repr__(self):
        return (
            f"<Rental {self.id} {self.rental_date} "
            f"{self.start_time}-{self.end_time} {self.status.value}>"
        )
