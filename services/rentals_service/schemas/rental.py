"""Rental request/response schemas."""

import uuid
from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.rentals_service.models.enums import RentalStatus


class RentalCreate(BaseModel):
    coach_id: uuid.UUID
    area_id: uuid.UUID
    rental_date: date
    start_time: time
    end_time: time
    fee_charged_cents: Optional[int] = Field(
        None, ge=0, description="Defaults to the coach's fee"
    )
    guest_count: int = Field(0, ge=0)


class RentalSeriesCreate(BaseModel):
    coach_id: uuid.UUID
    area_id: uuid.UUID
    first_date: date
    start_time: time
    end_time: time
    occurrences: int = Field(..., ge=1, le=52)
    interval_days: int = Field(7, ge=1)
    fee_charged_cents: Optional[int] = Field(None, ge=0)


class RentalReschedule(BaseModel):
    rental_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None


class SettleFeeRequest(BaseModel):
    base_price_cents: int = Field(..., ge=0)


class RentalResponse(BaseModel):
    id: uuid.UUID
    area_id: uuid.UUID
    coach_id: uuid.UUID
    rental_date: date
    start_time: time
    end_time: time
    status: RentalStatus
    fee_charged_cents: int
    guest_count: int
    is_recurring: bool
    series_id: Optional[uuid.UUID] = None
    credit_generated: bool
    created_at: datetime
    created_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SeriesFailure(BaseModel):
    rental_date: date
    code: str
    message: str
    conflicting_rental_ids: list[uuid.UUID] = []


class SeriesBookingResponse(BaseModel):
    series_id: uuid.UUID
    created: list[RentalResponse]
    failed: list[SeriesFailure]
    is_partial: bool


class ActiveExclusiveRental(BaseModel):
    rental_id: uuid.UUID
    area_id: uuid.UUID
    area_name: str
    coach_id: uuid.UUID
    coach_name: str
    start_time: time
    end_time: time


class CompleteElapsedResponse(BaseModel):
    completed: int
