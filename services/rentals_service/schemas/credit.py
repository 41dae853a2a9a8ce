"""Coach credit ledger schemas."""

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.rentals_service.models.enums import CreditReason


class CreditEntryResponse(BaseModel):
    id: uuid.UUID
    coach_id: uuid.UUID
    amount: int
    reason: CreditReason
    rental_id: Optional[uuid.UUID] = None
    expires_at: Optional[date] = None
    note: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CoachCreditsResponse(BaseModel):
    coach_id: uuid.UUID
    balance: int
    cached_balance: int
    entries: list[CreditEntryResponse]


class AdjustCreditRequest(BaseModel):
    delta: int = Field(..., description="Positive to add credits, negative to remove")
    note: Optional[str] = Field(None, max_length=500)


class ReconcileResponse(BaseModel):
    coach_id: uuid.UUID
    balance: int
    drift: int


class ReconcileAllResponse(BaseModel):
    drifted: dict[str, int]
