"""Coach request/response schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from services.rentals_service.models.enums import FeeType


class CoachCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    modality: Optional[str] = None
    fee_type: FeeType = FeeType.FIXED
    fee_value: int = Field(
        0, ge=0, description="Cents for FIXED, percent x 100 for PERCENTAGE"
    )
    linked_user_id: Optional[str] = None


class CoachUpdate(BaseModel):
    """Every field optional. credits_balance is deliberately absent."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    modality: Optional[str] = None
    fee_type: Optional[FeeType] = None
    fee_value: Optional[int] = Field(None, ge=0)
    active: Optional[bool] = None
    linked_user_id: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class CoachResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    modality: Optional[str] = None
    fee_type: FeeType
    fee_value: int
    credits_balance: int
    active: bool
    linked_user_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
