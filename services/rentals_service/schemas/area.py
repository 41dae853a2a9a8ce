"""Area request/response schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AreaCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    capacity: int = Field(..., ge=1)
    is_exclusive: bool = False


class AreaUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    capacity: Optional[int] = Field(None, ge=1)
    is_exclusive: Optional[bool] = None
    active: Optional[bool] = None


class AreaResponse(BaseModel):
    id: uuid.UUID
    name: str
    capacity: int
    is_exclusive: bool
    active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
