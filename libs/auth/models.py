from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

STAFF_ROLES = {"staff", "admin", "service_role"}


class AuthUser(BaseModel):
    """
    Represents an authenticated user from Supabase.

    ``role`` is read from ``app_metadata.role`` when present, otherwise from
    the top-level ``role`` claim (``authenticated`` for plain users,
    ``service_role`` for internal callers).
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    role: str = "authenticated"

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def is_admin(self) -> bool:
        return self.role in {"admin", "service_role"}

    @property
    def is_coach(self) -> bool:
        return self.role == "coach"
