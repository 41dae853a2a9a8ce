"""Check-in service routers."""

from services.checkin_service.routers.checkins import router as checkins_router
from services.checkin_service.routers.members import router as members_router

__all__ = [
    "checkins_router",
    "members_router",
]
