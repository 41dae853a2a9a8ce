"""Rentals service routers."""

from services.rentals_service.routers.areas import router as areas_router
from services.rentals_service.routers.coaches import router as coaches_router
from services.rentals_service.routers.internal import router as internal_router
from services.rentals_service.routers.rentals import router as rentals_router

__all__ = [
    "areas_router",
    "coaches_router",
    "internal_router",
    "rentals_router",
]
