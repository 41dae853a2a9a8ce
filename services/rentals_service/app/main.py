"""FastAPI application for the Rentals Service."""

from fastapi import FastAPI
from libs.common.middleware import add_observability_middleware
from services.rentals_service.routers import (
    areas_router,
    coaches_router,
    internal_router,
    rentals_router,
)


def create_app() -> FastAPI:
    """Create and configure the Rentals Service FastAPI app."""
    app = FastAPI(
        title="Studio Rentals Service",
        version="0.1.0",
        description="Area rentals for external coaches, with cancellation credits.",
    )
    add_observability_middleware(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "rentals"}

    app.include_router(areas_router)
    app.include_router(coaches_router)
    app.include_router(rentals_router)

    # Internal service-to-service routes (service_role only)
    app.include_router(internal_router)

    return app


app = create_app()
