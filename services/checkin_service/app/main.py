"""FastAPI application for the Check-in Service."""

from fastapi import FastAPI
from libs.common.middleware import add_observability_middleware
from services.checkin_service.routers import checkins_router, members_router


def create_app() -> FastAPI:
    """Create and configure the Check-in Service FastAPI app."""
    app = FastAPI(
        title="Studio Check-in Service",
        version="0.1.0",
        description="Front-desk access decisions for members and coach guests.",
    )
    add_observability_middleware(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "checkin"}

    app.include_router(checkins_router)
    app.include_router(members_router)

    return app


app = create_app()
