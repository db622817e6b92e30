"""Dental Clinic API - clinic staff and patient portals."""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from app.config import settings
from app.core.logging import logger
from app.core.security import get_password_hash
from app.routers import (
    appointments_router,
    auth_router,
    health_router,
    images_router,
    patient_treatments_router,
    patients_router,
    staff_router,
    steps_router,
    treatments_router,
    uploads_router,
)
from app.storage import Storage, seed_demo_data


def create_app(storage: Optional[Storage] = None) -> FastAPI:
    """
    Build the application.

    Args:
        storage: Repository to serve. When omitted, the lifespan builds a
            fresh one and seeds it if ``SEED_DEMO_DATA`` is set.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        # Startup
        logger.info(f"Starting {settings.APP_NAME}...")

        Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
        logger.info(f"Upload directory: {settings.UPLOAD_DIR}")

        if getattr(app.state, "storage", None) is None:
            app.state.storage = Storage()
            if settings.SEED_DEMO_DATA:
                await seed_demo_data(app.state.storage, get_password_hash)

        app.state.storage.start()
        logger.info("Application started successfully")

        yield

        # Shutdown
        logger.info("Shutting down...")
        await app.state.storage.close()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Dental clinic management API for staff and patient portals",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.storage = storage

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health_router)
    for router in (
        auth_router,
        patients_router,
        staff_router,
        treatments_router,
        patient_treatments_router,
        steps_router,
        appointments_router,
        images_router,
        uploads_router,
    ):
        app.include_router(router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": settings.APP_NAME,
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
    )
