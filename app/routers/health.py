"""Health check endpoints."""

from fastapi import APIRouter, Request

from app.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness check: the repository has been built by the lifespan."""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        return {"status": "starting"}
    return {
        "status": "ready",
        "active_sessions": await storage.session_store.length(),
    }
