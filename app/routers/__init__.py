"""FastAPI routers."""

from app.routers.health import router as health_router
from app.features.appointments.router import router as appointments_router
from app.features.auth.router import router as auth_router
from app.features.images.router import router as images_router
from app.features.images.router import uploads_router
from app.features.patients.router import router as patients_router
from app.features.staff.router import router as staff_router
from app.features.treatments.router import router as treatments_router
from app.features.treatments.router import patient_treatments_router, steps_router

__all__ = [
    "health_router",
    "auth_router",
    "patients_router",
    "staff_router",
    "treatments_router",
    "patient_treatments_router",
    "steps_router",
    "appointments_router",
    "images_router",
    "uploads_router",
]
