# Appointments Feature - Router

from datetime import date
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from app.dependencies import get_storage
from app.features.appointments.schemas import UpdateAppointmentStatusRequest
from app.features.appointments.service import AppointmentService
from app.features.auth.dependencies import get_current_user, require_roles
from app.storage import Storage
from app.storage.filters import AppointmentFilter
from app.storage.models import (
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    User,
    UserRole,
)


router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.get("", response_model=List[Appointment])
async def list_appointments(
    patient_id: Optional[int] = None,
    staff_id: Optional[int] = None,
    appointment_status: Optional[AppointmentStatus] = Query(None, alias="status"),
    day: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """
    List appointments.

    Patients get only their own appointments. Staff and admins can filter:

    - **patient_id**, **staff_id**, **status**: exact match
    - **date**: appointments on that calendar day (YYYY-MM-DD)
    """
    filters = AppointmentFilter(
        patient_id=patient_id,
        staff_id=staff_id,
        status=appointment_status,
        date=day,
    )
    return await AppointmentService.list_for_user(storage, current_user, filters)


@router.post("", response_model=Appointment, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    request: AppointmentCreate,
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.STAFF)),
    storage: Storage = Depends(get_storage),
):
    """Schedule an appointment. Requires staff/admin authentication."""
    return await AppointmentService.create_appointment(storage, request)


@router.patch("/{appointment_id}/status", response_model=Appointment)
async def update_appointment_status(
    appointment_id: int,
    request: UpdateAppointmentStatusRequest,
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.STAFF)),
    storage: Storage = Depends(get_storage),
):
    """
    Change the status of an appointment.

    Allowed moves: scheduled → confirmed → completed | cancelled, or scheduled → cancelled.
    """
    return await AppointmentService.update_status(storage, appointment_id, request.status)
