# Appointments Feature - Schemas

from pydantic import BaseModel

from app.storage.models import AppointmentStatus


class UpdateAppointmentStatusRequest(BaseModel):
    """Request schema for moving an appointment through its lifecycle."""
    status: AppointmentStatus
