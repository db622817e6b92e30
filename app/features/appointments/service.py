# Appointments Feature - Service

from typing import List
from app.core.logging import logger
from app.features.patients.service import PatientService
from app.shared.exceptions import NotFoundException, http_error_from_storage
from app.storage import InvalidStatusTransition, Storage
from app.storage.filters import AppointmentFilter
from app.storage.models import (
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    User,
    UserRole,
)


class AppointmentService:
    """Service class for appointment operations."""

    @staticmethod
    async def list_for_user(
        storage: Storage,
        user: User,
        filters: AppointmentFilter,
    ) -> List[Appointment]:
        """
        List appointments visible to a user.

        Patients only ever see their own appointments, whatever filters
        they send. Staff and admins see everything matching ``filters``.
        """
        if user.role == UserRole.PATIENT:
            patient = await PatientService.get_patient_for_user(storage, user)
            filters = filters.model_copy(update={"patient_id": patient.id})

        return await storage.list_appointments(filters)

    @staticmethod
    async def create_appointment(storage: Storage, request: AppointmentCreate) -> Appointment:
        appointment = await storage.create_appointment(request)
        logger.info(
            f"Scheduled appointment {appointment.id} for patient {appointment.patient_id} "
            f"with staff {appointment.staff_id} on {appointment.date.isoformat()}"
        )
        return appointment

    @staticmethod
    async def update_status(storage: Storage, appointment_id: int, status: AppointmentStatus) -> Appointment:
        """
        Move an appointment to a new status.

        Raises:
            NotFoundException: If the appointment does not exist
            BadRequestException: If the state machine does not allow the move
        """
        try:
            appointment = await storage.update_appointment_status(appointment_id, status)
        except InvalidStatusTransition as e:
            raise http_error_from_storage(e)

        if not appointment:
            raise NotFoundException("Appointment not found")
        return appointment
