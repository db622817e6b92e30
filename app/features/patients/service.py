# Patient Management Feature - Service

from typing import List, Optional
from pydantic import ValidationError
from app.features.patients.schemas import UpdatePatientRequest
from app.core.logging import logger
from app.shared.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.storage import Storage
from app.storage.filters import PatientFilter
from app.storage.models import Patient, User, UserRole


class PatientService:
    """Service class for patient management operations."""

    @staticmethod
    async def list_patients(storage: Storage, insurance: Optional[str] = None) -> List[Patient]:
        """Get the patients of the clinic, optionally only those of one insurer."""
        return await storage.list_patients(PatientFilter(insurance=insurance))

    @staticmethod
    async def get_patient(storage: Storage, patient_id: int) -> Patient:
        """Get a patient by id."""
        patient = await storage.get_patient_by_id(patient_id)
        if not patient:
            raise NotFoundException("Patient not found")
        return patient

    @staticmethod
    async def get_patient_for_user(storage: Storage, user: User) -> Patient:
        """Get the patient profile belonging to a user with the patient role."""
        patient = await storage.get_patient_by_user_id(user.id)
        if not patient:
            raise NotFoundException("Patient record not found")
        return patient

    @staticmethod
    async def check_access(storage: Storage, user: User, patient_id: int) -> None:
        """
        Make sure ``user`` may read data belonging to ``patient_id``.

        Staff and admins may read every patient; a patient only their own record.

        Raises:
            ForbiddenException: If a patient asks for someone else's data
        """
        if user.role != UserRole.PATIENT:
            return

        own = await storage.get_patient_by_user_id(user.id)
        if own is None or own.id != patient_id:
            logger.warning(f"User {user.username} denied access to patient {patient_id}")
            raise ForbiddenException("Unauthorized access to patient data")

    @staticmethod
    async def update_patient(storage: Storage, patient_id: int, request: UpdatePatientRequest) -> Patient:
        """Update the fields present in the request."""
        try:
            patient = await storage.update_patient(patient_id, request)
        except ValidationError as e:
            raise BadRequestException(f"Invalid patient data: {e.error_count()} error(s)")

        if not patient:
            raise NotFoundException("Patient not found")

        logger.info(f"Updated patient {patient_id}")
        return patient
