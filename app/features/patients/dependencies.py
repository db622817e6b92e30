# Patient Management Feature - Dependencies

from fastapi import Depends
from app.dependencies import get_storage
from app.features.auth.dependencies import require_roles
from app.features.patients.service import PatientService
from app.storage import Storage
from app.storage.models import Patient, User, UserRole


async def get_current_patient(
    current_user: User = Depends(require_roles(UserRole.PATIENT)),
    storage: Storage = Depends(get_storage),
) -> Patient:
    """
    Dependency to get the patient record of the logged-in patient.

    Raises:
        ForbiddenException: If the user is not a patient
        NotFoundException: If the user has no patient profile
    """
    return await PatientService.get_patient_for_user(storage, current_user)
