# Patient Management Feature - Router

from fastapi import APIRouter, Depends
from typing import List, Optional
from app.dependencies import get_storage
from app.features.auth.dependencies import get_current_user, require_roles
from app.features.patients.dependencies import get_current_patient
from app.features.patients.schemas import UpdatePatientRequest
from app.features.patients.service import PatientService
from app.storage import Storage
from app.storage.models import Patient, User, UserRole


router = APIRouter(prefix="/patients", tags=["Patients"])


# ============== Staff/Admin Endpoints ==============

@router.get("", response_model=List[Patient])
async def list_patients(
    insurance: Optional[str] = None,
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.STAFF)),
    storage: Storage = Depends(get_storage),
):
    """
    List patients.

    Requires staff/admin authentication.

    - **insurance**: Only return patients with this insurer
    """
    return await PatientService.list_patients(storage, insurance=insurance)


# ============== Patient Endpoints ==============

@router.get("/me", response_model=Patient)
async def get_my_patient_record(current_patient: Patient = Depends(get_current_patient)):
    """Get the logged-in patient's own record."""
    return current_patient


@router.get("/{patient_id}", response_model=Patient)
async def get_patient(
    patient_id: int,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """
    Get a specific patient.

    Patients can only read their own record.
    """
    patient = await PatientService.get_patient(storage, patient_id)
    await PatientService.check_access(storage, current_user, patient.id)
    return patient


@router.patch("/{patient_id}", response_model=Patient)
async def update_patient(
    patient_id: int,
    request: UpdatePatientRequest,
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.STAFF)),
    storage: Storage = Depends(get_storage),
):
    """
    Update a patient's clinical profile.

    Requires staff/admin authentication.
    """
    return await PatientService.update_patient(storage, patient_id, request)
