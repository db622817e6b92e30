# Treatments Feature - Routers

from fastapi import APIRouter, Depends, status
from typing import List
from app.dependencies import get_storage
from app.features.auth.dependencies import get_current_user, require_roles
from app.features.patients.service import PatientService
from app.features.treatments.schemas import (
    UpdateStepStatusRequest,
    UpdateTreatmentProgressRequest,
    UpdateTreatmentRequest,
    UpdateTreatmentStatusRequest,
)
from app.features.treatments.service import TreatmentService
from app.storage import Storage
from app.storage.models import (
    PatientTreatment,
    PatientTreatmentCreate,
    Treatment,
    TreatmentCreate,
    TreatmentStep,
    TreatmentStepCreate,
    User,
    UserRole,
)


router = APIRouter(prefix="/treatments", tags=["Treatments"])
patient_treatments_router = APIRouter(prefix="/patient-treatments", tags=["Patient Treatments"])
steps_router = APIRouter(prefix="/treatment-steps", tags=["Treatment Steps"])

staff_only = require_roles(UserRole.ADMIN, UserRole.STAFF)


# ============== Treatment catalog ==============

@router.get("", response_model=List[Treatment])
async def list_treatments(
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """List the treatment catalog."""
    return await TreatmentService.list_treatments(storage)


@router.post("", response_model=Treatment, status_code=status.HTTP_201_CREATED)
async def create_treatment(
    request: TreatmentCreate,
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
    storage: Storage = Depends(get_storage),
):
    """Add a treatment to the catalog. Requires admin authentication."""
    return await TreatmentService.create_treatment(storage, request)


@router.get("/{treatment_id}", response_model=Treatment)
async def get_treatment(
    treatment_id: int,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return await TreatmentService.get_treatment(storage, treatment_id)


@router.patch("/{treatment_id}", response_model=Treatment)
async def update_treatment(
    treatment_id: int,
    request: UpdateTreatmentRequest,
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
    storage: Storage = Depends(get_storage),
):
    """Edit a catalog treatment. Requires admin authentication."""
    return await TreatmentService.update_treatment(storage, treatment_id, request)


# ============== Patient treatments ==============

@patient_treatments_router.get("/{patient_id}", response_model=List[PatientTreatment])
async def list_patient_treatments(
    patient_id: int,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """
    List the treatment courses of a patient.

    Patients can only list their own courses.
    """
    await PatientService.check_access(storage, current_user, patient_id)
    return await TreatmentService.list_for_patient(storage, patient_id)


@patient_treatments_router.post("", response_model=PatientTreatment, status_code=status.HTTP_201_CREATED)
async def create_patient_treatment(
    request: PatientTreatmentCreate,
    current_user: User = Depends(staff_only),
    storage: Storage = Depends(get_storage),
):
    """Start a treatment course for a patient. Requires staff/admin authentication."""
    return await TreatmentService.create_patient_treatment(storage, request)


@patient_treatments_router.patch("/{patient_treatment_id}/status", response_model=PatientTreatment)
async def update_patient_treatment_status(
    patient_treatment_id: int,
    request: UpdateTreatmentStatusRequest,
    current_user: User = Depends(staff_only),
    storage: Storage = Depends(get_storage),
):
    """
    Change the status of a treatment course.

    Allowed moves: pending → in_progress → completed | cancelled.
    """
    return await TreatmentService.update_status(storage, patient_treatment_id, request.status)


@patient_treatments_router.patch("/{patient_treatment_id}/progress", response_model=PatientTreatment)
async def update_patient_treatment_progress(
    patient_treatment_id: int,
    request: UpdateTreatmentProgressRequest,
    current_user: User = Depends(staff_only),
    storage: Storage = Depends(get_storage),
):
    """Set the progress percentage (0-100) of a treatment course."""
    return await TreatmentService.update_progress(storage, patient_treatment_id, request.progress)


@patient_treatments_router.get("/{patient_treatment_id}/steps", response_model=List[TreatmentStep])
async def list_treatment_steps(
    patient_treatment_id: int,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """List the steps of a treatment course."""
    patient_treatment = await TreatmentService.get_patient_treatment(storage, patient_treatment_id)
    await PatientService.check_access(storage, current_user, patient_treatment.patient_id)
    return await TreatmentService.list_steps(storage, patient_treatment_id)


# ============== Treatment steps ==============

@steps_router.post("", response_model=TreatmentStep, status_code=status.HTTP_201_CREATED)
async def create_treatment_step(
    request: TreatmentStepCreate,
    current_user: User = Depends(staff_only),
    storage: Storage = Depends(get_storage),
):
    """Add a step to a treatment course. Requires staff/admin authentication."""
    return await TreatmentService.create_step(storage, request)


@steps_router.patch("/{step_id}", response_model=TreatmentStep)
async def update_treatment_step(
    step_id: int,
    request: UpdateStepStatusRequest,
    current_user: User = Depends(staff_only),
    storage: Storage = Depends(get_storage),
):
    """
    Change the status of a step.

    Completing a step records the current time as its date.
    """
    return await TreatmentService.update_step_status(storage, step_id, request.status)
