# Treatments Feature - Service

from typing import List
from pydantic import ValidationError
from app.features.treatments.schemas import UpdateTreatmentRequest
from app.core.logging import logger
from app.shared.exceptions import BadRequestException, NotFoundException, http_error_from_storage
from app.storage import InvalidStatusTransition, Storage
from app.storage.models import (
    PatientTreatment,
    PatientTreatmentCreate,
    StepStatus,
    Treatment,
    TreatmentCreate,
    TreatmentStatus,
    TreatmentStep,
    TreatmentStepCreate,
)


class TreatmentService:
    """Treatment catalog, patient treatment courses and their steps."""

    # ============== Catalog ==============

    @staticmethod
    async def list_treatments(storage: Storage) -> List[Treatment]:
        return await storage.list_treatments()

    @staticmethod
    async def get_treatment(storage: Storage, treatment_id: int) -> Treatment:
        treatment = await storage.get_treatment_by_id(treatment_id)
        if not treatment:
            raise NotFoundException("Treatment not found")
        return treatment

    @staticmethod
    async def create_treatment(storage: Storage, request: TreatmentCreate) -> Treatment:
        treatment = await storage.create_treatment(request)
        logger.info(f"Created treatment '{treatment.name}' ({treatment.default_duration} min)")
        return treatment

    @staticmethod
    async def update_treatment(storage: Storage, treatment_id: int, request: UpdateTreatmentRequest) -> Treatment:
        try:
            treatment = await storage.update_treatment(treatment_id, request)
        except ValidationError as e:
            raise BadRequestException(f"Invalid treatment data: {e.error_count()} error(s)")

        if not treatment:
            raise NotFoundException("Treatment not found")
        return treatment

    # ============== Patient treatments ==============

    @staticmethod
    async def get_patient_treatment(storage: Storage, patient_treatment_id: int) -> PatientTreatment:
        patient_treatment = await storage.get_patient_treatment_by_id(patient_treatment_id)
        if not patient_treatment:
            raise NotFoundException("Treatment not found")
        return patient_treatment

    @staticmethod
    async def list_for_patient(storage: Storage, patient_id: int) -> List[PatientTreatment]:
        return await storage.get_patient_treatments(patient_id)

    @staticmethod
    async def create_patient_treatment(storage: Storage, request: PatientTreatmentCreate) -> PatientTreatment:
        patient_treatment = await storage.create_patient_treatment(request)
        logger.info(
            f"Started treatment {patient_treatment.treatment_id} for patient "
            f"{patient_treatment.patient_id} (course {patient_treatment.id})"
        )
        return patient_treatment

    @staticmethod
    async def update_status(
        storage: Storage, patient_treatment_id: int, status: TreatmentStatus
    ) -> PatientTreatment:
        """
        Move a treatment course to a new status.

        Raises:
            NotFoundException: If the course does not exist
            BadRequestException: If the state machine does not allow the move
        """
        try:
            patient_treatment = await storage.update_patient_treatment_status(patient_treatment_id, status)
        except InvalidStatusTransition as e:
            raise http_error_from_storage(e)

        if not patient_treatment:
            raise NotFoundException("Treatment not found")

        logger.info(f"Treatment course {patient_treatment_id} is now {status.value}")
        return patient_treatment

    @staticmethod
    async def update_progress(storage: Storage, patient_treatment_id: int, progress: int) -> PatientTreatment:
        patient_treatment = await storage.update_patient_treatment_progress(patient_treatment_id, progress)
        if not patient_treatment:
            raise NotFoundException("Treatment not found")
        return patient_treatment

    # ============== Steps ==============

    @staticmethod
    async def list_steps(storage: Storage, patient_treatment_id: int) -> List[TreatmentStep]:
        return await storage.get_treatment_steps(patient_treatment_id)

    @staticmethod
    async def create_step(storage: Storage, request: TreatmentStepCreate) -> TreatmentStep:
        return await storage.create_treatment_step(request)

    @staticmethod
    async def update_step_status(storage: Storage, step_id: int, status: StepStatus) -> TreatmentStep:
        try:
            step = await storage.update_treatment_step_status(step_id, status)
        except InvalidStatusTransition as e:
            raise http_error_from_storage(e)

        if not step:
            raise NotFoundException("Treatment step not found")
        return step
