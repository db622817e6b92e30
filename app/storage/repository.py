# Storage - In-memory repository

import threading
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Mapping, Optional, Type, TypeVar, Union
from pydantic import BaseModel

from app.config import settings
from app.core.logging import logger
from app.shared.models import utcnow
from app.storage.exceptions import UsernameAlreadyExists
from app.storage.filters import (
    AppointmentFilter,
    PatientFilter,
    PatientTreatmentFilter,
    RecordFilter,
    StaffFilter,
    TreatmentFilter,
    TreatmentImageFilter,
    TreatmentStepFilter,
    UserFilter,
)
from app.storage.models import (
    Appointment,
    AppointmentStatus,
    Patient,
    PatientTreatment,
    Staff,
    StepStatus,
    Treatment,
    TreatmentImage,
    TreatmentStatus,
    TreatmentStep,
    User,
    ensure_transition,
)
from app.storage.session_store import MemorySessionStore


R = TypeVar("R", bound=BaseModel)
Payload = Union[BaseModel, Mapping[str, Any]]

CREATED = frozenset({"id", "created_at"})
UPLOADED = frozenset({"id", "uploaded_at"})


def _as_dict(data: Payload, partial: bool = False) -> Dict[str, Any]:
    """Turn a request model or a plain mapping into a field dictionary."""
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=partial)
    return dict(data)


class Storage:
    """
    In-memory repository for every clinic entity.

    All records share one id counter. Records are frozen pydantic models:
    updates build a new record and replace the stored one, so callers
    holding an older record never see it change.

    Lookups and updates return ``None`` for unknown ids instead of raising.
    """

    def __init__(self, session_check_period: Optional[float] = None):
        self._users: Dict[int, User] = {}
        self._patients: Dict[int, Patient] = {}
        self._staff: Dict[int, Staff] = {}
        self._treatments: Dict[int, Treatment] = {}
        self._patient_treatments: Dict[int, PatientTreatment] = {}
        self._treatment_steps: Dict[int, TreatmentStep] = {}
        self._appointments: Dict[int, Appointment] = {}
        self._treatment_images: Dict[int, TreatmentImage] = {}

        self._next_id = 1
        # Guards id allocation and every read-modify-write
        self._lock = threading.RLock()

        if session_check_period is None:
            session_check_period = settings.SESSION_CHECK_PERIOD_SECONDS
        self._session_store = MemorySessionStore(check_period=session_check_period)

    @property
    def session_store(self) -> MemorySessionStore:
        """Session store used by the authentication layer."""
        return self._session_store

    # ============== Lifecycle ==============

    def start(self) -> None:
        """Start background work (the session expiry sweep)."""
        self._session_store.start()

    async def close(self) -> None:
        await self._session_store.stop()

    # ============== Internal helpers ==============

    def _insert(
        self,
        table: Dict[int, R],
        model: Type[R],
        data: Payload,
        timestamp_field: str = "created_at",
    ) -> R:
        payload = _as_dict(data)
        payload.pop("id", None)
        payload.pop(timestamp_field, None)

        with self._lock:
            record_id = self._next_id
            self._next_id += 1
            record = model.model_validate({**payload, "id": record_id, timestamp_field: utcnow()})
            table[record_id] = record

        logger.debug(f"Created {model.__name__} {record_id}")
        return record

    def _merge(
        self,
        table: Dict[int, R],
        model: Type[R],
        record_id: int,
        patch: Payload,
        protected: FrozenSet[str] = CREATED,
        finalize: Optional[Callable[[R, R, Dict[str, Any]], R]] = None,
    ) -> Optional[R]:
        changes = {
            field: value
            for field, value in _as_dict(patch, partial=True).items()
            if field not in protected
        }

        with self._lock:
            current = table.get(record_id)
            if current is None:
                return None

            updated = model.model_validate({**current.model_dump(), **changes})
            if finalize is not None:
                updated = finalize(current, updated, changes)
            table[record_id] = updated

        return updated

    def _select(self, table: Dict[int, R], filters: Optional[RecordFilter]) -> List[R]:
        with self._lock:
            records = list(table.values())
        if filters is None:
            return records
        return [record for record in records if filters.matches(record)]

    def _username_taken(self, username: str, exclude_id: Optional[int] = None) -> bool:
        return any(
            user.username == username and user.id != exclude_id
            for user in self._users.values()
        )

    # ============== Users ==============

    async def get_user(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            users = list(self._users.values())
        return next((user for user in users if user.username == username), None)

    async def list_users(self, filters: Optional[UserFilter] = None) -> List[User]:
        return self._select(self._users, filters)

    async def create_user(self, user_data: Payload) -> User:
        """Create a user. Raises UsernameAlreadyExists if the username is taken."""
        payload = _as_dict(user_data)
        with self._lock:
            if self._username_taken(payload.get("username")):
                raise UsernameAlreadyExists(payload.get("username"))
            return self._insert(self._users, User, payload)

    async def update_user(self, user_id: int, user_data: Payload) -> Optional[User]:
        changes = _as_dict(user_data, partial=True)
        with self._lock:
            username = changes.get("username")
            if username is not None and self._username_taken(username, exclude_id=user_id):
                raise UsernameAlreadyExists(username)
            return self._merge(self._users, User, user_id, changes)

    # ============== Patients ==============

    async def get_patient_by_id(self, patient_id: int) -> Optional[Patient]:
        return self._patients.get(patient_id)

    async def get_patient_by_user_id(self, user_id: int) -> Optional[Patient]:
        with self._lock:
            patients = list(self._patients.values())
        return next((patient for patient in patients if patient.user_id == user_id), None)

    async def list_patients(self, filters: Optional[PatientFilter] = None) -> List[Patient]:
        return self._select(self._patients, filters)

    async def create_patient(self, patient_data: Payload) -> Patient:
        return self._insert(self._patients, Patient, patient_data)

    async def update_patient(self, patient_id: int, patient_data: Payload) -> Optional[Patient]:
        return self._merge(self._patients, Patient, patient_id, patient_data)

    # ============== Staff ==============

    async def get_staff_by_id(self, staff_id: int) -> Optional[Staff]:
        return self._staff.get(staff_id)

    async def get_staff_by_user_id(self, user_id: int) -> Optional[Staff]:
        with self._lock:
            members = list(self._staff.values())
        return next((member for member in members if member.user_id == user_id), None)

    async def list_staff(self, filters: Optional[StaffFilter] = None) -> List[Staff]:
        return self._select(self._staff, filters)

    async def create_staff(self, staff_data: Payload) -> Staff:
        return self._insert(self._staff, Staff, staff_data)

    async def update_staff(self, staff_id: int, staff_data: Payload) -> Optional[Staff]:
        return self._merge(self._staff, Staff, staff_id, staff_data)

    # ============== Treatments ==============

    async def get_treatment_by_id(self, treatment_id: int) -> Optional[Treatment]:
        return self._treatments.get(treatment_id)

    async def list_treatments(self, filters: Optional[TreatmentFilter] = None) -> List[Treatment]:
        return self._select(self._treatments, filters)

    async def create_treatment(self, treatment_data: Payload) -> Treatment:
        return self._insert(self._treatments, Treatment, treatment_data)

    async def update_treatment(self, treatment_id: int, treatment_data: Payload) -> Optional[Treatment]:
        return self._merge(self._treatments, Treatment, treatment_id, treatment_data)

    # ============== Patient treatments ==============

    @staticmethod
    def _check_treatment_status(current: PatientTreatment, updated: PatientTreatment, changes: dict) -> PatientTreatment:
        if "status" in changes:
            ensure_transition("patient treatment", current.status, updated.status)
        return updated

    async def get_patient_treatment_by_id(self, patient_treatment_id: int) -> Optional[PatientTreatment]:
        return self._patient_treatments.get(patient_treatment_id)

    async def list_patient_treatments(self, filters: Optional[PatientTreatmentFilter] = None) -> List[PatientTreatment]:
        return self._select(self._patient_treatments, filters)

    async def get_patient_treatments(self, patient_id: int) -> List[PatientTreatment]:
        return await self.list_patient_treatments(PatientTreatmentFilter(patient_id=patient_id))

    async def create_patient_treatment(self, patient_treatment_data: Payload) -> PatientTreatment:
        return self._insert(self._patient_treatments, PatientTreatment, patient_treatment_data)

    async def update_patient_treatment(
        self, patient_treatment_id: int, patient_treatment_data: Payload
    ) -> Optional[PatientTreatment]:
        return self._merge(
            self._patient_treatments,
            PatientTreatment,
            patient_treatment_id,
            patient_treatment_data,
            finalize=self._check_treatment_status,
        )

    async def update_patient_treatment_status(
        self, patient_treatment_id: int, status: Union[TreatmentStatus, str]
    ) -> Optional[PatientTreatment]:
        return await self.update_patient_treatment(patient_treatment_id, {"status": status})

    async def update_patient_treatment_progress(
        self, patient_treatment_id: int, progress: int
    ) -> Optional[PatientTreatment]:
        return await self.update_patient_treatment(patient_treatment_id, {"progress": progress})

    # ============== Treatment steps ==============

    @staticmethod
    def _complete_step(current: TreatmentStep, updated: TreatmentStep, changes: dict) -> TreatmentStep:
        if "status" not in changes:
            return updated
        ensure_transition("treatment step", current.status, updated.status)
        if updated.status == StepStatus.COMPLETED:
            # Completion date is always stamped here, never taken from the caller
            return updated.model_copy(update={"date": utcnow()})
        return updated

    async def get_treatment_step_by_id(self, step_id: int) -> Optional[TreatmentStep]:
        return self._treatment_steps.get(step_id)

    async def list_treatment_steps(self, filters: Optional[TreatmentStepFilter] = None) -> List[TreatmentStep]:
        return self._select(self._treatment_steps, filters)

    async def get_treatment_steps(self, patient_treatment_id: int) -> List[TreatmentStep]:
        return await self.list_treatment_steps(TreatmentStepFilter(patient_treatment_id=patient_treatment_id))

    async def create_treatment_step(self, step_data: Payload) -> TreatmentStep:
        return self._insert(self._treatment_steps, TreatmentStep, step_data)

    async def update_treatment_step(self, step_id: int, step_data: Payload) -> Optional[TreatmentStep]:
        return self._merge(
            self._treatment_steps,
            TreatmentStep,
            step_id,
            step_data,
            finalize=self._complete_step,
        )

    async def update_treatment_step_status(
        self, step_id: int, status: Union[StepStatus, str]
    ) -> Optional[TreatmentStep]:
        """
        Set a step's status.

        Completing a step sets its date to the current time, whatever the
        previous date was. Any other status leaves the date untouched.
        """
        return await self.update_treatment_step(step_id, {"status": status})

    # ============== Appointments ==============

    @staticmethod
    def _check_appointment_status(current: Appointment, updated: Appointment, changes: dict) -> Appointment:
        if "status" in changes:
            ensure_transition("appointment", current.status, updated.status)
        return updated

    async def get_appointment_by_id(self, appointment_id: int) -> Optional[Appointment]:
        return self._appointments.get(appointment_id)

    async def list_appointments(self, filters: Optional[AppointmentFilter] = None) -> List[Appointment]:
        return self._select(self._appointments, filters)

    async def get_patient_appointments(self, patient_id: int) -> List[Appointment]:
        return await self.list_appointments(AppointmentFilter(patient_id=patient_id))

    async def get_staff_appointments(self, staff_id: int) -> List[Appointment]:
        return await self.list_appointments(AppointmentFilter(staff_id=staff_id))

    async def create_appointment(self, appointment_data: Payload) -> Appointment:
        return self._insert(self._appointments, Appointment, appointment_data)

    async def update_appointment(self, appointment_id: int, appointment_data: Payload) -> Optional[Appointment]:
        return self._merge(
            self._appointments,
            Appointment,
            appointment_id,
            appointment_data,
            finalize=self._check_appointment_status,
        )

    async def update_appointment_status(
        self, appointment_id: int, status: Union[AppointmentStatus, str]
    ) -> Optional[Appointment]:
        return await self.update_appointment(appointment_id, {"status": status})

    # ============== Treatment images ==============

    async def get_treatment_image_by_id(self, image_id: int) -> Optional[TreatmentImage]:
        return self._treatment_images.get(image_id)

    async def list_treatment_images(self, filters: Optional[TreatmentImageFilter] = None) -> List[TreatmentImage]:
        return self._select(self._treatment_images, filters)

    async def get_treatment_images(self, patient_treatment_id: int) -> List[TreatmentImage]:
        return await self.list_treatment_images(TreatmentImageFilter(patient_treatment_id=patient_treatment_id))

    async def save_treatment_image(self, image_data: Payload) -> TreatmentImage:
        """Store image metadata. The file itself is written by the caller."""
        return self._insert(self._treatment_images, TreatmentImage, image_data, timestamp_field="uploaded_at")

    async def update_treatment_image(self, image_id: int, image_data: Payload) -> Optional[TreatmentImage]:
        return self._merge(self._treatment_images, TreatmentImage, image_id, image_data, protected=UPLOADED)

    async def delete_treatment_image(self, image_id: int) -> bool:
        """Delete image metadata. Returns False if there was nothing to delete."""
        with self._lock:
            return self._treatment_images.pop(image_id, None) is not None

    # ============== Registration ==============

    async def register_patient(self, user_data: Payload, patient_data: Payload) -> User:
        """Create a user and its patient profile as one logical operation."""
        return await self._register(user_data, patient_data, self.create_patient)

    async def register_staff(self, user_data: Payload, staff_data: Payload) -> User:
        """Create a user and its staff profile as one logical operation."""
        return await self._register(user_data, staff_data, self.create_staff)

    async def _register(
        self,
        user_data: Payload,
        profile_data: Payload,
        create_profile: Callable[[Payload], Awaitable[BaseModel]],
    ) -> User:
        user_payload = _as_dict(user_data)
        username = user_payload.get("username")

        if await self.get_user_by_username(username) is not None:
            raise UsernameAlreadyExists(username)

        user = await self.create_user(user_payload)

        try:
            await create_profile({**_as_dict(profile_data), "user_id": user.id})
        except Exception:
            # Compensate: a user without its profile must not survive
            with self._lock:
                self._users.pop(user.id, None)
            logger.warning(f"Rolled back user {user.id} ({username}) after profile creation failed")
            raise

        logger.info(f"Registered {user.role.value} user {user.id} ({username})")
        return user
