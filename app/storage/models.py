# Storage - Entity Models

from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple, Type
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.storage.exceptions import InvalidStatusTransition


# ============== Enumerations ==============

class UserRole(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"
    PATIENT = "patient"


class TreatmentStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StepStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class ImageType(str, Enum):
    BEFORE = "before"
    PROGRESS = "progress"
    AFTER = "after"


# ============== State Machines ==============

# Terminal states map to an empty set. Re-applying the current status is always allowed.
TRANSITIONS: Dict[Type[Enum], Dict[Enum, FrozenSet[Enum]]] = {
    TreatmentStatus: {
        TreatmentStatus.PENDING: frozenset({TreatmentStatus.IN_PROGRESS}),
        TreatmentStatus.IN_PROGRESS: frozenset({TreatmentStatus.COMPLETED, TreatmentStatus.CANCELLED}),
        TreatmentStatus.COMPLETED: frozenset(),
        TreatmentStatus.CANCELLED: frozenset(),
    },
    AppointmentStatus: {
        AppointmentStatus.SCHEDULED: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
        AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
        AppointmentStatus.COMPLETED: frozenset(),
        AppointmentStatus.CANCELLED: frozenset(),
    },
    StepStatus: {
        StepStatus.PENDING: frozenset({StepStatus.COMPLETED}),
        StepStatus.COMPLETED: frozenset(),
    },
}


def can_transition(current: Enum, requested: Enum) -> bool:
    """Return True if ``requested`` is reachable from ``current`` in one step."""
    if current == requested:
        return True
    return requested in TRANSITIONS[type(current)][current]


def ensure_transition(entity: str, current: Enum, requested: Enum) -> None:
    """Raise InvalidStatusTransition unless the move is allowed."""
    if not can_transition(current, requested):
        raise InvalidStatusTransition(entity, current.value, requested.value)


# ============== User ==============

class UserCreate(BaseModel):
    """Payload for creating a user. ``password`` is already hashed."""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    email: EmailStr
    full_name: str = Field(..., min_length=1)
    role: UserRole = UserRole.PATIENT
    phone: Optional[str] = None
    profile_image: Optional[str] = None


class User(UserCreate):
    model_config = ConfigDict(frozen=True)

    id: int
    created_at: datetime


# ============== Patient ==============

class PatientCreate(BaseModel):
    """Clinical profile attached to a user with the patient role."""
    user_id: int
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    insurance: Optional[str] = None
    occupation: Optional[str] = None
    allergies: Tuple[str, ...] = Field(default_factory=tuple)
    medical_conditions: Tuple[str, ...] = Field(default_factory=tuple)
    current_medication: Optional[str] = None
    medical_notes: Optional[str] = None


class Patient(PatientCreate):
    model_config = ConfigDict(frozen=True)

    id: int
    created_at: datetime


# ============== Staff ==============

class StaffCreate(BaseModel):
    """Profile attached to a user with the staff or admin role."""
    user_id: int
    position: str = Field(..., min_length=1)  # doctor, assistant, ...
    specialty: Optional[str] = None
    license_number: Optional[str] = None


class Staff(StaffCreate):
    model_config = ConfigDict(frozen=True)

    id: int
    created_at: datetime


# ============== Treatment catalog ==============

class TreatmentCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    default_duration: int = Field(..., gt=0, description="Duration in minutes")


class Treatment(TreatmentCreate):
    model_config = ConfigDict(frozen=True)

    id: int
    created_at: datetime


# ============== Patient treatment course ==============

class PatientTreatmentCreate(BaseModel):
    patient_id: int
    treatment_id: int
    staff_id: int
    status: TreatmentStatus = TreatmentStatus.PENDING
    progress: int = Field(0, ge=0, le=100)
    notes: Optional[str] = None
    start_date: datetime
    end_date: Optional[datetime] = None


class PatientTreatment(PatientTreatmentCreate):
    model_config = ConfigDict(frozen=True)

    id: int
    created_at: datetime


# ============== Treatment step ==============

class TreatmentStepCreate(BaseModel):
    patient_treatment_id: int
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    status: StepStatus = StepStatus.PENDING
    date: Optional[datetime] = None


class TreatmentStep(TreatmentStepCreate):
    model_config = ConfigDict(frozen=True)

    id: int
    created_at: datetime


# ============== Appointment ==============

class AppointmentCreate(BaseModel):
    patient_id: int
    staff_id: int
    patient_treatment_id: Optional[int] = None
    date: datetime
    duration: int = Field(..., gt=0, description="Duration in minutes")
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: Optional[str] = None


class Appointment(AppointmentCreate):
    model_config = ConfigDict(frozen=True)

    id: int
    created_at: datetime


# ============== Treatment image ==============

class TreatmentImageCreate(BaseModel):
    patient_treatment_id: int
    filename: str = Field(..., min_length=1)  # name of the file under UPLOAD_DIR
    title: str = Field(..., min_length=1)
    type: ImageType = ImageType.PROGRESS
    uploaded_by: int


class TreatmentImage(TreatmentImageCreate):
    model_config = ConfigDict(frozen=True)

    id: int
    uploaded_at: datetime
