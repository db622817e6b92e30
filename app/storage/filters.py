# Storage - Typed list filters

import datetime as dt
from typing import Any, Dict, Optional, Union
from pydantic import BaseModel, ConfigDict

from app.storage.models import (
    AppointmentStatus,
    ImageType,
    StepStatus,
    TreatmentStatus,
    UserRole,
)


class RecordFilter(BaseModel):
    """
    Base class for list filters.

    Every field left as ``None`` is ignored; the remaining fields are
    combined with AND as equality tests against the record.
    """

    model_config = ConfigDict(frozen=True)

    def criteria(self) -> Dict[str, Any]:
        """Return the fields that take part in the match."""
        return {
            name: getattr(self, name)
            for name in type(self).model_fields
            if getattr(self, name) is not None
        }

    def matches(self, record: BaseModel) -> bool:
        return all(
            self.match_field(record, name, value)
            for name, value in self.criteria().items()
        )

    def match_field(self, record: BaseModel, name: str, value: Any) -> bool:
        return getattr(record, name) == value


class UserFilter(RecordFilter):
    role: Optional[UserRole] = None
    email: Optional[str] = None


class PatientFilter(RecordFilter):
    user_id: Optional[int] = None
    gender: Optional[str] = None
    insurance: Optional[str] = None


class StaffFilter(RecordFilter):
    position: Optional[str] = None
    specialty: Optional[str] = None


class TreatmentFilter(RecordFilter):
    name: Optional[str] = None


class PatientTreatmentFilter(RecordFilter):
    patient_id: Optional[int] = None
    treatment_id: Optional[int] = None
    staff_id: Optional[int] = None
    status: Optional[TreatmentStatus] = None


class TreatmentStepFilter(RecordFilter):
    patient_treatment_id: Optional[int] = None
    status: Optional[StepStatus] = None


class AppointmentFilter(RecordFilter):
    patient_id: Optional[int] = None
    staff_id: Optional[int] = None
    patient_treatment_id: Optional[int] = None
    status: Optional[AppointmentStatus] = None
    # Matches any appointment on the same calendar day
    date: Optional[Union[dt.datetime, dt.date]] = None

    def match_field(self, record: BaseModel, name: str, value: Any) -> bool:
        if name == "date":
            day = value.date() if isinstance(value, dt.datetime) else value
            return record.date.date() == day
        return super().match_field(record, name, value)


class TreatmentImageFilter(RecordFilter):
    patient_treatment_id: Optional[int] = None
    type: Optional[ImageType] = None
    uploaded_by: Optional[int] = None
