# Treatments Feature - Schemas

from typing import Optional
from pydantic import BaseModel, Field

from app.storage.models import StepStatus, TreatmentStatus


# ============== Treatment catalog ==============

class UpdateTreatmentRequest(BaseModel):
    """Request schema for editing a catalog treatment."""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    default_duration: Optional[int] = Field(None, gt=0, description="Duration in minutes")


# ============== Patient treatments ==============

class UpdateTreatmentStatusRequest(BaseModel):
    status: TreatmentStatus


class UpdateTreatmentProgressRequest(BaseModel):
    progress: int = Field(..., ge=0, le=100, description="Progress percentage")


# ============== Treatment steps ==============

class UpdateStepStatusRequest(BaseModel):
    status: StepStatus
