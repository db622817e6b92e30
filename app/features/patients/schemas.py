# Patient Management Feature - Schemas

from typing import Optional, List
from pydantic import BaseModel, Field


# ============== Update Patient ==============

class UpdatePatientRequest(BaseModel):
    """Request schema for updating a patient's clinical profile. Only sent fields change."""
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = Field(None, max_length=500)
    insurance: Optional[str] = None
    occupation: Optional[str] = None
    allergies: Optional[List[str]] = None
    medical_conditions: Optional[List[str]] = None
    current_medication: Optional[str] = None
    medical_notes: Optional[str] = None
