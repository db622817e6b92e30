# Staff Feature - Schemas

from typing import Optional
from pydantic import BaseModel, Field


class UpdateStaffRequest(BaseModel):
    """Request schema for updating a staff profile."""
    position: Optional[str] = Field(None, min_length=1, max_length=100)
    specialty: Optional[str] = None
    license_number: Optional[str] = None
