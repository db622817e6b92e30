from pydantic import BaseModel, EmailStr, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from app.storage.models import UserRole


# Request Schemas
class RegisterUserRequest(BaseModel):
    """Account part of a registration request. The password is plain text here."""

    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=100)
    email: EmailStr
    full_name: str = Field(..., min_length=2, max_length=100)
    role: UserRole = UserRole.PATIENT
    phone: Optional[str] = Field(None, max_length=20)
    profile_image: Optional[str] = None


class PatientProfileRequest(BaseModel):
    """Profile part of a patient registration."""

    date_of_birth: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = Field(None, max_length=500)
    insurance: Optional[str] = None
    occupation: Optional[str] = None
    allergies: List[str] = Field(default_factory=list)
    medical_conditions: List[str] = Field(default_factory=list)
    current_medication: Optional[str] = None
    medical_notes: Optional[str] = None


class StaffProfileRequest(BaseModel):
    """Profile part of a staff or admin registration."""

    position: str = Field(..., min_length=1, max_length=100)
    specialty: Optional[str] = None
    license_number: Optional[str] = None


class RegisterRequest(BaseModel):
    """Registration request: the account plus a role-specific profile."""

    user: RegisterUserRequest
    # Validated against PatientProfileRequest or StaffProfileRequest depending on user.role
    profile: Dict[str, Any] = Field(default_factory=dict)


class LoginRequest(BaseModel):
    """Login request schema."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


# Response Schemas
class UserResponse(BaseModel):
    """User data returned to clients (never includes the password hash)."""

    id: int
    username: str
    email: str
    full_name: str
    role: UserRole
    phone: Optional[str] = None
    profile_image: Optional[str] = None
    created_at: datetime


class AuthResponse(BaseModel):
    """Response for register and login."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse
