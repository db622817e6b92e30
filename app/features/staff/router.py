# Staff Feature - Router

from fastapi import APIRouter, Depends
from typing import List, Optional
from app.dependencies import get_storage
from app.features.auth.dependencies import require_roles
from app.features.staff.schemas import UpdateStaffRequest
from app.features.staff.service import StaffService
from app.storage import Storage
from app.storage.models import Staff, User, UserRole


router = APIRouter(prefix="/staff", tags=["Staff"])


@router.get("", response_model=List[Staff])
async def list_staff(
    position: Optional[str] = None,
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
    storage: Storage = Depends(get_storage),
):
    """
    List staff members.

    Requires admin authentication.

    - **position**: Only return members with this position (e.g. `doctor`)
    """
    return await StaffService.list_staff(storage, position=position)


@router.get("/{staff_id}", response_model=Staff)
async def get_staff(
    staff_id: int,
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.STAFF)),
    storage: Storage = Depends(get_storage),
):
    """Get a staff member. Requires staff/admin authentication."""
    return await StaffService.get_staff(storage, staff_id)


@router.patch("/{staff_id}", response_model=Staff)
async def update_staff(
    staff_id: int,
    request: UpdateStaffRequest,
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
    storage: Storage = Depends(get_storage),
):
    """Update a staff profile. Requires admin authentication."""
    return await StaffService.update_staff(storage, staff_id, request)
