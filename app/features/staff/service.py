# Staff Feature - Service

from typing import List, Optional
from pydantic import ValidationError
from app.features.staff.schemas import UpdateStaffRequest
from app.core.logging import logger
from app.shared.exceptions import BadRequestException, NotFoundException
from app.storage import Storage
from app.storage.filters import StaffFilter
from app.storage.models import Staff


class StaffService:
    """Service class for staff operations."""

    @staticmethod
    async def list_staff(storage: Storage, position: Optional[str] = None) -> List[Staff]:
        return await storage.list_staff(StaffFilter(position=position))

    @staticmethod
    async def get_staff(storage: Storage, staff_id: int) -> Staff:
        staff_member = await storage.get_staff_by_id(staff_id)
        if not staff_member:
            raise NotFoundException("Staff member not found")
        return staff_member

    @staticmethod
    async def update_staff(storage: Storage, staff_id: int, request: UpdateStaffRequest) -> Staff:
        try:
            staff_member = await storage.update_staff(staff_id, request)
        except ValidationError as e:
            raise BadRequestException(f"Invalid staff data: {e.error_count()} error(s)")

        if not staff_member:
            raise NotFoundException("Staff member not found")

        logger.info(f"Updated staff member {staff_id}")
        return staff_member
