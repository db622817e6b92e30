from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from typing import List
from app.dependencies import get_storage
from app.features.auth.dependencies import get_current_user, require_roles
from app.features.images.service import ImageService
from app.shared.schemas import MessageResponse
from app.storage import Storage
from app.storage.models import ImageType, TreatmentImage, User, UserRole

router = APIRouter(prefix="/images", tags=["Images"])
uploads_router = APIRouter(prefix="/uploads", tags=["Images"])


@router.post("", response_model=TreatmentImage, status_code=status.HTTP_201_CREATED)
async def upload_treatment_image(
    image: UploadFile = File(...),
    patient_treatment_id: int = Form(...),
    title: str = Form(..., min_length=1),
    image_type: ImageType = Form(ImageType.PROGRESS, alias="type"),
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.STAFF)),
    storage: Storage = Depends(get_storage),
):
    """
    Upload a clinical photo for a treatment course.

    Requires staff/admin authentication.

    - **image**: Image file (max 5MB)
    - **patient_treatment_id**: Treatment course the photo belongs to
    - **title**: Caption shown in the gallery
    - **type**: `before`, `progress` or `after`
    """
    return await ImageService.upload_treatment_image(
        storage,
        file=image,
        patient_treatment_id=patient_treatment_id,
        title=title,
        image_type=image_type,
        uploaded_by=current_user,
    )


@router.get("/treatment/{patient_treatment_id}", response_model=List[TreatmentImage])
async def list_treatment_images(
    patient_treatment_id: int,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """List the photos of a treatment course. Patients only see their own."""
    return await ImageService.list_for_treatment(storage, current_user, patient_treatment_id)


@router.delete("/{image_id}", response_model=MessageResponse)
async def delete_treatment_image(
    image_id: int,
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.STAFF)),
    storage: Storage = Depends(get_storage),
):
    """Delete a photo and its file. Requires staff/admin authentication."""
    await ImageService.delete_treatment_image(storage, image_id)
    return MessageResponse(message="Image deleted")


@uploads_router.get("/{filename}")
async def get_upload(
    filename: str,
    current_user: User = Depends(get_current_user),
):
    """Serve an uploaded image file."""
    return FileResponse(ImageService.resolve_upload(filename))
