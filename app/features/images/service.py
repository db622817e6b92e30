import io
import uuid
from pathlib import Path
from typing import List
from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError
from app.config import settings
from app.core.logging import logger
from app.features.patients.service import PatientService
from app.shared.exceptions import BadRequestException, NotFoundException
from app.storage import Storage
from app.storage.models import ImageType, TreatmentImage, User, UserRole


ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
# Pillow format name -> stored extension
FORMAT_EXTENSIONS = {"JPEG": ".jpg", "PNG": ".png", "WEBP": ".webp"}


class ImageService:
    """Service for treatment image files and their metadata."""

    @staticmethod
    def upload_dir() -> Path:
        """Directory holding uploaded images, created on first use."""
        path = Path(settings.UPLOAD_DIR)
        path.mkdir(parents=True, exist_ok=True)
        return path

    @classmethod
    def resolve_upload(cls, filename: str) -> Path:
        """
        Path of an uploaded file by its stored name.

        Raises:
            NotFoundException: If the name is not a plain file name or the file is missing
        """
        if not filename or Path(filename).name != filename:
            raise NotFoundException("File not found")
        if Path(filename).suffix.lower() not in FORMAT_EXTENSIONS.values():
            raise NotFoundException("File not found")

        path = cls.upload_dir() / filename
        if not path.is_file():
            raise NotFoundException("File not found")
        return path

    @classmethod
    async def write_upload(cls, file: UploadFile) -> str:
        """
        Validate an uploaded image and write it to the upload directory.

        Args:
            file: Uploaded file

        Returns:
            str: Generated file name (not a path)
        """
        if file.content_type not in ALLOWED_CONTENT_TYPES:
            raise BadRequestException("Invalid file type. Only JPG, PNG and WebP images are allowed.")

        content = await file.read()
        if len(content) > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
            raise BadRequestException(
                f"File size exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit. Please upload a smaller image."
            )

        # Store Pillow's re-encoding, named by the detected format
        try:
            with Image.open(io.BytesIO(content)) as image:
                image_format = image.format
                if image_format not in FORMAT_EXTENSIONS:
                    raise BadRequestException("Invalid file type. Only JPG, PNG and WebP images are allowed.")
                image.load()
                output = io.BytesIO()
                image.save(output, format=image_format)
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            logger.error(f"Rejected upload {file.filename}: {str(e)}")
            raise BadRequestException("Invalid image file. Please upload a valid image.")

        content = output.getvalue()
        filename = f"image-{uuid.uuid4().hex}{FORMAT_EXTENSIONS[image_format]}"
        (cls.upload_dir() / filename).write_bytes(content)

        logger.info(f"Stored uploaded image as {filename} ({len(content)} bytes)")
        return filename

    @classmethod
    async def upload_treatment_image(
        cls,
        storage: Storage,
        file: UploadFile,
        patient_treatment_id: int,
        title: str,
        image_type: ImageType,
        uploaded_by: User,
    ) -> TreatmentImage:
        """Store an uploaded image on disk and record it against a treatment course."""
        filename = await cls.write_upload(file)
        try:
            return await storage.save_treatment_image({
                "patient_treatment_id": patient_treatment_id,
                "filename": filename,
                "title": title,
                "type": image_type,
                "uploaded_by": uploaded_by.id,
            })
        except ValueError:
            (cls.upload_dir() / filename).unlink(missing_ok=True)
            raise BadRequestException("Invalid image data")

    @staticmethod
    async def list_for_treatment(storage: Storage, user: User, patient_treatment_id: int) -> List[TreatmentImage]:
        """
        List the images of a treatment course.

        Patients may only list images of their own courses.
        """
        if user.role == UserRole.PATIENT:
            patient_treatment = await storage.get_patient_treatment_by_id(patient_treatment_id)
            if not patient_treatment:
                raise NotFoundException("Treatment not found")
            await PatientService.check_access(storage, user, patient_treatment.patient_id)

        return await storage.get_treatment_images(patient_treatment_id)

    @classmethod
    async def delete_treatment_image(cls, storage: Storage, image_id: int) -> None:
        """Delete image metadata and its file."""
        image = await storage.get_treatment_image_by_id(image_id)
        if not image or not await storage.delete_treatment_image(image_id):
            raise NotFoundException("Image not found")

        (cls.upload_dir() / image.filename).unlink(missing_ok=True)
        logger.info(f"Deleted treatment image {image_id} ({image.filename})")
