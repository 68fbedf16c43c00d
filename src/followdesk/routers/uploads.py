"""Profile image upload endpoint.

The image arrives as multipart form data in the `image` field, is checked
against the configured size and type limits and is stored in the upload
bucket. The response carries the object's public URL.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from ..core.dependencies import get_storage_service
from ..core.exceptions import UploadValidationError
from ..core.logging import ContextLogger
from ..schemas.uploads import UploadResponse
from ..services.storage import ProfileImageStorage

logger = ContextLogger(__name__)

router = APIRouter(
    prefix="/upload",
    tags=["uploads"],
    responses={
        400: {"description": "Missing file, file too large or unsupported type"},
        500: {"description": "Upload failed"},
    },
)


@router.post(
    "/profile-image",
    response_model=UploadResponse,
    summary="Upload a profile image",
    description="Stores a JPEG, PNG or WebP image of at most 5MB",
)
async def upload_profile_image(
    image: Optional[UploadFile] = File(None, description="Image file"),
    storage: ProfileImageStorage = Depends(get_storage_service),
) -> UploadResponse:
    if image is None:
        raise UploadValidationError("No file uploaded")

    try:
        content = await image.read()
        logger.info(
            "Processing profile image upload",
            extra={
                "upload_filename": image.filename or "unknown",
                "content_type": image.content_type,
                "size_bytes": len(content),
            },
        )
        url = await storage.upload_profile_image(
            content, image.filename or "", image.content_type
        )
    finally:
        await image.close()

    return UploadResponse(url=url)
