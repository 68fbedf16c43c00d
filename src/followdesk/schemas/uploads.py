"""Schema models for file uploads."""

from pydantic import BaseModel, Field


class UploadResponse(BaseModel):
    """Public location of an uploaded object."""

    url: str = Field(..., description="Public URL of the uploaded image")
