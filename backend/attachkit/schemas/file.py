"""File request/response schemas."""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class FileResponse(BaseModel):
    id: str
    filename: str
    folder: str = ""
    title: str = ""
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None
    public_path: Optional[str] = None
    file_exists: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    uploaded_by: str = "anonymous"

    model_config = {"from_attributes": True}


class FileUpdate(BaseModel):
    """Attribute changes; the stored file follows them on save."""
    filename: Optional[str] = None
    folder: Optional[str] = None
    title: Optional[str] = None


class ViolationResponse(BaseModel):
    code: str
    message: str
    attribute: Optional[str] = None


class ViolationErrorResponse(BaseModel):
    """Body of a 409 or 422 upload rejection."""
    detail: list[ViolationResponse]


class DeleteResponse(BaseModel):
    deleted: bool = True
    id: str = ""
    file_deleted: bool = False
