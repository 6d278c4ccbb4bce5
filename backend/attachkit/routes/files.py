"""Files API routes."""
import logging
from uuid import UUID
from fastapi import APIRouter, Depends, Form, HTTPException, UploadFile, File as FastAPIFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from attachkit.database import get_db
from attachkit.errors import AttachmentFilesystemError, UploadValidationError, ViolationCode
from attachkit.models.file_record import FileRecord
from attachkit.schemas.file import (
    DeleteResponse,
    FileResponse as FileResponseSchema,
    FileUpdate,
    ViolationErrorResponse,
)
from attachkit.services.lifecycle import commit_attachment, create_with_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["files"])

VIOLATION_RESPONSES = {
    409: {"model": ViolationErrorResponse, "description": "Target file already exists"},
    422: {"model": ViolationErrorResponse, "description": "Upload rejected"},
}


def _to_response(record: FileRecord) -> dict:
    attachment = record.attachment
    return {
        "id": str(record.id),
        "filename": record.filename,
        "folder": record.folder,
        "title": record.title,
        "content_type": record.content_type,
        "size_bytes": record.size_bytes,
        "public_path": attachment.public_path(),
        "file_exists": attachment.file_exists(),
        "created_at": record.created_at,
        "updated_at": record.updated_at,
        "uploaded_by": record.uploaded_by,
    }


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, UploadValidationError):
        status = 409 if ViolationCode.FILE_ALREADY_EXISTS in e.codes else 422
        return HTTPException(status, detail=[v.to_dict() for v in e.violations])
    logger.error(f"Attachment filesystem failure: {e}")
    return HTTPException(500, detail=str(e))


async def _get_or_404(db: AsyncSession, file_id: UUID) -> FileRecord:
    record = await db.get(FileRecord, file_id)
    if not record:
        raise HTTPException(status_code=404, detail="File not found")
    return record


@router.post("/upload", response_model=FileResponseSchema, status_code=201, responses=VIOLATION_RESPONSES)
async def upload_file(
    file: list[UploadFile] = FastAPIFile(...),
    folder: str = Form(""),
    title: str = Form(""),
    overwrite: bool = Form(False),
    db: AsyncSession = Depends(get_db),
):
    """Upload a file and create a file record.

    Repeated `file` fields are accepted; the first actual file is stored.
    """
    record = FileRecord(folder=folder, title=title)
    try:
        await create_with_upload(db, record, file, overwrite=overwrite)
    except (UploadValidationError, AttachmentFilesystemError) as e:
        raise _http_error(e)
    return _to_response(record)


@router.get("/{file_id}", response_model=FileResponseSchema)
async def get_file_metadata(
    file_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get file metadata by ID."""
    record = await _get_or_404(db, file_id)
    return _to_response(record)


@router.get("/{file_id}/download")
async def download_file(
    file_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Download a file by ID."""
    record = await _get_or_404(db, file_id)
    if not record.attachment.file_exists():
        raise HTTPException(status_code=404, detail="File missing on disk")

    return FileResponse(
        path=record.attachment.full_path(),
        filename=record.filename,
        media_type=record.content_type or "application/octet-stream",
    )


@router.patch("/{file_id}", response_model=FileResponseSchema, responses=VIOLATION_RESPONSES)
async def update_file(
    file_id: UUID,
    body: FileUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Change record attributes; the stored file is moved to match."""
    record = await _get_or_404(db, file_id)
    if body.filename is not None:
        record.attachment.filename = body.filename
    if body.folder is not None:
        record.folder = body.folder
    if body.title is not None:
        record.title = body.title

    try:
        await commit_attachment(db, record)
    except (UploadValidationError, AttachmentFilesystemError) as e:
        raise _http_error(e)
    await db.refresh(record)
    return _to_response(record)


@router.put("/{file_id}/content", response_model=FileResponseSchema, responses=VIOLATION_RESPONSES)
async def replace_file(
    file_id: UUID,
    file: list[UploadFile] = FastAPIFile(...),
    overwrite: bool = Form(False),
    db: AsyncSession = Depends(get_db),
):
    """Replace the stored file of an existing record."""
    record = await _get_or_404(db, file_id)
    try:
        record.attachment.assign(file, overwrite=overwrite)
    except ValueError:
        raise HTTPException(status_code=422, detail="No file was uploaded")

    try:
        await commit_attachment(db, record)
    except (UploadValidationError, AttachmentFilesystemError) as e:
        raise _http_error(e)
    await db.refresh(record)
    return _to_response(record)


@router.delete("/{file_id}", response_model=DeleteResponse)
async def delete_file(
    file_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Delete a record; its file and emptied folders go with it."""
    record = await _get_or_404(db, file_id)
    had_file = record.attachment.file_exists()

    await db.delete(record)
    try:
        await db.commit()
    except AttachmentFilesystemError as e:
        await db.rollback()
        raise _http_error(e)

    return {"deleted": True, "id": str(file_id), "file_deleted": had_file}
