"""The file half of a record with an attachment.

An `Attachment` keeps one record's file in step with its attributes:

    EMPTY -> PENDING_WRITE -> SAVED -> (rename) -> SAVED -> DELETED

`saved_path` is where the file is right now. The resolved path is where the
current attributes say it should be; the two differ between an attribute
edit and the rename that follows it.
"""
import logging
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

from attachkit.config import UploadOptions
from attachkit.errors import UploadValidationError, Violation, ViolationCode
from attachkit.services.file_system import file_store
from attachkit.services.filenames import is_usable_filename, sanitize_filename
from attachkit.services.payloads import UploadedPayload, extract_payload
from attachkit.services.paths import public_path, resolve_path
from attachkit.services.validation import validate_upload

logger = logging.getLogger(__name__)


class AttachmentState(str, Enum):
    EMPTY = "empty"
    PENDING_WRITE = "pending_write"
    SAVED = "saved"
    DELETED = "deleted"


class Attachment:
    def __init__(self, record: Any):
        self.record = record
        self.pending_upload: Optional[UploadedPayload] = None
        self.overwrite = False
        self.saved_path: Optional[Path] = None
        self.staged_path: Optional[Path] = None
        self.errors: List[Violation] = []
        self._deleted = False

    @property
    def options(self) -> UploadOptions:
        return type(self.record).__upload_options__

    @property
    def state(self) -> AttachmentState:
        if self.pending_upload is not None:
            return AttachmentState.PENDING_WRITE
        if self.saved_path is not None:
            return AttachmentState.SAVED
        if self._deleted:
            return AttachmentState.DELETED
        return AttachmentState.EMPTY

    # ── Attributes ───────────────────────────────────────────────

    @property
    def filename(self) -> Optional[str]:
        return getattr(self.record, self.options.filename_attr)

    @filename.setter
    def filename(self, value: Any) -> None:
        setattr(self.record, self.options.filename_attr, sanitize_filename(value))

    def assign(self, upload: Any, overwrite: bool = False) -> UploadedPayload:
        """Attach a new file to be written on the next save."""
        found = extract_payload(upload)
        if found is None:
            raise ValueError("No uploaded file found")
        payload = UploadedPayload.from_upload(found)
        self.filename = payload.filename
        options = self.options
        if options.content_type_attr:
            setattr(self.record, options.content_type_attr, payload.content_type)
        if options.size_attr:
            setattr(self.record, options.size_attr, payload.size)
        self.pending_upload = payload
        self.overwrite = overwrite
        self._deleted = False
        return payload

    def pin_saved_path(self) -> None:
        """Remember where a loaded record's file is before attributes change."""
        if self.saved_path is None and self.filename:
            path = self.resolved_path()
            if path.is_file():
                self.saved_path = path

    # ── Paths ────────────────────────────────────────────────────

    def resolved_path(self) -> Path:
        return resolve_path(self.record, self.options)

    def full_path(self) -> Path:
        return self.saved_path or self.resolved_path()

    def public_path(self) -> Optional[str]:
        return public_path(self.full_path(), self.options)

    def file_exists(self, path: Optional[Path] = None) -> bool:
        return Path(path or self.full_path()).is_file()

    def file_size(self) -> Optional[int]:
        path = self.full_path()
        return path.stat().st_size if path.is_file() else None

    def set_permissions(self, mode: Optional[int] = None) -> bool:
        return file_store.chmod(self.full_path(), mode if mode is not None else self.options.file_mode)

    def accepts_format(self, content_type: Any) -> bool:
        value = extract_payload(content_type)
        return self.options.accepts(getattr(value, "content_type", value))

    # ── Lifecycle ────────────────────────────────────────────────

    def validate(self, overwrite: Optional[bool] = None) -> List[Violation]:
        """Check the pending upload. Fills and returns `errors`."""
        self.errors = validate_upload(
            self.record,
            self.options,
            self.pending_upload,
            saved_path=self.saved_path,
            overwrite=self.overwrite if overwrite is None else overwrite,
        )
        return self.errors

    def ensure_valid(self) -> None:
        if self.validate():
            logger.warning(
                f"Rejected upload for {type(self.record).__name__}: "
                f"{', '.join(v.code.value for v in self.errors)}"
            )
            raise UploadValidationError(self.errors)

    def commit(self) -> Optional[Path]:
        """Write the pending upload to its resolved path.

        A staged copy is renamed into place; otherwise the stream is copied.
        """
        if self.pending_upload is None:
            return None
        self.ensure_valid()
        target = self.resolved_path()
        previous = self.saved_path
        if self.staged_path is not None:
            file_store.promote(self.staged_path, target, self.options.file_mode)
            self.staged_path = None
        else:
            file_store.write(self.pending_upload.file, target, self.options.file_mode)
        self.saved_path = target
        self.pending_upload = None
        self.overwrite = False
        if previous is not None and previous != target:
            file_store.delete(previous)
            file_store.prune(previous.parent, self.options.base_directory)
        return target

    async def stage(self) -> Optional[Path]:
        """Copy the pending upload next to its target ahead of the flush."""
        if self.pending_upload is None:
            return None
        self.discard_staged()
        directory = self.resolved_path().parent
        self.staged_path = await file_store.stage(self.pending_upload.file, directory)
        return self.staged_path

    def discard_staged(self) -> None:
        if self.staged_path is None:
            return
        staged, self.staged_path = self.staged_path, None
        file_store.delete(staged)
        file_store.prune(staged.parent, self.options.base_directory)

    def rename(self) -> Optional[Path]:
        """Move the saved file to follow attribute changes."""
        if self.state is not AttachmentState.SAVED:
            return None
        source = self.saved_path
        target = self.resolved_path()
        if target == source:
            return None
        if not source.is_file():
            self.saved_path = None
            return None
        options = self.options
        if not is_usable_filename(self.filename or ""):
            self.errors = [Violation(
                ViolationCode.INVALID_FILENAME, "Filename is not usable", options.filename_attr,
            )]
            raise UploadValidationError(self.errors)
        if target.exists():
            self.errors = [Violation(
                ViolationCode.FILE_ALREADY_EXISTS,
                "is already taken by another file",
                options.filename_attr,
            )]
            raise UploadValidationError(self.errors)
        file_store.move(source, target)
        self.saved_path = target
        file_store.prune(source.parent, options.base_directory)
        return target

    def delete(self) -> bool:
        path = self.full_path()
        deleted = file_store.delete(path)
        file_store.prune(path.parent, self.options.base_directory)
        self.saved_path = None
        self.pending_upload = None
        self._deleted = True
        return deleted
