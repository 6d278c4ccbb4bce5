"""Attachment error taxonomy.

Validation problems are collected as `Violation` values and raised together
in a single `UploadValidationError`. Filesystem problems abort the current
operation immediately with one `AttachmentFilesystemError` subclass.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional


class ViolationCode(str, Enum):
    MISSING_FILE = "MissingFile"
    FILE_ALREADY_EXISTS = "FileAlreadyExists"
    TOO_SMALL = "TooSmall"
    TOO_LARGE = "TooLarge"
    UNACCEPTABLE_CONTENT_TYPE = "UnacceptableContentType"
    INVALID_FILENAME = "InvalidFilename"


@dataclass(frozen=True)
class Violation:
    """One validation problem. `attribute` is None for record-level problems."""

    code: ViolationCode
    message: str
    attribute: Optional[str] = None

    def to_dict(self) -> dict:
        return {"code": self.code.value, "message": self.message, "attribute": self.attribute}


class AttachmentError(Exception):
    """Base exception for attachment errors."""


class UploadValidationError(AttachmentError):
    """Raised when an upload or rename fails validation."""

    def __init__(self, violations: Iterable[Violation]):
        self.violations: List[Violation] = list(violations)
        super().__init__("; ".join(v.message for v in self.violations) or "Invalid upload")

    @property
    def codes(self) -> List[ViolationCode]:
        return [v.code for v in self.violations]


class AttachmentFilesystemError(AttachmentError):
    """Base for failures of the filesystem side of an attachment."""

    action = "access"

    def __init__(self, path: Path, detail: str = ""):
        self.path = Path(path)
        message = f"Could not {self.action} {self.path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class DirectoryCreateFailed(AttachmentFilesystemError):
    action = "create directory"


class WriteFailed(AttachmentFilesystemError):
    action = "write"


class RenameFailed(AttachmentFilesystemError):
    action = "rename"


class DeleteFailed(AttachmentFilesystemError):
    action = "delete"
