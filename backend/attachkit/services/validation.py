"""Upload validation.

Checks only the declared metadata of a payload (size, content type) and the
target location. Every rule runs so the caller sees all problems at once.
"""
from pathlib import Path
from typing import Any, List, Optional

from attachkit.config import UploadOptions
from attachkit.errors import Violation, ViolationCode
from attachkit.services.filenames import is_usable_filename
from attachkit.services.payloads import UploadedPayload
from attachkit.services.paths import resolve_path


def validate_upload(
    record: Any,
    options: UploadOptions,
    pending: Optional[UploadedPayload],
    saved_path: Optional[Path] = None,
    overwrite: bool = False,
) -> List[Violation]:
    if pending is None:
        if saved_path is not None and saved_path.is_file():
            return []
        return [Violation(ViolationCode.MISSING_FILE, "No file was uploaded")]

    violations: List[Violation] = []
    filename = getattr(record, options.filename_attr) or ""

    if not is_usable_filename(filename):
        violations.append(Violation(
            ViolationCode.INVALID_FILENAME,
            f"'{pending.filename}' is not a usable filename",
            options.filename_attr,
        ))
    elif not overwrite:
        target = resolve_path(record, options)
        if target.is_file() and target != saved_path:
            violations.append(Violation(
                ViolationCode.FILE_ALREADY_EXISTS,
                f"'{filename}' already exists",
                options.filename_attr,
            ))

    size = pending.size or 0
    if size < options.min_size:
        violations.append(Violation(ViolationCode.TOO_SMALL, "Uploaded file was too small"))
    if size > options.max_size:
        violations.append(Violation(ViolationCode.TOO_LARGE, "Uploaded file was too large"))

    if not options.accepts(pending.content_type):
        violations.append(Violation(
            ViolationCode.UNACCEPTABLE_CONTENT_TYPE,
            f"Content type '{(pending.content_type or '').strip()}' is not valid",
        ))

    return violations
