"""Derive on-disk locations for record attachments."""
import re
from pathlib import Path, PurePosixPath
from typing import Any, Optional

from attachkit.config import UploadOptions

_UNSAFE_SEGMENT = re.compile(r"[^A-Za-z0-9_/-]")


def subdirectory_segment(record: Any, options: UploadOptions) -> str:
    """Per-record directory segment, stripped down to [A-Za-z0-9_/-]."""
    accessor = options.subdirectory
    if accessor is None:
        return ""
    value = accessor(record) if callable(accessor) else getattr(record, accessor)
    if value is None:
        return ""
    return _UNSAFE_SEGMENT.sub("", str(value))


def resolve_path(record: Any, options: UploadOptions) -> Path:
    """Path computed from the record's current attributes.

    Empty segments and repeated slashes collapse, so a record without a
    subdirectory lands directly in the base directory.
    """
    filename = getattr(record, options.filename_attr) or ""
    parts = [p for p in subdirectory_segment(record, options).split("/") if p]
    if filename:
        parts.append(filename)
    return options.base_directory.joinpath(*parts)


def public_path(path: Optional[Path], options: UploadOptions) -> Optional[str]:
    """URL path below the public root, or None when `path` is not served."""
    if path is None:
        return None
    public_root = PurePosixPath(options.public_directory.as_posix())
    candidate = PurePosixPath(Path(path).as_posix())
    if candidate == public_root or public_root not in candidate.parents:
        return None
    return "/" + candidate.relative_to(public_root).as_posix()
