"""Locating and normalizing uploaded file payloads.

A payload is anything with a readable binary `file`, a `filename`, a
`content_type` and a `size`. FastAPI's `UploadFile` already has that shape;
`UploadedPayload` is the same thing for callers outside a request.
"""
import io
import os
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional


def is_payload(value: Any) -> bool:
    """True when `value` has readable bytes, a name and a size."""
    stream = getattr(value, "file", None)
    return (
        callable(getattr(stream, "read", None))
        and hasattr(value, "filename")
        and hasattr(value, "size")
    )


def extract_payload(candidate: Any) -> Any:
    """Return the first payload found depth-first in nested form values.

    Multi-field form submissions can arrive as nested lists of values. A
    non-sequence candidate is returned unchanged; callers do the final type
    check.
    """
    if not isinstance(candidate, (list, tuple)):
        return candidate
    for element in candidate:
        if isinstance(element, (list, tuple)):
            found = extract_payload(element)
            if found is not None:
                return found
        elif is_payload(element):
            return element
    return None


def _measure(stream: BinaryIO) -> Optional[int]:
    if not (hasattr(stream, "seek") and hasattr(stream, "tell")):
        return None
    try:
        position = stream.tell()
        stream.seek(0, os.SEEK_END)
        size = stream.tell()
        stream.seek(position)
    except (OSError, ValueError):
        return None
    return size


@dataclass
class UploadedPayload:
    """An incoming file waiting to be written."""

    file: BinaryIO
    filename: str
    content_type: Optional[str] = None
    size: Optional[int] = None

    def __post_init__(self):
        if self.size is None:
            self.size = _measure(self.file)

    @classmethod
    def from_bytes(cls, data: bytes, filename: str, content_type: Optional[str] = None) -> "UploadedPayload":
        return cls(file=io.BytesIO(data), filename=filename, content_type=content_type, size=len(data))

    @classmethod
    def from_upload(cls, upload: Any) -> "UploadedPayload":
        """Normalize any payload-like object (e.g. a Starlette `UploadFile`)."""
        if isinstance(upload, cls):
            return upload
        if not is_payload(upload):
            raise TypeError(f"Not an uploaded file: {type(upload).__name__}")
        return cls(
            file=upload.file,
            filename=upload.filename or "",
            content_type=getattr(upload, "content_type", None),
            size=upload.size,
        )
