"""Filename sanitizing for stored uploads."""
import re
from typing import Any

from attachkit.services.payloads import extract_payload

_SEPARATORS = re.compile(r"[_:/]+")
_DISALLOWED = re.compile(r"[^a-z0-9.\s-]", re.ASCII)
_WHITESPACE = re.compile(r"\s+", re.ASCII)
_ONLY_UNDERSCORES = re.compile(r"^_+$")


def sanitize_filename(value: Any) -> str:
    """Turn an arbitrary name into a lowercase, filesystem-safe filename.

    Accepts a plain string, a payload (its original filename is used) or
    nested form values holding a payload. Returns "" when nothing usable is
    left, which callers must reject.
    """
    value = extract_payload(value)
    if value is None:
        return ""
    name = getattr(value, "filename", value)
    if name is None:
        return ""
    name = _SEPARATORS.sub(" ", str(name))
    name = name.lower()
    name = _DISALLOWED.sub("", name)
    name = name.strip()
    name = _WHITESPACE.sub("_", name)
    return _ONLY_UNDERSCORES.sub("", name)


def is_usable_filename(filename: str) -> bool:
    """False for empty names and names made of dots only (`.`, `..`)."""
    return bool(filename) and bool(filename.strip("."))
