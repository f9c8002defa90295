"""
Validation and naming of files attached to public submissions.
"""

from __future__ import annotations

import time
import uuid
from typing import Sequence

from portal_backend.errors import ApiError

DOC = "application/msword"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# Entries ending in "/*" match any subtype.
QRETA_ALLOWED_TYPES = ("image/*", "application/pdf", DOCX, DOC)
REPORT_ALLOWED_TYPES = ("application/pdf", "image/jpeg", "image/png", DOCX, DOC)


def content_type_allowed(content_type: str | None, allowed: Sequence[str]) -> bool:
    if not content_type:
        return False
    content_type = content_type.split(";", 1)[0].strip().lower()
    for pattern in allowed:
        if pattern.endswith("/*"):
            if content_type.startswith(pattern[:-1]):
                return True
        elif content_type == pattern:
            return True
    return False


def validate_attachment(
    content_type: str | None,
    size: int,
    allowed: Sequence[str],
    max_bytes: int,
) -> None:
    """Raise ApiError unless the file is small enough and of an allowed type."""
    if size > max_bytes:
        raise ApiError(413, "file_too_large")
    if not content_type_allowed(content_type, allowed):
        raise ApiError(415, "unsupported_type")


def storage_path(folder: str, filename: str | None) -> str:
    """Return a fresh object path under ``folder`` keeping the file extension."""
    stem = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"
    ext = ""
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[1].lower()
    return f"{folder}/{stem}.{ext}" if ext else f"{folder}/{stem}"
