"""
Bilingual error messages and the HTTP error type used by the routes.

Amharic is the primary language of the site; every message also carries an
English rendering for logs and non-Amharic clients.
"""

from __future__ import annotations

from fastapi import HTTPException

MESSAGES: dict[str, tuple[str, str]] = {
    "not_authenticated": ("እባክዎ መጀመሪያ ይግቡ", "Not authenticated"),
    "not_admin": ("የአስተዳዳሪ ፈቃድ የለዎትም", "Admin access required"),
    "invalid_credentials": (
        "ኢሜይል ወይም የይለፍ ቃል ትክክል አይደለም",
        "Incorrect email or password",
    ),
    "woreda_required": ("እባክዎ መጀመሪያ ወረዳ ይምረጡ", "Please select a woreda first"),
    "xlsx_required": (
        "እባክዎ የ Excel ፋይል ይጫኑ (.xlsx)",
        "Please upload an Excel file (.xlsx)",
    ),
    "invalid_workbook": ("ፋይሉን መጫን አልተቻለም", "Could not read the spreadsheet"),
    "file_too_large": (
        "የፋይል መጠን ከ5MB መብለጥ የለበትም።",
        "File must not exceed 5MB",
    ),
    "unsupported_type": (
        "ትክክለኛ የፋይል አይነት አይደለም",
        "Unsupported file type",
    ),
    "report_file_required": (
        "የሪፖርት ፋይል ማስገባት አለብዎት",
        "A report file is required",
    ),
    "not_found": ("አልተገኘም", "Not found"),
    "storage_failed": ("ፋይል መስቀል አልተቻለም", "File upload failed"),
    "insert_failed": ("መረጃውን ማስገባት አልተቻለም", "Could not save the submission"),
    "invalid_email": ("የኢሜል አድራሻው ትክክል አይደለም", "Invalid email address"),
    "password_too_short": (
        "የይለፍ ቃሉ ቢያንስ 6 ፊደላት መሆን አለበት",
        "Password must be at least 6 characters",
    ),
    "password_mismatch": ("የይለፍ ቃሎቹ አይመሳሰሉም", "Passwords do not match"),
    "admin_exists": ("ይህ ኢሜይል ያስቀድሞ አስተዳዳሪ ነው", "This email is already an admin"),
    "admin_created": ("አዲስ አስተዳዳሪ ተፈጥሯል", "New admin created"),
}


def message(key: str, lang: str = "am") -> str:
    am, en = MESSAGES[key]
    return en if lang == "en" else am


class ApiError(HTTPException):
    """HTTPException whose detail carries a message key in both languages."""

    def __init__(self, status_code: int, code: str, headers: dict | None = None):
        am, en = MESSAGES[code]
        super().__init__(
            status_code=status_code,
            detail={"code": code, "message": am, "message_en": en},
            headers=headers,
        )
        self.code = code


class DuplicateKeyError(Exception):
    """Raised by db clients when a unique column already holds the value."""
