"""
Bulk member ingestion from an uploaded Excel workbook.

The header row may use the English field names or the Amharic labels of the
branch's membership register. Rows that repeat an existing member (or an
earlier row of the same file) are counted as duplicates and skipped.
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Optional, Sequence
from zipfile import BadZipFile

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from portal_backend.db import MEMBER_STATUSES, DbClient, MemberRecord

logger = logging.getLogger(__name__)

HEADER_SCAN_ROWS = 10

HEADER_ALIASES = {
    "first_name": "first_name",
    "ስም": "first_name",
    "የመጀመሪያ ስም": "first_name",
    "father_name": "father_name",
    "የአባት ስም": "father_name",
    "grand_father_name": "grand_father_name",
    "grandfather_name": "grand_father_name",
    "የአያት ስም": "grand_father_name",
    "full_name": "full_name",
    "ሙሉ ስም": "full_name",
    "gender": "gender",
    "sex": "gender",
    "ጾታ": "gender",
    "ፆታ": "gender",
    "age": "age",
    "እድሜ": "age",
    "ዕድሜ": "age",
    "date_of_birth": "date_of_birth",
    "የትውልድ ቀን": "date_of_birth",
    "phone": "phone",
    "phone_number": "phone",
    "ስልክ": "phone",
    "ስልክ ቁጥር": "phone",
    "email": "email",
    "ኢሜይል": "email",
    "subcity": "subcity",
    "sub_city": "subcity",
    "ክፍለ ከተማ": "subcity",
    "woreda": "woreda",
    "ወረዳ": "woreda",
    "kebele": "kebele",
    "ቀበሌ": "kebele",
    "house_number": "house_number",
    "የቤት ቁጥር": "house_number",
    "education_level": "education_level",
    "education": "education_level",
    "የትምህርት ደረጃ": "education_level",
    "occupation": "occupation",
    "ስራ": "occupation",
    "ሙያ": "occupation",
    "membership_date": "membership_date",
    "የአባልነት ቀን": "membership_date",
    "membership_fee_paid": "membership_fee_paid",
    "fee_paid": "membership_fee_paid",
    "ክፍያ": "membership_fee_paid",
    "membership_id": "membership_id",
    "የአባልነት መታወቂያ": "membership_id",
    "status": "status",
    "ሁኔታ": "status",
}

_TRUE_VALUES = {"yes", "y", "true", "1", "አዎ", "ተከፍሏል"}
_FALSE_VALUES = {"no", "n", "false", "0", "አይ", "አልተከፈለም"}


class MemberImportError(Exception):
    """Raised when an upload cannot be processed at all."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


@dataclass
class ImportStats:
    total: int = 0
    inserted: int = 0
    duplicates: int = 0
    invalid: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class ImportResult:
    stats: ImportStats
    inserted: list[MemberRecord] = field(default_factory=list)


def woreda_choices(count: int) -> list[str]:
    return [f"{number:02d}" for number in range(1, count + 1)]


def _normalize_header(value: Any) -> str:
    text = re.sub(r"\s+", " ", str(value)).strip()
    if text.isascii():
        text = text.lower().replace(" ", "_").replace("-", "_")
    return text


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def _optional_text(value: Any) -> Optional[str]:
    return _text(value) or None


def normalize_phone(value: Any) -> str:
    phone = re.sub(r"[\s\-]", "", _text(value))
    # Excel drops the leading zero of numeric mobile numbers.
    if phone.isdigit() and len(phone) == 9 and phone.startswith("9"):
        phone = "0" + phone
    return phone


def _age(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def _flag(value: Any) -> Optional[bool]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return None


def _read_rows(data: bytes) -> list[tuple]:
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError, ValueError) as exc:
        raise MemberImportError("invalid_workbook") from exc
    try:
        worksheet = workbook.active
        return [tuple(row) for row in worksheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def find_header(rows: Sequence[tuple]) -> tuple[int, dict[int, str]]:
    """Return the header row index and a column -> field map.

    The header is the first of the leading rows with at least two cells that
    name a known field.
    """
    for row_index, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        mapping: dict[int, str] = {}
        for col_index, cell in enumerate(row):
            if cell is None:
                continue
            target = HEADER_ALIASES.get(_normalize_header(cell))
            if target and target not in mapping.values():
                mapping[col_index] = target
        if len(mapping) >= 2:
            return row_index, mapping
    raise MemberImportError("invalid_workbook")


def row_to_member(
    row: tuple,
    mapping: dict[int, str],
    *,
    woreda: str,
    default_subcity: str,
    uploaded_by: Optional[str] = None,
    uploaded_by_email: Optional[str] = None,
) -> Optional[MemberRecord]:
    """Map a data row to a member, or None when the names are missing."""
    values = {
        target: row[index] for index, target in mapping.items() if index < len(row)
    }

    first_name = _text(values.get("first_name"))
    father_name = _text(values.get("father_name"))
    grand_father_name = _text(values.get("grand_father_name"))
    if "full_name" in values and not first_name:
        parts = _text(values["full_name"]).split()
        first_name = parts[0] if parts else ""
        father_name = father_name or (parts[1] if len(parts) > 1 else "")
        grand_father_name = grand_father_name or " ".join(parts[2:])
    if not first_name or not father_name:
        return None

    status = _text(values.get("status")).lower()
    return MemberRecord(
        first_name=first_name,
        father_name=father_name,
        grand_father_name=grand_father_name,
        gender=_text(values.get("gender")),
        age=_age(values.get("age")),
        date_of_birth=_optional_text(values.get("date_of_birth")),
        phone=normalize_phone(values.get("phone")),
        email=_text(values.get("email")),
        subcity=_text(values.get("subcity")) or default_subcity,
        woreda=woreda,
        kebele=_optional_text(values.get("kebele")),
        house_number=_optional_text(values.get("house_number")),
        education_level=_optional_text(values.get("education_level")),
        occupation=_optional_text(values.get("occupation")),
        membership_date=_optional_text(values.get("membership_date")),
        membership_fee_paid=_flag(values.get("membership_fee_paid")),
        membership_id=_optional_text(values.get("membership_id")),
        status=status if status in MEMBER_STATUSES else "active",
        uploaded_by=uploaded_by,
        uploaded_by_email=uploaded_by_email,
    )


def duplicate_key(member: MemberRecord) -> tuple:
    if member.membership_id:
        return ("membership_id", member.membership_id.strip().lower())
    digits = re.sub(r"\D", "", member.phone or "")
    if digits:
        return ("phone", digits)
    return (
        "name",
        member.first_name.lower(),
        member.father_name.lower(),
        member.grand_father_name.lower(),
        member.woreda,
    )


def import_members(
    data: bytes,
    woreda: str,
    db: DbClient,
    *,
    uploaded_by: Optional[str] = None,
    uploaded_by_email: Optional[str] = None,
    default_subcity: str = "",
    woreda_count: int = 14,
) -> ImportResult:
    if woreda not in woreda_choices(woreda_count):
        raise MemberImportError("woreda_required")

    rows = _read_rows(data)
    header_index, mapping = find_header(rows)

    seen = {duplicate_key(member) for member in db.list_members()}
    stats = ImportStats()
    new_members: list[MemberRecord] = []
    for row in rows[header_index + 1 :]:
        if all(cell is None or str(cell).strip() == "" for cell in row):
            continue
        stats.total += 1
        member = row_to_member(
            row,
            mapping,
            woreda=woreda,
            default_subcity=default_subcity,
            uploaded_by=uploaded_by,
            uploaded_by_email=uploaded_by_email,
        )
        if member is None:
            stats.invalid += 1
            continue
        key = duplicate_key(member)
        if key in seen:
            stats.duplicates += 1
            continue
        seen.add(key)
        new_members.append(member)

    inserted = db.insert_members(new_members) if new_members else []
    stats.inserted = len(inserted)
    logger.info(
        "Imported members for woreda %s: total=%d inserted=%d duplicates=%d invalid=%d",
        woreda,
        stats.total,
        stats.inserted,
        stats.duplicates,
        stats.invalid,
    )
    return ImportResult(stats=stats, inserted=inserted)
