"""
Spreadsheet and CSV export of admin tables.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from portal_backend.db import (
    MemberRecord,
    MembershipApplicationRecord,
    QretaRecord,
    ReportRecord,
)

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"

# Addis Ababa, no daylight saving.
EXPORT_TZ = timezone(timedelta(hours=3))
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class ExportColumn:
    header: str
    key: str
    width: int = 10


APPLICATION_COLUMNS = (
    ExportColumn("ID", "id", 15),
    ExportColumn("ሙሉ ስም", "full_name", 20),
    ExportColumn("ስልክ", "phone", 15),
    ExportColumn("ኢሜይል", "email", 25),
    ExportColumn("ወረዳ", "woreda", 15),
    ExportColumn("ቀበሌ", "kebele", 15),
    ExportColumn("እድሜ", "age", 10),
    ExportColumn("የትምህርት ደረጃ", "education_level", 20),
    ExportColumn("ስራ", "occupation", 20),
    ExportColumn("ሁኔታ", "status", 15),
    ExportColumn("የተፈጠረበት ጊዜ", "created_at", 20),
)

QRETA_COLUMNS = (
    ExportColumn("ID", "id", 15),
    ExportColumn("ሙሉ ስም", "full_name", 20),
    ExportColumn("ስልክ", "phone", 15),
    ExportColumn("ኢሜይል", "email", 25),
    ExportColumn("ወረዳ", "woreda", 15),
    ExportColumn("ቀበሌ", "kebele", 15),
    ExportColumn("መልዕክት", "message", 40),
    ExportColumn("የተፈጠረበት ጊዜ", "created_at", 20),
)

REPORT_COLUMNS = (
    ExportColumn("ID", "id"),
    ExportColumn("ሙሉ ስም", "full_name"),
    ExportColumn("ስልክ", "phone"),
    ExportColumn("ኢሜይል", "email"),
    ExportColumn("ወረዳ", "woreda"),
    ExportColumn("ቀበሌ", "kebele"),
    ExportColumn("የሪፖርት ዓይነት", "report_type"),
    ExportColumn("የሪፖርት ዝርዝር", "report_details"),
    ExportColumn("የተፈጠረበት ጊዜ", "created_at"),
)

MEMBER_COLUMNS = (
    ExportColumn("ID", "id", 15),
    ExportColumn("ስም", "first_name", 15),
    ExportColumn("የአባት ስም", "father_name", 15),
    ExportColumn("የአያት ስም", "grand_father_name", 15),
    ExportColumn("ጾታ", "gender", 8),
    ExportColumn("እድሜ", "age", 8),
    ExportColumn("ስልክ", "phone", 15),
    ExportColumn("ኢሜይል", "email", 25),
    ExportColumn("ክፍለ ከተማ", "subcity", 15),
    ExportColumn("ወረዳ", "woreda", 10),
    ExportColumn("ቀበሌ", "kebele", 10),
    ExportColumn("የቤት ቁጥር", "house_number", 12),
    ExportColumn("የትምህርት ደረጃ", "education_level", 20),
    ExportColumn("ስራ", "occupation", 20),
    ExportColumn("የአባልነት መታወቂያ", "membership_id", 18),
    ExportColumn("ሁኔታ", "status", 15),
    ExportColumn("የተፈጠረበት ጊዜ", "created_at", 20),
)

APPLICATION_STATUS_LABELS = {
    "pending": "በመጠባበቅ ላይ",
    "accepted": "ተቀባይነት አግኝቷል",
    "rejected": "ተቀባይነት አላገኘም",
}

MEMBER_STATUS_LABELS = {
    "active": "ንቁ",
    "pending": "በመጠባበቅ ላይ",
    "inactive": "ንቁ ያልሆነ",
}


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(EXPORT_TZ).strftime(TIMESTAMP_FORMAT)


def format_application(record: MembershipApplicationRecord) -> dict:
    row = record.as_dict()
    row["status"] = APPLICATION_STATUS_LABELS.get(record.status, record.status)
    row["created_at"] = format_timestamp(record.created_at)
    row["email"] = record.email or ""
    return row


def format_qreta(record: QretaRecord) -> dict:
    row = record.as_dict()
    row["created_at"] = format_timestamp(record.created_at)
    row["email"] = record.email or ""
    return row


def format_report(record: ReportRecord) -> dict:
    row = record.as_dict()
    row["created_at"] = format_timestamp(record.created_at)
    row["email"] = record.email or ""
    return row


def format_member(record: MemberRecord) -> dict:
    row = record.as_dict()
    row["status"] = MEMBER_STATUS_LABELS.get(record.status, record.status)
    row["created_at"] = format_timestamp(record.created_at)
    return row


def to_xlsx(
    rows: Iterable[dict],
    columns: Sequence[ExportColumn],
    sheet_title: str = "Sheet1",
) -> bytes:
    """Serialize rows into an .xlsx workbook with one header row."""
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = sheet_title

    worksheet.append([col.header for col in columns])
    count = 0
    for row in rows:
        worksheet.append([row.get(col.key) for col in columns])
        # Submitted text is data; openpyxl would store "=..." as a formula.
        for cell in worksheet[worksheet.max_row]:
            if isinstance(cell.value, str) and cell.value.startswith("="):
                cell.data_type = "s"
        count += 1
    for index, col in enumerate(columns, start=1):
        worksheet.column_dimensions[get_column_letter(index)].width = col.width

    buffer = io.BytesIO()
    workbook.save(buffer)
    logger.info("Exported %d rows to xlsx", count)
    return buffer.getvalue()


def to_csv(rows: Iterable[dict], columns: Sequence[ExportColumn]) -> bytes:
    """Serialize rows as UTF-8 CSV with a BOM so Excel shows Ethiopic text."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([col.header for col in columns])
    for row in rows:
        writer.writerow(["" if row.get(col.key) is None else row.get(col.key) for col in columns])
    return ("\ufeff" + buffer.getvalue()).encode("utf-8")
