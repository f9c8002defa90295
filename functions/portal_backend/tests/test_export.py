import csv
import io
import unittest
from datetime import datetime, timezone

from openpyxl import load_workbook

from portal_backend.db import MemberRecord, MembershipApplicationRecord, QretaRecord
from portal_backend.export import (
    APPLICATION_COLUMNS,
    MEMBER_COLUMNS,
    QRETA_COLUMNS,
    ExportColumn,
    format_application,
    format_member,
    format_qreta,
    format_timestamp,
    to_csv,
    to_xlsx,
)

CREATED = datetime(2024, 3, 1, 21, 30, tzinfo=timezone.utc)


class FormattingTests(unittest.TestCase):
    def test_timestamp_is_addis_ababa_time(self):
        self.assertEqual(format_timestamp(CREATED), "2024-03-02 00:30:00")

    def test_naive_timestamp_is_treated_as_utc(self):
        self.assertEqual(format_timestamp(datetime(2024, 3, 1, 6, 0)), "2024-03-01 09:00:00")

    def test_application_row(self):
        record = MembershipApplicationRecord(
            full_name="Almaz Bekele",
            phone="0911000111",
            woreda="05",
            kebele="07",
            age=34,
            education_level="Degree",
            occupation="Teacher",
            status="accepted",
            created_at=CREATED,
        )
        row = format_application(record)
        self.assertEqual(row["status"], "ተቀባይነት አግኝቷል")
        self.assertEqual(row["email"], "")
        self.assertEqual(row["created_at"], "2024-03-02 00:30:00")

    def test_member_row(self):
        row = format_member(
            MemberRecord(first_name="Meron", father_name="Alemu", status="inactive")
        )
        self.assertEqual(row["status"], "ንቁ ያልሆነ")

    def test_unknown_status_passes_through(self):
        record = MembershipApplicationRecord(
            full_name="A",
            phone="0",
            woreda="1",
            kebele="1",
            age=20,
            education_level="x",
            occupation="y",
            status="archived",
        )
        self.assertEqual(format_application(record)["status"], "archived")


class XlsxTests(unittest.TestCase):
    def test_headers_rows_and_widths(self):
        record = QretaRecord(
            full_name="Hana",
            phone="0911223344",
            category="other",
            woreda="05",
            kebele="12",
            message="መንገድ ይጠገን",
            created_at=CREATED,
        )
        data = to_xlsx([format_qreta(record)], QRETA_COLUMNS, sheet_title="Qreta")
        workbook = load_workbook(io.BytesIO(data))
        sheet = workbook["Qreta"]
        rows = list(sheet.iter_rows(values_only=True))
        self.assertEqual(len(rows), 2)
        self.assertEqual(list(rows[0]), [c.header for c in QRETA_COLUMNS])
        self.assertEqual(rows[1][6], "መንገድ ይጠገን")
        self.assertEqual(sheet.column_dimensions["G"].width, 40)

    def test_text_starting_with_equals_is_not_a_formula(self):
        record = QretaRecord(
            full_name='=HYPERLINK("http://evil.example","x")',
            phone="0911223344",
            category="other",
            woreda="05",
            kebele="12",
            message="=1+1 is the message text",
            created_at=CREATED,
        )
        data = to_xlsx([format_qreta(record)], QRETA_COLUMNS)
        sheet = load_workbook(io.BytesIO(data)).active
        name_cell = sheet.cell(row=2, column=2)
        message_cell = sheet.cell(row=2, column=7)
        self.assertEqual(name_cell.data_type, "s")
        self.assertEqual(name_cell.value, '=HYPERLINK("http://evil.example","x")')
        self.assertEqual(message_cell.data_type, "s")
        self.assertEqual(message_cell.value, "=1+1 is the message text")

    def test_empty_export_has_header_only(self):
        data = to_xlsx([], MEMBER_COLUMNS)
        sheet = load_workbook(io.BytesIO(data)).active
        self.assertEqual(sheet.max_row, 1)
        self.assertEqual(sheet.cell(row=1, column=2).value, "ስም")

    def test_application_columns_order(self):
        keys = [c.key for c in APPLICATION_COLUMNS]
        self.assertEqual(keys[0], "id")
        self.assertEqual(keys[-1], "created_at")


class CsvTests(unittest.TestCase):
    def setUp(self):
        self.columns = (ExportColumn("ስም", "name"), ExportColumn("Note", "note"))

    def test_bom_and_header(self):
        data = to_csv([], self.columns)
        self.assertTrue(data.startswith(b"\xef\xbb\xbf"))
        self.assertEqual(data.decode("utf-8-sig"), "ስም,Note\n")

    def test_quotes_commas_quotes_and_newlines(self):
        rows = [{"name": "Hana, T", "note": 'said "hi"\nthen left'}, {"name": "Sara", "note": None}]
        data = to_csv(rows, self.columns)
        text = data.decode("utf-8-sig")
        self.assertIn('"Hana, T","said ""hi""\nthen left"', text)
        parsed = list(csv.reader(io.StringIO(text)))
        self.assertEqual(parsed[1], ["Hana, T", 'said "hi"\nthen left'])
        self.assertEqual(parsed[2], ["Sara", ""])


if __name__ == "__main__":
    unittest.main()
