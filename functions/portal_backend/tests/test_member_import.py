import io
import unittest

from openpyxl import Workbook

from portal_backend.db import InMemoryDbClient, MemberRecord
from portal_backend.member_import import (
    MemberImportError,
    duplicate_key,
    find_header,
    import_members,
    normalize_phone,
    row_to_member,
    woreda_choices,
)


def _workbook_bytes(rows):
    workbook = Workbook()
    worksheet = workbook.active
    for row in rows:
        worksheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class HelperTests(unittest.TestCase):
    def test_woreda_choices_are_zero_padded(self):
        self.assertEqual(woreda_choices(3), ["01", "02", "03"])

    def test_normalize_phone(self):
        self.assertEqual(normalize_phone(911223344), "0911223344")
        self.assertEqual(normalize_phone("0911-22 33 44"), "0911223344")
        self.assertEqual(normalize_phone("+251911223344"), "+251911223344")
        self.assertEqual(normalize_phone(None), "")

    def test_find_header_skips_title_rows(self):
        rows = [
            ("የአባላት መዝገብ", None, None),
            (None, None, None),
            ("ስም", "የአባት ስም", "Phone Number"),
        ]
        index, mapping = find_header(rows)
        self.assertEqual(index, 2)
        self.assertEqual(mapping, {0: "first_name", 1: "father_name", 2: "phone"})

    def test_find_header_needs_two_known_columns(self):
        with self.assertRaises(MemberImportError) as ctx:
            find_header([("ስም", "notes"), ("a", "b")])
        self.assertEqual(ctx.exception.code, "invalid_workbook")

    def test_full_name_is_split(self):
        member = row_to_member(
            ("Meron Alemu Kebede", "F"),
            {0: "full_name", 1: "gender"},
            woreda="03",
            default_subcity="አቃቂ ቃሊቲ",
        )
        self.assertEqual(member.first_name, "Meron")
        self.assertEqual(member.father_name, "Alemu")
        self.assertEqual(member.grand_father_name, "Kebede")
        self.assertEqual(member.subcity, "አቃቂ ቃሊቲ")
        self.assertEqual(member.status, "active")

    def test_single_word_name_is_invalid(self):
        member = row_to_member(
            ("Meron",), {0: "full_name"}, woreda="03", default_subcity=""
        )
        self.assertIsNone(member)

    def test_flags_and_status(self):
        member = row_to_member(
            ("Meron", "Alemu", "አዎ", "Pending", 29.0),
            {
                0: "first_name",
                1: "father_name",
                2: "membership_fee_paid",
                3: "status",
                4: "age",
            },
            woreda="03",
            default_subcity="",
        )
        self.assertTrue(member.membership_fee_paid)
        self.assertEqual(member.status, "pending")
        self.assertEqual(member.age, 29)

    def test_duplicate_key_prefers_membership_id(self):
        with_id = MemberRecord(
            first_name="A", father_name="B", phone="0911", membership_id=" PP-01 "
        )
        self.assertEqual(duplicate_key(with_id), ("membership_id", "pp-01"))
        by_phone = MemberRecord(first_name="A", father_name="B", phone="+251 911")
        self.assertEqual(duplicate_key(by_phone), ("phone", "251911"))
        by_name = MemberRecord(first_name="A", father_name="B", woreda="02")
        self.assertEqual(duplicate_key(by_name), ("name", "a", "b", "", "02"))


class ImportMembersTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()

    def test_imports_english_headers(self):
        data = _workbook_bytes(
            [
                ["First Name", "Father Name", "Grandfather Name", "Phone", "Kebele", "Age"],
                ["Meron", "Alemu", "Kebede", 933444555, 11, 29],
                ["Selam", "Girma", "", "0944555666", "07", None],
            ]
        )
        result = import_members(
            data,
            "03",
            self.db,
            uploaded_by="acc-1",
            uploaded_by_email="clerk@example.com",
            default_subcity="አቃቂ ቃሊቲ",
        )
        self.assertEqual(result.stats.as_dict(), {"total": 2, "inserted": 2, "duplicates": 0, "invalid": 0})

        members = {m.first_name: m for m in self.db.list_members()}
        self.assertEqual(members["Meron"].phone, "0933444555")
        self.assertEqual(members["Meron"].kebele, "11")
        self.assertEqual(members["Meron"].woreda, "03")
        self.assertEqual(members["Meron"].uploaded_by_email, "clerk@example.com")
        self.assertIsNone(members["Selam"].age)

    def test_skips_blank_rows_and_counts_invalid(self):
        data = _workbook_bytes(
            [
                ["ስም", "የአባት ስም", "ስልክ"],
                ["Meron", "Alemu", "0933444555"],
                [None, None, None],
                ["", "Girma", "0944555666"],
            ]
        )
        result = import_members(data, "01", self.db)
        self.assertEqual(result.stats.total, 2)
        self.assertEqual(result.stats.inserted, 1)
        self.assertEqual(result.stats.invalid, 1)

    def test_duplicates_against_existing_members_and_file(self):
        self.db.insert_member(
            MemberRecord(first_name="Old", father_name="Member", phone="0933444555")
        )
        data = _workbook_bytes(
            [
                ["ስም", "የአባት ስም", "ስልክ", "የአባልነት መታወቂያ"],
                ["Meron", "Alemu", "0933 444 555", None],
                ["Selam", "Girma", "0944555666", "PP-7"],
                ["Selam", "Girma", "0900000000", "pp-7"],
            ]
        )
        result = import_members(data, "02", self.db)
        self.assertEqual(result.stats.duplicates, 2)
        self.assertEqual(result.stats.inserted, 1)
        self.assertEqual([m.first_name for m in result.inserted], ["Selam"])
        self.assertEqual(len(self.db.list_members()), 2)

    def test_unrepresentable_age_becomes_none(self):
        data = _workbook_bytes(
            [
                ["ስም", "የአባት ስም", "ስልክ", "እድሜ"],
                ["Meron", "Alemu", "0933444555", "inf"],
                ["Selam", "Girma", "0944555666", "1e400"],
                ["Hana", "Tesfaye", "0922334455", "nan"],
            ]
        )
        result = import_members(data, "01", self.db)
        self.assertEqual(result.stats.inserted, 3)
        self.assertEqual([m.age for m in result.inserted], [None, None, None])

    def test_reimporting_same_file_inserts_nothing(self):
        data = _workbook_bytes(
            [["ስም", "የአባት ስም", "ስልክ"], ["Meron", "Alemu", "0933444555"]]
        )
        import_members(data, "02", self.db)
        result = import_members(data, "02", self.db)
        self.assertEqual(result.stats.inserted, 0)
        self.assertEqual(result.stats.duplicates, 1)

    def test_invalid_woreda(self):
        with self.assertRaises(MemberImportError) as ctx:
            import_members(b"", "15", self.db)
        self.assertEqual(ctx.exception.code, "woreda_required")

    def test_invalid_workbook(self):
        with self.assertRaises(MemberImportError) as ctx:
            import_members(b"plain text", "01", self.db)
        self.assertEqual(ctx.exception.code, "invalid_workbook")


if __name__ == "__main__":
    unittest.main()
