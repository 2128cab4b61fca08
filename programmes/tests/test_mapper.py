import dataclasses
import math
import unittest

from programmes.mapper import clean_programme_values, parse_int, programme_from_row
from programmes.schema import FIELDS
from programmes.tests.fixtures import COMPUTER_SCIENCE, make_row


class TestParseInt(unittest.TestCase):
    def test_prefix_semantics(self):
        self.assertEqual(parse_int("5"), 5)
        self.assertEqual(parse_int("  12abc"), 12)
        self.assertEqual(parse_int("1.9"), 1)
        self.assertEqual(parse_int("-3"), -3)
        self.assertEqual(parse_int("+4"), 4)

    def test_no_digits(self):
        self.assertIsNone(parse_int(""))
        self.assertIsNone(parse_int("abc"))
        self.assertIsNone(parse_int("- 3"))
        self.assertIsNone(parse_int(None))


class TestProgrammeFromRow(unittest.TestCase):
    def test_example_row(self):
        p = programme_from_row(COMPUTER_SCIENCE)
        self.assertIs(p.full_time, True)
        self.assertIs(p.part_time, False)
        self.assertIs(p.evening, False)
        self.assertEqual(p.csec_passes, 5)
        self.assertEqual(p.cape_passes, 2)
        self.assertEqual(p["CSECMandatory"], "English, Mathematics")
        self.assertEqual(p.degree1, "BSc")
        self.assertEqual(p.faculty, "Science")

    def test_trims_requirement_fields_but_not_free_text(self):
        p = programme_from_row(make_row(
            Programme="  Computer Science ",
            CAPEAny2of=" Physics, Chemistry ",
            Description="  Three years.  ",
            OtherRequirements=" Interview ",
        ))
        self.assertEqual(p.programme, "Computer Science")
        self.assertEqual(p.cape_any2of, "Physics, Chemistry")
        self.assertEqual(p.description, "  Three years.  ")
        self.assertEqual(p.other_requirements, " Interview ")

    def test_garbage_numbers_clean_to_zero(self):
        p = programme_from_row(make_row(FullTime="x", CSECPasses="many", CAPEPasses=""))
        self.assertIs(p.full_time, False)
        self.assertEqual(p.csec_passes, 0)
        self.assertEqual(p.cape_passes, 0)

    def test_flags_are_nonzero_tests(self):
        p = programme_from_row(make_row(FullTime="2", PartTime="1", Evening="0"))
        self.assertEqual((p.full_time, p.part_time, p.evening), (True, True, False))

    def test_every_field_string_or_finite_number(self):
        garbage = ["NaN", "", "  ", "Infinity", "1e9", "--", "0x1F", "٣"]
        for cell in garbage:
            row = [cell] * 24
            d = programme_from_row(row).to_dict()
            self.assertEqual(len(d), 24)
            for key, value in d.items():
                ok = isinstance(value, str) or (
                    isinstance(value, (int, float)) and math.isfinite(value)
                )
                self.assertTrue(ok, f"{key}={value!r} for cell {cell!r}")

    def test_to_dict_uses_stored_keys_in_column_order(self):
        d = programme_from_row(COMPUTER_SCIENCE).to_dict()
        self.assertEqual(list(d), [f.key for f in FIELDS])
        self.assertEqual(d["CAPEAny2of"], "")


class TestCleanProgrammeValues(unittest.TestCase):
    def test_replaces_none_and_nan(self):
        p = programme_from_row(COMPUTER_SCIENCE)
        dirty = dataclasses.replace(p, csec_passes=None, cape_passes=float("nan"))
        clean = clean_programme_values(dirty)
        self.assertEqual(clean.csec_passes, 0)
        self.assertEqual(clean.cape_passes, 0)
        self.assertEqual(clean.programme, "Computer Science")

    def test_clean_record_is_returned_as_is(self):
        p = programme_from_row(COMPUTER_SCIENCE)
        self.assertIs(clean_programme_values(p), p)


if __name__ == "__main__":
    unittest.main()
