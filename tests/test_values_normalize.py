import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from app.values_normalize import default_value, normalize_value, normalize_values, stringify


TYPES = ("text", "textarea", "number", "date", "time", "email", "phone", "select", "checkbox")
RAW_INPUTS = [None, "", "  ", "abc", "42", " 3.5 ", "nan", "inf", "-7", 0, 1, 2.5, 4.0, True, False, float("nan"), float("inf"), [1], {"a": 1}]


class TestValuesNormalize(unittest.TestCase):
    def test_checkbox_truthiness(self) -> None:
        field = {"type": "checkbox"}
        self.assertIs(normalize_value(field, None), False)
        self.assertIs(normalize_value(field, ""), False)
        self.assertIs(normalize_value(field, "yes"), True)
        self.assertIs(normalize_value(field, 0), False)
        self.assertIs(normalize_value(field, 1), True)

    def test_number_absent_values(self) -> None:
        field = {"type": "number"}
        self.assertIsNone(normalize_value(field, None))
        self.assertIsNone(normalize_value(field, ""))
        self.assertIsNone(normalize_value(field, "   "))

    def test_number_parses_strings(self) -> None:
        field = {"type": "number"}
        self.assertEqual(normalize_value(field, "42"), 42)
        self.assertEqual(normalize_value(field, " 3.5 "), 3.5)
        self.assertEqual(normalize_value(field, "-7"), -7)

    def test_number_invalid_collapses_to_none(self) -> None:
        field = {"type": "number"}
        self.assertIsNone(normalize_value(field, "abc"))
        self.assertIsNone(normalize_value(field, "nan"))
        self.assertIsNone(normalize_value(field, "inf"))
        self.assertIsNone(normalize_value(field, float("inf")))
        self.assertIsNone(normalize_value(field, [1]))

    def test_number_keeps_finite_numbers(self) -> None:
        field = {"type": "number"}
        self.assertEqual(normalize_value(field, 0), 0)
        self.assertEqual(normalize_value(field, 2.5), 2.5)
        self.assertEqual(normalize_value(field, True), 1)

    def test_text_types_stringify(self) -> None:
        field = {"type": "email"}
        self.assertEqual(normalize_value(field, None), "")
        self.assertEqual(normalize_value(field, "a@b.com"), "a@b.com")
        self.assertEqual(normalize_value(field, 12), "12")
        self.assertEqual(normalize_value(field, 4.0), "4")
        self.assertEqual(normalize_value(field, True), "true")

    def test_text_passes_strings_unchanged(self) -> None:
        self.assertEqual(normalize_value({"type": "text"}, "  padded  "), "  padded  ")

    def test_unknown_type_treated_as_text(self) -> None:
        self.assertEqual(normalize_value({"type": "rating"}, 5), "5")

    def test_total_and_idempotent(self) -> None:
        for ftype in TYPES:
            field = {"type": ftype, "key": "k"}
            for raw in RAW_INPUTS:
                with self.subTest(ftype=ftype, raw=raw):
                    once = normalize_value(field, raw)
                    self.assertEqual(normalize_value(field, once), once)

    def test_default_value_per_type(self) -> None:
        self.assertIs(default_value({"type": "checkbox"}), False)
        self.assertIsNone(default_value({"type": "number"}))
        self.assertEqual(default_value({"type": "select"}), "")

    def test_normalize_values_uses_field_order_and_drops_extra_keys(self) -> None:
        fields = [{"key": "amount", "type": "number"}, {"key": "done", "type": "checkbox"}, {"key": "name", "type": "text"}]
        values = normalize_values(fields, {"name": "Ada", "legacy": "x", "amount": "10"})
        self.assertEqual(list(values.keys()), ["amount", "done", "name"])
        self.assertEqual(values, {"amount": 10, "done": False, "name": "Ada"})

    def test_stringify(self) -> None:
        self.assertEqual(stringify(None), "")
        self.assertEqual(stringify(False), "false")
        self.assertEqual(stringify(1.25), "1.25")


if __name__ == "__main__":
    unittest.main()
