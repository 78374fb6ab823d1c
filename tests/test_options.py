import tempfile
import unittest
from pathlib import Path

from mysqldiff.options import DEFAULT_TOLERANCE_RULES, DiffOptions, NormalizationRule, load_options


class TestDiffOptions(unittest.TestCase):
    def test_defaults(self) -> None:
        options = DiffOptions()
        self.assertFalse(options.tolerant)
        self.assertEqual(options.describe(), "")
        self.assertTrue(options.table_selected("anything"))

    def test_table_re(self) -> None:
        options = DiffOptions(table_re="^ba")
        self.assertTrue(options.table_selected("bar"))
        self.assertFalse(options.table_selected("foo"))

    def test_invalid_table_re(self) -> None:
        with self.assertRaises(ValueError):
            DiffOptions(table_re="(")

    def test_normalization_only_when_tolerant(self) -> None:
        definition = "int(11) NOT NULL"
        self.assertEqual(DiffOptions().normalize_column(definition), definition)
        self.assertEqual(DiffOptions(tolerant=True).normalize_column(definition), "int")

    def test_float_precision_rule(self) -> None:
        options = DiffOptions(tolerant=True)
        self.assertEqual(options.normalize_column("double(10,2) DEFAULT NULL"), "double DEFAULT NULL")

    def test_describe(self) -> None:
        options = DiffOptions(no_old_defs=True, only_both=True, table_re="x")
        self.assertEqual(options.describe(), "no-old-defs, only-both, table-re=x")

    def test_bad_rule(self) -> None:
        with self.assertRaises(ValueError):
            NormalizationRule("bad", "column", "(")
        with self.assertRaises(ValueError):
            NormalizationRule("bad", "table", "x")


class TestLoadOptions(unittest.TestCase):
    def write(self, td: str, content: str) -> Path:
        path = Path(td) / "mysqldiff.yaml"
        path.write_text(content, encoding="utf-8")
        return path

    def test_load(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self.write(
                td,
                "tolerant: true\n"
                "no-old-defs: yes\n"
                "table-re: '^app_'\n"
                "tolerance_rules:\n"
                "  - name: strip-charset\n"
                "    pattern: ' CHARACTER SET \\w+'\n",
            )
            options = load_options(path)
        self.assertTrue(options.tolerant)
        self.assertTrue(options.no_old_defs)
        self.assertEqual(options.table_re, "^app_")
        self.assertEqual(options.tolerance_rules[: len(DEFAULT_TOLERANCE_RULES)], DEFAULT_TOLERANCE_RULES)
        self.assertEqual(options.tolerance_rules[-1].name, "strip-charset")
        self.assertEqual(options.normalize_column("varchar(5) CHARACTER SET utf8"), "varchar(5)")

    def test_empty_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            options = load_options(self.write(td, ""))
        self.assertEqual(options, DiffOptions())

    def test_unknown_key(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self.write(td, "colour: blue\n")
            with self.assertRaises(ValueError):
                load_options(path)

    def test_not_a_mapping(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self.write(td, "- a\n- b\n")
            with self.assertRaises(ValueError):
                load_options(path)

    def test_rule_without_pattern(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = self.write(td, "tolerance_rules:\n  - name: x\n")
            with self.assertRaises(ValueError):
                load_options(path)


if __name__ == "__main__":
    unittest.main()
