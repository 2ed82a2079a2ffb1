from __future__ import annotations

import json
import shutil
import unittest
from pathlib import Path

from contracts.textmap import BlockKind
from rules.loader import RulesError, load_rulebook, rulebook_from_dict


class TestRulesLoader(unittest.TestCase):
    def test_builtin_tables(self) -> None:
        book = load_rulebook()
        self.assertEqual(book.source, "builtin")

        srb2 = book.for_namespace("SRB2")
        self.assertIsNotNone(srb2)
        self.assertEqual(srb2.engine, "srb2")
        self.assertTrue(srb2.vertex_slopes)
        self.assertEqual(srb2.slope_specials, frozenset({700, 704, 720, 799}))
        self.assertIn("floorplane_a", srb2.slope_sector_fields)
        self.assertEqual(srb2.defaults[BlockKind.SIDEDEF]["texturetop"], '"-"')
        self.assertEqual(srb2.defaults[BlockKind.LINEDEF]["blocking"], "false")
        self.assertEqual(srb2.defaults[BlockKind.LINEDEF]["sideback"], "-1")
        self.assertEqual(srb2.defaults[BlockKind.SECTOR]["lightalpha"], "25")

        self.assertEqual(book.for_namespace("hexen").engine, "doom-family")
        self.assertIsNone(book.for_namespace("eternity"))
        self.assertIsNone(book.for_namespace(None))

    def test_missing_tables_are_none(self) -> None:
        book = rulebook_from_dict({"engines": [{"engine": "bare", "namespaces": ["bare"]}]})
        rules = book.for_namespace("bare")
        self.assertFalse(rules.vertex_slopes)
        self.assertIsNone(rules.slope_specials)
        self.assertIsNone(rules.defaults)
        self.assertEqual(rules.to_dict()["namespaces"], ["bare"])

    def test_malformed_documents_raise(self) -> None:
        cases = [
            {},
            {"engines": "srb2"},
            {"engines": [{"namespaces": ["x"]}]},
            {"engines": [{"engine": "x", "namespaces": []}]},
            {"engines": [{"engine": "x", "namespaces": ["x"], "slope_specials": ["700"]}]},
            {"engines": [{"engine": "x", "namespaces": ["x"], "defaults": {"wall": {"a": 0}}}]},
            {"engines": [{"engine": "x", "namespaces": ["x"], "defaults": {"sector": {"a": [0]}}}]},
            {
                "engines": [
                    {"engine": "a", "namespaces": ["shared"]},
                    {"engine": "b", "namespaces": ["SHARED"]},
                ]
            },
        ]
        for d in cases:
            with self.subTest(d=d):
                with self.assertRaises(RulesError):
                    rulebook_from_dict(d)

    def test_load_from_file(self) -> None:
        repo_root = Path(__file__).resolve().parents[1]
        tmp = repo_root / "artifacts" / "_test_rules_loader"
        if tmp.exists():
            shutil.rmtree(tmp)
        tmp.mkdir(parents=True, exist_ok=True)
        try:
            good = tmp / "rules.json"
            good.write_text(
                json.dumps({"engines": [{"engine": "custom", "namespaces": ["custom"], "no_angle_thing_types": [1, 2]}]}),
                encoding="utf-8",
            )
            book = load_rulebook(good)
            self.assertEqual(book.source, str(good))
            self.assertEqual(book.for_namespace("custom").no_angle_thing_types, frozenset({1, 2}))

            bad = tmp / "bad.json"
            bad.write_text("{ not json", encoding="utf-8")
            with self.assertRaises(RulesError):
                load_rulebook(bad)

            with self.assertRaises(RulesError):
                load_rulebook(tmp / "missing.json")
        finally:
            shutil.rmtree(tmp, ignore_errors=True)


if __name__ == "__main__":
    unittest.main()
