from __future__ import annotations

import contextlib
import io
import json
import shutil
import struct
import unittest
from pathlib import Path

from optimize.config import OptimizeConfig
from wad.cli import main as cli_main
from wad.container import Lump, WadArchive, WadFormatError, build_wad, read_wad
from wad.module import run_optimize_wad

_MAP01 = b"""\
namespace = "srb2";
vertex { x = 0.000; y = 0.000; }
vertex { x = 64.000; y = 0.000; }
linedef { v1 = 0; v2 = 1; sidefront = 0; sideback = 1; special = 0; }
sidedef { sector = 0; texturemiddle = "-"; }
sidedef { sector = 1; texturemiddle = "-"; }
sector { texturefloor = "F"; textureceiling = "C"; heightceiling = 128; }
sector { texturefloor = "F"; textureceiling = "C"; heightceiling = 128; }
"""

_BROKEN = b'namespace = "srb2"; sector { texturefloor = "F; }'

_BINARY = bytes(range(256))


def _sample_archive() -> WadArchive:
    return WadArchive(
        ident="PWAD",
        lumps=[
            Lump(name="MAP01", data=b""),
            Lump(name="TEXTMAP", data=_MAP01),
            Lump(name="ENDMAP", data=b""),
            Lump(name="MAP02", data=b""),
            Lump(name="TEXTMAP", data=_BROKEN),
            Lump(name="ENDMAP", data=b""),
            Lump(name="PLAYPAL", data=_BINARY),
        ],
    )


class TestWadEndToEnd(unittest.TestCase):
    def setUp(self) -> None:
        repo_root = Path(__file__).resolve().parents[1]
        self.tmp = repo_root / "artifacts" / "_test_wad_end_to_end"
        if self.tmp.exists():
            shutil.rmtree(self.tmp)
        self.tmp.mkdir(parents=True, exist_ok=True)
        data, _ = build_wad(_sample_archive())
        self.input_wad = self.tmp / "in.wad"
        self.input_wad.write_bytes(data)

    def tearDown(self) -> None:
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_container_layout(self) -> None:
        data, offsets = build_wad(_sample_archive())
        ident, count, dir_offset = struct.unpack_from("<4sii", data, 0)
        self.assertEqual((ident, count), (b"PWAD", 7))
        self.assertEqual(dir_offset, len(data) - 7 * 16)
        self.assertEqual(offsets[0], 12)
        self.assertEqual(offsets[2], 12 + len(_MAP01))

        archive = read_wad(data)
        self.assertEqual([lump.name for lump in archive.lumps], [lump.name for lump in _sample_archive().lumps])
        self.assertEqual(archive.lumps[6].data, _BINARY)

    def test_lump_name_bytes_are_written_back_unchanged(self) -> None:
        data = (
            struct.pack("<4sii", b"PWAD", 2, 15)
            + b"abc"
            + struct.pack("<ii8s", 12, 3, b"MAP\xe901\x00\x00")
            + struct.pack("<ii8s", 15, 0, b"ENDMAP\x00X")
        )

        archive = read_wad(data)
        rebuilt, _ = build_wad(archive)

        self.assertEqual(rebuilt, data)
        self.assertEqual(archive.lumps[1].name, "ENDMAP")

    def test_bad_containers_rejected(self) -> None:
        with self.assertRaises(WadFormatError):
            read_wad(b"PWAD")
        with self.assertRaises(WadFormatError):
            read_wad(struct.pack("<4sii", b"ZWAD", 0, 12))
        with self.assertRaises(WadFormatError):
            read_wad(struct.pack("<4sii", b"IWAD", 5, 12))
        with self.assertRaises(WadFormatError):
            read_wad(struct.pack("<4sii", b"IWAD", 1, 12) + struct.pack("<ii8s", 12, 999, b"BIG"))

    def test_optimize_wad(self) -> None:
        out = self.tmp / "out.wad"
        original = self.input_wad.read_bytes()

        result = run_optimize_wad(
            input_path=self.input_wad, output_path=out, config=OptimizeConfig(), compute_sha256=True
        )

        # input untouched, output written
        self.assertEqual(self.input_wad.read_bytes(), original)
        self.assertTrue(out.exists())
        self.assertEqual(result.errors, [])
        self.assertEqual(result.wad_ident, "PWAD")

        # map 2 fails to parse: reported, left as is, WAD still written
        self.assertFalse(result.ok)
        self.assertEqual([m.map_name for m in result.maps], ["MAP01", "MAP02"])
        self.assertEqual([m.ok for m in result.maps], [True, False])
        self.assertEqual(result.meta["maps_failed"], 1)

        archive = read_wad(out.read_bytes())
        self.assertEqual(
            [lump.name for lump in archive.lumps],
            ["MAP01", "TEXTMAP", "ENDMAP", "MAP02", "TEXTMAP", "ENDMAP", "PLAYPAL"],
        )
        self.assertEqual(
            archive.lumps[1].data,
            b'namespace="srb2";vertex{x=0;y=0;}vertex{x=64;y=0;}'
            b"linedef{v1=0;v2=1;sidefront=0;sideback=1;}"
            b"sidedef{sector=0;}sidedef{sector=0;}"
            b'sector{texturefloor="F";textureceiling="C";heightceiling=128;}\n',
        )
        self.assertEqual(archive.lumps[4].data, _BROKEN)
        self.assertEqual(archive.lumps[6].data, _BINARY)

        # directory records agree with the written file
        for rec, lump in zip(result.lumps, archive.lumps):
            self.assertEqual(rec.size_out, len(lump.data))
            self.assertEqual(rec.offset_out, lump.offset)
        self.assertEqual(result.lumps[1].size_in, len(_MAP01))
        self.assertEqual(result.meta["bytes_out"], len(out.read_bytes()))
        self.assertEqual(len(result.meta["sha256_out"]), 64)

    def test_output_must_differ_from_input(self) -> None:
        original = self.input_wad.read_bytes()
        result = run_optimize_wad(input_path=self.input_wad, output_path=self.input_wad, config=OptimizeConfig())
        self.assertFalse(result.ok)
        self.assertEqual([e.code for e in result.errors], ["WAD_INPUT_IS_OUTPUT"])
        self.assertEqual(self.input_wad.read_bytes(), original)

    def test_missing_and_malformed_input(self) -> None:
        out = self.tmp / "out.wad"
        result = run_optimize_wad(input_path=self.tmp / "nope.wad", output_path=out, config=OptimizeConfig())
        self.assertEqual([e.code for e in result.errors], ["WAD_INPUT_UNREADABLE"])

        junk = self.tmp / "junk.wad"
        junk.write_bytes(b"not a wad at all")
        result = run_optimize_wad(input_path=junk, output_path=out, config=OptimizeConfig())
        self.assertEqual([e.code for e in result.errors], ["WAD_BAD_FORMAT"])
        self.assertFalse(out.exists())

    def test_unloadable_rules_fall_back(self) -> None:
        bad_rules = self.tmp / "rules.json"
        bad_rules.write_text("[]", encoding="utf-8")
        out = self.tmp / "out.wad"

        result = run_optimize_wad(
            input_path=self.input_wad, output_path=out, config=OptimizeConfig(), rules_path=bad_rules
        )

        self.assertEqual([w.code for w in result.warnings], ["RULES_UNAVAILABLE"])
        self.assertEqual(result.maps[0].engine, None)
        self.assertIn("SLOPE_DETECTION_UNAVAILABLE", [w.code for w in result.maps[0].warnings])
        # no defaults pruned without rules, but sectors still merge
        self.assertEqual(result.maps[0].counts["defaults_pruned"], 0)
        self.assertEqual(result.maps[0].counts["sectors_out"], 1)

    def test_cli_writes_output_and_report(self) -> None:
        out = self.tmp / "cli_out.wad"
        report = self.tmp / "report.json"

        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            rc = cli_main([str(self.input_wad), "-o", str(out), "--report", str(report), "--no-merge"])

        # MAP02 does not parse
        self.assertEqual(rc, 2)
        self.assertTrue(out.exists())
        self.assertIn("MAP02: FAILED TEXTMAP_PARSE_FAILED", buf.getvalue())

        payload = json.loads(report.read_text(encoding="utf-8"))
        self.assertEqual(payload["maps"][0]["counts"]["sectors_out"], 0)
        self.assertFalse(payload["maps"][0]["meta"]["config"]["merge_sectors"])
        self.assertTrue(report.read_text(encoding="utf-8").endswith("\n"))

    def test_cli_fatal_error(self) -> None:
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            rc = cli_main([str(self.input_wad), "-o", str(self.input_wad)])
        self.assertEqual(rc, 1)
        self.assertIn("WAD_INPUT_IS_OUTPUT", buf.getvalue())


if __name__ == "__main__":
    unittest.main()
