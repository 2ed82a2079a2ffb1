#!/usr/bin/env python3
"""
debug_print_sectors.py

Purpose
- Show how the optimizer sees each sector of a map, without writing anything.
- Accepts either:
  1) a WAD file (every TEXTMAP lump is inspected), or
  2) a bare TEXTMAP text file.

For every sector prints: ordinal, slope verdict and the rule that fired,
merge state (kept/duplicate) with its compact id, and the linedef
side-count heuristic.

Usage examples
  python3 tools/debug_print_sectors.py maps/mymap.wad
  python3 tools/debug_print_sectors.py TEXTMAP.txt --only-sloped

Options
  --map MAP01           Only inspect the named map (WAD input only)
  --rules FILE          Engine rules JSON (default: built-in tables)
  --only-sloped         Only print sectors classified as sloped
  --only-duplicates     Only print sectors that would be merged away
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Allow running from a source checkout without installing.
_SRC = Path(__file__).resolve().parents[1] / "src"
if _SRC.is_dir() and str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from optimize.dedup import SectorState, plan_sector_merge  # noqa: E402
from optimize.module import TEXTMAP_ENCODING  # noqa: E402
from optimize.slopes import SlopeClassifier  # noqa: E402
from rules.loader import load_rulebook  # noqa: E402
from textmap.tokenizer import TextmapParseError, parse_textmap  # noqa: E402
from textmap.xref import CrossReferenceIndex  # noqa: E402
from wad.container import WadFormatError, read_wad  # noqa: E402
from wad.module import TEXTMAP_LUMP  # noqa: E402


def _load_maps(path: Path, only_map: str | None) -> list[tuple[str, bytes]]:
    data = path.read_bytes()
    try:
        archive = read_wad(data)
    except WadFormatError:
        return [(path.name, data)]

    maps: list[tuple[str, bytes]] = []
    for i, lump in enumerate(archive.lumps):
        if lump.name != TEXTMAP_LUMP:
            continue
        name = archive.lumps[i - 1].name if i > 0 else f"<lump {i}>"
        if only_map is None or name.upper() == only_map.upper():
            maps.append((name, lump.data))
    return maps


def print_map(name: str, payload: bytes, *, rulebook, only_sloped: bool, only_duplicates: bool) -> bool:
    try:
        document = parse_textmap(payload.decode(TEXTMAP_ENCODING))
    except TextmapParseError as e:
        print(f"\n=== {name} === PARSE FAILED: {e}")
        return False

    rules = rulebook.for_namespace(document.namespace)
    index = CrossReferenceIndex(document)
    classifier = SlopeClassifier(index, rules)
    records = plan_sector_merge(document, rules)

    kept = sum(1 for r in records if r.state is SectorState.KEPT)
    print(f"\n=== {name} ===")
    print(f"namespace={document.namespace!r} engine={rules.engine if rules else '<unknown>'}")
    print(f"blocks={len(document.blocks)} sectors={len(records)} -> {kept} sloped={sum(r.sloped for r in records)}")
    print("\n  SECTOR  SLOPE             STATE       ID  SIDES  LINEDEFS  VERTICES")
    for r in records:
        if only_sloped and not r.sloped:
            continue
        if only_duplicates and r.state is not SectorState.DUPLICATE:
            continue
        reason = classifier.classify(r.sector)
        slope = "-" if reason is None else reason.value
        print(
            f"  {r.sector:>6}  {slope:<16}  {r.state.value:<9} {r.compact_id:>4}  "
            f"{index.sector_side_count(r.sector):>5}  {len(index.linedefs_of_sector(r.sector)):>8}  "
            f"{len(index.vertices_of_sector(r.sector)):>8}"
        )
    return True


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="less-udmf-debug-sectors")
    ap.add_argument("input", type=Path, help="WAD file or bare TEXTMAP file.")
    ap.add_argument("--map", default=None, help="Only inspect this map (WAD input).")
    ap.add_argument("--rules", type=Path, default=None, help="Engine rules JSON.")
    ap.add_argument("--only-sloped", action="store_true")
    ap.add_argument("--only-duplicates", action="store_true")
    args = ap.parse_args(argv)

    rulebook = load_rulebook(args.rules)
    maps = _load_maps(args.input, args.map)
    if not maps:
        print("No UDMF maps found.")
        return 2

    ok = True
    for name, payload in maps:
        ok = print_map(
            name,
            payload,
            rulebook=rulebook,
            only_sloped=args.only_sloped,
            only_duplicates=args.only_duplicates,
        ) and ok
    return 0 if ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
