from __future__ import annotations

import argparse
from pathlib import Path

from contracts.optimize import WadOptimizeResult
from optimize.config import OptimizeConfig

from .artifacts import write_wad_report_json
from .module import run_optimize_wad


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="less-udmf",
        description="Optimize the UDMF maps (TEXTMAP lumps) inside a WAD file.",
        epilog="Always keep a copy of the original WAD.",
    )
    p.add_argument("input", type=Path, help="Input WAD file.")
    p.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("./OUTPUT.WAD"),
        help="Output WAD file (must differ from the input). Default: ./OUTPUT.WAD",
    )
    p.add_argument("--no-merge", action="store_true", help="Do not merge identical sectors.")
    p.add_argument("--no-prune", action="store_true", help="Keep fields that equal the engine default.")
    p.add_argument("--no-floats", action="store_true", help="Do not strip trailing zeros from decimals.")
    p.add_argument("--no-textures", action="store_true", help="Keep textures on sides that are never drawn.")
    p.add_argument("--no-angles", action="store_true", help="Keep angles on things that ignore them.")
    p.add_argument(
        "--rules",
        type=Path,
        default=None,
        help="Engine rules JSON. Default: the rule tables shipped with the package.",
    )
    p.add_argument("--report", type=Path, default=None, help="Optional JSON report output file.")
    p.add_argument("--sha256", action="store_true", help="Include SHA-256 of input/output in the report.")
    return p


def _print_directory(result: WadOptimizeResult) -> None:
    print("\nID     OFFSET       SIZE  ->   OFFSET       SIZE  NAME")
    for lump in result.lumps:
        print(
            f"{lump.index:>2} {lump.offset_in:>10} {lump.size_in:>10}  -> "
            f"{lump.offset_out:>8} {lump.size_out:>10}  {lump.name}"
        )


def _print_maps(result: WadOptimizeResult) -> None:
    for m in result.maps:
        if not m.ok:
            for e in m.errors:
                print(f"{m.map_name}: FAILED {e.code}: {e.message} (left unchanged)")
            continue
        c = m.counts
        print(
            f"{m.map_name}: namespace={m.namespace!r} engine={m.engine or '<unknown>'} "
            f"bytes {m.bytes_in} -> {m.bytes_out} "
            f"sectors {c.get('sectors_in', 0)} -> {c.get('sectors_out', 0)} "
            f"(sloped={c.get('sloped_sectors', 0)}) "
            f"pruned={c.get('defaults_pruned', 0)} floats={c.get('floats_canonicalized', 0)}"
        )
        for w in m.warnings:
            print(f"  warning {w.code}: {w.message}")


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    config = OptimizeConfig(
        merge_sectors=not args.no_merge,
        prune_defaults=not args.no_prune,
        canonicalize_floats=not args.no_floats,
        strip_textures=not args.no_textures,
        strip_angles=not args.no_angles,
    )

    result = run_optimize_wad(
        input_path=args.input,
        output_path=args.output,
        config=config,
        rules_path=args.rules,
        compute_sha256=args.sha256,
    )
    if args.report is not None:
        write_wad_report_json(result=result, out_report=args.report)

    for e in result.errors:
        print(f"ERROR {e.code}: {e.message}")
    if result.errors:
        return 1

    for w in result.warnings:
        print(f"warning {w.code}: {w.message}")
    _print_maps(result)
    _print_directory(result)
    print(
        f"\nwrote {result.output_path} ({result.meta.get('bytes_in')} -> {result.meta.get('bytes_out')} bytes) "
        f"maps={len(result.maps)} ok={result.ok}"
    )
    return 0 if result.ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
