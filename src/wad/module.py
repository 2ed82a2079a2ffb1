from __future__ import annotations

from pathlib import Path
from typing import Any

from contracts.optimize import MapOptimizeResult, OptimizeError, WadLumpRecord, WadOptimizeResult
from optimize.config import OptimizeConfig
from optimize.module import run_optimize_textmap
from rules.contracts import RuleBook
from rules.loader import RulesError, load_rulebook

from .container import WadArchive, WadFormatError, build_wad, read_wad
from .data_access import DataAccessError, resolve_io_paths, sha256_bytes

TEXTMAP_LUMP = "TEXTMAP"


def _failed(
    *, input_path: Path, output_path: Path, error: OptimizeError, meta: dict[str, Any], ident: str | None = None
) -> WadOptimizeResult:
    return WadOptimizeResult(
        ok=False,
        source_path=str(input_path),
        output_path=str(output_path),
        wad_ident=ident,
        lumps=[],
        maps=[],
        errors=[error],
        warnings=[],
        meta=meta,
    )


def _load_rules(rules_path: Path | None) -> tuple[RuleBook, list[OptimizeError]]:
    try:
        return load_rulebook(rules_path), []
    except RulesError as e:
        return (
            RuleBook(source="<unavailable>"),
            [
                OptimizeError(
                    code="RULES_UNAVAILABLE",
                    message="Engine rules could not be loaded; rule-based optimizations are skipped",
                    detail={"rules_path": None if rules_path is None else str(rules_path), "error": str(e)},
                )
            ],
        )


def optimize_archive(
    archive: WadArchive, *, config: OptimizeConfig, rulebook: RuleBook
) -> list[MapOptimizeResult]:
    """
    Optimize every TEXTMAP lump of `archive` in place, one map at a time.

    The map name is taken from the marker lump preceding TEXTMAP. Maps that
    fail to parse keep their original payload.
    """

    results: list[MapOptimizeResult] = []
    for i, lump in enumerate(archive.lumps):
        if lump.name != TEXTMAP_LUMP:
            continue
        map_name = archive.lumps[i - 1].name if i > 0 else f"<lump {i}>"
        result, payload = run_optimize_textmap(
            payload=lump.data, map_name=map_name, config=config, rulebook=rulebook
        )
        if payload is not None:
            lump.data = payload
        results.append(result)
    return results


def run_optimize_wad(
    *,
    input_path: Path,
    output_path: Path,
    config: OptimizeConfig,
    rules_path: Path | None = None,
    compute_sha256: bool = False,
) -> WadOptimizeResult:
    """
    Read a WAD, optimize its UDMF maps and write a new WAD.

    Non-map lumps are copied byte for byte. Fatal problems (unreadable or
    malformed input, output equal to input, unwritable output) produce a
    result with `ok=False` and no output file. A map that fails to parse
    makes the result not ok but the WAD is still written.
    """

    meta: dict[str, Any] = {"stage": "wad", "config": config.to_dict()}

    try:
        src, dst = resolve_io_paths(input_path=input_path, output_path=output_path)
    except DataAccessError as e:
        return _failed(
            input_path=input_path,
            output_path=output_path,
            error=OptimizeError(code="WAD_INPUT_IS_OUTPUT", message=str(e)),
            meta=meta,
        )

    try:
        data_in = src.read_bytes()
    except OSError as e:
        return _failed(
            input_path=src,
            output_path=dst,
            error=OptimizeError(code="WAD_INPUT_UNREADABLE", message="Input WAD cannot be read", detail={"error": repr(e)}),
            meta=meta,
        )

    try:
        archive = read_wad(data_in)
    except WadFormatError as e:
        return _failed(
            input_path=src,
            output_path=dst,
            error=OptimizeError(code="WAD_BAD_FORMAT", message=str(e)),
            meta=meta,
        )

    rulebook, warnings = _load_rules(rules_path)
    meta["rules_source"] = rulebook.source

    before = [(lump.offset, len(lump.data)) for lump in archive.lumps]
    maps = optimize_archive(archive, config=config, rulebook=rulebook)
    data_out, offsets = build_wad(archive)

    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        dst.write_bytes(data_out)
    except OSError as e:
        return _failed(
            input_path=src,
            output_path=dst,
            error=OptimizeError(code="WAD_OUTPUT_UNWRITABLE", message="Output WAD cannot be written", detail={"error": repr(e)}),
            meta=meta,
            ident=archive.ident,
        )

    lumps = [
        WadLumpRecord(
            index=i,
            name=lump.name,
            offset_in=before[i][0],
            size_in=before[i][1],
            offset_out=offsets[i],
            size_out=len(lump.data),
        )
        for i, lump in enumerate(archive.lumps)
    ]

    meta["bytes_in"] = len(data_in)
    meta["bytes_out"] = len(data_out)
    meta["maps_total"] = len(maps)
    meta["maps_failed"] = sum(1 for m in maps if not m.ok)
    if compute_sha256:
        meta["sha256_in"] = sha256_bytes(data_in)
        meta["sha256_out"] = sha256_bytes(data_out)

    return WadOptimizeResult(
        ok=all(m.ok for m in maps),
        source_path=str(src),
        output_path=str(dst),
        wad_ident=archive.ident,
        lumps=lumps,
        maps=maps,
        errors=[],
        warnings=warnings,
        meta=meta,
    )
