from __future__ import annotations

from typing import Any

from contracts.optimize import MapOptimizeResult, OptimizeError
from contracts.textmap import TextmapDocument
from rules.contracts import EngineRules, RuleBook
from textmap.serializer import serialize_textmap
from textmap.tokenizer import TextmapParseError, parse_textmap

from .config import OptimizeConfig
from .dedup import merge_identical_sectors
from .prune import (
    canonicalize_floats,
    prune_default_fields,
    settle_trailing_blocks,
    strip_unneeded_angles,
    strip_unneeded_textures,
)

# TEXTMAP is ASCII in practice; latin-1 maps every byte to one code point so
# payloads with stray high bytes (e.g. in comments or strings) survive intact.
TEXTMAP_ENCODING = "latin-1"


def _skipped(step: str, reason: str, namespace: str | None) -> OptimizeError:
    return OptimizeError(
        code="OPTIMIZE_STEP_SKIPPED",
        message=f"{step} skipped: {reason}",
        detail={"step": step, "namespace": namespace},
    )


def optimize_document(
    document: TextmapDocument, *, config: OptimizeConfig, rules: EngineRules | None
) -> tuple[dict[str, int], list[OptimizeError]]:
    """
    Run the enabled optimization stages over a parsed map, in place.

    Order: float canonicalization, texture/angle stripping, default pruning,
    then sector merging. Normalizing before merging means sectors that only
    differed by spelled-out defaults are merged in the same run, so a
    second run over the output finds nothing left to do. Finally the tail
    of the block list is settled so re-reading the output keeps every block.
    """

    ns = document.namespace
    warnings: list[OptimizeError] = []
    counts: dict[str, int] = {
        "floats_canonicalized": 0,
        "textures_removed": 0,
        "angles_removed": 0,
        "defaults_pruned": 0,
        "sectors_in": 0,
        "sectors_out": 0,
        "sloped_sectors": 0,
        "invalid_sector_references": 0,
        "empty_blocks_dropped": 0,
    }

    if config.canonicalize_floats:
        counts["floats_canonicalized"] = canonicalize_floats(document)

    if config.strip_textures:
        if rules is None or rules.no_texture_specials is None:
            warnings.append(_skipped("strip_textures", "no 'no texture' specials declared", ns))
        else:
            counts["textures_removed"] = strip_unneeded_textures(document, rules.no_texture_specials)

    if config.strip_angles:
        if rules is None or rules.no_angle_thing_types is None:
            warnings.append(_skipped("strip_angles", "no angle-less thing types declared", ns))
        else:
            counts["angles_removed"] = strip_unneeded_angles(document, rules.no_angle_thing_types)

    if config.prune_defaults:
        if rules is None or rules.defaults is None:
            warnings.append(_skipped("prune_defaults", "no default value tables declared", ns))
        else:
            counts["defaults_pruned"] = prune_default_fields(document, rules.defaults)

    if config.merge_sectors:
        if rules is None:
            warnings.append(
                OptimizeError(
                    code="SLOPE_DETECTION_UNAVAILABLE",
                    message="No rule set for namespace; sectors are merged without slope detection",
                    detail={"namespace": ns},
                )
            )
        stats, merge_warnings = merge_identical_sectors(document, rules)
        warnings.extend(merge_warnings)
        counts["sectors_in"] = stats.sectors_in
        counts["sectors_out"] = stats.sectors_out
        counts["sloped_sectors"] = stats.sloped
        counts["invalid_sector_references"] = stats.invalid_references

    counts["empty_blocks_dropped"] = settle_trailing_blocks(document, None if rules is None else rules.defaults)

    return counts, warnings


def run_optimize_textmap(
    *,
    payload: bytes,
    map_name: str,
    config: OptimizeConfig,
    rulebook: RuleBook,
) -> tuple[MapOptimizeResult, bytes | None]:
    """
    Optimize one map's TEXTMAP payload.

    Returns the result record and the replacement payload. On a structural
    parse failure the payload is None and the caller must keep the original.
    """

    meta: dict[str, Any] = {
        "stage": "optimize",
        "config": config.to_dict(),
        "rules_source": rulebook.source,
    }

    text = payload.decode(TEXTMAP_ENCODING)
    try:
        document = parse_textmap(text)
    except TextmapParseError as e:
        return (
            MapOptimizeResult(
                map_name=map_name,
                ok=False,
                namespace=None,
                engine=None,
                bytes_in=len(payload),
                bytes_out=len(payload),
                counts={},
                errors=[
                    OptimizeError(
                        code="TEXTMAP_PARSE_FAILED",
                        message=str(e),
                        detail=e.to_detail(),
                    )
                ],
                warnings=[],
                meta=meta,
            ),
            None,
        )

    rules = rulebook.for_namespace(document.namespace)
    blocks_in = len(document.blocks)
    fields_in = document.field_count()

    counts, warnings = optimize_document(document, config=config, rules=rules)
    out = serialize_textmap(document).encode(TEXTMAP_ENCODING)

    counts.update(
        {
            "blocks_in": blocks_in,
            "blocks_out": len(document.blocks),
            "fields_in": fields_in,
            "fields_out": document.field_count(),
        }
    )
    result = MapOptimizeResult(
        map_name=map_name,
        ok=True,
        namespace=document.namespace,
        engine=None if rules is None else rules.engine,
        bytes_in=len(payload),
        bytes_out=len(out),
        counts=counts,
        errors=[],
        warnings=warnings,
        meta=meta,
    )
    return result, out
