from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum

from contracts.optimize import OptimizeError
from contracts.textmap import Block, BlockKind, Field, TextmapDocument
from rules.contracts import EngineRules
from textmap.xref import CrossReferenceIndex, parse_reference

from .slopes import SlopeClassifier


class SectorState(str, Enum):
    UNVISITED = "unvisited"
    KEPT = "kept"
    DUPLICATE = "duplicate"


@dataclass(slots=True)
class SectorRecord:
    sector: int  # ordinal among sectors before compaction
    position: int  # position in document.blocks before compaction
    state: SectorState = SectorState.UNVISITED
    sloped: bool = False
    compact_id: int = -1


@dataclass(frozen=True, slots=True)
class DedupStats:
    sectors_in: int
    sectors_out: int
    sloped: int
    sidedefs_rewritten: int
    invalid_references: int


def blocks_equal(a: Block, b: Block) -> bool:
    """Same number of fields and the same multiset of (key, value) pairs."""
    if len(a.fields) != len(b.fields):
        return False
    return Counter(a.fields) == Counter(b.fields)


def plan_sector_merge(document: TextmapDocument, rules: EngineRules | None) -> list[SectorRecord]:
    """
    Classify and partition the document's sectors without mutating it.

    Single left-to-right sweep: the first unvisited sector becomes the
    representative of its class and gets the next compact id; every later
    unvisited sector with an equal field multiset joins it. Sloped sectors
    only ever represent themselves.

    The records hold positions into the current block list and are stale as
    soon as the document is modified.
    """

    index = CrossReferenceIndex(document)
    classifier = SlopeClassifier(index, rules)
    records = [
        SectorRecord(sector=i, position=pos, sloped=classifier.is_sloped(i))
        for i, pos in enumerate(index.sector_positions)
    ]

    next_id = 0
    for i, rec in enumerate(records):
        if rec.state is not SectorState.UNVISITED:
            continue
        rec.state = SectorState.KEPT
        rec.compact_id = next_id

        if not rec.sloped:
            block = document.blocks[rec.position]
            for other in records[i + 1 :]:
                if other.state is not SectorState.UNVISITED or other.sloped:
                    continue
                if blocks_equal(block, document.blocks[other.position]):
                    other.state = SectorState.DUPLICATE
                    other.compact_id = next_id

        next_id += 1

    return records


def merge_identical_sectors(
    document: TextmapDocument, rules: EngineRules | None
) -> tuple[DedupStats, list[OptimizeError]]:
    """
    Merge interchangeable flat sectors in place.

    Sidedef `sector` references are renumbered to the compacted ids; a
    reference that does not name an existing sector is reset to 0 and
    reported. Duplicate sector blocks are removed, all other blocks keep
    their relative order.
    """

    records = plan_sector_merge(document, rules)
    warnings: list[OptimizeError] = []
    old_to_new = [r.compact_id for r in records]
    n_sectors = len(records)

    rewritten = 0
    invalid = 0
    sidedef_ordinal = 0
    for block in document.blocks:
        if block.kind is not BlockKind.SIDEDEF:
            continue
        for i, f in enumerate(block.fields):
            if f.key != "sector":
                continue
            ref = parse_reference(f.value)
            if ref is not None and 0 <= ref < n_sectors:
                new_value = str(old_to_new[ref])
            else:
                invalid += 1
                new_value = "0"
                warnings.append(
                    OptimizeError(
                        code="SIDEDEF_SECTOR_OUT_OF_RANGE",
                        message="Sidedef references a sector that does not exist; reset to 0",
                        detail={"sidedef": sidedef_ordinal, "value": f.value, "sector_count": n_sectors},
                    )
                )
            if new_value != f.value:
                block.fields[i] = Field(key=f.key, value=new_value)
                rewritten += 1
        sidedef_ordinal += 1

    duplicates = {r.position for r in records if r.state is SectorState.DUPLICATE}
    if duplicates:
        document.blocks = [b for pos, b in enumerate(document.blocks) if pos not in duplicates]

    stats = DedupStats(
        sectors_in=n_sectors,
        sectors_out=n_sectors - len(duplicates),
        sloped=sum(1 for r in records if r.sloped),
        sidedefs_rewritten=rewritten,
        invalid_references=invalid,
    )
    return stats, warnings
