from __future__ import annotations

from enum import Enum

from rules.contracts import EngineRules
from textmap.xref import CrossReferenceIndex, parse_reference

from .literals import parse_numeric_literal


class SlopeReason(str, Enum):
    SECTOR_FIELD = "sector_field"
    LINEDEF_SPECIAL = "linedef_special"
    VERTEX_HEIGHTS = "vertex_heights"


class SlopeClassifier:
    """
    Decide, per sector, whether it takes part in sloped geometry.

    Rules, first match wins:
    1. the sector carries one of the engine's slope-declaring fields
    2. a linedef bounding the sector has a slope-creating `special`
    3. (engines with vertex slopes) the sector's polygon vertices disagree on
       height: at least two distinct `zfloor` (else `zceiling`) values

    Any signal marks the sector sloped; sloped sectors are never merged.
    Results are memoized for the lifetime of the classifier, which must not
    outlive the index it was built on.
    """

    def __init__(self, index: CrossReferenceIndex, rules: EngineRules | None) -> None:
        self.index = index
        self.rules = rules
        self._memo: dict[int, SlopeReason | None] = {}

    def classify(self, sector: int) -> SlopeReason | None:
        if sector in self._memo:
            return self._memo[sector]
        reason = self._classify(sector)
        self._memo[sector] = reason
        return reason

    def is_sloped(self, sector: int) -> bool:
        return self.classify(sector) is not None

    def _classify(self, sector: int) -> SlopeReason | None:
        rules = self.rules
        if rules is None or not (0 <= sector < self.index.sector_count):
            return None

        block = self.index.sector_block(sector)
        if rules.slope_sector_fields and any(f.key in rules.slope_sector_fields for f in block.fields):
            return SlopeReason.SECTOR_FIELD

        if rules.slope_specials:
            for pos in self.index.linedefs_of_sector(sector):
                special = parse_reference(self.index.block(pos).get("special"))
                if (special or 0) in rules.slope_specials:
                    return SlopeReason.LINEDEF_SPECIAL

        if rules.vertex_slopes and self._vertex_heights_disagree(sector):
            return SlopeReason.VERTEX_HEIGHTS

        return None

    def _vertex_heights_disagree(self, sector: int) -> bool:
        heights: set[float] = set()
        for pos in self.index.vertices_of_sector(sector):
            vertex = self.index.block(pos)
            raw = vertex.get("zfloor")
            if raw is None:
                raw = vertex.get("zceiling")
            if raw is None:
                continue
            z = parse_numeric_literal(raw)
            if z is None:
                continue
            heights.add(z)
            if len(heights) >= 2:
                return True
        return False
