from __future__ import annotations

from contracts.textmap import Block, BlockKind, TextmapDocument

_SIDE_KEYS = ("sidefront", "sideback")


def parse_reference(value: str | None) -> int | None:
    """
    Parse a positional reference field value.

    Surrounding quotes/whitespace are tolerated; anything that is not a
    plain base-10 integer yields None.
    """

    if value is None:
        return None
    s = value.strip()
    if len(s) >= 2 and s[0] == '"' and s[-1] == '"':
        s = s[1:-1].strip()
    try:
        return int(s, 10)
    except ValueError:
        return None


class CrossReferenceIndex:
    """
    Read-only relationship queries over one `TextmapDocument`.

    Results are positions into `document.blocks`. The index reflects the
    document at construction time and must be rebuilt after any stage that
    adds, removes or reorders blocks (e.g. sector compaction).
    """

    def __init__(self, document: TextmapDocument) -> None:
        self.document = document
        self.vertex_positions = document.positions(BlockKind.VERTEX)
        self.linedef_positions = document.positions(BlockKind.LINEDEF)
        self.sidedef_positions = document.positions(BlockKind.SIDEDEF)
        self.sector_positions = document.positions(BlockKind.SECTOR)

        # sector ordinal -> sidedef ordinals naming it, ascending
        self._sidedefs_by_sector: dict[int, list[int]] = {}
        for ordinal, pos in enumerate(self.sidedef_positions):
            sector = parse_reference(document.blocks[pos].get("sector"))
            if sector is not None:
                self._sidedefs_by_sector.setdefault(sector, []).append(ordinal)

        # per linedef: sidedef references in field order, valid range only
        self._linedef_sides: list[list[int]] = []
        # sidedef ordinal -> linedef ordinals naming it, ascending
        self._linedefs_by_sidedef: dict[int, list[int]] = {}
        n_sides = len(self.sidedef_positions)
        for ordinal, pos in enumerate(self.linedef_positions):
            refs: list[int] = []
            for f in document.blocks[pos].fields:
                if f.key in _SIDE_KEYS:
                    ref = parse_reference(f.value)
                    if ref is not None and 0 <= ref < n_sides:
                        refs.append(ref)
            self._linedef_sides.append(refs)
            for ref in dict.fromkeys(refs):
                self._linedefs_by_sidedef.setdefault(ref, []).append(ordinal)

    @property
    def sector_count(self) -> int:
        return len(self.sector_positions)

    def block(self, position: int) -> Block:
        return self.document.blocks[position]

    def sector_block(self, sector: int) -> Block:
        return self.document.blocks[self.sector_positions[sector]]

    def sidedefs_of_sector(self, sector: int) -> list[int]:
        """Sidedef ordinals whose `sector` field names `sector`."""
        if not (0 <= sector < self.sector_count):
            return []
        return list(self._sidedefs_by_sector.get(sector, []))

    def _linedef_ordinals_of_sector(self, sector: int) -> list[int]:
        # A linedef is recorded once even if both of its sides match.
        found: set[int] = set()
        for side in self.sidedefs_of_sector(sector):
            found.update(self._linedefs_by_sidedef.get(side, ()))
        return sorted(found)

    def linedefs_of_sector(self, sector: int) -> list[int]:
        """Positions of linedefs with a sidefront/sideback in `sector`, in document order."""
        return [self.linedef_positions[o] for o in self._linedef_ordinals_of_sector(sector)]

    def vertices_of_sector(self, sector: int) -> list[int]:
        """
        Positions of the unique vertices bounding `sector`, in first-discovery
        order (v1 before v2, linedefs in document order).
        """

        n_vertices = len(self.vertex_positions)
        seen: set[int] = set()
        found: list[int] = []
        for ordinal in self._linedef_ordinals_of_sector(sector):
            linedef = self.document.blocks[self.linedef_positions[ordinal]]
            for key in ("v1", "v2"):
                ref = parse_reference(linedef.get(key))
                if ref is None or not (0 <= ref < n_vertices) or ref in seen:
                    continue
                seen.add(ref)
                found.append(self.vertex_positions[ref])
        return found

    def linedefs_referencing_sidedef(self, sidedef: int) -> list[int]:
        """Positions of linedefs naming `sidedef` as front or back side."""
        return [self.linedef_positions[o] for o in self._linedefs_by_sidedef.get(sidedef, ())]

    def sector_side_count(self, sector: int) -> int:
        """
        Heuristic count of linedef sides facing `sector`.

        Each matching side reference counts once, so a linedef whose front and
        back both belong to the sector is counted twice.
        """

        sides = set(self.sidedefs_of_sector(sector))
        count = 0
        for ordinal in self._linedef_ordinals_of_sector(sector):
            count += sum(1 for ref in self._linedef_sides[ordinal] if ref in sides)
        return count
