from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class BlockKind(str, Enum):
    """
    TEXTMAP block categories.

    Decided once by the tokenizer from the block header; every later stage
    dispatches on this tag instead of re-reading header strings.
    """

    VERTEX = "vertex"
    LINEDEF = "linedef"
    SIDEDEF = "sidedef"
    SECTOR = "sector"
    THING = "thing"
    OTHER = "other"

    @staticmethod
    def from_header(header: str) -> "BlockKind":
        h = header.strip().lower()
        for kind in BlockKind:
            if kind is not BlockKind.OTHER and kind.value == h:
                return kind
        return BlockKind.OTHER


@dataclass(frozen=True, slots=True)
class Field:
    key: str
    value: str  # textual form as read; quoted values keep their quotes


@dataclass(slots=True)
class Block:
    header: str  # original header text, e.g. "sector"
    kind: BlockKind
    fields: list[Field] = field(default_factory=list)

    def get(self, key: str) -> str | None:
        """First value for `key`, or None."""
        for f in self.fields:
            if f.key == key:
                return f.value
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "header": self.header,
            "kind": self.kind.value,
            "fields": [[f.key, f.value] for f in self.fields],
        }


@dataclass(slots=True)
class TextmapDocument:
    """
    One map's TEXTMAP, held entirely in memory.

    Blocks of one kind keep their relative order; a block's ordinal among
    its kind is the index other blocks use to reference it.
    """

    namespace: str
    blocks: list[Block] = field(default_factory=list)
    globals: list[Field] = field(default_factory=list)  # top-level assignments other than namespace

    def positions(self, kind: BlockKind) -> list[int]:
        """Positions in `blocks` of every block of `kind`, in document order."""
        return [i for i, b in enumerate(self.blocks) if b.kind is kind]

    def of_kind(self, kind: BlockKind) -> list[Block]:
        return [b for b in self.blocks if b.kind is kind]

    def count(self, kind: BlockKind) -> int:
        return sum(1 for b in self.blocks if b.kind is kind)

    def field_count(self) -> int:
        return sum(len(b.fields) for b in self.blocks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "globals": [[f.key, f.value] for f in self.globals],
            "blocks": [b.to_dict() for b in self.blocks],
        }
