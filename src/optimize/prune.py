from __future__ import annotations

from contracts.textmap import BlockKind, Field, TextmapDocument
from textmap.xref import CrossReferenceIndex, parse_reference

from .literals import canonicalize_float_literal, literals_equal

_TEXTURE_KEYS = frozenset({"texturetop", "texturebottom", "texturemiddle"})


def _is_default(f: Field, table: dict[str, str]) -> bool:
    default = table.get(f.key)
    return default is not None and literals_equal(f.value, default)


def prune_default_fields(document: TextmapDocument, defaults: dict[BlockKind, dict[str, str]]) -> int:
    """
    Remove every field equal to its kind's declared default.

    Consumers substitute the same default for an absent field, so removal
    is lossless. Repeated until a pass removes nothing, so tables whose
    matches depend on other removals still converge. Returns the number of
    fields removed.
    """

    removed_total = 0
    while True:
        removed = 0
        for block in document.blocks:
            table = defaults.get(block.kind)
            if not table:
                continue
            kept = [f for f in block.fields if not _is_default(f, table)]
            removed += len(block.fields) - len(kept)
            block.fields = kept
        removed_total += removed
        if removed == 0:
            return removed_total


def canonicalize_floats(document: TextmapDocument) -> int:
    """Rewrite decimal literals without trailing fractional zeros; returns fields changed."""
    changed = 0
    for block in document.blocks:
        for i, f in enumerate(block.fields):
            value = canonicalize_float_literal(f.value)
            if value != f.value:
                block.fields[i] = Field(key=f.key, value=value)
                changed += 1
    for i, f in enumerate(document.globals):
        value = canonicalize_float_literal(f.value)
        if value != f.value:
            document.globals[i] = Field(key=f.key, value=value)
            changed += 1
    return changed


def strip_unneeded_textures(document: TextmapDocument, no_texture_specials: frozenset[int]) -> int:
    """
    Drop wall textures that can never be seen.

    A sidedef loses its upper/lower/middle texture fields when every linedef
    using it carries a special from `no_texture_specials`. Unreferenced
    sidedefs are left alone. Returns the number of fields removed.
    """

    index = CrossReferenceIndex(document)
    removed = 0
    for ordinal, pos in enumerate(index.sidedef_positions):
        linedefs = index.linedefs_referencing_sidedef(ordinal)
        if not linedefs:
            continue
        if not all((parse_reference(index.block(p).get("special")) or 0) in no_texture_specials for p in linedefs):
            continue
        block = document.blocks[pos]
        kept = [f for f in block.fields if f.key not in _TEXTURE_KEYS]
        removed += len(block.fields) - len(kept)
        block.fields = kept
    return removed


def strip_unneeded_angles(document: TextmapDocument, no_angle_thing_types: frozenset[int]) -> int:
    """Drop `angle` from things whose `type` ignores orientation; returns fields removed."""
    removed = 0
    for block in document.blocks:
        if block.kind is not BlockKind.THING:
            continue
        thing_type = parse_reference(block.get("type"))
        if thing_type is None or thing_type not in no_angle_thing_types:
            continue
        kept = [f for f in block.fields if f.key != "angle"]
        removed += len(block.fields) - len(kept)
        block.fields = kept
    return removed


# Kinds no other block points at by position.
_UNREFERENCED_KINDS = frozenset({BlockKind.THING, BlockKind.OTHER})


def settle_trailing_blocks(
    document: TextmapDocument, defaults: dict[BlockKind, dict[str, str]] | None
) -> int:
    """
    Keep the end of the block list stable under a re-read.

    A trailing block without fields is discarded when the map is parsed
    again. Unreferenced kinds are dropped here; a referenced kind gets back
    the first default declared for it, so its position survives. Returns the
    number of blocks dropped.
    """

    dropped = 0
    while document.blocks and not document.blocks[-1].fields:
        block = document.blocks[-1]
        table = None if defaults is None else defaults.get(block.kind)
        if block.kind in _UNREFERENCED_KINDS or not table:
            document.blocks.pop()
            dropped += 1
            continue
        key = next(iter(table))
        block.fields.append(Field(key=key, value=table[key]))
        break
    return dropped
