from __future__ import annotations

from contracts.textmap import Block, TextmapDocument


def _serialize_block(block: Block) -> str:
    body = "".join(f"{f.key}={f.value};" for f in block.fields)
    return f"{block.header}{{{body}}}"


def serialize_textmap(document: TextmapDocument) -> str:
    """
    Deterministic compact TEXTMAP encoding.

    `namespace="<ns>";`, then global assignments, then every block as
    `header{key=value;...}` with no separators, and a single trailing newline.
    """

    parts = [f'namespace="{document.namespace}";']
    parts.extend(f"{f.key}={f.value};" for f in document.globals)
    parts.extend(_serialize_block(b) for b in document.blocks)
    return "".join(parts) + "\n"
