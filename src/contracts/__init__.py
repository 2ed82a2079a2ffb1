"""
Canonical, authoritative pipeline contracts.

These models are the schema boundary between stages:
- `textmap` builds and emits `TextmapDocument`
- `optimize` mutates a `TextmapDocument` in place and reports `MapOptimizeResult`
- `wad` drives whole containers and reports `WadOptimizeResult`

Stage code should consume/produce these contract objects (not ad-hoc dicts).
"""

from .optimize import MapOptimizeResult, OptimizeError, WadLumpRecord, WadOptimizeResult
from .textmap import Block, BlockKind, Field, TextmapDocument

__all__ = [
    "Block",
    "BlockKind",
    "Field",
    "TextmapDocument",
    "OptimizeError",
    "MapOptimizeResult",
    "WadLumpRecord",
    "WadOptimizeResult",
]
