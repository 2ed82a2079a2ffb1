"""
Map optimization stages over a parsed TEXTMAP.

- slope classification (never merge sloped sectors)
- identical-sector merging with sidedef renumbering
- default-value pruning, float canonicalization, texture/angle stripping

Each stage is independently switchable via `OptimizeConfig`.
"""

from .config import OptimizeConfig
from .dedup import DedupStats, SectorRecord, SectorState, merge_identical_sectors, plan_sector_merge
from .module import optimize_document, run_optimize_textmap
from .slopes import SlopeClassifier, SlopeReason

__all__ = [
    "DedupStats",
    "OptimizeConfig",
    "SectorRecord",
    "SectorState",
    "SlopeClassifier",
    "SlopeReason",
    "merge_identical_sectors",
    "optimize_document",
    "plan_sector_merge",
    "run_optimize_textmap",
]
