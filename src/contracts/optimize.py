from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class OptimizeError:
    code: str
    message: str
    detail: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class MapOptimizeResult:
    """
    Outcome of optimizing one map's TEXTMAP.

    On a structural parse failure `ok` is False and the caller keeps the
    original payload; nothing partial is emitted.
    """

    map_name: str
    ok: bool
    namespace: str | None
    engine: str | None  # rule set selected for the namespace, None if unknown
    bytes_in: int
    bytes_out: int
    counts: dict[str, int]
    errors: list[OptimizeError]
    warnings: list[OptimizeError]
    meta: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class WadLumpRecord:
    index: int
    name: str
    offset_in: int
    size_in: int
    offset_out: int
    size_out: int


@dataclass(frozen=True, slots=True)
class WadOptimizeResult:
    ok: bool
    source_path: str
    output_path: str
    wad_ident: str | None  # "IWAD" / "PWAD"
    lumps: list[WadLumpRecord]
    maps: list[MapOptimizeResult]
    errors: list[OptimizeError]
    warnings: list[OptimizeError]
    meta: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
