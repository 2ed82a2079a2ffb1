from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from contracts.textmap import BlockKind


@dataclass(frozen=True, slots=True)
class EngineRules:
    """
    Lookup tables for one target engine.

    Every table is optional: None means "not declared for this engine" and
    the optimization that needs it is skipped rather than failing the map.
    `defaults` maps a block kind to {key: default literal}; a kind missing
    from the mapping is never pruned.
    """

    engine: str
    namespaces: tuple[str, ...]
    vertex_slopes: bool = False
    slope_sector_fields: frozenset[str] | None = None
    slope_specials: frozenset[int] | None = None
    no_texture_specials: frozenset[int] | None = None
    no_angle_thing_types: frozenset[int] | None = None
    defaults: dict[BlockKind, dict[str, str]] | None = None

    def to_dict(self) -> dict[str, Any]:
        def _sorted(s: frozenset | None) -> list | None:
            return None if s is None else sorted(s)

        return {
            "engine": self.engine,
            "namespaces": list(self.namespaces),
            "vertex_slopes": self.vertex_slopes,
            "slope_sector_fields": _sorted(self.slope_sector_fields),
            "slope_specials": _sorted(self.slope_specials),
            "no_texture_specials": _sorted(self.no_texture_specials),
            "no_angle_thing_types": _sorted(self.no_angle_thing_types),
            "defaults": None
            if self.defaults is None
            else {k.value: dict(sorted(v.items())) for k, v in self.defaults.items()},
        }


@dataclass(frozen=True, slots=True)
class RuleBook:
    engines: tuple[EngineRules, ...] = field(default_factory=tuple)
    source: str = "<empty>"  # where the tables were loaded from, for audit

    def for_namespace(self, namespace: str | None) -> EngineRules | None:
        """Engine rules whose namespace list contains `namespace` (case-insensitive)."""
        if namespace is None:
            return None
        ns = namespace.strip().lower()
        for rules in self.engines:
            if ns in rules.namespaces:
                return rules
        return None
