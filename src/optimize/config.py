from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class OptimizeConfig:
    """
    Per-map optimization switches.

    Every stage can be disabled on its own; disabling one never changes the
    output of the others. Defaults enable everything.
    """

    merge_sectors: bool = True
    prune_defaults: bool = True
    canonicalize_floats: bool = True
    strip_textures: bool = True
    strip_angles: bool = True

    def validate(self) -> None:
        for name in ("merge_sectors", "prune_defaults", "canonicalize_floats", "strip_textures", "strip_angles"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be a bool")

    def __post_init__(self) -> None:
        self.validate()

    def to_dict(self) -> dict[str, bool]:
        return {
            "merge_sectors": self.merge_sectors,
            "prune_defaults": self.prune_defaults,
            "canonicalize_floats": self.canonicalize_floats,
            "strip_textures": self.strip_textures,
            "strip_angles": self.strip_angles,
        }
