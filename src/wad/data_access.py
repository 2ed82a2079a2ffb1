from __future__ import annotations

import hashlib
from pathlib import Path


class DataAccessError(Exception):
    pass


def resolve_io_paths(*, input_path: Path, output_path: Path) -> tuple[Path, Path]:
    """
    Resolve the input and output WAD paths.

    The output must never overwrite the input: a failed run would otherwise
    destroy the only copy of the map data.
    """

    src = input_path.expanduser().resolve()
    dst = output_path.expanduser().resolve()
    if src == dst:
        raise DataAccessError(f"Input and output are the same file: {src}")
    if dst.exists() and src.exists():
        try:
            same = src.samefile(dst)
        except OSError:  # pragma: no cover
            same = False
        if same:
            raise DataAccessError(f"Input and output refer to the same file: {src} / {dst}")
    return src, dst


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
