from __future__ import annotations

import struct
from dataclasses import dataclass, field

_HEADER = struct.Struct("<4sii")  # ident, lump count, directory offset
_DIR_ENTRY = struct.Struct("<ii8s")  # file offset, size, name
_IDENTS = (b"IWAD", b"PWAD")


class WadFormatError(Exception):
    pass


@dataclass(slots=True)
class Lump:
    name: str
    data: bytes
    offset: int = 0  # offset in the file it was read from
    raw_name: bytes | None = None  # directory name bytes as read, written back unchanged


@dataclass(slots=True)
class WadArchive:
    ident: str
    lumps: list[Lump] = field(default_factory=list)


def _lump_name(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode("ascii", errors="replace")


def _raw_name(lump: Lump) -> bytes:
    if lump.raw_name is not None:
        return lump.raw_name
    return lump.name.encode("ascii")[:8]


def read_wad(data: bytes) -> WadArchive:
    """
    Parse a WAD container: 12-byte header, lump data, 16-byte directory entries.

    Raises `WadFormatError` when the header or directory does not fit the file.
    """

    if len(data) < _HEADER.size:
        raise WadFormatError(f"file too small for a WAD header ({len(data)} bytes)")
    ident, count, dir_offset = _HEADER.unpack_from(data, 0)
    if ident not in _IDENTS:
        raise WadFormatError(f"bad WAD identification {ident!r}")
    if count < 0 or dir_offset < _HEADER.size or dir_offset + count * _DIR_ENTRY.size > len(data):
        raise WadFormatError(f"directory out of bounds (count={count}, offset={dir_offset}, size={len(data)})")

    lumps: list[Lump] = []
    for i in range(count):
        offset, size, raw_name = _DIR_ENTRY.unpack_from(data, dir_offset + i * _DIR_ENTRY.size)
        name = _lump_name(raw_name)
        if size < 0 or (size > 0 and (offset < 0 or offset + size > len(data))):
            raise WadFormatError(f"lump {i} ({name!r}) out of bounds (offset={offset}, size={size})")
        lumps.append(Lump(name=name, data=bytes(data[offset : offset + size]), offset=offset, raw_name=raw_name))
    return WadArchive(ident=ident.decode("ascii"), lumps=lumps)


def build_wad(archive: WadArchive) -> tuple[bytes, list[int]]:
    """
    Serialize `archive`: lumps packed in order right after the header,
    directory at the end. Returns the file bytes and each lump's new offset.
    """

    chunks: list[bytes] = []
    offsets: list[int] = []
    pos = _HEADER.size
    for lump in archive.lumps:
        offsets.append(pos)
        chunks.append(lump.data)
        pos += len(lump.data)

    directory = b"".join(
        _DIR_ENTRY.pack(off, len(lump.data), _raw_name(lump))
        for off, lump in zip(offsets, archive.lumps)
    )
    header = _HEADER.pack(archive.ident.encode("ascii"), len(archive.lumps), pos)
    return header + b"".join(chunks) + directory, offsets
