"""
WAD container driver.

Reads the lump directory, runs the TEXTMAP optimizer over every UDMF map,
copies all other lumps unchanged and writes a new WAD with a rebuilt
directory. The input file is never modified.
"""

from .container import Lump, WadArchive, WadFormatError, build_wad, read_wad
from .module import optimize_archive, run_optimize_wad

__all__ = [
    "Lump",
    "WadArchive",
    "WadFormatError",
    "build_wad",
    "optimize_archive",
    "read_wad",
    "run_optimize_wad",
]
