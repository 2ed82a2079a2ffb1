"""
TEXTMAP text <-> in-memory model.

- `parse_textmap`: comment/quote-aware tokenizer producing a `TextmapDocument`
- `CrossReferenceIndex`: sector -> sidedef/linedef/vertex relationship queries
- `serialize_textmap`: deterministic compact re-emission

No optimization happens here; the model round-trips minus comments/whitespace.
"""

from .serializer import serialize_textmap
from .tokenizer import TextmapParseError, parse_textmap
from .xref import CrossReferenceIndex, parse_reference

__all__ = [
    "CrossReferenceIndex",
    "TextmapParseError",
    "parse_reference",
    "parse_textmap",
    "serialize_textmap",
]
