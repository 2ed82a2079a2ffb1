from __future__ import annotations

import unittest

from textmap.serializer import serialize_textmap
from textmap.tokenizer import parse_textmap

_SAMPLE = """\
// sample map
namespace = "srb2";
version = 2;

vertex { x = 0; y = 0; }
vertex { x = 64; y = 0; }

linedef
{
    v1 = 0;
    v2 = 1;
    sidefront = 0;
}

sidedef { sector = 0; texturemiddle = "WALL"; }

sector
{
    texturefloor = "FLOOR";
    textureceiling = "CEIL";
}
"""


class TestTextmapSerializerDeterminism(unittest.TestCase):
    def test_compact_encoding(self) -> None:
        out = serialize_textmap(parse_textmap(_SAMPLE))
        self.assertEqual(
            out,
            'namespace="srb2";version=2;'
            "vertex{x=0;y=0;}vertex{x=64;y=0;}"
            "linedef{v1=0;v2=1;sidefront=0;}"
            'sidedef{sector=0;texturemiddle="WALL";}'
            'sector{texturefloor="FLOOR";textureceiling="CEIL";}\n',
        )

    def test_reparse_gives_same_document(self) -> None:
        doc = parse_textmap(_SAMPLE)
        out = serialize_textmap(doc)
        again = parse_textmap(out)
        self.assertEqual(again.to_dict(), doc.to_dict())
        self.assertEqual(serialize_textmap(again), out)

    def test_header_spelling_is_preserved(self) -> None:
        out = serialize_textmap(parse_textmap('namespace="zdoom"; Thing { type = 1; }'))
        self.assertEqual(out, 'namespace="zdoom";Thing{type=1;}\n')


if __name__ == "__main__":
    unittest.main()
