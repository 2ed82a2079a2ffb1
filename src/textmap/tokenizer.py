from __future__ import annotations

from contracts.textmap import Block, BlockKind, Field, TextmapDocument

_WHITESPACE = " \t\n\r\v\f"
# Characters that end a bare identifier (block header or field key).
_IDENT_STOP = _WHITESPACE + '{}=;"'


class TextmapParseError(Exception):
    """
    Structural failure while tokenizing a TEXTMAP.

    The map is not processed further; no partial document is produced.
    """

    def __init__(self, code: str, message: str, *, offset: int, text: str) -> None:
        self.code = code
        self.offset = offset
        self.line = text.count("\n", 0, offset) + 1
        super().__init__(f"{message} (line {self.line}, offset {offset})")

    def to_detail(self) -> dict[str, int | str]:
        return {"code": self.code, "line": self.line, "offset": self.offset}


class _Scanner:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.n = len(text)

    def fail(self, code: str, message: str, offset: int | None = None) -> TextmapParseError:
        return TextmapParseError(code, message, offset=self.pos if offset is None else offset, text=self.text)

    def at_end(self) -> bool:
        return self.pos >= self.n

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < self.n else ""

    def at_comment(self) -> bool:
        return self.text.startswith("//", self.pos) or self.text.startswith("/*", self.pos)

    def skip_trivia(self) -> None:
        """Skip whitespace, line comments and block comments."""
        text = self.text
        while self.pos < self.n:
            c = text[self.pos]
            if c in _WHITESPACE:
                self.pos += 1
            elif text.startswith("//", self.pos):
                nl = text.find("\n", self.pos + 2)
                self.pos = self.n if nl < 0 else nl + 1
            elif text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                if end < 0:
                    raise self.fail("TEXTMAP_UNTERMINATED_COMMENT", "Unterminated block comment")
                self.pos = end + 2
            else:
                return

    def read_identifier(self) -> str:
        start = self.pos
        text = self.text
        while self.pos < self.n and text[self.pos] not in _IDENT_STOP and not self.at_comment():
            self.pos += 1
        return text[start : self.pos]

    def read_value(self) -> str:
        """
        Read a field value.

        Quoted: the closing quote is the first following `"` (no escapes);
        quotes are kept. Unquoted: everything up to the next `;`, `}` or comment,
        surrounding whitespace stripped.
        """
        text = self.text
        start = self.pos
        if self.peek() == '"':
            end = text.find('"', self.pos + 1)
            if end < 0:
                raise self.fail("TEXTMAP_UNTERMINATED_STRING", "Unterminated quoted value", start)
            self.pos = end + 1
            return text[start : self.pos]

        while self.pos < self.n and text[self.pos] not in ";}" and not self.at_comment():
            self.pos += 1
        if self.at_end():
            raise self.fail("TEXTMAP_UNEXPECTED_EOF", "Value not terminated by ';' or '}'", start)
        value = text[start : self.pos].strip(_WHITESPACE)
        if value == "":
            raise self.fail("TEXTMAP_EMPTY_VALUE", "Empty field value", start)
        return value

    def read_assignment_tail(self, key: str, key_offset: int) -> Field:
        # Called with the cursor on '='.
        self.pos += 1
        self.skip_trivia()
        if self.at_end():
            raise self.fail("TEXTMAP_UNEXPECTED_EOF", f"Missing value for {key!r}", key_offset)
        value = self.read_value()
        self.skip_trivia()
        if self.peek() == ";":
            self.pos += 1
        return Field(key=key, value=value)


def _parse_block_body(sc: _Scanner, block: Block, open_offset: int) -> None:
    while True:
        sc.skip_trivia()
        if sc.at_end():
            raise sc.fail("TEXTMAP_UNTERMINATED_BLOCK", f"Block {block.header!r} is missing '}}'", open_offset)
        c = sc.peek()
        if c == "}":
            sc.pos += 1
            return
        if c == ";":
            # Empty statement.
            sc.pos += 1
            continue

        key_offset = sc.pos
        key = sc.read_identifier()
        if key == "":
            raise sc.fail("TEXTMAP_UNEXPECTED_CHARACTER", f"Unexpected character {c!r} inside block")
        sc.skip_trivia()
        if sc.peek() != "=":
            raise sc.fail("TEXTMAP_EXPECTED_ASSIGNMENT", f"Expected '=' after field {key!r}")
        block.fields.append(sc.read_assignment_tail(key, key_offset))


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


def parse_textmap(text: str) -> TextmapDocument:
    """
    Tokenize a TEXTMAP into a `TextmapDocument`.

    Grammar: `namespace = "<id>";` plus any other top-level assignments,
    followed by `<header> { <key> = <value>; ... }` blocks. Comments and
    whitespace are accepted at every token boundary. Trailing blocks
    without fields are dropped.

    Raises `TextmapParseError` on malformed input.
    """

    sc = _Scanner(text)
    namespace: str | None = None
    namespace_offset = 0
    blocks: list[Block] = []
    global_fields: list[Field] = []

    while True:
        sc.skip_trivia()
        if sc.at_end():
            break

        start = sc.pos
        ident = sc.read_identifier()
        if ident == "":
            if sc.peek() == "{":
                raise sc.fail("TEXTMAP_MISSING_HEADER", "Block has no header")
            raise sc.fail("TEXTMAP_UNEXPECTED_CHARACTER", f"Unexpected character {sc.peek()!r}")

        sc.skip_trivia()
        c = sc.peek()
        if c == "=":
            assignment = sc.read_assignment_tail(ident, start)
            if ident.lower() == "namespace":
                if namespace is not None:
                    raise sc.fail("TEXTMAP_DUPLICATE_NAMESPACE", "Namespace declared more than once", start)
                namespace = _unquote(assignment.value)
                namespace_offset = start
            else:
                global_fields.append(assignment)
        elif c == "{":
            open_offset = sc.pos
            sc.pos += 1
            block = Block(header=ident, kind=BlockKind.from_header(ident))
            _parse_block_body(sc, block, open_offset)
            blocks.append(block)
        else:
            raise sc.fail("TEXTMAP_EXPECTED_BLOCK_OR_ASSIGNMENT", f"Expected '{{' or '=' after {ident!r}")

    if namespace is None:
        raise TextmapParseError(
            "TEXTMAP_MISSING_NAMESPACE", "No namespace declaration found", offset=namespace_offset, text=text
        )

    while blocks and not blocks[-1].fields:
        blocks.pop()

    return TextmapDocument(namespace=namespace, blocks=blocks, globals=global_fields)
