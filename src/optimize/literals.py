from __future__ import annotations

import re

# Plain decimal with a fractional part; exponent forms are left alone.
_DECIMAL_RE = re.compile(r"^([+-]?)(\d*)\.(\d*)$")
_INT_RE = re.compile(r"^[+-]?\d+$")
_HEX_RE = re.compile(r"^[+-]?0[xX][0-9a-fA-F]+$")
_BOOL_WORDS = ("true", "false")


def parse_numeric_literal(value: str) -> float | None:
    """
    Numeric value of an unquoted TEXTMAP literal (decimal int, float or 0x hex).

    Returns None for quoted strings, keywords and anything else.
    """

    s = value.strip()
    if s == "" or s[0] == '"' or "_" in s:
        return None
    if _HEX_RE.match(s):
        return float(int(s, 16))
    if _INT_RE.match(s):
        return float(int(s, 10))
    try:
        x = float(s)
    except ValueError:
        return None
    if x != x or x in (float("inf"), float("-inf")):
        # nan/inf spelled out are identifiers, not numbers, in this format
        return None
    return x


def literals_equal(value: str, default: str) -> bool:
    """
    Whether a field value matches a declared default literal.

    Equal text, equal numbers (so `1.0`, `1` and `1.000` match), or the same
    boolean keyword ignoring case. Quoted values only match by text.
    """

    if value == default:
        return True
    a, b = value.strip().lower(), default.strip().lower()
    if a in _BOOL_WORDS or b in _BOOL_WORDS:
        return a == b
    na = parse_numeric_literal(value)
    nb = parse_numeric_literal(default)
    return na is not None and nb is not None and na == nb


def canonicalize_float_literal(value: str) -> str:
    """
    Strip trailing fractional zeros from a decimal literal.

    "1.500" -> "1.5", "2.000" -> "2", ".000" -> "0"; integers, exponent
    forms, hex and non-numeric text are returned unchanged.
    """

    m = _DECIMAL_RE.match(value)
    if m is None:
        return value
    sign, whole, frac = m.groups()
    if whole == "" and frac == "":
        return value  # a lone "." is not a number
    frac = frac.rstrip("0")
    if whole == "" and frac == "":
        whole = "0"
    if frac == "":
        return f"{sign}{whole}"
    return f"{sign}{whole}.{frac}"
