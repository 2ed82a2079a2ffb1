from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from contracts.textmap import BlockKind

from .contracts import EngineRules, RuleBook

BUILTIN_RULES_PATH = Path(__file__).resolve().with_name("engines.json")


class RulesError(Exception):
    pass


def _literal(value: Any, *, where: str) -> str:
    """
    Normalize a JSON scalar into TEXTMAP literal text.

    Strings are taken verbatim (a quoted TEXTMAP default is written with its
    quotes, e.g. "\\"-\\""), booleans become `true`/`false`.
    """

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value
    raise RulesError(f"{where}: default must be a string, number or boolean, got {type(value).__name__}")


def _int_set(raw: Any, *, where: str) -> frozenset[int] | None:
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise RulesError(f"{where}: expected a list of integers")
    out: set[int] = set()
    for x in raw:
        if isinstance(x, bool) or not isinstance(x, int):
            raise RulesError(f"{where}: expected integers, got {x!r}")
        out.add(x)
    return frozenset(out)


def _str_set(raw: Any, *, where: str) -> frozenset[str] | None:
    if raw is None:
        return None
    if not isinstance(raw, list) or not all(isinstance(x, str) for x in raw):
        raise RulesError(f"{where}: expected a list of strings")
    return frozenset(raw)


def _defaults(raw: Any, *, where: str) -> dict[BlockKind, dict[str, str]] | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise RulesError(f"{where}: expected an object keyed by block kind")
    out: dict[BlockKind, dict[str, str]] = {}
    for kind_name, table in raw.items():
        kind = BlockKind.from_header(str(kind_name))
        if kind is BlockKind.OTHER:
            raise RulesError(f"{where}: unknown block kind {kind_name!r}")
        if not isinstance(table, dict):
            raise RulesError(f"{where}.{kind_name}: expected an object of key -> default")
        out[kind] = {str(k): _literal(v, where=f"{where}.{kind_name}.{k}") for k, v in table.items()}
    return out


def engine_rules_from_dict(d: dict[str, Any]) -> EngineRules:
    if not isinstance(d, dict):
        raise RulesError("engine entry must be an object")
    engine = d.get("engine")
    if not isinstance(engine, str) or engine == "":
        raise RulesError("engine entry is missing its 'engine' name")
    where = f"engines[{engine}]"

    namespaces = _str_set(d.get("namespaces"), where=f"{where}.namespaces")
    if not namespaces:
        raise RulesError(f"{where}: at least one namespace is required")

    vertex_slopes = d.get("vertex_slopes", False)
    if not isinstance(vertex_slopes, bool):
        raise RulesError(f"{where}.vertex_slopes: expected a boolean")

    return EngineRules(
        engine=engine,
        namespaces=tuple(sorted(ns.strip().lower() for ns in namespaces)),
        vertex_slopes=vertex_slopes,
        slope_sector_fields=_str_set(d.get("slope_sector_fields"), where=f"{where}.slope_sector_fields"),
        slope_specials=_int_set(d.get("slope_specials"), where=f"{where}.slope_specials"),
        no_texture_specials=_int_set(d.get("no_texture_specials"), where=f"{where}.no_texture_specials"),
        no_angle_thing_types=_int_set(d.get("no_angle_thing_types"), where=f"{where}.no_angle_thing_types"),
        defaults=_defaults(d.get("defaults"), where=f"{where}.defaults"),
    )


def rulebook_from_dict(d: dict[str, Any], *, source: str = "<dict>") -> RuleBook:
    if not isinstance(d, dict) or not isinstance(d.get("engines"), list):
        raise RulesError("rules document must be an object with an 'engines' list")

    engines = tuple(engine_rules_from_dict(e) for e in d["engines"])
    claimed: dict[str, str] = {}
    for rules in engines:
        for ns in rules.namespaces:
            if ns in claimed:
                raise RulesError(f"namespace {ns!r} claimed by both {claimed[ns]!r} and {rules.engine!r}")
            claimed[ns] = rules.engine
    return RuleBook(engines=engines, source=source)


def load_rulebook(path: Path | None = None) -> RuleBook:
    """
    Load engine rule tables from a JSON document.

    `path=None` loads the rule tables shipped with the package.
    Raises `RulesError` if the file is missing, not JSON, or malformed.
    """

    rules_file = BUILTIN_RULES_PATH if path is None else path
    try:
        payload = json.loads(rules_file.read_text(encoding="utf-8"))
    except OSError as e:
        raise RulesError(f"cannot read rules file {rules_file}: {e}") from e
    except json.JSONDecodeError as e:
        raise RulesError(f"rules file {rules_file} is not valid JSON: {e}") from e

    source = "builtin" if path is None else str(rules_file)
    return rulebook_from_dict(payload, source=source)
