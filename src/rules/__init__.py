"""
Engine rule tables (configuration layer).

Per namespace: slope-creating linedef specials, slope-declaring sector
fields, "no texture required" specials, "no angle required" thing types and
per-kind default field values. Loaded from a JSON document; the package
ships `engines.json` as the built-in table set.
"""

from .contracts import EngineRules, RuleBook
from .loader import BUILTIN_RULES_PATH, RulesError, load_rulebook, rulebook_from_dict

__all__ = [
    "BUILTIN_RULES_PATH",
    "EngineRules",
    "RuleBook",
    "RulesError",
    "load_rulebook",
    "rulebook_from_dict",
]
