# loader.py
from __future__ import annotations

import runpy
from pathlib import Path
from typing import Iterable

from . import dsl
from .model import Rule, RuleSet

DEFAULT_RULES_FILE = "batchmake_rules.py"


# ----------------------------------------------------------------------
# Rules loading (local python file)
# ----------------------------------------------------------------------

def load_rules(path: str | Path) -> RuleSet:
    """
    Load rules from a python file path.

    The file must define either:
      - RULES = RuleSet | [Rule, ...]
      - rules() -> RuleSet | Iterable[Rule]

    RULES wins if both are there. The `rules` helper imported from
    batchmake itself does not count as a rules() function.

    Returns:
      RuleSet (first rule = default goal)
    """
    rules_path = Path(path).expanduser().resolve()
    if not rules_path.exists():
        raise FileNotFoundError(f"Rules file not found: {rules_path}")
    if rules_path.suffix != ".py":
        raise ValueError(f"Rules file must be a .py file, got: {rules_path.name}")

    module_name = f"batchmake_rules_{rules_path.stem}"
    globals_dict = runpy.run_path(str(rules_path), run_name=module_name)

    found = None
    fn = globals_dict.get("rules")
    if "RULES" in globals_dict:
        found = globals_dict["RULES"]
    elif callable(fn) and fn is not dsl.rules:
        found = fn()

    return _as_rule_set(found, rules_path)


def _as_rule_set(found: object, rules_path: Path) -> RuleSet:
    if isinstance(found, RuleSet):
        return found
    if isinstance(found, Iterable) and not isinstance(found, (str, bytes)):
        items = list(found)
        if all(isinstance(r, Rule) for r in items):
            return RuleSet.of(items)
    raise TypeError(
        f"{rules_path.name} must return/define rules. "
        "Define RULES = rules(rule(...), ...) or rules() -> [rule(...), ...]."
    )
