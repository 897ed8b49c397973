# expand.py
# Default automatic-variable expansion for recipe text.
#
#   $@  target
#   $<  first prerequisite
#   $^  prerequisites, duplicates dropped
#   $+  prerequisites, duplicates kept
#   $$  a literal "$"
#
# The parenthesised forms ($(@), $(<), ...) are accepted too. Anything else
# ($HOME, ${x}, $(shell ...)) is passed through untouched for the shell.

from __future__ import annotations

import re
from typing import Callable, List

from .model import Rule

Expander = Callable[[Rule, str], str]

_AUTO_VAR = re.compile(r"\$(?:\(([@<^+])\)|([@<^+$]))")


def _unique(items: List[str]) -> List[str]:
    seen: set[str] = set()
    out: List[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def expand_auto_vars(rule: Rule, recipe: str) -> str:
    prereqs = rule.prerequisites()
    values = {
        "@": rule.target(),
        "<": prereqs[0] if prereqs else "",
        "^": " ".join(_unique(prereqs)),
        "+": " ".join(prereqs),
        "$": "$",
    }
    return _AUTO_VAR.sub(lambda m: values[m.group(1) or m.group(2)], recipe)


def no_expansion(rule: Rule, recipe: str) -> str:
    return recipe
