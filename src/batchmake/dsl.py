# src/batchmake/dsl.py
from __future__ import annotations

from typing import Iterable, List, Optional

from .model import BuildRule, Rule, RuleSet


# ---------------------------------------------------------------------
# Functional rule helper
# ---------------------------------------------------------------------

def rule(
    target: str,
    *recipes: str,  # allow: rule("x", "cmd1", "cmd2")
    needs: Optional[Iterable[str]] = None,
) -> BuildRule:
    """
    Create a rule.

    A rule with no recipes is allowed (a "phony" aggregate such as `all`).
    """
    if not target:
        raise ValueError("rule() needs a non-empty target")
    return BuildRule(name=target, commands=tuple(recipes), needs=tuple(needs or ()))


# ---------------------------------------------------------------------
# Builder API
# ---------------------------------------------------------------------

class RuleBuilder:
    def __init__(self, target: str):
        self.target = target
        self._needs: list[str] = []
        self._recipes: list[str] = []

    def needs(self, *targets: str):
        self._needs.extend(targets)
        return self

    def recipe(self, *commands: str):
        self._recipes.extend(commands)
        return self

    def build(self) -> BuildRule:
        return rule(self.target, *self._recipes, needs=self._needs)


def build(target: str) -> RuleBuilder:
    """Convenience: build('app').needs('app.o').recipe('cc -o $@ $^').build()"""
    return RuleBuilder(target)


# ---------------------------------------------------------------------
# Rule set helper (single-file story)
# ---------------------------------------------------------------------

def rules(*items: Rule | Iterable[Rule]) -> RuleSet:
    """
    Rules file helper.

    Users can write:
        from batchmake import rules, rule

        RULES = rules(
            rule("app", "cc -o $@ $^", needs=["main.o"]),
            rule("main.o", "cc -c main.c", needs=["main.c"]),
        )

    Lists of rules (e.g. generated in a loop) are flattened in place.
    """
    flat: List[Rule] = []
    for item in items:
        if isinstance(item, Rule):
            flat.append(item)
        else:
            flat.extend(item)
    return RuleSet.of(flat)
