# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class Rule(Protocol):
    """
    Anything that can produce a target.

    The executor only ever talks to rules through these three accessors, so
    rules built in Python, loaded from a rules file or adapted from some other
    source all look the same to it.
    """

    def target(self) -> str: ...

    def prerequisites(self) -> List[str]: ...

    def recipes(self) -> List[str]: ...


@runtime_checkable
class RuleLookup(Protocol):
    def rule_for(self, target: str) -> Optional[Rule]: ...


@dataclass(frozen=True)
class BuildRule:
    """A target + the targets it needs + the shell commands that make it."""
    name: str
    commands: tuple[str, ...] = ()
    needs: tuple[str, ...] = ()

    def target(self) -> str:
        return self.name

    def prerequisites(self) -> List[str]:
        return list(self.needs)

    def recipes(self) -> List[str]:
        return list(self.commands)


@dataclass
class RuleSet:
    """
    Ordered collection of rules, at most one per target.

    The first rule added is the default goal (like the first rule of a
    Makefile).
    """
    _rules: Dict[str, Rule] = field(default_factory=dict)

    @classmethod
    def of(cls, rules: Iterable[Rule]) -> "RuleSet":
        rs = cls()
        for r in rules:
            rs.add(r)
        return rs

    def add(self, rule: Rule) -> None:
        name = rule.target()
        if name in self._rules:
            raise ValueError(f"Duplicate rule for target '{name}'")
        self._rules[name] = rule

    def rule_for(self, target: str) -> Optional[Rule]:
        return self._rules.get(target)

    def targets(self) -> List[str]:
        return list(self._rules)

    def default_goal(self) -> Optional[str]:
        return next(iter(self._rules), None)

    def __contains__(self, target: object) -> bool:
        return target in self._rules

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)
