# dag.py
from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Tuple

from .model import RuleLookup

Graph = Dict[str, List[str]]


def build_graph(rules: RuleLookup, goals: Iterable[str]) -> Graph:
    """
    Collect every target reachable from `goals`.

    Returns target -> direct prerequisites. Prerequisites without a rule get
    a node of their own with no prerequisites (source files, external inputs).
    Goals without a rule are left out; they are reported when the build set
    is resolved. Cycles are not looked for here.
    """
    graph: Graph = {}
    seen: set[str] = set()
    q = deque(goals)

    while q:
        target = q.popleft()
        if target in seen:
            continue
        seen.add(target)

        rule = rules.rule_for(target)
        if rule is None:
            continue

        prereqs = list(rule.prerequisites())
        graph[target] = prereqs
        for dep in prereqs:
            # make a node for the prereq even if no rule produces it
            graph.setdefault(dep, [])
            q.append(dep)

    return graph


def topo_batches(graph: Graph) -> Tuple[List[List[str]], Dict[str, List[str]]]:
    """
    Convert the graph into topological batches (Kahn's algorithm, level by level).

    Each batch only depends on earlier batches, so its members can be built
    in parallel. Works on a private copy; `graph` is left as it was.

    Returns (batches, cycles). `cycles` is empty unless the graph could not
    be drained, in which case it maps every node left inside a cycle to its
    unresolved prerequisites and `batches` holds what could be ordered.
    """
    remaining: Graph = {t: list(deps) for t, deps in graph.items()}
    batches: List[List[str]] = []
    cycles: Dict[str, List[str]] = {}

    while remaining:
        zero = sorted(t for t, deps in remaining.items() if not deps)

        if not zero:
            referenced = {dep for deps in remaining.values() for dep in deps}
            for target, deps in remaining.items():
                if target in referenced:
                    cycles[target] = list(deps)
            break

        batches.append(zero)
        for target in zero:
            del remaining[target]

        done = set(zero)
        for target, deps in remaining.items():
            remaining[target] = [d for d in deps if d not in done]

    return batches, cycles


def cycle_members(cycles: Dict[str, List[str]]) -> List[str]:
    """
    The nodes of `cycles` that actually sit on a cycle, sorted.

    The cycle set also holds nodes that only depend on a cycle (they are
    still referenced by something above them); those can't reach themselves
    through the unresolved edges and are left out.
    """
    members: List[str] = []
    for start in sorted(cycles):
        seen: set[str] = set()
        stack = [d for d in cycles[start] if d in cycles]
        while stack:
            node = stack.pop()
            if node == start:
                members.append(start)
                break
            if node in seen:
                continue
            seen.add(node)
            stack.extend(d for d in cycles[node] if d in cycles)
    return members
