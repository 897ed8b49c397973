from __future__ import annotations

import random

from batchmake import rule, rules
from batchmake.dag import build_graph, cycle_members, topo_batches


def diamond():
    return rules(
        rule("A", "touch $@"),
        rule("B", "touch $@", needs=["A"]),
        rule("C", "touch $@", needs=["A"]),
        rule("D", "touch $@", needs=["B", "C"]),
    )


def assert_ordered(rs, batches):
    position = {t: i for i, batch in enumerate(batches) for t in batch}
    for target, i in position.items():
        r = rs.rule_for(target)
        if r is None:
            continue
        for dep in r.prerequisites():
            if rs.rule_for(dep) is not None:
                assert position[dep] < i, f"{dep} must come before {target}"


def test_graph_is_reachability_from_goals():
    rs = rules(
        rule("app", needs=["main.o"]),
        rule("main.o", needs=["main.c"]),
        rule("unrelated", "touch $@"),
    )
    graph = build_graph(rs, ["app"])
    assert graph == {"app": ["main.o"], "main.o": ["main.c"], "main.c": []}


def test_goal_without_rule_is_left_out_of_graph():
    assert build_graph(rules(rule("x")), ["nope"]) == {}


def test_diamond_batches():
    batches, cycles = topo_batches(build_graph(diamond(), ["D"]))
    assert batches == [["A"], ["B", "C"], ["D"]]
    assert cycles == {}


def test_batching_leaves_graph_untouched():
    graph = build_graph(diamond(), ["D"])
    before = {t: list(deps) for t, deps in graph.items()}
    topo_batches(graph)
    assert graph == before


def test_repeated_prerequisite_is_not_a_cycle():
    rs = rules(rule("a", needs=["b", "b"]), rule("b"))
    batches, cycles = topo_batches(build_graph(rs, ["a"]))
    assert batches == [["b"], ["a"]]
    assert cycles == {}


def test_two_node_cycle():
    rs = rules(rule("X", needs=["Y"]), rule("Y", needs=["X"]))
    batches, cycles = topo_batches(build_graph(rs, ["X"]))
    assert batches == []
    assert cycles == {"X": ["Y"], "Y": ["X"]}


def test_cycle_stops_batching_part_way():
    rs = rules(
        rule("Z", needs=["X", "leaf"]),
        rule("X", needs=["Y"]),
        rule("Y", needs=["X"]),
    )
    batches, cycles = topo_batches(build_graph(rs, ["Z"]))
    assert batches == [["leaf"]]
    assert set(cycles) == {"X", "Y"}
    assert cycles["X"] == ["Y"]


def test_self_dependency_is_a_cycle():
    rs = rules(rule("loop", needs=["loop"]))
    _batches, cycles = topo_batches(build_graph(rs, ["loop"]))
    assert cycles == {"loop": ["loop"]}


def test_random_acyclic_rule_sets_are_ordered():
    rng = random.Random(1234)
    for _ in range(25):
        n = rng.randint(1, 30)
        names = [f"t{i}" for i in range(n)]
        # edges only point at lower indices, so there is no cycle
        rs = rules(
            rule(name, needs=rng.sample(names[:i], k=rng.randint(0, min(i, 4))) + (["src.c"] if i % 3 == 0 else []))
            for i, name in enumerate(names)
        )
        goals = rng.sample(names, k=rng.randint(1, n))
        batches, cycles = topo_batches(build_graph(rs, goals))

        assert cycles == {}
        assert_ordered(rs, batches)
        flat = [t for batch in batches for t in batch]
        assert len(flat) == len(set(flat))
        assert set(goals) <= set(flat)


def test_cycle_members_skip_nodes_that_only_depend_on_a_cycle():
    rs = rules(
        rule("G", needs=["A"]),
        rule("A", needs=["B"]),
        rule("B", needs=["C"]),
        rule("C", needs=["B"]),
    )
    _batches, cycles = topo_batches(build_graph(rs, ["G"]))
    assert set(cycles) == {"A", "B", "C"}
    assert cycle_members(cycles) == ["B", "C"]
    assert cycle_members({}) == []
