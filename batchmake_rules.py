# batchmake_rules.py
# Rules for a tiny C program; `batchmake run` builds `hello`.
from __future__ import annotations

from batchmake import rules, rule, build

SOURCES = ["main", "greet"]


def objects():
    return [
        rule(f"build/{name}.o", "mkdir -p build", "cc -c -o $@ $<", needs=[f"{name}.c", "greet.h"])
        for name in SOURCES
    ]


RULES = rules(
    # first rule = default goal
    rule("hello", "cc -o $@ $^", needs=[f"build/{name}.o" for name in SOURCES]),
    objects(),
    build("greet.h").recipe("printf 'void greet(void);\\n' > $@").build(),
    rule("main.c", "printf '#include \"greet.h\"\\nint main(void) { greet(); return 0; }\\n' > $@", needs=["greet.h"]),
    rule("greet.c", "printf '#include <stdio.h>\\nvoid greet(void) { puts(\"hello\"); }\\n' > $@"),
)
