from __future__ import annotations

import pytest

from batchmake import rule
from batchmake.expand import expand_auto_vars, no_expansion

R = rule("bin/app", needs=["main.o", "util.o", "main.o"])


@pytest.mark.parametrize(
    "recipe, expected",
    [
        ("cc -o $@ $^", "cc -o bin/app main.o util.o"),
        ("cc -o $@ $+", "cc -o bin/app main.o util.o main.o"),
        ("head $<", "head main.o"),
        ("echo $(@) $(<)", "echo bin/app main.o"),
        ("echo $$HOME", "echo $HOME"),
        ("echo $HOME ${PATH} $(date)", "echo $HOME ${PATH} $(date)"),
        ("echo $$@", "echo $@"),
    ],
)
def test_expand_auto_vars(recipe, expected):
    assert expand_auto_vars(R, recipe) == expected


def test_no_prerequisites():
    assert expand_auto_vars(rule("x"), "echo [$<] [$^]") == "echo [] []"


def test_no_expansion_passes_text_through():
    assert no_expansion(R, "cc -o $@ $^") == "cc -o $@ $^"
