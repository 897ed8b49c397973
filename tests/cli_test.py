from __future__ import annotations

import textwrap

from click.testing import CliRunner

from batchmake.cli import cli

RULES = """
    from batchmake import rules, rule

    RULES = rules(
        rule("all", needs=["b.txt"]),
        rule("b.txt", "cat a.txt > $@", needs=["a.txt"]),
        rule("a.txt", "echo hi > $@"),
        rule("broken", "touch $@", "exit 4"),
        rule("loop", needs=["loop2"]),
        rule("loop2", needs=["loop"]),
    )
"""


def project(tmp_path):
    (tmp_path / "batchmake_rules.py").write_text(textwrap.dedent(RULES))
    return str(tmp_path)


def test_run_default_goal(tmp_path):
    result = CliRunner().invoke(cli, ["run", "-C", project(tmp_path)])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "b.txt").read_text() == "hi\n"
    assert "a.txt: BUILT" in result.output


def test_run_named_goal_with_jobs(tmp_path):
    result = CliRunner().invoke(cli, ["run", "-C", project(tmp_path), "-j", "2", "a.txt"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "a.txt").exists()
    assert not (tmp_path / "b.txt").exists()


def test_run_failure_exit_code(tmp_path):
    result = CliRunner().invoke(cli, ["run", "-C", project(tmp_path), "broken"])
    assert result.exit_code == 1
    assert "TARGET FAILED: broken" in result.output
    assert "Exit code: 4" in result.output
    assert not (tmp_path / "broken").exists()


def test_run_cycle(tmp_path):
    result = CliRunner().invoke(cli, ["run", "-C", project(tmp_path), "loop"])
    assert result.exit_code == 1
    assert "circular dependency" in result.output


def test_run_no_rule(tmp_path):
    result = CliRunner().invoke(cli, ["run", "-C", project(tmp_path), "nothing"])
    assert result.exit_code == 1
    assert "no rule to make target 'nothing'" in result.output


def test_dry_run(tmp_path):
    result = CliRunner().invoke(cli, ["dry-run", "-C", project(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "========= TARGET SET 0 (1 targets)" in result.output
    assert " -  a.txt" in result.output
    assert not (tmp_path / "a.txt").exists()


def test_dry_run_always_make(tmp_path):
    (tmp_path / "a.txt").write_text("old\n")
    result = CliRunner().invoke(cli, ["dry-run", "-C", project(tmp_path), "-B", "a.txt"])
    assert result.exit_code == 0, result.output
    assert " -  a.txt" in result.output


def test_targets(tmp_path):
    result = CliRunner().invoke(cli, ["targets", "-C", project(tmp_path)])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["0: a.txt", "1: b.txt", "2: all"]


def test_missing_rules_file(tmp_path):
    result = CliRunner().invoke(cli, ["run", "-C", str(tmp_path)])
    assert result.exit_code == 1
    assert "Rules file not found" in result.output


def test_explicit_rules_file(tmp_path):
    project(tmp_path)
    (tmp_path / "batchmake_rules.py").rename(tmp_path / "other.py")
    result = CliRunner().invoke(cli, ["dry-run", "-C", str(tmp_path), "-f", "other"])
    assert result.exit_code == 0, result.output
