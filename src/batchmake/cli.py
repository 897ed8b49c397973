# cli.py
from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from batchmake.config import Config
from batchmake.errors import BatchErrors, CircularDependency, MakeError, NoRuleToMakeTarget
from batchmake.loader import DEFAULT_RULES_FILE, load_rules
from batchmake.maker import Maker
from batchmake.model import RuleSet
from batchmake.staleness import always, missing_artifact
from batchmake.ui.console import Console, get_console, set_console


def discover_rules_file(rules_arg: str | None, directory: Path) -> Path:
    """
    Find the rules file from the -f argument or the default name.
    Relative paths resolve against the build directory, like make -C.

    Raises:
        SystemExit: If the rules file cannot be found
    """
    console = get_console()

    if rules_arg:
        rules_path = directory / rules_arg
        if not rules_path.exists() and rules_path.suffix != ".py":
            rules_path = Path(str(rules_path) + ".py")
    else:
        rules_path = directory / DEFAULT_RULES_FILE

    if not rules_path.exists():
        console.print_error(
            "Rules file not found",
            f"Could not find rules file: {rules_arg or rules_path}",
            suggestion=f"Create {DEFAULT_RULES_FILE} or specify one:\n  batchmake run -f my_rules.py",
        )
        sys.exit(1)
    return rules_path


def resolve_goals(rules: RuleSet, goals: tuple[str, ...]) -> list[str]:
    if goals:
        return list(goals)
    default = rules.default_goal()
    if default is None:
        get_console().print_error("No targets", "The rules file defines no rules.")
        sys.exit(1)
    return [default]


def make_maker(ctx, rules_file, directory, goals, jobs=None, verbose=False, always_make=False):
    directory = Path(directory).resolve()
    rules_path = discover_rules_file(rules_file, directory)
    rules = load_rules(rules_path)
    config = Config(
        parallel_jobs=jobs,
        verbose=verbose or ctx.obj.get("debug", False),
        directory=directory,
        needs_build=always if always_make else missing_artifact,
    )
    return rules_path, rules, Maker(rules, resolve_goals(rules, goals), config)


def report_make_error(e: MakeError) -> None:
    console = get_console()
    if isinstance(e, BatchErrors):
        console.print_batch_failure(e)
    elif isinstance(e, NoRuleToMakeTarget):
        console.print_error("No rule to make target", str(e))
    elif isinstance(e, CircularDependency):
        console.print_error("Circular dependency", str(e))
    else:
        console.print_exception(e)


def common_options(fn):
    fn = click.option("-f", "--file", "rules_file", default=None,
                      help=f"Rules file (defaults to {DEFAULT_RULES_FILE} in the build directory)")(fn)
    fn = click.option("-C", "--directory", default=".", show_default=True,
                      type=click.Path(file_okay=False), help="Build directory")(fn)
    fn = click.argument("goals", nargs=-1)(fn)
    return fn


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """batchmake: incremental, parallel, dependency-ordered builds."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@common_options
@click.option("-j", "--jobs", default=None, type=click.IntRange(min=0),
              help="Max targets built at once per batch (0 or unset = no limit)")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Print each recipe before running it")
@click.option("-B", "--always-make", is_flag=True, default=False, help="Rebuild every target that has a rule")
@click.pass_context
def run(ctx, goals, rules_file, directory, jobs, verbose, always_make):
    """Build GOALS (default: the first rule)."""
    console = get_console()
    logging.basicConfig(
        level=logging.DEBUG if ctx.obj.get("debug") else logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
    )

    try:
        rules_path, rules, maker = make_maker(ctx, rules_file, directory, goals, jobs, verbose, always_make)
        console.print_run_started(rules_path.name, maker.goals, len(rules))
        results = maker.run()
        console.print_results(results)
    except MakeError as e:
        report_make_error(e)
        sys.exit(1)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command("dry-run")
@common_options
@click.option("-B", "--always-make", is_flag=True, default=False, help="Treat every target with a rule as stale")
@click.pass_context
def dry_run(ctx, goals, rules_file, directory, always_make):
    """Show which targets `run` would build, batch by batch."""
    console = get_console()
    try:
        _path, _rules, maker = make_maker(ctx, rules_file, directory, goals, always_make=always_make)
        maker.dry_run(sys.stdout)
    except MakeError as e:
        report_make_error(e)
        sys.exit(1)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@common_options
@click.pass_context
def targets(ctx, goals, rules_file, directory):
    """Show every batch reachable from GOALS, built or not."""
    console = get_console()
    try:
        _path, _rules, maker = make_maker(ctx, rules_file, directory, goals)
        console.print_target_sets(maker.target_sets())
        for target, deps in sorted(maker.cycles.items()):
            console.print_info(f"cycle: {target} <- {' '.join(deps)}")
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


if __name__ == "__main__":
    cli()
