# maker.py
from __future__ import annotations

import io
import logging
import shutil
import subprocess
import sys
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import IO, Any, Dict, List, Optional, Sequence, TextIO, Tuple

from .config import Config
from .dag import Graph, build_graph, cycle_members, topo_batches
from .errors import (
    BatchErrors,
    CircularDependency,
    NoRuleToMakeTarget,
    OutputRoutingError,
    RecipeFailure,
)
from .model import Rule, RuleLookup
from .staleness import artifact_exists, artifact_path

logger = logging.getLogger(__name__)

FAIL_BANNER = "=" * 60


# ----------------------------------------------------------------------
# Output plumbing
# ----------------------------------------------------------------------

def _popen_target(sink: Optional[IO[Any]]) -> Tuple[Any, Optional[IO[Any]]]:
    """
    Returns (what to hand Popen, sink to pump a pipe into).

    Sinks backed by a real file descriptor are given to the child directly.
    Anything else (StringIO, BytesIO, pytest's capture) gets a pipe.
    """
    if sink is None:
        return None, None
    try:
        fd = sink.fileno()
    except (AttributeError, OSError, ValueError):
        return subprocess.PIPE, sink
    sink.flush()
    return fd, None


def _pump(src: IO[bytes], sink: IO[Any], errors: List[BaseException]) -> None:
    """Copy a recipe's pipe into its sink; a failing sink is recorded in `errors`."""
    text = None  # held so the wrapper does not close `src` while draining
    try:
        if isinstance(sink, (io.RawIOBase, io.BufferedIOBase)):
            for chunk in iter(lambda: src.read1(65536), b""):
                sink.write(chunk)
        else:
            text = io.TextIOWrapper(src, encoding="utf-8", errors="replace")
            for line in text:
                sink.write(line)
        sink.flush()
    except Exception as e:
        errors.append(e)
        # keep draining so the child never blocks on a full pipe
        for _ in iter(lambda: src.read(65536), b""):
            pass


# ----------------------------------------------------------------------
# Maker
# ----------------------------------------------------------------------

class Maker:
    """
    Builds `goals` from `rules`.

    The dependency graph and its batches are worked out once, here. Which
    targets actually need building is re-checked against the filesystem on
    every call, so dry_run() followed by run() sees the same picture as
    running them on a fresh Maker.
    """

    def __init__(self, rules: RuleLookup, goals: Sequence[str], config: Optional[Config] = None):
        if not goals:
            raise ValueError("Maker needs at least one goal")
        self.rules = rules
        self.goals = list(goals)
        self.config = config or Config()

        self._graph: Graph = build_graph(rules, self.goals)
        self._topo, self._cycles = topo_batches(self._graph)
        if self._cycles:
            logger.debug("unorderable targets: %s", sorted(self._cycles))

    # ---- topology ----

    @property
    def graph(self) -> Graph:
        return {t: list(deps) for t, deps in self._graph.items()}

    @property
    def cycles(self) -> Dict[str, List[str]]:
        return {t: list(deps) for t, deps in self._cycles.items()}

    def target_sets(self) -> List[List[str]]:
        """All batches, in build order, whether or not they need building."""
        return [list(batch) for batch in self._topo]

    def target_sets_needing_build(self) -> List[List[str]]:
        """
        The batches that still have work in them, each trimmed down to the
        targets needing a build.

        Raises NoRuleToMakeTarget / CircularDependency before anything is
        looked at on disk if the goals can't be built at all.
        """
        members = cycle_members(self._cycles)
        for goal in self.goals:
            if self.rules.rule_for(goal) is None:
                raise NoRuleToMakeTarget(goal)
            if goal in members:
                raise CircularDependency(goal, list(self._cycles[goal]))
        if members:
            # a goal depends on a cycle without being part of it
            target = members[0]
            raise CircularDependency(target, list(self._cycles[target]))

        needs_build = self.config.needs_build
        directory = self.config.directory

        target_sets: List[List[str]] = []
        for target_set in self._topo:
            outstanding: List[str] = []
            for target in target_set:
                rule = self.rules.rule_for(target)
                if not needs_build(target, rule, directory):
                    continue
                if rule is None:
                    raise NoRuleToMakeTarget(target)
                outstanding.append(target)
            if outstanding:
                target_sets.append(outstanding)
        return target_sets

    # ---- dry run ----

    def dry_run(self, out: Optional[TextIO] = None) -> None:
        """Print what run() would build, without building anything."""
        out = out or sys.stdout
        target_sets = self.target_sets_needing_build()
        if not target_sets:
            print("No target sets need building.", file=out)
        for i, target_set in enumerate(target_sets):
            if i != 0:
                print(file=out)
            print(f"========= TARGET SET {i} ({len(target_set)} targets)", file=out)
            for target in target_set:
                print(f" -  {target}", file=out)

    # ---- run ----

    def rule_output(self, rule: Rule) -> Tuple[Optional[IO[Any]], Optional[IO[Any]]]:
        if self.config.rule_output is not None:
            return self.config.rule_output(rule)
        return None, None

    def run(self) -> Dict[str, str]:
        """
        Build everything that needs building.

        Batches run one after the other; the targets of a batch run in
        parallel (at most config.parallel_jobs at a time). When targets fail,
        the rest of their batch still finishes, then BatchErrors is raised
        and no later batch starts.

        Returns target -> "ok" for every target built.
        """
        target_sets = self.target_sets_needing_build()
        results: Dict[str, str] = {}

        for idx, target_set in enumerate(target_sets):
            logger.debug("target set %d/%d: %s", idx + 1, len(target_sets), target_set)
            failures: List[RecipeFailure] = []

            with ThreadPoolExecutor(max_workers=self.config.workers_for(len(target_set))) as pool:
                futures = {}
                for target in target_set:
                    rule = self.rules.rule_for(target)
                    stdout, stderr = self.rule_output(rule)
                    futures[pool.submit(self._build_target, rule, stdout, stderr)] = target

                for future in as_completed(futures):
                    target = futures[future]
                    failure = future.result()
                    if failure is None:
                        results[target] = "ok"
                    else:
                        failures.append(failure)

            if failures:
                raise BatchErrors(sorted(failures, key=lambda f: f.target))

        return results

    # ---- per target ----

    def _build_target(
        self,
        rule: Rule,
        stdout: Optional[IO[Any]],
        stderr: Optional[IO[Any]],
    ) -> Optional[RecipeFailure]:
        target = rule.target()
        for recipe in rule.recipes():
            try:
                recipe = self.config.expand(rule, recipe)
            except Exception as e:
                self._remove_artifact(target)
                logger.error("[%s] expanding %r failed: %s", target, recipe, e)
                return RecipeFailure(target=target, command=recipe, error=e)

            if self.config.verbose:
                logger.info("[%s] %s", target, recipe)

            try:
                self._run_recipe(recipe, stdout, stderr)
            except (subprocess.CalledProcessError, OSError, OutputRoutingError) as e:
                self._remove_artifact(target)
                logger.error("command failed:\n%s\nFAIL: %s\n%s\n", FAIL_BANNER, recipe, FAIL_BANNER)
                return RecipeFailure(target=target, command=recipe, error=e)
        return None

    def _run_recipe(self, recipe: str, stdout: Optional[IO[Any]], stderr: Optional[IO[Any]]) -> None:
        out_arg, out_sink = _popen_target(stdout)
        err_arg, err_sink = _popen_target(stderr)

        proc = subprocess.Popen(
            ["sh", "-c", recipe],
            cwd=str(self.config.directory),
            stdout=out_arg,
            stderr=err_arg,
        )

        pumps = []
        pump_errors: List[BaseException] = []
        if out_sink is not None:
            pumps.append(threading.Thread(target=_pump, args=(proc.stdout, out_sink, pump_errors), daemon=True))
        if err_sink is not None:
            pumps.append(threading.Thread(target=_pump, args=(proc.stderr, err_sink, pump_errors), daemon=True))
        for t in pumps:
            t.start()

        returncode = proc.wait()
        for t in pumps:
            t.join()

        if returncode != 0:
            raise subprocess.CalledProcessError(returncode, recipe)
        if pump_errors:
            raise OutputRoutingError(pump_errors[0])

    def _remove_artifact(self, target: str) -> None:
        """Don't leave half-written output behind; errors here are only logged."""
        directory = self.config.directory
        try:
            if not artifact_exists(target, directory):
                return
            path = artifact_path(target, directory)
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        except OSError as e:
            logger.warning("[%s] failed removing target after error: %s", target, e)
