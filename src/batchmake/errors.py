# errors.py
from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from typing import Iterator, List, Optional


class MakeError(Exception):
    """Base class for everything the executor raises on purpose."""


# ----------------------------------------------------------------------
# Build-set resolution (raised before anything runs)
# ----------------------------------------------------------------------

@dataclass(eq=False)
class NoRuleToMakeTarget(MakeError):
    target: str

    def __str__(self) -> str:
        return f"no rule to make target {self.target!r}"


@dataclass(eq=False)
class CircularDependency(MakeError):
    target: str
    deps: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"circular dependency for target {self.target!r}: {self.deps}"


# ----------------------------------------------------------------------
# Execution
# ----------------------------------------------------------------------

@dataclass(eq=False)
class OutputRoutingError(MakeError):
    """A recipe ran, but its output could not be written to the configured sink."""
    error: BaseException

    def __str__(self) -> str:
        return f"writing recipe output failed: {self.error!r}"


@dataclass(eq=False)
class RecipeFailure(MakeError):
    """
    One recipe command of one target failed.

    `error` is what went wrong underneath: a CalledProcessError for a non-zero
    exit, the OSError raised when the shell could not be spawned, an
    OutputRoutingError, or whatever the expansion hook raised.
    """
    target: str
    command: str
    error: BaseException

    @property
    def exit_code(self) -> Optional[int]:
        if isinstance(self.error, subprocess.CalledProcessError):
            return self.error.returncode
        return None

    def __str__(self) -> str:
        if self.exit_code is not None:
            detail = f"exit status {self.exit_code}"
        else:
            detail = str(self.error)
        return f"[{self.target}] command {self.command!r} failed: {detail}"


@dataclass(eq=False)
class BatchErrors(MakeError):
    """Every recipe failure of the batch that stopped the build."""
    failures: List[RecipeFailure] = field(default_factory=list)

    @property
    def targets(self) -> List[str]:
        return [f.target for f in self.failures]

    def __iter__(self) -> Iterator[RecipeFailure]:
        return iter(self.failures)

    def __len__(self) -> int:
        return len(self.failures)

    def __str__(self) -> str:
        if len(self.failures) == 1:
            return str(self.failures[0])
        lines = [f"{len(self.failures)} targets failed:"]
        lines.extend(f"  {f}" for f in self.failures)
        return "\n".join(lines)
