# config.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Callable, Optional, Tuple

from .expand import Expander, expand_auto_vars
from .model import Rule
from .staleness import StalenessPredicate, missing_artifact

# Where a rule's recipes write to: (stdout, stderr). None means inherit the
# process's own stream.
OutputRouting = Callable[[Rule], Tuple[Optional[IO[Any]], Optional[IO[Any]]]]


@dataclass
class Config:
    """
    Knobs for a Maker.

      parallel_jobs: max targets of one batch built at the same time
                     (None or 0 = no limit)
      verbose:       log every recipe before running it
      rule_output:   picks stdout/stderr sinks per rule (default: ours)
      directory:     build directory; recipes run here and relative
                     targets resolve against it
      needs_build:   staleness predicate
      expand:        automatic-variable expansion applied to each recipe
    """
    parallel_jobs: Optional[int] = None
    verbose: bool = False
    rule_output: Optional[OutputRouting] = None
    directory: Path = field(default_factory=Path.cwd)
    needs_build: StalenessPredicate = missing_artifact
    expand: Expander = expand_auto_vars

    def __post_init__(self) -> None:
        if self.parallel_jobs is not None and self.parallel_jobs < 0:
            raise ValueError(f"parallel_jobs must be >= 0, got {self.parallel_jobs}")
        self.directory = Path(self.directory)

    def workers_for(self, batch_size: int) -> int:
        if not self.parallel_jobs:
            return max(1, batch_size)
        return max(1, min(self.parallel_jobs, batch_size))
