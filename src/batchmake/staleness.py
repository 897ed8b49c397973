# staleness.py
# Staleness predicates decide whether a target has to be (re)built.
#
# A predicate is called as predicate(target, rule, directory) where `rule` is
# None for targets nothing produces, and `directory` is the build directory
# relative target paths resolve against. Returning True means "needs build".

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from .model import Rule

StalenessPredicate = Callable[[str, Optional[Rule], Path], bool]


def artifact_path(target: str, directory: Path) -> Path:
    return Path(directory) / Path(target).expanduser()


def artifact_exists(target: str, directory: Path) -> bool:
    """
    True if something (file, directory, symlink - even a dangling one) sits at
    the target's path. Permission errors and the like propagate.
    """
    path = artifact_path(target, directory)
    try:
        path.lstat()
    except FileNotFoundError:
        return False
    except NotADirectoryError:
        return False
    return True


def missing_artifact(target: str, rule: Optional[Rule], directory: Path) -> bool:
    """Default policy: build whatever does not exist yet. No timestamps."""
    return not artifact_exists(target, directory)


def always(target: str, rule: Optional[Rule], directory: Path) -> bool:
    """Rebuild every target that has a rule; leaf inputs must still exist."""
    if rule is None:
        return not artifact_exists(target, directory)
    return True
