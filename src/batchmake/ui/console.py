"""Console output formatting utilities for batchmake."""

from __future__ import annotations

import sys
from typing import List, Optional

from ..errors import BatchErrors


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_run_started(self, rules_file: str, goals: List[str], rule_count: int) -> None:
        """Print run start information."""
        print("\nBUILD STARTED")
        print(f"Rules: {rules_file} ({rule_count} rules)")
        print(f"Goals: {' '.join(goals)}")
        print()

    def print_target_sets(self, target_sets: List[List[str]]) -> None:
        """Print the full batch topology (no staleness filtering)."""
        for i, target_set in enumerate(target_sets):
            print(f"{i}: {' '.join(target_set)}")

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        if not results:
            print("  nothing to be done")
        for target, status in results.items():
            status_display = status.upper() if status != "ok" else "BUILT"
            print(f"  {target}: {status_display}")

    def print_batch_failure(self, err: BatchErrors) -> None:
        """Print every failed target of the batch that stopped the build."""
        print(f"\nBUILD FAILED ({len(err)} target(s))", file=sys.stderr)
        for failure in err:
            print(f"TARGET FAILED: {failure.target}", file=sys.stderr)
            print(f"Command: {failure.command}", file=sys.stderr)
            if failure.exit_code is not None:
                print(f"Exit code: {failure.exit_code}", file=sys.stderr)
            else:
                print(f"Error: {failure.error}", file=sys.stderr)

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
