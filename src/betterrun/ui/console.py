"""Console output formatting utilities for BetterRun."""

from __future__ import annotations

import sys
from typing import Iterable, Optional

from ..model import RecipeResult, RunResult, Status


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_run_started(
        self,
        recipes_file: str,
        recipe: str,
        args: Iterable[str] = (),
    ) -> None:
        """Print run start information."""
        args = list(args)
        print("\nRUN STARTED")
        print(f"Recipes: {recipes_file}")
        print(f"Recipe: {recipe}")
        if args:
            print(f"Arguments: {' '.join(args)}")
        print()

    def print_plan(self, plan: list[str]) -> None:
        """Print the resolved execution plan."""
        print("PLAN")
        for idx, name in enumerate(plan, start=1):
            print(f"  {idx}. {name}")

    def print_recipe_start(self, name: str) -> None:
        """Print recipe start message."""
        print(f"\nRECIPE STARTED: {name}")

    def print_command(self, argv: Iterable[str], dry_run: bool = False) -> None:
        """Print command start message."""
        prefix = "COMMAND (dry run)" if dry_run else "COMMAND"
        print(f"{prefix}: {' '.join(argv)}")
        # child processes share our stdout; keep our lines ahead of theirs
        sys.stdout.flush()

    def print_success(self, name: str) -> None:
        """Print success message."""
        print(f"STATUS: success")

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
        hint: Optional[str] = None,
    ) -> None:
        """
        Print failure message.

        Args:
            name: Recipe name
            reason: Failure reason/error message
            exit_code: Optional exit code
            hint: Optional hint for user
        """
        print(f"RECIPE FAILED: {name}")
        if exit_code is not None:
            print(f"Exit code: {exit_code}")
        if hint:
            print(f"Hint: {hint}")
        if self.debug:
            print(f"Error details: {reason}")
        else:
            # Show first line of error for non-debug mode
            error_line = reason.split('\n')[0] if reason else "Unknown error"
            print(f"Error: {error_line}")

    def print_skipped(self, names: list[str]) -> None:
        """Print recipes that will not run because an earlier one failed."""
        for name in names:
            print(f"SKIPPED: {name}")

    def print_results(self, result: RunResult) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for r in result.results:
            print(f"  {r.recipe}: {_status_display(r)}")
        failed = result.failed
        if failed is not None:
            cmd = " ".join(failed.command.argv) if failed.command else "?"
            print(f"\nStopped at '{failed.recipe}' (exit={failed.exit_code}): {cmd}")
            if result.skipped:
                print(f"Skipped: {', '.join(result.skipped)}")

    def print_recipe_list(self, rows: list[tuple[str, str, str]]) -> None:
        """Print `name params`, aligned, followed by `# doc`."""
        print("Available recipes:")
        if not rows:
            print("  (none)")
            return
        width = max(len(f"{name} {params}".strip()) for name, params, _ in rows)
        for name, params, doc in rows:
            head = f"{name} {params}".strip()
            if doc:
                print(f"    {head.ljust(width)} # {doc}")
            else:
                print(f"    {head}")

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

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


def _status_display(r: RecipeResult) -> str:
    if r.status is Status.SUCCESS:
        return "SUCCESS"
    if r.status is Status.SKIPPED:
        return "SKIPPED"
    return f"{r.status.value.upper()} (exit={r.exit_code})"


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
