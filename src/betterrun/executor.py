# executor.py
from __future__ import annotations

import os
import signal
import subprocess
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from .errors import ArgumentCountMismatch, LaunchError
from .model import PLACEHOLDER, Command, CommandResult, Recipe, RecipeResult, Status
from .ui.console import get_console

# shell convention for "command not found"
LAUNCH_ERROR_EXIT = 127
INTERRUPTED_EXIT = 128 + signal.SIGINT

TOOL_HINTS = {
    "cargo": "Install Rust via rustup (https://rustup.rs) or fix PATH.",
    "rustup": "Install rustup (https://rustup.rs) or fix PATH.",
    "npm": "Install Node.js (includes npm) or fix PATH.",
    "node": "Install Node.js or fix PATH.",
    "pytest": "Install pytest (e.g., pip install pytest).",
    "ruff": "Install ruff (e.g., pip install ruff).",
    "docker": "Install Docker and ensure the daemon is running.",
    "python3": "Install Python 3 or fix PATH (python3).",
}


# ----------------------------------------------------------------------
# Arguments + environment
# ----------------------------------------------------------------------

def check_arguments(recipe: Recipe, args: Sequence[str]) -> None:
    """Fail before anything runs if `recipe` references more $N than were given."""
    if len(args) < recipe.arity:
        raise ArgumentCountMismatch(recipe=recipe.name, required=recipe.arity, given=len(args))


def substitute(tokens: Sequence[str], args: Sequence[str], recipe: str = "") -> List[str]:
    """
    Replace positional placeholders in argument tokens.

      $1..$N  the Nth argument, anywhere inside a token
      $0      the recipe name
      $@      as a whole token: every argument, one token each;
              inside a larger token: the arguments joined by spaces
      $$      a literal '$'
    """
    args = list(args)
    required = max(
        (int(m.group(1)) for t in tokens for m in PLACEHOLDER.finditer(t) if m.group(1).isdigit()),
        default=0,
    )
    if len(args) < required:
        raise ArgumentCountMismatch(recipe=recipe, required=required, given=len(args))

    def replace(m) -> str:
        key = m.group(1)
        if key == "$":
            return "$"
        if key == "@":
            return " ".join(args)
        n = int(key)
        return recipe if n == 0 else args[n - 1]

    out: List[str] = []
    for token in tokens:
        if token == "$@":
            out.extend(args)
        else:
            out.append(PLACEHOLDER.sub(replace, token))
    return out


def build_env(
    recipe: Recipe,
    command: Command,
    base: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Inherited environment, then recipe env, then command env (later wins)."""
    env = dict(os.environ if base is None else base)
    env.update(recipe.env or {})
    env.update(command.env or {})
    return env


def _exit_code(returncode: int) -> int:
    # Popen reports death-by-signal N as -N; shells report 128 + N
    return 128 - returncode if returncode < 0 else returncode


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _interrupt(proc: subprocess.Popen) -> None:
    """Forward an interrupt to the running child and wait for it to go away."""
    try:
        if os.name == "nt":
            proc.terminate()
        else:
            proc.send_signal(signal.SIGINT)
        proc.wait()
    except KeyboardInterrupt:
        # second Ctrl-C: stop waiting politely
        proc.kill()
        proc.wait()


def run_command(
    recipe: Recipe,
    command: Command,
    argv: Sequence[str],
    *,
    workdir: str | Path = ".",
    env: Optional[Mapping[str, str]] = None,
) -> CommandResult:
    """
    Spawn one command with inherited stdout/stderr and wait for it.

    Raises:
      LaunchError: the process could not be started at all
    """
    cwd = (Path(workdir) / (command.cwd or ".")).resolve()
    if not cwd.is_dir():
        raise LaunchError(recipe=recipe.name, argv=tuple(argv), reason=f"working directory not found: {cwd}")

    try:
        proc = subprocess.Popen(
            list(argv),
            cwd=str(cwd),
            env=dict(env) if env is not None else build_env(recipe, command),
        )
    except (OSError, ValueError) as e:
        # ValueError: e.g. an embedded NUL byte in an argument
        reason = getattr(e, "strerror", None) or str(e)
        raise LaunchError(recipe=recipe.name, argv=tuple(argv), reason=reason) from e

    try:
        code = _exit_code(proc.wait())
    except KeyboardInterrupt:
        _interrupt(proc)
        code = _exit_code(proc.returncode) or INTERRUPTED_EXIT

    return CommandResult(command=command, argv=tuple(argv), exit_code=code)


def run_recipe(
    recipe: Recipe,
    args: Sequence[str] = (),
    *,
    workdir: str | Path = ".",
    dry_run: bool = False,
) -> RecipeResult:
    """
    Run every command of `recipe` in declared order.

    Stops at the first command that fails or cannot be launched; the rest of
    the recipe does not run. Arguments are checked for every command before
    any process starts.

    Returns:
      RecipeResult with status success / failure / launch_error
    Raises:
      ArgumentCountMismatch: fewer args than the recipe references
    """
    console = get_console()
    check_arguments(recipe, args)
    planned = [(c, substitute(c.argv, args, recipe=recipe.name)) for c in recipe.commands]

    result = RecipeResult(recipe=recipe.name, status=Status.SUCCESS, exit_code=0)
    for command, argv in planned:
        console.print_command(argv, dry_run=dry_run)
        if dry_run:
            result.commands.append(CommandResult(command=command, argv=tuple(argv), exit_code=0))
            continue

        try:
            cr = run_command(recipe, command, argv, workdir=workdir)
        except LaunchError as e:
            cr = CommandResult(command=command, argv=tuple(argv), exit_code=LAUNCH_ERROR_EXIT, launch_error=e.reason)
            result.commands.append(cr)
            result.status = Status.LAUNCH_ERROR
            result.exit_code = LAUNCH_ERROR_EXIT
            result.command = cr
            console.print_failure(
                recipe.name,
                str(e),
                exit_code=LAUNCH_ERROR_EXIT,
                hint=TOOL_HINTS.get(argv[0], f"Install {argv[0]} or fix PATH."),
            )
            return result

        result.commands.append(cr)
        if not cr.ok:
            result.status = Status.FAILURE
            result.exit_code = cr.exit_code
            result.command = cr
            console.print_failure(
                recipe.name,
                f"command '{command.display}' failed (exit={cr.exit_code})",
                exit_code=cr.exit_code,
            )
            return result

    return result
