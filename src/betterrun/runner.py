# runner.py
from __future__ import annotations

import runpy
from enum import Enum
from pathlib import Path
from typing import List, Sequence

from .dag import resolve
from .executor import check_arguments, run_recipe
from .model import Recipe, RecipeResult, RunResult, Status
from .table import RecipeTable
from .ui.console import get_console


# ----------------------------------------------------------------------
# Recipes loading (local python file)
# ----------------------------------------------------------------------

def load_recipes(path: str | Path) -> RecipeTable:
    """
    Load recipes from a python file path.

    The file must define either:
      - recipes() -> List[Recipe]
      - RECIPES = [Recipe, ...]

    Returns:
      A finalized RecipeTable (dangling dependencies are reported here)
    """
    rc_path = Path(path).expanduser().resolve()
    if not rc_path.exists():
        raise FileNotFoundError(f"Recipes file not found: {rc_path}")
    if rc_path.suffix != ".py":
        raise ValueError(f"Recipes file must be a .py file, got: {rc_path.name}")

    module_name = f"betterrun_recipes_{rc_path.stem}"
    globals_dict = runpy.run_path(str(rc_path), run_name=module_name)

    items = None
    if "recipes" in globals_dict and callable(globals_dict["recipes"]):
        items = globals_dict["recipes"]()
    elif "RECIPES" in globals_dict:
        items = globals_dict["RECIPES"]

    if not isinstance(items, list) or not all(isinstance(r, Recipe) for r in items):
        raise TypeError(
            "Recipes file must return/define a List[Recipe]. "
            "Define recipes() -> List[Recipe] or RECIPES = [Recipe, ...]."
        )

    return RecipeTable.from_recipes(items)


# ----------------------------------------------------------------------
# Orchestration
# ----------------------------------------------------------------------

class RunState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    RUNNING = "running"
    DONE = "done"


class Run:
    """
    One invocation of a recipe against a table.

    idle -> resolving -> running(i) -> done. Owns its plan and results; the
    table is only read.
    """

    def __init__(
        self,
        table: RecipeTable,
        root: str,
        args: Sequence[str] = (),
        *,
        workdir: str | Path = ".",
        dry_run: bool = False,
        print_plan: bool = True,
    ):
        self.table = table
        self.root = root
        self.args = list(args)
        self.workdir = Path(workdir)
        self.dry_run = dry_run
        self.print_plan = print_plan

        self.state = RunState.IDLE
        self.index: int | None = None      # position in the plan while running
        self.plan: List[str] = []
        self.result: RunResult | None = None

    def execute(self) -> RunResult:
        if self.state is not RunState.IDLE:
            raise RuntimeError(f"Run of '{self.root}' was already started (state={self.state.value})")
        console = get_console()

        # ---- resolve (errors propagate, nothing has run) ----
        self.state = RunState.RESOLVING
        # a table that was never finalized gets its dangling-name check now
        self.table.finalize()
        self.plan = resolve(self.table, self.root)
        # arguments only ever reach the requested recipe
        check_arguments(self.table.lookup(self.root), self.args)
        console.print_debug(f"plan for '{self.root}': {self.plan}")
        if self.print_plan:
            console.print_plan(self.plan)

        # ---- run, strictly in plan order ----
        self.state = RunState.RUNNING
        result = RunResult(root=self.root, plan=list(self.plan))
        self.result = result

        for i, name in enumerate(self.plan):
            self.index = i
            recipe = self.table.lookup(name)
            args = self.args if name == self.root else ()

            console.print_recipe_start(name)
            rr = run_recipe(recipe, args, workdir=self.workdir, dry_run=self.dry_run)
            result.results.append(rr)

            if not rr.ok:
                rest = self.plan[i + 1:]
                result.results.extend(RecipeResult(recipe=n, status=Status.SKIPPED) for n in rest)
                console.print_skipped(rest)
                break
            console.print_success(name)

        self.index = None
        self.state = RunState.DONE
        return result


def execute(
    table: RecipeTable,
    root: str,
    args: Sequence[str] = (),
    *,
    workdir: str | Path = ".",
    dry_run: bool = False,
    print_plan: bool = True,
) -> RunResult:
    """
    Resolve `root`, then run the planned recipes one at a time.

    - resolver / argument errors propagate unchanged; no process is started
    - the first recipe that does not succeed stops the run; everything after
      it in the plan is marked skipped
    - dependencies never receive `args`
    """
    return Run(
        table,
        root,
        args,
        workdir=workdir,
        dry_run=dry_run,
        print_plan=print_plan,
    ).execute()
