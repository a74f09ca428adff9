# cli.py
from __future__ import annotations

import sys
from pathlib import Path

import click

from betterrun.dag import dependents, resolve
from betterrun.errors import RecipeError
from betterrun.runner import execute, load_recipes
from betterrun.table import RecipeTable
from betterrun.ui.console import Console, get_console, set_console

DEFAULT_RECIPES_FILE = "betterrun_recipes.py"

# reserved: the recipes could not be loaded, resolved, or given the right arguments
EXIT_DEFINITION_ERROR = 2
EXIT_INTERRUPTED = 130


def find_recipes_files() -> list[Path]:
    """
    Find all recipes files in the current directory.

    Returns:
        List of Path objects for recipes files
    """
    current_dir = Path(".")

    default_file = current_dir / DEFAULT_RECIPES_FILE
    if default_file.exists():
        return [default_file]

    return sorted(current_dir.glob("*_recipes.py"))


def discover_recipes(recipes_arg: str | None) -> Path:
    """
    Discover recipes file from argument or default.

    Raises:
        SystemExit: If no recipes file can be found or several exist
    """
    console = get_console()

    if recipes_arg:
        path = Path(recipes_arg)
        if not path.exists() and path.suffix != ".py":
            path = Path(str(path) + ".py")
        if not path.exists():
            console.print_error(
                "Recipes file not found",
                f"Could not find recipes file: {recipes_arg}",
                suggestion="Create a recipes file or specify a different path:\n  betterrun run --recipes my_recipes.py",
            )
            sys.exit(EXIT_DEFINITION_ERROR)
        return path

    files = find_recipes_files()

    if len(files) == 0:
        console.print_error(
            "No recipes file found",
            "Could not find any recipes files.",
            details=[
                "Looked for:",
                f"  {DEFAULT_RECIPES_FILE}",
                "  *_recipes.py",
            ],
            suggestion=f"Create a recipes file:\n  {DEFAULT_RECIPES_FILE}\n\nOr specify one explicitly:\n  betterrun run --recipes my_recipes.py",
        )
        sys.exit(EXIT_DEFINITION_ERROR)

    if len(files) > 1:
        console.print_error(
            "Multiple recipes files found",
            "Found multiple recipes files. Please specify which one to use:",
            details=[str(f) for f in files],
            suggestion="Specify a recipes file explicitly:\n  betterrun run --recipes ci_recipes.py",
        )
        sys.exit(EXIT_DEFINITION_ERROR)

    return files[0]


def _load(recipes_arg: str | None, debug: bool) -> tuple[Path, RecipeTable]:
    console = get_console()
    path = discover_recipes(recipes_arg)
    try:
        table = load_recipes(path)
    except (RecipeError, FileNotFoundError, ValueError, TypeError) as e:
        console.print_error(
            "Failed to load recipes",
            f"Could not load recipes from {path}",
            details=[str(e)],
        )
        if debug:
            console.print_exception(e)
        sys.exit(EXIT_DEFINITION_ERROR)
    except Exception as e:
        # e.g. a SyntaxError inside the recipes file
        console.print_exception(e)
        sys.exit(1)
    console.print_debug(f"loaded {len(table)} recipe(s) from {path}")
    return path, table


recipes_option = click.option(
    "--recipes",
    "recipes_file",
    default=None,
    envvar="BETTERRUN_RECIPES",
    help=f"Recipes file path (defaults to {DEFAULT_RECIPES_FILE} if present)",
)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    envvar="BETTERRUN_DEBUG",
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """BetterRun: declarative recipe runner."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@recipes_option
@click.option("--workdir", default=None, type=click.Path(file_okay=False), help="Directory commands run in (defaults to the recipes file's directory)")
@click.option("--dry-run", is_flag=True, default=False, help="Print the commands without running them")
@click.option("--print-plan/--no-print-plan", default=True, show_default=True, help="Print the resolved plan before running")
@click.argument("recipe", required=False)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run(ctx, recipes_file, workdir, dry_run, print_plan, recipe, args):
    """Run RECIPE (default: the first recipe) with positional ARGS."""
    console = get_console()
    debug = ctx.obj.get("debug", False)
    path, table = _load(recipes_file, debug)

    if recipe is None:
        if table.default is None:
            console.print_error("No recipes defined", f"{path} does not define any recipe.")
            sys.exit(EXIT_DEFINITION_ERROR)
        recipe = table.default.name

    try:
        console.print_run_started(recipes_file=path.name, recipe=recipe, args=args)
        result = execute(
            table,
            recipe,
            args,
            workdir=workdir or path.resolve().parent,
            dry_run=dry_run,
            print_plan=print_plan,
        )
    except RecipeError as e:
        console.print_error(type(e).__name__, str(e))
        if debug:
            console.print_exception(e)
        sys.exit(EXIT_DEFINITION_ERROR)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    console.print_results(result)
    if result.exit_code != 0:
        sys.exit(result.exit_code)


@cli.command(name="list")
@recipes_option
@click.pass_context
def list_recipes(ctx, recipes_file):
    """List recipes with their parameters and descriptions."""
    console = get_console()
    _path, table = _load(recipes_file, ctx.obj.get("debug", False))

    rows = []
    for r in table:
        params = " ".join(f"${i}" for i in range(1, r.arity + 1))
        doc = r.doc or ""
        if r.dependencies:
            needs = f"needs: {', '.join(r.dependencies)}"
            doc = f"{doc} ({needs})" if doc else needs
        rows.append((r.name, params, doc))
    console.print_recipe_list(rows)


@cli.command()
@recipes_option
@click.argument("recipe")
@click.pass_context
def show(ctx, recipes_file, recipe):
    """Show RECIPE's commands, dependencies and resolved plan."""
    console = get_console()
    debug = ctx.obj.get("debug", False)
    _path, table = _load(recipes_file, debug)

    try:
        r = table.lookup(recipe)
        plan = resolve(table, recipe)
        used_by = dependents(table, recipe)
    except RecipeError as e:
        console.print_error(type(e).__name__, str(e))
        sys.exit(EXIT_DEFINITION_ERROR)

    console.print_header(r.name)
    if r.doc:
        console.print_info(r.doc)
    console.print_info(f"Depends on: {', '.join(r.dependencies) or '-'}")
    console.print_info(f"Used by: {', '.join(used_by) or '-'}")
    console.print_info(f"Parameters: {r.arity}")
    for key, value in r.env.items():
        console.print_info(f"Env: {key}={value}")
    console.print_info("Commands:")
    for c in r.commands:
        prefix = " ".join(f"{k}={v}" for k, v in c.env.items())
        line = " ".join(c.argv)
        console.print_info(f"  {prefix + ' ' if prefix else ''}{line}")
    if not r.commands:
        console.print_info("  (none)")
    console.print_plan(plan)


if __name__ == "__main__":
    cli()
