# betterrun_recipes.py
# Recipes for working on betterrun itself: formatting, linting, tests, packaging
from __future__ import annotations
from betterrun.dsl import book, recipe, sh


def recipes():
    return book(
        # Composite: everything a change should pass before review
        recipe(
            "code-review",
            deps=["check-format", "build", "lint", "test", "check-docs"],
            doc="Run every check a change should pass before review",
        ),

        recipe("check-format", sh("ruff format --check ."), doc="Check formatting without rewriting files"),
        recipe("fmt", sh("ruff format ."), doc="Reformat code"),
        recipe("lint", sh("ruff check src tests")),
        recipe("build", sh("python -m pip wheel --no-deps -w dist .")),

        # `betterrun run test -k cycle` forwards "-k cycle" to pytest
        recipe("test", sh("python -m pytest -q $@"), doc="Run the test suite"),
        recipe(
            "test-one",
            sh("python -m pytest -q $1"),
            doc="Run a single test file or node id",
        ),

        recipe(
            "check-docs",
            sh("python -m pydoc betterrun"),
            doc="Render the package docs (fails on import errors)",
        ),

        recipe(
            "check-warnings",
            sh("PYTHONWARNINGS=error python -m pytest -q"),
            doc="Run the tests with warnings promoted to errors",
        ),

        recipe("clean-pyc", sh("python -c 'import pathlib; [p.unlink() for p in pathlib.Path(\"src\").rglob(\"*.pyc\")]'")),
        recipe("clean", deps=["clean-pyc"]),
    )
