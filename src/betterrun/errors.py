# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple


class RecipeError(Exception):
    """Base class for every error raised while defining, resolving or running recipes."""


# ----------------------------------------------------------------------
# Definition / resolution time (fatal, no run begins)
# ----------------------------------------------------------------------

@dataclass(eq=False)
class DuplicateRecipe(RecipeError):
    name: str

    def __str__(self) -> str:
        return f"Recipe '{self.name}' is defined more than once"


@dataclass(eq=False)
class UnknownRecipe(RecipeError):
    name: str
    known: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        msg = f"Unknown recipe '{self.name}'"
        if self.known:
            msg += f". Known recipes: {', '.join(self.known)}"
        return msg


@dataclass(eq=False)
class DanglingDependency(RecipeError):
    source: str     # the recipe declaring the dependency
    target: str     # the missing dependency name

    def __str__(self) -> str:
        return f"Recipe '{self.source}' depends on missing recipe '{self.target}'"


@dataclass(eq=False)
class CyclicDependency(RecipeError):
    cycle: List[str]

    def __str__(self) -> str:
        return f"Dependency cycle: {' -> '.join(self.cycle)}"


@dataclass(eq=False)
class TableFinalized(RecipeError):
    name: str

    def __str__(self) -> str:
        return f"Cannot define recipe '{self.name}': the recipe table is already finalized"


# ----------------------------------------------------------------------
# Invocation time
# ----------------------------------------------------------------------

@dataclass(eq=False)
class ArgumentCountMismatch(RecipeError):
    recipe: str
    required: int
    given: int

    def __str__(self) -> str:
        return (
            f"Recipe '{self.recipe}' needs {self.required} positional "
            f"argument(s), got {self.given}"
        )


@dataclass(eq=False)
class LaunchError(RecipeError):
    """A command could not be started at all (environment defect, not a recipe failure)."""
    recipe: str
    argv: Tuple[str, ...]
    reason: str

    def __str__(self) -> str:
        return f"[{self.recipe}] could not launch '{' '.join(self.argv)}': {self.reason}"
