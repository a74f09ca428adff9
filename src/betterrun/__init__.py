from .dsl import book, build, cmd, recipe, sh, RecipeBuilder
from .model import Command, Recipe, RecipeResult, RunResult, Status
from .runner import execute, load_recipes
from .table import RecipeTable
from .dag import resolve

__version__ = "0.1.0"

__all__ = [
    "book", "build", "cmd", "recipe", "sh", "RecipeBuilder",
    "Command", "Recipe", "RecipeResult", "RunResult", "Status",
    "execute", "load_recipes", "RecipeTable", "resolve",
]
