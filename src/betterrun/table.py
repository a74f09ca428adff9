# table.py
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from .errors import DanglingDependency, DuplicateRecipe, TableFinalized, UnknownRecipe
from .model import Command, Recipe


class RecipeTable:
    """
    Registry of recipe definitions, keyed by name.

    Built once (define, define, ..., finalize) and read-only afterwards, so a
    single table can be shared by any number of runs without locking.
    Definition order is kept: the first recipe defined is the default one.
    """

    def __init__(self) -> None:
        self._recipes: Dict[str, Recipe] = {}
        self._finalized = False

    @classmethod
    def from_recipes(cls, recipes: Iterable[Recipe]) -> RecipeTable:
        table = cls()
        for r in recipes:
            table.define(r)
        return table.finalize()

    # ---- building ----

    def define(
        self,
        recipe: Recipe | str,
        dependencies: Sequence[str] = (),
        commands: Sequence[Command] = (),
        *,
        env: Optional[Dict[str, str]] = None,
        doc: Optional[str] = None,
    ) -> Recipe:
        if isinstance(recipe, str):
            recipe = Recipe(
                name=recipe,
                commands=tuple(commands),
                dependencies=tuple(dependencies),
                env=dict(env or {}),
                doc=doc,
            )
        if self._finalized:
            raise TableFinalized(recipe.name)
        if recipe.name in self._recipes:
            raise DuplicateRecipe(recipe.name)
        self._recipes[recipe.name] = recipe
        return recipe

    def finalize(self) -> RecipeTable:
        """Check every dependency name once, then freeze the table."""
        if self._finalized:
            return self
        for r in self._recipes.values():
            for dep in r.dependencies:
                if dep not in self._recipes:
                    raise DanglingDependency(source=r.name, target=dep)
        self._finalized = True
        return self

    @property
    def finalized(self) -> bool:
        return self._finalized

    # ---- reading ----

    def lookup(self, name: str) -> Recipe:
        try:
            return self._recipes[name]
        except KeyError:
            raise UnknownRecipe(name, known=self.names) from None

    @property
    def names(self) -> List[str]:
        return list(self._recipes)

    @property
    def default(self) -> Recipe | None:
        return next(iter(self._recipes.values()), None)

    @property
    def recipes(self) -> Mapping[str, Recipe]:
        return MappingProxyType(self._recipes)

    def __contains__(self, name: object) -> bool:
        return name in self._recipes

    def __iter__(self) -> Iterator[Recipe]:
        return iter(list(self._recipes.values()))

    def __len__(self) -> int:
        return len(self._recipes)
