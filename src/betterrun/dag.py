# dag.py
from __future__ import annotations

from typing import Iterator, List, Set

from .errors import CyclicDependency
from .table import RecipeTable


def resolve(table: RecipeTable, root: str) -> List[str]:
    """
    Compute the execution plan for `root`.

    Depth-first from `root`, following dependencies in declared order, and
    recording each recipe once it is fully visited (post-order). So:
      - every recipe comes after all of its dependencies
      - a recipe reachable through several paths appears once, at its first
        completed visit
      - the same table + root always gives the same plan

    Raises:
      UnknownRecipe: root is not defined
      CyclicDependency: a recipe is reached again while still on the path
      DanglingDependency: the table was not finalized and names a missing recipe
    """
    # dangling names are a definition error; never discover them mid-walk
    table.finalize()
    table.lookup(root)

    plan: List[str] = []
    done: Set[str] = set()
    # explicit stack so long chains don't hit the recursion limit
    path: List[str] = []                        # recipes being visited, root first
    stack: List[Iterator[str]] = []             # pending dependencies per path entry
    on_path: Set[str] = set()

    def enter(name: str) -> None:
        path.append(name)
        on_path.add(name)
        stack.append(iter(table.lookup(name).dependencies))

    enter(root)
    while stack:
        dep = next(stack[-1], None)
        if dep is None:
            name = path.pop()
            stack.pop()
            on_path.discard(name)
            done.add(name)
            plan.append(name)
        elif dep in done:
            continue
        elif dep in on_path:
            raise CyclicDependency(cycle=path[path.index(dep):] + [dep])
        else:
            enter(dep)

    return plan


def dependents(table: RecipeTable, name: str) -> List[str]:
    """Recipes that list `name` as a direct dependency, in definition order."""
    table.lookup(name)
    return [r.name for r in table if name in r.dependencies]
