# model.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

# $1..$N inside a token; `$@` and `$$` are handled by executor.substitute
PLACEHOLDER = re.compile(r"\$(\$|@|\d+)")


@dataclass(frozen=True)
class Command:
    """A single command line inside a recipe: argv tokens plus env overrides."""
    argv: Tuple[str, ...]
    env: Mapping[str, str] = field(default_factory=dict, hash=False)
    cwd: str | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        if not self.argv:
            raise ValueError("Command needs at least one argument token")
        # accept lists from callers
        object.__setattr__(self, "argv", tuple(str(t) for t in self.argv))
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    @property
    def arity(self) -> int:
        """Highest positional placeholder ($N) referenced by this command."""
        highest = 0
        for token in self.argv:
            for m in PLACEHOLDER.finditer(token):
                if m.group(1).isdigit():
                    highest = max(highest, int(m.group(1)))
        return highest

    @property
    def display(self) -> str:
        return self.name or " ".join(self.argv)


@dataclass(frozen=True)
class Recipe:
    """
    A named unit of work: ordered commands + ordered dependency names.

    A recipe with no commands is a pure composite (it only pulls in its
    dependencies).
    """
    name: str
    commands: Tuple[Command, ...] = ()
    dependencies: Tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict, hash=False)
    doc: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Recipe name must be a non-empty string")
        object.__setattr__(self, "commands", tuple(self.commands))
        object.__setattr__(self, "dependencies", tuple(self.dependencies))
        # read-only once built; tables are shared between runs
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    @property
    def arity(self) -> int:
        return max((c.arity for c in self.commands), default=0)


class Status(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    LAUNCH_ERROR = "launch_error"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class CommandResult:
    command: Command
    argv: Tuple[str, ...]       # after placeholder substitution
    exit_code: int
    launch_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and self.launch_error is None


@dataclass
class RecipeResult:
    """Outcome of one planned recipe."""
    recipe: str
    status: Status
    exit_code: int | None = None
    command: CommandResult | None = None    # the command that stopped the recipe
    commands: List[CommandResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is Status.SUCCESS


@dataclass
class RunResult:
    """Aggregate of a whole invocation, one RecipeResult per planned recipe."""
    root: str
    plan: List[str]
    results: List[RecipeResult] = field(default_factory=list)

    @property
    def failed(self) -> RecipeResult | None:
        for r in self.results:
            if r.status in (Status.FAILURE, Status.LAUNCH_ERROR):
                return r
        return None

    @property
    def ok(self) -> bool:
        return self.failed is None and all(r.ok for r in self.results)

    @property
    def skipped(self) -> List[str]:
        return [r.recipe for r in self.results if r.status is Status.SKIPPED]

    @property
    def exit_code(self) -> int:
        failed = self.failed
        if failed is None:
            return 0
        return failed.exit_code or 1

    def by_name(self) -> Dict[str, RecipeResult]:
        return {r.recipe: r for r in self.results}
