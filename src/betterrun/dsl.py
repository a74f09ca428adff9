# src/betterrun/dsl.py
from __future__ import annotations

import re
import shlex
from typing import Dict, List, Optional, Sequence, Union

from .model import Command, Recipe

_ASSIGNMENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*=")


# ---------------------------------------------------------------------
# Command helpers
# ---------------------------------------------------------------------

def cmd(
    *argv: str,
    env: Optional[Dict[str, str]] = None,
    cwd: str | None = None,
    name: str | None = None,
) -> Command:
    """Create a command from explicit argument tokens."""
    return Command(argv=tuple(argv), env=dict(env or {}), cwd=cwd, name=name)


def sh(
    line: str,
    *,
    env: Optional[Dict[str, str]] = None,
    cwd: str | None = None,
    name: str | None = None,
) -> Command:
    """
    Create a command from a command line.

    The line is split with shell quoting rules but never run through a shell.
    Leading KEY=value words become environment overrides, so
        sh('RUSTFLAGS="--deny warnings" cargo check')
    runs `cargo check` with RUSTFLAGS set. Explicit `env` wins over those.
    """
    tokens = shlex.split(line)
    overrides: Dict[str, str] = {}
    while tokens and _ASSIGNMENT.match(tokens[0]):
        key, _, value = tokens.pop(0).partition("=")
        overrides[key] = value
    if not tokens:
        raise ValueError(f"sh({line!r}) has no command to run")
    overrides.update(env or {})
    return Command(argv=tuple(tokens), env=overrides, cwd=cwd, name=name)


# ---------------------------------------------------------------------
# Functional Recipe helper
# ---------------------------------------------------------------------

def recipe(
    name: str,
    *commands: Union[Command, str],  # allow: recipe("x", sh(...), "cargo test")
    deps: Optional[Sequence[str]] = None,
    env: Optional[Dict[str, str]] = None,
    doc: Optional[str] = None,
    cwd: str | None = None,  # default cwd applied to commands missing cwd
) -> Recipe:
    final: List[Command] = []
    for c in commands:
        c = sh(c) if isinstance(c, str) else c
        if cwd is not None and c.cwd is None:
            c = Command(argv=c.argv, env=c.env, cwd=cwd, name=c.name)
        final.append(c)

    if not final and not deps:
        raise ValueError(f"recipe({name!r}) needs at least one command or dependency")

    return Recipe(
        name=name,
        commands=tuple(final),
        dependencies=tuple(deps or ()),
        env={k: str(v) for k, v in (env or {}).items()},
        doc=doc,
    )


# ---------------------------------------------------------------------
# Builder API
# ---------------------------------------------------------------------

class RecipeBuilder:
    def __init__(self, name: str):
        self.name = name
        self._deps: list[str] = []
        self._commands: list[Command] = []
        self._env: dict[str, str] = {}
        self._doc: Optional[str] = None

    def depends_on(self, *recipe_names: str):
        self._deps.extend(recipe_names)
        return self

    def run(self, line: str, *, cwd: str | None = None, name: str | None = None):
        self._commands.append(sh(line, cwd=cwd, name=name))
        return self

    def run_argv(self, *argv: str, env: Optional[Dict[str, str]] = None):
        self._commands.append(cmd(*argv, env=env))
        return self

    def with_env(self, **env):
        # env values must be strings for subprocess
        self._env.update({k: str(v) for k, v in env.items()})
        return self

    def describe(self, doc: str):
        self._doc = doc
        return self

    def build(self) -> Recipe:
        return recipe(
            self.name,
            *self._commands,
            deps=self._deps,
            env=self._env,
            doc=self._doc,
        )


def build(name: str) -> RecipeBuilder:
    """Convenience: build('test').run('cargo test').build()"""
    return RecipeBuilder(name)


# ---------------------------------------------------------------------
# Recipes-file helper (single-file story)
# ---------------------------------------------------------------------

def book(*items: Recipe) -> List[Recipe]:
    """
    Recipes-file helper.

    Users can write:
        from betterrun import book, recipe, sh

        def recipes():
            return book(
                recipe("build", sh("cargo build")),
                recipe("test", sh("cargo test"), deps=["build"]),
            )

    Or use RECIPES directly:
        RECIPES = book(recipe(...), recipe(...))
    """
    return list(items)
