from __future__ import annotations

import os
import sys

import pytest

from betterrun.errors import ArgumentCountMismatch
from betterrun.executor import (
    LAUNCH_ERROR_EXIT,
    build_env,
    check_arguments,
    run_recipe,
    substitute,
)
from betterrun.model import Command, Recipe, Status

from helpers import exits, lines, py, record


# ---------------------------------------------------------------------------
# Placeholder substitution
# ---------------------------------------------------------------------------

def test_substitute_positional_inside_tokens():
    out = substitute(["cargo", "test", "--package=$1", "$2"], ["core", "parser"])
    assert out == ["cargo", "test", "--package=core", "parser"]


def test_substitute_all_arguments_token():
    assert substitute(["pytest", "$@", "-q"], ["-k", "cycle"]) == ["pytest", "-k", "cycle", "-q"]
    assert substitute(["pytest", "$@"], []) == ["pytest"]
    assert substitute(["echo", "args=$@"], ["a", "b"]) == ["echo", "args=a b"]


def test_substitute_escape_and_recipe_name():
    assert substitute(["echo", "$$1", "$0"], [], recipe="greet") == ["echo", "$1", "greet"]


def test_substitute_extra_arguments_are_ignored():
    assert substitute(["echo", "$1"], ["a", "b"]) == ["echo", "a"]


def test_substitute_too_few_arguments():
    with pytest.raises(ArgumentCountMismatch) as exc:
        substitute(["cp", "$1", "$3"], ["a"], recipe="copy")
    assert (exc.value.recipe, exc.value.required, exc.value.given) == ("copy", 3, 1)


def test_check_arguments_uses_highest_placeholder_across_commands():
    r = Recipe("deploy", commands=(Command(("echo", "$1")), Command(("echo", "$2"))))
    assert r.arity == 2
    check_arguments(r, ["a", "b"])
    with pytest.raises(ArgumentCountMismatch):
        check_arguments(r, ["a"])


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

def test_env_layers_command_over_recipe_over_inherited():
    command = Command(("cargo", "check"), env={"RUSTFLAGS": "--deny warnings", "B": "cmd"})
    r = Recipe("check-warnings", commands=(command,), env={"B": "recipe", "C": "recipe"})
    env = build_env(r, command, base={"A": "base", "B": "base", "RUSTFLAGS": ""})
    assert env == {"A": "base", "B": "cmd", "C": "recipe", "RUSTFLAGS": "--deny warnings"}


def test_child_sees_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("BETTERRUN_INHERITED", "yes")
    out = tmp_path / "env.txt"
    code = (
        "import os, sys; open(sys.argv[1], 'w').write("
        "os.environ['BETTERRUN_INHERITED'] + ' ' + os.environ['BETTERRUN_OVERRIDE'])"
    )
    r = Recipe("env", commands=(py(code, str(out), env={"BETTERRUN_OVERRIDE": "cmd"}),))
    result = run_recipe(r, workdir=tmp_path)
    assert result.ok
    assert out.read_text() == "yes cmd"


# ---------------------------------------------------------------------------
# Running
# ---------------------------------------------------------------------------

def test_success_runs_every_command_in_order(tmp_path):
    log = tmp_path / "log"
    r = Recipe("two", commands=(record(log, "first"), record(log, "second")))
    result = run_recipe(r, workdir=tmp_path)
    assert result.status is Status.SUCCESS
    assert result.exit_code == 0
    assert [c.exit_code for c in result.commands] == [0, 0]
    assert lines(log) == ["first", "second"]


def test_positional_arguments_reach_the_child(tmp_path):
    log = tmp_path / "log"
    r = Recipe("greet", commands=(record(log, "hello", "$1"),))
    run_recipe(r, ["world"], workdir=tmp_path)
    assert lines(log) == ["hello world"]


def test_failure_stops_the_recipe(tmp_path):
    log = tmp_path / "log"
    r = Recipe("broken", commands=(exits(4), record(log, "never")))
    result = run_recipe(r, workdir=tmp_path)
    assert result.status is Status.FAILURE
    assert result.exit_code == 4
    assert result.command.exit_code == 4
    assert len(result.commands) == 1
    assert lines(log) == []


def test_missing_executable_is_a_launch_error(tmp_path):
    log = tmp_path / "log"
    r = Recipe("missing", commands=(
        Command(("betterrun-definitely-not-installed",)),
        record(log, "never"),
    ))
    result = run_recipe(r, workdir=tmp_path)
    assert result.status is Status.LAUNCH_ERROR
    assert result.exit_code == LAUNCH_ERROR_EXIT
    assert result.command.launch_error
    assert lines(log) == []


def test_missing_working_directory_is_a_launch_error(tmp_path):
    r = Recipe("nowhere", commands=(Command((sys.executable, "-c", "pass"), cwd="does-not-exist"),))
    result = run_recipe(r, workdir=tmp_path)
    assert result.status is Status.LAUNCH_ERROR
    assert "does-not-exist" in result.command.launch_error


def test_command_cwd_is_relative_to_workdir(tmp_path):
    (tmp_path / "sub").mkdir()
    code = "import os; open('here.txt', 'w').write(os.getcwd())"
    r = Recipe("cwd", commands=(py(code, cwd="sub"),))
    assert run_recipe(r, workdir=tmp_path).ok
    assert (tmp_path / "sub" / "here.txt").exists()


def test_argument_mismatch_starts_nothing(tmp_path):
    log = tmp_path / "log"
    r = Recipe("needs-two", commands=(record(log, "first"), record(log, "$2")))
    with pytest.raises(ArgumentCountMismatch):
        run_recipe(r, ["only-one"], workdir=tmp_path)
    assert lines(log) == []


def test_dry_run_spawns_nothing(tmp_path, capsys):
    log = tmp_path / "log"
    r = Recipe("dry", commands=(record(log, "x"), exits(9)))
    result = run_recipe(r, workdir=tmp_path, dry_run=True)
    assert result.ok
    assert len(result.commands) == 2
    assert lines(log) == []
    assert "COMMAND (dry run)" in capsys.readouterr().out


def test_composite_recipe_without_commands_succeeds(tmp_path):
    assert run_recipe(Recipe("code-review", dependencies=("build",)), workdir=tmp_path).ok


@pytest.mark.skipif(os.name == "nt", reason="POSIX signals")
def test_killed_child_reports_shell_style_exit_code(tmp_path):
    r = Recipe("killed", commands=(py("import os, signal; os.kill(os.getpid(), signal.SIGTERM)"),))
    result = run_recipe(r, workdir=tmp_path)
    assert result.status is Status.FAILURE
    assert result.exit_code == 128 + 15


@pytest.mark.skipif(os.name == "nt", reason="POSIX signals")
def test_interrupt_is_forwarded_and_fails_the_recipe(tmp_path, monkeypatch):
    import subprocess

    original_wait = subprocess.Popen.wait
    calls = []

    def wait(self, timeout=None):
        calls.append(timeout)
        if len(calls) == 1:
            raise KeyboardInterrupt
        return original_wait(self, timeout=timeout)

    monkeypatch.setattr(subprocess.Popen, "wait", wait)
    log = tmp_path / "log"
    r = Recipe("slow", commands=(py("import time; time.sleep(30)"), record(log, "never")))

    result = run_recipe(r, workdir=tmp_path)

    assert result.status is Status.FAILURE
    assert result.exit_code != 0
    assert len(calls) == 2
    assert lines(log) == []


def test_nul_byte_in_argument_is_a_launch_error(tmp_path):
    r = Recipe("nul", commands=(Command(("echo", "a\x00b")),))

    result = run_recipe(r, workdir=tmp_path)

    assert result.status is Status.LAUNCH_ERROR
    assert result.exit_code == LAUNCH_ERROR_EXIT
