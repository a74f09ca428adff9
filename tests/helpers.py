from __future__ import annotations

import sys

from betterrun.model import Command

_RECORD = "import sys; open(sys.argv[1], 'a').write(' '.join(sys.argv[2:]) + '\\n')"


def py(code: str, *extra: str, **kwargs) -> Command:
    """A command that runs a python snippet with the interpreter running the tests."""
    return Command(argv=(sys.executable, "-c", code, *extra), **kwargs)


def exits(code: int) -> Command:
    return py(f"import sys; sys.exit({code})")


def record(path, *words: str, **kwargs) -> Command:
    """Append `words` as one line to `path`, so tests can see what ran and in which order."""
    return py(_RECORD, str(path), *words, **kwargs)


def lines(path) -> list[str]:
    if not path.exists():
        return []
    return path.read_text().splitlines()
