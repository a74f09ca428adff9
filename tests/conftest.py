from __future__ import annotations

import pytest

from betterrun.ui.console import Console, set_console


@pytest.fixture(autouse=True)
def fresh_console():
    set_console(Console(debug=False))
    yield
    set_console(Console(debug=False))
