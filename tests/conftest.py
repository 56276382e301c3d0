from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from svls.rules import Linter
from svls.schema import ServerConfiguration
from svls.state import ServerState


@pytest.fixture
def make_state():
    def _make(
        configuration: ServerConfiguration | None = None,
        engine: Linter | None = None,
        root: Path = Path(""),
    ) -> ServerState:
        state = ServerState()
        state.initialize(root, configuration or ServerConfiguration(), engine)
        return state

    return _make
