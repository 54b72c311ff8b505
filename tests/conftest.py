from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ENV_PREFIX = "ROOMWIRE_"


def pytest_configure() -> None:
    # Keep `import roomwire...` and `import tests.utils...` working without an install.
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Client settings and credentials come from the test, never the host shell."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
