"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import os
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of editplane modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("editplane"):
        del sys.modules[module_name]


@pytest.fixture(autouse=True)
def _isolate_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Point the global config file somewhere empty and drop EDITPLANE__ env vars."""
    for key in list(os.environ):
        if key.startswith("EDITPLANE__"):
            monkeypatch.delenv(key)
    empty = tmp_path_factory.mktemp("global-config") / "config.yaml"
    monkeypatch.setattr("editplane.config.loader.GLOBAL_CONFIG_PATH", empty)


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Return a helper that writes ``{relative path: content}`` under tmp_path."""

    def write(files: dict[str, str]) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content.encode("utf-8"))
        return tmp_path

    return write


@pytest.fixture(autouse=True)
def _stderr_logging() -> None:
    """Route structlog through stderr handlers; its default prints to stdout."""
    from editplane.core.logging import configure_logging

    configure_logging(level="WARNING")
