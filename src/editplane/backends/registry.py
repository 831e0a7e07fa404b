"""Backend registry.

Populated once per invocation and read-only afterward. Backends are kept in
descending priority order; among equal priorities, registration order wins.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, TypeVar

from editplane.backends.base import Backend, Capability, PatternBackend
from editplane.core.errors import BackendError
from editplane.core.logging import get_logger

if TYPE_CHECKING:
    from editplane.config.models import EditplaneConfig

log = get_logger(__name__)

B = TypeVar("B", bound=Backend)

STRUCTURAL_BACKEND = "ast-grep"
TEXT_BACKEND = "ripgrep"


class BackendRegistry:
    """Priority-ordered list of backends."""

    def __init__(self) -> None:
        self._backends: list[Backend] = []

    def register(self, backend: Backend) -> None:
        """Insert keeping descending priority.

        Raises:
            BackendError: If a backend with the same name is registered.
        """
        if any(b.name == backend.name for b in self._backends):
            raise BackendError.duplicate(backend.name)
        index = len(self._backends)
        for i, existing in enumerate(self._backends):
            if backend.priority > existing.priority:
                index = i
                break
        self._backends.insert(index, backend)
        log.debug("backend_registered", backend=backend.name, priority=backend.priority)

    def get(self, name: str) -> Backend | None:
        for backend in self._backends:
            if backend.name == name:
                return backend
        return None

    def require(self, name: str, kind: type[B], capability: Capability) -> B:
        """Look up a backend by name and check it implements ``kind``.

        Raises:
            BackendError: Unknown name, or the backend lacks the capability.
        """
        backend = self.get(name)
        if backend is None:
            raise BackendError.unknown(name, self.names())
        if not isinstance(backend, kind) or not backend.supports(capability):
            raise BackendError.unsupported(name, capability.value)
        return backend

    def for_file(self, path: str) -> Backend | None:
        """First backend whose extensions contain the file's extension or ``*``."""
        extension = PurePosixPath(path.replace("\\", "/")).suffix
        for backend in self._backends:
            if backend.handles(extension):
                return backend
        return None

    def with_capability(self, capability: Capability) -> list[Backend]:
        return [b for b in self._backends if b.supports(capability)]

    def all(self) -> list[Backend]:
        return list(self._backends)

    def names(self) -> list[str]:
        return [b.name for b in self._backends]


def select_pattern_backend(
    registry: BackendRegistry, pattern: str, name: str | None = None
) -> PatternBackend:
    """Pick the pattern backend for a request.

    An explicit name wins. Otherwise a pattern with ``$`` metavariables goes
    to the structural backend and anything else to the text backend.
    """
    chosen = name or (STRUCTURAL_BACKEND if "$" in pattern else TEXT_BACKEND)
    return registry.require(chosen, PatternBackend, Capability.FIND_PATTERNS)


def default_registry(
    root: Path, config: EditplaneConfig, tsconfig: str | None = None
) -> BackendRegistry:
    """Build the standard registry for a working root."""
    from editplane.backends.structural import AstGrepBackend
    from editplane.backends.symbols.backend import TreeSitterBackend
    from editplane.backends.text import RipgrepBackend
    from editplane.backends.tools import ast_grep, ripgrep
    from editplane.core.excludes import excluded_dirs
    from editplane.files.ops import FileRenameOps

    exclude = excluded_dirs(config.discovery.exclude_dirs)
    registry = BackendRegistry()
    registry.register(
        TreeSitterBackend(
            root,
            tsconfig=tsconfig or config.discovery.tsconfig,
            exclude_dirs=exclude,
        )
    )
    registry.register(AstGrepBackend(root, ast_grep(config.tools.ast_grep)))
    registry.register(RipgrepBackend(root, ripgrep(config.tools.ripgrep)))
    registry.register(
        FileRenameOps(root, default_glob=config.discovery.file_glob, exclude_dirs=exclude)
    )
    return registry
