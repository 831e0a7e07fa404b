"""CLI utilities: shared session state, JSON output and the error envelope."""

from __future__ import annotations

import functools
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, NoReturn, TypeVar

import click

from editplane.backends.base import Capability, SymbolBackend
from editplane.backends.registry import BackendRegistry, default_registry
from editplane.config.models import EditplaneConfig
from editplane.core.errors import BackendError, EditplaneError, InternalError
from editplane.core.logging import get_log_file_path, get_logger
from editplane.core.progress import status
from editplane.editset.models import parse_symbol_key

log = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


@dataclass
class Session:
    """Per-invocation state stored on ``ctx.obj``."""

    root: Path
    config: EditplaneConfig
    tsconfig: str | None = None
    verbose: bool = False
    _registry: BackendRegistry | None = field(default=None, repr=False)

    @property
    def registry(self) -> BackendRegistry:
        if self._registry is None:
            self._registry = default_registry(self.root, self.config, self.tsconfig)
        return self._registry

    def symbol_backend(self, capability: Capability, file: str | None = None) -> SymbolBackend:
        """Symbol backend for ``file``, or the highest-priority one."""
        if file is not None:
            backend = self.registry.for_file(file)
            if not isinstance(backend, SymbolBackend) or not backend.supports(capability):
                name = backend.name if backend is not None else file
                raise BackendError.unsupported(name, capability.value)
            return backend
        for backend in self.registry.with_capability(capability):
            if isinstance(backend, SymbolBackend):
                return backend
        raise BackendError.unsupported("*", capability.value)

    def symbol_backend_for_key(self, capability: Capability, symbol_key: str) -> SymbolBackend:
        try:
            file, _, _, _ = parse_symbol_key(symbol_key)
        except ValueError:
            file = None
        return self.symbol_backend(capability, file)

    def output_path(self, given: str | None, default: str) -> Path:
        """Explicit paths are taken as given; defaults live under the root."""
        return Path(given) if given else self.root / default


def get_session(ctx: click.Context) -> Session:
    session = ctx.find_object(Session)
    if session is None:
        raise click.UsageError("CLI session not initialized")
    return session


def emit(data: Any) -> None:
    """Print the command result as the single JSON document on stdout."""
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def fail(error: EditplaneError) -> NoReturn:
    """Print the error envelope and exit with status 1."""
    emit(error.to_dict())
    status(error.message, style="error")
    log_file = get_log_file_path()
    if log_file is not None:
        status(f"Details in {log_file}", indent=2)
    raise SystemExit(1)


def split_list(value: str | None) -> list[str]:
    """Parse a comma-separated option into a list, dropping blanks."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def json_command(fn: F) -> F:
    """Wrap a command so failures become the JSON error envelope."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except (click.ClickException, click.exceptions.Exit, click.Abort):
            raise
        except EditplaneError as e:
            log.debug("command_failed", error=e.error_name, message=e.message)
            fail(e)
        except Exception as e:
            log.exception("command_crashed")
            fail(InternalError.unexpected(str(e), type=type(e).__name__))

    return wrapper  # type: ignore[return-value]
