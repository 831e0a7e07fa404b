"""External tool invocation.

Tools run as blocking child processes with no timeout. A missing executable
is reported as ``ToolError.not_installed``, never as an empty result.
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from editplane.core.errors import ToolError
from editplane.core.logging import get_logger

log = get_logger(__name__)


@dataclass
class ExternalTool:
    """An external command-line engine.

    When ``version_marker`` is set, a candidate executable only counts if
    its ``--version`` output contains the marker. This keeps unrelated
    programs that share a short name (``sg`` is also shadow-utils' newgrp)
    from being run as the tool.
    """

    name: str
    executable: str
    install_hint: str
    fallbacks: tuple[str, ...] = ()
    version_marker: str | None = None
    _resolved: str | None = field(default=None, init=False, repr=False, compare=False)

    def _identifies(self, path: str) -> bool:
        if self.version_marker is None:
            return True
        try:
            proc = subprocess.run([path, "--version"], capture_output=True, check=False)
        except OSError as e:
            log.debug("tool_version_check_failed", tool=self.name, executable=path, error=str(e))
            return False
        banner = (proc.stdout + proc.stderr).decode("utf-8", errors="replace").lower()
        if self.version_marker not in banner:
            log.debug("tool_version_mismatch", tool=self.name, executable=path)
            return False
        return True

    def resolve(self) -> str:
        """Return the first available executable.

        Without a version marker the configured executable is returned when
        nothing is found on PATH, so an absolute path still works.

        Raises:
            ToolError: If a version marker is set and no candidate matches it.
        """
        if self._resolved is not None:
            return self._resolved
        for candidate in (self.executable, *self.fallbacks):
            path = shutil.which(candidate)
            if path and self._identifies(path):
                self._resolved = candidate
                return candidate
        if self.version_marker is not None:
            raise ToolError.not_installed(self.name, self.executable, self.install_hint)
        return self.executable

    def run(self, args: list[str], cwd: Path) -> subprocess.CompletedProcess[bytes]:
        """Run the tool and return the completed process.

        Exit status handling is left to the caller; each tool has its own
        convention for "no matches".

        Raises:
            ToolError: If the executable cannot be found.
        """
        executable = self.resolve()
        log.debug("tool_run", tool=self.name, executable=executable, args=args, cwd=str(cwd))
        try:
            proc = subprocess.run(
                [executable, *args],
                cwd=cwd,
                capture_output=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise ToolError.not_installed(self.name, executable, self.install_hint) from e
        log.debug("tool_done", tool=self.name, returncode=proc.returncode, bytes=len(proc.stdout))
        return proc


RIPGREP_HINT = "brew install ripgrep | apt install ripgrep | cargo install ripgrep"
AST_GREP_HINT = "brew install ast-grep | npm install -g @ast-grep/cli | cargo install ast-grep"


def ripgrep(executable: str = "rg") -> ExternalTool:
    return ExternalTool(name="ripgrep", executable=executable, install_hint=RIPGREP_HINT)


def ast_grep(executable: str = "ast-grep") -> ExternalTool:
    fallbacks = ("sg",) if executable == "ast-grep" else ("ast-grep", "sg")
    return ExternalTool(
        name="ast-grep",
        executable=executable,
        install_hint=AST_GREP_HINT,
        fallbacks=tuple(f for f in fallbacks if f != executable),
        version_marker="ast-grep",
    )
