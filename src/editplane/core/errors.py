"""Editplane error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Discovery (files, symbols, patterns)
- 4xxx: Editset persistence
- 5xxx: External tools
- 6xxx: Backend registry
- 9xxx: Internal

Drift and naming conflicts are not errors. They are reported as structured
results by the apply/verify/conflict operations.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Discovery (3xxx)
    FILE_NOT_FOUND = 3001
    SYMBOL_NOT_FOUND = 3002
    INVALID_PATTERN = 3003

    # Editset (4xxx)
    EDITSET_NOT_FOUND = 4001
    EDITSET_MALFORMED = 4002

    # External tools (5xxx)
    TOOL_NOT_INSTALLED = 5001
    TOOL_FAILED = 5002
    TOOL_OUTPUT_MALFORMED = 5003

    # Backends (6xxx)
    BACKEND_UNKNOWN = 6001
    BACKEND_UNSUPPORTED = 6002
    BACKEND_DUPLICATE = 6003

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class EditplaneError(Exception):
    """Base error with structured context for JSON responses."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'TOOL_NOT_INSTALLED')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the CLI error envelope."""
        return {
            "error": self.message,
            "code": self.code.value,
            "kind": self.error_name,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(EditplaneError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class DiscoveryError(EditplaneError):
    """Errors raised while locating files, symbols or patterns."""

    @classmethod
    def file_not_found(cls, path: str) -> "DiscoveryError":
        return cls(
            code=ErrorCode.FILE_NOT_FOUND,
            message=f"File not found: {path}",
            details={"path": path},
        )

    @classmethod
    def symbol_not_found(cls, location: str) -> "DiscoveryError":
        return cls(
            code=ErrorCode.SYMBOL_NOT_FOUND,
            message=f"No symbol found at {location}",
            details={"location": location},
        )

    @classmethod
    def invalid_pattern(cls, pattern: str, reason: str) -> "DiscoveryError":
        return cls(
            code=ErrorCode.INVALID_PATTERN,
            message=f"Invalid pattern {pattern!r}: {reason}",
            details={"pattern": pattern, "reason": reason},
        )


class EditsetError(EditplaneError):
    """Errors loading or saving editset artifacts."""

    @classmethod
    def not_found(cls, path: str) -> "EditsetError":
        return cls(
            code=ErrorCode.EDITSET_NOT_FOUND,
            message=f"Editset file not found: {path}",
            details={"path": path},
        )

    @classmethod
    def malformed(cls, path: str, reason: str) -> "EditsetError":
        return cls(
            code=ErrorCode.EDITSET_MALFORMED,
            message=f"Malformed editset at {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class ToolError(EditplaneError):
    """Errors from external command-line engines (ripgrep, ast-grep)."""

    @classmethod
    def not_installed(cls, tool: str, executable: str, hint: str) -> "ToolError":
        return cls(
            code=ErrorCode.TOOL_NOT_INSTALLED,
            message=f"{tool} ({executable}) not found. Install via: {hint}",
            details={"tool": tool, "executable": executable, "install": hint},
        )

    @classmethod
    def failed(cls, tool: str, returncode: int, stderr: str) -> "ToolError":
        return cls(
            code=ErrorCode.TOOL_FAILED,
            message=f"{tool} exited with status {returncode}: {stderr.strip()}",
            details={"tool": tool, "returncode": returncode, "stderr": stderr},
        )

    @classmethod
    def malformed_output(cls, tool: str, line: str, reason: str) -> "ToolError":
        return cls(
            code=ErrorCode.TOOL_OUTPUT_MALFORMED,
            message=f"Unparseable {tool} output: {reason}",
            details={"tool": tool, "line": line[:200], "reason": reason},
        )


class BackendError(EditplaneError):
    """Backend registry lookup errors."""

    @classmethod
    def unknown(cls, name: str, available: list[str]) -> "BackendError":
        return cls(
            code=ErrorCode.BACKEND_UNKNOWN,
            message=f"Unknown backend: {name}",
            details={"backend": name, "available": available},
        )

    @classmethod
    def unsupported(cls, name: str, capability: str) -> "BackendError":
        return cls(
            code=ErrorCode.BACKEND_UNSUPPORTED,
            message=f"Backend '{name}' does not support {capability}",
            details={"backend": name, "capability": capability},
        )

    @classmethod
    def duplicate(cls, name: str) -> "BackendError":
        return cls(
            code=ErrorCode.BACKEND_DUPLICATE,
            message=f"Backend already registered: {name}",
            details={"backend": name},
        )


class InternalError(EditplaneError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
