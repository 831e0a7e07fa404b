"""Core module exports."""

from editplane.core.errors import (
    BackendError,
    ConfigError,
    DiscoveryError,
    EditplaneError,
    EditsetError,
    ErrorCode,
    InternalError,
    ToolError,
)
from editplane.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from editplane.core.progress import status

__all__ = [
    # Errors
    "BackendError",
    "ConfigError",
    "DiscoveryError",
    "EditplaneError",
    "EditsetError",
    "ErrorCode",
    "InternalError",
    "ToolError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Progress
    "status",
]
