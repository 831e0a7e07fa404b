"""Config module exports."""

from editplane.config.loader import load_config
from editplane.config.models import (
    DiscoveryConfig,
    EditplaneConfig,
    EditsetConfig,
    LoggingConfig,
    ToolsConfig,
)

__all__ = [
    "load_config",
    "DiscoveryConfig",
    "EditplaneConfig",
    "EditsetConfig",
    "LoggingConfig",
    "ToolsConfig",
]
