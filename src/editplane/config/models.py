"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (EDITPLANE__SECTION__KEY)
3. Repo YAML (.editplane/config.yaml)
4. Global YAML (~/.config/editplane/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    EDITPLANE__<SECTION>__<KEY>=<VALUE>

Examples:
    EDITPLANE__LOGGING__LEVEL=DEBUG
    EDITPLANE__TOOLS__RIPGREP=/opt/bin/rg
    EDITPLANE__DISCOVERY__TSCONFIG=tsconfig.build.json
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from editplane.core.excludes import DEFAULT_PRUNABLE_DIRS

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        EDITPLANE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. Commands print JSON on stdout; logs go to stderr.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ToolsConfig(BaseModel):
    """External command-line engines.

    Env vars:
        EDITPLANE__TOOLS__RIPGREP: ripgrep executable
        EDITPLANE__TOOLS__AST_GREP: ast-grep executable
    """

    ripgrep: str = Field(default="rg", description="ripgrep executable name or path.")
    ast_grep: str = Field(
        default="ast-grep",
        description="ast-grep executable. Falls back to 'sg' when its --version names ast-grep.",
    )


class DiscoveryConfig(BaseModel):
    """Source discovery configuration.

    Env vars:
        EDITPLANE__DISCOVERY__TSCONFIG: Project config used to locate the project root
        EDITPLANE__DISCOVERY__FILE_GLOB: Default glob for file.find / file.rename
    """

    tsconfig: str = Field(
        default="tsconfig.json",
        description="TypeScript project config. Its directory becomes the project root.",
    )
    exclude_dirs: list[str] = Field(
        default_factory=lambda: sorted(DEFAULT_PRUNABLE_DIRS),
        description="Directory names never traversed during symbol and file discovery.",
    )
    file_glob: str = Field(
        default="**/*.{ts,tsx,js,jsx}",
        description="Default glob for filename renames.",
    )


class EditsetConfig(BaseModel):
    """Editset artifact defaults.

    Env vars:
        EDITPLANE__EDITSET__OUTPUT: Default content editset path
        EDITPLANE__EDITSET__FILE_OUTPUT: Default file-rename editset path
    """

    output: str = Field(default="editset.json")
    file_output: str = Field(default="file-editset.json")


class EditplaneConfig(BaseModel):
    """Root configuration for editplane.

    All settings can be configured via:
    1. Environment variables: EDITPLANE__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    editset: EditsetConfig = Field(default_factory=EditsetConfig)
