"""Canonical directory excludes for discovery.

Tier 0 (HARDCODED_DIRS): Never traversed, not configurable.
    - VCS internals, editplane data directories

Tier 1 (DEFAULT_PRUNABLE_DIRS): Excluded by default; the discovery config
    (``discovery.exclude_dirs``) replaces this tier when set.
    - Dependencies, caches, build outputs
"""

from __future__ import annotations

from collections.abc import Iterable

HARDCODED_DIRS: frozenset[str] = frozenset(
    (
        # VCS internals
        ".git",
        ".svn",
        ".hg",
        ".bzr",
        # Editplane data
        ".editplane",
    )
)

DEFAULT_PRUNABLE_DIRS: frozenset[str] = frozenset(
    (
        # JavaScript/Node.js ecosystem
        "node_modules",
        ".npm",
        ".yarn",
        ".pnpm-store",
        "bower_components",
        ".next",
        ".nuxt",
        ".turbo",
        # Python ecosystem
        "venv",
        ".venv",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".ruff_cache",
        ".tox",
        # Rust / Go / JVM build output
        "target",
        ".gradle",
        # Generic build/output directories
        "dist",
        "build",
        "out",
        "coverage",
        ".nyc_output",
        # IDE/Editor directories
        ".idea",
        ".vscode",
        # Misc caches
        ".cache",
        "vendor",
    )
)

PRUNABLE_DIRS: frozenset[str] = HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS


def excluded_dirs(configured: Iterable[str] | None = None) -> frozenset[str]:
    """Resolve the effective excluded directory names.

    Hardcoded directories are always excluded. ``configured`` replaces the
    default prunable tier when given.
    """
    if configured is None:
        return PRUNABLE_DIRS
    return HARDCODED_DIRS | frozenset(configured)
