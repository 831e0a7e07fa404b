"""Glob matching and directory walking for discovery.

Patterns are POSIX-style and matched segment by segment:
- ``*``, ``?`` and ``[...]`` match within one path segment only
- ``**`` matches zero or more whole segments
- ``{a,b}`` alternation is expanded before matching

So ``*.ts`` matches ``a.ts`` but not ``lib/a.ts``, while ``**/*.ts``
matches both.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from fnmatch import fnmatchcase
from pathlib import Path

from editplane.core.excludes import PRUNABLE_DIRS


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternations (nested groups supported)."""
    depth = 0
    start = -1
    for i, ch in enumerate(pattern):
        if ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                options = _split_top_level(pattern[start + 1 : i])
                if len(options) < 2:
                    continue
                prefix, suffix = pattern[:start], pattern[i + 1 :]
                expanded: list[str] = []
                for option in options:
                    expanded.extend(expand_braces(prefix + option + suffix))
                return expanded
    return [pattern]


def _split_top_level(body: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in body:
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        current.append(ch)
    parts.append("".join(current))
    return parts


def _match_parts(path_parts: list[str], pat_parts: list[str]) -> bool:
    if not pat_parts:
        return not path_parts
    head, rest = pat_parts[0], pat_parts[1:]
    if head == "**":
        return any(_match_parts(path_parts[i:], rest) for i in range(len(path_parts) + 1))
    if not path_parts:
        return False
    return fnmatchcase(path_parts[0], head) and _match_parts(path_parts[1:], rest)


def matches_glob(rel_path: str, pattern: str) -> bool:
    """Check if a relative POSIX path matches a glob pattern."""
    path_parts = [p for p in rel_path.replace("\\", "/").split("/") if p and p != "."]
    for expanded in expand_braces(pattern):
        pat = expanded.strip()
        if pat.startswith("./"):
            pat = pat[2:]
        if _match_parts(path_parts, [p for p in pat.split("/") if p]):
            return True
    return False


def walk_files(
    root: Path,
    pattern: str = "**/*",
    *,
    exclude: frozenset[str] = PRUNABLE_DIRS,
    include_hidden: bool = False,
) -> Iterator[str]:
    """Yield root-relative POSIX paths of files matching ``pattern``.

    Excluded directories are pruned in place, so dependency trees are never
    traversed. Results are sorted for deterministic output.
    """
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames if d not in exclude and (include_hidden or not d.startswith("."))
        )
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        for filename in sorted(filenames):
            if not include_hidden and filename.startswith("."):
                continue
            rel_path = filename if rel_dir == "." else f"{rel_dir}/{filename}"
            if matches_glob(rel_path, pattern):
                yield rel_path
