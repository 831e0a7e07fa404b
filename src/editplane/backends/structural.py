"""Structural-pattern backend over ast-grep's streamed JSON output.

Patterns use ast-grep metavariables: ``$VAR`` captures one node and
``$$$ARGS`` captures a run of nodes. Replacement templates substitute the
captured source text.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from editplane.backends.base import PatternBackend
from editplane.backends.text import normalize_path
from editplane.backends.tools import ExternalTool, ast_grep
from editplane.core.errors import ToolError
from editplane.core.logging import get_logger
from editplane.editset.checksum import (
    byte_to_char_offset,
    compute_checksum,
    compute_ref_id,
    line_at,
    offset_to_line_col,
)
from editplane.editset.models import Edit, Editset, Reference
from editplane.editset.ops import new_editset

log = get_logger(__name__)

_METAVAR = re.compile(r"\$\$\$([A-Z_][A-Z0-9_]*)|\$([A-Z_][A-Z0-9_]*)")


@dataclass
class _SourceFile:
    data: bytes
    text: str
    checksum: str

    def char_offset(self, byte_offset: int) -> int:
        return byte_to_char_offset(self.data, byte_offset)


@dataclass
class StructuralMatch:
    """One ast-grep match resolved to character offsets."""

    ref: Reference
    file: str
    start: int
    end: int
    text: str
    single: dict[str, str] = field(default_factory=dict)
    multi: dict[str, str] = field(default_factory=dict)


def render_template(template: str, single: dict[str, str], multi: dict[str, str]) -> str:
    """Substitute metavariable captures; unknown names expand to ``""``."""

    def _sub(m: re.Match[str]) -> str:
        if m.group(1) is not None:
            return multi.get(m.group(1), "")
        return single.get(m.group(2), "")

    return _METAVAR.sub(_sub, template)


class AstGrepBackend(PatternBackend):
    """Metavariable pattern matching for languages without a symbol backend."""

    name = "ast-grep"
    extensions = ("ts", "tsx", "js", "jsx", "go", "rs", "py", "json", "yaml", "yml")
    priority = 50

    def __init__(self, root: Path, tool: ExternalTool | None = None) -> None:
        self.root = root
        self.tool = tool or ast_grep()

    def _search(self, pattern: str, glob: str | None) -> list[StructuralMatch]:
        args = ["run", "--pattern", pattern]
        if glob:
            args += ["--globs", glob]
        args += ["--json=stream", "."]

        proc = self.tool.run(args, cwd=self.root)
        stdout = proc.stdout.decode("utf-8", errors="replace")
        stderr = proc.stderr.decode("utf-8", errors="replace")
        # ast-grep signals "no matches" with exit 1 and silent streams
        if proc.returncode == 1 and not stdout.strip() and not stderr.strip():
            return []
        if proc.returncode != 0 and (proc.returncode != 1 or stderr.strip()):
            raise ToolError.failed(self.tool.name, proc.returncode, stderr)
        return self._parse(stdout)

    def _load(self, cache: dict[str, _SourceFile], file: str) -> _SourceFile | None:
        if file not in cache:
            path = self.root / file
            if not path.is_file():
                return None
            data = path.read_bytes()
            text = data.decode("utf-8")
            cache[file] = _SourceFile(data=data, text=text, checksum=compute_checksum(text))
        return cache[file]

    def _parse(self, output: str) -> list[StructuralMatch]:
        matches: list[StructuralMatch] = []
        sources: dict[str, _SourceFile] = {}

        for line in output.splitlines():
            if not line.strip():
                continue
            try:
                record: dict[str, Any] = json.loads(line)
                file = normalize_path(record["file"])
                byte_range = record["range"]["byteOffset"]
            except (json.JSONDecodeError, KeyError, TypeError) as e:
                raise ToolError.malformed_output(self.tool.name, line, str(e)) from e

            source = self._load(sources, file)
            if source is None:
                continue

            start = source.char_offset(byte_range["start"])
            end = source.char_offset(byte_range["end"])
            start_line, start_col = offset_to_line_col(source.text, start)
            end_line, end_col = offset_to_line_col(source.text, end)
            text = source.text[start:end]
            single, multi = self._captures(source, record.get("metaVariables") or {})
            first_line = text.split("\n", 1)[0]

            ref = Reference(
                ref_id=compute_ref_id(file, start_line, start_col, end_line, end_col),
                file=file,
                range=(start_line, start_col, end_line, end_col),
                preview=f"{line_at(source.text, start_line).strip()} // {first_line}",
                checksum=source.checksum,
            )
            matches.append(
                StructuralMatch(
                    ref=ref, file=file, start=start, end=end, text=text, single=single, multi=multi
                )
            )
        return matches

    @staticmethod
    def _captures(
        source: _SourceFile, meta: dict[str, Any]
    ) -> tuple[dict[str, str], dict[str, str]]:
        single = {
            name: node.get("text", "") for name, node in (meta.get("single") or {}).items()
        }
        multi: dict[str, str] = {}
        for name, nodes in (meta.get("multi") or {}).items():
            if not nodes:
                multi[name] = ""
                continue
            # Span from the first to the last captured node keeps separators intact
            first = source.char_offset(nodes[0]["range"]["byteOffset"]["start"])
            last = source.char_offset(nodes[-1]["range"]["byteOffset"]["end"])
            multi[name] = source.text[first:last]
        return single, multi

    def find_patterns(self, pattern: str, glob: str | None = None) -> list[Reference]:
        return [m.ref for m in self._search(pattern, glob)]

    def create_pattern_replace_proposal(
        self, pattern: str, replacement: str, glob: str | None = None
    ) -> Editset:
        matches = self._search(pattern, glob)
        edits = [
            Edit(
                file=m.file,
                offset=m.start,
                length=m.end - m.start,
                replacement=render_template(replacement, m.single, m.multi),
            )
            for m in matches
        ]
        log.info("structural_replace_proposed", pattern=pattern, edits=len(edits))
        return new_editset(
            "structural-replace",
            "replace",
            from_=pattern,
            to=replacement,
            refs=[m.ref for m in matches],
            edits=edits,
            pattern=pattern,
        )
