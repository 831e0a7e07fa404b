"""Text-pattern backend over ripgrep's JSON output.

Replacement is plain regular-expression substitution against the matched
text. Identifier casing is not preserved here; that is the symbol backend's
job.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path

from editplane.backends.base import WILDCARD, PatternBackend
from editplane.backends.tools import ExternalTool, ripgrep
from editplane.core.errors import DiscoveryError, ToolError
from editplane.core.logging import get_logger
from editplane.editset.checksum import (
    byte_to_char_offset,
    compute_checksum,
    compute_ref_id,
    line_col_to_offset,
    read_source,
)
from editplane.editset.models import Edit, Editset, Reference
from editplane.editset.ops import new_editset

log = get_logger(__name__)

_CAPTURE_REF = re.compile(r"\$(?:\{(\w+)\}|(\d+)|\$)")


def to_python_template(template: str) -> str:
    """Translate ``$1`` / ``${name}`` capture references to ``re.sub`` syntax."""
    out: list[str] = []
    pos = 0
    for m in _CAPTURE_REF.finditer(template):
        out.append(template[pos : m.start()].replace("\\", "\\\\"))
        name = m.group(1) or m.group(2)
        out.append(f"\\g<{name}>" if name else "$")
        pos = m.end()
    out.append(template[pos:].replace("\\", "\\\\"))
    return "".join(out)


def normalize_path(path: str) -> str:
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


@dataclass(frozen=True)
class TextMatch:
    ref: Reference
    text: str


class RipgrepBackend(PatternBackend):
    """Regular-expression line matching for any file type."""

    name = "ripgrep"
    extensions = (WILDCARD,)
    priority = 10

    def __init__(self, root: Path, tool: ExternalTool | None = None) -> None:
        self.root = root
        self.tool = tool or ripgrep()

    def _search(self, pattern: str, glob: str | None) -> list[TextMatch]:
        args = ["--json", "--line-number", "--column", "--regexp", pattern]
        if glob:
            args += ["--glob", glob]
        args.append(".")

        proc = self.tool.run(args, cwd=self.root)
        if proc.returncode == 1:
            return []
        if proc.returncode != 0:
            raise ToolError.failed(
                self.tool.name, proc.returncode, proc.stderr.decode("utf-8", errors="replace")
            )
        return self._parse(proc.stdout.decode("utf-8", errors="replace"), pattern)

    def _parse(self, output: str, pattern: str) -> list[TextMatch]:
        matches: list[TextMatch] = []
        checksums: dict[str, str] = {}

        for line in output.splitlines():
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise ToolError.malformed_output(self.tool.name, line, str(e)) from e
            if record.get("type") != "match":
                continue

            data = record["data"]
            # Non-UTF-8 paths and lines arrive base64-encoded under "bytes"
            if "text" not in data["path"] or "text" not in data["lines"]:
                log.debug("skip_non_utf8_match", path=data["path"])
                continue

            file = normalize_path(data["path"]["text"])
            if file not in checksums:
                path = self.root / file
                if not path.is_file():
                    continue
                checksums[file] = compute_checksum(read_source(path))

            line_text: str = data["lines"]["text"]
            line_bytes = line_text.encode("utf-8")
            line_number: int = data["line_number"]
            preview = line_text.strip()

            for sub in data["submatches"]:
                start_col = byte_to_char_offset(line_bytes, sub["start"]) + 1
                end_col = byte_to_char_offset(line_bytes, sub["end"]) + 1
                matched = sub["match"].get("text", "")
                ref = Reference(
                    ref_id=compute_ref_id(file, line_number, start_col, line_number, end_col),
                    file=file,
                    range=(line_number, start_col, line_number, end_col),
                    preview=f'{preview} // "{matched}" → "{pattern}"',
                    checksum=checksums[file],
                )
                matches.append(TextMatch(ref=ref, text=matched))

        return matches

    def find_patterns(self, pattern: str, glob: str | None = None) -> list[Reference]:
        return [m.ref for m in self._search(pattern, glob)]

    def create_pattern_replace_proposal(
        self, pattern: str, replacement: str, glob: str | None = None
    ) -> Editset:
        try:
            regex = re.compile(pattern)
        except re.error as e:
            raise DiscoveryError.invalid_pattern(pattern, str(e)) from e
        template = to_python_template(replacement)

        matches = self._search(pattern, glob)
        contents: dict[str, str] = {}
        edits: list[Edit] = []
        for match in matches:
            ref = match.ref
            if ref.file not in contents:
                contents[ref.file] = read_source(self.root / ref.file)
            start_line, start_col, _, end_col = ref.range
            try:
                new_text = regex.sub(template, match.text)
            except (re.error, IndexError) as e:
                raise DiscoveryError.invalid_pattern(replacement, str(e)) from e
            edits.append(
                Edit(
                    file=ref.file,
                    offset=line_col_to_offset(contents[ref.file], start_line, start_col),
                    length=end_col - start_col,
                    replacement=new_text,
                )
            )

        log.info("text_replace_proposed", pattern=pattern, refs=len(matches), edits=len(edits))
        return new_editset(
            "text-replace",
            "replace",
            from_=pattern,
            to=replacement,
            refs=[m.ref for m in matches],
            edits=edits,
            pattern=pattern,
        )
