"""Tree-sitter symbol backend for TypeScript and JavaScript.

Symbol keys are ``file:line:column:name`` with the position of the
declaration's name node. References are resolved through the lexical scope
index in :mod:`editplane.backends.symbols.scopes`; identifiers in property
position (object members, interface fields, ``obj.prop``) are matched by
name across the project.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from editplane.backends.base import SymbolBackend
from editplane.backends.symbols.project import Project, SourceFile
from editplane.backends.symbols.scopes import (
    IDENTIFIER_TYPES,
    PROPERTY_TYPES,
    Binding,
    classify,
)
from editplane.core.errors import DiscoveryError
from editplane.core.excludes import PRUNABLE_DIRS
from editplane.core.logging import get_logger
from editplane.editset.checksum import compute_ref_id
from editplane.editset.models import (
    Conflict,
    ConflictReport,
    Edit,
    Editset,
    Reference,
    SymbolInfo,
    SymbolMatch,
    make_symbol_key,
    parse_symbol_key,
)
from editplane.editset.naming import compute_new_name
from editplane.editset.ops import new_editset

log = get_logger(__name__)


class TreeSitterBackend(SymbolBackend):
    """Scope-aware symbol discovery over a TypeScript/JavaScript project."""

    name = "tree-sitter"
    extensions = ("ts", "tsx", "js", "jsx", "mts", "cts", "mjs", "cjs")
    priority = 100

    def __init__(
        self,
        root: Path,
        tsconfig: str = "tsconfig.json",
        exclude_dirs: frozenset[str] = PRUNABLE_DIRS,
    ) -> None:
        self.project = Project.load(root, tsconfig=tsconfig, exclude_dirs=exclude_dirs)

    def reset(self) -> None:
        """Forget parse trees so the next query re-reads the disk."""
        self.project.reset()

    # -- lookup helpers -------------------------------------------------

    def _symbol_info(self, source: SourceFile, node: Any, kind: Any) -> SymbolInfo:
        line, column, _, _ = source.node_range(node)
        return SymbolInfo(
            name=source.node_text(node), kind=kind, file=source.path, line=line, column=column
        )

    def _resolve(self, file: str, line: int, column: int) -> tuple[SourceFile, Any, Binding] | None:
        source = self.project.source(file)
        if source is None:
            return None
        node = source.node_at(line, column, IDENTIFIER_TYPES)
        if node is None:
            return None
        binding = self.project.index.binding_at(source.path, node)
        if binding is None and node.type in PROPERTY_TYPES:
            binding = Binding(
                name=source.node_text(node),
                kind="property",
                file=source.path,
                node=node,
                is_property=True,
            )
        if binding is None:
            return None
        return source, node, binding

    def _occurrence_refs(self, binding: Binding) -> list[Reference]:
        refs: list[Reference] = []
        for file, node in self.project.index.occurrences(binding):
            source = self.project.source(file)
            if source is None:
                continue
            start_line, start_col, end_line, end_col = source.node_range(node)
            refs.append(
                Reference(
                    ref_id=compute_ref_id(file, start_line, start_col, end_line, end_col),
                    file=file,
                    range=(start_line, start_col, end_line, end_col),
                    preview=source.line_text(start_line).strip(),
                    checksum=source.checksum,
                )
            )
        return refs

    def _edits_for(self, refs: list[Reference], old_name: str, new_name: str) -> list[Edit]:
        edits: list[Edit] = []
        seen: set[tuple[str, int, int]] = set()
        for ref in refs:
            source = self.project.source(ref.file)
            if source is None:
                continue
            start_line, start_col, end_line, end_col = ref.range
            start = source.offset_of(start_line, start_col)
            end = source.offset_of(end_line, end_col)
            if start is None or end is None:
                continue
            # Only the identifier itself is rewritten
            if source.text[start:end] != old_name:
                continue
            key = (ref.file, start, end - start)
            if key in seen:
                continue
            seen.add(key)
            edits.append(
                Edit(file=ref.file, offset=start, length=end - start, replacement=new_name)
            )
        return edits

    # -- SymbolBackend --------------------------------------------------

    def get_symbol_at(self, file: str, line: int, column: int) -> SymbolInfo | None:
        resolved = self._resolve(file, line, column)
        if resolved is None:
            return None
        source, node, binding = resolved
        return self._symbol_info(source, node, classify(node, binding))

    def get_references(self, symbol_key: str) -> list[Reference]:
        try:
            file, line, column, name = parse_symbol_key(symbol_key)
        except ValueError:
            log.debug("symbol_key_malformed", symbol_key=symbol_key)
            return []
        resolved = self._resolve(file, line, column)
        if resolved is None:
            log.debug("symbol_unresolved", symbol_key=symbol_key)
            return []
        source, node, binding = resolved
        if source.node_text(node) != name:
            log.debug("symbol_name_mismatch", symbol_key=symbol_key)
            return []
        return self._occurrence_refs(binding)

    def find_symbols(self, pattern: str | re.Pattern[str]) -> list[SymbolMatch]:
        regex = pattern if isinstance(pattern, re.Pattern) else _compile(pattern)
        index = self.project.index
        matches: list[SymbolMatch] = []
        for binding in index.symbols():
            if not regex.search(binding.name):
                continue
            source = index.files[binding.file].source
            info = self._symbol_info(source, binding.node, classify(binding.node, binding))
            matches.append(SymbolMatch(info, len(self._occurrence_refs(binding))))
        matches.sort(
            key=lambda m: (-m.ref_count, m.symbol.file, m.symbol.line, m.symbol.column)
        )
        log.debug("symbols_found", pattern=regex.pattern, count=len(matches))
        return matches

    def create_rename_proposal(self, symbol_key: str, new_name: str) -> Editset:
        refs = self.get_references(symbol_key)
        if not refs:
            raise DiscoveryError.symbol_not_found(symbol_key)
        _, _, _, old_name = parse_symbol_key(symbol_key)
        edits = self._edits_for(refs, old_name, new_name)
        log.info(
            "rename_proposed", symbol_key=symbol_key, new_name=new_name, refs=len(refs)
        )
        return new_editset(
            f"rename-{old_name}-to-{new_name}",
            "rename",
            from_=old_name,
            to=new_name,
            refs=refs,
            edits=edits,
            symbol_key=symbol_key,
        )

    def create_batch_rename_proposal(
        self, pattern: str, replacement: str, skip: Iterable[str] = ()
    ) -> Editset:
        regex = _compile(pattern)
        skipped = set(skip)
        refs: list[Reference] = []
        edits: list[Edit] = []
        seen_refs: set[str] = set()
        seen_edits: set[tuple[str, int, int]] = set()

        for match in self.find_symbols(regex):
            old_name = match.symbol.name
            if old_name in skipped:
                continue
            new_name = compute_new_name(old_name, regex, replacement)
            if new_name == old_name:
                continue
            symbol_refs = self.get_references(match.symbol.symbol_key)
            for ref in symbol_refs:
                if ref.ref_id in seen_refs:
                    continue
                seen_refs.add(ref.ref_id)
                ref.preview = f"{ref.preview} // {old_name} → {new_name}"
                refs.append(ref)
            for edit in self._edits_for(symbol_refs, old_name, new_name):
                key = (edit.file, edit.offset, edit.length)
                if key not in seen_edits:
                    seen_edits.add(key)
                    edits.append(edit)

        log.info("batch_rename_proposed", pattern=pattern, refs=len(refs), edits=len(edits))
        return new_editset(
            f"rename-batch-{pattern}-to-{replacement}",
            "rename",
            from_=pattern,
            to=replacement,
            refs=refs,
            edits=edits,
            pattern=pattern,
        )

    def check_conflicts(self, pattern: str, replacement: str) -> ConflictReport:
        """Report renames whose new name is already declared in the same file.

        Scope containment is not checked; any same-file declaration with the
        exact new name counts.
        """
        regex = _compile(pattern)
        matches = self.find_symbols(regex)
        declared: dict[tuple[str, str], SymbolInfo] = {}
        for match in matches:
            declared.setdefault((match.symbol.file, match.symbol.name), match.symbol)
        for binding in self.project.index.symbols():
            key = (binding.file, binding.name)
            if key not in declared:
                source = self.project.index.files[binding.file].source
                declared[key] = self._symbol_info(
                    source, binding.node, classify(binding.node, binding)
                )

        report = ConflictReport()
        for match in matches:
            symbol = match.symbol
            new_name = compute_new_name(symbol.name, regex, replacement)
            if new_name == symbol.name:
                continue
            existing = declared.get((symbol.file, new_name))
            if existing is not None and existing.symbol_key != symbol.symbol_key:
                report.conflicts.append(
                    Conflict(
                        old_name=symbol.name,
                        new_name=new_name,
                        reason="target_exists",
                        location=symbol,
                        existing_symbol=existing,
                    )
                )
            else:
                report.safe.append(
                    {
                        "symbolKey": make_symbol_key(
                            symbol.file, symbol.line, symbol.column, symbol.name
                        ),
                        "oldName": symbol.name,
                        "newName": new_name,
                    }
                )
        log.debug(
            "conflicts_checked", conflicts=len(report.conflicts), safe=len(report.safe)
        )
        return report


def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise DiscoveryError.invalid_pattern(pattern, str(e)) from e
