"""Editset lifecycle: build, filter, persist, verify, apply.

Drift is a reported outcome, not an error. A file whose current checksum no
longer matches the one recorded at discovery time has all of its edits
skipped; other files in the same editset are still applied.
"""

from __future__ import annotations

import json
import time
from collections.abc import Iterable
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

from editplane.core.errors import EditsetError
from editplane.core.logging import get_logger
from editplane.editset.checksum import compute_checksum, read_source, write_source
from editplane.editset.models import ApplyResult, Edit, Editset, Reference, VerifyResult, sort_edits

log = get_logger(__name__)


def new_editset(
    id_stem: str,
    operation: str,
    *,
    from_: str,
    to: str,
    refs: list[Reference],
    edits: list[Edit],
    symbol_key: str | None = None,
    pattern: str | None = None,
) -> Editset:
    """Create an editset stamped with the current time.

    The id is ``{id_stem}-{epoch_ms}``. Two proposals in the same millisecond
    share an id.
    """
    now = datetime.now(UTC)
    return Editset(
        id=f"{id_stem}-{int(time.time() * 1000)}",
        operation=operation,
        from_=from_,
        to=to,
        refs=refs,
        edits=sort_edits(edits),
        created_at=now.isoformat().replace("+00:00", "Z"),
        symbol_key=symbol_key,
        pattern=pattern,
    )


def filter_editset(
    editset: Editset,
    include: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
) -> Editset:
    """Return a new editset with ref selection adjusted.

    ``include`` overrides prior selection, then ``exclude`` subtracts. Edits
    are kept per file: an edit survives when any selected ref shares its
    file. Empty lists are treated as not given.
    """
    include_ids = set(include) if include else None
    exclude_ids = set(exclude) if exclude else None

    refs: list[Reference] = []
    for ref in editset.refs:
        selected = ref.selected if include_ids is None else ref.ref_id in include_ids
        if exclude_ids is not None and ref.ref_id in exclude_ids:
            selected = False
        refs.append(replace(ref, selected=selected))

    selected_files = {r.file for r in refs if r.selected}
    edits = [e for e in editset.edits if e.file in selected_files]
    log.debug(
        "editset_filtered",
        editset=editset.id,
        selected=sum(r.selected for r in refs),
        edits=len(edits),
    )
    return replace(editset, refs=refs, edits=edits)


def save_editset(editset: Editset, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(editset.to_dict(), indent=2, ensure_ascii=False)
    path.write_text(text + "\n", encoding="utf-8")
    log.debug("editset_saved", path=str(path), refs=len(editset.refs), edits=len(editset.edits))


def load_editset(path: Path) -> Editset:
    """Load an editset from JSON.

    Raises:
        EditsetError: If the file is missing or does not hold an editset.
    """
    if not path.exists():
        raise EditsetError.not_found(str(path))
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise EditsetError.malformed(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise EditsetError.malformed(str(path), "top-level value must be an object")
    try:
        return Editset.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise EditsetError.malformed(str(path), f"missing or invalid field: {e}") from e


def verify_editset(editset: Editset, root: Path) -> VerifyResult:
    """Check every ref file still exists with its recorded checksum.

    A file that can no longer be read as UTF-8 text is reported as an
    issue like any other drift.
    """
    issues: list[str] = []
    recorded = {r.file: r.checksum for r in editset.refs}
    for file, expected in recorded.items():
        path = root / file
        if not path.exists():
            issues.append(f"{file}: file no longer exists")
            continue
        try:
            actual = compute_checksum(read_source(path))
        except (OSError, UnicodeDecodeError) as e:
            issues.append(f"{file}: unreadable ({e})")
            continue
        if actual != expected:
            issues.append(f"{file}: checksum mismatch (expected {expected}, got {actual})")
    return VerifyResult(valid=not issues, issues=issues)


def _group_by_file(edits: list[Edit]) -> dict[str, list[Edit]]:
    grouped: dict[str, list[Edit]] = {}
    for edit in edits:
        grouped.setdefault(edit.file, []).append(edit)
    return grouped


def apply_edits(content: str, edits: list[Edit]) -> str:
    """Splice edits into ``content`` in descending offset order."""
    for edit in sorted(edits, key=lambda e: e.offset, reverse=True):
        content = content[: edit.offset] + edit.replacement + content[edit.offset + edit.length :]
    return content


def apply_editset(editset: Editset, root: Path, *, dry_run: bool = False) -> ApplyResult:
    """Apply an editset's edits, one whole-file write per file.

    Each file is checked against the checksum of every ref recorded for it.
    Read and write failures are scoped to their file; files already written
    are not rolled back.
    """
    result = ApplyResult(dry_run=dry_run)
    checksums: dict[str, list[str]] = {}
    for ref in editset.refs:
        checksums.setdefault(ref.file, []).append(ref.checksum)

    for file, edits in _group_by_file(editset.edits).items():
        path = root / file
        expected = checksums.get(file)
        if not expected:
            result.skipped += len(edits)
            result.drift_detected.append(
                f"{file}: no recorded checksum, skipping {len(edits)} edits"
            )
            continue

        try:
            content = read_source(path)
        except (OSError, UnicodeDecodeError) as e:
            result.errors += len(edits)
            result.error_details.append(f"{file}: {e}")
            log.warning("apply_read_failed", file=file, error=str(e))
            continue

        current = compute_checksum(content)
        if any(checksum != current for checksum in expected):
            result.skipped += len(edits)
            result.drift_detected.append(
                f"{file}: checksum mismatch, skipping {len(edits)} edits"
            )
            log.info("drift_detected", file=file, edits=len(edits))
            continue

        updated = apply_edits(content, edits)
        if not dry_run:
            try:
                write_source(path, updated)
            except OSError as e:
                result.errors += len(edits)
                result.error_details.append(f"{file}: {e}")
                log.warning("apply_write_failed", file=file, error=str(e))
                continue
            result.written.append(file)
        result.applied += len(edits)

    log.info(
        "editset_applied",
        editset=editset.id,
        applied=result.applied,
        skipped=result.skipped,
        errors=result.errors,
        dry_run=dry_run,
    )
    return result
