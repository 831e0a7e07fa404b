"""Tests for files/ops.py - filename rename lifecycle.

Covers:
- find_files_to_rename(): glob filtering, basename matching, casing
- check_file_conflicts(): target_exists, duplicate_target, same_path
- create_file_rename_proposal(): conflicts excluded
- verify/apply: drift, dry run, directory creation
- save/load round trip
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from editplane.core.errors import EditsetError
from editplane.editset.checksum import file_checksum, file_op_id
from editplane.files.models import FileEditset, FileOp
from editplane.files.ops import (
    FileRenameOps,
    apply_file_renames,
    check_file_conflicts,
    create_file_rename_proposal,
    find_files_to_rename,
    find_import_edits,
    load_file_editset,
    save_file_editset,
    verify_file_editset,
)

MakeTree = Callable[[dict[str, str]], Path]


@pytest.fixture
def repo(make_tree: MakeTree) -> Path:
    return make_tree(
        {
            "src/vault.ts": "export const a = 1;\n",
            "src/VaultPanel.tsx": "export const b = 2;\n",
            "src/lib/vault-utils.ts": "export const c = 3;\n",
            "src/other.ts": "export const d = 4;\n",
            "docs/vault.md": "# vault\n",
            "node_modules/vault/index.ts": "",
            "src/vault/readme.ts": "",
        }
    )


def _op(root: Path, old: str, new: str) -> FileOp:
    return FileOp(file_op_id(old, new), old, new, file_checksum(root / old))


class TestFindFiles:
    def test_matches_basename_case_insensitively(self, repo: Path) -> None:
        ops = find_files_to_rename("vault", "repo", "src/**/*.{ts,tsx}", repo)
        assert [(op.old_path, op.new_path) for op in ops] == [
            ("src/VaultPanel.tsx", "src/RepoPanel.tsx"),
            ("src/vault.ts", "src/repo.ts"),
            ("src/lib/vault-utils.ts", "src/lib/repo-utils.ts"),
        ]

    def test_directory_names_do_not_match(self, repo: Path) -> None:
        """Only the basename is considered; src/vault/readme.ts is untouched."""
        ops = find_files_to_rename("vault", "repo", "**/*", repo)
        assert "src/vault/readme.ts" not in [op.old_path for op in ops]

    def test_excluded_dirs_pruned(self, repo: Path) -> None:
        ops = find_files_to_rename("index", "main", "**/*", repo)
        assert ops == []

    def test_glob_star_stays_in_segment(self, repo: Path) -> None:
        ops = find_files_to_rename("vault", "repo", "src/*.ts", repo)
        assert [op.old_path for op in ops] == ["src/vault.ts"]

    def test_op_fields(self, repo: Path) -> None:
        [op] = find_files_to_rename("vault", "repo", "docs/*.md", repo)
        assert op.op_id == file_op_id("docs/vault.md", "docs/repo.md")
        assert op.checksum == file_checksum(repo / "docs/vault.md")
        assert op.to_dict()["type"] == "rename"


class TestConflicts:
    def test_target_exists(self, repo: Path) -> None:
        (repo / "src/repo.ts").write_text("")
        report = check_file_conflicts([_op(repo, "src/vault.ts", "src/repo.ts")], repo)
        assert [c.reason for c in report.conflicts] == ["target_exists"]
        assert report.safe == []

    def test_case_only_rename_is_safe(self, repo: Path) -> None:
        report = check_file_conflicts([_op(repo, "src/vault.ts", "src/Vault.ts")], repo)
        assert report.conflicts == []

    def test_duplicate_target(self, repo: Path) -> None:
        ops = [_op(repo, "src/vault.ts", "src/x.ts"), _op(repo, "src/other.ts", "src/x.ts")]
        report = check_file_conflicts(ops, repo)
        assert [op.old_path for op in report.safe] == ["src/vault.ts"]
        assert report.conflicts[0].reason == "duplicate_target"
        assert report.conflicts[0].existing_path == "src/vault.ts"

    def test_same_path(self, repo: Path) -> None:
        report = check_file_conflicts([_op(repo, "src/vault.ts", "src/vault.ts")], repo)
        assert report.conflicts[0].reason == "same_path"

    def test_report_dict_counts(self, repo: Path) -> None:
        report = check_file_conflicts([_op(repo, "src/vault.ts", "src/vault.ts")], repo)
        data = report.to_dict()
        assert data["conflictCount"] == 1
        assert data["safeCount"] == 0


class TestProposal:
    def test_conflicts_are_excluded(self, repo: Path) -> None:
        (repo / "src/repo.ts").write_text("")
        editset = create_file_rename_proposal("vault", "repo", "src/**/*.ts", repo)
        assert editset.operation == "file-rename"
        assert editset.id.startswith("file-rename-")
        assert [op.old_path for op in editset.file_ops] == ["src/lib/vault-utils.ts"]
        assert editset.import_edits == []

    def test_import_edits_not_implemented(self, repo: Path) -> None:
        assert find_import_edits([_op(repo, "src/vault.ts", "src/repo.ts")], repo) == []

    def test_backend_uses_default_glob(self, repo: Path) -> None:
        backend = FileRenameOps(repo, default_glob="**/*.md")
        assert [op.old_path for op in backend.find_files("vault", "repo")] == ["docs/vault.md"]
        editset = backend.create_file_rename_proposal("vault", "repo", "src/*.tsx")
        assert [op.new_path for op in editset.file_ops] == ["src/RepoPanel.tsx"]


class TestApply:
    def test_renames_and_creates_dirs(self, repo: Path) -> None:
        editset = FileEditset(
            id="file-rename-1",
            pattern="vault",
            replacement="repo",
            file_ops=[_op(repo, "src/vault.ts", "src/new/dir/repo.ts")],
        )
        result = apply_file_renames(editset, repo)
        assert result.to_dict() == {"applied": 1, "skipped": 0, "errors": [], "dryRun": False}
        assert (repo / "src/new/dir/repo.ts").read_text() == "export const a = 1;\n"
        assert not (repo / "src/vault.ts").exists()

    def test_dry_run(self, repo: Path) -> None:
        editset = create_file_rename_proposal("vault", "repo", "src/*.ts", repo)
        result = apply_file_renames(editset, repo, dry_run=True)
        assert result.applied == 1
        assert result.dry_run
        assert (repo / "src/vault.ts").exists()

    def test_drifted_file_skipped(self, repo: Path) -> None:
        editset = create_file_rename_proposal("vault", "repo", "src/**/*.ts", repo)
        (repo / "src/vault.ts").write_text("changed\n")

        assert verify_file_editset(editset, repo)["valid"] is False
        result = apply_file_renames(editset, repo)
        assert result.skipped == 1
        assert result.applied == 1
        assert (repo / "src/vault.ts").exists()
        assert (repo / "src/lib/repo-utils.ts").exists()

    def test_target_created_after_proposal(self, repo: Path) -> None:
        editset = create_file_rename_proposal("vault", "repo", "src/*.ts", repo)
        (repo / "src/repo.ts").write_text("")
        result = apply_file_renames(editset, repo)
        assert result.applied == 0
        assert result.errors == ["src/repo.ts: target already exists"]

    def test_verify_clean(self, repo: Path) -> None:
        editset = create_file_rename_proposal("vault", "repo", "src/*.ts", repo)
        assert verify_file_editset(editset, repo) == {"valid": True, "drifted": []}


class TestPersistence:
    def test_round_trip(self, repo: Path, tmp_path: Path) -> None:
        editset = create_file_rename_proposal("vault", "repo", "src/**/*", repo)
        path = tmp_path / "file-editset.json"
        save_file_editset(editset, path)
        data = json.loads(path.read_text())
        assert set(data) == {
            "id",
            "operation",
            "pattern",
            "replacement",
            "fileOps",
            "importEdits",
            "createdAt",
        }
        assert load_file_editset(path) == editset

    def test_load_missing(self, tmp_path: Path) -> None:
        with pytest.raises(EditsetError):
            load_file_editset(tmp_path / "missing.json")

    def test_load_malformed(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"id": "x"}))
        with pytest.raises(EditsetError):
            load_file_editset(path)
