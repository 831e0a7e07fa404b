"""Tests for the epl command group.

Every command prints exactly one JSON document on stdout; status lines and
logs go to stderr. Failures print the error envelope and exit with 1.
"""

from __future__ import annotations

import json
import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from click.testing import CliRunner, Result

from editplane.cli.main import cli

runner = CliRunner()

MakeTree = Callable[[dict[str, str]], Path]

WIDGET_FILES = {
    "a.ts": "export const widgetPath = '/w';\n",
    "b.ts": "import { widgetPath } from './a';\nconsole.log(widgetPath);\n",
}


def invoke(root: Path, *args: str) -> Result:
    return runner.invoke(cli, ["--root", str(root), *args])


def output(result: Result) -> Any:
    return json.loads(result.stdout)


@pytest.fixture
def widget_repo(make_tree: MakeTree) -> Path:
    return make_tree(WIDGET_FILES)


class TestGroup:
    def test_version(self) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_backends_list(self, widget_repo: Path) -> None:
        result = invoke(widget_repo, "backends.list")
        assert result.exit_code == 0
        names = [b["name"] for b in output(result)]
        assert names == ["tree-sitter", "ast-grep", "ripgrep", "file-rename"]

    def test_verbose_logs_stay_off_stdout(self, widget_repo: Path) -> None:
        result = invoke(widget_repo, "-v", "symbols.find", "-p", "widget")
        assert result.exit_code == 0
        assert [m["name"] for m in output(result)] == ["widgetPath"]
        assert "backend_registered" in result.stderr

    def test_missing_tsconfig_fails(self, widget_repo: Path) -> None:
        result = invoke(widget_repo, "--tsconfig", "missing.json", "backends.list")
        assert result.exit_code == 1
        envelope = output(result)
        assert envelope["code"] == 2004
        assert envelope["kind"] == "CONFIG_FILE_NOT_FOUND"

    def test_invalid_config_fails(self, widget_repo: Path) -> None:
        (widget_repo / ".editplane").mkdir()
        (widget_repo / ".editplane" / "config.yaml").write_text("logging:\n  level: LOUD\n")
        result = invoke(widget_repo, "backends.list")
        assert result.exit_code == 1
        assert output(result)["code"] == 2002


class TestSymbolCommands:
    def test_symbol_at(self, widget_repo: Path) -> None:
        result = invoke(widget_repo, "symbol.at", "a.ts", "1", "16")
        assert result.exit_code == 0
        assert output(result) == {
            "symbolKey": "a.ts:1:14:widgetPath",
            "name": "widgetPath",
            "kind": "variable",
            "file": "a.ts",
            "line": 1,
            "column": 14,
        }

    def test_symbol_at_nothing_there(self, widget_repo: Path) -> None:
        result = invoke(widget_repo, "symbol.at", "a.ts", "1", "1")
        assert result.exit_code == 1
        envelope = output(result)
        assert envelope["code"] == 3002
        assert envelope["retryable"] is False
        assert "a.ts:1:1" in envelope["error"]

    def test_symbol_at_missing_file(self, widget_repo: Path) -> None:
        result = invoke(widget_repo, "symbol.at", "nope.ts", "1")
        assert result.exit_code == 1
        assert output(result)["code"] == 3001

    def test_refs_list(self, widget_repo: Path) -> None:
        result = invoke(widget_repo, "refs.list", "b.ts:2:13:widgetPath")
        assert result.exit_code == 0
        refs = output(result)
        assert [(r["file"], r["range"][:2]) for r in refs] == [
            ("a.ts", [1, 14]),
            ("b.ts", [1, 10]),
            ("b.ts", [2, 13]),
        ]
        assert all(r["selected"] for r in refs)
        assert "Found 3 references" in result.stderr

    def test_symbols_find(self, widget_repo: Path) -> None:
        result = invoke(widget_repo, "symbols.find", "-p", "WIDGET")
        assert result.exit_code == 0
        [match] = output(result)
        assert match["symbolKey"] == "a.ts:1:14:widgetPath"
        assert match["refCount"] == 3

    def test_invalid_regex(self, widget_repo: Path) -> None:
        result = invoke(widget_repo, "symbols.find", "-p", "(")
        assert result.exit_code == 1
        assert output(result)["code"] == 3003


class TestRenameWorkflow:
    def test_propose_then_apply(self, widget_repo: Path) -> None:
        result = invoke(widget_repo, "rename.propose", "a.ts:1:14:widgetPath", "gadgetPath")
        assert result.exit_code == 0
        summary = output(result)
        assert summary == {
            "editsetPath": str(widget_repo / "editset.json"),
            "refCount": 3,
            "fileCount": 2,
            "symbolCount": 1,
        }

        result = invoke(widget_repo, "editset.verify", summary["editsetPath"])
        assert output(result) == {"valid": True, "issues": []}

        result = invoke(widget_repo, "editset.apply", summary["editsetPath"])
        assert result.exit_code == 0
        applied = output(result)
        assert applied["applied"] == 3
        assert applied["written"] == ["a.ts", "b.ts"]
        assert (widget_repo / "a.ts").read_text() == "export const gadgetPath = '/w';\n"
        assert (widget_repo / "b.ts").read_text() == (
            "import { gadgetPath } from './a';\nconsole.log(gadgetPath);\n"
        )

    def test_select_limits_apply_to_selected_files(self, widget_repo: Path) -> None:
        invoke(widget_repo, "rename.propose", "a.ts:1:14:widgetPath", "gadgetPath")
        path = widget_repo / "editset.json"
        b_refs = [r["refId"] for r in json.loads(path.read_text())["refs"] if r["file"] == "b.ts"]

        result = invoke(widget_repo, "editset.select", str(path), "--exclude", ",".join(b_refs))
        assert result.exit_code == 0
        assert output(result) == {"editsetPath": str(path), "selectedRefs": 1, "totalRefs": 3}

        result = invoke(widget_repo, "editset.apply", str(path))
        assert output(result)["applied"] == 1
        assert (widget_repo / "a.ts").read_text() == "export const gadgetPath = '/w';\n"
        assert (widget_repo / "b.ts").read_text() == WIDGET_FILES["b.ts"]

    def test_dry_run_leaves_files(self, widget_repo: Path) -> None:
        invoke(widget_repo, "rename.propose", "a.ts:1:14:widgetPath", "gadgetPath")
        path = str(widget_repo / "editset.json")
        result = invoke(widget_repo, "editset.apply", path, "--dry-run")
        assert result.exit_code == 0
        assert output(result)["dryRun"] is True
        assert output(result)["written"] == []
        assert "[DRY RUN - no changes applied]" in result.stderr
        assert (widget_repo / "a.ts").read_text() == WIDGET_FILES["a.ts"]

    def test_drift_reported(self, widget_repo: Path) -> None:
        invoke(widget_repo, "rename.propose", "a.ts:1:14:widgetPath", "gadgetPath")
        (widget_repo / "b.ts").write_text("// edited meanwhile\n")

        result = invoke(widget_repo, "editset.verify", str(widget_repo / "editset.json"))
        assert output(result)["valid"] is False

        result = invoke(widget_repo, "editset.apply", str(widget_repo / "editset.json"))
        applied = output(result)
        assert applied["applied"] == 1
        assert applied["skipped"] == 2
        assert applied["driftDetected"] == ["b.ts: checksum mismatch, skipping 2 edits"]

    def test_explicit_output_path(self, widget_repo: Path, tmp_path: Path) -> None:
        target = tmp_path / "out" / "rename.json"
        result = invoke(
            widget_repo, "rename.propose", "a.ts:1:14:widgetPath", "gadgetPath", "-o", str(target)
        )
        assert output(result)["editsetPath"] == str(target)
        assert target.exists()

    def test_unknown_symbol(self, widget_repo: Path) -> None:
        result = invoke(widget_repo, "rename.propose", "a.ts:1:14:nothingHere", "x")
        assert result.exit_code == 1
        assert output(result)["code"] == 3002

    def test_malformed_editset(self, widget_repo: Path) -> None:
        bad = widget_repo / "bad.json"
        bad.write_text("{not json")
        result = invoke(widget_repo, "editset.apply", str(bad))
        assert result.exit_code == 1
        assert output(result)["code"] == 4002

    def test_missing_editset(self, widget_repo: Path) -> None:
        result = invoke(widget_repo, "editset.verify", str(widget_repo / "none.json"))
        assert output(result)["code"] == 4001


class TestBatchRename:
    @pytest.fixture
    def repo(self, make_tree: MakeTree) -> Path:
        return make_tree(
            {"c.ts": "const vaultDir = 1;\nconst vaultName = 2;\nconst repoDir = 3;\n"}
        )

    def test_check_conflicts(self, repo: Path) -> None:
        result = invoke(repo, "rename.batch", "-p", "vault", "-r", "repo", "--check-conflicts")
        assert result.exit_code == 0
        report = output(result)
        assert [(c["oldName"], c["reason"]) for c in report["conflicts"]] == [
            ("vaultDir", "target_exists")
        ]
        assert report["safe"] == [
            {"symbolKey": "c.ts:2:7:vaultName", "oldName": "vaultName", "newName": "repoName"}
        ]
        assert not (repo / "editset.json").exists()

    def test_skip(self, repo: Path) -> None:
        result = invoke(repo, "rename.batch", "-p", "vault", "-r", "repo", "--skip", "vaultDir")
        assert result.exit_code == 0
        summary = output(result)
        assert summary["refCount"] == 1
        assert summary["symbolCount"] == 1
        assert summary["skippedSymbols"] == ["vaultDir"]

        invoke(repo, "editset.apply", summary["editsetPath"])
        assert (repo / "c.ts").read_text() == (
            "const vaultDir = 1;\nconst repoName = 2;\nconst repoDir = 3;\n"
        )


def _rg_match(path: str, line_number: int, line: str, start: int, end: int) -> str:
    return json.dumps(
        {
            "type": "match",
            "data": {
                "path": {"text": path},
                "lines": {"text": line},
                "line_number": line_number,
                "submatches": [{"match": {"text": line[start:end]}, "start": start, "end": end}],
            },
        }
    )


class TestPatternCommands:
    def test_text_replace(self, widget_repo: Path) -> None:
        stdout = _rg_match("./a.ts", 1, WIDGET_FILES["a.ts"], 13, 23).encode("utf-8")
        proc = subprocess.CompletedProcess(["rg"], 0, stdout, b"")
        with patch("editplane.backends.tools.subprocess.run", return_value=proc) as run:
            result = invoke(
                widget_repo, "pattern.replace", "-p", "widget(Path)", "-r", "gadget$1", "-g", "a.ts"
            )
        assert result.exit_code == 0
        assert "--glob" in run.call_args.args[0]
        summary = output(result)
        assert summary["backend"] == "ripgrep"
        assert summary["refCount"] == 1

        invoke(widget_repo, "editset.apply", summary["editsetPath"])
        assert (widget_repo / "a.ts").read_text() == "export const gadgetPath = '/w';\n"

    def test_find_without_matches(self, widget_repo: Path) -> None:
        proc = subprocess.CompletedProcess(["rg"], 1, b"", b"")
        with patch("editplane.backends.tools.subprocess.run", return_value=proc):
            result = invoke(widget_repo, "pattern.find", "-p", "nothing")
        assert result.exit_code == 0
        assert output(result) == []

    def test_metavariables_route_to_ast_grep(self, widget_repo: Path) -> None:
        def run(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess[bytes]:
            banner = b"ast-grep 0.31.1\n" if cmd[-1] == "--version" else b""
            return subprocess.CompletedProcess(cmd, 0 if banner else 1, banner, b"")

        with (
            patch("editplane.backends.tools.shutil.which", return_value="/usr/bin/ast-grep"),
            patch("editplane.backends.tools.subprocess.run", side_effect=run) as mock_run,
        ):
            result = invoke(widget_repo, "pattern.find", "-p", "console.log($A)")
        assert result.exit_code == 0
        assert output(result) == []
        assert mock_run.call_args.args[0][:3] == ["ast-grep", "run", "--pattern"]

    def test_shadowing_sg_is_not_ast_grep(self, widget_repo: Path) -> None:
        newgrp = subprocess.CompletedProcess(["sg"], 1, b"", b"sg: group 'run' does not exist\n")
        with (
            patch(
                "editplane.backends.tools.shutil.which",
                side_effect=lambda name: "/usr/bin/sg" if name == "sg" else None,
            ),
            patch("editplane.backends.tools.subprocess.run", return_value=newgrp),
        ):
            result = invoke(widget_repo, "pattern.find", "-p", "console.log($A)")
        assert result.exit_code == 1
        assert output(result)["code"] == 5001

    def test_tool_missing(self, widget_repo: Path) -> None:
        with patch(
            "editplane.backends.tools.subprocess.run", side_effect=FileNotFoundError("rg")
        ):
            result = invoke(widget_repo, "pattern.find", "-p", "x")
        assert result.exit_code == 1
        assert output(result)["code"] == 5001

    def test_unknown_backend(self, widget_repo: Path) -> None:
        result = invoke(widget_repo, "pattern.find", "-p", "x", "-b", "nope")
        assert result.exit_code == 1
        assert output(result)["code"] == 6001


class TestFileCommands:
    @pytest.fixture
    def repo(self, make_tree: MakeTree) -> Path:
        return make_tree(
            {
                "src/widget-path.ts": "export const a = 1;\n",
                "src/WidgetList.tsx": "export const b = 2;\n",
                "src/widget.css": "",
            }
        )

    def test_find(self, repo: Path) -> None:
        result = invoke(repo, "file.find", "-p", "widget", "-r", "gadget")
        assert result.exit_code == 0
        assert output(result) == {
            "pattern": "widget",
            "replacement": "gadget",
            "glob": "**/*.{ts,tsx,js,jsx}",
            "files": [
                {"oldPath": "src/WidgetList.tsx", "newPath": "src/GadgetList.tsx"},
                {"oldPath": "src/widget-path.ts", "newPath": "src/gadget-path.ts"},
            ],
            "count": 2,
        }

    def test_rename_verify_apply(self, repo: Path) -> None:
        result = invoke(repo, "file.rename", "-p", "widget", "-r", "gadget", "-g", "src/*.ts")
        assert result.exit_code == 0
        summary = output(result)
        assert summary["editsetPath"] == str(repo / "file-editset.json")
        assert summary["fileCount"] == 1
        assert summary["importEditCount"] == 0

        result = invoke(repo, "file.verify", summary["editsetPath"])
        assert output(result) == {"valid": True, "drifted": [], "fileCount": 1}

        result = invoke(repo, "file.apply", summary["editsetPath"], "--dry-run")
        assert output(result)["dryRun"] is True
        assert "[DRY RUN - no files renamed]" in result.stderr
        assert (repo / "src/widget-path.ts").exists()

        result = invoke(repo, "file.apply", summary["editsetPath"])
        assert output(result) == {"applied": 1, "skipped": 0, "errors": [], "dryRun": False}
        assert (repo / "src/gadget-path.ts").read_text() == "export const a = 1;\n"

    def test_rename_check_conflicts(self, repo: Path) -> None:
        (repo / "src/gadget-path.ts").write_text("")
        result = invoke(repo, "file.rename", "-p", "widget", "-r", "gadget", "--check-conflicts")
        report = output(result)
        assert report["conflictCount"] == 1
        assert report["safeCount"] == 1
        assert report["conflicts"][0]["reason"] == "target_exists"

    def test_rename_nothing_found(self, repo: Path) -> None:
        result = invoke(repo, "file.rename", "-p", "zzz", "-r", "y")
        assert result.exit_code == 0
        assert output(result)["message"] == "No files found matching pattern"
        assert not (repo / "file-editset.json").exists()
