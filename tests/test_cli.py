"""Tests for the assetvault CLI.

Exit codes:
    0: Success
    1: Internal error
    2: Operation failed (typed storage failure)
"""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any

import pytest

from assetvault.cli import main


@pytest.fixture
def root(tmp_path: Path) -> Path:
    return tmp_path / "vault"


@pytest.fixture
def run(root: Path, capsys: pytest.CaptureFixture[str]) -> Any:
    """Run the CLI against ``root`` and return (exit_code, parsed JSON stdout)."""

    def _run(*argv: str) -> tuple[int, Any]:
        capsys.readouterr()
        code = main(["--uploads-dir", str(root), *argv])
        out = capsys.readouterr().out
        return code, json.loads(out) if out.strip() else None

    return _run


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    path = tmp_path / "avatar.png"
    path.write_bytes(b"\x89PNG-bytes")
    return path


class TestObjectCommands:
    def test_put_ls_stat_get(self, run: Any, source_file: Path, tmp_path: Path) -> None:
        code, result = run(
            "put", "avatar.png", "--file", str(source_file), "--content-type", "image/png"
        )
        assert code == 0
        assert result["metadata"]["size"] == len(b"\x89PNG-bytes")
        assert result["metadata"]["contentType"] == "image/png"

        code, result = run("ls")
        assert code == 0
        assert result["items"] == ["avatar.png"]

        code, result = run("stat", "avatar.png")
        assert code == 0
        assert result["metadata"]["originalName"] == "avatar.png"

        out_path = tmp_path / "copy.png"
        code, result = run("get", "avatar.png", "--out", str(out_path))
        assert code == 0
        assert result["size"] == len(b"\x89PNG-bytes")
        assert out_path.read_bytes() == b"\x89PNG-bytes"

    def test_put_reads_stdin(self, run: Any, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(b"from stdin")))

        code, result = run("put", "notes.txt")

        assert code == 0
        assert result["metadata"]["size"] == len(b"from stdin")

    def test_rm(self, run: Any, source_file: Path) -> None:
        run("put", "avatar.png", "--file", str(source_file))

        code, result = run("rm", "avatar.png")

        assert code == 0
        assert result == {"deleted": "avatar.png", "visibility": "public"}
        assert run("ls")[1]["items"] == []

    def test_missing_object_exits_2(self, run: Any) -> None:
        code, result = run("get", "missing.txt", "--out", "/dev/null")

        assert code == 2
        assert result["error"]["code"] == "NOT_FOUND"

    def test_invalid_name_exits_2(self, run: Any) -> None:
        code, result = run("rm", "..")

        assert code == 2
        assert result["error"]["code"] == "VALIDATION"

    def test_unreadable_input_file_exits_1(self, run: Any, tmp_path: Path) -> None:
        code, result = run("put", "x.txt", "--file", str(tmp_path / "does-not-exist"))

        assert code == 1
        assert result["error"]["code"] == "INTERNAL_ERROR"


class TestPrivateObjects:
    @pytest.fixture(autouse=True)
    def private_avatar(self, run: Any, source_file: Path) -> None:
        code, _ = run(
            "--visibility",
            "private",
            "--caller",
            "u1",
            "put",
            "avatar.png",
            "--file",
            str(source_file),
        )
        assert code == 0

    def test_stranger_denied(self, run: Any) -> None:
        code, result = run(
            "--visibility", "private", "--caller", "u3", "get", "avatar.png", "--out", "/dev/null"
        )

        assert code == 2
        assert result["error"]["code"] == "ACCESS_DENIED"

    def test_grant_then_read(self, run: Any, tmp_path: Path) -> None:
        code, result = run(
            "--visibility", "private", "--caller", "u1", "acl", "grant", "avatar.png", "u2", "read"
        )
        assert code == 0
        assert result["acl"]["grants"] == [{"granteeId": "u2", "permission": "read"}]

        out_path = tmp_path / "u2.png"
        code, _ = run(
            "--visibility", "private", "--caller", "u2", "get", "avatar.png", "--out", str(out_path)
        )
        assert code == 0
        assert out_path.read_bytes() == b"\x89PNG-bytes"

    def test_grantee_cannot_change_acl(self, run: Any) -> None:
        run("--visibility", "private", "acl", "grant", "avatar.png", "u2", "read")

        code, result = run(
            "--visibility", "private", "--caller", "u2", "acl", "grant", "avatar.png", "u2", "admin"
        )

        assert code == 2
        assert result["error"]["code"] == "ACCESS_DENIED"

    def test_acl_set_show_revoke(self, run: Any) -> None:
        code, _ = run(
            "--visibility",
            "private",
            "acl",
            "set",
            "avatar.png",
            "--owner",
            "u1",
            "--grant",
            "u2=write",
            "--grant",
            "editors=READ",
        )
        assert code == 0

        code, result = run("--visibility", "private", "--caller", "u1", "acl", "show", "avatar.png")
        assert code == 0
        assert result["acl"] == {
            "ownerId": "u1",
            "grants": [
                {"granteeId": "u2", "permission": "write"},
                {"granteeId": "editors", "permission": "read"},
            ],
        }

        code, result = run("--visibility", "private", "acl", "revoke", "avatar.png", "u2")
        assert code == 0
        assert result["acl"]["grants"] == [{"granteeId": "editors", "permission": "read"}]

    def test_acl_show_requires_admin(self, run: Any) -> None:
        code, result = run("--visibility", "private", "--caller", "u3", "acl", "show", "avatar.png")

        assert code == 2
        assert result["error"]["code"] == "ACCESS_DENIED"

    def test_acl_show_missing_object(self, run: Any) -> None:
        code, result = run("--visibility", "private", "acl", "show", "ghost.png")

        assert code == 2
        assert result["error"]["code"] == "NOT_FOUND"

    def test_stat_private_requires_read(self, run: Any) -> None:
        code, result = run("--visibility", "private", "--caller", "u3", "stat", "avatar.png")

        assert code == 2
        assert result["error"]["code"] == "ACCESS_DENIED"


class TestMaintenanceCommands:
    def test_reconcile_scans_both_partitions(self, run: Any, root: Path) -> None:
        run("ls")
        (root / "private" / "orphan.bin.metadata.json").write_text("{}", encoding="utf-8")
        (root / "public" / "raw.bin").write_bytes(b"raw")

        code, result = run("reconcile")

        assert code == 0
        reports = {r["visibility"]: r for r in result["reports"]}
        assert reports["public"]["sidecars_rebuilt"] == ["raw.bin"]
        assert reports["private"]["orphaned_sidecars_removed"] == ["orphan.bin.metadata.json"]

    def test_reconcile_single_partition(self, run: Any) -> None:
        code, result = run("--visibility", "private", "reconcile")

        assert code == 0
        assert [r["visibility"] for r in result["reports"]] == ["private"]

    def test_unique_name(self, run: Any) -> None:
        code, result = run("unique-name", "uploads/photo.jpg")

        assert code == 0
        assert result["name"].startswith("photo_")
        assert result["name"].endswith(".jpg")

    def test_search_paths_from_env(self, run: Any, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PUBLIC_OBJECT_SEARCH_PATHS", "/srv/static, /srv/assets,/srv/static")

        code, result = run("search-paths")

        assert code == 0
        assert result == {"search_paths": ["/srv/static", "/srv/assets"]}

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 0
        assert "assetvault" in capsys.readouterr().out
