"""Tests for automation.services.git module."""

from __future__ import annotations

from pathlib import Path

import pytest

from automation.core.result import Err, Ok
from automation.platform.process import ProcessError
from automation.services import git as git_mod
from automation.services.git import StatusEntry, parse_porcelain


class TestParsePorcelain:
    def test_entries(self) -> None:
        entries = parse_porcelain(" M src/app.ts\n?? notes.txt\nA  lib/new.ts\n")
        assert entries == [
            StatusEntry(xy=" M", path="src/app.ts"),
            StatusEntry(xy="??", path="notes.txt"),
            StatusEntry(xy="A ", path="lib/new.ts"),
        ]
        assert entries[0].pretty_xy() == ".M"

    def test_empty(self) -> None:
        assert parse_porcelain("") == []


def _fake_run(result: Ok[str] | Err[ProcessError], calls: list[list[str]]):
    def fake_run(
        cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None
    ) -> Ok[str] | Err[ProcessError]:
        del cwd, env, timeout
        calls.append(cmd)
        return result

    return fake_run


class TestCatchUncommitted:
    def test_clean(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        calls: list[list[str]] = []
        monkeypatch.setattr(git_mod, "run_process", _fake_run(Ok(""), calls))

        result = git_mod.catch_uncommitted(root=tmp_path, env={})

        assert result == Ok(None)
        assert calls == [["git", "status", "--porcelain"]]

    def test_dirty(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        output = " M package.json\n?? dist/\n"
        monkeypatch.setattr(git_mod, "run_process", _fake_run(Ok(output), []))

        result = git_mod.catch_uncommitted(root=tmp_path, env={})

        assert isinstance(result, Err)
        assert "package.json" in result.error.message
        assert "dist/" in result.error.message

    def test_many_changes_are_summarized(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        output = "".join(f"?? file{i}.txt\n" for i in range(15))
        monkeypatch.setattr(git_mod, "run_process", _fake_run(Ok(output), []))

        result = git_mod.catch_uncommitted(root=tmp_path, env={})

        assert isinstance(result, Err)
        assert "(5 more)" in result.error.message

    def test_git_failure(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        error = ProcessError(("git", "status"), 128, "", "fatal: not a git repository\n")
        monkeypatch.setattr(git_mod, "run_process", _fake_run(Err(error), []))

        result = git_mod.catch_uncommitted(root=tmp_path, env={})

        assert isinstance(result, Err)
        assert result.error.message == "fatal: not a git repository"
