"""Tests for automation.platform.process module."""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

import pytest

from automation.core.result import Err, Ok
from automation.platform.process import ProcessError, run, run_streaming

PY = sys.executable


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(command=("git", "status"), returncode=1, stdout="", stderr="")
        assert str(error) == "git status failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("gh", "release", "upload", "v1.0.0", "a.zip"),
            returncode=1,
            stdout="",
            stderr="",
        )
        assert str(error) == "gh release upload ... failed (exit 1)"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([PY, "-c", "print('hello')"], cwd=tmp_path)
        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [PY, "-c", "import sys; sys.stderr.write('bad'); sys.exit(42)"], cwd=tmp_path
        )
        assert isinstance(result, Err)
        assert result.error.returncode == 42
        assert "bad" in result.error.stderr

    def test_command_not_found(self, tmp_path: Path) -> None:
        result = run(["nonexistent_command_12345"], cwd=tmp_path)
        assert isinstance(result, Err)
        assert result.error.returncode == -1
        assert result.error.stderr

    def test_uses_env(self, tmp_path: Path) -> None:
        env = dict(os.environ, AUTOMATION_TEST_VAR="value")
        result = run(
            [PY, "-c", "import os; print(os.environ['AUTOMATION_TEST_VAR'])"],
            cwd=tmp_path,
            env=env,
        )
        assert isinstance(result, Ok)
        assert "value" in result.value

    def test_timeout(self, tmp_path: Path) -> None:
        result = run([PY, "-c", "import time; time.sleep(10)"], cwd=tmp_path, timeout=0.2)
        assert isinstance(result, Err)
        assert "timed out" in result.error.stderr


class TestRunStreaming:
    def test_success(self, tmp_path: Path) -> None:
        result = asyncio.run(run_streaming([PY, "-c", "pass"], cwd=tmp_path))
        assert result == Ok(None)

    def test_failure(self, tmp_path: Path) -> None:
        result = asyncio.run(run_streaming([PY, "-c", "raise SystemExit(3)"], cwd=tmp_path))
        assert isinstance(result, Err)
        assert result.error.returncode == 3

    def test_runs_in_cwd(self, tmp_path: Path) -> None:
        code = "open('marker.txt', 'w').close()"
        asyncio.run(run_streaming([PY, "-c", code], cwd=tmp_path))
        assert (tmp_path / "marker.txt").exists()

    def test_command_not_found(self, tmp_path: Path) -> None:
        result = asyncio.run(run_streaming(["nonexistent_command_12345"], cwd=tmp_path))
        assert isinstance(result, Err)
        assert result.error.returncode == -1
