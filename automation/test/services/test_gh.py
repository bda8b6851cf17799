"""Tests for automation.services.gh module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from automation.core.result import Err, Ok
from automation.platform.process import ProcessError
from automation.services import gh


class FakeRun:
    """Replays queued results for successive `run_process` calls."""

    def __init__(self, *results: Ok[str] | Err[ProcessError]) -> None:
        self.results = list(results)
        self.calls: list[list[str]] = []

    def __call__(
        self, cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None
    ) -> Ok[str] | Err[ProcessError]:
        del cwd, env, timeout
        self.calls.append(cmd)
        return self.results.pop(0)


def _fail(stderr: str) -> Err[ProcessError]:
    return Err(ProcessError(("gh",), 1, "", stderr))


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    delays: list[float] = []
    monkeypatch.setattr(gh, "sleep", delays.append)
    return delays


class TestReadRetry:
    def test_transient_error_is_retried(
        self, monkeypatch: pytest.MonkeyPatch, sleeps: list[float], tmp_path: Path
    ) -> None:
        fake = FakeRun(_fail("HTTP 502: Bad Gateway"), Ok("[]"))
        monkeypatch.setattr(gh, "run_process", fake)

        result = gh.run_gh_read(root=tmp_path, env={}, cmd=["gh", "api", "x"], message="m")

        assert result == Ok("[]")
        assert len(fake.calls) == 2
        assert sleeps == [1.0]

    def test_gives_up_after_attempts(
        self, monkeypatch: pytest.MonkeyPatch, sleeps: list[float], tmp_path: Path
    ) -> None:
        fake = FakeRun(*[_fail("connection reset by peer")] * 3)
        monkeypatch.setattr(gh, "run_process", fake)

        result = gh.run_gh_read(root=tmp_path, env={}, cmd=["gh", "api", "x"], message="m")

        assert isinstance(result, Err)
        assert result.error.kind == "gh_failed"
        assert len(fake.calls) == 3
        assert sleeps == [1.0, 2.0]

    def test_permanent_error_is_not_retried(
        self, monkeypatch: pytest.MonkeyPatch, sleeps: list[float], tmp_path: Path
    ) -> None:
        fake = FakeRun(_fail("HTTP 401: Bad credentials"))
        monkeypatch.setattr(gh, "run_process", fake)

        result = gh.run_gh_read(root=tmp_path, env={}, cmd=["gh", "api", "x"], message="m")

        assert isinstance(result, Err)
        assert result.error.hint == "HTTP 401: Bad credentials"
        assert sleeps == []


class TestReleaseExists:
    def test_found(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(gh, "run_process", FakeRun(Ok('{"tagName": "v1.0.0"}')))
        assert gh.release_exists(root=tmp_path, env={}, repo=None, tag="v1.0.0") == Ok(True)

    def test_not_found(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(gh, "run_process", FakeRun(_fail("release not found")))
        assert gh.release_exists(root=tmp_path, env={}, repo=None, tag="v1.0.0") == Ok(False)

    def test_other_failure(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(gh, "run_process", FakeRun(_fail("HTTP 403: forbidden")))
        result = gh.release_exists(root=tmp_path, env={}, repo="acme/cli", tag="v1.0.0")
        assert isinstance(result, Err)
        assert result.error.message == "failed to query release v1.0.0"


class TestWrites:
    def test_create_with_generated_notes(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        fake = FakeRun(Ok(""))
        monkeypatch.setattr(gh, "run_process", fake)

        result = gh.create_release(
            root=tmp_path,
            env={},
            repo="acme/cli",
            tag="v1.2.0",
            notes=None,
            assets=[Path("dist/cli.exe")],
        )

        assert result == Ok(None)
        assert fake.calls == [
            [
                "gh", "release", "create", "v1.2.0", str(Path("dist/cli.exe")),
                "--repo", "acme/cli", "--title", "v1.2.0", "--generate-notes",
            ]
        ]

    def test_upload_clobbers(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        fake = FakeRun(Ok(""))
        monkeypatch.setattr(gh, "run_process", fake)

        gh.upload_assets(root=tmp_path, env={}, repo=None, tag="v1.2.0", assets=[Path("a.zip")])

        assert fake.calls[0][-1] == "--clobber"
        assert "--repo" not in fake.calls[0]

    def test_write_failure_is_not_retried(
        self, monkeypatch: pytest.MonkeyPatch, sleeps: list[float], tmp_path: Path
    ) -> None:
        fake = FakeRun(_fail("HTTP 503: Service Unavailable"))
        monkeypatch.setattr(gh, "run_process", fake)

        result = gh.edit_release_notes(
            root=tmp_path, env={}, repo=None, tag="v1.0.0", notes="n"
        )

        assert isinstance(result, Err)
        assert len(fake.calls) == 1
        assert sleeps == []


class TestListReleases:
    def test_parses_payload(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        payload = [
            {"tag_name": "v1.0.0", "body": "notes", "draft": False, "prerelease": False},
            {"tag_name": "v1.1.0", "body": None, "draft": True},
            {"name": "no tag"},
            "garbage",
        ]
        fake = FakeRun(Ok(json.dumps(payload)))
        monkeypatch.setattr(gh, "run_process", fake)

        result = gh.list_releases(root=tmp_path, env={}, repo="acme/cli")

        assert result == Ok(
            [
                gh.GhRelease(tag="v1.0.0", body="notes", draft=False, prerelease=False),
                gh.GhRelease(tag="v1.1.0", body="", draft=True, prerelease=False),
            ]
        )
        assert fake.calls == [["gh", "api", "--paginate", "repos/acme/cli/releases?per_page=100"]]

    def test_current_checkout_placeholder(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        fake = FakeRun(Ok("[]"))
        monkeypatch.setattr(gh, "run_process", fake)

        gh.list_releases(root=tmp_path, env={}, repo=None, per_page=10)

        assert fake.calls == [
            ["gh", "api", "--paginate", "repos/{owner}/{repo}/releases?per_page=10"]
        ]

    def test_follows_every_page(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        first = [{"tag_name": f"v10.{n}.0", "body": ""} for n in range(100, 0, -1)]
        second = [{"tag_name": "v9.9.9", "body": "oldest"}]
        monkeypatch.setattr(
            gh, "run_process", FakeRun(Ok(json.dumps(first) + "\n" + json.dumps(second) + "\n"))
        )

        result = gh.list_releases(root=tmp_path, env={}, repo="acme/cli")

        assert isinstance(result, Ok)
        assert len(result.value) == 101
        assert result.value[-1] == gh.GhRelease(
            tag="v9.9.9", body="oldest", draft=False, prerelease=False
        )

    def test_empty_output(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(gh, "run_process", FakeRun(Ok("")))
        assert gh.list_releases(root=tmp_path, env={}, repo=None) == Ok([])

    def test_page_that_is_not_a_list(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setattr(gh, "run_process", FakeRun(Ok('[]{"message": "x"}')))
        result = gh.list_releases(root=tmp_path, env={}, repo=None)
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_input"

    def test_invalid_json(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(gh, "run_process", FakeRun(Ok("not json")))
        result = gh.list_releases(root=tmp_path, env={}, repo=None)
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_input"


def test_gh_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(gh.shutil, "which", lambda _name: None)
    result = gh.ensure_gh_available()
    assert isinstance(result, Err)
    assert result.error.kind == "gh_missing"
