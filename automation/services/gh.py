"""GitHub CLI (`gh`) wrappers for release management.

Reads are idempotent and retried on transient failures; writes run once.
"""

from __future__ import annotations

import json
import shutil
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from time import sleep
from typing import Literal

from automation.core.result import Err, Ok, Result
from automation.core.structured import as_obj_list, as_str_dict, get_str
from automation.platform.process import ProcessError
from automation.platform.process import run as run_process

__all__ = [
    "GhRelease",
    "ReleaseError",
    "create_release",
    "edit_release_notes",
    "ensure_gh_available",
    "list_releases",
    "release_exists",
    "run_gh_read",
    "upload_assets",
]

GH_TIMEOUT_SECONDS = 60.0
GH_UPLOAD_TIMEOUT_SECONDS = 30 * 60.0
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0

_ReleaseErrorKind = Literal[
    "gh_missing",
    "invalid_input",
    "invalid_version",
    "no_assets",
    "not_configured",
    "gh_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    kind: _ReleaseErrorKind
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class GhRelease:
    tag: str
    body: str
    draft: bool
    prerelease: bool


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    return any(marker in text for marker in markers)


def _run_with_retry(
    cmd: list[str],
    *,
    root: Path,
    env: Mapping[str, str],
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, ProcessError]:
    attempts = max(1, retry_attempts)
    result = run_process(cmd, cwd=root, env=env, timeout=timeout)
    for attempt in range(1, attempts):
        if isinstance(result, Ok) or not _is_transient_gh_error(result.error):
            break
        sleep(GH_READ_RETRY_DELAY_SECONDS * attempt)
        result = run_process(cmd, cwd=root, env=env, timeout=timeout)
    return result


def run_gh_read(
    *,
    root: Path,
    env: Mapping[str, str],
    cmd: list[str],
    message: str,
    hint: str | None = None,
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, ReleaseError]:
    result = _run_with_retry(
        cmd, root=root, env=env, timeout=timeout, retry_attempts=retry_attempts
    )
    if isinstance(result, Err):
        return Err(
            ReleaseError(kind="gh_failed", message=message, hint=result.error.stderr.strip() or hint)
        )
    return result


def _run_gh_write(
    *,
    root: Path,
    env: Mapping[str, str],
    cmd: list[str],
    message: str,
    timeout: float = GH_TIMEOUT_SECONDS,
) -> Result[None, ReleaseError]:
    result = run_process(cmd, cwd=root, env=env, timeout=timeout)
    if isinstance(result, Err):
        return Err(
            ReleaseError(
                kind="gh_failed",
                message=message,
                hint=result.error.stderr.strip() or str(result.error),
            )
        )
    return Ok(None)


def _repo_args(repo: str | None) -> list[str]:
    return ["--repo", repo] if repo else []


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def release_exists(
    *, root: Path, env: Mapping[str, str], repo: str | None, tag: str
) -> Result[bool, ReleaseError]:
    cmd = ["gh", "release", "view", tag, *_repo_args(repo), "--json", "tagName"]
    result = _run_with_retry(cmd, root=root, env=env)
    if isinstance(result, Ok):
        return Ok(True)
    if "not found" in result.error.stderr.lower():
        return Ok(False)
    return Err(
        ReleaseError(
            kind="gh_failed",
            message=f"failed to query release {tag}",
            hint=result.error.stderr.strip() or None,
        )
    )


def create_release(
    *,
    root: Path,
    env: Mapping[str, str],
    repo: str | None,
    tag: str,
    notes: str | None,
    assets: list[Path],
) -> Result[None, ReleaseError]:
    cmd = ["gh", "release", "create", tag, *[str(a) for a in assets], *_repo_args(repo)]
    cmd += ["--title", tag]
    cmd += ["--notes", notes] if notes else ["--generate-notes"]
    return _run_gh_write(
        root=root,
        env=env,
        cmd=cmd,
        message=f"failed to create release {tag}",
        timeout=GH_UPLOAD_TIMEOUT_SECONDS,
    )


def upload_assets(
    *,
    root: Path,
    env: Mapping[str, str],
    repo: str | None,
    tag: str,
    assets: list[Path],
) -> Result[None, ReleaseError]:
    cmd = ["gh", "release", "upload", tag, *[str(a) for a in assets], *_repo_args(repo)]
    cmd.append("--clobber")
    return _run_gh_write(
        root=root,
        env=env,
        cmd=cmd,
        message=f"failed to upload assets to release {tag}",
        timeout=GH_UPLOAD_TIMEOUT_SECONDS,
    )


def _decode_pages(text: str) -> list[object]:
    """Decode `gh api --paginate` output: one JSON array per page, concatenated."""
    decoder = json.JSONDecoder()
    items: list[object] = []
    pos = 0
    text = text.strip()
    while pos < len(text):
        page, pos = decoder.raw_decode(text, pos)
        raw = as_obj_list(page)
        if raw is None:
            raise ValueError("unexpected releases payload")
        items.extend(raw)
        while pos < len(text) and text[pos].isspace():
            pos += 1
    return items


def list_releases(
    *, root: Path, env: Mapping[str, str], repo: str | None, per_page: int = 100
) -> Result[list[GhRelease], ReleaseError]:
    """List every release of the repository, following all result pages."""
    # gh expands {owner}/{repo} from the current checkout
    slug = repo or "{owner}/{repo}"
    endpoint = f"repos/{slug}/releases?per_page={per_page}"
    result = run_gh_read(
        root=root,
        env=env,
        cmd=["gh", "api", "--paginate", endpoint],
        message=f"gh api failed: {endpoint}",
        hint=endpoint,
    )
    if isinstance(result, Err):
        return result

    try:
        raw = _decode_pages(result.value)
    except ValueError as e:
        # json.JSONDecodeError is a ValueError
        return Err(
            ReleaseError(
                kind="invalid_input", message=f"gh api returned invalid JSON: {e}", hint=endpoint
            )
        )

    out: list[GhRelease] = []
    for item in raw:
        d = as_str_dict(item)
        if d is None:
            continue
        tag = get_str(d, "tag_name")
        if tag is None:
            continue
        body = d.get("body")
        out.append(
            GhRelease(
                tag=tag,
                body=body if isinstance(body, str) else "",
                draft=d.get("draft") is True,
                prerelease=d.get("prerelease") is True,
            )
        )
    return Ok(out)


def edit_release_notes(
    *, root: Path, env: Mapping[str, str], repo: str | None, tag: str, notes: str
) -> Result[None, ReleaseError]:
    return _run_gh_write(
        root=root,
        env=env,
        cmd=["gh", "release", "edit", tag, *_repo_args(repo), "--notes", notes],
        message=f"failed to update notes of release {tag}",
    )
