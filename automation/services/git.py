"""Working tree checks."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from automation.core.result import Err, Ok, Result
from automation.platform.process import run as run_process

__all__ = ["GitError", "StatusEntry", "catch_uncommitted", "parse_porcelain"]

_GIT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class GitError:
    command: str
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single entry of `git status --porcelain`.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: File path
    """

    xy: str
    path: str

    def pretty_xy(self) -> str:
        """Format XY with dots for spaces (". M" instead of " M")."""
        return self.xy.replace(" ", ".")


def parse_porcelain(output: str) -> list[StatusEntry]:
    entries: list[StatusEntry] = []
    for line in output.splitlines():
        if len(line) < 4:
            continue
        entries.append(StatusEntry(xy=line[:2], path=line[3:]))
    return entries


def catch_uncommitted(*, root: Path, env: Mapping[str, str]) -> Result[None, GitError]:
    """Fail if the working tree has staged, unstaged or untracked changes."""
    result = run_process(
        ["git", "status", "--porcelain"], cwd=root, env=env, timeout=_GIT_TIMEOUT_SECONDS
    )
    if isinstance(result, Err):
        return Err(
            GitError(
                command="status",
                message=result.error.stderr.strip() or "git status failed",
            )
        )

    entries = parse_porcelain(result.value)
    if not entries:
        return Ok(None)

    listing = ", ".join(f"{e.pretty_xy()} {e.path}" for e in entries[:10])
    if len(entries) > 10:
        listing += f", ... ({len(entries) - 10} more)"
    return Err(
        GitError(
            command="status",
            message=f"uncommitted changes found: {listing}",
            hint="commit or stash them (CI build steps must not modify tracked files)",
        )
    )
