"""GitHub release publishing and release-notes maintenance."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from automation.core.config import Fix1359Config, ReleaseConfig
from automation.core.project import PackageInfo
from automation.core.result import Err, Ok, Result
from automation.services import gh
from automation.services.gh import ReleaseError

__all__ = [
    "PublishOutcome",
    "SemVer",
    "collect_assets",
    "fix_release_notes",
    "parse_version",
    "publish_release",
]

_VERSION_RE = re.compile(r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")


@dataclass(frozen=True, slots=True, order=True)
class SemVer:
    major: int
    minor: int
    patch: int

    def to_tag(self) -> str:
        return f"v{self.major}.{self.minor}.{self.patch}"


def parse_version(text: str) -> SemVer | None:
    """Parse a stable version or tag ("1.2.3" or "v1.2.3"); None otherwise."""
    m = _VERSION_RE.match(text.strip())
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))


@dataclass(frozen=True, slots=True)
class PublishOutcome:
    tag: str
    created: bool
    assets: tuple[Path, ...]


def collect_assets(dist_dir: Path, suffixes: tuple[str, ...]) -> list[Path]:
    if not dist_dir.is_dir():
        return []
    return sorted(
        p for p in dist_dir.iterdir() if p.is_file() and p.name.endswith(suffixes)
    )


def publish_release(
    *,
    root: Path,
    env: Mapping[str, str],
    config: ReleaseConfig,
    dist_dir: Path,
    package: PackageInfo,
) -> Result[PublishOutcome, ReleaseError]:
    """Create the `v<version>` release, or upload assets to it if it exists.

    Re-running after a partial upload is safe: assets are replaced (--clobber).
    """
    available = gh.ensure_gh_available()
    if isinstance(available, Err):
        return available

    if parse_version(package.version) is None:
        return Err(
            ReleaseError(
                kind="invalid_version",
                message=f"package.json version is not a release version: {package.version}",
            )
        )

    assets = collect_assets(dist_dir, config.asset_suffixes)
    if not assets:
        return Err(
            ReleaseError(
                kind="no_assets",
                message=f"no release assets in {dist_dir}",
                hint=f"expected files ending with {', '.join(config.asset_suffixes)}",
            )
        )

    tag = package.tag
    exists = gh.release_exists(root=root, env=env, repo=config.repo, tag=tag)
    if isinstance(exists, Err):
        return exists

    if exists.value:
        result = gh.upload_assets(root=root, env=env, repo=config.repo, tag=tag, assets=assets)
    else:
        result = gh.create_release(
            root=root, env=env, repo=config.repo, tag=tag, notes=config.notes, assets=assets
        )
    if isinstance(result, Err):
        return result

    return Ok(PublishOutcome(tag=tag, created=not exists.value, assets=tuple(assets)))


def fix_release_notes(
    *,
    root: Path,
    env: Mapping[str, str],
    repo: str | None,
    config: Fix1359Config,
) -> Result[list[str], ReleaseError]:
    """Prepend the issue #1359 notice to the notes of every affected release.

    Affected releases are the stable tags in the inclusive range
    `config.first`..`config.last`. Releases that already carry the notice are
    skipped, so the command can be re-run. Returns the updated tags.
    """
    if not config.is_configured:
        return Err(
            ReleaseError(
                kind="not_configured",
                message="no affected release range configured",
                hint="set [fix1359] first and last in automation.toml",
            )
        )

    first = parse_version(config.first or "")
    last = parse_version(config.last or "")
    if first is None or last is None:
        return Err(
            ReleaseError(
                kind="invalid_version",
                message=f"invalid [fix1359] range: {config.first}..{config.last}",
            )
        )

    available = gh.ensure_gh_available()
    if isinstance(available, Err):
        return available

    releases = gh.list_releases(root=root, env=env, repo=repo)
    if isinstance(releases, Err):
        return releases

    updated: list[str] = []
    for release in releases.value:
        version = parse_version(release.tag)
        if version is None or release.draft or not first <= version <= last:
            continue
        if config.notice in release.body:
            continue

        notes = f"{config.notice}\n\n{release.body}" if release.body else config.notice
        result = gh.edit_release_notes(
            root=root, env=env, repo=repo, tag=release.tag, notes=notes
        )
        if isinstance(result, Err):
            return result
        updated.append(release.tag)

    return Ok(updated)
