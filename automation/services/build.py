"""Installer and standalone package builds.

Both builds are long-running external commands (oclif, the project's npm
scripts), so they stream output and are awaited by the dispatcher.

Design goals for the standalone archive:

- Deterministic file name: `<name>-v<version>-<os>-<arch>-standalone.zip`
- Archive entries rooted at `<name>/` so it unpacks into one directory
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal
from zipfile import ZIP_DEFLATED, ZipFile

from automation.core.config import BuildConfig
from automation.core.environment import BUILD_TMP_ENV_VAR, RunSettings
from automation.core.project import PackageInfo
from automation.core.result import Err, Ok, Result
from automation.platform.detection import Arch, Platform
from automation.platform.process import run_streaming

__all__ = [
    "BuildError",
    "build_installer",
    "build_standalone",
    "default_installer_command",
    "standalone_zip_name",
]


@dataclass(frozen=True, slots=True)
class BuildError:
    kind: Literal["build_tmp_missing", "unsupported_platform", "command_failed", "output_missing"]
    message: str
    hint: str | None = None


_OCLIF_PACK_TARGETS = {
    Platform.WINDOWS: "pack:win",
    Platform.MACOS: "pack:macos",
    Platform.LINUX: "pack:deb",
}


def default_installer_command(platform: Platform) -> list[str] | None:
    target = _OCLIF_PACK_TARGETS.get(platform)
    if target is None:
        return None
    return ["npx", "oclif", target]


async def build_installer(
    *,
    root: Path,
    config: BuildConfig,
    settings: RunSettings,
    env: Mapping[str, str],
) -> Result[None, BuildError]:
    """Build the native installer for the current platform."""
    if settings.is_windows and not settings.build_tmp:
        return Err(
            BuildError(
                kind="build_tmp_missing",
                message=f"{BUILD_TMP_ENV_VAR} is not set",
                hint="the Windows installer build needs a short temporary directory",
            )
        )

    if config.installer_command is not None:
        cmd = list(config.installer_command)
    else:
        default = default_installer_command(settings.platform)
        if default is None:
            return Err(
                BuildError(
                    kind="unsupported_platform",
                    message=f"no installer build for platform: {settings.platform}",
                    hint="set [build] installer_command in automation.toml",
                )
            )
        cmd = default

    result = await run_streaming(cmd, cwd=root, env=env)
    if isinstance(result, Err):
        return Err(
            BuildError(
                kind="command_failed",
                message=f"installer build failed: {result.error}",
                hint=result.error.stderr or None,
            )
        )
    return Ok(None)


def standalone_zip_name(package: PackageInfo, platform: Platform, arch: Arch) -> str:
    # scoped npm names (@org/cli) are not valid file names
    name = package.name.rsplit("/", 1)[-1]
    return f"{name}-v{package.version}-{platform}-{arch}-standalone.zip"


def _collect_dir(base_dir: Path, *, arc_prefix: str) -> list[tuple[Path, str]]:
    out: list[tuple[Path, str]] = []
    if not base_dir.is_dir():
        return out
    for p in sorted(base_dir.rglob("*")):
        if p.is_dir():
            continue
        out.append((p, f"{arc_prefix}/{p.relative_to(base_dir).as_posix()}"))
    return out


def _zip_files(zip_path: Path, *, files: list[tuple[Path, str]]) -> None:
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    # npm tarballs extract with mtime 1985 or 0; ZIP cannot store pre-1980 dates.
    with ZipFile(zip_path, "w", compression=ZIP_DEFLATED, strict_timestamps=False) as zf:
        for src, arc in files:
            zf.write(src, arcname=arc)


async def build_standalone(
    *,
    root: Path,
    config: BuildConfig,
    package: PackageInfo,
    platform: Platform,
    arch: Arch,
    env: Mapping[str, str],
) -> Result[Path, BuildError]:
    """Run the standalone build and zip its output into the dist directory.

    Returns the path of the created archive.
    """
    result = await run_streaming(list(config.standalone_command), cwd=root, env=env)
    if isinstance(result, Err):
        return Err(
            BuildError(
                kind="command_failed",
                message=f"standalone build failed: {result.error}",
                hint=result.error.stderr or None,
            )
        )

    standalone_dir = root / config.standalone_dir
    files = _collect_dir(standalone_dir, arc_prefix=package.name.rsplit("/", 1)[-1])
    if not files:
        return Err(
            BuildError(
                kind="output_missing",
                message=f"standalone build produced no files in {standalone_dir}",
                hint=f"check that `{' '.join(config.standalone_command)}` writes there",
            )
        )

    zip_path = root / config.dist_dir / standalone_zip_name(package, platform, arch)
    _zip_files(zip_path, files=files)
    return Ok(zip_path)
