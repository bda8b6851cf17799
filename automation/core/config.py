"""Typed loading of the optional `automation.toml` project config.

Example:

    [build]
    installer_command = ["npx", "oclif", "pack:win"]
    standalone_command = ["npm", "run", "package"]
    standalone_dir = "build-bin"
    dist_dir = "dist"

    [project]
    lockfile = "npm-shrinkwrap.json"

    [release]
    repo = "example/cli"
    asset_suffixes = [".exe", ".pkg", ".zip"]

    [msys]
    bash = 'C:\\msys64\\usr\\bin\\bash.exe'

    [fix1359]
    first = "v10.13.0"
    last = "v10.17.4"
    notice = "Known issue: ..."

Every key is optional; missing or mistyped values fall back to the defaults.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_str_list, get_table

__all__ = [
    "BuildConfig",
    "Config",
    "ConfigError",
    "Fix1359Config",
    "MsysConfig",
    "ProjectConfig",
    "ReleaseConfig",
    "CONFIG_FILENAME",
    "DEFAULT_MSYS2_BASH",
    "load_config",
    "load_project_config",
]

CONFIG_FILENAME = "automation.toml"

DEFAULT_MSYS2_BASH = "C:\\msys64\\usr\\bin\\bash.exe"
DEFAULT_STANDALONE_COMMAND = ("npm", "run", "package")
DEFAULT_ASSET_SUFFIXES = (".exe", ".pkg", ".deb", ".zip")
DEFAULT_FIX1359_NOTICE = (
    "**Note:** this release is affected by issue #1359. "
    "Please upgrade to a later release."
)


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when the config file cannot be read or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """Build commands and output locations (paths relative to the project root).

    `installer_command` of None selects the per-platform oclif default.
    """

    installer_command: tuple[str, ...] | None = None
    standalone_command: tuple[str, ...] = DEFAULT_STANDALONE_COMMAND
    standalone_dir: str = "build-bin"
    dist_dir: str = "dist"


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    lockfile: str = "npm-shrinkwrap.json"


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """GitHub release settings. `repo` of None lets gh use the current checkout."""

    repo: str | None = None
    asset_suffixes: tuple[str, ...] = DEFAULT_ASSET_SUFFIXES
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class MsysConfig:
    bash: str = DEFAULT_MSYS2_BASH


@dataclass(frozen=True, slots=True)
class Fix1359Config:
    """Inclusive tag range of releases whose notes get the issue notice."""

    first: str | None = None
    last: str | None = None
    notice: str = DEFAULT_FIX1359_NOTICE

    @property
    def is_configured(self) -> bool:
        return self.first is not None and self.last is not None


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    build: BuildConfig = field(default_factory=BuildConfig)
    project: ProjectConfig = field(default_factory=ProjectConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    msys: MsysConfig = field(default_factory=MsysConfig)
    fix1359: Fix1359Config = field(default_factory=Fix1359Config)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        build: StrDict = get_table(data, "build") or {}
        project: StrDict = get_table(data, "project") or {}
        release: StrDict = get_table(data, "release") or {}
        msys: StrDict = get_table(data, "msys") or {}
        fix1359: StrDict = get_table(data, "fix1359") or {}

        installer_command = get_str_list(build, "installer_command")
        standalone_command = get_str_list(build, "standalone_command")
        asset_suffixes = get_str_list(release, "asset_suffixes")

        return cls(
            build=BuildConfig(
                installer_command=tuple(installer_command) if installer_command else None,
                standalone_command=tuple(standalone_command)
                if standalone_command
                else DEFAULT_STANDALONE_COMMAND,
                standalone_dir=get_str(build, "standalone_dir") or "build-bin",
                dist_dir=get_str(build, "dist_dir") or "dist",
            ),
            project=ProjectConfig(
                lockfile=get_str(project, "lockfile") or "npm-shrinkwrap.json",
            ),
            release=ReleaseConfig(
                repo=get_str(release, "repo"),
                asset_suffixes=tuple(asset_suffixes)
                if asset_suffixes
                else DEFAULT_ASSET_SUFFIXES,
                notes=get_str(release, "notes"),
            ),
            msys=MsysConfig(bash=get_str(msys, "bash") or DEFAULT_MSYS2_BASH),
            fix1359=Fix1359Config(
                first=get_str(fix1359, "first"),
                last=get_str(fix1359, "last"),
                notice=get_str(fix1359, "notice") or DEFAULT_FIX1359_NOTICE,
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except OSError as e:
        return Err(ConfigError(f"Cannot read config {path}: {e}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax in {path}: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config {path}: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file."""
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result
    return Ok(Config.from_dict(result.value))


def load_project_config(root: Path) -> Result[Config, ConfigError]:
    """Load `automation.toml` from a project root; defaults when the file is absent."""
    path = root / CONFIG_FILENAME
    if not path.exists():
        return Ok(Config())
    return load_config(path)
