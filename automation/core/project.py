"""Project root detection.

The project root is the directory the build and release commands run in. It
contains `package.json` and, optionally, `automation.toml`.

Detection order:
1. AUTOMATION_ROOT environment variable (exported before re-executing under
   MSYS2, whose login shell starts in the MSYS2 home directory)
2. Upward search from the current directory for `automation.toml`, then for
   `package.json`
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .config import CONFIG_FILENAME
from .result import Err, Ok, Result
from .structured import as_str_dict, get_str

__all__ = [
    "PackageInfo",
    "Project",
    "ProjectError",
    "ROOT_ENV_VAR",
    "detect_project",
    "find_project_upward",
    "is_project_root",
]

ROOT_ENV_VAR = "AUTOMATION_ROOT"


@dataclass(frozen=True, slots=True)
class ProjectError:
    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class PackageInfo:
    """The subset of package.json the build and release commands need."""

    name: str
    version: str

    @property
    def tag(self) -> str:
        return f"v{self.version}"


@dataclass(frozen=True, slots=True)
class Project:
    root: Path

    @property
    def package_json_path(self) -> Path:
        return self.root / "package.json"

    def read_package(self) -> Result[PackageInfo, ProjectError]:
        """Read name and version from package.json."""
        path = self.package_json_path
        try:
            obj: object = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return Err(ProjectError(f"package.json not found: {path}", searched_from=self.root))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            return Err(ProjectError(f"cannot read {path}: {e}", searched_from=self.root))

        data = as_str_dict(obj)
        name = get_str(data, "name") if data is not None else None
        version = get_str(data, "version") if data is not None else None
        if name is None or version is None:
            return Err(
                ProjectError(f"{path} must define 'name' and 'version'", searched_from=self.root)
            )
        return Ok(PackageInfo(name=name, version=version))

    def __str__(self) -> str:
        return str(self.root)


def is_project_root(path: Path) -> bool:
    return (path / CONFIG_FILENAME).is_file() or (path / "package.json").is_file()


def find_project_upward(start: Path) -> Path | None:
    """Search upward from start, preferring a directory with automation.toml."""
    parents = (start, *start.parents)
    for parent in parents:
        if (parent / CONFIG_FILENAME).is_file():
            return parent
    for parent in parents:
        if (parent / "package.json").is_file():
            return parent
    return None


def detect_project(
    *,
    environ: Mapping[str, str],
    start_dir: Path | None = None,
) -> Result[Project, ProjectError]:
    env_value = environ.get(ROOT_ENV_VAR)
    if env_value:
        env_path = Path(env_value).expanduser().resolve()
        if env_path.is_dir() and is_project_root(env_path):
            return Ok(Project(root=env_path))
        return Err(
            ProjectError(
                message=f"${ROOT_ENV_VAR} is set to '{env_value}' but it is not a project root",
                searched_from=env_path if env_path.is_dir() else None,
            )
        )

    search_start = (start_dir or Path.cwd()).resolve()
    found = find_project_upward(search_start)
    if found is None:
        return Err(
            ProjectError(
                message=f"could not find project root ({CONFIG_FILENAME} or package.json)",
                searched_from=search_start,
            )
        )
    return Ok(Project(root=found))
