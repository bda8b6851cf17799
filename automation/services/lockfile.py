"""Sanity checks on the npm lockfile shipped with the package."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from automation.core.project import PackageInfo
from automation.core.result import Err, Ok, Result
from automation.core.structured import as_str_dict, get_int, get_str, get_table

__all__ = ["LockfileError", "LockfileInfo", "check_lockfile"]


@dataclass(frozen=True, slots=True)
class LockfileError:
    kind: Literal["missing", "invalid", "mismatch"]
    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class LockfileInfo:
    path: Path
    lockfile_version: int
    package_count: int


def check_lockfile(*, path: Path, package: PackageInfo) -> Result[LockfileInfo, LockfileError]:
    """Validate a package-lock / npm-shrinkwrap file against package.json.

    The file must be a JSON object with an integer `lockfileVersion` >= 1 and
    the same `name` and `version` as package.json.
    """
    try:
        obj: object = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Err(
            LockfileError(
                kind="missing",
                message=f"lockfile not found: {path.name}",
                hint="run `npm shrinkwrap` and commit the result",
            )
        )
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        return Err(LockfileError(kind="invalid", message=f"cannot parse {path.name}: {e}"))

    data = as_str_dict(obj)
    if data is None:
        return Err(LockfileError(kind="invalid", message=f"{path.name}: root must be an object"))

    version = get_int(data, "lockfileVersion")
    if version is None or version < 1:
        return Err(
            LockfileError(kind="invalid", message=f"{path.name}: invalid lockfileVersion")
        )

    for key, expected in (("name", package.name), ("version", package.version)):
        actual = get_str(data, key)
        if actual != expected:
            return Err(
                LockfileError(
                    kind="mismatch",
                    message=f"{path.name}: {key} is {actual!r}, package.json has {expected!r}",
                    hint="regenerate the lockfile after bumping package.json",
                )
            )

    # lockfileVersion 1 lists "dependencies", 2+ lists "packages" (with "" for the root)
    packages = get_table(data, "packages")
    if packages is not None:
        count = len([k for k in packages if k])
    else:
        count = len(get_table(data, "dependencies") or {})

    return Ok(LockfileInfo(path=path, lockfile_version=version, package_count=count))
