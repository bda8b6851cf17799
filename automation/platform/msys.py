"""Re-running the dispatcher under MSYS2 bash on Windows.

The oclif Windows installer build needs a POSIX shell. When the dispatcher is
started from cmd.exe or PowerShell it re-invokes itself through a
`ShellReExecutor` and waits for the child to finish.
"""

from __future__ import annotations

import asyncio
import re
import shlex
from collections.abc import Mapping, Sequence
from typing import Protocol

__all__ = [
    "MsysReExecutor",
    "ShellReExecError",
    "ShellReExecutor",
    "fix_path_for_msys",
]

_DRIVE_RE = re.compile(r"^([a-zA-Z]):")


class ShellReExecError(Exception):
    """The re-executed child process failed."""

    def __init__(self, argv: Sequence[str], returncode: int) -> None:
        super().__init__(f"child process exited with code {returncode}")
        self.argv = tuple(argv)
        self.returncode = returncode


class ShellReExecutor(Protocol):
    """Capability to run an argv inside another shell environment."""

    async def execute(self, argv: Sequence[str], env: Mapping[str, str]) -> None:
        """Run argv to completion; raise on failure."""
        ...


def fix_path_for_msys(path: str) -> str:
    """Convert a Windows path to MSYS2 form.

    Example: fix_path_for_msys("C:\\Python\\python.exe") -> "/C/Python/python.exe"
    """
    return _DRIVE_RE.sub(r"/\1", path.replace("\\", "/"))


class MsysReExecutor:
    """Runs argv through `bash -lc` from an MSYS2 installation.

    The child inherits stdin/stdout/stderr, so its output appears inline.
    """

    def __init__(self, bash: str) -> None:
        self.bash = bash

    def command_for(self, argv: Sequence[str]) -> list[str]:
        return [self.bash, "-lc", shlex.join(argv)]

    async def execute(self, argv: Sequence[str], env: Mapping[str, str]) -> None:
        proc = await asyncio.create_subprocess_exec(*self.command_for(argv), env=dict(env))
        returncode = await proc.wait()
        if returncode != 0:
            raise ShellReExecError(argv, returncode)
