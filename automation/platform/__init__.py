"""Platform abstraction layer."""

from .detection import (
    Arch,
    Platform,
    detect_arch,
    detect_platform,
)
from .msys import MsysReExecutor, ShellReExecError, ShellReExecutor, fix_path_for_msys
from .process import ProcessError, run, run_streaming

__all__ = [
    # detection
    "Arch",
    "Platform",
    "detect_arch",
    "detect_platform",
    # msys
    "MsysReExecutor",
    "ShellReExecError",
    "ShellReExecutor",
    "fix_path_for_msys",
    # process
    "ProcessError",
    "run",
    "run_streaming",
]
