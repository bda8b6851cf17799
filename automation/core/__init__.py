"""Core types: errors, results, config, project and environment handling."""

from .config import Config, ConfigError, load_config, load_project_config
from .environment import RunSettings, ensure_build_tmp, normalize_debug
from .errors import (
    AutomationError,
    CommandFailed,
    ConfigurationError,
    ErrorCode,
    ExecutionError,
    UsageError,
)
from .project import PackageInfo, Project, ProjectError, detect_project
from .result import Err, Ok, Result

__all__ = [
    # config
    "Config",
    "ConfigError",
    "load_config",
    "load_project_config",
    # environment
    "RunSettings",
    "ensure_build_tmp",
    "normalize_debug",
    # errors
    "AutomationError",
    "CommandFailed",
    "ConfigurationError",
    "ErrorCode",
    "ExecutionError",
    "UsageError",
    # project
    "PackageInfo",
    "Project",
    "ProjectError",
    "detect_project",
    # result
    "Err",
    "Ok",
    "Result",
]
