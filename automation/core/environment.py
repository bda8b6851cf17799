"""Process environment normalization.

The dispatcher computes these values once per run, writes them back into the
environment (so child processes such as oclif or npm see them) and hands
them to command handlers through `RunSettings`.
"""

from __future__ import annotations

import secrets
from collections.abc import MutableMapping
from dataclasses import dataclass

from automation.platform.detection import Platform

__all__ = [
    "BUILD_TMP_ENV_VAR",
    "BUILD_TMP_PREFIX",
    "DEBUG_ENV_VAR",
    "MSYS2_PATH_TYPE_ENV_VAR",
    "MSYS2_PATH_TYPE_INHERIT",
    "MSYSTEM_ENV_VAR",
    "RunSettings",
    "ensure_build_tmp",
    "generate_build_tmp",
    "is_debug_enabled",
    "normalize_debug",
]

DEBUG_ENV_VAR = "DEBUG"
BUILD_TMP_ENV_VAR = "BUILD_TMP"
MSYSTEM_ENV_VAR = "MSYSTEM"
MSYS2_PATH_TYPE_ENV_VAR = "MSYS2_PATH_TYPE"
MSYS2_PATH_TYPE_INHERIT = "inherit"

# Short on purpose: NSIS fails on paths longer than 260 chars, and CI
# checkouts already use a long working directory.
BUILD_TMP_PREFIX = "C:\\tmp\\"
BUILD_TMP_RANDOM_BYTES = 6

_DEBUG_FALSY = frozenset({"", "0", "no", "false"})
_DEBUG_ENABLED = "1"
_DEBUG_DISABLED = ""


@dataclass(frozen=True, slots=True)
class RunSettings:
    """Values computed once per run and passed to every command."""

    debug: bool
    build_tmp: str | None
    platform: Platform

    @property
    def is_windows(self) -> bool:
        return self.platform == Platform.WINDOWS


def is_debug_enabled(value: str | None) -> bool:
    """False for an absent value or one of '', '0', 'no', 'false' (any case)."""
    if value is None:
        return False
    return value.lower() not in _DEBUG_FALSY


def normalize_debug(environ: MutableMapping[str, str]) -> bool:
    """Rewrite DEBUG as '1' (enabled) or '' (disabled) and return the flag."""
    enabled = is_debug_enabled(environ.get(DEBUG_ENV_VAR))
    environ[DEBUG_ENV_VAR] = _DEBUG_ENABLED if enabled else _DEBUG_DISABLED
    return enabled


def generate_build_tmp() -> str:
    """Return a fresh BUILD_TMP path.

    token_urlsafe is base64url (RFC 4648) without padding: 6 bytes give an
    8 character name.
    """
    return f"{BUILD_TMP_PREFIX}{secrets.token_urlsafe(BUILD_TMP_RANDOM_BYTES)}"


def ensure_build_tmp(environ: MutableMapping[str, str], platform: Platform) -> str | None:
    """Set BUILD_TMP on Windows when it is missing; never overwrite it.

    Returns the effective value (None off Windows when unset).
    """
    current = environ.get(BUILD_TMP_ENV_VAR)
    if current:
        return current
    if platform != Platform.WINDOWS:
        return None
    value = generate_build_tmp()
    environ[BUILD_TMP_ENV_VAR] = value
    return value
