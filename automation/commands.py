"""The fixed set of dispatcher commands.

Each `Command` maps to one handler in `REGISTRY`. Handlers receive the
`CommandContext` computed by the dispatcher, delegate to a service and turn
a service `Err` into `CommandFailed`. Handlers may be coroutines.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from automation.core.config import Config
from automation.core.environment import RunSettings
from automation.core.errors import CommandFailed
from automation.core.project import PackageInfo, Project
from automation.core.result import Err, Result
from automation.output.console import ConsoleProtocol
from automation.platform.detection import detect_arch
from automation.services import build, git, lockfile, release

__all__ = ["Command", "CommandContext", "Handler", "REGISTRY"]


class Command(StrEnum):
    BUILD_INSTALLER = "build:installer"
    BUILD_STANDALONE = "build:standalone"
    CATCH_UNCOMMITTED = "catch-uncommitted"
    TEST_SHRINKWRAP = "test-shrinkwrap"
    FIX1359 = "fix1359"
    RELEASE = "release"


@dataclass(frozen=True, slots=True)
class CommandContext:
    project: Project
    config: Config
    settings: RunSettings
    console: ConsoleProtocol
    environ: Mapping[str, str]


type Handler = Callable[[CommandContext], Awaitable[None] | None]


def _check[T, E](result: Result[T, E]) -> T:
    """Return the Ok value or raise CommandFailed.

    Expects error objects to have 'message' and optional 'hint' attributes.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        raise CommandFailed(message, hint)
    return result.value


def _package(ctx: CommandContext) -> PackageInfo:
    return _check(ctx.project.read_package())


async def build_installer(ctx: CommandContext) -> None:
    """Build a native installer (oclif)."""
    ctx.console.debug(f"BUILD_TMP={ctx.settings.build_tmp}")
    _check(
        await build.build_installer(
            root=ctx.project.root,
            config=ctx.config.build,
            settings=ctx.settings,
            env=ctx.environ,
        )
    )
    ctx.console.success("installer built")


async def build_standalone(ctx: CommandContext) -> None:
    """Build the standalone package and zip it."""
    zip_path = _check(
        await build.build_standalone(
            root=ctx.project.root,
            config=ctx.config.build,
            package=_package(ctx),
            platform=ctx.settings.platform,
            arch=detect_arch(),
            env=ctx.environ,
        )
    )
    ctx.console.success(str(zip_path))


def catch_uncommitted(ctx: CommandContext) -> None:
    _check(git.catch_uncommitted(root=ctx.project.root, env=ctx.environ))
    ctx.console.success("working tree clean")


def check_shrinkwrap(ctx: CommandContext) -> None:
    info = _check(
        lockfile.check_lockfile(
            path=ctx.project.root / ctx.config.project.lockfile,
            package=_package(ctx),
        )
    )
    ctx.console.debug(f"{info.path.name}: lockfileVersion {info.lockfile_version}")
    ctx.console.success(f"{info.path.name}: {info.package_count} packages")


def fix1359(ctx: CommandContext) -> None:
    """Add the issue #1359 notice to the affected releases."""
    updated = _check(
        release.fix_release_notes(
            root=ctx.project.root,
            env=ctx.environ,
            repo=ctx.config.release.repo,
            config=ctx.config.fix1359,
        )
    )
    if not updated:
        ctx.console.info("no release notes needed updating")
        return
    for tag in updated:
        ctx.console.success(f"updated notes of {tag}")


def publish(ctx: CommandContext) -> None:
    """Create or update the GitHub release for the package version."""
    outcome = _check(
        release.publish_release(
            root=ctx.project.root,
            env=ctx.environ,
            config=ctx.config.release,
            dist_dir=ctx.project.root / ctx.config.build.dist_dir,
            package=_package(ctx),
        )
    )
    action = "created" if outcome.created else "updated"
    ctx.console.success(f"release {outcome.tag} {action} ({len(outcome.assets)} assets)")


REGISTRY: Mapping[str, Handler] = MappingProxyType(
    {
        Command.BUILD_INSTALLER: build_installer,
        Command.BUILD_STANDALONE: build_standalone,
        Command.CATCH_UNCOMMITTED: catch_uncommitted,
        Command.TEST_SHRINKWRAP: check_shrinkwrap,
        Command.FIX1359: fix1359,
        Command.RELEASE: publish,
    }
)
