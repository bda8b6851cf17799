"""Command dispatcher: validate every token, then run the commands in order.

Usage:
    dispatcher = Dispatcher(console=RichConsole())
    asyncio.run(dispatcher.run(["build:standalone", "release"]))

Any failure propagates as an `AutomationError`; nothing is rolled back, so
commands that completed before the failure keep their side effects.
"""

from __future__ import annotations

import inspect
import os
import sys
from collections.abc import Callable, Mapping, MutableMapping, Sequence
from pathlib import Path

from automation.commands import REGISTRY, Command, CommandContext, Handler
from automation.core.config import Config, load_project_config
from automation.core.environment import (
    MSYS2_PATH_TYPE_ENV_VAR,
    MSYS2_PATH_TYPE_INHERIT,
    MSYSTEM_ENV_VAR,
    RunSettings,
    ensure_build_tmp,
    normalize_debug,
)
from automation.core.errors import ConfigurationError, ExecutionError, UsageError
from automation.core.project import ROOT_ENV_VAR, Project, detect_project
from automation.core.result import Err
from automation.output.console import ConsoleProtocol, Style
from automation.platform.detection import Platform, detect_platform
from automation.platform.msys import MsysReExecutor, ShellReExecutor, fix_path_for_msys

__all__ = ["Dispatcher", "self_command"]


def self_command() -> list[str]:
    """Command line that starts this tool again, in MSYS2 path form."""
    return [fix_path_for_msys(sys.executable), "-m", "automation"]


class Dispatcher:
    """Runs command tokens against a registry of handlers.

    Everything process-wide (environment, cwd, platform, the re-exec
    capability) is injectable so tests can simulate Windows and MSYS2.
    """

    def __init__(
        self,
        *,
        console: ConsoleProtocol,
        registry: Mapping[str, Handler] = REGISTRY,
        environ: MutableMapping[str, str] | None = None,
        platform: Platform | None = None,
        re_executor: ShellReExecutor | None = None,
        argv: Sequence[str] | None = None,
        chdir: Callable[[Path], None] = os.chdir,
        start_dir: Path | None = None,
    ) -> None:
        self.console = console
        self.registry = registry
        self.environ: MutableMapping[str, str] = os.environ if environ is None else environ
        self.platform = platform if platform is not None else detect_platform()
        self.argv = list(sys.argv if argv is None else argv)
        self._re_executor = re_executor
        self._chdir = chdir
        self._start_dir = start_dir

    def validate(self, tokens: Sequence[str]) -> None:
        """Check every token before any command runs."""
        if not tokens:
            raise UsageError("missing command-line arguments")
        for token in tokens:
            if token not in self.registry:
                raise UsageError(f"command unknown: {token}")

    async def run(self, args: Sequence[str] | None = None) -> None:
        """Validate and run commands; args default to sys.argv[1:]."""
        debug = normalize_debug(self.environ)
        self.console.verbose = debug

        tokens = list(self.argv[1:] if args is None else args)
        self.console.print(f"automation argv=[{','.join(self.argv)}]", Style.DIM)
        self.console.print(f"automation args=[{','.join(tokens)}]", Style.DIM)

        self.validate(tokens)

        project = self._resolve_project()
        config = self._load_config(project)

        # A re-executed MSYS2 login shell starts in the MSYS2 home directory.
        try:
            self._chdir(project.root)
        except OSError as e:
            raise ConfigurationError(f"cannot enter project root {project.root}: {e}") from e

        settings = RunSettings(
            debug=debug,
            build_tmp=ensure_build_tmp(self.environ, self.platform),
            platform=self.platform,
        )
        ctx = CommandContext(
            project=project,
            config=config,
            settings=settings,
            console=self.console,
            environ=self.environ,
        )
        self.console.debug(f"project root: {project.root}")

        for token in tokens:
            try:
                if token == Command.BUILD_INSTALLER and self.platform == Platform.WINDOWS:
                    if not self.environ.get(MSYSTEM_ENV_VAR):
                        await self._run_under_msys(token, project, config)
                        continue
                    if self.environ.get(MSYS2_PATH_TYPE_ENV_VAR) != MSYS2_PATH_TYPE_INHERIT:
                        raise ConfigurationError(
                            f'the {MSYS2_PATH_TYPE_ENV_VAR} env var must be set to '
                            f'"{MSYS2_PATH_TYPE_INHERIT}"'
                        )
                outcome = self.registry[token](ctx)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                raise ExecutionError(token, e) from e

    def _resolve_project(self) -> Project:
        result = detect_project(environ=self.environ, start_dir=self._start_dir)
        if isinstance(result, Err):
            raise ConfigurationError(result.error.message)
        return result.value

    def _load_config(self, project: Project) -> Config:
        result = load_project_config(project.root)
        if isinstance(result, Err):
            raise ConfigurationError(result.error.message)
        return result.value

    async def _run_under_msys(self, token: str, project: Project, config: Config) -> None:
        self.environ[MSYS2_PATH_TYPE_ENV_VAR] = MSYS2_PATH_TYPE_INHERIT
        self.environ[ROOT_ENV_VAR] = str(project.root)
        executor = self._re_executor or MsysReExecutor(config.msys.bash)
        argv = [*self_command(), token]
        self.console.debug(f"re-executing under MSYS2: {argv}")
        await executor.execute(argv, self.environ)
