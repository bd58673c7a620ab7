"""Switching the active version of a tool.

Activation re-points ``<root>/<tool>/current`` at an installed version,
records the choice, and reports (session scope) or also persists
(persistent scope) the environment the tool needs.

Usage:
    engine = ActivationEngine(store, strategies=[startup_file_strategy(rc, Shell.BASH)])
    match engine.activate(java, ResolvedVersion("21.0.1"), Scope.PERSISTENT):
        case Ok(result):
            for warning in result.warnings:
                print(warning.message)
        case Err(error):
            print(error.message)
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from vmgr.core.errors import AliasFailure, NotInstalled, PersistenceFailure
from vmgr.core.result import Err, Ok, Result
from vmgr.platform.shell import Shell

from .environment import (
    PersistenceStrategy,
    ToolEnvironment,
    apply_to_process,
    compute_environment,
    persist_variable,
    upsert_startup_entry,
)
from .shims import write_shims

if TYPE_CHECKING:
    from .descriptor import ToolDescriptor
    from .matcher import ResolvedVersion
    from .store import VersionStore

__all__ = ["ActivationEngine", "ActivationResult", "MissingDependency", "Scope"]

logger = logging.getLogger(__name__)


class Scope(Enum):
    SESSION = "session"
    PERSISTENT = "persistent"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class MissingDependency:
    """A declared dependency with no installed version (non-fatal)."""

    tool: str
    dependency: str

    @property
    def message(self) -> str:
        return f"{self.tool} requires {self.dependency}, but {self.dependency} is not installed"

    @property
    def hint(self) -> str:
        return f"Install {self.dependency} first with: vmgr install {self.dependency} <version>"


@dataclass(frozen=True, slots=True)
class ActivationResult:
    """What a successful activation did.

    Attributes:
        tool: Tool name
        version: Version key now current
        scope: Requested scope
        alias: Path of the ``current`` alias
        link_method: How the alias was created (symlink, mklink, ...)
        environment: Variables and PATH entries computed from the alias
        persisted: Variable -> strategy that persisted it (persistent scope)
        warnings: Variables no strategy could persist
        missing_dependencies: Declared dependencies not installed
        shims: Wrapper scripts written
    """

    tool: str
    version: str
    scope: Scope
    alias: Path
    link_method: str
    environment: ToolEnvironment
    persisted: tuple[tuple[str, str], ...] = ()
    warnings: tuple[PersistenceFailure, ...] = ()
    missing_dependencies: tuple[MissingDependency, ...] = ()
    shims: tuple[Path, ...] = ()


class ActivationEngine:
    """Moves the ``current`` alias and propagates the environment.

    Args:
        store: Where versions live
        strategies: Ordered persistence chain for persistent scope
        backstop: Startup file (and its shell) that also receives a
            marker-guarded line per variable in persistent scope
        environ: Process environment updated for session scope (None = leave it)
        shim_dir: Where to write wrapper scripts (None = no shims)
        windows: Shim flavour
    """

    def __init__(
        self,
        store: VersionStore,
        *,
        strategies: Sequence[PersistenceStrategy] = (),
        backstop: tuple[Path, Shell] | None = None,
        environ: MutableMapping[str, str] | None = None,
        shim_dir: Path | None = None,
        windows: bool = False,
    ) -> None:
        self._store = store
        self._strategies = tuple(strategies)
        self._backstop = backstop
        self._environ = environ
        self._shim_dir = shim_dir
        self._windows = windows

    def missing_dependencies(self, tool: ToolDescriptor) -> list[MissingDependency]:
        return [
            MissingDependency(tool=tool.name, dependency=dep)
            for dep in tool.dependencies
            if not self._store.list_installed(dep)
        ]

    def environment(self, tool: ToolDescriptor) -> ToolEnvironment | None:
        """Environment of the active version, or None if nothing is current."""
        if self._store.current(tool.name) is None:
            return None
        return compute_environment(tool, self._store.current_link(tool.name))

    def activate(
        self,
        tool: ToolDescriptor,
        resolved: ResolvedVersion,
        scope: Scope = Scope.SESSION,
    ) -> Result[ActivationResult, NotInstalled | AliasFailure]:
        """Make ``resolved`` the current version of ``tool``.

        Persistence problems never fail the activation; they are returned
        as ``warnings``.
        """
        key = resolved.key
        if not self._store.is_installed(tool.name, key):
            return Err(NotInstalled(tool=tool.name, version=key))

        missing = self.missing_dependencies(tool)
        for dep in missing:
            logger.warning("%s. Tip: %s", dep.message, dep.hint)

        switched = self._store.set_current(tool.name, key)
        if isinstance(switched, Err):
            return switched

        alias = self._store.current_link(tool.name)
        env = compute_environment(tool, alias)

        shims: list[Path] = []
        if self._shim_dir is not None:
            shims = write_shims(self._shim_dir, env.path_dirs, windows=self._windows)

        if self._environ is not None:
            apply_to_process(env, self._environ)

        persisted: list[tuple[str, str]] = []
        warnings: list[PersistenceFailure] = []
        if scope == Scope.PERSISTENT:
            persisted, warnings = self._persist(env)

        return Ok(
            ActivationResult(
                tool=tool.name,
                version=key,
                scope=scope,
                alias=alias,
                link_method=switched.value,
                environment=env,
                persisted=tuple(persisted),
                warnings=tuple(warnings),
                missing_dependencies=tuple(missing),
                shims=tuple(shims),
            )
        )

    def _persist(
        self, env: ToolEnvironment
    ) -> tuple[list[tuple[str, str]], list[PersistenceFailure]]:
        persisted: list[tuple[str, str]] = []
        warnings: list[PersistenceFailure] = []
        for name, value in sorted(env.env_vars.items()):
            outcome = persist_variable(name, value, self._strategies)
            if isinstance(outcome, PersistenceFailure):
                logger.warning("%s", outcome.message)
                warnings.append(outcome)
            else:
                persisted.append((name, outcome))
            self._write_backstop(name, value)
        return persisted, warnings

    def _write_backstop(self, name: str, value: str) -> None:
        if self._backstop is None:
            return
        path, shell = self._backstop
        try:
            upsert_startup_entry(path, shell, name, value)
        except OSError as e:
            logger.warning("could not update %s: %s", path, e)
