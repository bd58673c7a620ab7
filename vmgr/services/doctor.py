"""Health checks for a vmgr setup.

Checks are grouped the way ``vmgr doctor`` prints them: directories, PATH,
installed tools (with their ``current`` alias), environment variables and
dependencies. Nothing here modifies the system.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

from vmgr.tools.environment import compute_environment
from vmgr.tools.links import is_alias, read_alias

if TYPE_CHECKING:
    from vmgr.core.config import Config
    from vmgr.tools.catalog import ToolCatalog
    from vmgr.tools.store import VersionStore

__all__ = ["CheckResult", "CheckStatus", "DoctorReport", "DoctorService"]


class CheckStatus(Enum):
    OK = auto()
    WARNING = auto()
    """Works, but something is incomplete (no current version, variable unset)."""
    ERROR = auto()
    """Broken (missing root, dangling alias)."""


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Result of a single check.

    Attributes:
        name: What was checked (e.g. "versions root", "java")
        status: Passed, warned or failed
        message: Human-readable result
        hint: Corrective command, if any
    """

    name: str
    status: CheckStatus
    message: str
    hint: str | None = None

    @property
    def is_error(self) -> bool:
        return self.status == CheckStatus.ERROR

    @property
    def is_warning(self) -> bool:
        return self.status == CheckStatus.WARNING

    @classmethod
    def success(cls, name: str, message: str) -> CheckResult:
        return cls(name=name, status=CheckStatus.OK, message=message)

    @classmethod
    def warning(cls, name: str, message: str, hint: str | None = None) -> CheckResult:
        return cls(name=name, status=CheckStatus.WARNING, message=message, hint=hint)

    @classmethod
    def error(cls, name: str, message: str, hint: str | None = None) -> CheckResult:
        return cls(name=name, status=CheckStatus.ERROR, message=message, hint=hint)


@dataclass(frozen=True, slots=True)
class DoctorReport:
    directories: list[CheckResult]
    path: list[CheckResult]
    tools: list[CheckResult]
    environment: list[CheckResult]
    dependencies: list[CheckResult]

    def groups(self) -> list[tuple[str, list[CheckResult]]]:
        return [
            ("Directories", self.directories),
            ("PATH", self.path),
            ("Tools", self.tools),
            ("Environment", self.environment),
            ("Dependencies", self.dependencies),
        ]

    def all_results(self) -> list[CheckResult]:
        return [result for _, results in self.groups() for result in results]

    def has_errors(self) -> bool:
        return any(r.is_error for r in self.all_results())

    def issue_count(self) -> int:
        return sum(1 for r in self.all_results() if r.is_error or r.is_warning)


class DoctorService:
    def __init__(
        self,
        *,
        config: Config,
        catalog: ToolCatalog,
        store: VersionStore,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._config = config
        self._catalog = catalog
        self._store = store
        self._environ = os.environ if environ is None else environ

    def run(self) -> DoctorReport:
        return DoctorReport(
            directories=self.check_directories(),
            path=self.check_path(),
            tools=self.check_tools(),
            environment=self.check_environment(),
            dependencies=self.check_dependencies(),
        )

    def check_directories(self) -> list[CheckResult]:
        results: list[CheckResult] = []
        for name, path in (
            ("versions root", self._config.paths.root),
            ("shim directory", self._config.paths.shim_dir),
        ):
            if path.is_dir():
                results.append(CheckResult.success(name, str(path)))
            else:
                results.append(
                    CheckResult.warning(name, f"not found: {path}", "Created on first install and use")
                )
        return results

    def check_path(self) -> list[CheckResult]:
        shim_dir = self._config.paths.shim_dir
        entries = self._environ.get("PATH", "").split(os.pathsep)
        wanted = os.path.normcase(str(shim_dir))
        if any(os.path.normcase(entry) == wanted for entry in entries if entry):
            return [CheckResult.success("shims", f"{shim_dir} is on PATH")]
        return [
            CheckResult.warning(
                "shims",
                f"{shim_dir} is not on PATH",
                'Run: eval "$(vmgr env)"  (PowerShell: vmgr env | Invoke-Expression)',
            )
        ]

    def check_tools(self) -> list[CheckResult]:
        results: list[CheckResult] = []
        for tool in self._catalog.all():
            installed = self._store.list_installed(tool.name)
            if not installed:
                continue
            link = self._store.current_link(tool.name)
            count = f"{len(installed)} version(s) installed"
            if is_alias(link):
                target = read_alias(link)
                if target is None or not target.is_dir():
                    results.append(
                        CheckResult.error(
                            tool.name,
                            f"{count}, but {link} points at a missing directory",
                            f"Run: vmgr use {tool.name} {installed[0]}",
                        )
                    )
                    continue
                results.append(CheckResult.success(tool.name, f"{count}, current: {target.name}"))
            elif link.exists():
                results.append(
                    CheckResult.error(
                        tool.name,
                        f"{link} exists but is not a link",
                        f"Remove it, then run: vmgr use {tool.name} {installed[0]}",
                    )
                )
            else:
                results.append(
                    CheckResult.warning(
                        tool.name,
                        f"{count}, but none selected",
                        f"Run: vmgr use {tool.name} <version>",
                    )
                )

        if not results:
            results.append(
                CheckResult.success("tools", "no tools installed yet (try: vmgr install java 21)")
            )
        return results

    def check_environment(self) -> list[CheckResult]:
        results: list[CheckResult] = []
        for tool in self._catalog.all():
            if self._store.current(tool.name) is None:
                continue
            env = compute_environment(tool, self._store.current_link(tool.name))
            for name, expected in sorted(env.env_vars.items()):
                actual = self._environ.get(name)
                if actual is None:
                    results.append(
                        CheckResult.warning(name, "not set in this shell", f"Run: vmgr use --global {tool.name} <version>")
                    )
                elif os.path.normcase(actual) != os.path.normcase(expected):
                    results.append(
                        CheckResult.warning(name, f"is {actual}, expected {expected}", 'Run: eval "$(vmgr env)"')
                    )
                else:
                    results.append(CheckResult.success(name, actual))
        return results

    def check_dependencies(self) -> list[CheckResult]:
        results: list[CheckResult] = []
        for tool in self._catalog.all():
            if not self._store.list_installed(tool.name):
                continue
            for dep in tool.dependencies:
                if self._store.list_installed(dep):
                    results.append(CheckResult.success(f"{tool.name} -> {dep}", "installed"))
                else:
                    results.append(
                        CheckResult.error(
                            f"{tool.name} -> {dep}",
                            f"{tool.name} requires {dep}, which is not installed",
                            f"Run: vmgr install {dep} <version>",
                        )
                    )
        return results
