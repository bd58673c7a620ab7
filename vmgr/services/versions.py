"""Version management service: the operations behind each CLI command.

The service wires the catalog, the store, the fetcher, the installer and
the activation engine together. It never prints; every operation returns a
``Result`` and the CLI renders it.

Usage:
    service = VersionService(config=config, catalog=catalog, platform=detect())
    match service.install("node", "20"):
        case Ok(outcome):
            print(f"Installed node {outcome.resolved.key}")
        case Err(error):
            print(error.message)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, MutableMapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from vmgr.core.errors import (
    AlreadyInstalled,
    InvalidExpression,
    NotInstalled,
    VersionError,
    with_context,
)
from vmgr.core.result import Err, Ok, Result
from vmgr.platform.shell import Shell, detect_shell, integration_line, render_env, startup_file
from vmgr.tools.activation import ActivationEngine, ActivationResult, Scope
from vmgr.tools.checksum import parse_checksum_text
from vmgr.tools.descriptor import DownloadType
from vmgr.tools.detect import DetectedVersion, ProjectDetector
from vmgr.tools.download import Fetcher, FetchResult
from vmgr.tools.environment import (
    PersistenceStrategy,
    ToolEnvironment,
    startup_file_strategy,
    upsert_marked_line,
    windows_strategies,
)
from vmgr.tools.http import HttpClient, RealHttpClient
from vmgr.tools.installer import Installer, archive_kind
from vmgr.tools.matcher import (
    ResolvedVersion,
    VersionExpression,
    looks_partial,
    parse_expression,
    resolve,
    sort_versions,
)
from vmgr.tools.retry import RetryPolicy, classify_http_error
from vmgr.tools.sources import fetch_versions, filter_valid
from vmgr.tools.store import VersionStore, is_valid_key

if TYPE_CHECKING:
    from vmgr.core.config import Config
    from vmgr.platform.detection import PlatformInfo
    from vmgr.tools.catalog import ToolCatalog
    from vmgr.tools.descriptor import ToolDescriptor
    from vmgr.tools.progress import ProgressSink

__all__ = [
    "AppliedVersion",
    "InstallOutcome",
    "InstalledVersion",
    "VersionService",
    "artifact_name",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InstallOutcome:
    """A completed install.

    Attributes:
        tool: Tool name
        resolved: Version that was installed
        path: Install directory
        url: Where the artifact came from
        fetch: Download details (attempts, digest, resume)
        files_count: Files written by the installer
        verified: True if a published checksum was checked
    """

    tool: str
    resolved: ResolvedVersion
    path: Path
    url: str
    fetch: FetchResult
    files_count: int
    verified: bool


@dataclass(frozen=True, slots=True)
class InstalledVersion:
    key: str
    path: Path
    current: bool


@dataclass(frozen=True, slots=True)
class AppliedVersion:
    """Outcome of applying one detected version."""

    detected: DetectedVersion
    result: Result[ActivationResult, VersionError]


def artifact_name(tool: ToolDescriptor, resolved: ResolvedVersion, url: str, platform: PlatformInfo) -> str:
    """Cache file name for a download.

    The URL's last segment when it already names an archive (or for a
    single-file tool); otherwise ``<tool>-<key>.<ext>`` so the installer can
    tell the archive format (API endpoints such as Adoptium's redirect from
    a bare path).
    """
    last = url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
    if tool.download_type == DownloadType.FILE:
        return last or tool.name
    if last and archive_kind(last):
        return last
    os_token = platform.platform.token
    ext = tool.archive_exts.get(os_token, "zip" if platform.is_windows else "tar.gz")
    return f"{tool.name}-{resolved.key}.{ext}"


class VersionService:
    """Install, switch, list and detect tool versions."""

    def __init__(
        self,
        *,
        config: Config,
        catalog: ToolCatalog,
        platform: PlatformInfo,
        http: HttpClient | None = None,
        store: VersionStore | None = None,
        strategies: Sequence[PersistenceStrategy] | None = None,
        backstop: tuple[Path, Shell] | None = None,
        environ: MutableMapping[str, str] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        sink_factory: Callable[[str], ProgressSink] | None = None,
    ) -> None:
        self._config = config
        self._catalog = catalog
        self._platform = platform
        self._http = http or RealHttpClient(timeout=config.download.timeout)
        self._store = store or VersionStore(config.paths.root)
        self._environ = environ
        self._sleep = sleep
        self._sink_factory = sink_factory

        if strategies is None:
            self._strategies, self._backstop = self._default_persistence()
        else:
            self._strategies, self._backstop = list(strategies), backstop

    @property
    def store(self) -> VersionStore:
        return self._store

    @property
    def catalog(self) -> ToolCatalog:
        return self._catalog

    def _default_persistence(self) -> tuple[list[PersistenceStrategy], tuple[Path, Shell] | None]:
        """Registry chain plus a PowerShell-profile backstop on Windows; startup file elsewhere."""
        configured = self._config.shell.startup_file
        if self._platform.is_windows:
            profile = configured or startup_file(Shell.POWERSHELL)
            return windows_strategies(), (profile, Shell.POWERSHELL)
        shell = detect_shell()
        path = configured or startup_file(shell)
        return [startup_file_strategy(path, shell)], None

    def _engine(self) -> ActivationEngine:
        return ActivationEngine(
            self._store,
            strategies=self._strategies,
            backstop=self._backstop,
            environ=self._environ,
            shim_dir=self._config.paths.shim_dir,
            windows=self._platform.is_windows,
        )

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def _parse(self, tool: ToolDescriptor, raw: str) -> Result[VersionExpression, InvalidExpression]:
        if not raw.strip():
            return Err(InvalidExpression(tool=tool.name, expression=raw, reason="empty version"))
        expr = parse_expression(raw)
        if not tool.supports_distribution(expr.distribution):
            known = ", ".join(tool.distributions) or "none"
            return Err(
                InvalidExpression(
                    tool=tool.name,
                    expression=raw,
                    reason=f"unknown distribution (available: {known})",
                )
            )
        return Ok(expr)

    def list_remote(self, tool_name: str) -> Result[list[str], VersionError]:
        """Known versions for a tool, newest first, filtered by its validation rule."""
        tool = self._catalog.get(tool_name)
        if isinstance(tool, Err):
            return tool
        versions = fetch_versions(tool.value, self._http)
        if isinstance(versions, Err):
            return Err(with_context(classify_http_error(versions.error), tool=tool.value.name, version=""))
        return Ok(sort_versions(filter_valid(tool.value, versions.value)))

    def resolve_remote(self, tool_name: str, expression: str) -> Result[ResolvedVersion, VersionError]:
        """Resolve an expression against the published versions."""
        found = self._catalog.get(tool_name)
        if isinstance(found, Err):
            return found
        tool = found.value

        expr = self._parse(tool, expression)
        if isinstance(expr, Err):
            return expr
        known = self.list_remote(tool.name)
        if isinstance(known, Err):
            # Without a listing only a complete version can be tried
            if looks_partial(expr.value.text):
                return known
            logger.warning("version listing unavailable (%s); trying %s as given", known.error.message, expr.value)
            versions: list[str] = []
        else:
            versions = known.value

        resolved = resolve(expr.value, versions, tool=tool.name)
        if isinstance(resolved, Err):
            return resolved
        if not is_valid_key(resolved.value.key) or not tool.validate(resolved.value.version):
            return Err(InvalidExpression(tool=tool.name, expression=expression))
        return resolved

    def resolve_installed(self, tool_name: str, expression: str) -> Result[ResolvedVersion, VersionError]:
        """Resolve an expression against installed versions only (no network)."""
        found = self._catalog.get(tool_name)
        if isinstance(found, Err):
            return found
        tool = found.value

        parsed = self._parse(tool, expression)
        if isinstance(parsed, Err):
            return parsed
        expr = parsed.value

        installed = self._store.list_installed(tool.name)
        if expr.distribution:
            keys = [parse_expression(key) for key in installed]
            candidates = [k.text for k in keys if k.distribution == expr.distribution]
            lookup = expr
        else:
            # A bare expression may pick any installed key, distribution included
            candidates = installed
            lookup = VersionExpression(expr.text)

        resolved = resolve(lookup, candidates, tool=tool.name)
        if isinstance(resolved, Ok) and not is_valid_key(resolved.value.key):
            return Err(InvalidExpression(tool=tool.name, expression=expression))
        if isinstance(resolved, Ok) and self._store.is_installed(tool.name, resolved.value.key):
            return resolved
        return Err(NotInstalled(tool=tool.name, version=str(expr)))

    # -------------------------------------------------------------------------
    # Install / uninstall
    # -------------------------------------------------------------------------

    def _expected_digest(self, tool: ToolDescriptor, resolved: ResolvedVersion, name: str) -> str | None:
        if not self._config.download.verify_checksums:
            return None
        url = tool.checksum_url_for(resolved, self._platform)
        if not url:
            return None
        text = self._http.get_text(url)
        if isinstance(text, Err):
            logger.warning("checksum unavailable (%s); installing unverified", text.error)
            return None
        digest = parse_checksum_text(text.value, name)
        if digest is None:
            logger.warning("no SHA-256 for %s in %s; installing unverified", name, url)
        return digest

    def install(self, tool_name: str, expression: str) -> Result[InstallOutcome, VersionError]:
        """Resolve, download, verify and unpack a version.

        The version directory appears only once everything succeeded.
        """
        found = self._catalog.get(tool_name)
        if isinstance(found, Err):
            return found
        tool = found.value

        resolved = self.resolve_remote(tool.name, expression)
        if isinstance(resolved, Err):
            return resolved
        version = resolved.value

        key = version.key
        target = self._store.version_dir(tool.name, key)
        if self._store.is_installed(tool.name, key):
            return Err(AlreadyInstalled(tool=tool.name, version=key, path=target))

        url = tool.url_for(version, self._platform)
        name = artifact_name(tool, version, url, self._platform)
        digest = self._expected_digest(tool, version, name)
        dest = self._config.paths.cache / tool.name / key / name
        logger.debug("installing %s %s from %s", tool.name, key, url)

        policy = RetryPolicy(
            max_retries=self._config.download.max_retries,
            base_delay=self._config.download.retry_delay,
            sleep=self._sleep,
        )
        sink = self._sink_factory(f"{tool.name} {key}") if self._sink_factory else None
        fetched = Fetcher(self._http, policy, sink).fetch(url, dest, expected_digest=digest)
        if isinstance(fetched, Err):
            return Err(with_context(fetched.error, tool=tool.name, version=key))

        installed = Installer().install(
            fetched.value.path,
            target,
            tool=tool.name,
            version=key,
            download_type=tool.download_type,
        )
        if isinstance(installed, Err):
            return installed

        # The cached artifact is only needed until it is unpacked
        dest.unlink(missing_ok=True)
        return Ok(
            InstallOutcome(
                tool=tool.name,
                resolved=version,
                path=installed.value.install_dir,
                url=url,
                fetch=fetched.value,
                files_count=installed.value.files_count,
                verified=digest is not None,
            )
        )

    def uninstall(self, tool_name: str, expression: str) -> Result[Path, VersionError]:
        """Remove an installed version (and the ``current`` alias if it points there)."""
        resolved = self.resolve_installed(tool_name, expression)
        if isinstance(resolved, Err):
            return resolved
        return self._store.remove_version(tool_name.lower(), resolved.value.key)

    # -------------------------------------------------------------------------
    # Activation
    # -------------------------------------------------------------------------

    def use(
        self,
        tool_name: str,
        expression: str,
        scope: Scope = Scope.SESSION,
    ) -> Result[ActivationResult, VersionError]:
        """Make an installed version current for ``scope``."""
        found = self._catalog.get(tool_name)
        if isinstance(found, Err):
            return found
        resolved = self.resolve_installed(found.value.name, expression)
        if isinstance(resolved, Err):
            return resolved
        return self._engine().activate(found.value, resolved.value, scope)

    def current(self, tool_name: str) -> Result[str | None, VersionError]:
        found = self._catalog.get(tool_name)
        if isinstance(found, Err):
            return found
        return Ok(self._store.current(found.value.name))

    def current_all(self) -> dict[str, str]:
        """Active version per tool, for every tool with one."""
        active: dict[str, str] = {}
        for tool in self._catalog.all():
            key = self._store.current(tool.name)
            if key is not None:
                active[tool.name] = key
        return active

    def which(self, tool_name: str) -> Result[Path | None, VersionError]:
        """Path of the ``current`` alias, or None when no version is active."""
        found = self._catalog.get(tool_name)
        if isinstance(found, Err):
            return found
        name = found.value.name
        if self._store.current(name) is None:
            return Ok(None)
        return Ok(self._store.current_link(name))

    def list_installed(self, tool_name: str) -> Result[list[InstalledVersion], VersionError]:
        found = self._catalog.get(tool_name)
        if isinstance(found, Err):
            return found
        name = found.value.name
        current = self._store.current(name)
        return Ok(
            [
                InstalledVersion(key=key, path=self._store.version_dir(name, key), current=key == current)
                for key in self._store.list_installed(name)
            ]
        )

    def environments(self) -> list[ToolEnvironment]:
        """Environment of every active tool, in catalog order."""
        engine = self._engine()
        found: list[ToolEnvironment] = []
        for tool in self._catalog.all():
            env = engine.environment(tool)
            if env is not None:
                found.append(env)
        return found

    def env_exports(self, shell: Shell) -> str:
        """Shell script setting every active tool's variables and PATH.

        The shim directory comes first on PATH.
        """
        env_vars: dict[str, str] = {}
        path_dirs: list[Path] = [self._config.paths.shim_dir]
        for env in self.environments():
            env_vars.update(env.env_vars)
            path_dirs.extend(d for d in env.path_dirs if d not in path_dirs)
        return render_env(shell, env_vars, path_dirs)

    def install_integration(self, shell: Shell) -> tuple[Path, bool]:
        """Add the ``vmgr env`` hook to the startup file of ``shell``.

        Returns:
            The startup file and whether it changed

        Raises:
            OSError: The startup file cannot be read or written
        """
        path = self._config.shell.startup_file or startup_file(shell)
        changed = upsert_marked_line(path, "init", integration_line(shell))
        logger.debug("shell integration in %s (changed: %s)", path, changed)
        return path, changed

    # -------------------------------------------------------------------------
    # Detection
    # -------------------------------------------------------------------------

    def detect(self, start_dir: Path) -> list[DetectedVersion]:
        return ProjectDetector(self._catalog.all()).detect_all(start_dir)

    def apply_detected(
        self,
        detected: Sequence[DetectedVersion],
        scope: Scope = Scope.SESSION,
    ) -> list[AppliedVersion]:
        """Switch to each detected version; failures are reported per tool."""
        return [
            AppliedVersion(detected=item, result=self.use(item.tool, item.version, scope))
            for item in detected
        ]
