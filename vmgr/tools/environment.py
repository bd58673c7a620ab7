"""Environment computed from the ``current`` alias, and its persistence.

Values always point through the alias (``<root>/java/current``), never at
a version directory, so a switch does not need to rewrite them.

Persisting a variable walks an ordered chain of strategies. Each one has a
``write`` and a ``read``; the first whose write reads back the same value
wins. On Windows the chain is the registry (HKCU\\Environment), ``pwsh``,
``powershell`` and ``setx``; elsewhere it is the shell startup file.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable, MutableMapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from vmgr.core.errors import PersistenceFailure
from vmgr.core.result import Ok
from vmgr.platform.process import run
from vmgr.platform.shell import Shell, marker_for, render_assignment

if TYPE_CHECKING:
    from .descriptor import ToolDescriptor

__all__ = [
    "PersistenceStrategy",
    "ToolEnvironment",
    "apply_to_process",
    "compute_environment",
    "persist_variable",
    "startup_file_strategy",
    "upsert_marked_line",
    "upsert_startup_entry",
    "windows_strategies",
]

logger = logging.getLogger(__name__)


def _empty_vars() -> dict[str, str]:
    return {}


def _empty_dirs() -> list[Path]:
    return []


@dataclass(frozen=True, slots=True)
class ToolEnvironment:
    """Variables and PATH entries contributed by one active tool."""

    tool: str
    env_vars: dict[str, str] = field(default_factory=_empty_vars)
    path_dirs: list[Path] = field(default_factory=_empty_dirs)


def _join(base: Path, rel: str) -> Path:
    return base if rel in (".", "") else base / rel


def compute_environment(tool: ToolDescriptor, current: Path) -> ToolEnvironment:
    """Join each declared relative path onto the alias path (``.`` is the root)."""
    return ToolEnvironment(
        tool=tool.name,
        env_vars={name: str(_join(current, rel)) for name, rel in tool.env_vars.items()},
        path_dirs=[_join(current, rel) for rel in tool.path_dirs],
    )


def apply_to_process(env: ToolEnvironment, environ: MutableMapping[str, str] | None = None) -> None:
    """Set the variables and prepend the PATH entries in this process."""
    target = os.environ if environ is None else environ
    for name, value in env.env_vars.items():
        target[name] = value
    if env.path_dirs:
        existing = target.get("PATH", "")
        prefix = [str(p) for p in env.path_dirs]
        rest = [p for p in existing.split(os.pathsep) if p and p not in prefix]
        target["PATH"] = os.pathsep.join(prefix + rest)


@dataclass(frozen=True, slots=True)
class PersistenceStrategy:
    """One way of persisting a user variable.

    ``write`` returns True when it believes it succeeded; ``read`` is the
    independent check that decides.
    """

    name: str
    write: Callable[[str, str], bool]
    read: Callable[[str], str | None]


def persist_variable(
    name: str,
    value: str,
    strategies: Sequence[PersistenceStrategy],
) -> str | PersistenceFailure:
    """Try each strategy in order.

    Returns:
        Name of the first strategy whose write reads back ``value``, or a
        PersistenceFailure listing everything tried
    """
    tried: list[str] = []
    reason = ""
    for strategy in strategies:
        tried.append(strategy.name)
        try:
            written = strategy.write(name, value)
        except OSError as e:
            reason = f"{strategy.name}: {e}"
            logger.debug("persist %s via %s raised: %s", name, strategy.name, e)
            continue
        if not written:
            reason = f"{strategy.name} failed"
            logger.debug("persist %s via %s failed", name, strategy.name)
            continue
        try:
            readback = strategy.read(name)
        except OSError as e:
            readback = None
            logger.debug("read-back of %s via %s raised: %s", name, strategy.name, e)
        if readback == value:
            logger.debug("persisted %s via %s", name, strategy.name)
            return strategy.name
        reason = f"{strategy.name} write succeeded but verification failed"
        logger.debug("%s: read back %r", reason, readback)
    return PersistenceFailure(name=name, value=value, attempts=tuple(tried), reason=reason)


# -- startup file -----------------------------------------------------------


def _entry_pattern(name: str) -> re.Pattern[str]:
    marker = re.escape(marker_for(name))
    return re.compile(rf"^{marker}\r?\n(?P<line>.*)$", re.MULTILINE)


def upsert_startup_entry(path: Path, shell: Shell, name: str, value: str) -> bool:
    """Write a marker-guarded assignment for ``name`` into ``path``.

    Returns:
        True if the file changed
    """
    return upsert_marked_line(path, name, render_assignment(shell, name, value))


def upsert_marked_line(path: Path, name: str, line: str) -> bool:
    """Write ``line`` under the ``# vmgr: <name>`` marker in ``path``.

    The block is appended once; later calls with a different line rewrite
    the line under the marker instead of appending again.

    Returns:
        True if the file changed
    """
    content = path.read_text(encoding="utf-8") if path.exists() else ""
    pattern = _entry_pattern(name)
    match = pattern.search(content)
    if match:
        if match.group("line").rstrip("\r") == line:
            return False
        start, end = match.span("line")
        content = content[:start] + line + content[end:]
    else:
        if content and not content.endswith("\n"):
            content += "\n"
        content += f"\n{marker_for(name)}\n{line}\n"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return True


def _parse_assignment(shell: Shell, line: str) -> str | None:
    match shell:
        case Shell.BASH | Shell.ZSH | Shell.FISH:
            found = re.search(r'"((?:[^"\\]|\\.)*)"\s*$', line)
            return re.sub(r"\\(.)", r"\1", found.group(1)) if found else None
        case Shell.POWERSHELL:
            found = re.search(r"'((?:[^']|'')*)'\s*$", line)
            return found.group(1).replace("''", "'") if found else None
        case Shell.CMD:
            found = re.search(r'^set "[^=]+=(.*)"\s*$', line)
            return found.group(1) if found else None


def _read_startup_entry(path: Path, shell: Shell, name: str) -> str | None:
    if not path.exists():
        return None
    match = _entry_pattern(name).search(path.read_text(encoding="utf-8"))
    if not match:
        return None
    return _parse_assignment(shell, match.group("line").rstrip("\r"))


def startup_file_strategy(path: Path, shell: Shell) -> PersistenceStrategy:
    """Persistence through a shell startup file (POSIX native store)."""

    def write(name: str, value: str) -> bool:
        upsert_startup_entry(path, shell, name, value)
        return True

    def read(name: str) -> str | None:
        return _read_startup_entry(path, shell, name)

    return PersistenceStrategy(name=f"startup file {path.name}", write=write, read=read)


# -- Windows ----------------------------------------------------------------


def _registry_read(name: str) -> str | None:
    import winreg

    try:
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, "Environment", 0, winreg.KEY_QUERY_VALUE) as key:
            value, _kind = winreg.QueryValueEx(key, name)
    except FileNotFoundError:
        return None
    return str(value)


def _registry_write(name: str, value: str) -> bool:
    import winreg

    with winreg.OpenKey(winreg.HKEY_CURRENT_USER, "Environment", 0, winreg.KEY_SET_VALUE) as key:
        winreg.SetValueEx(key, name, 0, winreg.REG_SZ, value)
    _broadcast_environment_change()
    return True


def _broadcast_environment_change() -> None:
    """Tell running Explorer windows that the environment changed (best-effort)."""
    import ctypes

    try:
        user32 = ctypes.WinDLL("user32", use_last_error=True)  # type: ignore[attr-defined]
    except OSError:
        # Nano Server and slim containers have no user32
        return
    hwnd_broadcast, wm_settingchange, smto_abortifhung = 0xFFFF, 0x001A, 0x0002
    result = ctypes.c_ulong()
    user32.SendMessageTimeoutW(
        hwnd_broadcast, wm_settingchange, 0, "Environment", smto_abortifhung, 5000, ctypes.byref(result)
    )


def _powershell_writer(executable: str) -> Callable[[str, str], bool]:
    def write(name: str, value: str) -> bool:
        escaped = value.replace("'", "''")
        script = (
            f"[Environment]::SetEnvironmentVariable('{name}', '{escaped}', 'User'); "
            "if ($?) { exit 0 } else { exit 1 }"
        )
        return isinstance(run([executable, "-NoProfile", "-NonInteractive", "-Command", script]), Ok)

    return write


def _setx_write(name: str, value: str) -> bool:
    return isinstance(run(["setx", name, value]), Ok)


def windows_strategies(
    read: Callable[[str], str | None] = _registry_read,
) -> list[PersistenceStrategy]:
    """Registry first, then pwsh, powershell and setx; all verified via the registry."""
    return [
        PersistenceStrategy("registry", _registry_write, read),
        PersistenceStrategy("pwsh", _powershell_writer("pwsh"), read),
        PersistenceStrategy("powershell", _powershell_writer("powershell"), read),
        PersistenceStrategy("setx", _setx_write, read),
    ]
