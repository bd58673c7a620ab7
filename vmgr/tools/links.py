"""The ``current`` alias: a directory symlink (or Windows junction).

POSIX gets a plain symlink. Windows tries, in order, a directory symlink
(needs Developer Mode or elevation), ``cmd /c mklink /J``, then
``New-Item -ItemType Junction`` through ``pwsh`` and ``powershell`` for
images that ship without cmd.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from vmgr.core.result import Err, Ok, Result
from vmgr.platform.detection import is_windows
from vmgr.platform.process import ProcessError, run

__all__ = ["LinkError", "create_alias", "is_alias", "read_alias", "remove_alias"]

logger = logging.getLogger(__name__)

Runner = Callable[[list[str]], Result[str, ProcessError]]


@dataclass(frozen=True, slots=True)
class LinkError:
    link: Path
    target: Path
    attempts: tuple[str, ...]
    reason: str


def _default_runner(cmd: list[str]) -> Result[str, ProcessError]:
    return run(cmd)


def is_alias(path: Path) -> bool:
    """True for a symlink or junction (not for a real directory)."""
    return path.is_symlink() or path.is_junction()


def read_alias(path: Path) -> Path | None:
    """Target of the alias, or None when absent or unreadable."""
    if not is_alias(path):
        return None
    try:
        target = Path(os.readlink(path))
    except OSError:
        return None
    # Windows may report junction targets with a \\?\ prefix
    raw = str(target)
    if raw.startswith("\\\\?\\"):
        target = Path(raw[4:])
    if not target.is_absolute():
        target = path.parent / target
    return target


def remove_alias(path: Path, *, runner: Runner | None = None, windows: bool | None = None) -> bool:
    """Remove an alias without touching its target. Best-effort.

    Returns:
        True if nothing is left at ``path``
    """
    if not is_alias(path):
        return not path.exists()
    win = is_windows() if windows is None else windows
    try:
        if win:
            # A directory link is removed with rmdir, which never recurses
            os.rmdir(path)
        else:
            path.unlink()
        return True
    except OSError as e:
        logger.debug("removing alias %s failed: %s", path, e)

    if win:
        execute = runner or _default_runner
        for cmd in (
            ["cmd", "/c", "rmdir", str(path)],
            ["pwsh", "-NoProfile", "-Command", f"Remove-Item -Path '{path}' -Force"],
        ):
            if isinstance(execute(cmd), Ok):
                return True
    return not is_alias(path)


def create_alias(
    link: Path,
    target: Path,
    *,
    runner: Runner | None = None,
    windows: bool | None = None,
) -> Result[str, LinkError]:
    """Point ``link`` at ``target``.

    ``link`` must not exist. Returns the method that worked.
    """
    link.parent.mkdir(parents=True, exist_ok=True)
    attempts: list[str] = []
    reason = ""

    try:
        attempts.append("symlink")
        os.symlink(target, link, target_is_directory=True)
        return Ok("symlink")
    except OSError as e:
        reason = str(e)
        logger.debug("symlink %s -> %s failed: %s", link, target, e)

    win = is_windows() if windows is None else windows
    if not win:
        return Err(LinkError(link=link, target=target, attempts=tuple(attempts), reason=reason))

    execute = runner or _default_runner
    junction_ps = f"New-Item -ItemType Junction -Path '{link}' -Target '{target}' | Out-Null"
    fallbacks = (
        ("mklink", ["cmd", "/c", "mklink", "/J", str(link), str(target)]),
        ("pwsh", ["pwsh", "-NoProfile", "-NonInteractive", "-Command", junction_ps]),
        ("powershell", ["powershell", "-NoProfile", "-NonInteractive", "-Command", junction_ps]),
    )
    for name, cmd in fallbacks:
        attempts.append(name)
        result = execute(cmd)
        if isinstance(result, Ok):
            logger.debug("created junction %s via %s", link, name)
            return Ok(name)
        reason = result.error.stderr.strip() or str(result.error)
        logger.debug("%s failed: %s", name, reason)

    return Err(LinkError(link=link, target=target, attempts=tuple(attempts), reason=reason))
