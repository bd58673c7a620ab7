"""On-disk layout of installed versions.

    <root>/
        state.json                  secondary record of current versions
        <tool>/
            <version[-distribution]>/
            current -> <version[-distribution]>

``VersionStore`` is created once per command and passed to whatever needs
it; nothing here is global.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from vmgr.core.errors import AliasFailure, NotInstalled
from vmgr.core.result import Err, Ok, Result
from vmgr.platform.files import remove_tree

from . import links, state
from .matcher import sort_versions

__all__ = ["CURRENT", "VersionStore", "is_valid_key"]

logger = logging.getLogger(__name__)

CURRENT = "current"

LinkFactory = Callable[[Path, Path], Result[str, links.LinkError]]


def is_valid_key(key: str) -> bool:
    """A version key must name one entry directly under the tool directory."""
    return key not in ("", ".", "..", CURRENT) and "/" not in key and "\\" not in key


class VersionStore:
    """Installed versions and current aliases under one root."""

    def __init__(self, root: Path, *, link_factory: LinkFactory | None = None) -> None:
        self._root = root
        self._link_factory = link_factory or (lambda link, target: links.create_alias(link, target))

    @property
    def root(self) -> Path:
        return self._root

    def tool_dir(self, tool: str) -> Path:
        return self._root / tool

    def version_dir(self, tool: str, key: str) -> Path:
        if not is_valid_key(key):
            raise ValueError(f"invalid version key: {key!r}")
        return self._root / tool / key

    def current_link(self, tool: str) -> Path:
        return self._root / tool / CURRENT

    def is_installed(self, tool: str, key: str) -> bool:
        if not is_valid_key(key):
            return False
        path = self.version_dir(tool, key)
        return path.is_dir() and not links.is_alias(path)

    def list_installed(self, tool: str) -> list[str]:
        """Installed version keys, newest first."""
        tool_dir = self.tool_dir(tool)
        if not tool_dir.is_dir():
            return []
        keys = [
            entry.name
            for entry in tool_dir.iterdir()
            if entry.name != CURRENT
            and not entry.name.startswith(".")
            and entry.is_dir()
            and not links.is_alias(entry)
        ]
        return sort_versions(keys)

    def installed_tools(self) -> list[str]:
        if not self._root.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self._root.iterdir()
            if entry.is_dir() and not entry.name.startswith(".") and self.list_installed(entry.name)
        )

    def current(self, tool: str) -> str | None:
        """Active version key: the alias target, else the state record."""
        target = links.read_alias(self.current_link(tool))
        if target is not None:
            return target.name
        recorded = state.get_current_version(self._root, tool)
        if recorded and self.is_installed(tool, recorded):
            return recorded
        return None

    def set_current(self, tool: str, key: str) -> Result[str, NotInstalled | AliasFailure]:
        """Re-point ``current`` at an installed version.

        Only the alias changes; no version directory is touched.

        Returns:
            Ok(method used to create the alias)
        """
        if not self.is_installed(tool, key):
            return Err(NotInstalled(tool=tool, version=key))
        target = self.version_dir(tool, key)

        link = self.current_link(tool)
        if not links.remove_alias(link):
            return Err(
                AliasFailure(
                    tool=tool,
                    version=key,
                    path=link,
                    attempts=(),
                    reason="a non-alias file or directory is in the way",
                )
            )

        created = self._link_factory(link, target)
        if isinstance(created, Err):
            e = created.error
            return Err(AliasFailure(tool=tool, version=key, path=link, attempts=e.attempts, reason=e.reason))

        state.set_current_version(self._root, tool, key)
        logger.debug("%s current -> %s (%s)", tool, key, created.value)
        return Ok(created.value)

    def clear_current(self, tool: str) -> None:
        links.remove_alias(self.current_link(tool))
        state.clear_current_version(self._root, tool)

    def remove_version(self, tool: str, key: str) -> Result[Path, NotInstalled]:
        """Delete an installed version, dropping the alias first if it is current."""
        if not self.is_installed(tool, key):
            return Err(NotInstalled(tool=tool, version=key))
        path = self.version_dir(tool, key)
        if self.current(tool) == key:
            self.clear_current(tool)
        remove_tree(path)
        return Ok(path)
