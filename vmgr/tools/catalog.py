"""Tool catalog: built-in descriptors plus user JSON definitions.

User definitions live in ``[paths] sources`` as ``*.json`` files, one tool
per file, and replace a built-in of the same name:

    {
      "name": "zig",
      "displayName": "Zig",
      "releasesUrl": "https://ziglang.org/download/index.json",
      "downloadUrl": "https://ziglang.org/download/{version}/zig-{os}-{arch}-{version}.{ext}",
      "versionRegex": "^\\\\d+\\\\.\\\\d+\\\\.\\\\d+$",
      "versionFiles": [".zig-version"],
      "pathDirs": ["."]
    }

A file that cannot be read or does not describe a valid tool is skipped
and reported; it never hides the rest of the catalog.

Usage:
    catalog, issues = load_catalog(config.paths.sources)
    match catalog.get("java"):
        case Ok(tool):
            print(tool.title)
        case Err(error):
            print(error.message)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from vmgr.core.errors import UnknownTool
from vmgr.core.result import Err, Ok, Result
from vmgr.core.structured import StrDict, as_str_dict, get_str, get_str_list, get_str_map, get_table

from .definitions import BUILTIN_TOOLS
from .descriptor import Distribution, DownloadType, ToolDescriptor

__all__ = ["CatalogIssue", "ToolCatalog", "descriptor_from_dict", "load_catalog"]

logger = logging.getLogger(__name__)

_DOWNLOAD_TYPES = {
    "archive": DownloadType.ARCHIVE,
    "zip": DownloadType.ARCHIVE,
    "file": DownloadType.FILE,
}


@dataclass(frozen=True, slots=True)
class CatalogIssue:
    """A user definition that was skipped."""

    path: Path
    reason: str

    @property
    def message(self) -> str:
        return f"Skipping tool definition {self.path.name}: {self.reason}"


def _distributions(data: StrDict) -> dict[str, Distribution]:
    table = get_table(data, "distributions")
    if table is None:
        return {}
    dists: dict[str, Distribution] = {}
    for key, raw in table.items():
        entry = as_str_dict(raw)
        if entry is None:
            raise ValueError(f"distribution {key!r} must be an object")
        url = get_str(entry, "downloadUrl")
        if not url:
            raise ValueError(f"distribution {key!r} has no downloadUrl")
        dists[key] = Distribution(
            key=key,
            display_name=get_str(entry, "displayName") or key,
            download_url=url,
            os_names=MappingProxyType(get_str_map(entry, "osNames")),
            arch_names=MappingProxyType(get_str_map(entry, "archNames")),
        )
    return dists


def descriptor_from_dict(data: StrDict) -> ToolDescriptor:
    """Build a descriptor from a decoded JSON definition.

    Raises:
        ValueError: Missing name, unknown downloadType or invalid descriptor
    """
    name = get_str(data, "name")
    if not name:
        raise ValueError("missing 'name'")

    raw_type = (get_str(data, "downloadType") or "archive").lower()
    download_type = _DOWNLOAD_TYPES.get(raw_type)
    if download_type is None:
        raise ValueError(f"unknown downloadType {raw_type!r}")

    return ToolDescriptor(
        name=name,
        display_name=get_str(data, "displayName") or "",
        version_regex=get_str(data, "versionRegex") or "",
        releases_url=get_str(data, "releasesUrl") or "",
        version_field=get_str(data, "versionField") or "version",
        version_prefix=get_str(data, "versionPrefix") or "",
        download_url=get_str(data, "downloadUrl") or "",
        download_type=download_type,
        version_files=tuple(get_str_list(data, "versionFiles")),
        env_vars=MappingProxyType(get_str_map(data, "envVars")),
        path_dirs=tuple(get_str_list(data, "pathDirs")),
        dependencies=tuple(get_str_list(data, "dependencies")),
        distributions=MappingProxyType(_distributions(data)),
        default_distribution=get_str(data, "defaultDistribution") or "",
        static_versions=tuple(get_str_list(data, "staticVersions")),
        checksum_url=get_str(data, "checksumUrl") or "",
        os_names=MappingProxyType(get_str_map(data, "osNames")),
        arch_names=MappingProxyType(get_str_map(data, "archNames")),
        archive_exts=MappingProxyType(get_str_map(data, "archiveExts")),
    )


def _load_file(path: Path) -> ToolDescriptor | CatalogIssue:
    try:
        data = as_str_dict(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, UnicodeDecodeError) as e:
        return CatalogIssue(path=path, reason=str(e))
    except json.JSONDecodeError as e:
        return CatalogIssue(path=path, reason=f"invalid JSON: {e}")
    if data is None:
        return CatalogIssue(path=path, reason="top level must be an object")
    try:
        return descriptor_from_dict(data)
    except ValueError as e:
        return CatalogIssue(path=path, reason=str(e))


class ToolCatalog:
    """Read-only collection of descriptors addressable by name."""

    def __init__(self, tools: Iterable[ToolDescriptor]) -> None:
        self._tools: dict[str, ToolDescriptor] = {}
        for tool in tools:
            self._tools[tool.name] = tool

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def get(self, name: str) -> Result[ToolDescriptor, UnknownTool]:
        tool = self._tools.get(name.lower())
        if tool is None:
            return Err(UnknownTool(tool=name, available=tuple(self.names())))
        return Ok(tool)

    def find(self, name: str) -> ToolDescriptor | None:
        return self._tools.get(name.lower())

    def names(self) -> list[str]:
        return sorted(self._tools)

    def all(self) -> list[ToolDescriptor]:
        """Descriptors sorted by name."""
        return [self._tools[name] for name in self.names()]


def load_catalog(sources_dir: Path | None = None) -> tuple[ToolCatalog, list[CatalogIssue]]:
    """Built-ins overlaid with the user definitions in ``sources_dir``.

    Returns:
        The catalog and the user files that were skipped
    """
    tools: list[ToolDescriptor] = list(BUILTIN_TOOLS)
    issues: list[CatalogIssue] = []

    if sources_dir is not None and sources_dir.is_dir():
        for path in sorted(sources_dir.glob("*.json")):
            loaded = _load_file(path)
            if isinstance(loaded, CatalogIssue):
                logger.warning("%s", loaded.message)
                issues.append(loaded)
                continue
            logger.debug("loaded user definition %s from %s", loaded.name, path)
            tools.append(loaded)

    return ToolCatalog(tools), issues
