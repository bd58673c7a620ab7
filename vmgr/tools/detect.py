"""Project version detection from declaration files.

Each tool lists declaration files in search order. For each file name the
detector walks from the start directory up to the filesystem root; the
nearest readable file that yields a version wins. A file that exists but
yields nothing is skipped and the walk continues.

Usage:
    detector = ProjectDetector(catalog.all())
    for found in detector.detect_all(Path.cwd()):
        print(f"{found.tool} {found.version} ({found.source})")
"""

from __future__ import annotations

import json
import logging
import re
import tomllib
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from vmgr.core.structured import as_str_dict, get_str, get_table

if TYPE_CHECKING:
    from .descriptor import ToolDescriptor

__all__ = ["DetectedVersion", "FileFormat", "ProjectDetector", "file_format", "parse_declaration"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DetectedVersion:
    tool: str
    version: str
    source: Path

    def as_dict(self) -> dict[str, str]:
        return {"tool": self.tool, "version": self.version, "source": str(self.source)}


class FileFormat(Enum):
    """Closed set of declaration formats."""

    PLAIN = "plain"
    GO_MOD = "go.mod"
    GLOBAL_JSON = "global.json"
    TOOLCHAIN_TOML = "rust-toolchain.toml"
    SDKMANRC = ".sdkmanrc"


_FORMATS = {fmt.value: fmt for fmt in FileFormat if fmt is not FileFormat.PLAIN}

_GO_DIRECTIVE = re.compile(r"^go\s+(\S+)")


def file_format(file_name: str) -> FileFormat:
    return _FORMATS.get(file_name, FileFormat.PLAIN)


def _parse_plain(text: str, tool: str) -> str | None:
    lines = text.strip().splitlines()
    if not lines:
        return None
    version = lines[0].strip()
    if version.startswith("v"):
        version = version[1:]
    return version or None


def _parse_go_mod(text: str, tool: str) -> str | None:
    for line in text.splitlines():
        match = _GO_DIRECTIVE.match(line.strip())
        if match:
            return match.group(1)
    return None


def _parse_global_json(text: str, tool: str) -> str | None:
    try:
        data = as_str_dict(json.loads(text))
    except json.JSONDecodeError:
        return None
    if data is None:
        return None
    sdk = get_table(data, "sdk")
    if sdk is None:
        return None
    return get_str(sdk, "version")


def _parse_toolchain_toml(text: str, tool: str) -> str | None:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError:
        return None
    toolchain = get_table(data, "toolchain")
    if toolchain is not None:
        return get_str(toolchain, "channel")
    return get_str(data, "channel")


def _parse_sdkmanrc(text: str, tool: str) -> str | None:
    for line in text.splitlines():
        key, sep, value = line.strip().partition("=")
        if sep and key.strip() == tool:
            value = value.strip()
            head, _, _ = value.partition(".")
            return head or None
    return None


_PARSERS: dict[FileFormat, Callable[[str, str], str | None]] = {
    FileFormat.PLAIN: _parse_plain,
    FileFormat.GO_MOD: _parse_go_mod,
    FileFormat.GLOBAL_JSON: _parse_global_json,
    FileFormat.TOOLCHAIN_TOML: _parse_toolchain_toml,
    FileFormat.SDKMANRC: _parse_sdkmanrc,
}


def parse_declaration(path: Path, tool: str) -> str | None:
    """Version declared in ``path`` for ``tool``, or None.

    The format is chosen from the file name; an unreadable file yields None.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    return _PARSERS[file_format(path.name)](text, tool)


def _walk_up(start: Path) -> Iterable[Path]:
    current = start
    while True:
        yield current
        parent = current.parent
        if parent == current:
            return
        current = parent


class ProjectDetector:
    """Finds declared versions for a set of tools."""

    def __init__(self, tools: Iterable[ToolDescriptor]) -> None:
        self._tools = {tool.name: tool for tool in tools}

    def detect_one(self, start_dir: Path, tool: str) -> DetectedVersion | None:
        descriptor = self._tools.get(tool)
        if descriptor is None:
            return None
        start = start_dir.resolve()
        for file_name in descriptor.version_files:
            for directory in _walk_up(start):
                candidate = directory / file_name
                if not candidate.is_file():
                    continue
                version = parse_declaration(candidate, tool)
                if version:
                    logger.debug("%s %s declared in %s", tool, version, candidate)
                    return DetectedVersion(tool=tool, version=version, source=candidate)
                logger.debug("%s yields no %s version, continuing", candidate, tool)
        return None

    def detect_all(self, start_dir: Path) -> list[DetectedVersion]:
        """One entry per tool with a declaration, in catalog order."""
        found: list[DetectedVersion] = []
        for name in self._tools:
            detected = self.detect_one(start_dir, name)
            if detected is not None:
                found.append(detected)
        return found
