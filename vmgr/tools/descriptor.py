"""Tool descriptors: immutable, data-only description of a managed tool.

A descriptor says where releases are listed, how to validate a version,
how to build the download URL for each distribution, how the artifact is
unpacked, and which environment variables and PATH entries an active
version contributes. Descriptors are built once by the catalog and never
mutated.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

from .matcher import ResolvedVersion, normalize_distribution

if TYPE_CHECKING:
    from vmgr.platform.detection import PlatformInfo

__all__ = [
    "Distribution",
    "DownloadType",
    "ToolDescriptor",
    "expand_template",
]

_NAME = re.compile(r"^[a-z][a-z0-9_-]*$")


class DownloadType(Enum):
    """How a downloaded artifact becomes an install directory."""

    ARCHIVE = "archive"
    FILE = "file"

    def __str__(self) -> str:
        return self.value


def _empty_map() -> Mapping[str, str]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class Distribution:
    """Named vendor build of the same nominal version (e.g. Temurin).

    ``os_names`` and ``arch_names`` override the descriptor's spellings for
    this vendor only.
    """

    key: str
    display_name: str
    download_url: str
    os_names: Mapping[str, str] = field(default_factory=_empty_map)
    arch_names: Mapping[str, str] = field(default_factory=_empty_map)


def _empty_dists() -> Mapping[str, Distribution]:
    return MappingProxyType({})


def expand_template(
    template: str,
    version: str,
    platform: PlatformInfo | None = None,
    *,
    os_names: Mapping[str, str] | None = None,
    arch_names: Mapping[str, str] | None = None,
    archive_exts: Mapping[str, str] | None = None,
) -> str:
    """Substitute URL placeholders.

    ``{version}`` and ``{majorVersion}`` always; ``{os}``, ``{arch}``, ``{ext}``
    and ``{exe}`` only when a platform is given (descriptor maps translate the
    generic tokens to the vendor's spelling).
    """
    url = template.replace("{version}", version)
    url = url.replace("{majorVersion}", version.split(".")[0])
    if platform is not None:
        os_token = platform.platform.token
        arch_token = platform.arch.token
        url = url.replace("{os}", (os_names or {}).get(os_token, os_token))
        url = url.replace("{arch}", (arch_names or {}).get(arch_token, arch_token))
        default_ext = "zip" if platform.is_windows else "tar.gz"
        url = url.replace("{ext}", (archive_exts or {}).get(os_token, default_ext))
        url = url.replace("{exe}", platform.platform.exe_suffix)
    return url


@dataclass(frozen=True, slots=True)
class ToolDescriptor:
    """Immutable tool metadata.

    Attributes:
        name: Catalog key and directory name (e.g. "java", "node")
        display_name: Human-readable name
        version_regex: Validation rule for concrete versions ("" accepts all)
        releases_url: JSON endpoint listing versions ("" means static only)
        version_field: Field holding the version in listed objects
        version_prefix: Prefix stripped from listed versions (e.g. "go")
        download_url: URL template used when no distribution applies
        download_type: Archive to extract or single file to place
        version_files: Declaration files, in search order
        env_vars: Variable name -> path relative to the install root
        path_dirs: Directories (relative to the install root) for PATH
        dependencies: Tools that must also be installed
        distributions: Vendor variants keyed by canonical name
        default_distribution: Distribution used when none is requested
        static_versions: Versions listed even if the endpoint omits them
        checksum_url: Template for a published SHA-256 ("" if none)
        os_names: Generic OS token -> vendor spelling for ``{os}``
        arch_names: Generic arch token -> vendor spelling for ``{arch}``
        archive_exts: OS token -> archive extension for ``{ext}``
    """

    name: str
    display_name: str = ""
    version_regex: str = ""
    releases_url: str = ""
    version_field: str = "version"
    version_prefix: str = ""
    download_url: str = ""
    download_type: DownloadType = DownloadType.ARCHIVE
    version_files: tuple[str, ...] = ()
    env_vars: Mapping[str, str] = field(default_factory=_empty_map)
    path_dirs: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    distributions: Mapping[str, Distribution] = field(default_factory=_empty_dists)
    default_distribution: str = ""
    static_versions: tuple[str, ...] = ()
    checksum_url: str = ""
    os_names: Mapping[str, str] = field(default_factory=_empty_map)
    arch_names: Mapping[str, str] = field(default_factory=_empty_map)
    archive_exts: Mapping[str, str] = field(default_factory=_empty_map)

    def __post_init__(self) -> None:
        if not _NAME.match(self.name):
            raise ValueError(f"Tool name must be lowercase (letters, digits, - or _): {self.name!r}")
        if self.name == "current":
            raise ValueError("'current' is reserved for the active-version alias")
        if self.version_regex:
            try:
                re.compile(self.version_regex)
            except re.error as e:
                raise ValueError(f"{self.name}: invalid versionRegex: {e}") from e
        if self.default_distribution and self.default_distribution not in self.distributions:
            raise ValueError(
                f"{self.name}: default distribution {self.default_distribution!r} is not declared"
            )
        if not self.download_url and not self.distributions:
            raise ValueError(f"{self.name}: a download URL or at least one distribution is required")

    @property
    def title(self) -> str:
        return self.display_name or self.name

    def validate(self, version: str) -> bool:
        """Check a concrete version against ``version_regex``."""
        if not self.version_regex:
            return True
        pattern = re.compile(self.version_regex)
        return bool(pattern.search(version) or pattern.search("v" + version))

    def pick_distribution(self, requested: str = "") -> Distribution | None:
        """Distribution for ``requested`` (alias-normalised), else the default.

        Falls back to the first declared distribution when no default is
        configured. None when the tool has no distributions or the requested
        one is unknown.
        """
        if not self.distributions:
            return None
        key = normalize_distribution(requested) if requested else ""
        if not key:
            key = self.default_distribution or next(iter(self.distributions))
        return self.distributions.get(key)

    def supports_distribution(self, requested: str) -> bool:
        """True when ``requested`` is empty or names a declared distribution."""
        if not requested:
            return True
        return normalize_distribution(requested) in self.distributions

    def distribution_display_name(self, requested: str) -> str:
        dist = self.pick_distribution(requested)
        if dist is None:
            return normalize_distribution(requested)
        return dist.display_name

    def url_for(self, resolved: ResolvedVersion, platform: PlatformInfo | None = None) -> str:
        """Download URL for a resolved version.

        Unknown distributions fall back to the plain ``download_url``.
        """
        dist = self.pick_distribution(resolved.distribution)
        if dist is None:
            return self._expand(self.download_url, resolved.version, platform)
        return self._expand(
            dist.download_url,
            resolved.version,
            platform,
            os_names={**self.os_names, **dist.os_names},
            arch_names={**self.arch_names, **dist.arch_names},
        )

    def checksum_url_for(
        self, resolved: ResolvedVersion, platform: PlatformInfo | None = None
    ) -> str | None:
        if not self.checksum_url:
            return None
        return self._expand(self.checksum_url, resolved.version, platform)

    def _expand(
        self,
        template: str,
        version: str,
        platform: PlatformInfo | None,
        *,
        os_names: Mapping[str, str] | None = None,
        arch_names: Mapping[str, str] | None = None,
    ) -> str:
        return expand_template(
            template,
            version,
            platform,
            os_names=self.os_names if os_names is None else os_names,
            arch_names=self.arch_names if arch_names is None else arch_names,
            archive_exts=self.archive_exts,
        )
