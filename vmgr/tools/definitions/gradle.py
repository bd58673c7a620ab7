"""Gradle tool definition.

Website: https://gradle.org/
API: https://services.gradle.org/versions/all
"""

from __future__ import annotations

from types import MappingProxyType

from vmgr.tools.descriptor import ToolDescriptor

__all__ = ["GRADLE"]


GRADLE = ToolDescriptor(
    name="gradle",
    display_name="Gradle",
    # Excludes snapshots, milestones and release candidates
    version_regex=r"^\d+\.\d+(\.\d+)?$",
    releases_url="https://services.gradle.org/versions/all",
    download_url="https://services.gradle.org/distributions/gradle-{version}-bin.zip",
    checksum_url="https://services.gradle.org/distributions/gradle-{version}-bin.zip.sha256",
    version_files=(".gradle-version",),
    env_vars=MappingProxyType({"GRADLE_HOME": "."}),
    path_dirs=("bin",),
    dependencies=("java",),
)
