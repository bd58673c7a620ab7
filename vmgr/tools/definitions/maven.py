"""Apache Maven tool definition.

Platform-independent archive; needs a JDK to run.

Website: https://maven.apache.org/
Download: https://maven.apache.org/download.cgi
"""

from __future__ import annotations

from types import MappingProxyType

from vmgr.tools.descriptor import ToolDescriptor

__all__ = ["MAVEN"]


MAVEN = ToolDescriptor(
    name="maven",
    display_name="Apache Maven",
    version_regex=r"^\d+\.\d+\.\d+$",
    # archive.apache.org keeps every release (dlcdn only the latest)
    download_url="https://archive.apache.org/dist/maven/maven-3/{version}/binaries/apache-maven-{version}-bin.{ext}",
    version_files=(".maven-version",),
    env_vars=MappingProxyType({"M2_HOME": ".", "MAVEN_HOME": "."}),
    path_dirs=("bin",),
    dependencies=("java",),
    static_versions=("3.9.9", "3.9.8", "3.9.6", "3.8.8"),
)
