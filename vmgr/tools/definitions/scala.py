"""Scala 2 and Scala 3 tool definitions.

Scala 3 ships from its own repository under a different archive name, so
it is a separate tool rather than a distribution of ``scala``.

Website: https://www.scala-lang.org/
"""

from __future__ import annotations

from types import MappingProxyType

from vmgr.tools.descriptor import ToolDescriptor

__all__ = ["SCALA", "SCALA3"]


SCALA = ToolDescriptor(
    name="scala",
    display_name="Scala 2",
    version_regex=r"^\d+\.\d+\.\d+$",
    download_url="https://downloads.lightbend.com/scala/{version}/scala-{version}.{ext}",
    version_files=(".scala-version",),
    env_vars=MappingProxyType({"SCALA_HOME": "."}),
    path_dirs=("bin",),
    dependencies=("java",),
    static_versions=("2.13.15", "2.13.14", "2.12.20", "2.12.19"),
    archive_exts=MappingProxyType({"linux": "tgz", "darwin": "tgz", "windows": "zip"}),
)

SCALA3 = ToolDescriptor(
    name="scala3",
    display_name="Scala 3",
    version_regex=r"^3\.\d+\.\d+$",
    download_url="https://github.com/scala/scala3/releases/download/{version}/scala3-{version}.{ext}",
    version_files=(".scala3-version",),
    env_vars=MappingProxyType({"SCALA_HOME": "."}),
    path_dirs=("bin",),
    dependencies=("java",),
    static_versions=("3.5.2", "3.5.1", "3.4.3", "3.3.4"),
)
