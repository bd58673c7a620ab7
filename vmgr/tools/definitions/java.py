"""Java (JDK) tool definition.

Three vendor builds of the same nominal version: Eclipse Temurin (default),
Amazon Corretto and GraalVM Community. ``21-tem``, ``21-amzn`` and
``21-graal`` select them.

Website: https://adoptium.net/
API: https://api.adoptium.net/v3/
"""

from __future__ import annotations

from types import MappingProxyType

from vmgr.tools.descriptor import Distribution, ToolDescriptor

__all__ = ["JAVA"]


# Adoptium and Corretto serve "latest for this major" directly
_TEMURIN = Distribution(
    key="temurin",
    display_name="Eclipse Temurin",
    download_url=(
        "https://api.adoptium.net/v3/binary/latest/{majorVersion}/ga/{os}/{arch}/jdk/hotspot/normal/eclipse"
    ),
    os_names=MappingProxyType({"darwin": "mac"}),
    arch_names=MappingProxyType({"arm64": "aarch64"}),
)

_CORRETTO = Distribution(
    key="corretto",
    display_name="Amazon Corretto",
    download_url="https://corretto.aws/downloads/latest/amazon-corretto-{majorVersion}-{arch}-{os}-jdk.{ext}",
    os_names=MappingProxyType({"darwin": "macos"}),
    arch_names=MappingProxyType({"arm64": "aarch64"}),
)

_GRAALCE = Distribution(
    key="graalce",
    display_name="GraalVM Community",
    download_url=(
        "https://github.com/graalvm/graalvm-ce-builds/releases/download/"
        "jdk-{version}/graalvm-community-jdk-{version}_{os}-{arch}_bin.{ext}"
    ),
    os_names=MappingProxyType({"darwin": "macos"}),
    arch_names=MappingProxyType({"arm64": "aarch64"}),
)

JAVA = ToolDescriptor(
    name="java",
    display_name="Java (JDK)",
    version_regex=r"^\d+(\.\d+(\.\d+)?)?$",
    # {"available_releases": [8, 11, 17, 21, ...]}
    releases_url="https://api.adoptium.net/v3/info/available_releases",
    version_files=(".java-version", ".sdkmanrc"),
    env_vars=MappingProxyType({"JAVA_HOME": "."}),
    path_dirs=("bin",),
    distributions=MappingProxyType(
        {dist.key: dist for dist in (_TEMURIN, _CORRETTO, _GRAALCE)}
    ),
    default_distribution="temurin",
)
