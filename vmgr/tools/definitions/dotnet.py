""".NET SDK tool definition.

Website: https://dotnet.microsoft.com/
"""

from __future__ import annotations

from types import MappingProxyType

from vmgr.tools.descriptor import ToolDescriptor

__all__ = ["DOTNET"]


DOTNET = ToolDescriptor(
    name="dotnet",
    display_name=".NET SDK",
    version_regex=r"^\d+\.\d+(\.\d+)?$",
    download_url="https://builds.dotnet.microsoft.com/dotnet/Sdk/{version}/dotnet-sdk-{version}-{os}-{arch}.{ext}",
    version_files=("global.json",),
    env_vars=MappingProxyType({"DOTNET_ROOT": "."}),
    path_dirs=(".",),
    static_versions=("9.0.100", "8.0.404", "8.0.303", "6.0.428"),
    os_names=MappingProxyType({"windows": "win", "darwin": "osx"}),
)
