"""Go tool definition.

Website: https://go.dev/
Downloads: https://go.dev/dl/?mode=json&include=all
"""

from __future__ import annotations

from types import MappingProxyType

from vmgr.tools.descriptor import ToolDescriptor

__all__ = ["GO"]


GO = ToolDescriptor(
    name="go",
    display_name="Go",
    version_regex=r"^\d+\.\d+(\.\d+)?$",
    # [{"version": "go1.21.5", "stable": true, ...}, ...]
    releases_url="https://go.dev/dl/?mode=json&include=all",
    version_prefix="go",
    download_url="https://go.dev/dl/go{version}.{os}-{arch}.{ext}",
    version_files=(".go-version", "go.mod"),
    env_vars=MappingProxyType({"GOROOT": "."}),
    path_dirs=("bin",),
    arch_names=MappingProxyType({"x64": "amd64"}),
)
