"""Ruby tool definition.

Prebuilt toolcache tarballs from ruby/ruby-builder (the builds behind
``setup-ruby``). Gems install under the version directory.

GitHub: https://github.com/ruby/ruby-builder
"""

from __future__ import annotations

from types import MappingProxyType

from vmgr.tools.descriptor import ToolDescriptor

__all__ = ["RUBY"]


RUBY = ToolDescriptor(
    name="ruby",
    display_name="Ruby",
    version_regex=r"^\d+\.\d+\.\d+$",
    download_url="https://github.com/ruby/ruby-builder/releases/download/toolcache/ruby-{version}-{os}.tar.gz",
    version_files=(".ruby-version",),
    env_vars=MappingProxyType({"GEM_HOME": "gems", "GEM_PATH": "gems"}),
    path_dirs=("bin", "gems/bin"),
    static_versions=("3.3.6", "3.3.5", "3.2.6", "3.2.5", "3.1.6"),
    os_names=MappingProxyType({"linux": "ubuntu-22.04", "darwin": "macos-latest"}),
)
