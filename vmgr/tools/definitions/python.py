"""Python tool definition.

Uses the python.org embeddable zip, which only exists for Windows. Other
platforms should point a user definition at their preferred build.

Website: https://www.python.org/
API: https://www.python.org/api/v2/downloads/release/
"""

from __future__ import annotations

from types import MappingProxyType

from vmgr.tools.descriptor import ToolDescriptor

__all__ = ["PYTHON"]


PYTHON = ToolDescriptor(
    name="python",
    display_name="Python",
    version_regex=r"^\d+\.\d+(\.\d+)?$",
    # [{"name": "Python 3.12.1", ...}]; pre-releases fail the regex
    releases_url="https://www.python.org/api/v2/downloads/release/?is_published=true",
    version_field="name",
    version_prefix="Python ",
    download_url="https://www.python.org/ftp/python/{version}/python-{version}-embed-{arch}.zip",
    version_files=(".python-version",),
    env_vars=MappingProxyType({"PYTHON_HOME": "."}),
    path_dirs=(".", "Scripts"),
    arch_names=MappingProxyType({"x64": "amd64"}),
)
