"""Node.js tool definition.

Official builds from nodejs.org. The Windows zip keeps ``node.exe`` at the
archive root while POSIX tarballs use ``bin/``, so both are put on PATH.

Website: https://nodejs.org/
Index: https://nodejs.org/dist/index.json
"""

from __future__ import annotations

from types import MappingProxyType

from vmgr.tools.descriptor import ToolDescriptor

__all__ = ["NODE"]


NODE = ToolDescriptor(
    name="node",
    display_name="Node.js",
    version_regex=r"^v?\d+(\.\d+(\.\d+)?)?$",
    # [{"version": "v20.10.0", "lts": "Iron", ...}, ...]
    releases_url="https://nodejs.org/dist/index.json",
    download_url="https://nodejs.org/dist/v{version}/node-v{version}-{os}-{arch}.{ext}",
    checksum_url="https://nodejs.org/dist/v{version}/SHASUMS256.txt",
    version_files=(".nvmrc", ".node-version"),
    path_dirs=(".", "bin"),
    os_names=MappingProxyType({"windows": "win"}),
    archive_exts=MappingProxyType({"linux": "tar.xz", "darwin": "tar.gz", "windows": "zip"}),
)
