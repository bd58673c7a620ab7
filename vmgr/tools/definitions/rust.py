"""Rust tool definition.

Installs ``rustup-init`` as a single file; running it populates the
``rustup`` and ``cargo`` homes inside the version directory. Channels
(``stable``, ``beta``, ``nightly-2024-01-01``) are valid versions.

Website: https://rustup.rs/
"""

from __future__ import annotations

from types import MappingProxyType

from vmgr.tools.descriptor import DownloadType, ToolDescriptor

__all__ = ["RUST"]


RUST = ToolDescriptor(
    name="rust",
    display_name="Rust",
    version_regex=r"^(stable|beta|nightly(-\d{4}-\d{2}-\d{2})?|\d+\.\d+\.\d+)$",
    download_url="https://static.rust-lang.org/rustup/dist/{arch}-{os}/rustup-init{exe}",
    download_type=DownloadType.FILE,
    version_files=("rust-toolchain.toml", "rust-toolchain"),
    env_vars=MappingProxyType({"RUSTUP_HOME": "rustup", "CARGO_HOME": "cargo"}),
    path_dirs=("cargo/bin",),
    static_versions=("stable", "beta", "nightly"),
    os_names=MappingProxyType(
        {"linux": "unknown-linux-gnu", "darwin": "apple-darwin", "windows": "pc-windows-msvc"}
    ),
    arch_names=MappingProxyType({"x64": "x86_64", "arm64": "aarch64"}),
)
