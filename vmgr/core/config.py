"""Typed configuration loading and access.

This module provides dataclasses for the config.toml structure:

    [paths]
    root = "~/.vmgr/versions"     # <root>/<tool>/<version>/ and <root>/<tool>/current
    sources = "~/.vmgr/sources"   # user JSON tool definitions
    cache = "~/.vmgr/cache"       # partial and completed downloads

    [download]
    max_retries = 3
    retry_delay = 2.0
    timeout = 30.0
    verify_checksums = true

    [shell]
    startup_file = "~/.bashrc"
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from vmgr.platform.paths import home, user_config_dir

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_float, get_int, get_str, get_table

__all__ = [
    "Config",
    "ConfigError",
    "DownloadConfig",
    "PathsConfig",
    "ShellConfig",
    "config_path",
    "load_config",
    "load_config_or_default",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_DELAY",
    "DEFAULT_TIMEOUT",
]

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 2.0
DEFAULT_TIMEOUT = 30.0

CONFIG_ENV = "VMGR_CONFIG"
ROOT_ENV = "VMGR_ROOT"


def _base_dir() -> Path:
    return home() / ".vmgr"


def _expand(raw: str) -> Path:
    return Path(os.path.expandvars(raw)).expanduser()


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class PathsConfig:
    root: Path = field(default_factory=lambda: _base_dir() / "versions")
    sources: Path = field(default_factory=lambda: _base_dir() / "sources")
    cache: Path = field(default_factory=lambda: _base_dir() / "cache")

    @property
    def state_file(self) -> Path:
        """Secondary record of current versions."""
        return self.root / "state.json"

    @property
    def shim_dir(self) -> Path:
        return self.root.parent / "bin"


@dataclass(frozen=True, slots=True)
class DownloadConfig:
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    timeout: float = DEFAULT_TIMEOUT
    verify_checksums: bool = True


@dataclass(frozen=True, slots=True)
class ShellConfig:
    startup_file: Path | None = None


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    download: DownloadConfig = field(default_factory=DownloadConfig)
    shell: ShellConfig = field(default_factory=ShellConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        paths: StrDict = get_table(data, "paths") or {}
        download: StrDict = get_table(data, "download") or {}
        shell: StrDict = get_table(data, "shell") or {}

        defaults = PathsConfig()
        root = get_str(paths, "root")
        sources = get_str(paths, "sources")
        cache = get_str(paths, "cache")

        max_retries = get_int(download, "max_retries")
        if max_retries is not None and max_retries < 0:
            raise ValueError("download.max_retries must be >= 0")
        retry_delay = get_float(download, "retry_delay")
        if retry_delay is not None and retry_delay < 0:
            raise ValueError("download.retry_delay must be >= 0")

        startup = get_str(shell, "startup_file")

        return cls(
            paths=PathsConfig(
                root=_expand(root) if root else defaults.root,
                sources=_expand(sources) if sources else defaults.sources,
                cache=_expand(cache) if cache else defaults.cache,
            ),
            download=DownloadConfig(
                max_retries=DEFAULT_MAX_RETRIES if max_retries is None else max_retries,
                retry_delay=DEFAULT_RETRY_DELAY if retry_delay is None else retry_delay,
                timeout=get_float(download, "timeout") or DEFAULT_TIMEOUT,
                verify_checksums=(
                    True
                    if get_bool(download, "verify_checksums") is None
                    else bool(get_bool(download, "verify_checksums"))
                ),
            ),
            shell=ShellConfig(startup_file=_expand(startup) if startup else None),
        )

    def with_env_overrides(self, environ: Mapping[str, str] | None = None) -> Config:
        """Apply VMGR_ROOT on top of the file values."""
        env = os.environ if environ is None else environ
        root = env.get(ROOT_ENV, "").strip()
        if not root:
            return self
        return replace(self, paths=replace(self.paths, root=_expand(root)))


def config_path(environ: Mapping[str, str] | None = None) -> Path:
    """Location of config.toml (VMGR_CONFIG wins over the user config dir)."""
    env = os.environ if environ is None else environ
    override = env.get(CONFIG_ENV, "").strip()
    if override:
        return _expand(override)
    return user_config_dir() / "config.toml"


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling import and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to config.toml file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config, using defaults when the file does not exist.

    A file that exists but cannot be parsed is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
