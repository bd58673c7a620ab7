"""Core domain types and logic."""

from .config import Config, ConfigError, config_path, load_config, load_config_or_default
from .errors import ErrorCode, VersionError, exit_code_for
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "Config",
    "ConfigError",
    "config_path",
    "load_config",
    "load_config_or_default",
    # errors
    "ErrorCode",
    "VersionError",
    "exit_code_for",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
