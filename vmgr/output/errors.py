"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from vmgr.core.config import ConfigError
from vmgr.core.errors import (
    ErrorCode,
    PersistenceFailure,
    UnknownTool,
    VersionError,
    exit_code_for,
)
from vmgr.output.console import Style

if TYPE_CHECKING:
    from vmgr.output.console import ConsoleProtocol

__all__ = ["print_error", "print_warning", "error_exit_code"]


def print_error(error: VersionError | ConfigError, console: ConsoleProtocol) -> None:
    """Print an error and its hint (if any)."""
    match error:
        case ConfigError(message=message, path=path):
            console.error(message)
            if path is not None:
                console.print(f"hint: fix or remove {path}", Style.DIM)
            return
        case UnknownTool(tool=tool, available=available):
            console.error(f"unknown tool: {tool}")
            if available:
                console.print(f"Available: {', '.join(available)}", Style.DIM)
            return
        case _:
            console.error(error.message)

    hint = error.hint
    if hint:
        console.print(f"hint: {hint}", Style.DIM)


def print_warning(warning: PersistenceFailure, console: ConsoleProtocol) -> None:
    """Print a soft failure that did not abort the operation."""
    console.warning(warning.message)
    if warning.hint:
        console.print(f"hint: {warning.hint}", Style.DIM)


def error_exit_code(error: VersionError | ConfigError) -> int:
    """Get the process exit code for an error."""
    if isinstance(error, ConfigError):
        return int(ErrorCode.ENV_ERROR)
    return int(exit_code_for(error))
