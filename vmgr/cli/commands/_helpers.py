"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from vmgr.core.errors import ErrorCode
from vmgr.core.result import Err, Result
from vmgr.output.errors import error_exit_code, print_error
from vmgr.platform.shell import Shell, detect_shell

if TYPE_CHECKING:
    from vmgr.cli.context import CLIContext
    from vmgr.core.errors import VersionError


T = TypeVar("T")


def unwrap_or_exit[T](result: Result[T, VersionError], ctx: CLIContext) -> T:
    """Return the Ok value, or print the error and exit with its code.

    Replaces the common pattern:
        if isinstance(result, Err):
            print_error(result.error, ctx.console)
            raise typer.Exit(code=error_exit_code(result.error))
        value = result.value
    """
    if isinstance(result, Err):
        print_error(result.error, ctx.console)
        raise typer.Exit(code=error_exit_code(result.error))
    return result.value


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)


def resolve_shell(value: str | None, ctx: CLIContext) -> Shell:
    """Parse a --shell option, falling back to the detected shell."""
    if value is None:
        return detect_shell()
    try:
        return Shell(value.lower())
    except ValueError:
        choices = ", ".join(s.value for s in Shell)
        ctx.console.error(f"unknown shell: {value} (choose from {choices})")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
