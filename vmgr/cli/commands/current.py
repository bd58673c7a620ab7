from __future__ import annotations

import typer

from vmgr.cli.commands._helpers import exit_with_code, unwrap_or_exit
from vmgr.cli.context import build_context
from vmgr.core.errors import ErrorCode
from vmgr.output.console import Style


def current(
    tool: str | None = typer.Argument(None, help="Tool name (omit for every tool)."),
) -> None:
    """Show the active version of one tool or of all tools."""
    ctx = build_context()

    if tool is not None:
        key = unwrap_or_exit(ctx.service.current(tool), ctx)
        if key is None:
            ctx.console.print(f"No {tool} version set", Style.DIM)
            exit_with_code(int(ErrorCode.USER_ERROR))
        ctx.console.print(key)
        return

    active = ctx.service.current_all()
    if not active:
        ctx.console.print("No versions set", Style.DIM)
        return
    for name, key in active.items():
        ctx.console.print(f"{name}: {key}")


def which(
    tool: str = typer.Argument(..., help="Tool name."),
) -> None:
    """Print the path of the active version."""
    ctx = build_context()
    path = unwrap_or_exit(ctx.service.which(tool), ctx)
    if path is None:
        ctx.console.print(f"No {tool} version set", Style.DIM)
        exit_with_code(int(ErrorCode.USER_ERROR))
    ctx.console.raw(f"{path}\n")
