from __future__ import annotations

import typer

from vmgr.cli.commands._helpers import exit_with_code, resolve_shell
from vmgr.cli.context import build_context
from vmgr.core.errors import ErrorCode
from vmgr.output.console import Style
from vmgr.platform.shell import Shell, integration_line


def init(
    shell: str | None = typer.Option(
        None,
        "--shell",
        "-s",
        help="bash, zsh, fish, powershell or cmd (default: detected).",
    ),
    install: bool = typer.Option(False, "--install", "-i", help="Add the line to the shell's startup file."),
) -> None:
    """Print (or install) the startup line that loads current versions in new shells."""
    ctx = build_context()
    target = resolve_shell(shell, ctx)
    line = integration_line(target)

    if not install:
        ctx.console.raw(line + target.line_ending)
        return

    if target == Shell.CMD:
        ctx.console.error("cmd has no startup file")
        ctx.console.print("hint: add the output of 'vmgr init --shell cmd' to a script you run", Style.DIM)
        exit_with_code(int(ErrorCode.USER_ERROR))

    try:
        path, changed = ctx.service.install_integration(target)
    except OSError as e:
        ctx.console.error(f"could not update startup file: {e}")
        raise typer.Exit(code=int(ErrorCode.IO_ERROR)) from e

    if changed:
        ctx.console.success(f"Added vmgr to {path}")
        ctx.console.print("Restart your terminal for changes to take effect", Style.INFO)
    else:
        ctx.console.print(f"{path} already loads vmgr", Style.DIM)
