from __future__ import annotations

import typer

from vmgr.cli.commands._helpers import resolve_shell
from vmgr.cli.context import build_context


def env(
    shell: str | None = typer.Option(
        None,
        "--shell",
        "-s",
        help="bash, zsh, fish, powershell or cmd (default: detected).",
    ),
) -> None:
    """Print shell commands that activate every current version.

    Usage: eval "$(vmgr env)"  or  vmgr env --shell powershell | Invoke-Expression
    """
    ctx = build_context()
    target = resolve_shell(shell, ctx)
    ctx.console.raw(ctx.service.env_exports(target))
