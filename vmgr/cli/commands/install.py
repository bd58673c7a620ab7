from __future__ import annotations

import typer

from vmgr.cli.commands._helpers import unwrap_or_exit
from vmgr.cli.context import build_context
from vmgr.output.console import Style


def install(
    tool: str = typer.Argument(..., help="Tool name (e.g. java, node, go)."),
    version: str = typer.Argument(..., help="Version expression: 21, 20.11, 1.21.*, 21-tem, 17.0.9."),
) -> None:
    """Download and install a tool version."""
    ctx = build_context()
    outcome = unwrap_or_exit(ctx.service.install(tool, version), ctx)

    ctx.console.success(f"Installed {outcome.tool} {outcome.resolved.key}")
    ctx.console.print(f"location: {outcome.path}", Style.DIM)
    if outcome.fetch.attempts > 1:
        resumed = " (resumed)" if outcome.fetch.resumed else ""
        ctx.console.print(f"downloaded in {outcome.fetch.attempts} attempts{resumed}", Style.DIM)
    if not outcome.verified:
        ctx.console.print("checksum: not published, download not verified", Style.DIM)
    ctx.console.print(f"Run: vmgr use {outcome.tool} {outcome.resolved.key}", Style.INFO)


def uninstall(
    tool: str = typer.Argument(..., help="Tool name."),
    version: str = typer.Argument(..., help="Installed version to remove."),
) -> None:
    """Remove an installed tool version."""
    ctx = build_context()
    removed = unwrap_or_exit(ctx.service.uninstall(tool, version), ctx)
    ctx.console.success(f"Removed {tool} {removed.name}")
