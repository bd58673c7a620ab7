from __future__ import annotations

import typer

from vmgr.cli.commands._helpers import unwrap_or_exit
from vmgr.cli.context import CLIContext, build_context
from vmgr.output.console import Style


def list_versions(
    tool: str | None = typer.Argument(None, help="Tool name (omit to list available tools)."),
    remote: bool = typer.Option(False, "--remote", "-r", help="List versions available for download."),
    limit: int = typer.Option(20, "--limit", "-n", help="Max remote versions to show (0 = all)."),
) -> None:
    """List tools, installed versions, or remote versions."""
    ctx = build_context()

    if tool is None:
        _list_tools(ctx)
        return

    if remote:
        versions = unwrap_or_exit(ctx.service.list_remote(tool), ctx)
        shown = versions if limit <= 0 else versions[:limit]
        ctx.console.header(f"{tool} (available)")
        for version in shown:
            ctx.console.print(f"  {version}")
        if len(shown) < len(versions):
            ctx.console.print(f"  ... {len(versions) - len(shown)} more (use --limit 0)", Style.DIM)
        return

    installed = unwrap_or_exit(ctx.service.list_installed(tool), ctx)
    if not installed:
        ctx.console.print(f"No {tool} versions installed", Style.DIM)
        ctx.console.print(f"Run: vmgr install {tool} <version>", Style.DIM)
        return
    ctx.console.header(f"{tool} (installed)")
    for item in installed:
        if item.current:
            ctx.console.print(f"* {item.key}", Style.SUCCESS)
        else:
            ctx.console.print(f"  {item.key}")


def _list_tools(ctx: CLIContext) -> None:
    active = ctx.service.current_all()
    ctx.console.header("Tools")
    for tool in ctx.catalog.all():
        count = len(ctx.service.store.list_installed(tool.name))
        line = f"{tool.name:<8} {tool.title}"
        if count:
            line += f" ({count} installed"
            line += f", current {active[tool.name]})" if tool.name in active else ")"
            ctx.console.print(line, Style.SUCCESS if tool.name in active else Style.DEFAULT)
        else:
            ctx.console.print(line, Style.DIM)
