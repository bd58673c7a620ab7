from __future__ import annotations

import typer

from vmgr.cli.commands._helpers import unwrap_or_exit
from vmgr.cli.context import CLIContext, build_context
from vmgr.output.console import Style
from vmgr.output.errors import print_warning
from vmgr.tools.activation import ActivationResult, Scope


def use(
    tool: str = typer.Argument(..., help="Tool name."),
    version: str = typer.Argument(..., help="Installed version expression (e.g. 21, 17-temurin)."),
    global_: bool = typer.Option(
        False,
        "--global",
        "-g",
        help="Persist the tool's environment variables for new shells.",
    ),
) -> None:
    """Switch the active version of a tool."""
    ctx = build_context()
    scope = Scope.PERSISTENT if global_ else Scope.SESSION
    result = unwrap_or_exit(ctx.service.use(tool, version, scope), ctx)
    print_activation(ctx, result)


def print_activation(ctx: CLIContext, result: ActivationResult) -> None:
    console = ctx.console
    console.success(f"Now using {result.tool} {result.version}")
    console.print(f"{result.alias} ({result.link_method})", Style.DIM)

    for dep in result.missing_dependencies:
        console.warning(dep.message)
        console.print(f"hint: {dep.hint}", Style.DIM)

    if result.scope == Scope.PERSISTENT:
        for name, method in result.persisted:
            console.print(f"{name} saved ({method})", Style.DIM)
        for warning in result.warnings:
            print_warning(warning, console)
        console.print("(Set globally - restart your terminal for changes to take effect)", Style.INFO)
    elif result.environment.env_vars:
        console.print('To update this shell, run: eval "$(vmgr env)"', Style.DIM)
