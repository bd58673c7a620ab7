from __future__ import annotations

import json
from pathlib import Path

import typer

from vmgr.cli.commands._helpers import exit_with_code
from vmgr.cli.commands.use import print_activation
from vmgr.cli.context import build_context
from vmgr.core.errors import ErrorCode
from vmgr.core.result import Err
from vmgr.output.console import Style
from vmgr.output.errors import print_error
from vmgr.tools.activation import Scope


def detect(
    path: Path = typer.Argument(Path("."), help="Directory to search from (walks up to the root)."),
    apply: bool = typer.Option(False, "--apply", "-a", help="Switch to every detected version."),
    as_json: bool = typer.Option(False, "--json", help="Print detections as JSON."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print errors."),
    global_: bool = typer.Option(False, "--global", "-g", help="With --apply: persist the environment."),
) -> None:
    """Find version files (.nvmrc, .java-version, go.mod, ...) for the project."""
    ctx = build_context()
    start = path.expanduser().resolve()
    found = ctx.service.detect(start)

    if as_json:
        ctx.console.raw(json.dumps([d.as_dict() for d in found], indent=2) + "\n")
    elif not quiet:
        if not found:
            ctx.console.print(f"No version files found from {start}", Style.DIM)
        else:
            ctx.console.header("Detected versions")
            for item in found:
                ctx.console.print(f"{item.tool}: {item.version} (from {item.source})")

    if not apply:
        return

    scope = Scope.PERSISTENT if global_ else Scope.SESSION
    failed = False
    for applied in ctx.service.apply_detected(found, scope):
        if isinstance(applied.result, Err):
            failed = True
            print_error(applied.result.error, ctx.console)
            continue
        if not quiet:
            print_activation(ctx, applied.result.value)

    if failed:
        exit_with_code(int(ErrorCode.USER_ERROR))
