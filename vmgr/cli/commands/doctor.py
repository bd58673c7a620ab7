from __future__ import annotations

import typer

from vmgr.cli.context import CLIContext, build_context
from vmgr.core.errors import ErrorCode
from vmgr.output.console import Style
from vmgr.services.doctor import CheckResult, CheckStatus, DoctorService


def doctor() -> None:
    """Check the vmgr setup and suggest fixes."""
    ctx = build_context()

    service = DoctorService(config=ctx.config, catalog=ctx.catalog, store=ctx.service.store)
    report = service.run()

    ctx.console.print(f"root: {ctx.config.paths.root}", Style.DIM)
    ctx.console.print(f"platform: {ctx.platform}", Style.DIM)

    for title, results in report.groups():
        if results:
            _print_group(ctx, title, results)

    issues = report.issue_count()
    ctx.console.newline()
    if issues:
        ctx.console.warning(f"{issues} issue(s) found")
    else:
        ctx.console.success("No issues found")

    if report.has_errors():
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))


def _print_group(ctx: CLIContext, title: str, results: list[CheckResult]) -> None:
    console = ctx.console
    console.header(title)
    for r in results:
        console.print(f"{r.name}: {r.message}", _style_for_status(r.status))
        if r.hint and r.status != CheckStatus.OK:
            console.print(f"hint: {r.hint}", Style.DIM)


def _style_for_status(status: CheckStatus) -> Style:
    if status == CheckStatus.OK:
        return Style.SUCCESS
    if status == CheckStatus.WARNING:
        return Style.WARNING
    return Style.ERROR
