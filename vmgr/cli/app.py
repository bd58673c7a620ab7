from __future__ import annotations

import typer

from vmgr import __version__
from vmgr.cli.commands.current import current, which
from vmgr.cli.commands.detect_cmd import detect
from vmgr.cli.commands.doctor import doctor
from vmgr.cli.commands.env_cmd import env
from vmgr.cli.commands.init_cmd import init
from vmgr.cli.commands.install import install, uninstall
from vmgr.cli.commands.list_cmd import list_versions
from vmgr.cli.commands.use import use
from vmgr.output.console import setup_logging


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Install and switch between versions of language runtimes and build tools.",
)


# Commands
app.command()(install)
app.command()(uninstall)
app.command()(use)
app.command()(current)
app.command()(which)
app.command("list")(list_versions)
app.command()(env)
app.command()(init)
app.command()(detect)
app.command()(doctor)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_print_version,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug details to stderr."),
) -> None:
    setup_logging(verbose=verbose)


def main() -> None:
    app()
