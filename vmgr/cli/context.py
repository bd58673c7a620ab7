from __future__ import annotations

from dataclasses import dataclass

import typer

from vmgr.core.config import Config, config_path, load_config_or_default
from vmgr.core.result import Err
from vmgr.output.console import ConsoleProtocol, RichConsole, RichProgressSink
from vmgr.output.errors import error_exit_code, print_error
from vmgr.platform.detection import PlatformInfo, detect
from vmgr.services.versions import VersionService
from vmgr.tools.catalog import ToolCatalog, load_catalog


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    platform: PlatformInfo
    catalog: ToolCatalog
    console: ConsoleProtocol
    service: VersionService


def build_context() -> CLIContext:
    console = RichConsole()

    config_result = load_config_or_default(config_path())
    if isinstance(config_result, Err):
        print_error(config_result.error, console)
        raise typer.Exit(code=error_exit_code(config_result.error))
    config = config_result.value.with_env_overrides()

    catalog, issues = load_catalog(config.paths.sources)
    for issue in issues:
        console.warning(issue.message)

    platform = detect()
    service = VersionService(
        config=config,
        catalog=catalog,
        platform=platform,
        sink_factory=lambda description: RichProgressSink(console, description),
    )

    return CLIContext(
        config=config,
        platform=platform,
        catalog=catalog,
        console=console,
        service=service,
    )
