"""Output abstraction layer."""

from .console import (
    ConsoleProtocol,
    MockConsole,
    RichConsole,
    RichProgressSink,
    Style,
    setup_logging,
)

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "RichConsole",
    "RichProgressSink",
    "Style",
    "setup_logging",
]
