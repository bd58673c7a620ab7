"""Shell-specific rendering of environment exports.

Supports bash/zsh (``export``), fish (``set -gx``), PowerShell (``$env:``)
and cmd (``set``). Output is meant to be evaluated by the calling shell:

    eval "$(vmgr env --shell bash)"            # bash/zsh
    vmgr env --shell fish | source             # fish
    vmgr env --shell powershell | Invoke-Expression
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from enum import Enum
from pathlib import Path

from .detection import is_windows
from .paths import home

__all__ = [
    "MARKER_PREFIX",
    "Shell",
    "detect_shell",
    "integration_line",
    "marker_for",
    "render_assignment",
    "render_env",
    "startup_file",
]

MARKER_PREFIX = "# vmgr:"


class Shell(Enum):
    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"
    POWERSHELL = "powershell"
    CMD = "cmd"

    def __str__(self) -> str:
        return self.value

    @property
    def path_separator(self) -> str:
        if self in (Shell.POWERSHELL, Shell.CMD):
            return ";"
        return ":"

    @property
    def line_ending(self) -> str:
        return "\r\n" if self == Shell.CMD else "\n"


def detect_shell(environ: Mapping[str, str] | None = None) -> Shell:
    """Guess the invoking shell from SHELL (Unix) or PSModulePath (Windows)."""
    env = os.environ if environ is None else environ
    shell = env.get("SHELL", "")
    if "zsh" in shell:
        return Shell.ZSH
    if "fish" in shell:
        return Shell.FISH
    if "bash" in shell:
        return Shell.BASH
    if is_windows():
        return Shell.POWERSHELL if env.get("PSModulePath") else Shell.CMD
    return Shell.BASH


def startup_file(shell: Shell, home_dir: Path | None = None) -> Path:
    """Per-user startup file read by ``shell`` on login."""
    base = home() if home_dir is None else home_dir
    match shell:
        case Shell.ZSH:
            return base / ".zshrc"
        case Shell.BASH:
            return base / ".bashrc"
        case Shell.FISH:
            return base / ".config" / "fish" / "config.fish"
        case Shell.POWERSHELL:
            return base / "Documents" / "PowerShell" / "Microsoft.PowerShell_profile.ps1"
        case Shell.CMD:
            # cmd has no startup file; registry AutoRun is out of reach
            return base / ".profile"


def _quote_posix(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$")
    return f'"{escaped}"'


def _quote_ps(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def render_assignment(shell: Shell, name: str, value: str) -> str:
    """Render one ``name=value`` assignment in the shell's syntax."""
    match shell:
        case Shell.BASH | Shell.ZSH:
            return f"export {name}={_quote_posix(value)}"
        case Shell.FISH:
            return f"set -gx {name} {_quote_posix(value)}"
        case Shell.POWERSHELL:
            return f"$env:{name} = {_quote_ps(value)}"
        case Shell.CMD:
            return f'set "{name}={value}"'


def _render_path_prefix(shell: Shell, dirs: Sequence[Path]) -> str:
    joined = shell.path_separator.join(str(d) for d in dirs)
    match shell:
        case Shell.BASH | Shell.ZSH:
            return f'export PATH={_quote_posix(joined)}:"$PATH"'
        case Shell.FISH:
            return "set -gx PATH " + " ".join(_quote_posix(str(d)) for d in dirs) + " $PATH"
        case Shell.POWERSHELL:
            return f"$env:PATH = {_quote_ps(joined + ';')} + $env:PATH"
        case Shell.CMD:
            return f'set "PATH={joined};%PATH%"'


def render_env(
    shell: Shell,
    env_vars: Mapping[str, str],
    path_dirs: Sequence[Path],
) -> str:
    """Render env assignments followed by one PATH prefix line.

    Args:
        shell: Target shell
        env_vars: Variables to set, rendered in sorted order
        path_dirs: Directories to prepend to PATH, first wins

    Returns:
        Script text with the shell's line endings (empty if nothing to set)
    """
    lines = [render_assignment(shell, key, value) for key, value in sorted(env_vars.items())]
    if path_dirs:
        lines.append(_render_path_prefix(shell, path_dirs))
    if not lines:
        return ""
    eol = shell.line_ending
    return eol.join(lines) + eol


def integration_line(shell: Shell) -> str:
    """Startup-file line that evaluates ``vmgr env`` in every new shell."""
    match shell:
        case Shell.BASH | Shell.ZSH:
            return f'eval "$(vmgr env --shell {shell})"'
        case Shell.FISH:
            return "vmgr env --shell fish | source"
        case Shell.POWERSHELL:
            return "vmgr env --shell powershell | Out-String | Invoke-Expression"
        case Shell.CMD:
            return 'for /f "usebackq delims=" %%i in (`vmgr env --shell cmd`) do @%%i'


def marker_for(name: str) -> str:
    """Comment line that guards one variable's startup-file entry."""
    return f"{MARKER_PREFIX} {name}"
