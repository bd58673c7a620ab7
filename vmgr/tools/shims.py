"""Wrapper scripts in one shared bin directory.

Putting ``<shim_dir>`` on PATH once is enough to reach every active tool:
each wrapper forwards to the executable through the ``current`` alias.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

__all__ = ["write_shims"]

logger = logging.getLogger(__name__)

_WINDOWS_EXTS = (".exe", ".cmd", ".bat")


def _is_executable(path: Path, windows: bool) -> bool:
    if not path.is_file():
        return False
    if windows:
        return path.suffix.lower() in _WINDOWS_EXTS
    return os.access(path, os.X_OK)


def write_shims(shim_dir: Path, bin_dirs: list[Path], *, windows: bool) -> list[Path]:
    """Write one wrapper per executable found in ``bin_dirs``.

    Failures are logged and skipped.

    Returns:
        Paths of the wrappers written
    """
    written: list[Path] = []
    try:
        shim_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning("cannot create shim directory %s: %s", shim_dir, e)
        return written

    for bin_dir in bin_dirs:
        if not bin_dir.is_dir():
            continue
        for entry in sorted(bin_dir.iterdir()):
            if not _is_executable(entry, windows):
                continue
            if windows:
                shim = shim_dir / f"{entry.stem}.cmd"
                content = f'@echo off\r\n"{entry}" %*\r\n'
            else:
                shim = shim_dir / entry.name
                content = f'#!/bin/sh\nexec "{entry}" "$@"\n'
            try:
                shim.write_text(content, encoding="utf-8", newline="")
                shim.chmod(shim.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
            except OSError as e:
                logger.debug("skipping shim %s: %s", shim, e)
                continue
            written.append(shim)
    return written
