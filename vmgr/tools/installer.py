"""Artifact installation into the versions root.

This module provides an Installer that:
- Extracts .zip, .tar.gz/.tgz and .tar.xz/.txz archives
- Strips a single root folder shared by every entry
- Places single-file artifacts as-is
- Works in a staging directory renamed into place only on success

An install directory is therefore either complete or absent.
"""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import stat
import tarfile
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from vmgr.core.errors import AlreadyInstalled, ExtractionFailure
from vmgr.core.result import Err, Ok, Result
from vmgr.platform.files import remove_tree

from .descriptor import DownloadType

__all__ = ["Installer", "InstallResult", "archive_kind"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InstallResult:
    """Result of an installation.

    Attributes:
        install_dir: Final installation directory
        files_count: Number of files written
        stripped_root: Name of the common root folder removed, if any
    """

    install_dir: Path
    files_count: int
    stripped_root: str | None = None


def archive_kind(name: str) -> str | None:
    """Archive format from a file name: "zip", "gz", "xz" or None."""
    lower = name.lower()
    # Path.suffixes splits on every dot ("jdk-21.0.1+12.tar.gz"), so match the tail
    if lower.endswith((".tar.gz", ".tgz")):
        return "gz"
    if lower.endswith((".tar.xz", ".txz")):
        return "xz"
    if lower.endswith(".zip"):
        return "zip"
    return None


def _parts(member_name: str) -> tuple[str, ...]:
    normalized = member_name.replace("\\", "/")
    return tuple(p for p in PurePosixPath(normalized).parts if p not in ("", "."))


def _common_root(names: list[str]) -> str | None:
    """The single top-level folder every entry lives under, if there is one."""
    roots: set[str] = set()
    nested = False
    for name in names:
        parts = _parts(name)
        if not parts:
            continue
        roots.add(parts[0])
        if len(parts) > 1:
            nested = True
        if len(roots) > 1:
            return None
    if len(roots) == 1 and nested:
        return roots.pop()
    return None


def _safe_relative_path(member_name: str, strip: int) -> Path | None:
    """Sanitized relative extraction path, or None if unsafe or stripped away."""
    if member_name.replace("\\", "/").startswith("/"):
        return None
    parts = _parts(member_name)
    if len(parts) <= strip:
        return None
    kept = parts[strip:]
    if any(part == ".." for part in kept):
        return None
    if kept[0].endswith(":"):
        return None
    return Path(*kept)


def _is_within_root(root: Path, target: Path) -> bool:
    try:
        return target.resolve().is_relative_to(root.resolve())
    except OSError:
        return False


class Installer:
    """Turns a fetched artifact into ``<root>/<tool>/<key>``.

    Usage:
        installer = Installer()
        result = installer.install(archive, target, tool="node", version="20.10.0")
        if is_ok(result):
            print(f"Installed {result.value.files_count} files")
    """

    def install(
        self,
        artifact: Path,
        target: Path,
        *,
        tool: str,
        version: str,
        download_type: DownloadType = DownloadType.ARCHIVE,
        file_name: str | None = None,
    ) -> Result[InstallResult, AlreadyInstalled | ExtractionFailure]:
        """Install ``artifact`` as ``target``.

        Args:
            artifact: Downloaded file
            target: Final install directory (must not exist)
            tool: Tool name, for error context
            version: Version key, for error context
            download_type: Extract an archive or place a single file
            file_name: Name for a single-file artifact (defaults to artifact name)

        Returns:
            Ok(InstallResult), Err(AlreadyInstalled) if target exists, or
            Err(ExtractionFailure) with nothing left behind
        """
        staging = target.with_name(f".staging-{target.name}")
        if target.exists():
            return Err(AlreadyInstalled(tool=tool, version=version, path=target))

        def fail(reason: str) -> Err[ExtractionFailure]:
            logger.debug("install of %s %s failed, rolling back: %s", tool, version, reason)
            remove_tree(staging)
            remove_tree(target)
            return Err(ExtractionFailure(tool=tool, version=version, archive=artifact, reason=reason))

        if not artifact.exists():
            return fail("artifact not found")

        try:
            remove_tree(staging)
            staging.mkdir(parents=True)

            if download_type == DownloadType.FILE:
                dest = staging / (file_name or artifact.name)
                shutil.copy2(artifact, dest)
                dest.chmod(dest.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
                count, stripped = 1, None
            else:
                kind = archive_kind(artifact.name)
                if kind is None:
                    return fail(f"unsupported archive format: {artifact.name}")
                if kind == "zip":
                    count, stripped = self._extract_zip(artifact, staging)
                else:
                    count, stripped = self._extract_tar(artifact, staging, kind)
                if count == 0:
                    return fail("archive contained no files")

            os.replace(staging, target)
        except (tarfile.TarError, zipfile.BadZipFile, EOFError) as e:
            return fail(f"corrupt archive: {e}")
        except OSError as e:
            return fail(f"IO error: {e}")

        if stripped:
            logger.debug("stripped common root %r from %s", stripped, artifact.name)
        return Ok(InstallResult(install_dir=target, files_count=count, stripped_root=stripped))

    def _extract_tar(self, archive: Path, dest: Path, compression: str) -> tuple[int, str | None]:
        mode = "r:gz" if compression == "gz" else "r:xz"
        root = dest.resolve()
        count = 0
        with tarfile.open(archive, mode) as tar:
            members = tar.getmembers()
            common = _common_root([m.name for m in members])
            strip = 1 if common else 0
            for member in members:
                if member.isdir():
                    continue
                rel = _safe_relative_path(member.name, strip)
                if rel is None:
                    continue
                full = dest / rel
                if not _is_within_root(root, full):
                    continue
                full.parent.mkdir(parents=True, exist_ok=True)

                if member.issym():
                    # Keep relative links that stay inside the install (node's bin/npm)
                    link_target = (full.parent / member.linkname)
                    if Path(member.linkname).is_absolute() or not _is_within_root(root, link_target):
                        continue
                    with contextlib.suppress(FileExistsError):
                        full.symlink_to(member.linkname)
                    count += 1
                    continue
                if not member.isreg():
                    continue

                src = tar.extractfile(member)
                if src is None:
                    continue
                with src, open(full, "wb") as out:
                    shutil.copyfileobj(src, out)
                perms = member.mode & 0o777
                if perms:
                    with contextlib.suppress(OSError):
                        os.chmod(full, perms)
                count += 1
        return count, common

    def _extract_zip(self, archive: Path, dest: Path) -> tuple[int, str | None]:
        root = dest.resolve()
        count = 0
        with zipfile.ZipFile(archive, "r") as zf:
            infos = zf.infolist()
            common = _common_root([i.filename for i in infos])
            strip = 1 if common else 0
            for info in infos:
                if info.is_dir():
                    continue
                rel = _safe_relative_path(info.filename, strip)
                if rel is None:
                    continue
                if (info.external_attr >> 16) & 0o170000 == stat.S_IFLNK:
                    continue
                full = dest / rel
                if not _is_within_root(root, full):
                    continue
                full.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(full, "wb") as out:
                    shutil.copyfileobj(src, out)
                unix_attrs = (info.external_attr >> 16) & 0o777
                if unix_attrs:
                    with contextlib.suppress(OSError):
                        full.chmod(unix_attrs)
                count += 1
        return count, common
