"""SHA-256 helpers for downloaded artifacts."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path

__all__ = [
    "digests_match",
    "normalize_digest",
    "parse_checksum_text",
    "sha256_file",
]

_HEX64 = re.compile(r"\b[0-9a-fA-F]{64}\b")


def sha256_file(path: Path, *, chunk_size: int = 64 * 1024) -> str:
    """Hex SHA-256 of a file, read in chunks."""
    hasher = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def normalize_digest(digest: str) -> str:
    return digest.strip().lower()


def digests_match(expected: str, actual: str) -> bool:
    """Case-insensitive comparison after trimming whitespace."""
    return normalize_digest(expected) == normalize_digest(actual)


def parse_checksum_text(text: str, file_name: str | None = None) -> str | None:
    """First 64-hex token in a checksum file.

    Handles a bare digest, GNU ``<digest>  <file>`` and BSD
    ``SHA256 (<file>) = <digest>`` layouts. With ``file_name``, a
    multi-entry listing (``SHASUMS256.txt``) is narrowed to the line naming
    that file first.
    """
    if file_name:
        for line in text.splitlines():
            if file_name in line:
                match = _HEX64.search(line)
                if match:
                    return match.group().lower()
        if len(_HEX64.findall(text)) > 1:
            return None
    match = _HEX64.search(text)
    return match.group().lower() if match else None
