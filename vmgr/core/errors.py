"""Error values and exit codes.

Failures are frozen dataclasses returned inside ``Err(...)``. Each carries
enough context (tool, version, cause) to render an actionable message and,
where one exists, a ``hint`` naming the corrective command.

``ErrorCode`` maps error kinds to stable process exit status.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from pathlib import Path

__all__ = [
    "ErrorCode",
    "InvalidExpression",
    "UnknownTool",
    "NotFound",
    "TransportError",
    "FatalHTTPError",
    "DigestMismatch",
    "RetriesExhausted",
    "CacheWriteFailure",
    "ExtractionFailure",
    "AlreadyInstalled",
    "NotInstalled",
    "AliasFailure",
    "PersistenceFailure",
    "FetchError",
    "VersionError",
    "exit_code_for",
    "with_context",
]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable.
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK


def _label(tool: str, version: str) -> str:
    if tool and version:
        return f"{tool} {version}"
    return tool or version


@dataclass(frozen=True, slots=True)
class InvalidExpression:
    """Version string rejected by the tool's validation rule."""

    tool: str
    expression: str
    reason: str = "invalid version format"

    @property
    def message(self) -> str:
        return f"{self.reason}: {self.tool} {self.expression!r}"

    @property
    def hint(self) -> str | None:
        return f"Run: vmgr list --remote {self.tool}"


@dataclass(frozen=True, slots=True)
class UnknownTool:
    tool: str
    available: tuple[str, ...] = ()

    @property
    def message(self) -> str:
        return f"unknown tool: {self.tool}"

    @property
    def hint(self) -> str | None:
        if not self.available:
            return None
        return f"Available: {', '.join(self.available)}"


@dataclass(frozen=True, slots=True)
class NotFound:
    """No catalog entry matches a partial or wildcard expression."""

    tool: str
    expression: str
    detail: str = ""

    @property
    def message(self) -> str:
        text = f"no version of {self.tool} matches {self.expression!r}"
        if self.detail:
            text += f" ({self.detail})"
        return text

    @property
    def hint(self) -> str | None:
        return f"Run: vmgr list --remote {self.tool}"


@dataclass(frozen=True, slots=True)
class TransportError:
    """Retryable network or HTTP failure (status 0 means no HTTP response)."""

    url: str
    status: int
    reason: str
    tool: str = ""
    version: str = ""

    @property
    def message(self) -> str:
        prefix = f"{_label(self.tool, self.version)}: " if self.tool else ""
        if self.status:
            return f"{prefix}HTTP {self.status}: {self.reason} ({self.url})"
        return f"{prefix}{self.reason} ({self.url})"

    @property
    def hint(self) -> str | None:
        return "Check your network connection and retry"


@dataclass(frozen=True, slots=True)
class FatalHTTPError:
    """Non-retryable HTTP client error (4xx other than 408/429)."""

    url: str
    status: int
    reason: str
    tool: str = ""
    version: str = ""

    @property
    def message(self) -> str:
        prefix = f"{_label(self.tool, self.version)}: " if self.tool else ""
        return f"{prefix}HTTP {self.status}: {self.reason} ({self.url})"

    @property
    def hint(self) -> str | None:
        if self.status == 404 and self.tool:
            return f"The version may not exist. Run: vmgr list --remote {self.tool}"
        return None


@dataclass(frozen=True, slots=True)
class DigestMismatch:
    """Downloaded bytes do not match the expected digest."""

    url: str
    expected: str
    actual: str
    tool: str = ""
    version: str = ""

    @property
    def message(self) -> str:
        prefix = f"{_label(self.tool, self.version)}: " if self.tool else ""
        return f"{prefix}checksum mismatch: expected {self.expected}, got {self.actual}"

    @property
    def hint(self) -> str | None:
        return "The download was deleted; retry the install"


@dataclass(frozen=True, slots=True)
class RetriesExhausted:
    """Every attempt failed with a retryable error; ``last`` is the final one."""

    url: str
    attempts: int
    last: TransportError | DigestMismatch
    tool: str = ""
    version: str = ""

    @property
    def message(self) -> str:
        prefix = f"{_label(self.tool, self.version)}: " if self.tool else ""
        return f"{prefix}download failed after {self.attempts} attempts: {self.last.message}"

    @property
    def hint(self) -> str | None:
        return self.last.hint


@dataclass(frozen=True, slots=True)
class CacheWriteFailure:
    """The download cache could not be written (disk full, permissions)."""

    url: str
    path: Path
    reason: str
    tool: str = ""
    version: str = ""

    @property
    def message(self) -> str:
        prefix = f"{_label(self.tool, self.version)}: " if self.tool else ""
        return f"{prefix}cannot write {self.path}: {self.reason}"

    @property
    def hint(self) -> str | None:
        return "Free disk space or fix permissions on the cache directory, then retry"


@dataclass(frozen=True, slots=True)
class ExtractionFailure:
    """Archive corrupt or unsupported; the install directory was rolled back."""

    tool: str
    version: str
    archive: Path
    reason: str

    @property
    def message(self) -> str:
        return f"failed to install {_label(self.tool, self.version)}: {self.reason} ({self.archive.name})"

    @property
    def hint(self) -> str | None:
        return None


@dataclass(frozen=True, slots=True)
class AlreadyInstalled:
    tool: str
    version: str
    path: Path

    @property
    def message(self) -> str:
        return f"{_label(self.tool, self.version)} is already installed at {self.path}"

    @property
    def hint(self) -> str | None:
        return f"Run: vmgr use {self.tool} {self.version}"


@dataclass(frozen=True, slots=True)
class NotInstalled:
    tool: str
    version: str

    @property
    def message(self) -> str:
        return f"{_label(self.tool, self.version)} is not installed"

    @property
    def hint(self) -> str | None:
        return f"Run: vmgr install {self.tool} {self.version}"


@dataclass(frozen=True, slots=True)
class AliasFailure:
    """The ``current`` alias could not be created by any method."""

    tool: str
    version: str
    path: Path
    attempts: tuple[str, ...]
    reason: str = ""

    @property
    def message(self) -> str:
        tried = ", ".join(self.attempts) or "no method available"
        text = f"could not point {self.path} at {_label(self.tool, self.version)} (tried: {tried})"
        if self.reason:
            text += f": {self.reason}"
        return text

    @property
    def hint(self) -> str | None:
        return "On Windows, enable Developer Mode or run from an elevated shell"


@dataclass(frozen=True, slots=True)
class PersistenceFailure:
    """Every persistence method failed for one variable.

    This is a soft failure: it is reported as a warning next to a successful
    activation, never as an ``Err``.
    """

    name: str
    value: str
    attempts: tuple[str, ...]
    reason: str = ""

    @property
    def message(self) -> str:
        tried = ", ".join(self.attempts) or "no method available"
        text = f"could not persist {self.name} (tried: {tried})"
        if self.reason:
            text += f": {self.reason}"
        return text

    @property
    def hint(self) -> str | None:
        return f"Set it manually for this session: {self.name}={self.value}"


FetchError = TransportError | FatalHTTPError | DigestMismatch | RetriesExhausted | CacheWriteFailure

VersionError = (
    InvalidExpression
    | UnknownTool
    | NotFound
    | TransportError
    | FatalHTTPError
    | DigestMismatch
    | RetriesExhausted
    | CacheWriteFailure
    | ExtractionFailure
    | AlreadyInstalled
    | NotInstalled
    | AliasFailure
)


def with_context(error: FetchError, *, tool: str, version: str) -> FetchError:
    """Attach tool and version to a URL-level fetch error."""
    return replace(error, tool=tool, version=version)


def exit_code_for(error: VersionError) -> ErrorCode:
    """Map an error value to a process exit code."""
    match error:
        case InvalidExpression() | UnknownTool() | NotFound():
            return ErrorCode.USER_ERROR
        case AlreadyInstalled() | NotInstalled():
            return ErrorCode.USER_ERROR
        case TransportError() | FatalHTTPError() | DigestMismatch() | RetriesExhausted():
            return ErrorCode.NETWORK_ERROR
        case CacheWriteFailure() | ExtractionFailure() | AliasFailure():
            return ErrorCode.IO_ERROR
    return ErrorCode.ENV_ERROR
