"""Resumable artifact fetcher with retry and digest verification.

Bytes are streamed into ``<dest>.part`` while a running SHA-256 is kept. A
later attempt (or a later run) resumes the partial file with a byte range.
Only a complete, verified artifact is moved to ``dest`` with ``os.replace``.

Usage:
    fetcher = Fetcher(RealHttpClient(), RetryPolicy(max_retries=3))
    match fetcher.fetch(url, cache_dir / "node-v20.10.0.tar.gz", expected_digest=sha):
        case Ok(result):
            print(result.path, result.attempts)
        case Err(error):
            print(error.message)
"""

from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from vmgr.core.errors import (
    CacheWriteFailure,
    DigestMismatch,
    FatalHTTPError,
    FetchError,
    RetriesExhausted,
    TransportError,
)
from vmgr.core.result import Err, Ok, Result

from .checksum import digests_match, normalize_digest
from .progress import NullProgressSink, ProgressSink, ProgressTracker
from .retry import RetryPolicy, classify_http_error

if TYPE_CHECKING:
    from .http import HttpClient, HttpStream

__all__ = ["FetchResult", "Fetcher", "partial_path"]

logger = logging.getLogger(__name__)

_HASH_CHUNK = 64 * 1024


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of a successful fetch.

    Attributes:
        path: Final artifact location
        bytes_written: Size of the artifact
        digest: Lowercase hex SHA-256 of the artifact
        attempts: Attempts used (1 when the first one succeeded)
        resumed: True if any attempt continued a partial file
    """

    path: Path
    bytes_written: int
    digest: str
    attempts: int
    resumed: bool


@dataclass(frozen=True, slots=True)
class _Transfer:
    size: int
    digest: str
    resumed: bool


def partial_path(dest: Path) -> Path:
    return dest.with_name(dest.name + ".part")


def _hash_existing(path: Path, hasher: hashlib._Hash) -> None:
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_HASH_CHUNK), b""):
            hasher.update(chunk)


class Fetcher:
    """Downloads one URL to one destination, retrying transient failures."""

    def __init__(
        self,
        http: HttpClient,
        policy: RetryPolicy | None = None,
        sink: ProgressSink | None = None,
    ) -> None:
        self._http = http
        self._policy = policy or RetryPolicy()
        self._sink = sink or NullProgressSink()

    def fetch(
        self,
        url: str,
        dest: Path,
        *,
        expected_digest: str | None = None,
        sink: ProgressSink | None = None,
    ) -> Result[FetchResult, FetchError]:
        """Fetch ``url`` into ``dest``.

        Args:
            url: Artifact URL
            dest: Final path; ``<dest>.part`` holds bytes in flight
            expected_digest: Hex SHA-256 to verify (case and whitespace insensitive)
            sink: Progress sink for this call (overrides the fetcher's)

        Returns:
            Ok(FetchResult), Err(FatalHTTPError) on the first non-retryable
            reply, Err(CacheWriteFailure) when the cache cannot be written, or
            Err(RetriesExhausted) wrapping the last retryable error
        """
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Err(CacheWriteFailure(url=url, path=dest.parent, reason=str(e)))
        part = partial_path(dest)
        tracker = ProgressTracker(sink or self._sink)
        last: TransportError | DigestMismatch | None = None
        resumed_any = False

        for attempt in range(1, self._policy.max_attempts + 1):
            if attempt > 1:
                delay = self._policy.delay_before(attempt - 1)
                logger.info(
                    "retry %d/%d for %s in %.1fs (%s)",
                    attempt - 1,
                    self._policy.max_retries,
                    url,
                    delay,
                    last.message if last else "",
                )
                self._policy.wait(attempt - 1)

            match self._attempt(url, part, tracker):
                case Err(error=FatalHTTPError() as fatal):
                    logger.debug("fatal reply for %s: HTTP %d", url, fatal.status)
                    return Err(fatal)
                case Err(error=CacheWriteFailure() as failure):
                    logger.debug("cannot write %s: %s", failure.path, failure.reason)
                    return Err(failure)
                case Err(error=TransportError() as transient):
                    logger.debug("attempt %d failed: %s", attempt, transient.message)
                    last = transient
                    continue
                case Ok(value=transfer):
                    resumed_any = resumed_any or transfer.resumed

            if expected_digest and not digests_match(expected_digest, transfer.digest):
                logger.warning("checksum mismatch for %s, deleting partial download", url)
                part.unlink(missing_ok=True)
                last = DigestMismatch(
                    url=url,
                    expected=normalize_digest(expected_digest),
                    actual=transfer.digest,
                )
                continue

            try:
                os.replace(part, dest)
            except OSError as e:
                return Err(CacheWriteFailure(url=url, path=dest, reason=str(e)))
            tracker.finish()
            return Ok(
                FetchResult(
                    path=dest,
                    bytes_written=transfer.size,
                    digest=transfer.digest,
                    attempts=attempt,
                    resumed=resumed_any,
                )
            )

        assert last is not None
        return Err(RetriesExhausted(url=url, attempts=self._policy.max_attempts, last=last))

    def _open(
        self, url: str, part: Path
    ) -> Result[tuple[HttpStream, int], TransportError | FatalHTTPError]:
        offset = part.stat().st_size if part.exists() else 0
        if offset:
            logger.debug("resuming %s from byte %d", url, offset)
        opened = self._http.open(url, offset=offset)
        if isinstance(opened, Err) and opened.error.status == 416 and offset:
            logger.debug("range not satisfiable for %s, restarting from zero", url)
            part.unlink(missing_ok=True)
            offset = 0
            opened = self._http.open(url)
        if isinstance(opened, Err):
            return Err(classify_http_error(opened.error))
        return Ok((opened.value, offset))

    def _attempt(
        self, url: str, part: Path, tracker: ProgressTracker
    ) -> Result[_Transfer, TransportError | FatalHTTPError | CacheWriteFailure]:
        opened = self._open(url, part)
        if isinstance(opened, Err):
            return opened
        stream, offset = opened.value

        hasher = hashlib.sha256()
        resumed = stream.status == 206 and offset > 0
        if resumed:
            _hash_existing(part, hasher)
            mode = "ab"
        else:
            if offset:
                logger.debug("server ignored range request for %s, restarting", url)
            offset = 0
            mode = "wb"

        tracker.set_total(stream.total)
        tracker.reset(offset)
        size = offset
        try:
            with part.open(mode) as f:
                chunks = stream.chunks()
                while True:
                    try:
                        chunk = next(chunks)
                    except StopIteration:
                        break
                    except OSError as e:
                        return Err(TransportError(url=url, status=0, reason=f"transfer interrupted: {e}"))
                    f.write(chunk)
                    hasher.update(chunk)
                    size += len(chunk)
                    tracker.advance(len(chunk))
        except OSError as e:
            return Err(CacheWriteFailure(url=url, path=part, reason=str(e)))
        finally:
            stream.close()

        if stream.total is not None and size < stream.total:
            return Err(
                TransportError(
                    url=url, status=0, reason=f"incomplete body ({size} of {stream.total} bytes)"
                )
            )
        return Ok(_Transfer(size=size, digest=hasher.hexdigest(), resumed=resumed))
