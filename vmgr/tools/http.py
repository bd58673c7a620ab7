"""HTTP client abstraction for version listings and artifact downloads.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Scripted implementation for tests (ranges, failures, cuts)

Downloads are exposed as a stream (``open``) rather than a one-shot call so
the fetcher can resume with a byte range, hash while writing and decide what
to do with a partial file itself.
"""

from __future__ import annotations

import json
import re
import ssl
import urllib.error
import urllib.request
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from vmgr import __version__
from vmgr.core.result import Err, Ok, Result

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpStream",
    "MockHttpClient",
    "MockResponse",
    "RealHttpClient",
]

CHUNK_SIZE = 64 * 1024
_CONTENT_RANGE = re.compile(r"bytes\s+(\d+)-(\d+)/(\d+|\*)")


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


class HttpStream(Protocol):
    """An open response body.

    ``chunks()`` may raise ``OSError`` if the connection drops mid-body.
    """

    @property
    def status(self) -> int: ...

    @property
    def total(self) -> int | None:
        """Full artifact size (not just this body) when the server says so."""
        ...

    def chunks(self) -> Iterator[bytes]: ...

    def close(self) -> None: ...


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    Allows injecting mock clients so unit tests never touch the network.
    """

    def get_text(self, url: str) -> Result[str, HttpError]:
        """Fetch URL and return the body as text."""
        ...

    def get_json(self, url: str) -> Result[Any, HttpError]:
        """Fetch URL and parse as JSON (object or array)."""
        ...

    def open(self, url: str, *, offset: int = 0) -> Result[HttpStream, HttpError]:
        """Start a GET, asking for ``bytes=<offset>-`` when offset > 0.

        Returns:
            Ok with an open stream (status 200 or 206), or Err with HttpError
        """
        ...


def _total_from_headers(status: int, offset: int, headers: Any) -> int | None:
    if status == 206:
        match = _CONTENT_RANGE.match(headers.get("Content-Range", "") or "")
        if match and match.group(3) != "*":
            return int(match.group(3))
    length = headers.get("Content-Length")
    if length is None or not str(length).isdigit():
        return None
    return int(length) + (offset if status == 206 else 0)


class _UrllibStream:
    def __init__(self, response: Any, offset: int) -> None:
        self._response = response
        self._status = int(response.status)
        self._total = _total_from_headers(self._status, offset, response.headers)

    @property
    def status(self) -> int:
        return self._status

    @property
    def total(self) -> int | None:
        return self._total

    def chunks(self) -> Iterator[bytes]:
        while True:
            chunk = self._response.read(CHUNK_SIZE)
            if not chunk:
                return
            yield chunk

    def close(self) -> None:
        self._response.close()


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles HTTPS with system certificates, JSON parsing, ranged streaming
    and timeouts.
    """

    def __init__(self, timeout: float = 30.0, user_agent: str = f"vmgr/{__version__}") -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def _urlopen(self, url: str, headers: dict[str, str]) -> Result[Any, HttpError]:
        try:
            req = urllib.request.Request(url, headers={"User-Agent": self.user_agent, **headers})
            return Ok(urllib.request.urlopen(req, timeout=self.timeout, context=self._ssl_context))
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def _request(self, url: str) -> Result[bytes, HttpError]:
        opened = self._urlopen(url, {})
        if isinstance(opened, Err):
            return opened
        try:
            with opened.value as response:
                return Ok(response.read())
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def get_text(self, url: str) -> Result[str, HttpError]:
        result = self._request(url)
        if isinstance(result, Err):
            return result
        try:
            return Ok(result.value.decode("utf-8"))
        except UnicodeDecodeError as e:
            return Err(HttpError(url=url, status=0, message=f"Decode error: {e}"))

    def get_json(self, url: str) -> Result[Any, HttpError]:
        text = self.get_text(url)
        if isinstance(text, Err):
            return text
        try:
            return Ok(json.loads(text.value))
        except json.JSONDecodeError as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))

    def open(self, url: str, *, offset: int = 0) -> Result[HttpStream, HttpError]:
        headers = {"Range": f"bytes={offset}-"} if offset > 0 else {}
        opened = self._urlopen(url, headers)
        if isinstance(opened, Err):
            return opened
        return Ok(_UrllibStream(opened.value, offset))


@dataclass
class MockResponse:
    """One scripted reply.

    Attributes:
        body: Full artifact content (ranges are served from it)
        status: Status to return; errors (>= 400) become Err
        honor_range: Reply 206 to range requests (else 200 with the full body)
        cut_after: Raise ConnectionResetError after this many body bytes
        network_error: Fail before any response (status 0)
    """

    body: bytes = b""
    status: int = 200
    honor_range: bool = True
    cut_after: int | None = None
    network_error: str | None = None


class _MockStream:
    def __init__(self, status: int, payload: bytes, total: int, cut_after: int | None) -> None:
        self._status = status
        self._payload = payload
        self._total = total
        self._cut_after = cut_after
        self.closed = False

    @property
    def status(self) -> int:
        return self._status

    @property
    def total(self) -> int | None:
        return self._total

    def chunks(self) -> Iterator[bytes]:
        limit = len(self._payload) if self._cut_after is None else self._cut_after
        step = 7
        sent = 0
        while sent < min(limit, len(self._payload)):
            end = min(sent + step, limit, len(self._payload))
            yield self._payload[sent:end]
            sent = end
        if self._cut_after is not None and self._cut_after < len(self._payload):
            raise ConnectionResetError("connection reset by peer (mock)")

    def close(self) -> None:
        self.closed = True


def _empty_calls() -> list[tuple[str, str, int]]:
    return []


@dataclass
class MockHttpClient:
    """Mock HTTP client for tests.

    Text/JSON responses are fixed per URL; download responses are a script
    consumed one entry per ``open`` call (the last entry repeats).

    Usage:
        client = MockHttpClient()
        client.set_text("https://example.com/v.txt", "1.0.0")
        client.script("https://example.com/a.zip", MockResponse(status=500))
    """

    _text: dict[str, str | HttpError] = field(default_factory=dict)
    _json: dict[str, Any] = field(default_factory=dict)
    _scripts: dict[str, list[MockResponse]] = field(default_factory=dict)
    calls: list[tuple[str, str, int]] = field(default_factory=_empty_calls)

    def set_text(self, url: str, response: str | HttpError) -> None:
        self._text[url] = response

    def set_json(self, url: str, response: Any) -> None:
        self._json[url] = response

    def script(self, url: str, *responses: MockResponse) -> None:
        self._scripts[url] = list(responses)

    def attempts(self, url: str) -> int:
        """Number of ``open`` calls made for url."""
        return sum(1 for kind, u, _ in self.calls if kind == "open" and u == url)

    def get_text(self, url: str) -> Result[str, HttpError]:
        self.calls.append(("get_text", url, 0))
        response = self._text.get(url)
        if response is None:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def get_json(self, url: str) -> Result[Any, HttpError]:
        self.calls.append(("get_json", url, 0))
        if url not in self._json:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        response = self._json[url]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def open(self, url: str, *, offset: int = 0) -> Result[HttpStream, HttpError]:
        self.calls.append(("open", url, offset))
        script = self._scripts.get(url)
        if not script:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        reply = script.pop(0) if len(script) > 1 else script[0]

        if reply.network_error is not None:
            return Err(HttpError(url=url, status=0, message=reply.network_error))
        if reply.status >= 400:
            return Err(HttpError(url=url, status=reply.status, message="mock error"))

        total = len(reply.body)
        if offset > 0 and reply.honor_range:
            if offset >= total:
                return Err(HttpError(url=url, status=416, message="Range Not Satisfiable"))
            return Ok(_MockStream(206, reply.body[offset:], total, reply.cut_after))
        return Ok(_MockStream(200, reply.body, total, reply.cut_after))
