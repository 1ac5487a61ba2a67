# src/testrelay/runtime/log_relay.py
"""
Copies a remote log stream to the user's terminal, byte for byte.
"""

import sys
from collections.abc import AsyncIterator, Callable
from typing import BinaryIO, Protocol, runtime_checkable
from urllib.parse import urlsplit

import httpx
import structlog

from testrelay.exceptions import LogStreamError
from testrelay.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runtime.log_relay")


@runtime_checkable
class LogSource(Protocol):
    """A live, append-only byte stream identified by a URL."""

    url: str

    async def open(self) -> None:
        """Attaches to the stream. Errors here mean the stream could not be consumed at all."""
        ...

    def iter_chunks(self) -> AsyncIterator[bytes]:
        """Yields bytes as the producer writes them; ends when the producer closes the stream."""
        ...

    async def aclose(self) -> None: ...


class HttpLogSource:
    """Consumes a log stream served over a long-lived HTTP(S) response."""

    def __init__(self, url: str, http_client: httpx.AsyncClient | None = None):
        self.url = url
        self._owns_client = http_client is None
        # No read timeout: the producer may stay silent while tests run.
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(None))
        self._response: httpx.Response | None = None

    async def open(self) -> None:
        request = self._http.build_request("GET", self.url)
        response = await self._http.send(request, stream=True)
        if not response.is_success:
            await response.aclose()
            raise LogStreamError(f"log stream returned status code {response.status_code}")
        self._response = response

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        if self._response is None:
            raise LogStreamError("log stream is not open")
        async for chunk in self._response.aiter_bytes():
            yield chunk

    async def aclose(self) -> None:
        if self._response is not None:
            await self._response.aclose()
            self._response = None
        if self._owns_client:
            await self._http.aclose()


SOURCE_MAP: dict[str, Callable[..., LogSource]] = {
    "http": HttpLogSource,
    "https": HttpLogSource,
}


def get_log_source(url: str, http_client: httpx.AsyncClient | None = None) -> LogSource:
    """
    Factory function returning a LogSource for the URL's scheme.
    """
    scheme = urlsplit(url).scheme.lower()
    source_class = SOURCE_MAP.get(scheme)

    if not source_class:
        log.error("Unsupported log stream scheme", scheme=scheme, url=url)
        raise LogStreamError(
            f"unsupported log stream URL scheme: '{scheme}'. "
            f"Available schemes: {list(SOURCE_MAP.keys())}"
        )

    return source_class(url, http_client=http_client)


class LogRelay:
    """
    Streams a log source to a binary output until the producer closes it.

    `stream()` only returns once the source is exhausted, so everything the
    remote side wrote is on the terminal before the caller moves on.
    """

    def __init__(
        self,
        output: BinaryIO | None = None,
        http_client: httpx.AsyncClient | None = None,
        source_factory: Callable[..., LogSource] = get_log_source,
    ):
        self._output = output
        self._http_client = http_client
        self._source_factory = source_factory

    @property
    def output(self) -> BinaryIO:
        return self._output if self._output is not None else sys.stdout.buffer

    async def stream(self, url: str) -> int:
        """Copies the stream at `url` to the output and returns the number of bytes relayed."""
        relay_log = log.bind(url=url)
        relay_log.debug("Opening log stream")

        try:
            source = self._source_factory(url, http_client=self._http_client)
        except LogStreamError as e:
            raise LogStreamError(f"new log consumer: {e}") from e

        try:
            await source.open()
        except (httpx.HTTPError, LogStreamError) as e:
            relay_log.warning("Could not open log stream", error=str(e))
            await source.aclose()
            raise LogStreamError(f"new log consumer: {e}") from e

        relayed = 0
        output = self.output
        try:
            async for chunk in source.iter_chunks():
                output.write(chunk)
                output.flush()
                relayed += len(chunk)
        except (httpx.HTTPError, LogStreamError, OSError) as e:
            relay_log.warning("Log stream interrupted", error=str(e), relayed_bytes=relayed)
            raise LogStreamError(f"stream data: {e}") from e
        finally:
            await source.aclose()

        relay_log.debug("Log stream finished", relayed_bytes=relayed)
        return relayed


# 🔼⚙️
