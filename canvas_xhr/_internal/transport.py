"""Synchronous HTTP transports run by the worker thread."""

import sys
import time
from typing import Protocol

import httpx
from pydantic import BaseModel

from canvas_xhr._internal.http import build_timeout, create_http_client
from canvas_xhr.exceptions import TransportError
from canvas_xhr.models.request import HttpMethod

MAX_REDIRECTS = 20
FOLLOW_REDIRECT_METHODS = frozenset({HttpMethod.GET, HttpMethod.DELETE})
BODY_METHODS = frozenset({HttpMethod.POST, HttpMethod.PUT})


class TransportResult(BaseModel):
    """Body and metadata of a successful (status 200) transfer."""

    body: bytes
    status_code: int
    reason_phrase: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    model_config = {"frozen": True}


class Transport(Protocol):
    """Performs one blocking HTTP transfer.

    Implementations run on the worker thread only. Any failure, including a
    final status other than 200, is reported by raising TransportError.
    """

    def execute(
        self,
        method: HttpMethod,
        url: str,
        headers: list[tuple[str, str]],
        body: bytes,
        connect_timeout: float,
        read_timeout: float,
    ) -> TransportResult: ...

    def close(self) -> None: ...


class HttpxTransport:
    """Transport backed by a lazily created httpx.Client.

    The read timeout is also the wall-clock budget for the whole transfer,
    redirect hops included.
    """

    def __init__(self, *, debug: bool = False) -> None:
        self._client: httpx.Client | None = None
        self._debug = debug

    def _log_debug(self, message: str) -> None:
        """Log a debug message to stderr if debug mode is enabled."""
        if self._debug:
            print(f"[canvas-xhr:transport] {message}", file=sys.stderr)

    def _get_client(self, connect_timeout: float, read_timeout: float) -> httpx.Client:
        if self._client is None:
            self._client = create_http_client(
                connect_timeout=connect_timeout,
                read_timeout=read_timeout,
            )
        return self._client

    def execute(
        self,
        method: HttpMethod,
        url: str,
        headers: list[tuple[str, str]],
        body: bytes,
        connect_timeout: float,
        read_timeout: float,
    ) -> TransportResult:
        """Perform the transfer and return its result.

        Every hop gets only the time left before the deadline, and the
        deadline is checked before each hop, after each body chunk and once
        the body is complete.

        Raises:
            TransportError: On any transport failure or a non-200 final status.
        """
        if method == HttpMethod.UNKNOWN:
            raise TransportError(f"Unsupported request method for {url}")

        client = self._get_client(connect_timeout, read_timeout)
        deadline = time.monotonic() + read_timeout
        content = body if method in BODY_METHODS else None

        try:
            request = client.build_request(
                method.value,
                url,
                headers=headers,
                content=content,
                timeout=self._hop_timeout(deadline, connect_timeout, read_timeout),
            )
            origin_host = request.url.host
            for _ in range(MAX_REDIRECTS + 1):
                response = client.send(request, stream=True)
                try:
                    if (
                        method in FOLLOW_REDIRECT_METHODS
                        and response.next_request is not None
                    ):
                        # Keep the request method; httpx would rewrite it on 303
                        target = response.next_request.url
                        self._log_debug(f"Redirect {response.status_code} -> {target}")
                        hop_headers = headers
                        if target.host != origin_host:
                            hop_headers = [
                                (name, value)
                                for name, value in headers
                                if name.lower() != "authorization"
                            ]
                        request = client.build_request(
                            method.value,
                            target,
                            headers=hop_headers,
                            timeout=self._hop_timeout(deadline, connect_timeout, read_timeout),
                        )
                        continue
                    return self._read(response, deadline, read_timeout)
                finally:
                    response.close()
            raise TransportError(f"Maximum ({MAX_REDIRECTS}) redirects followed")
        except httpx.TimeoutException as e:
            raise TransportError(f"Operation timed out: {e}", timed_out=True) from e
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e
        except httpx.InvalidURL as e:
            raise TransportError(f"Invalid URL {url!r}: {e}") from e

    def _hop_timeout(
        self, deadline: float, connect_timeout: float, read_timeout: float
    ) -> httpx.Timeout:
        """Timeouts for the next hop, capped by the time left before the deadline."""
        remaining = self._check_deadline(deadline, read_timeout)
        return build_timeout(min(connect_timeout, remaining), remaining)

    def _check_deadline(self, deadline: float, read_timeout: float, received: int = 0) -> float:
        """Return the seconds left, or raise a timeout once none are."""
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise TransportError(
                f"Operation timed out after {read_timeout:g} seconds "
                f"with {received} bytes received",
                timed_out=True,
            )
        return remaining

    def _read(
        self, response: httpx.Response, deadline: float, read_timeout: float
    ) -> TransportResult:
        """Stream the body into a buffer, enforcing the transfer deadline."""
        sink = bytearray()
        for chunk in response.iter_bytes():
            sink.extend(chunk)
            self._check_deadline(deadline, read_timeout, len(sink))
        self._check_deadline(deadline, read_timeout, len(sink))

        if response.status_code != 200:
            raise TransportError(
                f"HTTP status {response.status_code} {response.reason_phrase}".rstrip(),
                status_code=response.status_code,
            )

        return TransportResult(
            body=bytes(sink),
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            headers=tuple(response.headers.multi_items()),
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None
