"""Asynchronous HTTP client for single-threaded scripting hosts.

Requests are sent from the scripting thread, transferred by one background
worker, and their completion handlers run on the scripting thread when the
host polls once per frame:

    from canvas_xhr import HttpClient, HttpRequest

    client = HttpClient.from_env()
    client.start()

    client.send(HttpRequest(url="https://example.com/level/1", completion_handler=on_level))

    while running:
        client.poll_completions()
        update_and_render()

    client.stop()
    client.join(timeout=5)
"""

import os
import sys
import threading
from types import TracebackType

from canvas_xhr._internal.dispatch import DispatchQueues, Worker
from canvas_xhr._internal.http import DEFAULT_CONNECT_TIMEOUT, DEFAULT_READ_TIMEOUT
from canvas_xhr._internal.transport import HttpxTransport, Transport
from canvas_xhr.exceptions import ConfigError, RequestBuildError
from canvas_xhr.models.request import HttpMethod, HttpRequest


def validate_request(request: HttpRequest) -> None:
    """Reject a request that cannot be sent.

    Raises:
        RequestBuildError: If the request has no URL or an unknown method.
    """
    if not request.url:
        raise RequestBuildError("Request has no URL")
    if request.method == HttpMethod.UNKNOWN:
        raise RequestBuildError(f"Request to {request.url} has no supported method")


class HttpClient:
    """Owns the dispatch queues and the network worker.

    send() never blocks on network I/O. poll_completions() delivers at most
    one response per call, on the calling thread, and is the only point where
    results from the worker become visible to scripting code.

    Use `HttpClient.from_env()` to create a client from environment variables.
    """

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        debug: bool = False,
    ) -> None:
        """Initialize the client. The worker is not started yet.

        Args:
            transport: Synchronous transport run by the worker. Defaults to
                an httpx-backed transport.
            connect_timeout: Seconds allowed for connecting, for requests
                that do not set their own.
            read_timeout: Seconds allowed for a whole transfer, for requests
                that do not set their own.
            debug: Enable debug logging to stderr.

        Raises:
            ConfigError: If a timeout is negative.
        """
        if connect_timeout < 0 or read_timeout < 0:
            raise ConfigError("Timeouts must not be negative")

        self._transport = transport if transport is not None else HttpxTransport(debug=debug)
        self._connect_timeout = connect_timeout
        self._read_timeout = read_timeout
        self._debug = debug

        self._queues: DispatchQueues | None = None
        self._worker: Worker | None = None
        self._stopped = False
        self._outstanding = 0
        self._outstanding_lock = threading.Lock()
        # Guards start, stop and enqueueing against each other
        self._lifecycle_lock = threading.Lock()

    @classmethod
    def from_env(cls, transport: Transport | None = None) -> "HttpClient":
        """Create a client from environment variables.

        Optional environment variables:
            CANVAS_XHR_CONNECT_TIMEOUT: Connect timeout in seconds.
            CANVAS_XHR_READ_TIMEOUT: Whole-transfer timeout in seconds.
            CANVAS_XHR_DEBUG: Set to "1" to enable debug logging.

        Returns:
            A configured, not yet started HttpClient.
        """
        debug = os.environ.get("CANVAS_XHR_DEBUG", "") == "1"
        connect_timeout = float(
            os.environ.get("CANVAS_XHR_CONNECT_TIMEOUT", str(DEFAULT_CONNECT_TIMEOUT))
        )
        read_timeout = float(
            os.environ.get("CANVAS_XHR_READ_TIMEOUT", str(DEFAULT_READ_TIMEOUT))
        )

        return cls(
            transport,
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
            debug=debug,
        )

    @property
    def debug(self) -> bool:
        return self._debug

    @property
    def started(self) -> bool:
        return self._worker is not None

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def outstanding(self) -> int:
        """Requests sent but not yet delivered or dropped."""
        with self._outstanding_lock:
            return self._outstanding

    def _log_debug(self, message: str) -> None:
        """Log a debug message to stderr if debug mode is enabled."""
        if self._debug:
            print(f"[canvas-xhr] {message}", file=sys.stderr)

    def _adjust_outstanding(self, delta: int) -> None:
        with self._outstanding_lock:
            self._outstanding += delta

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Create the queues and start the worker. Safe to call repeatedly."""
        with self._lifecycle_lock:
            self._start_locked()

    def _start_locked(self) -> None:
        if self._worker is not None or self._stopped:
            return

        self._queues = DispatchQueues()
        self._worker = Worker(
            self._queues,
            self._transport,
            connect_timeout=self._connect_timeout,
            read_timeout=self._read_timeout,
            on_dropped=lambda count: self._adjust_outstanding(-count),
            debug=self._debug,
        )
        self._worker.start()
        self._log_debug("Worker started")

    def stop(self) -> None:
        """Stop accepting requests and wake the worker so it can exit.

        Pending requests and undelivered responses are dropped by the worker;
        their handlers never run. Use join() to wait for the thread.
        """
        with self._lifecycle_lock:
            if self._stopped:
                return
            self._stopped = True
            if self._worker is not None:
                self._worker.stop()
        self._log_debug("Stop requested")

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the worker to exit. Returns True if it has stopped."""
        if self._worker is None:
            return True
        return self._worker.join(timeout)

    def __enter__(self) -> "HttpClient":
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()
        self.join()

    # =========================================================================
    # Requests
    # =========================================================================

    def send(self, request: HttpRequest | None) -> None:
        """Queue a request for the worker.

        Starts the worker on first use. Does nothing for None or once the
        client has been stopped.

        Raises:
            RequestBuildError: If the request has no URL or an unknown method.
        """
        if request is None:
            return

        with self._lifecycle_lock:
            if self._stopped:
                self._log_debug(f"Client stopped, ignoring {request.url}")
                return
            validate_request(request)
            self._start_locked()
            assert self._queues is not None

            self._adjust_outstanding(1)
            self._queues.put_request(request)
        self._log_debug(f"Queued {request.method.value} {request.url}")

    def cancel(self, request: HttpRequest) -> bool:
        """Discard a request the worker has not started.

        Returns:
            True if the request was still pending and has been removed.
        """
        if self._queues is None or not self._queues.remove_request(request):
            return False
        self._adjust_outstanding(-1)
        self._log_debug(f"Cancelled {request.url}")
        return True

    def poll_completions(self) -> bool:
        """Deliver at most one finished response to its completion handler.

        Call once per frame from the scripting thread. Never waits.

        Returns:
            True if a response was delivered.
        """
        if self._stopped or self._queues is None or self.outstanding == 0:
            return False

        response = self._queues.pop_response()
        if response is None:
            return False

        self._adjust_outstanding(-1)
        request = response.request
        if request.tag:
            self._log_debug(f"{request.tag} completed")

        if request.completion_handler is not None:
            request.completion_handler(response)
        return True
