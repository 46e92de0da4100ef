"""Background worker that performs transfers one at a time."""

import sys
import threading
from collections.abc import Callable
from enum import Enum

from canvas_xhr._internal.dispatch.queues import DispatchQueues
from canvas_xhr._internal.transport import Transport
from canvas_xhr.exceptions import TransportError
from canvas_xhr.models.request import HttpRequest
from canvas_xhr.models.response import HttpResponse


class WorkerState(str, Enum):
    """Worker lifecycle states."""

    WAITING = "waiting"
    TRANSFERRING = "transferring"
    DRAINING = "draining"
    STOPPED = "stopped"


class Worker:
    """Single background thread draining the pending queue.

    Only one request is in flight at a time, so transfers happen in
    submission order and responses are queued in transfer-finish order.
    On shutdown every request still pending, and every response not yet
    delivered, is dropped without running its handler; on_dropped is told
    how many items were dropped so the client can keep its counter right.
    """

    def __init__(
        self,
        queues: DispatchQueues,
        transport: Transport,
        *,
        connect_timeout: float,
        read_timeout: float,
        on_dropped: Callable[[int], None] | None = None,
        debug: bool = False,
    ) -> None:
        self._queues = queues
        self._transport = transport
        self._connect_timeout = connect_timeout
        self._read_timeout = read_timeout
        self._on_dropped = on_dropped
        self._debug = debug
        self._state = WorkerState.WAITING
        self._thread = threading.Thread(
            target=self._run, name="canvas-xhr-worker", daemon=True
        )

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def _log_debug(self, message: str) -> None:
        """Log a debug message to stderr if debug mode is enabled."""
        if self._debug:
            print(f"[canvas-xhr:worker] {message}", file=sys.stderr)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        """Request shutdown. Does not wait for the thread."""
        self._queues.shutdown()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the thread to exit. Returns True if it has stopped."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _run(self) -> None:
        try:
            while True:
                self._state = WorkerState.WAITING
                request = self._queues.take_request()
                if request is None:
                    break
                self._state = WorkerState.TRANSFERRING
                self._transfer(request)
            self._state = WorkerState.DRAINING
            self._drain()
        finally:
            try:
                self._transport.close()
            except Exception as e:
                self._log_debug(f"Transport close error: {e}")
            self._state = WorkerState.STOPPED
            self._log_debug("Stopped")

    def _transfer(self, request: HttpRequest) -> None:
        """Run one request through the transport and queue its response."""
        connect_timeout = (
            request.connect_timeout
            if request.connect_timeout is not None
            else self._connect_timeout
        )
        read_timeout = (
            request.read_timeout if request.read_timeout is not None else self._read_timeout
        )
        self._log_debug(f"Transferring {request.method.value} {request.url}")

        try:
            result = self._transport.execute(
                request.method,
                request.url,
                request.header_pairs(),
                request.body,
                connect_timeout,
                read_timeout,
            )
            response = HttpResponse(
                request=request,
                succeeded=True,
                status_code=result.status_code,
                body=result.body,
                headers=result.headers,
                reason_phrase=result.reason_phrase,
            )
        except TransportError as e:
            response = HttpResponse(
                request=request,
                succeeded=False,
                status_code=e.status_code,
                error_message=str(e) or type(e).__name__,
                timed_out=e.timed_out,
            )
        except Exception as e:
            # A broken transport must not take the worker down
            response = HttpResponse(
                request=request,
                succeeded=False,
                error_message=f"Unexpected transport error: {type(e).__name__}: {e}",
            )

        if response.succeeded:
            self._log_debug(f"Finished {request.url} with status {response.status_code}")
        else:
            self._log_debug(f"Failed {request.url}: {response.error_message}")

        if not self._queues.put_response(response):
            self._log_debug("Completion queue closed, dropping response")
            self._report_dropped(1)

    def _drain(self) -> None:
        dropped = len(self._queues.drain_requests()) + len(self._queues.close_responses())
        if dropped:
            self._log_debug(f"Dropped {dropped} undelivered request(s) on shutdown")
        self._report_dropped(dropped)

    def _report_dropped(self, count: int) -> None:
        if count and self._on_dropped is not None:
            self._on_dropped(count)
