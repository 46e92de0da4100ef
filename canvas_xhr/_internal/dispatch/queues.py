"""Pending and completed queues shared by the scripting thread and the worker."""

import threading
from collections import deque

from canvas_xhr.models.request import HttpRequest
from canvas_xhr.models.response import HttpResponse


class DispatchQueues:
    """Two FIFO queues, each behind its own lock.

    The work_available condition shares the pending lock: the worker waits
    on it while nothing is pending, and put_request/shutdown notify it.
    Popping a request hands the only queue-held reference to the caller.
    """

    def __init__(self) -> None:
        self._pending: deque[HttpRequest] = deque()
        self._pending_lock = threading.Lock()
        self.work_available = threading.Condition(self._pending_lock)
        self._shutdown = False

        self._completed: deque[HttpResponse] = deque()
        self._completed_lock = threading.Lock()
        self._completed_closed = False

    # =========================================================================
    # Pending requests
    # =========================================================================

    def put_request(self, request: HttpRequest) -> None:
        """Append a request and wake the worker."""
        with self.work_available:
            self._pending.append(request)
            self.work_available.notify()

    def take_request(self) -> HttpRequest | None:
        """Block until a request is pending; None once shutdown was requested."""
        with self.work_available:
            while not self._pending and not self._shutdown:
                self.work_available.wait()
            if self._shutdown:
                return None
            return self._pending.popleft()

    def remove_request(self, request: HttpRequest) -> bool:
        """Remove a request that the worker has not taken yet."""
        with self._pending_lock:
            for index, queued in enumerate(self._pending):
                if queued is request:
                    del self._pending[index]
                    return True
        return False

    def drain_requests(self) -> list[HttpRequest]:
        """Remove and return every pending request."""
        with self._pending_lock:
            dropped = list(self._pending)
            self._pending.clear()
        return dropped

    def shutdown(self) -> None:
        """Ask the worker to stop; wakes it if it is waiting."""
        with self.work_available:
            self._shutdown = True
            self.work_available.notify_all()

    @property
    def shutdown_requested(self) -> bool:
        with self._pending_lock:
            return self._shutdown

    @property
    def pending_count(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    # =========================================================================
    # Completed responses
    # =========================================================================

    def put_response(self, response: HttpResponse) -> bool:
        """Append a response. Returns False if the queue is closed."""
        with self._completed_lock:
            if self._completed_closed:
                return False
            self._completed.append(response)
            return True

    def pop_response(self) -> HttpResponse | None:
        """Pop the oldest response without waiting."""
        with self._completed_lock:
            if not self._completed:
                return None
            return self._completed.popleft()

    def close_responses(self) -> list[HttpResponse]:
        """Close the completion queue and return what it held."""
        with self._completed_lock:
            self._completed_closed = True
            dropped = list(self._completed)
            self._completed.clear()
        return dropped

    @property
    def completed_count(self) -> int:
        with self._completed_lock:
            return len(self._completed)
