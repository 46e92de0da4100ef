"""XMLHttpRequest-style object exposed to scripting code.

Each instance drives one call at a time through a shared HttpClient:

    xhr = XMLHttpRequest(client)
    xhr.onload = lambda event: print(xhr.response_text)
    xhr.open("GET", "https://example.com/config.json")
    xhr.send()

    # later, in the host frame loop
    client.poll_completions()
"""

import base64
import functools
import json
from enum import IntEnum
from typing import Any

from pydantic import ValidationError

from canvas_xhr.client import HttpClient, validate_request
from canvas_xhr.events import EventTarget
from canvas_xhr.exceptions import RequestBuildError
from canvas_xhr.models.request import HttpMethod, HttpRequest
from canvas_xhr.models.response import HttpResponse

RESPONSE_TYPES = frozenset({"", "text", "json", "arraybuffer"})


class ReadyState(IntEnum):
    """readyState values, numbered as in the browser API."""

    UNSENT = 0
    OPENED = 1
    HEADERS_RECEIVED = 2
    LOADING = 3
    DONE = 4


class XMLHttpRequest(EventTarget):
    """Per-call request object with browser-like state and events.

    Calls that would clobber a live request (send before open, open or send
    while LOADING) are ignored. Each send is tagged with a generation
    number so that a completion arriving after abort() or a new open() is
    dropped instead of overwriting the current state.
    """

    UNSENT = ReadyState.UNSENT
    OPENED = ReadyState.OPENED
    HEADERS_RECEIVED = ReadyState.HEADERS_RECEIVED
    LOADING = ReadyState.LOADING
    DONE = ReadyState.DONE

    EVENT_NAMES = (
        "loadstart",
        "load",
        "loadend",
        "error",
        "abort",
        "readystatechange",
        "progress",
        "timeout",
    )

    def __init__(self, client: HttpClient) -> None:
        super().__init__(debug=client.debug)
        self._client = client
        self._state = ReadyState.UNSENT
        self._generation = 0
        self._method: str | None = None
        self._url: str | None = None
        self._user: str | None = None
        self._password: str | None = None
        self._request_headers: dict[str, tuple[str, str]] = {}
        self._in_flight: HttpRequest | None = None
        self._response: HttpResponse | None = None
        self._response_type = ""
        self.timeout = 0

    def _log_debug(self, message: str) -> None:
        """Log a debug message to stderr if debug mode is enabled."""
        if self._debug:
            import sys

            print(f"[canvas-xhr:xhr] {message}", file=sys.stderr)

    def _set_state(self, state: ReadyState) -> None:
        self._state = state
        self.trigger_event("readystatechange")

    # =========================================================================
    # Scripting surface
    # =========================================================================

    def open(
        self,
        method: str,
        url: str,
        async_: bool = True,
        user: str | None = None,
        password: str | None = None,
    ) -> None:
        """Prepare a new call. Ignored while a request is loading."""
        if self._state == ReadyState.LOADING:
            self._log_debug(f"open({method}, {url}) ignored while loading")
            return

        self._generation += 1
        self._in_flight = None
        self._response = None
        self._request_headers = {}
        self._method = method
        self._url = url
        self._user = user
        self._password = password
        if not async_:
            self._log_debug("Synchronous requests are not supported, sending asynchronously")
        self._set_state(ReadyState.OPENED)

    def set_request_header(self, name: str, value: str) -> None:
        if self._state != ReadyState.OPENED:
            self._log_debug(f"set_request_header({name}) ignored in state {self._state.name}")
            return
        key = name.lower()
        if key in self._request_headers:
            stored_name, stored_value = self._request_headers[key]
            self._request_headers[key] = (stored_name, f"{stored_value}, {value}")
        else:
            self._request_headers[key] = (name, str(value))

    def send(self, body: str | bytes | None = None) -> None:
        """Start the call prepared by open().

        Raises:
            RequestBuildError: If the URL is empty, the method unsupported or
                the body not text or bytes.
        """
        if self._state != ReadyState.OPENED or self._url is None:
            self._log_debug(f"send() ignored in state {self._state.name}")
            return

        headers = [f"{name}: {value}" for name, value in self._request_headers.values()]
        if self._user is not None and "authorization" not in self._request_headers:
            credentials = f"{self._user}:{self._password or ''}".encode()
            headers.append(f"Authorization: Basic {base64.b64encode(credentials).decode('ascii')}")

        # A bad request must leave the object OPENED
        handler = functools.partial(self._on_request_completed, self._generation)
        try:
            request = HttpRequest(
                url=self._url,
                method=HttpMethod.parse(self._method),
                headers=tuple(headers),
                body=body,
                read_timeout=self.timeout / 1000 if self.timeout else None,
                tag=f"{self._method} {self._url}",
                completion_handler=handler,
            )
        except ValidationError as e:
            raise RequestBuildError(f"Invalid request to {self._url}: {e}") from e
        validate_request(request)
        if self._client.stopped:
            self._log_debug("send() ignored, client stopped")
            return

        self._log_debug(f"XHR: {request.method.value} {request.url}")
        self._in_flight = request
        self.trigger_event("loadstart")
        self._set_state(ReadyState.LOADING)
        self._client.send(request)

    def abort(self) -> None:
        """Abandon the current call. A response that still arrives is ignored."""
        if self._state != ReadyState.LOADING:
            return

        if self._in_flight is not None:
            self._client.cancel(self._in_flight)
        self._generation += 1
        self._in_flight = None
        self._response = None
        self._state = ReadyState.UNSENT
        self.trigger_event("abort")
        self.trigger_event("loadend")

    def get_response_header(self, name: str) -> str | None:
        if self._state != ReadyState.DONE or self._response is None:
            return None
        if not self._response.succeeded:
            return None
        return self._response.header(name)

    def get_all_response_headers(self) -> str:
        if self._state != ReadyState.DONE or self._response is None:
            return ""
        if not self._response.succeeded:
            return ""
        return "".join(f"{name}: {value}\r\n" for name, value in self._response.headers)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def ready_state(self) -> ReadyState:
        return self._state

    @property
    def status(self) -> int:
        """HTTP status of a finished call; 0 before completion or on failure."""
        if self._response is None or not self._response.succeeded:
            return 0
        return self._response.status_code

    @property
    def status_text(self) -> str:
        if self._response is None or not self._response.succeeded:
            return ""
        return self._response.reason_phrase

    @property
    def response_type(self) -> str:
        return self._response_type

    @response_type.setter
    def response_type(self, value: str) -> None:
        if value not in RESPONSE_TYPES:
            self._log_debug(f"Ignoring unsupported response_type {value!r}")
            return
        self._response_type = value

    @property
    def response_text(self) -> str | None:
        if self._response is None or not self._response.succeeded:
            return None
        return self._response.body.decode("utf-8", errors="replace")

    @property
    def response(self) -> Any:
        """Body decoded according to response_type."""
        if self._response is None or not self._response.succeeded:
            return None
        if self._response_type == "arraybuffer":
            return self._response.body
        if self._response_type == "json":
            try:
                return json.loads(self._response.body)
            except ValueError:
                return None
        return self.response_text

    # =========================================================================
    # Completion
    # =========================================================================

    def _on_request_completed(self, generation: int, response: HttpResponse) -> None:
        if generation != self._generation:
            self._log_debug(f"Ignoring stale response for {response.request.url}")
            return

        self._in_flight = None
        self._response = response
        self._set_state(ReadyState.DONE)

        if response.succeeded:
            size = len(response.body)
            self.trigger_event("progress", loaded=size, total=size)
            self.trigger_event("load")
        else:
            self._log_debug(f"Request failed: {response.error_message}")
            self.trigger_event("timeout" if response.timed_out else "error")
        self.trigger_event("loadend")
