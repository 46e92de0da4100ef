"""Request model for the asynchronous HTTP client."""

from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, field_validator


class HttpMethod(str, Enum):
    """HTTP methods the transport knows how to perform."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> "HttpMethod":
        """Map a method name (case-insensitive) to a member, else UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        try:
            method = cls(value.strip().upper())
        except ValueError:
            return cls.UNKNOWN
        return method


class HttpRequest(BaseModel):
    """Description of one HTTP call.

    Instances are frozen: headers and body are copied into immutable types
    when the request is built, so a request can cross the thread boundary
    without locking.

    Fields:
        url: Absolute URL to fetch.
        method: HTTP method (UNKNOWN is rejected by HttpClient.send).
        headers: Ordered "Name: value" header lines.
        body: Request body, sent for POST and PUT.
        connect_timeout: Seconds allowed for connecting. None uses the client's.
        read_timeout: Seconds allowed for the whole transfer. None uses the client's.
        tag: Opaque string for diagnostics.
        completion_handler: Called with the HttpResponse on the polling thread.
    """

    url: str
    method: HttpMethod = HttpMethod.GET
    headers: tuple[str, ...] = ()
    body: bytes = b""
    connect_timeout: float | None = None
    read_timeout: float | None = None
    tag: str = ""
    completion_handler: Callable[..., Any] | None = None

    model_config = {"frozen": True}

    @field_validator("method", mode="before")
    @classmethod
    def coerce_method(cls, v: Any) -> Any:
        if isinstance(v, str) and not isinstance(v, HttpMethod):
            return HttpMethod.parse(v)
        return v

    @field_validator("headers", mode="before")
    @classmethod
    def coerce_headers(cls, v: Any) -> Any:
        # Accept a mapping of name -> value as a convenience
        if isinstance(v, dict):
            return tuple(f"{name}: {value}" for name, value in v.items())
        if isinstance(v, list):
            return tuple(v)
        return v

    @field_validator("body", mode="before")
    @classmethod
    def encode_body(cls, v: Any) -> Any:
        if v is None:
            return b""
        if isinstance(v, str):
            return v.encode("utf-8")
        if isinstance(v, bytearray | memoryview):
            return bytes(v)
        return v

    def header_pairs(self) -> list[tuple[str, str]]:
        """Split the header lines into (name, value) pairs."""
        pairs = []
        for line in self.headers:
            name, _, value = line.partition(":")
            pairs.append((name.strip(), value.strip()))
        return pairs
