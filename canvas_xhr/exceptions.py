"""Public exceptions for canvas-xhr."""


class CanvasXHRError(Exception):
    """Base exception for all canvas-xhr errors."""


class RequestBuildError(CanvasXHRError):
    """Malformed request (missing URL, unknown method) rejected before enqueue."""


class TransportError(CanvasXHRError):
    """Failure of a single transfer.

    Raised inside the transport on the worker thread and turned into a failed
    HttpResponse. Never thrown back to the code that sent the request.
    """

    def __init__(
        self, message: str, status_code: int = -1, *, timed_out: bool = False
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.timed_out = timed_out


class ConfigError(CanvasXHRError):
    """Configuration error (invalid timeouts)."""
