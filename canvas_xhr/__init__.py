"""canvas-xhr: asynchronous HTTP for single-threaded scripting hosts.

Public API:
    HttpClient - Queues requests for a background worker, delivers results
        on the scripting thread via poll_completions()
    XMLHttpRequest - Browser-style request object built on HttpClient
    HttpRequest, HttpResponse, HttpMethod - Request/response models

Internal (system-level, not for direct use):
    _internal.dispatch - Queues and network worker
    _internal.transport - Synchronous HTTP transports
"""

from canvas_xhr._version import __version__
from canvas_xhr.client import HttpClient
from canvas_xhr.exceptions import (
    CanvasXHRError,
    ConfigError,
    RequestBuildError,
    TransportError,
)
from canvas_xhr.models import HttpMethod, HttpRequest, HttpResponse
from canvas_xhr.xhr import ReadyState, XMLHttpRequest

__all__ = [
    "__version__",
    "HttpClient",
    "XMLHttpRequest",
    "ReadyState",
    "HttpMethod",
    "HttpRequest",
    "HttpResponse",
    "CanvasXHRError",
    "ConfigError",
    "RequestBuildError",
    "TransportError",
]
