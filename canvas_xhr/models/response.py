"""Response model for the asynchronous HTTP client."""

from pydantic import BaseModel

from canvas_xhr.models.request import HttpRequest


class HttpResponse(BaseModel):
    """Outcome of one transfer, owned by exactly one HttpRequest.

    status_code, body, headers and reason_phrase are meaningful only when
    succeeded is True. A non-200 final status keeps its code here but the
    response is still a failure.
    """

    request: HttpRequest
    succeeded: bool = False
    status_code: int = -1
    body: bytes = b""
    headers: tuple[tuple[str, str], ...] = ()
    reason_phrase: str = ""
    error_message: str = ""
    timed_out: bool = False

    model_config = {"frozen": True}

    def header(self, name: str) -> str | None:
        """Return the first header value matching name (case-insensitive)."""
        name_lower = name.lower()
        for key, value in self.headers:
            if key.lower() == name_lower:
                return value
        return None
