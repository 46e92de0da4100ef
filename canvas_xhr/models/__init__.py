"""Request and response models.

    from canvas_xhr.models import HttpMethod, HttpRequest

    request = HttpRequest(
        url="https://example.com/scores",
        method=HttpMethod.POST,
        headers=("Content-Type: application/json",),
        body=b'{"score": 10}',
        completion_handler=on_scores_saved,
    )
"""

from canvas_xhr.models.request import HttpMethod, HttpRequest
from canvas_xhr.models.response import HttpResponse

__all__ = ["HttpMethod", "HttpRequest", "HttpResponse"]
