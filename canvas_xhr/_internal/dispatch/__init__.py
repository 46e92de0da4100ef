"""Request dispatch between the scripting thread and the network worker.

WARNING: This is a system-level module used by HttpClient.
Do not call directly from user code.
"""

from canvas_xhr._internal.dispatch.queues import DispatchQueues
from canvas_xhr._internal.dispatch.worker import Worker, WorkerState

__all__ = [
    "DispatchQueues",
    "Worker",
    "WorkerState",
]
