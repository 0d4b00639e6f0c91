"""RequestQueue: In-memory FIFO of pending price requests.

The event listener is the producer and the batch processor the sole
consumer. Both may run on different threads, so every operation holds the
queue's own lock. The queue is unbounded; the processor bounds how much is
drained per tick.

.. code-block:: python

    >>> queue = RequestQueue()
    >>> queue.enqueue(PendingRequest("0xA", "1"))
    >>> queue.enqueue(PendingRequest("0xB", "2"))
    >>> [str(r) for r in queue.dequeue_batch(5)]
    ['1@0xA', '2@0xB']
    >>> len(queue)
    0
"""

from __future__ import annotations

import threading
from collections import deque

from .PendingRequest import PendingRequest


class RequestQueue:
    """Thread-safe, insertion-ordered, unbounded request buffer."""

    def __init__(self) -> None:
        self._items: deque[PendingRequest] = deque()
        self._lock = threading.Lock()

    def enqueue(self, request: PendingRequest) -> None:
        """Append a request to the tail of the queue.

        No deduplication: the same caller/id pair may be queued repeatedly.

        :param request: Request to append.
        """
        with self._lock:
            self._items.append(request)

    def dequeue_batch(self, max_count: int) -> list[PendingRequest]:
        """Remove and return up to ``max_count`` requests from the head.

        :param max_count: Maximum number of requests to remove.
        :returns: Requests in insertion order; empty if the queue is empty.
        :raises ValueError: If max_count is negative.
        """
        if max_count < 0:
            raise ValueError("max_count must not be negative")

        with self._lock:
            count = min(max_count, len(self._items))
            return [self._items.popleft() for _ in range(count)]

    def is_empty(self) -> bool:
        """Check whether any request is waiting."""
        with self._lock:
            return not self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
