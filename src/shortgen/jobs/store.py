"""Storage for scheduled uploads waiting to be dispatched."""

import threading
from collections import deque
from typing import Protocol

from shortgen.models.schedule import ScheduledUploadItem


class ScheduleStore(Protocol):
    """Queue of waiting items, shared by callers and the dispatcher loop.

    Implementations must be safe to call from several threads/tasks at once.
    An in-memory store is the default; a persistent store can be swapped in
    behind the same dispatcher.
    """

    def append(self, item: ScheduledUploadItem) -> None:
        """Add an item to the back of the queue."""
        ...

    def drain(self) -> list[ScheduledUploadItem]:
        """Remove and return every queued item, front first."""
        ...

    def snapshot(self) -> list[ScheduledUploadItem]:
        """Queued items without removing them."""
        ...

    def count(self) -> int:
        ...


class InMemoryScheduleStore:
    """Mutex-guarded deque. Contents are lost on restart."""

    def __init__(self) -> None:
        self._items: deque[ScheduledUploadItem] = deque()
        self._lock = threading.Lock()

    def append(self, item: ScheduledUploadItem) -> None:
        with self._lock:
            self._items.append(item)

    def drain(self) -> list[ScheduledUploadItem]:
        with self._lock:
            items = list(self._items)
            self._items.clear()
        return items

    def snapshot(self) -> list[ScheduledUploadItem]:
        with self._lock:
            return list(self._items)

    def count(self) -> int:
        with self._lock:
            return len(self._items)
