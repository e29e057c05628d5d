"""In-memory timeout queue ordered by fire time."""

import bisect
from collections.abc import Iterable, Iterator
from datetime import datetime
from typing import Any

from persist_timeout.types import Timeout


def _fire_at(timeout: Timeout[Any]) -> datetime:
    return timeout.fire_at


class TimeoutQueue:
    """Timeouts sorted ascending by ``fire_at``.

    Entries with equal fire times keep insertion order: a new entry goes
    before the first stored entry whose fire time is strictly greater.
    """

    def __init__(self, timeouts: Iterable[Timeout[Any]] = ()) -> None:
        self._items: list[Timeout[Any]] = []
        for timeout in timeouts:
            self.insert(timeout)

    def insert(self, timeout: Timeout[Any]) -> Timeout[Any]:
        index = bisect.bisect_right(self._items, timeout.fire_at, key=_fire_at)
        self._items.insert(index, timeout)
        return timeout

    def peek(self) -> Timeout[Any] | None:
        return self._items[0] if self._items else None

    def pop(self) -> Timeout[Any] | None:
        return self._items.pop(0) if self._items else None

    def next_due(self, now: datetime) -> Timeout[Any] | None:
        """Earliest timeout if it is due at ``now``, without removing it."""
        head = self.peek()
        if head is None or not head.is_due(now):
            return None
        return head

    def snapshot(self) -> list[Timeout[Any]]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[Timeout[Any]]:
        return iter(list(self._items))
