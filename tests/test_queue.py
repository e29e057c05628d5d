"""Tests for the fire-time ordered queue."""

import random
from datetime import timedelta

from persist_timeout.identity import utc_now
from persist_timeout.queue import TimeoutQueue
from persist_timeout.types import Timeout
from tests.conftest import make_timeout


def _is_sorted(queue: TimeoutQueue) -> bool:
    dates = [t.fire_at for t in queue]
    return dates == sorted(dates)


class TestTimeoutQueue:
    """Tests for TimeoutQueue."""

    def test_empty(self):
        queue = TimeoutQueue()
        assert len(queue) == 0
        assert not queue
        assert queue.peek() is None
        assert queue.pop() is None

    def test_insert_returns_record(self):
        queue = TimeoutQueue()
        timeout = make_timeout(1, "a")
        assert queue.insert(timeout) is timeout
        assert len(queue) == 1

    def test_insert_orders_by_fire_time(self):
        now = utc_now()
        queue = TimeoutQueue()
        queue.insert(make_timeout(1, now=now, offset_ms=300))
        queue.insert(make_timeout(2, now=now, offset_ms=100))
        queue.insert(make_timeout(3, now=now, offset_ms=200))
        assert [t.id for t in queue] == [2, 3, 1]

    def test_insert_latest_appends_at_end(self):
        now = utc_now()
        queue = TimeoutQueue()
        queue.insert(make_timeout(1, now=now, offset_ms=100))
        queue.insert(make_timeout(2, now=now, offset_ms=200))
        queue.insert(make_timeout(3, now=now, offset_ms=300))
        assert [t.id for t in queue] == [1, 2, 3]

    def test_equal_fire_times_keep_insertion_order(self):
        now = utc_now()
        queue = TimeoutQueue()
        queue.insert(make_timeout(1, now=now, offset_ms=50))
        queue.insert(make_timeout(2, now=now, offset_ms=100))
        queue.insert(make_timeout(3, now=now, offset_ms=50))
        queue.insert(make_timeout(4, now=now, offset_ms=50))
        assert [t.id for t in queue] == [1, 3, 4, 2]
        assert [queue.pop().id for _ in range(4)] == [1, 3, 4, 2]

    def test_stays_sorted_for_random_inserts(self):
        rng = random.Random(1234)
        now = utc_now()
        queue = TimeoutQueue()
        for i in range(200):
            offset = timedelta(milliseconds=rng.randint(-1000, 1000))
            queue.insert(Timeout(id=i, fire_at=now + offset, data=None))
            assert _is_sorted(queue)

    def test_peek_does_not_mutate(self):
        queue = TimeoutQueue([make_timeout(1)])
        assert queue.peek().id == 1
        assert queue.peek().id == 1
        assert len(queue) == 1

    def test_pop_removes_earliest(self):
        now = utc_now()
        queue = TimeoutQueue(
            [make_timeout(1, now=now, offset_ms=20), make_timeout(2, now=now)]
        )
        assert queue.pop().id == 2
        assert queue.pop().id == 1
        assert queue.pop() is None

    def test_next_due(self):
        now = utc_now()
        queue = TimeoutQueue([make_timeout(1, now=now, offset_ms=1000)])
        assert queue.next_due(now) is None
        assert queue.next_due(now + timedelta(seconds=1)).id == 1
        assert len(queue) == 1

    def test_next_due_on_empty_queue(self):
        assert TimeoutQueue().next_due(utc_now()) is None

    def test_snapshot_is_a_copy(self):
        queue = TimeoutQueue([make_timeout(1)])
        snapshot = queue.snapshot()
        queue.pop()
        assert [t.id for t in snapshot] == [1]
