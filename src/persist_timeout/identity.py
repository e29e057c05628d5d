"""Clock and identifier helpers."""

import itertools
import threading
from datetime import UTC, datetime, timedelta

# Ids are stored as JSON numbers; keep them within int64.
MAX_ID = (1 << 63) - 1


def utc_now() -> datetime:
    """Current UTC time truncated to milliseconds."""
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def fire_time(delay_ms: float, now: datetime | None = None) -> datetime:
    """Instant ``delay_ms`` milliseconds after ``now``.

    Raises:
        ValueError: If the delay is not a finite number or the result falls
            outside the supported date range.
    """
    base = now or utc_now()
    try:
        fire_at = base + timedelta(milliseconds=delay_ms)
    except (OverflowError, ValueError) as e:
        raise ValueError(f"delay_ms out of range: {delay_ms}") from e
    return fire_at.replace(microsecond=fire_at.microsecond // 1000 * 1000)


class IdGenerator:
    """Monotonic id source.

    Starts from wall-clock milliseconds scaled by 1000 so that a restarted
    process hands out ids above anything the previous run generated.
    ``observe`` moves the generator past ids loaded from elsewhere.
    """

    def __init__(self, start: int | None = None) -> None:
        if start is None:
            start = int(datetime.now(UTC).timestamp() * 1000) * 1000
        self._next = start
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
        if value > MAX_ID:
            raise OverflowError("id space exhausted")
        return value

    def observe(self, value: int) -> None:
        with self._lock:
            if value >= self._next:
                self._next = value + 1


class InstanceCounter:
    """Numbers persister instances that were not given a name."""

    def __init__(self, start: int = 0) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            return next(self._counter)


default_instance_counter = InstanceCounter()
