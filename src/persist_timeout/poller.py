"""Timeout poller — wakes periodically and fires due timeouts.

The poller owns the polling loop. Queue contents, listeners and
persistence are supplied by the Persister.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from persist_timeout.errors import PersistenceError, QueueInvariantError
from persist_timeout.identity import utc_now
from persist_timeout.listeners import ListenerRegistry
from persist_timeout.queue import TimeoutQueue
from persist_timeout.types import Listener, Timeout, TimeoutMeta, format_date

logger = logging.getLogger(__name__)

SaveCallback = Callable[[], Awaitable[None]]


class TimeoutPoller:
    """Fires due timeouts on a fixed period.

    Each tick drains every due timeout in date order. For each one, all
    listeners are notified concurrently and awaited, then the queue is
    saved before the next timeout is popped.

    Example:
        poller = TimeoutPoller(queue, listeners, save, period_seconds=5.0)
        poller.start()
        ...
        poller.stop()
        await poller.wait_closed()
    """

    def __init__(
        self,
        queue: TimeoutQueue,
        listeners: ListenerRegistry,
        save: SaveCallback,
        period_seconds: float = 5.0,
        heartbeat_ticks: int = 60,
        label: str = "",
    ):
        self._queue = queue
        self._listeners = listeners
        self._save = save
        self._period = period_seconds
        self._heartbeat_ticks = heartbeat_ticks
        self._label = label
        self._running = False
        self._draining = False
        self._tick_active = False
        self._error: QueueInvariantError | None = None
        self._drain_lock = asyncio.Lock()
        self._task: asyncio.Task | None = None
        self._tick_count = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def draining(self) -> bool:
        return self._draining

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def start(self) -> None:
        """Start the polling loop. Must be called with a running event loop."""
        if self._running:
            return
        self._task = asyncio.get_running_loop().create_task(self._poll_loop())
        self._running = True
        logger.info(
            "timeout_poller_started",
            extra={"persister.identity": self._label, "poll.period": self._period},
        )

    def stop(self) -> None:
        """Stop polling. A tick in progress is allowed to finish."""
        if not self._running:
            return
        self._running = False
        # Only the sleeping loop is cancelled; manual drains do not hold it.
        if self._task and not self._tick_active:
            self._task.cancel()
        logger.info("timeout_poller_stopped", extra={"persister.identity": self._label})

    async def wait_closed(self) -> None:
        """Wait for the polling task to exit after ``stop()``.

        Raises:
            QueueInvariantError: If the loop ended on a queue inconsistency.
        """
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        if self._error is not None:
            raise self._error

    async def _poll_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._period)
            if not self._running:
                break
            self._tick_count += 1
            if self._tick_count % self._heartbeat_ticks == 0:
                logger.info(
                    "timeout_poller_heartbeat",
                    extra={
                        "persister.identity": self._label,
                        "poll.count": self._tick_count,
                        "timeouts.pending": len(self._queue),
                    },
                )
            self._tick_active = True
            try:
                await self.drain()
            except PersistenceError as e:
                # Fired timeouts stay fired; the next save catches the file up.
                logger.error(
                    "timeout_save_failed",
                    extra={
                        "persister.identity": self._label,
                        "error.message": str(e),
                    },
                )
            except QueueInvariantError as e:
                logger.exception(
                    "timeout_queue_invariant_violated",
                    extra={"persister.identity": self._label},
                )
                self._error = e
                self._running = False
            finally:
                self._tick_active = False

    async def drain(self) -> int:
        """Fire every timeout due now. Returns how many fired.

        Raises:
            PersistenceError: If saving after a fired timeout fails.
            QueueInvariantError: If a due timeout cannot be popped.
        """
        fired = 0
        async with self._drain_lock:
            self._draining = True
            try:
                while self._queue.next_due(utc_now()) is not None:
                    timeout = self._queue.pop()
                    if timeout is None:
                        raise QueueInvariantError("due timeout missing at pop")
                    await self._dispatch(timeout)
                    fired += 1
                    await self._save()
            finally:
                self._draining = False
        return fired

    async def _dispatch(self, timeout: Timeout[Any]) -> None:
        listeners = self._listeners.snapshot()
        logger.info(
            "timeout_fired",
            extra={
                "persister.identity": self._label,
                "timeout.id": timeout.id,
                "timeout.date": format_date(timeout.fire_at),
                "listeners.count": len(listeners),
            },
        )
        results = await asyncio.gather(
            *(self._notify(lid, listener, timeout) for lid, listener in listeners),
            return_exceptions=True,
        )
        for (listener_id, _), result in zip(listeners, results, strict=True):
            if isinstance(result, Exception):
                logger.error(
                    "timeout_listener_error",
                    extra={
                        "persister.identity": self._label,
                        "timeout.id": timeout.id,
                        "listener.id": listener_id,
                        "error.message": str(result),
                    },
                )
            elif isinstance(result, BaseException):
                raise result

    async def _notify(
        self, listener_id: int, listener: Listener, timeout: Timeout[Any]
    ) -> None:
        meta = TimeoutMeta(timeout_id=timeout.id, listener_id=listener_id)
        result = listener(timeout.data, meta)
        if inspect.isawaitable(result):
            await result
