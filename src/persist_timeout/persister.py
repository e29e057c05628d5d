"""Persister — durable timeouts with listener notification.

Composes the timeout queue, the JSON store, the listener registry and the
poller. State is loaded at construction and saved after every mutation.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Generic, TypeVar

from persist_timeout.config import PersisterConfig
from persist_timeout.errors import PersistenceError
from persist_timeout.identity import (
    IdGenerator,
    InstanceCounter,
    default_instance_counter,
    fire_time,
)
from persist_timeout.listeners import ListenerRegistry
from persist_timeout.paths import get_state_path
from persist_timeout.poller import TimeoutPoller
from persist_timeout.queue import TimeoutQueue
from persist_timeout.store import TimeoutStore
from persist_timeout.types import JSON_CODEC, Listener, PayloadCodec, Timeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Persister(Generic[T]):
    """Schedules payloads to fire after a delay, surviving restarts.

    Must be constructed inside a running event loop; polling starts
    immediately.

    Example:
        persister = Persister(name="reminders", period_ms=1000)

        async def on_fire(data, meta):
            await send_reminder(data)

        persister.add_listener(on_fire)
        await persister.set_timeout({"text": "stand up"}, 60_000)
    """

    def __init__(
        self,
        name: str | None = None,
        period_ms: int | None = None,
        *,
        config: PersisterConfig | None = None,
        base_dir: Path | None = None,
        process_id: str | None = None,
        codec: PayloadCodec | None = None,
        instance_counter: InstanceCounter | None = None,
    ) -> None:
        overrides: dict[str, Any] = {
            key: value
            for key, value in (
                ("name", name),
                ("period_ms", period_ms),
                ("base_dir", base_dir),
                ("process_id", process_id),
            )
            if value is not None
        }
        if config is None:
            config = PersisterConfig(**overrides)
        elif overrides:
            config = PersisterConfig(**{**config.model_dump(), **overrides})
        self._config = config

        if config.name is not None:
            instance: str | int = config.name
        else:
            instance = (instance_counter or default_instance_counter).next()
        self._identity = f"{config.process_id}-{instance}"

        self._store = TimeoutStore(
            get_state_path(config.base_dir, config.process_id, instance),
            codec or JSON_CODEC,
        )
        loaded = self._store.load()
        self._queue = TimeoutQueue(loaded)
        self._timeout_ids = IdGenerator()
        for timeout in loaded:
            self._timeout_ids.observe(timeout.id)

        self._listeners = ListenerRegistry()
        self._save_lock = asyncio.Lock()
        self._poller = TimeoutPoller(
            self._queue,
            self._listeners,
            self._persist,
            period_seconds=config.period_seconds,
            heartbeat_ticks=config.heartbeat_ticks,
            label=self._identity,
        )

        logger.info(
            "persister_loaded",
            extra={
                "persister.identity": self._identity,
                "file.path": str(self._store.path),
                "timeouts.count": len(self._queue),
            },
        )
        self._poller.start()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def config(self) -> PersisterConfig:
        return self._config

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def path(self) -> Path:
        return self._store.path

    @property
    def timeouts(self) -> list[Timeout[T]]:
        """Pending timeouts in fire order."""
        return self._queue.snapshot()

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    @property
    def running(self) -> bool:
        return self._poller.running

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def set_timeout(self, data: T, delay_ms: float) -> int:
        """Schedule ``data`` to fire after ``delay_ms`` milliseconds.

        Returns once the new state is saved.

        Raises:
            PersistenceError: If the payload cannot be encoded (nothing is
                scheduled) or the save fails (the timeout stays scheduled in
                memory and is written by the next successful save).
            ValueError: If ``delay_ms`` does not give a representable date.
        """
        timeout: Timeout[T] = Timeout(
            id=self._timeout_ids.next_id(),
            fire_at=fire_time(delay_ms),
            data=data,
        )
        try:
            self._store.serialize([timeout])
        except Exception as e:
            raise PersistenceError.wrap(e) from e

        self._queue.insert(timeout)
        logger.debug(
            "timeout_scheduled",
            extra={
                "persister.identity": self._identity,
                "timeout.id": timeout.id,
                "timeout.delay_ms": delay_ms,
            },
        )
        await self._persist()
        return timeout.id

    def add_listener(self, listener: Listener) -> int:
        return self._listeners.add(listener)

    def remove_listener(self, listener: Listener | int) -> None:
        self._listeners.remove(listener)

    def stop(self) -> None:
        """Stop automatic firing. Safe to call more than once."""
        self._poller.stop()

    async def wait_closed(self) -> None:
        await self._poller.wait_closed()

    async def drain(self) -> int:
        """Fire due timeouts now, e.g. after ``stop()``. Returns how many fired."""
        return await self._poller.drain()

    async def __aenter__(self) -> Persister[T]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.stop()
        await self.wait_closed()

    async def _persist(self) -> None:
        # Snapshot under the lock so the last write always holds the newest state.
        async with self._save_lock:
            await self._store.save_async(self._queue.snapshot())
