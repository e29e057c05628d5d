"""Durable delayed-task queue.

Public API:
- Persister: Schedules payloads, persists them, and notifies listeners
- PersisterConfig: Validated construction options

Building blocks:
- TimeoutQueue: Fire-time ordered in-memory queue
- TimeoutStore: JSON state file with atomic writes
- ListenerRegistry: Listener id to callback mapping
- TimeoutPoller: Periodic drain-and-notify loop

Types:
- Timeout, TimeoutMeta, Listener, PayloadCodec

Errors:
- PersisterError, LoadError, PersistenceError, QueueInvariantError
"""

from persist_timeout.config import PersisterConfig
from persist_timeout.errors import (
    LoadError,
    PersistenceError,
    PersisterError,
    QueueInvariantError,
)
from persist_timeout.identity import IdGenerator, InstanceCounter
from persist_timeout.listeners import ListenerRegistry
from persist_timeout.persister import Persister
from persist_timeout.poller import TimeoutPoller
from persist_timeout.queue import TimeoutQueue
from persist_timeout.store import TimeoutStore
from persist_timeout.types import JSON_CODEC, Listener, PayloadCodec, Timeout, TimeoutMeta

__all__ = [
    "IdGenerator",
    "InstanceCounter",
    "JSON_CODEC",
    "Listener",
    "ListenerRegistry",
    "LoadError",
    "PayloadCodec",
    "PersistenceError",
    "Persister",
    "PersisterConfig",
    "PersisterError",
    "QueueInvariantError",
    "Timeout",
    "TimeoutMeta",
    "TimeoutPoller",
    "TimeoutQueue",
    "TimeoutStore",
]
