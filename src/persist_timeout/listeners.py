"""Listener registry."""

import logging

from persist_timeout.identity import IdGenerator
from persist_timeout.types import Listener

logger = logging.getLogger(__name__)


class ListenerRegistry:
    """Maps generated listener ids to callbacks."""

    def __init__(self, ids: IdGenerator | None = None) -> None:
        self._ids = ids or IdGenerator(start=1)
        self._listeners: dict[int, Listener] = {}

    def add(self, listener: Listener) -> int:
        listener_id = self._ids.next_id()
        self._listeners[listener_id] = listener
        logger.debug("listener_added", extra={"listener.id": listener_id})
        return listener_id

    def remove(self, listener: Listener | int) -> None:
        """Remove by id or by the callback itself. Unknown values are ignored.

        Callbacks match by ``==``: identity for plain functions, while bound
        methods of the same object compare equal even when looked up twice.
        Only the first matching registration is removed.
        """
        if isinstance(listener, int):
            listener_id: int | None = listener
        else:
            listener_id = next(
                (lid for lid, fn in self._listeners.items() if fn == listener),
                None,
            )
        if listener_id is None:
            return
        if self._listeners.pop(listener_id, None) is not None:
            logger.debug("listener_removed", extra={"listener.id": listener_id})

    def snapshot(self) -> list[tuple[int, Listener]]:
        """Current listeners, for dispatching one fired timeout."""
        return list(self._listeners.items())

    def __len__(self) -> int:
        return len(self._listeners)

    def __contains__(self, listener_id: object) -> bool:
        return listener_id in self._listeners
