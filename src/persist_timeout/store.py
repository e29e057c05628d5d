"""JSON file store for the timeout queue.

The whole queue is written on every save as a JSON array of
``{"id", "date", "data"}`` records ordered by date. Atomic writes use
tempfile + fsync + os.replace().
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from persist_timeout.errors import LoadError, PersistenceError
from persist_timeout.types import JSON_CODEC, PayloadCodec, Timeout

logger = logging.getLogger(__name__)


class TimeoutStore:
    """Reads and writes one persister's state file."""

    def __init__(self, path: Path, codec: PayloadCodec = JSON_CODEC) -> None:
        self._path = path
        self._codec = codec

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def read(self) -> list[Timeout[Any]]:
        """Read the state file.

        Raises:
            LoadError: If the file is missing, unreadable or malformed.
        """
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise LoadError("state file not found", path=str(self._path)) from e
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(f"cannot read state file: {e}", path=str(self._path)) from e

        try:
            raw = json.loads(text)
        except (json.JSONDecodeError, RecursionError) as e:
            raise LoadError(f"invalid JSON: {e}", path=str(self._path)) from e
        if not isinstance(raw, list):
            raise LoadError("state file is not a JSON array", path=str(self._path))

        timeouts: list[Timeout[Any]] = []
        for index, record in enumerate(raw):
            try:
                timeouts.append(Timeout.from_dict(record, self._codec))
            except Exception as e:
                raise LoadError(
                    f"invalid record at index {index}: {e}", path=str(self._path)
                ) from e

        # Hand-edited files may be out of order; sorted() is stable.
        return sorted(timeouts, key=lambda t: t.fire_at)

    def load(self) -> list[Timeout[Any]]:
        """Read the state file, returning an empty list on any failure."""
        try:
            timeouts = self.read()
        except LoadError as e:
            if isinstance(e.__cause__, FileNotFoundError):
                logger.debug("state_file_missing", extra={"file.path": e.path})
            else:
                logger.warning(
                    "state_file_unreadable",
                    extra={"file.path": e.path, "error.message": str(e)},
                )
            return []

        logger.debug(
            "state_file_loaded",
            extra={"file.path": str(self._path), "timeouts.count": len(timeouts)},
        )
        return timeouts

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def serialize(self, timeouts: Iterable[Timeout[Any]]) -> str:
        """Render timeouts in the on-disk format."""
        return json.dumps([t.to_dict(self._codec) for t in timeouts])

    def save(self, timeouts: Iterable[Timeout[Any]]) -> None:
        """Overwrite the state file with ``timeouts``.

        Raises:
            PersistenceError: If serialization or the write fails. The
                previous file is left untouched.
        """
        try:
            text = self.serialize(timeouts)
            _write_text_atomic(self._path, text)
        except Exception as e:
            raise PersistenceError.wrap(e) from e

    async def save_async(self, timeouts: Iterable[Timeout[Any]]) -> None:
        """Async variant of ``save``.

        Serializes on the event-loop thread so the written state matches the
        queue at call time, then writes in a worker thread.
        """
        try:
            text = self.serialize(timeouts)
            await asyncio.to_thread(_write_text_atomic, self._path, text)
        except Exception as e:
            raise PersistenceError.wrap(e) from e

    def clear(self) -> bool:
        """Delete the state file. Returns True if a file was removed."""
        try:
            self._path.unlink()
        except FileNotFoundError:
            return False
        return True


def _write_text_atomic(path: Path, text: str) -> None:
    """Write text atomically via tempfile + fsync + os.replace()."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        Path(tmp).replace(path)
    except BaseException:
        try:
            Path(tmp).unlink()
        except OSError:
            pass
        raise
