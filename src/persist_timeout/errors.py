"""Persister errors.

- LoadError: state file missing or unreadable at startup (recovered locally)
- PersistenceError: state file could not be written
- QueueInvariantError: internal queue inconsistency
"""


class PersisterError(Exception):
    """Base error for timeout persistence."""

    pass


class LoadError(PersisterError):
    """State file could not be read or parsed."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class PersistenceError(PersisterError):
    """State file could not be written.

    The underlying I/O error is available as ``__cause__``.
    """

    @classmethod
    def wrap(cls, error: BaseException) -> "PersistenceError":
        return cls(f"Persister error: couldn't save file due {error}")


class QueueInvariantError(PersisterError):
    """Queue reported a due timeout that could not be popped."""

    pass
