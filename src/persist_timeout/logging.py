"""Logging configuration for persist-timeout.

The library only creates module loggers; applications and the CLI call
configure_logging() once at startup.

Logging Levels:
- DEBUG: Store reads/writes, listener registration
- INFO: Poller start/stop, fired timeouts, heartbeats
- WARNING: Unreadable state files (recovered as an empty queue)
- ERROR: Failed saves during a tick, listener failures
"""

import logging
import os

ENV_VAR = "PERSIST_TIMEOUT_LOG_LEVEL"

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ComponentFormatter(logging.Formatter):
    """Formatter that extracts component name from logger path.

    - persist_timeout.poller -> poller
    - persist_timeout.store -> store
    """

    def format(self, record: logging.LogRecord) -> str:
        parts = record.name.split(".")
        if len(parts) >= 2 and parts[0] == "persist_timeout":
            record.component = parts[1]
        else:
            record.component = parts[0]
        return super().format(record)


def resolve_level(level: str | None = None) -> int:
    """Resolve a level name, falling back to the env var and then INFO."""
    if level is None:
        level = os.environ.get(ENV_VAR, "INFO")
    level = level.upper()
    if level not in LEVELS:
        level = "INFO"
    return getattr(logging, level)


def configure_logging(level: str | None = None, use_rich: bool = False) -> None:
    """Configure logging for applications using persist-timeout.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
            If None, uses PERSIST_TIMEOUT_LOG_LEVEL env var or INFO.
        use_rich: Use Rich handler for colorful output.
    """
    log_level = resolve_level(level)

    handler: logging.Handler
    if use_rich:
        from rich.logging import RichHandler

        handler = RichHandler(
            rich_tracebacks=False,
            show_path=False,
            show_time=True,
            markup=False,
        )
        handler.setFormatter(ComponentFormatter("%(component)s | %(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )

    logging.basicConfig(level=log_level, handlers=[handler], force=True)
