"""Persister configuration using Pydantic."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from persist_timeout.paths import get_base_dir, get_process_id

DEFAULT_PERIOD_MS = 5000


class PersisterConfig(BaseModel):
    """Configuration for one Persister instance.

    ``name`` namespaces the state file; without it the persister is
    numbered by its instance counter.
    """

    name: str | None = None
    period_ms: int = Field(default=DEFAULT_PERIOD_MS, gt=0)
    base_dir: Path = Field(default_factory=get_base_dir)
    process_id: str = Field(default_factory=get_process_id)
    # Heartbeat log every N ticks (~5 min at the default period)
    heartbeat_ticks: int = Field(default=60, gt=0)

    @field_validator("name", "process_id")
    @classmethod
    def _no_path_separators(cls, value: str | None) -> str | None:
        if value is not None and ("/" in value or "\\" in value):
            raise ValueError("must not contain path separators")
        return value

    @field_validator("process_id")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value

    @property
    def period_seconds(self) -> float:
        return self.period_ms / 1000
