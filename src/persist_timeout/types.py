"""Timeout types.

Public types:
- Timeout: A scheduled payload with its fire time
- TimeoutMeta: Metadata passed to listeners alongside the payload
- Listener: Callback invoked for every fired timeout
- PayloadCodec: Explicit encode/decode contract for payloads
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Generic, NamedTuple, TypeVar

T = TypeVar("T")

PayloadSerializer = Callable[[Any], Any]
PayloadHydrator = Callable[[Any], Any]


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class PayloadCodec:
    """Converts payloads to and from JSON-compatible values.

    The default codec passes values through unchanged, which is correct for
    payloads that are already dicts, lists, strings, numbers or None.
    """

    serializer: PayloadSerializer = _identity
    hydrator: PayloadHydrator = _identity


JSON_CODEC = PayloadCodec()


def format_date(value: datetime) -> str:
    """Serialize a datetime as ISO-8601 UTC with milliseconds (``...000Z``)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    text = value.astimezone(UTC).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_date(value: str) -> datetime:
    """Parse an ISO-8601 string, treating naive values as UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


@dataclass
class Timeout(Generic[T]):
    """A scheduled payload."""

    id: int
    fire_at: datetime
    data: T

    def is_due(self, now: datetime) -> bool:
        return self.fire_at <= now

    def to_dict(self, codec: PayloadCodec = JSON_CODEC) -> dict[str, Any]:
        """Serialize to the on-disk record shape."""
        return {
            "id": self.id,
            "date": format_date(self.fire_at),
            "data": codec.serializer(self.data),
        }

    @classmethod
    def from_dict(
        cls, payload: dict[str, Any], codec: PayloadCodec = JSON_CODEC
    ) -> "Timeout[Any]":
        """Parse an on-disk record.

        Raises:
            ValueError: If the record is missing fields or has bad values.
        """
        if not isinstance(payload, dict):
            raise ValueError(f"expected object, got {type(payload).__name__}")
        try:
            raw_id = payload["id"]
            raw_date = payload["date"]
        except KeyError as e:
            raise ValueError(f"missing field {e}") from e
        if isinstance(raw_id, bool) or not isinstance(raw_id, int | float):
            raise ValueError(f"invalid id: {raw_id!r}")
        if isinstance(raw_id, float) and not raw_id.is_integer():
            raise ValueError(f"invalid id: {raw_id!r}")
        if not isinstance(raw_date, str):
            raise ValueError(f"invalid date: {raw_date!r}")

        return cls(
            id=int(raw_id),
            fire_at=parse_date(raw_date),
            data=codec.hydrator(payload.get("data")),
        )


class TimeoutMeta(NamedTuple):
    """Identifies which timeout fired and which listener is being called."""

    timeout_id: int
    listener_id: int


Listener = Callable[[Any, TimeoutMeta], Awaitable[None] | None]
