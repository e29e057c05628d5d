"""Shared test fixtures and factories."""

import asyncio
import time
from collections.abc import Callable
from datetime import datetime, timedelta
from functools import partial
from pathlib import Path
from typing import Any

import pytest

from persist_timeout.identity import InstanceCounter, utc_now
from persist_timeout.persister import Persister
from persist_timeout.types import Timeout

PROCESS_ID = "test-app"


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    """Directory for persister state files."""
    path = tmp_path / "state"
    path.mkdir()
    return path


@pytest.fixture
def make_persister(state_dir: Path) -> Callable[..., Persister]:
    """Persister factory bound to the test state dir.

    Must be called from inside a running event loop.
    """
    return partial(
        Persister,
        base_dir=state_dir,
        process_id=PROCESS_ID,
        instance_counter=InstanceCounter(),
    )


def make_timeout(
    timeout_id: int,
    data: Any = None,
    *,
    offset_ms: float = 0,
    now: datetime | None = None,
) -> Timeout[Any]:
    """Timeout firing ``offset_ms`` from now (negative means already due)."""
    base = now or utc_now()
    return Timeout(id=timeout_id, fire_at=base + timedelta(milliseconds=offset_ms), data=data)


async def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` until true, failing the test on timeout."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            pytest.fail("condition not met before timeout")
        await asyncio.sleep(0.005)
