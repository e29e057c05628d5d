"""Tests for clock and id helpers."""

from datetime import UTC, datetime, timedelta

import pytest

from persist_timeout.identity import (
    MAX_ID,
    IdGenerator,
    InstanceCounter,
    fire_time,
    utc_now,
)


class TestClock:
    def test_utc_now_is_aware_and_millisecond_precise(self):
        now = utc_now()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)
        assert now.microsecond % 1000 == 0

    def test_fire_time_adds_delay(self):
        base = datetime(2026, 1, 1, tzinfo=UTC)
        assert fire_time(1500, base) == datetime(2026, 1, 1, 0, 0, 1, 500000, tzinfo=UTC)

    def test_fire_time_truncates_to_milliseconds(self):
        base = datetime(2026, 1, 1, tzinfo=UTC)
        assert fire_time(0.4, base) == base

    def test_fire_time_negative_delay(self):
        base = datetime(2026, 1, 1, tzinfo=UTC)
        assert fire_time(-1000, base) == base - timedelta(seconds=1)

    @pytest.mark.parametrize("delay_ms", [1e15, 1e20, float("inf"), float("nan")])
    def test_fire_time_out_of_range(self, delay_ms):
        with pytest.raises(ValueError, match="out of range"):
            fire_time(delay_ms, datetime(2026, 1, 1, tzinfo=UTC))


class TestIdGenerator:
    def test_monotonic(self):
        ids = IdGenerator(start=10)
        assert [ids.next_id() for _ in range(3)] == [10, 11, 12]

    def test_default_start_fits_int64(self):
        value = IdGenerator().next_id()
        assert 0 < value <= MAX_ID

    def test_later_generator_starts_higher(self):
        first = IdGenerator().next_id()
        assert IdGenerator().next_id() >= first

    def test_observe_moves_past_seen_id(self):
        ids = IdGenerator(start=1)
        ids.observe(41)
        assert ids.next_id() == 42

    def test_observe_ignores_lower_id(self):
        ids = IdGenerator(start=100)
        ids.observe(5)
        assert ids.next_id() == 100

    def test_overflow(self):
        ids = IdGenerator(start=MAX_ID + 1)
        with pytest.raises(OverflowError):
            ids.next_id()


class TestInstanceCounter:
    def test_counts_from_start(self):
        counter = InstanceCounter()
        assert [counter.next(), counter.next()] == [0, 1]

    def test_independent_counters(self):
        a = InstanceCounter()
        b = InstanceCounter(start=5)
        a.next()
        assert b.next() == 5
