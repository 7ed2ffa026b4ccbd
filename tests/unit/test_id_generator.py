"""Tests for mp_common.id_generator and mp_common.datetime_utils."""

from datetime import UTC, datetime

import pytest

from src.mp_common.datetime_utils import to_iso, utc_now
from src.mp_common.id_generator import SnowflakeIdGenerator, generate_id


class TestSnowflakeIdGenerator:
    def test_prefixed_id(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        result = gen.next_id("HLD")
        assert result.startswith("HLD-")
        assert result.split("-", 1)[1].isdigit()

    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        ids = {gen.next_int() for _ in range(1000)}
        assert len(ids) == 1000

    def test_monotonically_increasing(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        prev = gen.next_int()
        for _ in range(100):
            current = gen.next_int()
            assert current > prev
            prev = current

    def test_machine_id_out_of_range(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(machine_id=1024)

    def test_module_level_helper(self) -> None:
        assert generate_id("PO").startswith("PO-")


class TestDatetimeUtils:
    def test_utc_now_is_aware_utc(self) -> None:
        now = utc_now()
        assert now.tzinfo == UTC

    def test_to_iso(self) -> None:
        assert to_iso(None) is None
        assert to_iso(datetime(2026, 1, 2, tzinfo=UTC)) == "2026-01-02T00:00:00+00:00"
