"""Tests for ptop data models."""

from dataclasses import FrozenInstanceError

import pytest

from ptop.models import CpuCounterSample, MemoryReading, ProcessRecord, SystemSnapshot


def test_process_record_creation():
    """Test ProcessRecord dataclass creation."""
    record = ProcessRecord(
        pid=123,
        name="test_process",
        cpu_usage_percent=50.0,
        memory_bytes=1024000,
        state="R",
        user="testuser",
    )

    assert record.pid == 123
    assert record.name == "test_process"
    assert record.cpu_usage_percent == 50.0
    assert record.memory_bytes == 1024000
    assert record.state == "R"
    assert record.user == "testuser"


def test_process_record_is_frozen():
    """Test that ProcessRecord is immutable (frozen)."""
    record = ProcessRecord(1, "init", 0.1, 10000, "S", "root")

    with pytest.raises(FrozenInstanceError):
        record.pid = 999


def test_process_record_uses_slots():
    """Test that ProcessRecord uses __slots__."""
    record = ProcessRecord(1, "init", 0.1, 10000, "S", "root")

    # Slots-based dataclasses don't have __dict__
    assert not hasattr(record, "__dict__")


class TestCpuCounterSample:
    """Tests for CpuCounterSample."""

    def test_totals(self):
        sample = CpuCounterSample(1, 2, 3, 4, 5, 6, 7, 8)
        assert sample.total == 36
        assert sample.idle_total == 9

    def test_optional_counters_default_to_zero(self):
        sample = CpuCounterSample(user=1, nice=2, system=3, idle=4)
        assert sample.total == 10
        assert sample.idle_total == 4

    def test_regressed_from(self):
        """Test any single counter going backwards counts as a regression."""
        previous = CpuCounterSample(10, 10, 10, 10, 10, 10, 10, 10)
        assert not CpuCounterSample(10, 10, 10, 10, 10, 10, 10, 10).regressed_from(previous)
        assert not CpuCounterSample(11, 10, 10, 12, 10, 10, 10, 10).regressed_from(previous)
        assert CpuCounterSample(99, 99, 99, 99, 99, 99, 99, 9).regressed_from(previous)


class TestSystemSnapshot:
    """Tests for SystemSnapshot."""

    def test_snapshot_creation(self):
        record = ProcessRecord(1, "init", 0.0, 0, "S", "root")
        snapshot = SystemSnapshot(
            cpu_usage_percent=12.5,
            memory_total_bytes=1000,
            memory_used_bytes=250,
            memory_free_bytes=750,
            processes=(record,),
        )
        assert snapshot.processes == (record,)
        assert snapshot.memory_percent == 25.0

    def test_memory_percent_with_zero_total(self):
        snapshot = SystemSnapshot(0.0, 0, 0, 0)
        assert snapshot.memory_percent == 0.0
        assert snapshot.processes == ()

    def test_snapshot_uses_slots(self):
        snapshot = SystemSnapshot(0.0, 0, 0, 0)
        assert not hasattr(snapshot, "__dict__")


def test_memory_reading_fields():
    reading = MemoryReading(total=10, used=4, free=6)
    assert reading.used + reading.free == reading.total
    total, used, free = reading
    assert (total, used, free) == (10, 4, 6)
