"""Data models for ptop."""

from dataclasses import dataclass, fields
from typing import NamedTuple


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable snapshot of a single process."""

    pid: int
    name: str
    cpu_usage_percent: float  # 0.0 - 100.0 * core_count
    memory_bytes: int  # Resident set size
    state: str  # 'R', 'S', 'Z', 'D', etc.
    user: str


@dataclass(slots=True, frozen=True)
class CpuCounterSample:
    """Cumulative time-in-state counters of the aggregate CPU line, in jiffies."""

    user: int
    nice: int
    system: int
    idle: int
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0

    @property
    def total(self) -> int:
        """Sum of all eight counters."""
        return (
            self.user
            + self.nice
            + self.system
            + self.idle
            + self.iowait
            + self.irq
            + self.softirq
            + self.steal
        )

    @property
    def idle_total(self) -> int:
        """Time spent idle, including waiting on I/O."""
        return self.idle + self.iowait

    def regressed_from(self, previous: "CpuCounterSample") -> bool:
        """Check whether any counter went backwards since ``previous``."""
        return any(
            getattr(self, field.name) < getattr(previous, field.name) for field in fields(self)
        )


class MemoryReading(NamedTuple):
    """Memory totals in bytes; ``used + free == total``."""

    total: int
    used: int
    free: int


@dataclass(slots=True, frozen=True)
class SystemSnapshot:
    """Snapshot of overall system state for one refresh cycle."""

    cpu_usage_percent: float
    memory_total_bytes: int
    memory_used_bytes: int
    memory_free_bytes: int
    processes: tuple[ProcessRecord, ...] = ()

    @property
    def memory_percent(self) -> float:
        """Used memory as a percentage of the total."""
        if self.memory_total_bytes == 0:
            return 0.0
        return self.memory_used_bytes / self.memory_total_bytes * 100.0
