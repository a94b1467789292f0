"""Snapshot acquisition and the refresh loop for ptop."""

import logging
import time
from collections.abc import Callable

from ptop.config import MonitorConfig
from ptop.errors import InvalidAccountingFormat
from ptop.models import SystemSnapshot
from ptop.processes import ProcessEnumerator
from ptop.render import Renderer
from ptop.samplers import CpuSampler, MemorySampler

logger = logging.getLogger(__name__)


class SnapshotBuilder:
    """
    Composes the CPU, memory and process samplers into one SystemSnapshot.

    Owns the samplers, and with them all rate state that must survive
    between refresh cycles.
    """

    def __init__(
        self,
        cpu_sampler: CpuSampler,
        memory_sampler: MemorySampler,
        process_enumerator: ProcessEnumerator,
        process_limit: int = 20,
    ) -> None:
        """
        Initialize the SnapshotBuilder.

        Args:
            cpu_sampler: Aggregate CPU utilization source.
            memory_sampler: Memory totals source.
            process_enumerator: Source of process records.
            process_limit: Maximum number of process records per snapshot.
        """
        self._cpu = cpu_sampler
        self._memory = memory_sampler
        self._processes = process_enumerator
        self._process_limit = process_limit

    @classmethod
    def from_config(cls, config: MonitorConfig) -> "SnapshotBuilder":
        """Create a builder reading the accounting sources under ``config.proc_root``."""
        root = config.proc_root
        return cls(
            CpuSampler(root / "stat", read_limit=config.max_source_bytes),
            MemorySampler(root / "meminfo", read_limit=config.max_source_bytes),
            ProcessEnumerator(root, read_limit=config.max_source_bytes),
            process_limit=config.process_limit,
        )

    def build(self) -> SystemSnapshot:
        """
        Sample everything and assemble a snapshot.

        Raises:
            InvalidAccountingFormat: The CPU or memory source is unusable.
        """
        cpu_percent = self._cpu.sample()
        memory = self._memory.sample()
        processes = self._processes.enumerate(self._process_limit)

        return SystemSnapshot(
            cpu_usage_percent=cpu_percent,
            memory_total_bytes=memory.total,
            memory_used_bytes=memory.used,
            memory_free_bytes=memory.free,
            processes=tuple(processes),
        )


class MonitorLoop:
    """
    Acquire, render, sleep, repeat.

    A cycle whose aggregate sources are unusable is logged and skipped; the
    next cycle is the retry. The loop gives up after ``max_consecutive_failures``
    such cycles in a row. Output failures end the loop immediately.
    """

    def __init__(
        self,
        builder: SnapshotBuilder,
        renderer: Renderer,
        refresh_interval: float = 0.1,
        max_consecutive_failures: int = 10,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the MonitorLoop.

        Args:
            builder: Source of snapshots.
            renderer: Draws each snapshot.
            refresh_interval: Pause between cycles (in seconds).
            max_consecutive_failures: Failed cycles tolerated in a row.
            sleep: Sleep function, replaceable in tests.
        """
        self._builder = builder
        self._renderer = renderer
        self._refresh_interval = 0.0
        self.refresh_interval = refresh_interval
        self._max_failures = max_consecutive_failures
        self._sleep = sleep
        self._failures = 0
        self._frames = 0

    @property
    def refresh_interval(self) -> float:
        """Get the refresh interval."""
        return self._refresh_interval

    @refresh_interval.setter
    def refresh_interval(self, value: float) -> None:
        """Set the refresh interval."""
        self._refresh_interval = max(0.01, value)  # Minimum 10 ms

    @property
    def frames_drawn(self) -> int:
        """Number of frames rendered so far."""
        return self._frames

    def run_once(self) -> bool:
        """
        Run a single acquire-and-render cycle without sleeping.

        Returns:
            True if a frame was drawn, False if the cycle was skipped.

        Raises:
            InvalidAccountingFormat: Too many consecutive cycles failed.
            OutputSinkFailure: The frame could not be written.
        """
        try:
            snapshot = self._builder.build()
        except InvalidAccountingFormat as e:
            self._failures += 1
            logger.error(
                "Skipping cycle (%d/%d failed in a row): %s",
                self._failures,
                self._max_failures,
                e,
            )
            if self._failures >= self._max_failures:
                logger.critical("Giving up after %d consecutive failures", self._failures)
                raise
            return False

        self._failures = 0
        self._renderer.draw(snapshot)
        self._frames += 1
        return True

    def run(self, iterations: int | None = None) -> None:
        """
        Run cycles forever, or until ``iterations`` frames have been drawn.

        Raises:
            InvalidAccountingFormat: Too many consecutive cycles failed.
            OutputSinkFailure: A frame could not be written.
        """
        while iterations is None or self._frames < iterations:
            self.run_once()
            if iterations is not None and self._frames >= iterations:
                break
            self._sleep(self._refresh_interval)
