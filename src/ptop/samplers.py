"""Aggregate CPU and memory samplers reading procfs accounting sources."""

import logging
from pathlib import Path

from ptop.errors import InvalidAccountingFormat, ParseError, SourceUnavailable
from ptop.models import CpuCounterSample, MemoryReading
from ptop.procfs import DEFAULT_READ_LIMIT, TextTableParser, parse_uint, read_source

logger = logging.getLogger(__name__)

# Key of the aggregate line in /proc/stat; per-core lines are cpu0, cpu1, ...
AGGREGATE_CPU_KEY = "cpu"
CPU_COUNTER_FIELDS = 8
MIN_CPU_COUNTER_FIELDS = 4


def _read_aggregate(path: Path, limit: int) -> TextTableParser:
    """Read an aggregate source, mapping every failure to InvalidAccountingFormat."""
    try:
        return TextTableParser(read_source(path, limit))
    except ParseError as e:
        raise InvalidAccountingFormat(str(e)) from e
    except OSError as e:
        raise SourceUnavailable(f"cannot read {path}: {e}") from e


def parse_cpu_counters(parser: TextTableParser) -> CpuCounterSample:
    """
    Extract the eight aggregate CPU counters.

    Counters beyond the first four are optional on old kernels and default to 0.

    Raises:
        InvalidAccountingFormat: The aggregate line is missing, short or malformed.
    """
    try:
        tokens = parser.row(AGGREGATE_CPU_KEY)
    except ParseError as e:
        raise InvalidAccountingFormat("aggregate cpu line not found") from e

    tokens = tokens[:CPU_COUNTER_FIELDS]
    if len(tokens) < MIN_CPU_COUNTER_FIELDS:
        raise InvalidAccountingFormat(
            f"aggregate cpu line has {len(tokens)} counters, "
            f"expected at least {MIN_CPU_COUNTER_FIELDS}"
        )
    try:
        counters = [parse_uint(token) for token in tokens]
    except ParseError as e:
        raise InvalidAccountingFormat(f"aggregate cpu line: {e}") from e
    return CpuCounterSample(*counters)


class CpuSampler:
    """
    Derives current CPU utilization from two successive counter samples.

    A single read of the cumulative counters only yields utilization since
    boot, so the sampler keeps the previous sample as a baseline.
    """

    def __init__(
        self,
        source: Path = Path("/proc/stat"),
        baseline: CpuCounterSample | None = None,
        read_limit: int = DEFAULT_READ_LIMIT,
    ) -> None:
        """
        Initialize the CpuSampler.

        Args:
            source: Aggregate CPU accounting file.
            baseline: Previous counters, if already known.
            read_limit: Maximum size accepted for the source.
        """
        self._source = source
        self._baseline = baseline
        self._read_limit = read_limit

    @property
    def baseline(self) -> CpuCounterSample | None:
        """The counters from the most recent successful read."""
        return self._baseline

    def sample(self) -> float:
        """
        Read the counters and return utilization since the previous call.

        Returns 0.0 when no usable delta exists yet.

        Raises:
            InvalidAccountingFormat: The source is missing or malformed.
        """
        current = parse_cpu_counters(_read_aggregate(self._source, self._read_limit))
        previous = self._baseline
        self._baseline = current

        if previous is None:
            return 0.0
        if current.regressed_from(previous):
            logger.info("CPU counters went backwards, resetting baseline")
            return 0.0

        delta_total = current.total - previous.total
        if delta_total == 0:
            return 0.0
        delta_idle = current.idle_total - previous.idle_total
        usage = (delta_total - delta_idle) / delta_total * 100.0
        return min(max(usage, 0.0), 100.0)


class MemorySampler:
    """Reads memory totals from the meminfo accounting source."""

    def __init__(
        self,
        source: Path = Path("/proc/meminfo"),
        read_limit: int = DEFAULT_READ_LIMIT,
    ) -> None:
        """
        Initialize the MemorySampler.

        Args:
            source: Memory accounting file.
            read_limit: Maximum size accepted for the source.
        """
        self._source = source
        self._read_limit = read_limit

    def sample(self) -> MemoryReading:
        """
        Return total, used and free memory in bytes.

        ``free`` is the kernel's available-memory estimate, not the raw count
        of unused pages, and ``used`` is whatever is not available.

        Raises:
            InvalidAccountingFormat: The source or its MemTotal record is missing.
        """
        parser = _read_aggregate(self._source, self._read_limit)
        try:
            total_kib = parser.value("MemTotal")
        except ParseError as e:
            raise InvalidAccountingFormat(f"meminfo: {e}") from e

        available_kib = parser.value_or("MemAvailable")
        logger.debug("meminfo: total=%d kB available=%d kB", total_kib, available_kib)

        total = total_kib * 1024
        available = min(available_kib * 1024, total)
        return MemoryReading(total=total, used=total - available, free=available)
