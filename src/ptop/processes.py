"""Process enumeration over the procfs PID namespace."""

import logging
import os
import pwd
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

from ptop.errors import ParseError, TransientProcessRace
from ptop.models import ProcessRecord
from ptop.procfs import DEFAULT_READ_LIMIT, TextTableParser, parse_uint, read_source

logger = logging.getLogger(__name__)

# The kernel's comm field is 16 bytes including the terminating NUL.
COMM_LENGTH = 15
MAX_PID = 2**32 - 1

# Positions in /proc/<pid>/stat after the ")" closing the command name.
_STAT_STATE = 0
_STAT_UTIME = 11
_STAT_STIME = 12
_STAT_STARTTIME = 19


@dataclass(slots=True, frozen=True)
class _ProcessCpuBaseline:
    """CPU time of one process at a point in time."""

    start_time: int
    ticks: int
    timestamp: float


@dataclass(slots=True, frozen=True)
class _ProcessStat:
    state: str
    ticks: int
    start_time: int


def parse_pid(name: str) -> int | None:
    """Return the PID named by a namespace entry, or None for non-PID entries."""
    try:
        pid = parse_uint(name)
    except ParseError:
        return None
    return pid if pid <= MAX_PID else None


def parse_process_stat(data: bytes) -> _ProcessStat:
    """
    Parse /proc/<pid>/stat.

    The command name sits in parentheses and may itself contain spaces and
    parentheses, so fields are counted from the last ")".
    """
    text = data.decode("utf-8", errors="replace")
    end = text.rfind(")")
    if end == -1:
        raise ParseError("stat record has no command field")
    fields = text[end + 1 :].split()
    if len(fields) <= _STAT_STARTTIME:
        raise ParseError(f"stat record has {len(fields)} fields after the command")
    return _ProcessStat(
        state=fields[_STAT_STATE],
        ticks=parse_uint(fields[_STAT_UTIME]) + parse_uint(fields[_STAT_STIME]),
        start_time=parse_uint(fields[_STAT_STARTTIME]),
    )


def lookup_user(uid: int) -> str:
    """Resolve a UID to an account name, falling back to the number itself."""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


class ProcessEnumerator:
    """
    Walks the PID namespace and builds a bounded list of process records.

    Per-process CPU usage is derived from the change in consumed clock ticks
    between calls, so baselines are kept per PID and pruned of processes not
    seen in the latest enumeration. Processes that vanish while being read
    are skipped.
    """

    def __init__(
        self,
        proc_root: Path = Path("/proc"),
        clock: Callable[[], float] = time.monotonic,
        clock_ticks: int | None = None,
        user_lookup: Callable[[int], str] = lookup_user,
        read_limit: int = DEFAULT_READ_LIMIT,
    ) -> None:
        """
        Initialize the ProcessEnumerator.

        Args:
            proc_root: Root of the PID namespace.
            clock: Monotonic time source in seconds.
            clock_ticks: Kernel clock ticks per second. Defaults to SC_CLK_TCK.
            user_lookup: Maps a UID to an account name.
            read_limit: Maximum size accepted for any per-process source.
        """
        self._proc_root = proc_root
        self._clock = clock
        self._clock_ticks = clock_ticks or os.sysconf("SC_CLK_TCK")
        self._user_lookup = user_lookup
        self._read_limit = read_limit
        self._baselines: dict[int, _ProcessCpuBaseline] = {}
        self._users: dict[int, str] = {}

    @property
    def tracked_pids(self) -> set[int]:
        """PIDs that currently have a CPU baseline."""
        return set(self._baselines)

    def enumerate(self, limit: int) -> list[ProcessRecord]:
        """
        Collect up to ``limit`` process records in namespace listing order.

        Never fails because of an individual process; a missing namespace
        yields an empty list.
        """
        records: list[ProcessRecord] = []
        seen: set[int] = set()

        if limit > 0:
            for pid in self._candidate_pids():
                try:
                    record = self._read_process(pid)
                except TransientProcessRace as e:
                    logger.debug("Skipping process: %s", e)
                    continue
                records.append(record)
                seen.add(pid)
                if len(records) >= limit:
                    break

        # Drop baselines of processes that exited or fell outside the limit
        for pid in self._baselines.keys() - seen:
            del self._baselines[pid]

        return records

    def _candidate_pids(self) -> Iterator[int]:
        """Yield PIDs from the namespace listing, skipping non-PID entries."""
        try:
            entries = os.scandir(self._proc_root)
        except OSError as e:
            logger.warning("Cannot list %s: %s", self._proc_root, e)
            return

        with entries:
            for entry in entries:
                pid = parse_pid(entry.name)
                if pid is None:
                    continue
                try:
                    if not entry.is_dir():
                        continue
                except OSError:
                    continue
                yield pid

    def _read(self, pid: int, name: str) -> bytes:
        """Read one per-process source, treating any failure as a vanished process."""
        try:
            return read_source(self._proc_root / str(pid) / name, self._read_limit)
        except (OSError, ParseError) as e:
            raise TransientProcessRace(pid, f"{name}: {e}") from e

    def _read_process(self, pid: int) -> ProcessRecord:
        """Build the record for one PID."""
        comm = self._read(pid, "comm").decode("utf-8", errors="replace")
        if comm.endswith("\n"):
            comm = comm[:-1]
        name = comm[:COMM_LENGTH]

        stat_data = self._read(pid, "stat")
        status = TextTableParser(self._read(pid, "status"))

        now = self._clock()
        try:
            stat = parse_process_stat(stat_data)
        except ParseError as e:
            logger.debug("Process %d: unparsable stat, defaulting fields: %s", pid, e)
            self._baselines.pop(pid, None)
            state, cpu_percent = "?", 0.0
        else:
            state = stat.state
            cpu_percent = self._cpu_percent(pid, stat, now)

        memory_bytes = status.value_or("VmRSS") * 1024

        try:
            user = self._user_name(status.value("Uid"))
        except ParseError:
            logger.debug("Process %d: no Uid record", pid)
            user = "?"

        return ProcessRecord(
            pid=pid,
            name=name,
            cpu_usage_percent=cpu_percent,
            memory_bytes=memory_bytes,
            state=state,
            user=user,
        )

    def _cpu_percent(self, pid: int, stat: _ProcessStat, now: float) -> float:
        """Update the PID's baseline and return CPU usage since the previous one."""
        previous = self._baselines.get(pid)
        self._baselines[pid] = _ProcessCpuBaseline(stat.start_time, stat.ticks, now)

        if previous is None or previous.start_time != stat.start_time:
            return 0.0
        if stat.ticks < previous.ticks:
            return 0.0
        elapsed = now - previous.timestamp
        if elapsed <= 0:
            return 0.0
        return (stat.ticks - previous.ticks) / self._clock_ticks / elapsed * 100.0

    def _user_name(self, uid: int) -> str:
        """Resolve a UID, caching the result."""
        user = self._users.get(uid)
        if user is None:
            user = self._users[uid] = self._user_lookup(uid)
        return user
