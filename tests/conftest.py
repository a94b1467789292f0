"""Shared fixtures: a fake procfs tree under tmp_path."""

import logging
from pathlib import Path

import pytest

DEFAULT_MEMINFO = """\
MemTotal:       16384000 kB
MemFree:         2048000 kB
MemAvailable:    8192000 kB
Buffers:          512000 kB
Cached:          4096000 kB
"""


class FakeProc:
    """Builder for a minimal /proc layout."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def write_stat(self, user=100, nice=0, system=0, idle=900, iowait=0, irq=0, softirq=0, steal=0):
        """Write /proc/stat with an aggregate line and two per-core lines."""
        counters = f"{user} {nice} {system} {idle} {iowait} {irq} {softirq} {steal} 0 0"
        (self.root / "stat").write_text(
            f"cpu  {counters}\n"
            "cpu0 1 0 0 1 0 0 0 0 0 0\n"
            "cpu1 1 0 0 1 0 0 0 0 0 0\n"
            "intr 12345 0 0\n"
            "ctxt 6789\n"
        )

    def write_meminfo(self, text: str = DEFAULT_MEMINFO) -> None:
        (self.root / "meminfo").write_text(text)

    def add_process(
        self,
        pid: int,
        name: str = "bash",
        state: str = "S",
        utime: int = 0,
        stime: int = 0,
        starttime: int = 100,
        uid: int = 0,
        rss_kb: int | None = 1024,
    ) -> Path:
        """Create /proc/<pid>/{comm,stat,status}."""
        proc_dir = self.root / str(pid)
        proc_dir.mkdir(exist_ok=True)
        (proc_dir / "comm").write_text(f"{name}\n")
        self.set_cpu_time(pid, utime, stime, starttime, name=name, state=state)
        status = f"Name:\t{name}\nState:\t{state} (sleeping)\nUid:\t{uid}\t{uid}\t{uid}\t{uid}\n"
        if rss_kb is not None:
            status += f"VmRSS:\t{rss_kb:>8} kB\n"
        (proc_dir / "status").write_text(status)
        return proc_dir

    def set_cpu_time(self, pid, utime, stime, starttime=100, name="bash", state="S"):
        (self.root / str(pid) / "stat").write_text(
            f"{pid} ({name}) {state} 1 1 1 0 -1 4194304 0 0 0 0 "
            f"{utime} {stime} 0 0 20 0 1 0 {starttime} 1000 25\n"
        )


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProc:
    """A fake procfs root with stat and meminfo already present."""
    proc = FakeProc(tmp_path)
    proc.write_stat()
    proc.write_meminfo()
    return proc


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers main() attached to the package logger during a test."""
    yield
    logger = logging.getLogger("ptop")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
