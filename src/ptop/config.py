"""Runtime configuration for ptop."""

from dataclasses import dataclass, field
from pathlib import Path

from ptop.procfs import DEFAULT_READ_LIMIT

# MonitorLoop never sleeps for less than this.
MIN_REFRESH_INTERVAL_MS = 10


@dataclass(slots=True, frozen=True)
class MonitorConfig:
    """Tunable parameters of the monitor; defaults match a plain ``ptop`` run."""

    refresh_interval_ms: int = 100
    bar_width: int = 40
    process_limit: int = 20
    proc_root: Path = field(default_factory=lambda: Path("/proc"))
    startup_delay: float = 1.0
    max_consecutive_failures: int = 10
    max_source_bytes: int = DEFAULT_READ_LIMIT

    def __post_init__(self) -> None:
        """Validate value ranges."""
        if self.refresh_interval_ms < MIN_REFRESH_INTERVAL_MS:
            raise ValueError(
                f"refresh_interval_ms must be >= {MIN_REFRESH_INTERVAL_MS}, "
                f"got {self.refresh_interval_ms}"
            )
        if self.bar_width < 1:
            raise ValueError(f"bar_width must be >= 1, got {self.bar_width}")
        if self.process_limit < 0:
            raise ValueError(f"process_limit must be >= 0, got {self.process_limit}")
        if self.startup_delay < 0:
            raise ValueError(f"startup_delay must be >= 0, got {self.startup_delay}")
        if self.max_consecutive_failures < 1:
            raise ValueError(
                f"max_consecutive_failures must be >= 1, got {self.max_consecutive_failures}"
            )
        if self.max_source_bytes < 1:
            raise ValueError(f"max_source_bytes must be >= 1, got {self.max_source_bytes}")

    @property
    def refresh_interval(self) -> float:
        """Refresh interval in seconds."""
        return self.refresh_interval_ms / 1000.0
