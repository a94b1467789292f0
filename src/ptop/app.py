"""ptop - command line entry point."""

import argparse
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

from ptop import __version__
from ptop.config import MonitorConfig
from ptop.errors import PtopError
from ptop.log_config import setup_logger
from ptop.monitor import MonitorLoop, SnapshotBuilder
from ptop.render import Renderer

logger = logging.getLogger(__name__)

BANNER = "Starting ptop System Monitor... (Press Ctrl+C to exit)"
RESET_ATTRIBUTES = "\x1b[0m"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line options."""
    defaults = MonitorConfig()
    p = argparse.ArgumentParser(prog="ptop", description="Minimal terminal process monitor")
    p.add_argument(
        "-d",
        "--delay",
        type=int,
        default=defaults.refresh_interval_ms,
        metavar="MS",
        help="Refresh interval in milliseconds, at least 10 (default: %(default)s)",
    )
    p.add_argument(
        "-p",
        "--processes",
        type=int,
        default=defaults.process_limit,
        metavar="N",
        help="Maximum number of process rows (default: %(default)s)",
    )
    p.add_argument(
        "--bar-width",
        type=int,
        default=defaults.bar_width,
        metavar="N",
        help="Cells per progress bar (default: %(default)s)",
    )
    p.add_argument(
        "-n",
        "--iterations",
        type=int,
        default=None,
        metavar="N",
        help="Exit after N frames (default: run until interrupted)",
    )
    p.add_argument(
        "--proc-root",
        type=Path,
        default=defaults.proc_root,
        metavar="PATH",
        help="Root of the process accounting filesystem (default: %(default)s)",
    )
    p.add_argument("--no-banner", action="store_true", help="Skip the startup banner and pause")
    p.add_argument("--log-file", type=Path, default=None, help="Also write DEBUG logs to a file")
    p.add_argument(
        "-v", "--verbose", action="count", default=0, help="More log output on stderr (-vv for debug)"
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> MonitorConfig:
    """Build a MonitorConfig from parsed options."""
    return MonitorConfig(
        refresh_interval_ms=args.delay,
        bar_width=args.bar_width,
        process_limit=args.processes,
        proc_root=args.proc_root,
        startup_delay=0.0 if args.no_banner else MonitorConfig().startup_delay,
    )


def _log_level(verbosity: int) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the ptop command."""
    args = parse_args(argv)
    setup_logger("ptop", level=_log_level(args.verbose), log_file=args.log_file)

    try:
        config = config_from_args(args)
    except ValueError as e:
        logger.error("Invalid option: %s", e)
        return 2
    logger.debug("Starting with %s", config)

    loop = MonitorLoop(
        SnapshotBuilder.from_config(config),
        Renderer(sys.stdout, bar_width=config.bar_width),
        refresh_interval=config.refresh_interval,
        max_consecutive_failures=config.max_consecutive_failures,
    )

    try:
        if not args.no_banner:
            print(BANNER, file=sys.stderr)
            time.sleep(config.startup_delay)
        loop.run(args.iterations)
    except KeyboardInterrupt:
        return 0
    except PtopError as e:
        logger.error("ptop stopped: %s", e)
        return 1
    finally:
        try:
            sys.stdout.write(RESET_ATTRIBUTES)
            sys.stdout.flush()
        except (OSError, ValueError):
            pass  # Output already gone
    return 0


if __name__ == "__main__":
    sys.exit(main())
