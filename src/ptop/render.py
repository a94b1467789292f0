"""Frame rendering: turns a SystemSnapshot into ANSI-styled terminal text."""

import io
import sys
from typing import TextIO

from rich.console import Console
from rich.control import Control
from rich.segment import ControlType
from rich.text import Text

from ptop.errors import OutputSinkFailure
from ptop.models import ProcessRecord, SystemSnapshot

FRAME_WIDTH = 60
TITLE = " ptop System Monitor "
FILLED_CELL = "■"
EMPTY_CELL = "□"

BORDER_STYLE = "bold cyan"
CPU_LABEL_STYLE = "bold green"
MEMORY_LABEL_STYLE = "bold blue"
HEADER_STYLE = "bold"


def format_bytes(size: int) -> str:
    """Format bytes as a human-readable string with two decimals."""
    value = float(size)
    for unit in ["B", "KB", "MB", "GB"]:
        if value < 1024:
            return f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} TB"


def bar_color(value: float) -> str:
    """Pick the bar color for a utilization percentage."""
    if value < 60:
        return "green"
    if value < 85:
        return "yellow"
    return "red"


def filled_cells(value: float, width: int) -> int:
    """Number of filled cells for a percentage, clamped to the bar width."""
    value = min(max(value, 0.0), 100.0)
    return min(int(value / 100.0 * width), width)


def progress_bar(value: float, width: int) -> Text:
    """Build a ``[■■■□□□]`` bar with the filled part colored by load."""
    filled = filled_cells(value, width)
    return Text.assemble(
        "[",
        (FILLED_CELL * filled, bar_color(value)),
        EMPTY_CELL * (width - filled),
        "]",
    )


def _border(left: str, right: str, title: str = "", align: str = "^") -> Text:
    return Text(f"{left}{title:═{align}{FRAME_WIDTH}}{right}", style=BORDER_STYLE)


def printable(text: str) -> str:
    """Replace non-printable characters (newlines, escapes) with '?'."""
    return "".join(ch if ch.isprintable() else "?" for ch in text)


def _process_row(proc: ProcessRecord) -> Text:
    user = printable(proc.user[:8])
    return Text(
        f" {proc.pid:<6} {user:<8} {proc.cpu_usage_percent:>5.1f}% "
        f"{format_bytes(proc.memory_bytes):<10} {printable(proc.state):<5} "
        f"{printable(proc.name)}"
    )


class Renderer:
    """
    Renders full dashboard frames.

    Every frame starts by clearing the screen and homing the cursor; nothing
    is diffed against the previous frame.
    """

    def __init__(self, stream: TextIO | None = None, bar_width: int = 40) -> None:
        """
        Initialize the Renderer.

        Args:
            stream: Output sink for :meth:`draw`. Defaults to stdout.
            bar_width: Number of cells in each progress bar.
        """
        self._stream = stream
        self._bar_width = bar_width

    @property
    def bar_width(self) -> int:
        """Number of cells in each progress bar."""
        return self._bar_width

    def _lines(self, snapshot: SystemSnapshot) -> list[Text]:
        """Lay out the frame as styled lines."""
        memory_percent = snapshot.memory_percent
        used = format_bytes(snapshot.memory_used_bytes)
        total = format_bytes(snapshot.memory_total_bytes)

        lines = [
            _border("╔", "╗", TITLE),
            Text.assemble(
                (f" CPU Usage: {snapshot.cpu_usage_percent:.1f}%", CPU_LABEL_STYLE),
                " ",
                progress_bar(snapshot.cpu_usage_percent, self._bar_width),
            ),
            Text.assemble(
                (f" Memory: {used}/{total} ({memory_percent:.1f}%)", MEMORY_LABEL_STYLE),
                " ",
                progress_bar(memory_percent, self._bar_width),
            ),
            _border("╠", "╣", "═════ Processes ", align="<"),
            Text(" PID    USER     CPU%   MEM        STATE NAME", style=HEADER_STYLE),
        ]
        lines.extend(_process_row(proc) for proc in snapshot.processes)
        lines.append(_border("╚", "╝"))
        lines.append(Text(" Press Ctrl+C to quit"))
        return lines

    def render(self, snapshot: SystemSnapshot) -> str:
        """Render a snapshot to a string of text and ANSI control sequences."""
        buffer = io.StringIO()
        console = Console(
            file=buffer,
            force_terminal=True,
            color_system="standard",
            no_color=False,
            highlight=False,
            emoji=False,
            markup=False,
            soft_wrap=True,
            legacy_windows=False,
            width=FRAME_WIDTH + 2,
        )
        console.print(Control(ControlType.CLEAR, ControlType.HOME), end="")
        for line in self._lines(snapshot):
            console.print(line)
        return buffer.getvalue()

    def draw(self, snapshot: SystemSnapshot) -> None:
        """
        Render a snapshot and write it to the output stream.

        Raises:
            OutputSinkFailure: Writing or flushing the frame failed.
        """
        frame = self.render(snapshot)
        stream = self._stream or sys.stdout
        try:
            stream.write(frame)
            stream.flush()
        except (OSError, ValueError) as e:
            raise OutputSinkFailure(f"cannot write frame: {e}") from e
