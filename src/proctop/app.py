"""proctop - Main Textual application."""

import argparse
from enum import Enum
from pathlib import Path
from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import DataTable, Footer, Static

from proctop.config import ProctopSettings
from proctop.format import elapsed
from proctop.logs import get_logger, setup_logging
from proctop.models import ProcessRecord, SystemSnapshot
from proctop.monitor import Sample, SystemMonitor
from proctop.process import ProcessMetrics
from proctop.system import SystemMetrics

logger = get_logger("app")


class SortKey(Enum):
    """Sort keys for the process table."""

    CPU = "cpu"
    RAM = "ram"
    PID = "pid"
    USER = "user"
    AGE = "age"


def format_kb(size_kb: int) -> str:
    """Format a kB count as a human-readable string."""
    size = float(size_kb)
    for unit in ["K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:.1f}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def display_command(command: str) -> str:
    """cmdline arguments are NUL-separated; show them space-separated."""
    return command.replace("\x00", " ").strip()


def usage_bar(fraction: float, color: str, width: int = 20) -> str:
    filled = min(width, max(0, int(fraction * width)))
    return f"[{color}]█[/{color}]" * filled + "[dim]░[/dim]" * (width - filled)


class HeaderStats(Static):
    """Header widget showing system-wide statistics."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 5;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(*args, **kwargs)
        self._system: SystemSnapshot | None = None
        self._cpu_load: float = 0.0

    def compose(self) -> ComposeResult:
        """Compose the header stats layout."""
        yield Horizontal(
            Static(self._get_system_info(), id="system-info"),
            Static(self._get_usage_info(), id="usage-info"),
        )

    def update_stats(self, system: SystemSnapshot, cpu_load: float) -> None:
        """Update the statistics from a system snapshot."""
        self._system = system
        self._cpu_load = cpu_load
        self._refresh_display()

    def _refresh_display(self) -> None:
        """Refresh the display with current data."""
        if not self.is_mounted:
            return
        self.query_one("#system-info", Static).update(self._get_system_info())
        self.query_one("#usage-info", Static).update(self._get_usage_info())

    def _get_system_info(self) -> str:
        if self._system is None:
            return "Loading system info..."
        system = self._system
        return (
            f"OS: {system.os_name or '?'}\n"
            f"Kernel: {system.kernel or '?'}\n"
            f"Processes: {system.total_processes}  Running: {system.running_processes}\n"
            f"Up Time: {elapsed(max(0, system.uptime_seconds))}"
        )

    def _get_usage_info(self) -> str:
        if self._system is None:
            return "Loading usage info..."
        system = self._system
        used_kb = system.memory_total_kb - system.memory_free_kb
        # Escaped brackets around the bars
        return (
            f"CPU\\[{usage_bar(self._cpu_load, 'green')}] {self._cpu_load * 100:5.1f}%\n"
            f"Mem\\[{usage_bar(system.memory_utilization, 'cyan')}] "
            f"{format_kb(used_kb)}/{format_kb(system.memory_total_kb)}"
        )


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._current_pids: set[int] = set()
        self._sort_key: SortKey = SortKey.CPU
        self._sort_reverse: bool = True  # Default: descending for CPU

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        next_index = (keys.index(self._sort_key) + 1) % len(keys)
        self._sort_key = keys[next_index]
        self._sort_reverse = self._sort_key in (SortKey.CPU, SortKey.RAM, SortKey.AGE)
        return self._sort_key

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"

        table.add_column("PID", key="pid", width=8)
        table.add_column("USER", key="user", width=10)
        table.add_column("CPU%", key="cpu", width=8)
        table.add_column("RAM[MB]", key="ram", width=9)
        table.add_column("TIME+", key="time", width=10)
        table.add_column("Command", key="command")

    def update_processes(self, processes: list[ProcessRecord]) -> None:
        """
        Update the process table with new data.

        Rows are rebuilt in sorted order; the set of shown PIDs is tracked so
        callers can tell which processes disappeared.
        """
        table = self.query_one("#process-table", DataTable)
        sorted_processes = self._sort_processes(processes)

        table.clear()
        for proc in sorted_processes:
            table.add_row(*self._row(proc), key=str(proc.pid))

        self._current_pids = {proc.pid for proc in sorted_processes}

    def _sort_processes(self, processes: list[ProcessRecord]) -> list[ProcessRecord]:
        """Sort processes based on the current sort key."""
        key_func = {
            SortKey.CPU: lambda p: p.cpu_utilization,
            SortKey.RAM: lambda p: int(p.ram_mb) if p.ram_mb.isdigit() else 0,
            SortKey.PID: lambda p: p.pid,
            SortKey.USER: lambda p: p.user.lower(),
            SortKey.AGE: lambda p: p.age_seconds,
        }
        return sorted(processes, key=key_func[self._sort_key], reverse=self._sort_reverse)

    @staticmethod
    def _row(proc: ProcessRecord) -> tuple[str, ...]:
        return (
            str(proc.pid),
            proc.user[:10],
            f"{proc.cpu_utilization * 100:5.1f}",
            proc.ram_mb,
            elapsed(max(0, proc.age_seconds)),
            display_command(proc.command)[:60],
        )


class ProctopApp(App):
    """Main proctop application."""

    TITLE = "proctop"
    SUB_TITLE = "procfs process viewer"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
        height: auto;
        min-height: 6;
    }

    Horizontal {
        height: auto;
    }

    #system-info {
        width: 1fr;
        padding-right: 2;
    }

    #usage-info {
        width: 1fr;
        padding-left: 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("f6", "sort", "Sort"),
    ]

    def __init__(self, config: ProctopSettings | None = None) -> None:
        """Initialize the ProctopApp."""
        super().__init__()
        config = config or ProctopSettings()
        self._update_queue: Queue[Sample] = Queue()
        self._monitor = SystemMonitor(
            self._update_queue,
            poll_rate=config.poll_rate,
            metrics=ProcessMetrics(SystemMetrics(config)),
        )

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(id="header-stats")
        yield ProcessTable()
        yield Footer()

    def on_mount(self) -> None:
        """Start the system monitor when the app is mounted."""
        self._monitor.start()
        self.set_interval(0.5, self._check_for_updates)

    def on_unmount(self) -> None:
        """Stop the monitor thread when the app shuts down."""
        self._monitor.stop()

    def _check_for_updates(self) -> None:
        """Drain the queue and render the most recent sample."""
        sample = None
        while True:
            try:
                sample = self._update_queue.get_nowait()
            except Empty:
                break

        if sample is not None:
            self._update_ui(sample)

    def _update_ui(self, sample: Sample) -> None:
        """Update the UI with a new sample."""
        self.query_one("#header-stats", HeaderStats).update_stats(sample.system, sample.cpu_load)
        self.query_one(ProcessTable).update_processes(sample.processes)

    def action_sort(self) -> None:
        """Handle sort action - cycle through sort keys."""
        new_sort_key = self.query_one(ProcessTable).cycle_sort()
        self.notify(f"Sort: {new_sort_key.value.upper()}")

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._monitor.stop()
        self.exit()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="proctop", description="procfs process viewer")
    parser.add_argument("--interval", type=float, help="seconds between samples")
    parser.add_argument("--proc-root", type=Path, help="procfs mount point")
    parser.add_argument("--log-level", help="debug, info, warning or error")
    parser.add_argument("--log-file", type=Path, help="write logs here instead of stderr")
    return parser


def settings_from_args(argv: list[str] | None = None) -> ProctopSettings:
    """Environment settings with command-line overrides applied."""
    args = build_parser().parse_args(argv)
    overrides = {
        "poll_rate": args.interval,
        "proc_root": args.proc_root,
        "log_level": args.log_level,
        "log_file": args.log_file,
    }
    return ProctopSettings(**{k: v for k, v in overrides.items() if v is not None})


def main(argv: list[str] | None = None) -> None:
    """Entry point for proctop application."""
    config = settings_from_args(argv)
    setup_logging(config)
    logger.info("proctop_starting", proc_root=str(config.proc_root), poll_rate=config.poll_rate)
    app = ProctopApp(config)
    app.run()


if __name__ == "__main__":
    main()
