"""System-wide metrics derived from procfs."""

import os

from proctop.config import ProctopSettings, settings as default_settings
from proctop.errors import on_malformed
from proctop.fields import ACTIVE_CPU_FIELDS, IDLE_CPU_FIELDS, cpu_layout
from proctop.logs import get_logger
from proctop.models import CpuTimes, SystemSnapshot
from proctop.records import (
    Record,
    find_record,
    find_value,
    read_first_line,
    read_lines,
    to_float,
    to_int,
)

logger = get_logger("system")


def _sum_fields(record: Record, names: tuple[str, ...], release: str) -> int:
    layout = cpu_layout(release)
    total = 0
    for name in names:
        offset = layout.offset(name)
        if offset is None:
            continue
        total += to_int(record[offset], source=record.source, field=name)
    return total


class SystemMetrics:
    """
    Reads system-wide values from procfs.

    Holds nothing but the configured paths; every call re-reads its source
    files, so one instance can be shared between threads.
    """

    def __init__(self, config: ProctopSettings | None = None) -> None:
        """
        Initialize SystemMetrics.

        Args:
            config: Settings carrying the pseudo-file paths. Defaults to the
                environment-derived settings.
        """
        self._settings = config or default_settings

    @property
    def settings(self) -> ProctopSettings:
        return self._settings

    def operating_system_name(self) -> str:
        """PRETTY_NAME from the release info file, or "" when absent."""
        for line in read_lines(self._settings.os_release_path):
            key, sep, value = line.partition("=")
            if sep and key.strip() == "PRETTY_NAME":
                return value.strip().strip("\"'")
        return ""

    def kernel_version(self) -> str:
        """Third token of the version banner, e.g. "6.5.0-14-generic"."""
        tokens = read_first_line(self._settings.version_path).split()
        return tokens[2] if len(tokens) > 2 else ""

    def list_process_ids(self) -> list[int]:
        """PIDs of the digit-named directories under the proc root, unsorted."""
        pids: list[int] = []
        try:
            with os.scandir(self._settings.proc_root) as entries:
                for entry in entries:
                    name = entry.name
                    if not (name.isascii() and name.isdigit()):
                        continue
                    try:
                        if entry.is_dir():
                            pids.append(int(name))
                    except OSError:
                        # Entry vanished while listing
                        continue
        except OSError as exc:
            logger.warning(
                "proc_root_unreadable", path=str(self._settings.proc_root), error=str(exc)
            )
        return pids

    @on_malformed((0, 0))
    def memory_info(self) -> tuple[int, int]:
        """(MemTotal, MemFree) in kB."""
        path = self._settings.meminfo_path
        total = to_int(find_value(path, "MemTotal:"), source=str(path), field="MemTotal")
        free = to_int(find_value(path, "MemFree:"), source=str(path), field="MemFree")
        return total, free

    def memory_utilization(self) -> float:
        """Fraction of memory in use, (total - free) / total; 0.0 if total is 0."""
        total, free = self.memory_info()
        if total <= 0:
            return 0.0
        return (total - free) / total

    @on_malformed(0)
    def uptime_seconds(self) -> int:
        """Seconds since boot, truncated."""
        record = find_record(self._settings.uptime_path)
        return int(to_float(record[0], source=record.source, field="uptime"))

    @on_malformed(CpuTimes(active=0, idle=0))
    def cpu_times(self) -> CpuTimes:
        """Active and idle jiffies from a single read of the ``cpu`` line."""
        record = find_record(self._settings.stat_path, "cpu")
        release = self.kernel_version()
        return CpuTimes(
            active=_sum_fields(record, ACTIVE_CPU_FIELDS, release),
            idle=_sum_fields(record, IDLE_CPU_FIELDS, release),
        )

    def active_jiffies(self) -> int:
        """user + nice + system + irq + softirq + steal."""
        return self.cpu_times().active

    def idle_jiffies(self) -> int:
        """idle + iowait."""
        return self.cpu_times().idle

    def total_jiffies(self) -> int:
        return self.active_jiffies() + self.idle_jiffies()

    def cpu_utilization(self) -> float:
        """Busy fraction since boot; 0.0 when no jiffies are accounted."""
        return self.cpu_times().utilization

    @on_malformed(0)
    def total_processes(self) -> int:
        """Processes forked since boot."""
        path = self._settings.stat_path
        return to_int(find_value(path, "processes"), source=str(path), field="processes")

    @on_malformed(0)
    def running_processes(self) -> int:
        path = self._settings.stat_path
        return to_int(find_value(path, "procs_running"), source=str(path), field="procs_running")

    def snapshot(self) -> SystemSnapshot:
        """Collect every system-wide value into one SystemSnapshot."""
        total, free = self.memory_info()
        cpu = self.cpu_times()
        return SystemSnapshot(
            os_name=self.operating_system_name(),
            kernel=self.kernel_version(),
            memory_total_kb=total,
            memory_free_kb=free,
            memory_utilization=(total - free) / total if total > 0 else 0.0,
            uptime_seconds=self.uptime_seconds(),
            cpu=cpu,
            cpu_utilization=cpu.utilization,
            total_processes=self.total_processes(),
            running_processes=self.running_processes(),
        )
