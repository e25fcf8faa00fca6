"""Per-process metrics derived from /proc/<pid>."""

import os
from collections.abc import Iterable

from proctop.errors import on_malformed
from proctop.fields import PROCESS_ACTIVE_FIELDS, PROCESS_STAT_FIELDS
from proctop.models import ProcessRecord
from proctop.records import (
    Record,
    find_record,
    find_value,
    read_first_line,
    read_lines,
    read_process_stat,
    to_int,
)
from proctop.system import SystemMetrics


class ProcessMetrics:
    """
    Reads per-process values for a PID.

    A process can exit between being listed and being read. Every method
    then returns its default value instead of raising.
    """

    def __init__(self, system: SystemMetrics | None = None, clock_ticks: int | None = None) -> None:
        """
        Initialize ProcessMetrics.

        Args:
            system: Source of uptime and paths. Defaults to a new SystemMetrics.
            clock_ticks: Clock ticks per second. Defaults to SC_CLK_TCK.
        """
        self._system = system or SystemMetrics()
        self._clock_ticks = clock_ticks or os.sysconf("SC_CLK_TCK")

    @property
    def system(self) -> SystemMetrics:
        return self._system

    @property
    def clock_ticks(self) -> int:
        return self._clock_ticks

    def _path(self, pid: int, name: str) -> str:
        return str(self._system.settings.pid_path(pid, name))

    def _stat(self, pid: int) -> Record:
        return read_process_stat(self._path(pid, "stat"))

    def _stat_field(self, stat: Record, name: str) -> int:
        return to_int(stat[PROCESS_STAT_FIELDS[name]], source=stat.source, field=name)

    def command(self, pid: int) -> str:
        """Raw first line of the cmdline file; arguments stay NUL-separated."""
        return read_first_line(self._path(pid, "cmdline"))

    @on_malformed("0")
    def resident_memory_mb(self, pid: int) -> str:
        """VmRSS in MB, truncated toward zero, as a display string."""
        path = self._path(pid, "status")
        rss_kb = to_int(find_value(path, "VmRSS:"), source=path, field="VmRSS")
        return str(int(rss_kb / 1024))

    def owner_user_id(self, pid: int) -> str:
        """Real UID from the status file, "0" when unreadable."""
        return find_value(self._path(pid, "status"), "Uid:")

    def owner_user_name(self, pid: int) -> str:
        """Name owning the process's real UID, "" when unknown."""
        record = find_record(self._path(pid, "status"), "Uid:")
        if not record.present(1):
            return ""
        return self.user_name(record[1])

    def user_name(self, uid: str) -> str:
        """First user table entry whose third field equals ``uid``."""
        for line in read_lines(self._system.settings.passwd_path):
            fields = line.split(":")
            if len(fields) > 2 and fields[2] == uid:
                return fields[0]
        return ""

    def _age(self, stat: Record) -> int:
        start_seconds = self._stat_field(stat, "starttime") // self._clock_ticks
        return self._system.uptime_seconds() - start_seconds

    @on_malformed(0)
    def process_age_seconds(self, pid: int) -> int:
        """
        Seconds since the process started.

        Negative when the process started after the uptime read.
        """
        stat = self._stat(pid)
        if not stat.found:
            return 0
        return self._age(stat)

    @on_malformed(0)
    def active_jiffies(self, pid: int) -> int:
        """utime + stime + cutime + cstime, in clock ticks."""
        stat = self._stat(pid)
        return sum(self._stat_field(stat, name) for name in PROCESS_ACTIVE_FIELDS)

    @on_malformed(0.0)
    def cpu_utilization(self, pid: int) -> float:
        """
        Share of one CPU used over the process lifetime.

        CPU seconds (active jiffies / clock ticks) divided by the process
        age; 0.0 for a process with no positive age.
        """
        stat = self._stat(pid)
        if not stat.found:
            return 0.0
        age = self._age(stat)
        if age <= 0:
            return 0.0
        active = sum(self._stat_field(stat, name) for name in PROCESS_ACTIVE_FIELDS)
        return (active / self._clock_ticks) / age

    def legacy_cpu_utilization(self, pid: int) -> float:
        """System-wide utilization reported for every process, kept for comparison."""
        return self._system.cpu_utilization()

    def record(self, pid: int) -> ProcessRecord:
        """Build a ProcessRecord for ``pid``."""
        return ProcessRecord(
            pid=pid,
            command=self.command(pid),
            user=self.owner_user_name(pid),
            ram_mb=self.resident_memory_mb(pid),
            cpu_utilization=self.cpu_utilization(pid),
            age_seconds=self.process_age_seconds(pid),
        )

    def records(self, pids: Iterable[int] | None = None) -> list[ProcessRecord]:
        """ProcessRecords for ``pids``, or for every listed process."""
        if pids is None:
            pids = self._system.list_process_ids()
        return [self.record(pid) for pid in pids]
