"""Data models for proctop."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class CpuTimes:
    """Aggregate scheduler time from one read of the ``cpu`` line, in jiffies."""

    active: int
    idle: int

    @property
    def total(self) -> int:
        return self.active + self.idle

    @property
    def utilization(self) -> float:
        """Cumulative busy fraction since boot, 0.0 when no time is accounted."""
        total = self.total
        if total <= 0:
            return 0.0
        return self.active / total


@dataclass(slots=True, frozen=True)
class SystemSnapshot:
    """System-wide values sampled at one instant."""

    os_name: str
    kernel: str
    memory_total_kb: int
    memory_free_kb: int
    memory_utilization: float  # 0.0 - 1.0
    uptime_seconds: int
    cpu: CpuTimes
    cpu_utilization: float  # 0.0 - 1.0, cumulative since boot
    total_processes: int
    running_processes: int


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable per-process values for one sample."""

    pid: int
    command: str
    user: str
    ram_mb: str  # resident set, MB truncated
    cpu_utilization: float  # share of one CPU over the process lifetime
    age_seconds: int  # may be negative when sampling skews against uptime
