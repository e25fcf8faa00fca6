"""Named field offsets for positional procfs lines.

The aggregate ``cpu`` line of ``/proc/stat`` gained columns over kernel
releases, so its layout is a table keyed by the first kernel version that
emits it. A format change is a new table entry.
"""

from dataclasses import dataclass

# Offsets below count the leading key token ("cpu") as index 0.


@dataclass(slots=True, frozen=True)
class CpuLayout:
    """Offsets of the scheduler accumulators in the aggregate ``cpu`` line."""

    since: tuple[int, ...]
    offsets: dict[str, int]

    def offset(self, name: str) -> int | None:
        return self.offsets.get(name)


_BASE_CPU = {"user": 1, "nice": 2, "system": 3, "idle": 4, "iowait": 5, "irq": 6, "softirq": 7}

CPU_LAYOUTS: tuple[CpuLayout, ...] = (
    CpuLayout(since=(2, 6, 0), offsets=dict(_BASE_CPU)),
    CpuLayout(since=(2, 6, 11), offsets={**_BASE_CPU, "steal": 8}),
    CpuLayout(since=(2, 6, 24), offsets={**_BASE_CPU, "steal": 8, "guest": 9}),
    CpuLayout(since=(2, 6, 33), offsets={**_BASE_CPU, "steal": 8, "guest": 9, "guest_nice": 10}),
)

# guest time is already folded into user/nice by the kernel, so it is not summed
ACTIVE_CPU_FIELDS = ("user", "nice", "system", "irq", "softirq", "steal")
IDLE_CPU_FIELDS = ("idle", "iowait")

# /proc/<pid>/stat, see proc(5). Index 0 is the pid, 1 the "(comm)".
PROCESS_STAT_FIELDS: dict[str, int] = {
    "pid": 0,
    "comm": 1,
    "state": 2,
    "ppid": 3,
    "utime": 13,
    "stime": 14,
    "cutime": 15,
    "cstime": 16,
    "priority": 17,
    "nice": 18,
    "num_threads": 19,
    "starttime": 21,
}

PROCESS_ACTIVE_FIELDS = ("utime", "stime", "cutime", "cstime")


def parse_kernel_version(release: str) -> tuple[int, ...]:
    """Leading numeric components of a release string, e.g. "6.5.0-14-generic" -> (6, 5, 0)."""
    parts: list[int] = []
    for chunk in release.split("."):
        digits = ""
        for char in chunk:
            if not char.isdigit():
                break
            digits += char
        if not digits:
            break
        parts.append(int(digits))
        if len(digits) != len(chunk):
            break
    return tuple(parts)


def cpu_layout(release: str = "") -> CpuLayout:
    """Layout for a kernel release; the newest layout when it cannot be parsed."""
    version = parse_kernel_version(release)
    if not version:
        return CPU_LAYOUTS[-1]
    chosen = CPU_LAYOUTS[0]
    for layout in CPU_LAYOUTS:
        if version >= layout.since:
            chosen = layout
    return chosen
