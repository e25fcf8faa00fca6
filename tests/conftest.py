"""Shared fixtures: fake procfs trees built under tmp_path."""

from pathlib import Path

import pytest

from proctop.config import ProctopSettings
from proctop.process import ProcessMetrics
from proctop.system import SystemMetrics

CLOCK_TICKS = 100

STAT = """\
cpu  4705 150 1120 16250 520 0 25 10 0 0
cpu0 2350 75 560 8125 260 0 12 5 0 0
intr 114930548 113199788 3 0 5 263 0 4 [... lots more numbers ...]
ctxt 1990473
btime 1062191376
processes 2915
procs_running 3
procs_blocked 0
"""

MEMINFO = """\
MemTotal:       16000000 kB
MemFree:         4000000 kB
MemAvailable:    9000000 kB
Buffers:          300000 kB
"""

VERSION = (
    "Linux version 6.5.0-14-generic (buildd@lcy02-amd64-031) "
    "(x86_64-linux-gnu-gcc-12 (Ubuntu 12.3.0-1ubuntu1~23.04) 12.3.0) #14-Ubuntu SMP\n"
)

OS_RELEASE = """\
NAME="Ubuntu"
VERSION_ID="23.04"
PRETTY_NAME="Ubuntu 23.04 Lunar Lobster"
ID=ubuntu
"""

PASSWD = """\
root:x:0:0:root:/root:/bin/bash
daemon:x:1:1:daemon:/usr/sbin:/usr/sbin/nologin
alice:x:1000:1000:Alice,,,:/home/alice:/bin/bash
"""


def stat_line(pid: int, comm: str = "bash", utime: int = 0, stime: int = 0,
              cutime: int = 0, cstime: int = 0, starttime: int = 0) -> str:
    """Build a /proc/<pid>/stat line with the fields proctop reads."""
    fields = [str(pid), f"({comm})", "S", "1"] + ["0"] * 48
    fields[13] = str(utime)
    fields[14] = str(stime)
    fields[15] = str(cutime)
    fields[16] = str(cstime)
    fields[21] = str(starttime)
    return " ".join(fields) + "\n"


class FakeProc:
    """A writable procfs lookalike rooted in a temporary directory."""

    def __init__(self, base: Path) -> None:
        self.root = base / "proc"
        self.etc = base / "etc"
        self.root.mkdir()
        self.etc.mkdir()
        self.settings = ProctopSettings(
            proc_root=self.root,
            os_release_path=self.etc / "os-release",
            passwd_path=self.etc / "passwd",
        )

    def write(self, relative: str, content: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    def add_process(
        self,
        pid: int,
        cmdline: str = "/bin/bash",
        uid: str = "1000",
        rss_kb: int | None = 2048,
        stat: str | None = None,
    ) -> Path:
        status = f"Name:\tproc{pid}\nState:\tS (sleeping)\nUid:\t{uid}\t{uid}\t{uid}\t{uid}\n"
        if rss_kb is not None:
            status += f"VmRSS:\t{rss_kb} kB\n"
        self.write(f"{pid}/cmdline", cmdline)
        self.write(f"{pid}/status", status)
        self.write(f"{pid}/stat", stat or stat_line(pid))
        return self.root / str(pid)


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProc:
    """A fake procfs populated with system-wide files."""
    proc = FakeProc(tmp_path)
    proc.write("stat", STAT)
    proc.write("meminfo", MEMINFO)
    proc.write("uptime", "5000.47 19000.12\n")
    proc.write("version", VERSION)
    (proc.etc / "os-release").write_text(OS_RELEASE)
    (proc.etc / "passwd").write_text(PASSWD)
    return proc


@pytest.fixture
def empty_proc(tmp_path: Path) -> FakeProc:
    """A fake procfs with no files at all."""
    return FakeProc(tmp_path)


@pytest.fixture
def system(fake_proc: FakeProc) -> SystemMetrics:
    return SystemMetrics(fake_proc.settings)


@pytest.fixture
def processes(system: SystemMetrics) -> ProcessMetrics:
    return ProcessMetrics(system, clock_ticks=CLOCK_TICKS)
