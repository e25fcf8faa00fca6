"""Tests for SystemMetrics."""

import pytest
from structlog.testing import capture_logs

from proctop.fields import cpu_layout, parse_kernel_version
from proctop.models import CpuTimes, SystemSnapshot
from proctop.system import SystemMetrics


class TestReleaseInfo:
    """Tests for OS name and kernel version."""

    def test_operating_system_name(self, system):
        assert system.operating_system_name() == "Ubuntu 23.04 Lunar Lobster"

    def test_operating_system_name_absent(self, fake_proc, system):
        (fake_proc.etc / "os-release").write_text('NAME="Alpine"\n')
        assert system.operating_system_name() == ""

    def test_operating_system_name_unquoted(self, fake_proc, system):
        (fake_proc.etc / "os-release").write_text("PRETTY_NAME=Gentoo\n")
        assert system.operating_system_name() == "Gentoo"

    def test_kernel_version(self, system):
        assert system.kernel_version() == "6.5.0-14-generic"

    def test_kernel_version_missing(self, empty_proc):
        assert SystemMetrics(empty_proc.settings).kernel_version() == ""


class TestListProcessIds:
    """Tests for PID enumeration."""

    def test_only_digit_directories(self, fake_proc, system):
        for name in ("1", "42", "0", "abc", "12a", "self"):
            (fake_proc.root / name).mkdir()
        # A digit-named plain file is not a process
        fake_proc.write("77", "")

        assert sorted(system.list_process_ids()) == [0, 1, 42]

    def test_missing_root_gives_empty_list(self, tmp_path):
        from proctop.config import ProctopSettings

        metrics = SystemMetrics(ProctopSettings(proc_root=tmp_path / "nope"))
        assert metrics.list_process_ids() == []


class TestMemory:
    """Tests for memory utilization."""

    def test_memory_utilization(self, system):
        assert system.memory_utilization() == pytest.approx(0.75)

    @pytest.mark.parametrize(
        ("total", "free"),
        [(1000, 0), (1000, 1000), (8192, 1), (3, 2)],
    )
    def test_memory_utilization_formula(self, fake_proc, system, total, free):
        fake_proc.write("meminfo", f"MemTotal: {total} kB\nMemFree: {free} kB\n")

        utilization = system.memory_utilization()

        assert utilization == pytest.approx((total - free) / total)
        assert 0.0 <= utilization <= 1.0

    def test_memory_total_zero(self, fake_proc, system):
        fake_proc.write("meminfo", "MemTotal: 0 kB\nMemFree: 0 kB\n")
        assert system.memory_utilization() == 0.0

    def test_memory_total_absent(self, fake_proc, system):
        fake_proc.write("meminfo", "MemFree: 100 kB\n")
        assert system.memory_utilization() == 0.0

    def test_memory_malformed_is_logged(self, fake_proc, system):
        fake_proc.write("meminfo", "MemTotal: lots kB\nMemFree: 100 kB\n")

        with capture_logs() as logs:
            assert system.memory_utilization() == 0.0

        events = [entry for entry in logs if entry["event"] == "malformed_numeric"]
        assert len(events) == 1
        assert events[0]["field"] == "MemTotal"
        assert events[0]["token"] == "lots"
        assert events[0]["log_level"] == "warning"


class TestUptime:
    """Tests for uptime."""

    def test_uptime_truncated(self, system):
        assert system.uptime_seconds() == 5000

    def test_uptime_missing(self, empty_proc):
        assert SystemMetrics(empty_proc.settings).uptime_seconds() == 0

    @pytest.mark.parametrize("token", ["inf", "nan"])
    def test_uptime_non_finite(self, fake_proc, system, token):
        """Test a non-finite uptime falls back to 0 instead of overflowing."""
        fake_proc.write("uptime", f"{token} 0\n")

        with capture_logs() as logs:
            assert system.uptime_seconds() == 0

        events = [entry for entry in logs if entry["event"] == "malformed_numeric"]
        assert len(events) == 1
        assert events[0]["token"] == token


class TestJiffies:
    """Tests for CPU jiffie accounting."""

    def test_active_jiffies(self, system):
        # user + nice + system + irq + softirq + steal
        assert system.active_jiffies() == 4705 + 150 + 1120 + 0 + 25 + 10

    def test_idle_jiffies(self, system):
        assert system.idle_jiffies() == 16250 + 520

    def test_total_is_active_plus_idle(self, system):
        assert system.total_jiffies() == system.active_jiffies() + system.idle_jiffies()

    def test_cpu_times_single_read(self, system):
        times = system.cpu_times()
        assert times == CpuTimes(active=6010, idle=16770)
        assert times.total == 22780

    def test_cpu_utilization(self, system):
        assert system.cpu_utilization() == pytest.approx(6010 / 22780)

    def test_cpu_utilization_zero_total(self, fake_proc, system):
        fake_proc.write("stat", "cpu 0 0 0 0 0 0 0 0 0 0\nprocesses 1\n")

        assert system.total_jiffies() == 0
        assert system.cpu_utilization() == 0.0

    def test_missing_cpu_line(self, fake_proc, system):
        fake_proc.write("stat", "processes 1\n")
        assert system.cpu_times() == CpuTimes(active=0, idle=0)

    def test_short_cpu_line_counts_missing_fields_as_zero(self, fake_proc, system):
        fake_proc.write("stat", "cpu 10 20 30 40\n")

        assert system.active_jiffies() == 60
        assert system.idle_jiffies() == 40

    def test_old_kernel_layout_has_no_steal(self, fake_proc, system):
        fake_proc.write("version", "Linux version 2.6.9-smp (gcc) #1\n")
        fake_proc.write("stat", "cpu 1 1 1 1 1 1 1 500\n")

        # offset 8 is not steal before 2.6.11
        assert system.active_jiffies() == 5

    def test_malformed_cpu_field(self, fake_proc, system):
        fake_proc.write("stat", "cpu 10 x 30 40 0 0 0 0\n")

        with capture_logs() as logs:
            assert system.cpu_utilization() == 0.0

        assert any(
            entry["event"] == "malformed_numeric" and entry["field"] == "nice" for entry in logs
        )


class TestProcessCounts:
    """Tests for process counters in the stat file."""

    def test_total_processes(self, system):
        assert system.total_processes() == 2915

    def test_running_processes(self, system):
        assert system.running_processes() == 3

    def test_missing_stat_file(self, empty_proc):
        metrics = SystemMetrics(empty_proc.settings)
        assert metrics.total_processes() == 0
        assert metrics.running_processes() == 0


class TestSnapshot:
    """Tests for SystemMetrics.snapshot."""

    def test_snapshot_values(self, system):
        snapshot = system.snapshot()

        assert isinstance(snapshot, SystemSnapshot)
        assert snapshot.os_name == "Ubuntu 23.04 Lunar Lobster"
        assert snapshot.kernel == "6.5.0-14-generic"
        assert snapshot.memory_total_kb == 16000000
        assert snapshot.memory_free_kb == 4000000
        assert snapshot.memory_utilization == pytest.approx(0.75)
        assert snapshot.uptime_seconds == 5000
        assert snapshot.cpu.total == snapshot.cpu.active + snapshot.cpu.idle
        assert snapshot.cpu_utilization == pytest.approx(6010 / 22780)
        assert snapshot.total_processes == 2915
        assert snapshot.running_processes == 3

    def test_snapshot_on_empty_tree(self, empty_proc):
        """Test every value falls back to a renderable default."""
        snapshot = SystemMetrics(empty_proc.settings).snapshot()

        assert snapshot.os_name == ""
        assert snapshot.kernel == ""
        assert snapshot.memory_utilization == 0.0
        assert snapshot.cpu_utilization == 0.0
        assert snapshot.uptime_seconds == 0
        assert snapshot.total_processes == 0


class TestLayouts:
    """Tests for the versioned cpu offset table."""

    @pytest.mark.parametrize(
        ("release", "expected"),
        [
            ("6.5.0-14-generic", (6, 5, 0)),
            ("2.6.32", (2, 6, 32)),
            ("5.15.0rc1", (5, 15, 0)),
            ("", ()),
            ("unknown", ()),
        ],
    )
    def test_parse_kernel_version(self, release, expected):
        assert parse_kernel_version(release) == expected

    def test_layout_selection(self):
        assert cpu_layout("2.6.9").offset("steal") is None
        assert cpu_layout("2.6.11").offset("steal") == 8
        assert cpu_layout("2.6.30").offset("guest_nice") is None
        assert cpu_layout("6.1.0").offset("guest_nice") == 10

    def test_unparseable_release_uses_newest_layout(self):
        assert cpu_layout("").offset("guest_nice") == 10
