"""Refresh loop that samples procfs metrics for the display."""

import threading
from collections import deque
from dataclasses import dataclass
from queue import Queue

import psutil

from proctop.logs import debug_enabled, get_logger
from proctop.models import CpuTimes, ProcessRecord, SystemSnapshot
from proctop.process import ProcessMetrics

logger = get_logger("monitor")


@dataclass(slots=True)
class Sample:
    """One refresh cycle worth of data."""

    system: SystemSnapshot
    processes: list[ProcessRecord]
    cpu_load: float  # 0.0 - 1.0 over the last poll interval


def interval_load(previous: CpuTimes | None, current: CpuTimes) -> float:
    """
    Busy fraction between two cpu readings.

    Without a previous reading the cumulative since-boot value is used. A
    counter that went backwards (e.g. a reset) gives 0.0.
    """
    if previous is None:
        return current.utilization
    total = current.total - previous.total
    active = current.active - previous.active
    if total <= 0 or active < 0:
        return 0.0
    return min(1.0, active / total)


class SystemMonitor:
    """
    System monitor that samples procfs on a background thread.

    Runs in a separate daemon thread and pushes Samples to a thread-safe Queue.
    The core readers are stateless, so the only state kept here is the
    previous cpu reading used to turn cumulative jiffies into a load figure.
    """

    def __init__(
        self,
        update_queue: Queue[Sample],
        poll_rate: float = 2.0,
        metrics: ProcessMetrics | None = None,
    ) -> None:
        """
        Initialize the SystemMonitor.

        Args:
            update_queue: Thread-safe queue to push updates to.
            poll_rate: How often to poll the system (in seconds). Default 2.0s.
            metrics: Process reader; its SystemMetrics supplies the system side.
        """
        self._queue = update_queue
        self._poll_rate = max(0.1, poll_rate)
        self._metrics = metrics or ProcessMetrics()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._previous_cpu: CpuTimes | None = None
        self._cpu_history: deque[float] = deque(maxlen=60)

    @property
    def poll_rate(self) -> float:
        """Get the current poll rate."""
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        """Set the poll rate."""
        self._poll_rate = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def metrics(self) -> ProcessMetrics:
        return self._metrics

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the monitoring thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="SystemMonitor",
        )
        self._thread.start()
        logger.info("monitor_started", poll_rate=self._poll_rate)

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the monitoring thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.info("monitor_stopped")

    def _poll_loop(self) -> None:
        """Main polling loop running in the background thread."""
        while not self._stop_event.is_set():
            try:
                self._queue.put(self.collect())
            except Exception:
                # Keep the loop alive; the display shows the last good sample
                logger.exception("monitor_poll_failed")

            # Wait for poll_rate seconds or until stop is requested
            self._stop_event.wait(timeout=self._poll_rate)

    def collect(self) -> Sample:
        """Take one sample and advance the cpu load baseline."""
        system = self._metrics.system.snapshot()
        load = interval_load(self._previous_cpu, system.cpu)
        self._previous_cpu = system.cpu
        self._cpu_history.append(load)

        processes = self._metrics.records()
        if debug_enabled():
            rss, fds = self_usage()
            logger.debug(
                "monitor_sampled", processes=len(processes), cpu_load=load, rss=rss, fds=fds
            )
        return Sample(system=system, processes=processes, cpu_load=load)

    def get_cpu_history(self) -> list[float]:
        """Get the CPU load history for sparkline rendering."""
        return list(self._cpu_history)


def self_usage() -> tuple[int, int]:
    """Resident bytes and open descriptors of the current process."""
    proc = psutil.Process()
    with proc.oneshot():
        return proc.memory_info().rss, proc.num_fds()
