"""Process capture for proctable."""

import logging
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from queue import Queue

import psutil

from proctable.models import ProcessSnapshot

logger = logging.getLogger(__name__)

# Attributes fetched per process in a single psutil query
PROCESS_ATTRS = ["pid", "name", "cmdline", "create_time"]


class CaptureError(RuntimeError):
    """The process list could not be queried from the OS."""


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Native process record as reported by the OS query."""

    pid: int
    name: str | None
    command_tokens: Sequence[str] | None
    runtime_seconds: int


def list_processes() -> list[ProcessRecord]:
    """
    Query the OS for every running process.

    Fields the OS refuses to report (AccessDenied) come back as None.
    Processes that exit mid-query are skipped by psutil itself.

    Raises:
        CaptureError: If the process table itself cannot be read.
    """
    records: list[ProcessRecord] = []
    now = time.time()
    try:
        for proc in psutil.process_iter(attrs=PROCESS_ATTRS, ad_value=None):
            info = proc.info
            create_time = info.get("create_time")
            runtime = int(now - create_time) if create_time is not None else 0
            records.append(
                ProcessRecord(
                    pid=info["pid"],
                    name=info.get("name"),
                    command_tokens=info.get("cmdline"),
                    runtime_seconds=runtime,
                )
            )
    except (psutil.Error, OSError) as e:
        raise CaptureError(f"Unable to list processes: {e}") from e
    return records


def snapshot_from_record(record: ProcessRecord) -> ProcessSnapshot:
    """Convert a native record into a ProcessSnapshot."""
    tokens = record.command_tokens or []
    return ProcessSnapshot(
        pid=record.pid,
        name=record.name or "",
        command=tokens[-1] if tokens else None,
        runtime=max(0, record.runtime_seconds),
    )


def capture(
    lister: Callable[[], Sequence[ProcessRecord]] = list_processes,
) -> list[ProcessSnapshot]:
    """Take one full capture of the process list."""
    snapshots = [snapshot_from_record(record) for record in lister()]
    logger.debug("Captured %d processes", len(snapshots))
    return snapshots


class ProcessMonitor:
    """
    Periodic process capture for live refresh.

    Runs in a separate daemon thread and pushes each capture to a thread-safe
    Queue which the UI polls. Any failed capture is fatal: the exception is kept
    on ``error`` and the thread stops.
    """

    def __init__(
        self,
        update_queue: Queue[list[ProcessSnapshot]],
        poll_rate: float = 2.0,
        capture_fn: Callable[[], list[ProcessSnapshot]] = capture,
    ) -> None:
        """
        Initialize the ProcessMonitor.

        Args:
            update_queue: Thread-safe queue to push captures to.
            poll_rate: How often to capture (in seconds). Default 2.0s.
            capture_fn: Callable producing one capture.
        """
        self._queue = update_queue
        self._poll_rate = max(0.1, poll_rate)
        self._capture = capture_fn
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._error: Exception | None = None

    @property
    def poll_rate(self) -> float:
        """Get the current poll rate."""
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        """Set the poll rate."""
        self._poll_rate = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def error(self) -> Exception | None:
        """Get the error that stopped the monitor, if any."""
        return self._error

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the monitoring thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._error = None
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="ProcessMonitor",
        )
        self._thread.start()
        logger.info("Process monitor started (every %.1fs)", self._poll_rate)

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

    def _poll_loop(self) -> None:
        """Main polling loop running in the background thread."""
        # The first capture is taken by the caller; wait one period before ours
        while not self._stop_event.wait(timeout=self._poll_rate):
            try:
                self._queue.put(self._capture())
            except CaptureError as e:
                logger.error("Process capture failed: %s", e)
                self._error = e
                return
            except Exception as e:
                # Nothing may escape the thread while the UI owns the terminal
                logger.exception("Unexpected error during process capture")
                self._error = e
                return
