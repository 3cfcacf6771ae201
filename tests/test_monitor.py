"""Tests for process capture and the ProcessMonitor class."""

import os
from queue import Empty, Queue

import psutil
import pytest

from proctable.models import ProcessSnapshot
from proctable.monitor import (
    CaptureError,
    ProcessMonitor,
    ProcessRecord,
    capture,
    list_processes,
    snapshot_from_record,
)


class TestSnapshotFromRecord:
    """Tests for the record to snapshot mapping."""

    def test_fields_pass_through(self):
        """Test identity fields are copied and the last token becomes the command."""
        record = ProcessRecord(
            pid=42,
            name="python",
            command_tokens=["python", "-m", "http.server"],
            runtime_seconds=90,
        )
        assert snapshot_from_record(record) == ProcessSnapshot(
            pid=42, name="python", command="http.server", runtime=90
        )

    def test_missing_command_is_unavailable(self):
        """Test no command tokens map to None rather than a string."""
        for tokens in (None, []):
            record = ProcessRecord(pid=2, name="kthreadd", command_tokens=tokens, runtime_seconds=1)
            assert snapshot_from_record(record).command is None

    def test_empty_last_token_is_kept(self):
        """Test an empty final token stays an empty command."""
        record = ProcessRecord(pid=5, name="sh", command_tokens=["sh", ""], runtime_seconds=1)
        assert snapshot_from_record(record).command == ""

    def test_missing_name_defaults_to_empty(self):
        """Test a name the OS refused to report becomes empty."""
        record = ProcessRecord(pid=9, name=None, command_tokens=None, runtime_seconds=3)
        assert snapshot_from_record(record).name == ""

    def test_runtime_never_negative(self):
        """Test clock skew cannot produce a negative runtime."""
        record = ProcessRecord(pid=9, name="x", command_tokens=None, runtime_seconds=-4)
        assert snapshot_from_record(record).runtime == 0


class TestCapture:
    """Tests for capture() and list_processes()."""

    def test_capture_with_custom_lister(self):
        """Test capture maps every record in order."""
        records = [
            ProcessRecord(pid=1, name="init", command_tokens=["/sbin/init"], runtime_seconds=500),
            ProcessRecord(pid=1, name="init", command_tokens=None, runtime_seconds=500),
        ]
        snapshots = capture(lambda: records)
        assert [s.pid for s in snapshots] == [1, 1]
        assert snapshots[0].command == "/sbin/init"
        assert snapshots[1].command is None

    def test_capture_real_system_includes_self(self):
        """Test a real capture contains the test process."""
        snapshots = capture()
        assert len(snapshots) > 0
        assert all(isinstance(s, ProcessSnapshot) for s in snapshots)
        assert all(s.runtime >= 0 for s in snapshots)

        me = [s for s in snapshots if s.pid == os.getpid()]
        assert me
        assert me[0].name

    def test_list_processes_returns_records(self):
        """Test list_processes returns native records."""
        records = list_processes()
        assert records
        assert all(isinstance(r, ProcessRecord) for r in records)

    def test_query_failure_is_fatal(self, monkeypatch):
        """Test an OS query failure raises CaptureError."""

        def broken_iter(*args, **kwargs):
            raise psutil.AccessDenied()

        monkeypatch.setattr(psutil, "process_iter", broken_iter)
        with pytest.raises(CaptureError):
            list_processes()

    def test_os_error_is_fatal(self, monkeypatch):
        """Test an OSError while reading the process table raises CaptureError."""

        def broken_iter(*args, **kwargs):
            raise OSError("proc not mounted")

        monkeypatch.setattr(psutil, "process_iter", broken_iter)
        with pytest.raises(CaptureError, match="proc not mounted"):
            capture()


class TestProcessMonitor:
    """Tests for ProcessMonitor class."""

    def test_monitor_creation(self):
        """Test ProcessMonitor can be instantiated."""
        queue: Queue[list[ProcessSnapshot]] = Queue()
        monitor = ProcessMonitor(queue)

        assert monitor.poll_rate == 2.0
        assert not monitor.is_running
        assert monitor.error is None

    def test_poll_rate_minimum(self):
        """Test poll rate has a minimum value."""
        queue: Queue[list[ProcessSnapshot]] = Queue()
        monitor = ProcessMonitor(queue, poll_rate=0.01)
        assert monitor.poll_rate >= 0.1

        monitor.poll_rate = 0.0
        assert monitor.poll_rate >= 0.1

    def test_monitor_start_stop(self):
        """Test ProcessMonitor can be started and stopped."""
        queue: Queue[list[ProcessSnapshot]] = Queue()
        monitor = ProcessMonitor(queue, poll_rate=0.1)

        monitor.start()
        assert monitor.is_running

        monitor.stop()
        assert not monitor.is_running

    def test_monitor_start_idempotent(self):
        """Test starting an already running monitor is safe."""
        queue: Queue[list[ProcessSnapshot]] = Queue()
        monitor = ProcessMonitor(queue, poll_rate=0.1)

        monitor.start()
        thread1 = monitor._thread

        monitor.start()  # Should not create a new thread
        thread2 = monitor._thread

        assert thread1 is thread2
        monitor.stop()

    def test_monitor_collects_processes(self):
        """Test ProcessMonitor queues real captures."""
        queue: Queue[list[ProcessSnapshot]] = Queue()
        monitor = ProcessMonitor(queue, poll_rate=0.1)

        monitor.start()
        try:
            processes = queue.get(timeout=2.0)
            assert isinstance(processes, list)
            assert any(p.pid == os.getpid() for p in processes)
        finally:
            monitor.stop()

    def test_monitor_stops_on_capture_error(self):
        """Test a failed capture is kept on the monitor and ends the thread."""

        def failing_capture():
            raise CaptureError("boom")

        queue: Queue[list[ProcessSnapshot]] = Queue()
        monitor = ProcessMonitor(queue, poll_rate=0.1, capture_fn=failing_capture)

        monitor.start()
        monitor._thread.join(timeout=2.0)

        assert not monitor.is_running
        assert isinstance(monitor.error, CaptureError)
        with pytest.raises(Empty):
            queue.get_nowait()
        monitor.stop()

    def test_monitor_stops_on_unexpected_error(self):
        """Test an unexpected exception is kept on the monitor and ends the thread."""

        def broken_capture():
            raise KeyError("pid")

        queue: Queue[list[ProcessSnapshot]] = Queue()
        monitor = ProcessMonitor(queue, poll_rate=0.1, capture_fn=broken_capture)

        monitor.start()
        monitor._thread.join(timeout=2.0)

        assert not monitor.is_running
        assert isinstance(monitor.error, KeyError)
        monitor.stop()
