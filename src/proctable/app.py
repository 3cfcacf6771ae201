"""proctable - Main Textual application."""

import logging
from collections.abc import Callable
from queue import Empty, Queue

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.widgets import DataTable

from proctable.keys import KeyRouter
from proctable.models import ProcessSnapshot
from proctable.monitor import CaptureError, ProcessMonitor, capture
from proctable.settings import Settings
from proctable.table import ProcessTableModel

logger = logging.getLogger(__name__)

COLUMNS = [("PID", "pid"), ("Name", "name"), ("Command", "command"), ("Run Time", "runtime")]

PID_WIDTH = 10  # Fits the largest 32-bit pid
MIN_WIDTH = 10
CELL_PADDING = 1
FRAME_WIDTH = 4  # Border plus vertical scrollbar


def format_runtime(seconds: int) -> str:
    """Format elapsed seconds as [Nd ]HH:MM:SS."""
    days = seconds // 86400
    hours = (seconds % 86400) // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    if days > 0:
        return f"{days}d {hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def column_widths(total: int) -> tuple[int, int, int, int]:
    """
    Split the available width between the table columns.

    PID is fixed; the other columns share what is left equally, never going
    below MIN_WIDTH, and any remainder goes to Command.
    """
    spare = total - PID_WIDTH - 2 * CELL_PADDING * len(COLUMNS)
    share = max(MIN_WIDTH, spare // 3)
    remainder = max(0, spare - 3 * share)
    return (PID_WIDTH, share, share + remainder, share)


class ProcessView(DataTable, can_focus=False, inherit_bindings=False):
    """Bordered process table; keys are handled by the app, not the table."""

    DEFAULT_CSS = """
    ProcessView {
        height: 1fr;
        border: solid $primary;
    }
    """

    def on_click(self, event: events.Click) -> None:
        """Ignore clicks; the highlighted row follows the keyboard only."""
        event.prevent_default()


class ProctableApp(App):
    """Main proctable application."""

    TITLE = "proctable"

    CSS = """
    Screen {
        layout: vertical;
    }
    """

    def __init__(
        self,
        settings: Settings | None = None,
        capture_fn: Callable[[], list[ProcessSnapshot]] = capture,
    ) -> None:
        """Initialize the ProctableApp."""
        super().__init__()
        self._settings = settings or Settings()
        self._capture = capture_fn
        self._model = ProcessTableModel()
        self._router = KeyRouter()
        self._update_queue: Queue[list[ProcessSnapshot]] = Queue()
        self._monitor: ProcessMonitor | None = None
        if self._settings.refresh_enabled:
            self._monitor = ProcessMonitor(
                self._update_queue,
                poll_rate=self._settings.refresh_interval,
                capture_fn=capture_fn,
            )
        self._error: Exception | None = None
        self._drawn = False

    @property
    def model(self) -> ProcessTableModel:
        """Get the process table model."""
        return self._model

    @property
    def error(self) -> Exception | None:
        """Get the error that stopped the application, if any."""
        return self._error

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield ProcessView(id="process-table", cursor_type="row")

    def on_mount(self) -> None:
        """Take the initial capture and draw the first frame."""
        table = self.query_one(ProcessView)
        table.border_title = self._settings.title

        try:
            self._model = ProcessTableModel(self._capture())
        except CaptureError as e:
            self._fail(e)
            return

        self._drawn = True
        self._draw_table()

        if self._monitor is not None:
            self._monitor.start()
            self.set_interval(min(0.5, self._monitor.poll_rate), self._check_for_updates)

    def on_resize(self, event: events.Resize) -> None:
        """Recompute column widths for the new terminal size."""
        if self._drawn:
            self._draw_table()

    def on_unmount(self) -> None:
        """Stop background refresh however the application ends."""
        self._stop_monitor()

    def on_key(self, event: events.Key) -> None:
        """Route a key press to the model or quit."""
        event.stop()
        if not self._router.dispatch(event.key, self._model):
            self._stop_monitor()
            self.exit()
            return
        if self._drawn:
            self._draw_cursor()

    def _check_for_updates(self) -> None:
        """Apply the most recent capture from the monitor, if any."""
        if self._error is not None:
            return
        if self._monitor is not None and self._monitor.error is not None:
            self._fail(self._monitor.error)
            return

        # Drain the queue, keeping only the latest capture
        processes = None
        while True:
            try:
                processes = self._update_queue.get_nowait()
            except Empty:
                break

        if processes is not None:
            self._model.replace(processes)
            self._draw_table()

    def _draw_table(self) -> None:
        """Redraw every row of the table from the model."""
        table = self.query_one(ProcessView)
        scroll_y = table.scroll_y
        table.clear(columns=True)
        widths = column_widths(self.size.width - FRAME_WIDTH)
        for (label, key), width in zip(COLUMNS, widths):
            table.add_column(label, key=key, width=width)
        for proc in self._model.processes:
            table.add_row(
                str(proc.pid),
                Text(proc.name),
                Text(proc.command_label),
                format_runtime(proc.runtime),
            )
        self._draw_cursor()
        if self._model.selected is None:
            # clear() resets the scroll offset; restore it once the rows are laid out
            self.call_after_refresh(table.scroll_to, y=scroll_y, animate=False)

    def _draw_cursor(self) -> None:
        """Move the highlighted row to the model's selection."""
        table = self.query_one(ProcessView)
        selected = self._model.selected
        table.show_cursor = selected is not None
        if selected is not None:
            table.move_cursor(row=selected)

    def _fail(self, error: Exception) -> None:
        """Stop the application because of a fatal error."""
        logger.error("Stopping: %s", error)
        self._error = error
        self._stop_monitor()
        self.exit(return_code=1)

    def _stop_monitor(self) -> None:
        """Stop and join the refresh thread, if one was started."""
        if self._monitor is not None:
            self._monitor.stop()
