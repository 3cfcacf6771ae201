"""Process table model with a wrapping selection cursor."""

from collections.abc import Iterable

from proctable.models import ProcessSnapshot


class ProcessTableModel:
    """
    Ordered sequence of process snapshots plus an optional selected index.

    The selection, when present, always points at a valid row. Cursor moves
    wrap around at both ends and are no-ops on an empty table.
    """

    def __init__(self, processes: Iterable[ProcessSnapshot] = ()) -> None:
        """Initialize the model with no selection."""
        self._processes: tuple[ProcessSnapshot, ...] = tuple(processes)
        self._selected: int | None = None

    def __len__(self) -> int:
        return len(self._processes)

    @property
    def processes(self) -> tuple[ProcessSnapshot, ...]:
        """Get the current sequence of snapshots."""
        return self._processes

    @property
    def selected(self) -> int | None:
        """Get the selected row index."""
        return self._selected

    @property
    def selected_process(self) -> ProcessSnapshot | None:
        """Get the snapshot under the cursor, if any."""
        if self._selected is None:
            return None
        return self._processes[self._selected]

    def select(self, index: int | None) -> None:
        """Select a row by index, or clear the selection with None."""
        if index is not None and not 0 <= index < len(self._processes):
            raise IndexError(f"row {index} out of range for {len(self._processes)} rows")
        self._selected = index

    def advance(self) -> None:
        """Move the cursor down one row, wrapping to the top."""
        if not self._processes:
            return
        if self._selected is None:
            self._selected = 0
        else:
            self._selected = (self._selected + 1) % len(self._processes)

    def retreat(self) -> None:
        """Move the cursor up one row, wrapping to the bottom."""
        if not self._processes:
            return
        if self._selected is None:
            self._selected = 0
        elif self._selected == 0:
            self._selected = len(self._processes) - 1
        else:
            self._selected -= 1

    def replace(self, processes: Iterable[ProcessSnapshot]) -> None:
        """
        Swap in a freshly captured sequence.

        A selection that falls past the end of the new sequence is clamped to
        the last row, or cleared when the sequence is empty.
        """
        self._processes = tuple(processes)
        if self._selected is not None and self._selected >= len(self._processes):
            self._selected = len(self._processes) - 1 if self._processes else None
