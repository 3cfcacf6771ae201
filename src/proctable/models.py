"""Data models for proctable."""

from dataclasses import dataclass

UNAVAILABLE = "N/A"


@dataclass(slots=True, frozen=True)
class ProcessSnapshot:
    """Immutable snapshot of a process at capture time."""

    pid: int
    name: str  # May be empty or truncated by the OS
    command: str | None  # Last command-line token, None if unreported
    runtime: int  # Seconds since process start

    @property
    def command_label(self) -> str:
        """Get the command for display, with a marker when unavailable."""
        return UNAVAILABLE if self.command is None else self.command
