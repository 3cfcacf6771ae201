"""Runtime settings and logging setup for proctable.

Settings are gathered from command-line options (with environment variable
fallbacks) and validated here. There is no configuration file.
"""

import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

DEFAULT_TITLE = "Processes"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class SettingsError(ValueError):
    """Raised when settings fail validation."""


class Settings(BaseModel):
    """Validated runtime settings.

    Attributes:
        refresh_interval: Seconds between captures; 0 captures once at startup.
        title: Title drawn on the table border.
        log_level: Minimum level written to the log file.
        log_file: Where to write logs; None disables logging.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    refresh_interval: float = Field(default=0.0, ge=0, le=3600)
    title: str = Field(default=DEFAULT_TITLE, min_length=1)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    log_file: Path | None = None

    @property
    def refresh_enabled(self) -> bool:
        """Check whether periodic refresh is on."""
        return self.refresh_interval > 0


def build_settings(**values: object) -> Settings:
    """Build Settings from keyword values, skipping those left as None.

    Raises:
        SettingsError: With one line per invalid field.
    """
    provided = {key: value for key, value in values.items() if value is not None}
    if isinstance(provided.get("log_level"), str):
        provided["log_level"] = provided["log_level"].upper()
    try:
        return Settings(**provided)
    except ValidationError as e:
        lines = []
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"]) or "settings"
            lines.append(f"{field}: {error['msg']}")
        raise SettingsError("\n".join(lines)) from e


def configure_logging(settings: Settings) -> None:
    """Route proctable logs to the configured file.

    The terminal belongs to the UI, so without a log file all records are
    dropped.
    """
    root = logging.getLogger("proctable")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    if settings.log_file is None:
        root.addHandler(logging.NullHandler())
        root.propagate = False
        return

    handler = logging.FileHandler(settings.log_file.expanduser(), encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(settings.log_level)
    root.propagate = False
