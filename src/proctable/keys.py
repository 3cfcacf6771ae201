"""Keyboard routing for proctable."""

import logging
from collections.abc import Mapping
from enum import Enum

from proctable.table import ProcessTableModel

logger = logging.getLogger(__name__)


class Command(Enum):
    """Commands a key can trigger."""

    QUIT = "quit"
    ADVANCE = "advance"
    RETREAT = "retreat"


DEFAULT_KEYMAP: dict[str, Command] = {
    "q": Command.QUIT,
    "down": Command.ADVANCE,
    "up": Command.RETREAT,
    # vi-style aliases
    "j": Command.ADVANCE,
    "k": Command.RETREAT,
}


class KeyRouter:
    """Maps key names to table model operations or a quit signal."""

    def __init__(self, keymap: Mapping[str, Command] | None = None) -> None:
        """Initialize KeyRouter with a key map (defaults to DEFAULT_KEYMAP)."""
        self._keymap = dict(DEFAULT_KEYMAP if keymap is None else keymap)

    def command_for(self, key: str) -> Command | None:
        """Look up the command bound to a key."""
        return self._keymap.get(key)

    def dispatch(self, key: str, model: ProcessTableModel) -> bool:
        """
        Apply the command bound to ``key`` to the model.

        Returns:
            False when the key asks to quit, True to keep running. Unbound
            keys are ignored and leave the model untouched.
        """
        command = self.command_for(key)
        if command is Command.QUIT:
            logger.info("Quit requested")
            return False
        if command is Command.ADVANCE:
            model.advance()
        elif command is Command.RETREAT:
            model.retreat()
        return True
