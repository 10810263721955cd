"""
Encounter persistence service.

Wires a repository to the engine: auto-saves after every mutation,
handles explicit save/load commands, and opens the encounter at startup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from combat_tracker.db.interfaces import EncounterRepository
from combat_tracker.engine.models import MutationEvent
from combat_tracker.errors import SaveLoadError
from combat_tracker.models import Encounter

logger = logging.getLogger(__name__)


@dataclass
class PersistenceService:
    """
    Saves and loads encounters through a repository.

    An instance is callable so it can be subscribed to an EncounterEngine
    as its post-mutation observer.
    """

    repository: EncounterRepository
    last_error: SaveLoadError | None = field(default=None, init=False)

    def __call__(self, encounter: Encounter, event: MutationEvent) -> None:
        self.auto_save(encounter)

    def auto_save(self, encounter: Encounter) -> bool:
        """
        Save to the encounter's configured target, if any.

        A failure is logged and kept in `last_error`; it never propagates,
        since the mutation that triggered the save has already happened.

        Returns:
            True if the encounter was written.
        """
        self.last_error = None
        if encounter.save_path is None:
            return False

        try:
            self.repository.save(encounter, encounter.save_path)
        except SaveLoadError as e:
            self.last_error = e
            logger.warning("Auto-save failed: %s", e)
            return False
        return True

    def take_error(self) -> SaveLoadError | None:
        """Return and clear the last auto-save failure."""
        error, self.last_error = self.last_error, None
        return error

    def save_to(self, encounter: Encounter, target: Path | str) -> None:
        """
        Save explicitly; on success the target becomes the auto-save target.

        Raises:
            SaveLoadError: If the target cannot be written
        """
        path = Path(target)
        self.repository.save(encounter, path)
        encounter.save_path = path

    def load_from(self, target: Path | str) -> Encounter:
        """
        Load an encounter; it will auto-save back to the same target.

        Raises:
            SaveLoadError: If the target cannot be read or decoded
        """
        return self.repository.load(Path(target))

    def open_encounter(self, target: Path | str | None = None) -> Encounter:
        """
        Open the encounter for a new session.

        Without a target, starts fresh with auto-save disabled. With a
        target, loads it, falling back to a fresh encounter that will
        auto-save to the target if loading fails for any reason.
        """
        if target is None:
            return Encounter()

        path = Path(target)
        try:
            return self.repository.load(path)
        except SaveLoadError as e:
            logger.warning("Failed to load save file: %s", e)
            return Encounter(save_path=path)
