"""
File-based encounter persistence.

Save files are indented JSON. Writes go to a temporary file in the
destination directory which is then renamed over the target, so a failed
write never leaves a truncated save behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from combat_tracker.db.codec import decode_save_state, encode_encounter
from combat_tracker.errors import SaveLoadError
from combat_tracker.models import Encounter

logger = logging.getLogger(__name__)


class EncounterFileStore:
    """Reads and writes encounter save files on disk."""

    def __init__(self, indent: int = 4) -> None:
        self.indent = indent

    def serialize(self, encounter: Encounter) -> str:
        """Return the save payload for an encounter."""
        return encode_encounter(encounter, indent=self.indent)

    def write(self, payload: str, destination: Path | str) -> None:
        """
        Write a payload to a destination, replacing any prior content.

        Raises:
            SaveLoadError: If the destination cannot be written
        """
        path = Path(destination)
        temp_path: Path | None = None
        try:
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
            temp_path = Path(temp_name)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.chmod(temp_path, 0o644)
            os.replace(temp_path, path)
        except OSError as e:
            if temp_path is not None and temp_path.exists():
                temp_path.unlink()
            raise SaveLoadError(f"error writing to file: {e}") from e

    def save(self, encounter: Encounter, target: Path | str) -> None:
        """Serialize and write an encounter."""
        self.write(self.serialize(encounter), target)
        logger.info("Combat state saved to %s", target)

    def load(self, target: Path | str) -> Encounter:
        """
        Load an encounter from a save file.

        Raises:
            SaveLoadError: If the file cannot be read or decoded
        """
        path = Path(target)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise SaveLoadError(f"error reading file: {e}") from e

        state = decode_save_state(data)
        encounter = state.encounter
        encounter.save_path = path
        logger.info("Loaded save from: %s", state.saved_at)
        return encounter
