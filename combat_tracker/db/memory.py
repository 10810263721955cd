"""
In-memory implementation of the encounter repository for testing.

Payloads are encoded exactly as the file store encodes them and kept in a
dictionary, so round trips exercise the real codec without touching disk.
"""

from __future__ import annotations

from pathlib import Path

from combat_tracker.db.codec import decode_save_state, encode_encounter
from combat_tracker.errors import SaveLoadError
from combat_tracker.models import Encounter


class InMemoryEncounterRepository:
    """
    In-memory implementation of EncounterRepository for testing.

    Targets listed in `unwritable` fail on save, simulating a read-only
    destination.
    """

    def __init__(self) -> None:
        self.payloads: dict[Path, str] = {}
        self.unwritable: set[Path] = set()
        self.save_count = 0

    def save(self, encounter: Encounter, target: Path) -> None:
        """Store the encoded encounter under the target."""
        target = Path(target)
        if target in self.unwritable:
            raise SaveLoadError(f"error writing to file: {target} is read-only")
        self.payloads[target] = encode_encounter(encounter)
        self.save_count += 1

    def load(self, target: Path) -> Encounter:
        """Decode the encounter stored under the target."""
        target = Path(target)
        if target not in self.payloads:
            raise SaveLoadError(f"error reading file: no such target {target}")
        encounter = decode_save_state(self.payloads[target]).encounter
        encounter.save_path = target
        return encounter
