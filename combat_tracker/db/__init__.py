"""
Persistence layer for the combat tracker.

Provides an interface and implementations for storing encounters:
- EncounterFileStore: JSON save files on disk
- InMemoryEncounterRepository: For testing (no file system access)
"""

from __future__ import annotations

from combat_tracker.db.codec import decode_save_state, encode_encounter
from combat_tracker.db.file_store import EncounterFileStore
from combat_tracker.db.interfaces import EncounterRepository
from combat_tracker.db.memory import InMemoryEncounterRepository

__all__ = [
    # Protocol interface
    "EncounterRepository",
    # Implementations
    "EncounterFileStore",
    "InMemoryEncounterRepository",
    # Payload encoding
    "decode_save_state",
    "encode_encounter",
]
