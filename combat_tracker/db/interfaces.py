"""
Repository interface definitions for the combat tracker.

Uses a Protocol class to define the contract for encounter persistence.
Implementations can write real files or keep payloads in memory for testing.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from combat_tracker.models import Encounter


class EncounterRepository(Protocol):
    """
    Interface for encounter persistence.

    Both operations raise SaveLoadError on failure.
    """

    def save(self, encounter: Encounter, target: Path) -> None:
        """Write the full encounter to a target, replacing previous content."""
        ...

    def load(self, target: Path) -> Encounter:
        """Read an encounter; its save_path is set to the target."""
        ...
