"""
Save file envelope for the combat tracker.

A save file wraps the encounter with a timestamp and a format version.
Older tracker saves used `combatTracker`, `saveTime` and `version` as the
envelope keys; those are still accepted when reading.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from combat_tracker.models.encounter import Encounter

FORMAT_VERSION = "1.0.0"


def timestamp_now() -> str:
    """Local time as an ISO-8601 string with UTC offset, to the second."""
    return datetime.now().astimezone().isoformat(timespec="seconds")


class SaveState(BaseModel):
    """A persisted snapshot of an encounter."""

    encounter: Encounter = Field(validation_alias=AliasChoices("encounter", "combatTracker"))
    saved_at: str = Field(
        default="",
        validation_alias=AliasChoices("savedAt", "saveTime", "saved_at"),
        serialization_alias="savedAt",
    )
    format_version: str = Field(
        default=FORMAT_VERSION,
        validation_alias=AliasChoices("formatVersion", "version", "format_version"),
        serialization_alias="formatVersion",
    )

    model_config = {"populate_by_name": True}

    @classmethod
    def capture(cls, encounter: Encounter, saved_at: str | None = None) -> SaveState:
        """Snapshot an encounter for writing."""
        return cls(
            encounter=encounter.model_copy(deep=True),
            saved_at=saved_at or timestamp_now(),
        )

    def to_json(self, indent: int = 4) -> str:
        """Encode as indented JSON with camelCase keys in field order."""
        return self.model_dump_json(by_alias=True, indent=indent)

    @classmethod
    def from_json(cls, text: str | bytes) -> SaveState:
        """Decode a save payload. Raises pydantic.ValidationError on bad input."""
        return cls.model_validate_json(text)
