"""
Data models for the combat tracker.

- Combatant / Encounter: the in-memory encounter state
- SaveState: the persisted envelope around an encounter
"""

from combat_tracker.models.encounter import (
    DEFAULT_CAMPAIGN_NAME,
    DEFAULT_ENCOUNTER_NAME,
    DEFAULT_STATUS_EFFECTS,
    Combatant,
    Encounter,
    default_status_effects,
)
from combat_tracker.models.save_state import FORMAT_VERSION, SaveState, timestamp_now

__all__ = [
    # Encounter state
    "Combatant",
    "Encounter",
    "DEFAULT_CAMPAIGN_NAME",
    "DEFAULT_ENCOUNTER_NAME",
    "DEFAULT_STATUS_EFFECTS",
    "default_status_effects",
    # Persistence envelope
    "FORMAT_VERSION",
    "SaveState",
    "timestamp_now",
]
