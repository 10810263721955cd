"""
Core Engine for the combat tracker.

The engine owns the encounter state machine:
- Roster management (add, duplicate, change initiative)
- Combat flow (start, advance turn, end)
- Hit point, temporary HP and status effect bookkeeping

Persistence is attached from outside by subscribing an observer.
"""

from __future__ import annotations

from combat_tracker.engine.models import HPChange, Mutation, MutationEvent, TurnChange
from combat_tracker.engine.tracker import (
    EncounterEngine,
    EncounterObserver,
    split_trailing_number,
)

__all__ = [
    # Main engine
    "EncounterEngine",
    "EncounterObserver",
    "split_trailing_number",
    # Models
    "HPChange",
    "Mutation",
    "MutationEvent",
    "TurnChange",
]
