"""
Engine Data Models for the combat tracker.

Defines the structures the engine hands back to its callers:
- Mutation / MutationEvent: what changed, for post-mutation observers
- TurnChange: whose turn it is after starting or advancing combat
- HPChange: the outcome of damage or healing
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Mutation(str, Enum):
    """Engine operations that change encounter state."""

    ADD_COMBATANT = "add-combatant"
    START_COMBAT = "start-combat"
    ADVANCE_TURN = "advance-turn"
    ADJUST_HP = "adjust-hp"
    SET_TEMP_HP = "set-temp-hp"
    ADD_STATUS = "add-status"
    REMOVE_STATUS = "remove-status"
    END_COMBAT = "end-combat"
    SET_DETAILS = "set-details"
    DUPLICATE_COMBATANT = "duplicate-combatant"
    CHANGE_INITIATIVE = "change-initiative"


class MutationEvent(BaseModel):
    """Notification sent to observers after a mutation has been applied."""

    mutation: Mutation
    index: int | None = Field(default=None, description="Roster index the mutation targeted")


class TurnChange(BaseModel):
    """Turn pointer after start_combat or advance_turn."""

    round: int
    turn_index: int
    combatant_name: str
    new_round: bool = Field(default=False, description="True when the turn order wrapped")


class HPChange(BaseModel):
    """Result of adjusting a combatant's hit points."""

    name: str
    current_hp: int
    max_hp: int
    temporary_hp: int
    absorbed_by_temp: int = Field(default=0, description="Damage soaked by temporary HP")
    fell_unconscious: bool = False
    regained_consciousness: bool = False
