"""
Encounter Models for the combat tracker.

Defines the tracked state of one combat session:
- Combatant: a player or monster in the fight
- Encounter: the roster, turn pointer, round counter and labels

Keys are camelCase on the wire so save files stay hand-editable and
compatible with earlier tracker saves.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

DEFAULT_CAMPAIGN_NAME = "Default Campaign"
DEFAULT_ENCOUNTER_NAME = "Unknown Encounter"

DEFAULT_STATUS_EFFECTS: tuple[str, ...] = (
    "Blinded",
    "Charmed",
    "Deafened",
    "Frightened",
    "Grappled",
    "Incapacitated",
    "Invisible",
    "Paralyzed",
    "Petrified",
    "Poisoned",
    "Prone",
    "Restrained",
    "Stunned",
    "Unconscious",
)


def default_status_effects() -> list[str]:
    """Return a fresh copy of the default status effect catalog."""
    return list(DEFAULT_STATUS_EFFECTS)


class Combatant(BaseModel):
    """
    One participant in an encounter.

    HP values are not range-checked here: the engine keeps
    current_hp within [0, max_hp], but hand-edited saves load as-is.
    """

    name: str
    initiative: int = 0
    max_hp: int = Field(default=0, alias="maxHP")
    current_hp: int = Field(default=0, alias="currentHP")
    is_player: bool = Field(default=False, alias="isPlayer")
    is_conscious: bool = Field(default=True, alias="isConscious")
    temporary_hp: int = Field(default=0, alias="temporaryHP")
    status_effects: list[str] = Field(default_factory=list, alias="statusEffects")

    model_config = {"populate_by_name": True}

    @field_validator("status_effects", mode="before")
    @classmethod
    def null_effects_as_empty(cls, value: object) -> object:
        if value is None:
            return []
        return value

    @model_validator(mode="after")
    def default_current_hp(self) -> Combatant:
        # A combatant without a recorded current HP starts at full health
        if "current_hp" not in self.model_fields_set:
            self.current_hp = self.max_hp
        return self


class Encounter(BaseModel):
    """
    The full tracked state of one combat session.

    The order of `combatants` is the turn order once combat has started.
    `save_path` is the auto-save target; it lives only in memory and is
    never written to the save file.
    """

    combatants: list[Combatant] = Field(default_factory=list)
    round: int = 0
    current_turn_idx: int = Field(default=-1, alias="currentTurnIdx")
    is_active: bool = Field(default=False, alias="isActive")
    campaign_name: str = Field(default=DEFAULT_CAMPAIGN_NAME, alias="campaignName")
    encounter_name: str = Field(default=DEFAULT_ENCOUNTER_NAME, alias="encounterName")
    available_status_effects: list[str] = Field(
        default_factory=default_status_effects,
        validation_alias=AliasChoices(
            "availableStatusEffects", "statusEffects", "available_status_effects"
        ),
        serialization_alias="availableStatusEffects",
    )

    save_path: Path | None = Field(default=None, exclude=True)

    model_config = {"populate_by_name": True}

    @field_validator("combatants", "available_status_effects", mode="before")
    @classmethod
    def null_list_as_empty(cls, value: object) -> object:
        if value is None:
            return []
        return value

    @property
    def current_combatant(self) -> Combatant | None:
        """The combatant whose turn it is, or None outside of combat."""
        if not self.is_active:
            return None
        if 0 <= self.current_turn_idx < len(self.combatants):
            return self.combatants[self.current_turn_idx]
        return None

    def has_index(self, index: int) -> bool:
        """Check whether an index addresses a combatant in the roster."""
        return 0 <= index < len(self.combatants)
