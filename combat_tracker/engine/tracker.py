"""
Encounter Engine for the combat tracker.

Owns one Encounter and every operation that changes it. Operations
validate first and raise EncounterError without touching state; once a
change is committed, registered observers are notified (auto-save is
one such observer).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from combat_tracker.engine.models import HPChange, Mutation, MutationEvent, TurnChange
from combat_tracker.errors import EncounterError
from combat_tracker.models import Combatant, Encounter

logger = logging.getLogger(__name__)

EncounterObserver = Callable[[Encounter, MutationEvent], None]

_TRAILING_NUMBER = re.compile(r"^(.*?)(\d+)$", re.DOTALL)


def split_trailing_number(name: str) -> tuple[str, int]:
    """
    Split a name into its base and trailing decimal number.

    Examples:
        >>> split_trailing_number("Orc12")
        ('Orc', 12)
        >>> split_trailing_number("Skeleton")
        ('Skeleton', 0)
    """
    match = _TRAILING_NUMBER.match(name)
    if not match:
        return name, 0
    return match.group(1), int(match.group(2))


class EncounterEngine:
    """
    The encounter state machine.

    Not safe for concurrent use: one operator drives one engine.
    """

    def __init__(self, encounter: Encounter | None = None) -> None:
        self.encounter = encounter if encounter is not None else Encounter()
        self._observers: list[EncounterObserver] = []

    # =========================================================================
    # Observers
    # =========================================================================

    def subscribe(self, observer: EncounterObserver) -> None:
        """Register a callback invoked after every committed mutation."""
        self._observers.append(observer)

    def _notify(self, mutation: Mutation, index: int | None = None) -> None:
        event = MutationEvent(mutation=mutation, index=index)
        for observer in self._observers:
            observer(self.encounter, event)

    def replace_encounter(self, encounter: Encounter) -> None:
        """Swap in a different encounter, e.g. one loaded from disk."""
        self.encounter = encounter

    # =========================================================================
    # Roster
    # =========================================================================

    def _require_index(self, index: int) -> Combatant:
        if not self.encounter.has_index(index):
            raise EncounterError(f"Invalid combatant index: {index}")
        return self.encounter.combatants[index]

    def _sort_by_initiative(self) -> None:
        # list.sort is stable, so tied initiatives keep their relative order
        self.encounter.combatants.sort(key=lambda c: c.initiative, reverse=True)

    def add_combatant(
        self,
        name: str,
        initiative: int,
        max_hp: int,
        is_player: bool = False,
    ) -> Combatant:
        """Append a combatant at full health."""
        combatant = Combatant(
            name=name,
            initiative=initiative,
            max_hp=max_hp,
            current_hp=max_hp,
            is_player=is_player,
        )
        self.encounter.combatants.append(combatant)
        logger.debug("Added %s (initiative %d, %d HP)", name, initiative, max_hp)
        self._notify(Mutation.ADD_COMBATANT, len(self.encounter.combatants) - 1)
        return combatant

    def duplicate_combatant(self, index: int, count: int) -> list[Combatant]:
        """
        Append numbered copies of a combatant.

        "Orc12" duplicated twice yields "Orc13" and "Orc14"; a name without
        a trailing number starts counting at 1. Copies are fresh: full HP,
        conscious, no temporary HP and no status effects. Names are not
        checked against the existing roster.
        """
        original = self._require_index(index)
        if count < 1:
            raise EncounterError(f"Number of copies must be at least 1, got {count}")

        base_name, last_number = split_trailing_number(original.name)
        copies = [
            Combatant(
                name=f"{base_name}{last_number + i}",
                initiative=original.initiative,
                max_hp=original.max_hp,
                current_hp=original.max_hp,
                is_player=original.is_player,
            )
            for i in range(1, count + 1)
        ]
        self.encounter.combatants.extend(copies)
        logger.debug("Duplicated %s %d time(s)", original.name, count)
        self._notify(Mutation.DUPLICATE_COMBATANT, index)
        return copies

    def change_initiative(self, index: int, new_initiative: int) -> int:
        """
        Overwrite a combatant's initiative and return the old value.

        While combat is active the roster is re-sorted immediately. The turn
        pointer is positional, so after a re-sort it may point at a
        different combatant.
        """
        combatant = self._require_index(index)
        old_initiative = combatant.initiative
        combatant.initiative = new_initiative

        if self.encounter.is_active:
            self._sort_by_initiative()
            logger.debug("Combat order re-sorted after initiative change")

        self._notify(Mutation.CHANGE_INITIATIVE, index)
        return old_initiative

    def set_encounter_details(self, campaign_name: str, encounter_name: str) -> None:
        """Overwrite the campaign and encounter labels."""
        self.encounter.campaign_name = campaign_name
        self.encounter.encounter_name = encounter_name
        self._notify(Mutation.SET_DETAILS)

    # =========================================================================
    # Combat Flow
    # =========================================================================

    def _turn_change(self, new_round: bool = False) -> TurnChange:
        encounter = self.encounter
        return TurnChange(
            round=encounter.round,
            turn_index=encounter.current_turn_idx,
            combatant_name=encounter.combatants[encounter.current_turn_idx].name,
            new_round=new_round,
        )

    def start_combat(self) -> TurnChange:
        """Sort by initiative and begin round 1. Can restart an ended combat."""
        if not self.encounter.combatants:
            raise EncounterError("Cannot start combat with no combatants!")

        self._sort_by_initiative()
        self.encounter.round = 1
        self.encounter.current_turn_idx = 0
        self.encounter.is_active = True

        logger.info("Combat started with %d combatants", len(self.encounter.combatants))
        self._notify(Mutation.START_COMBAT)
        return self._turn_change(new_round=True)

    def advance_turn(self) -> TurnChange:
        """Move to the next combatant, wrapping into a new round."""
        encounter = self.encounter
        if not encounter.is_active:
            raise EncounterError("Combat hasn't started yet!")
        if not encounter.combatants:
            # Only reachable through a hand-edited save
            raise EncounterError("Cannot advance a turn with no combatants!")

        new_round = False
        encounter.current_turn_idx += 1
        if encounter.current_turn_idx >= len(encounter.combatants):
            encounter.current_turn_idx = 0
            encounter.round += 1
            new_round = True

        self._notify(Mutation.ADVANCE_TURN, encounter.current_turn_idx)
        return self._turn_change(new_round=new_round)

    def end_combat(self) -> None:
        """Stop combat, keeping round and turn index as history."""
        if not self.encounter.is_active:
            raise EncounterError("No active combat to end!")

        self.encounter.is_active = False
        logger.info("Combat ended after %d round(s)", self.encounter.round)
        self._notify(Mutation.END_COMBAT)

    # =========================================================================
    # Hit Points
    # =========================================================================

    def adjust_hp(self, index: int, delta: int) -> HPChange:
        """
        Apply damage (negative delta) or healing (zero or positive delta).

        Damage is taken from temporary HP first, then from current HP,
        which never drops below 0. Healing is capped at max HP and wakes
        an unconscious combatant once HP is above 0.
        """
        c = self._require_index(index)
        absorbed = 0
        fell_unconscious = False
        regained = False

        if delta < 0:
            damage = -delta
            absorbed = min(damage, c.temporary_hp)
            c.temporary_hp -= absorbed
            c.current_hp -= damage - absorbed

            if c.current_hp <= 0:
                c.current_hp = 0
                fell_unconscious = c.is_conscious
                c.is_conscious = False
        else:
            c.current_hp = min(c.current_hp + delta, c.max_hp)
            if not c.is_conscious and c.current_hp > 0:
                c.is_conscious = True
                regained = True

        if fell_unconscious:
            logger.debug("%s falls unconscious", c.name)
        elif regained:
            logger.debug("%s regains consciousness", c.name)

        self._notify(Mutation.ADJUST_HP, index)
        return HPChange(
            name=c.name,
            current_hp=c.current_hp,
            max_hp=c.max_hp,
            temporary_hp=c.temporary_hp,
            absorbed_by_temp=absorbed,
            fell_unconscious=fell_unconscious,
            regained_consciousness=regained,
        )

    def set_temporary_hp(self, index: int, amount: int) -> bool:
        """
        Grant temporary HP. Temporary HP does not stack.

        Returns:
            True if the new amount replaced a lower value, False if the
            existing value was kept.
        """
        c = self._require_index(index)
        if amount <= c.temporary_hp:
            return False

        c.temporary_hp = amount
        self._notify(Mutation.SET_TEMP_HP, index)
        return True

    # =========================================================================
    # Status Effects
    # =========================================================================

    def add_status_effect(self, index: int, label: str) -> None:
        """Append a status effect label. The same label may be added twice."""
        c = self._require_index(index)
        c.status_effects.append(label)
        self._notify(Mutation.ADD_STATUS, index)

    def remove_status_effect(self, index: int, label: str) -> bool:
        """
        Remove the first occurrence of a status effect label.

        The order of the remaining effects is not guaranteed.

        Returns:
            True if a label was removed, False if the combatant did not have it.
        """
        c = self._require_index(index)
        try:
            c.status_effects.remove(label)
        except ValueError:
            return False

        self._notify(Mutation.REMOVE_STATUS, index)
        return True
