"""Tests for the encounter engine state machine."""

from __future__ import annotations

from collections import Counter

import pytest

from combat_tracker.engine import (
    EncounterEngine,
    Mutation,
    MutationEvent,
    split_trailing_number,
)
from combat_tracker.errors import EncounterError
from combat_tracker.models import Encounter


@pytest.fixture
def engine() -> EncounterEngine:
    return EncounterEngine()


@pytest.fixture
def events(engine: EncounterEngine) -> list[MutationEvent]:
    """Collect every mutation event the engine emits."""
    received: list[MutationEvent] = []
    engine.subscribe(lambda encounter, event: received.append(event))
    return received


@pytest.fixture
def hero_and_wolf(engine: EncounterEngine) -> EncounterEngine:
    engine.add_combatant("Hero", 10, 20, is_player=True)
    engine.add_combatant("Wolf", 15, 10)
    return engine


# --- Roster ---


class TestAddCombatant:
    """Tests for adding combatants."""

    def test_appends_at_full_health(self, engine: EncounterEngine):
        combatant = engine.add_combatant("Goblin", 12, 7)

        assert engine.encounter.combatants == [combatant]
        assert combatant.current_hp == 7
        assert combatant.max_hp == 7
        assert combatant.is_conscious
        assert combatant.temporary_hp == 0
        assert combatant.status_effects == []
        assert not combatant.is_player

    def test_count_matches_calls(self, engine: EncounterEngine):
        for i in range(5):
            engine.add_combatant(f"Kobold{i}", i, 5 + i)

        assert len(engine.encounter.combatants) == 5
        assert all(c.current_hp == c.max_hp for c in engine.encounter.combatants)

    def test_accepts_garbage_values(self, engine: EncounterEngine):
        combatant = engine.add_combatant("", -3, 0)
        assert combatant.name == ""
        assert combatant.initiative == -3
        assert combatant.current_hp == 0

    def test_does_not_sort(self, hero_and_wolf: EncounterEngine):
        names = [c.name for c in hero_and_wolf.encounter.combatants]
        assert names == ["Hero", "Wolf"]

    def test_notifies(self, engine: EncounterEngine, events: list[MutationEvent]):
        engine.add_combatant("Goblin", 12, 7)
        assert events == [MutationEvent(mutation=Mutation.ADD_COMBATANT, index=0)]


class TestSplitTrailingNumber:
    """Tests for name/number splitting used by duplication."""

    def test_multi_digit_suffix(self):
        assert split_trailing_number("Orc12") == ("Orc", 12)

    def test_no_suffix(self):
        assert split_trailing_number("Skeleton") == ("Skeleton", 0)

    def test_zero_suffix(self):
        assert split_trailing_number("Orc0") == ("Orc", 0)

    def test_only_trailing_run(self):
        assert split_trailing_number("B2 Bandit 7") == ("B2 Bandit ", 7)

    def test_all_digits(self):
        assert split_trailing_number("42") == ("", 42)


class TestDuplicateCombatant:
    """Tests for duplicating combatants."""

    def test_unnumbered_name(self, engine: EncounterEngine):
        engine.add_combatant("Skeleton", 8, 13)
        copies = engine.duplicate_combatant(0, 3)

        assert [c.name for c in copies] == ["Skeleton1", "Skeleton2", "Skeleton3"]
        assert len(engine.encounter.combatants) == 4
        for copy in copies:
            assert copy.current_hp == 13
            assert copy.max_hp == 13
            assert copy.initiative == 8

    def test_numbered_name_continues(self, engine: EncounterEngine):
        engine.add_combatant("Orc12", 11, 15)
        copies = engine.duplicate_combatant(0, 2)
        assert [c.name for c in copies] == ["Orc13", "Orc14"]

    def test_copies_are_fresh(self, engine: EncounterEngine):
        engine.add_combatant("Troll", 9, 84, is_player=False)
        engine.adjust_hp(0, -90)
        engine.set_temporary_hp(0, 5)
        engine.add_status_effect(0, "Prone")

        (copy,) = engine.duplicate_combatant(0, 1)

        assert copy.current_hp == 84
        assert copy.is_conscious
        assert copy.temporary_hp == 0
        assert copy.status_effects == []
        assert not copy.is_player

    def test_keeps_player_flag(self, engine: EncounterEngine):
        engine.add_combatant("Familiar", 3, 1, is_player=True)
        (copy,) = engine.duplicate_combatant(0, 1)
        assert copy.is_player

    def test_name_collisions_accepted(self, engine: EncounterEngine):
        engine.add_combatant("Rat1", 5, 1)
        engine.add_combatant("Rat2", 5, 1)
        engine.duplicate_combatant(0, 1)

        names = [c.name for c in engine.encounter.combatants]
        assert names.count("Rat2") == 2

    def test_zero_count_rejected(self, engine: EncounterEngine, events: list[MutationEvent]):
        engine.add_combatant("Rat", 5, 1)
        events.clear()

        with pytest.raises(EncounterError):
            engine.duplicate_combatant(0, 0)

        assert len(engine.encounter.combatants) == 1
        assert events == []

    def test_bad_index_rejected(self, engine: EncounterEngine):
        with pytest.raises(EncounterError):
            engine.duplicate_combatant(0, 1)


# --- Combat flow ---


class TestStartCombat:
    """Tests for starting combat."""

    def test_empty_roster_rejected(self, engine: EncounterEngine, events: list[MutationEvent]):
        with pytest.raises(EncounterError):
            engine.start_combat()

        assert not engine.encounter.is_active
        assert engine.encounter.round == 0
        assert engine.encounter.current_turn_idx == -1
        assert events == []

    def test_sorts_descending(self, hero_and_wolf: EncounterEngine):
        turn = hero_and_wolf.start_combat()

        encounter = hero_and_wolf.encounter
        assert [c.name for c in encounter.combatants] == ["Wolf", "Hero"]
        assert encounter.round == 1
        assert encounter.current_turn_idx == 0
        assert encounter.is_active
        assert turn.combatant_name == "Wolf"
        assert turn.round == 1

    def test_sort_is_stable_on_ties(self, engine: EncounterEngine):
        engine.add_combatant("A", 10, 1)
        engine.add_combatant("B", 12, 1)
        engine.add_combatant("C", 10, 1)
        engine.add_combatant("D", 10, 1)

        engine.start_combat()

        assert [c.name for c in engine.encounter.combatants] == ["B", "A", "C", "D"]

    def test_restart_after_end(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.start_combat()
        hero_and_wolf.advance_turn()
        hero_and_wolf.advance_turn()
        hero_and_wolf.end_combat()

        hero_and_wolf.start_combat()

        assert hero_and_wolf.encounter.round == 1
        assert hero_and_wolf.encounter.current_turn_idx == 0
        assert hero_and_wolf.encounter.is_active


class TestAdvanceTurn:
    """Tests for turn advancement."""

    def test_inactive_rejected(self, hero_and_wolf: EncounterEngine):
        with pytest.raises(EncounterError):
            hero_and_wolf.advance_turn()
        assert hero_and_wolf.encounter.current_turn_idx == -1

    def test_full_pass_increments_round(self, engine: EncounterEngine):
        for name in ("A", "B", "C"):
            engine.add_combatant(name, 10, 5)
        engine.start_combat()

        turns = [engine.advance_turn() for _ in range(3)]

        assert engine.encounter.current_turn_idx == 0
        assert engine.encounter.round == 2
        assert [t.new_round for t in turns] == [False, False, True]

    def test_does_not_skip_unconscious(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.start_combat()
        hero_and_wolf.adjust_hp(1, -100)

        turn = hero_and_wolf.advance_turn()

        assert turn.combatant_name == "Hero"
        assert turn.turn_index == 1

    def test_single_combatant_wraps_every_turn(self, engine: EncounterEngine):
        engine.add_combatant("Solo", 1, 1)
        engine.start_combat()
        engine.advance_turn()
        engine.advance_turn()
        assert engine.encounter.round == 3
        assert engine.encounter.current_turn_idx == 0


class TestEndCombat:
    """Tests for ending combat."""

    def test_inactive_rejected(self, engine: EncounterEngine, events: list[MutationEvent]):
        with pytest.raises(EncounterError):
            engine.end_combat()
        assert events == []

    def test_keeps_history(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.start_combat()
        hero_and_wolf.advance_turn()
        hero_and_wolf.advance_turn()
        hero_and_wolf.advance_turn()

        hero_and_wolf.end_combat()

        encounter = hero_and_wolf.encounter
        assert not encounter.is_active
        assert encounter.round == 2
        assert encounter.current_turn_idx == 1
        assert encounter.current_combatant is None

    def test_twice_rejected(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.start_combat()
        hero_and_wolf.end_combat()
        with pytest.raises(EncounterError):
            hero_and_wolf.end_combat()


class TestChangeInitiative:
    """Tests for initiative changes."""

    def test_inactive_does_not_sort(self, hero_and_wolf: EncounterEngine):
        old = hero_and_wolf.change_initiative(0, 1)

        assert old == 10
        assert [c.name for c in hero_and_wolf.encounter.combatants] == ["Hero", "Wolf"]
        assert hero_and_wolf.encounter.combatants[0].initiative == 1

    def test_active_resorts(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.start_combat()
        hero_and_wolf.change_initiative(1, 20)

        assert [c.name for c in hero_and_wolf.encounter.combatants] == ["Hero", "Wolf"]

    def test_turn_pointer_is_positional(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.start_combat()
        assert hero_and_wolf.encounter.current_combatant.name == "Wolf"

        hero_and_wolf.change_initiative(1, 20)

        assert hero_and_wolf.encounter.current_turn_idx == 0
        assert hero_and_wolf.encounter.current_combatant.name == "Hero"

    def test_bad_index_rejected(self, hero_and_wolf: EncounterEngine):
        with pytest.raises(EncounterError):
            hero_and_wolf.change_initiative(2, 5)
        with pytest.raises(EncounterError):
            hero_and_wolf.change_initiative(-1, 5)


class TestEncounterDetails:
    """Tests for campaign/encounter labels."""

    def test_overwrites(self, engine: EncounterEngine, events: list[MutationEvent]):
        engine.set_encounter_details("Curse of Strahd", "Death House")

        assert engine.encounter.campaign_name == "Curse of Strahd"
        assert engine.encounter.encounter_name == "Death House"
        assert events[-1].mutation == Mutation.SET_DETAILS

    def test_allowed_during_combat(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.start_combat()
        hero_and_wolf.set_encounter_details("", "")
        assert hero_and_wolf.encounter.campaign_name == ""


# --- Hit points ---


class TestAdjustHP:
    """Tests for damage and healing."""

    def test_damage(self, hero_and_wolf: EncounterEngine):
        change = hero_and_wolf.adjust_hp(0, -5)

        assert change.current_hp == 15
        assert not change.fell_unconscious
        assert hero_and_wolf.encounter.combatants[0].current_hp == 15

    def test_temp_hp_absorbs_first(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.set_temporary_hp(0, 5)
        change = hero_and_wolf.adjust_hp(0, -3)

        hero = hero_and_wolf.encounter.combatants[0]
        assert hero.temporary_hp == 2
        assert hero.current_hp == 20
        assert change.absorbed_by_temp == 3

    def test_damage_overflows_temp_hp(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.set_temporary_hp(0, 5)
        hero_and_wolf.adjust_hp(0, -8)

        hero = hero_and_wolf.encounter.combatants[0]
        assert hero.temporary_hp == 0
        assert hero.current_hp == 17

    def test_overkill_knocks_out(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.set_temporary_hp(0, 4)
        change = hero_and_wolf.adjust_hp(0, -30)

        hero = hero_and_wolf.encounter.combatants[0]
        assert hero.current_hp == 0
        assert hero.temporary_hp == 0
        assert not hero.is_conscious
        assert change.fell_unconscious

    def test_exact_damage_knocks_out(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.adjust_hp(1, -10)
        assert not hero_and_wolf.encounter.combatants[1].is_conscious

    def test_damage_when_down_stays_at_zero(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.adjust_hp(1, -10)
        change = hero_and_wolf.adjust_hp(1, -4)

        assert change.current_hp == 0
        assert not change.fell_unconscious

    def test_healing_capped(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.adjust_hp(0, -5)
        change = hero_and_wolf.adjust_hp(0, 50)
        assert change.current_hp == 20

    def test_healing_revives(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.adjust_hp(0, -25)
        change = hero_and_wolf.adjust_hp(0, 7)

        hero = hero_and_wolf.encounter.combatants[0]
        assert hero.is_conscious
        assert hero.current_hp == 7
        assert change.regained_consciousness

    def test_large_heal_revives_to_max(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.adjust_hp(1, -25)
        hero_and_wolf.adjust_hp(1, 99)
        wolf = hero_and_wolf.encounter.combatants[1]
        assert wolf.current_hp == 10
        assert wolf.is_conscious

    def test_zero_heal_keeps_unconscious(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.adjust_hp(0, -25)
        hero_and_wolf.adjust_hp(0, 0)
        assert not hero_and_wolf.encounter.combatants[0].is_conscious

    def test_bad_index_rejected(self, hero_and_wolf: EncounterEngine, events: list[MutationEvent]):
        events.clear()
        with pytest.raises(EncounterError):
            hero_and_wolf.adjust_hp(5, -1)
        assert events == []


class TestSetTemporaryHP:
    """Tests for non-stacking temporary HP."""

    def test_lower_value_rejected(self, hero_and_wolf: EncounterEngine):
        assert hero_and_wolf.set_temporary_hp(0, 5)
        assert not hero_and_wolf.set_temporary_hp(0, 3)
        assert hero_and_wolf.encounter.combatants[0].temporary_hp == 5

    def test_higher_value_replaces(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.set_temporary_hp(0, 5)
        assert hero_and_wolf.set_temporary_hp(0, 8)
        assert hero_and_wolf.encounter.combatants[0].temporary_hp == 8

    def test_equal_value_not_applied(
        self, hero_and_wolf: EncounterEngine, events: list[MutationEvent]
    ):
        hero_and_wolf.set_temporary_hp(0, 5)
        events.clear()

        assert not hero_and_wolf.set_temporary_hp(0, 5)
        assert events == []

    def test_bad_index_rejected(self, engine: EncounterEngine):
        with pytest.raises(EncounterError):
            engine.set_temporary_hp(0, 5)


# --- Status effects ---


class TestStatusEffects:
    """Tests for adding and removing status effects."""

    def test_add_allows_duplicates(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.add_status_effect(0, "Poisoned")
        hero_and_wolf.add_status_effect(0, "Poisoned")
        assert hero_and_wolf.encounter.combatants[0].status_effects == ["Poisoned", "Poisoned"]

    def test_add_custom_label(self, hero_and_wolf: EncounterEngine):
        hero_and_wolf.add_status_effect(1, "Hexed by Ravenna")
        assert hero_and_wolf.encounter.combatants[1].status_effects == ["Hexed by Ravenna"]

    def test_remove_first_match_only(self, hero_and_wolf: EncounterEngine):
        for label in ("Prone", "Poisoned", "Prone", "Blinded"):
            hero_and_wolf.add_status_effect(0, label)

        assert hero_and_wolf.remove_status_effect(0, "Prone")

        remaining = hero_and_wolf.encounter.combatants[0].status_effects
        assert Counter(remaining) == Counter({"Prone": 1, "Poisoned": 1, "Blinded": 1})

    def test_remove_missing_is_soft(
        self, hero_and_wolf: EncounterEngine, events: list[MutationEvent]
    ):
        hero_and_wolf.add_status_effect(0, "Prone")
        events.clear()

        assert not hero_and_wolf.remove_status_effect(0, "Stunned")
        assert hero_and_wolf.encounter.combatants[0].status_effects == ["Prone"]
        assert events == []

    def test_bad_index_rejected(self, hero_and_wolf: EncounterEngine):
        with pytest.raises(EncounterError):
            hero_and_wolf.add_status_effect(9, "Prone")
        with pytest.raises(EncounterError):
            hero_and_wolf.remove_status_effect(9, "Prone")


# --- Observers ---


class TestObservers:
    """Tests for post-mutation notification."""

    def test_each_mutation_notifies_once(
        self, hero_and_wolf: EncounterEngine, events: list[MutationEvent]
    ):
        events.clear()
        hero_and_wolf.start_combat()
        hero_and_wolf.advance_turn()
        hero_and_wolf.adjust_hp(0, -1)
        hero_and_wolf.set_temporary_hp(0, 3)
        hero_and_wolf.add_status_effect(0, "Prone")
        hero_and_wolf.remove_status_effect(0, "Prone")
        hero_and_wolf.duplicate_combatant(0, 2)
        hero_and_wolf.change_initiative(0, 1)
        hero_and_wolf.set_encounter_details("C", "E")
        hero_and_wolf.end_combat()

        assert [e.mutation for e in events] == [
            Mutation.START_COMBAT,
            Mutation.ADVANCE_TURN,
            Mutation.ADJUST_HP,
            Mutation.SET_TEMP_HP,
            Mutation.ADD_STATUS,
            Mutation.REMOVE_STATUS,
            Mutation.DUPLICATE_COMBATANT,
            Mutation.CHANGE_INITIATIVE,
            Mutation.SET_DETAILS,
            Mutation.END_COMBAT,
        ]

    def test_observer_sees_committed_state(self, engine: EncounterEngine):
        seen: list[int] = []
        engine.subscribe(lambda encounter, event: seen.append(len(encounter.combatants)))

        engine.add_combatant("A", 1, 1)
        engine.add_combatant("B", 1, 1)

        assert seen == [1, 2]

    def test_replace_encounter_is_silent(
        self, engine: EncounterEngine, events: list[MutationEvent]
    ):
        loaded = Encounter(campaign_name="Loaded")
        engine.replace_encounter(loaded)

        assert engine.encounter is loaded
        assert events == []


# --- Scenario ---


def test_hero_and_wolf_scenario(hero_and_wolf: EncounterEngine):
    """Walk through a short fight end to end."""
    engine = hero_and_wolf

    engine.start_combat()
    assert [c.name for c in engine.encounter.combatants] == ["Wolf", "Hero"]
    assert engine.encounter.round == 1
    assert engine.encounter.current_combatant.name == "Wolf"

    engine.adjust_hp(1, -25)
    hero = engine.encounter.combatants[1]
    assert hero.name == "Hero"
    assert hero.current_hp == 0
    assert not hero.is_conscious

    engine.advance_turn()
    assert engine.encounter.current_turn_idx == 1
    engine.advance_turn()
    assert engine.encounter.current_turn_idx == 0
    assert engine.encounter.round == 2
