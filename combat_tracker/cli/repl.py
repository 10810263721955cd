"""
Interactive REPL for the combat tracker.

Parses operator commands, calls the encounter engine, and renders the
encounter table. Indices typed by the operator are 1-based; where a
combatant number is optional it defaults to whoever's turn it is.
"""

from __future__ import annotations

import argparse
import logging
import os
import shlex
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from combat_tracker.config import TrackerConfig
from combat_tracker.db.file_store import EncounterFileStore
from combat_tracker.engine import EncounterEngine
from combat_tracker.errors import SaveLoadError
from combat_tracker.models import Encounter
from combat_tracker.services.persistence import PersistenceService

logger = logging.getLogger(__name__)

PLAYER_ANSWERS = {"y", "yes", "p", "player"}
CURRENT_TURN_TOKENS = {".", "current"}


@dataclass
class TrackerState:
    """Current state of the tracker session."""

    engine: EncounterEngine
    persistence: PersistenceService
    running: bool = True

    @property
    def encounter(self) -> Encounter:
        return self.engine.encounter


@dataclass
class Command:
    """A REPL command."""

    name: str
    aliases: list[str]
    usage: str
    description: str
    handler: Callable[[TrackerState, list[str]], str | None]


def setup_logging(level: str = "WARNING") -> None:
    """Configure logging for the interactive session."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def default_save_name(encounter: Encounter, now: datetime | None = None) -> str:
    """Build a save file name from the encounter labels and a timestamp."""
    now = now or datetime.now()
    campaign = encounter.campaign_name.replace(" ", "_")
    name = encounter.encounter_name.replace(" ", "_")
    return f"combat_{campaign}_{name}_{now:%Y-%m-%d_%H-%M-%S}.json"


def render_encounter(encounter: Encounter) -> str:
    """Render the encounter as a table, marking whose turn it is."""
    lines = ["===== COMBAT STATE ====="]
    lines.append(f"Campaign: {encounter.campaign_name} | Encounter: {encounter.encounter_name}")
    if encounter.save_path is not None:
        lines.append(f"Auto-saving to: {encounter.save_path}")
    lines.append(f"Round: {encounter.round}")
    lines.append("-" * 40)

    for i, c in enumerate(encounter.combatants):
        marker = "→" if encounter.is_active and i == encounter.current_turn_idx else " "
        kind = "P" if c.is_player else "M"
        temp = f" (Temp: {c.temporary_hp})" if c.temporary_hp > 0 else ""
        unconscious = "" if c.is_conscious else " (Unconscious)"
        effects = f" [{', '.join(c.status_effects)}]" if c.status_effects else ""
        lines.append(
            f"{marker} {kind} {i + 1:2d}. {c.name:<20} Init: {c.initiative:2d} "
            f"HP: {c.current_hp:3d}/{c.max_hp:<3d}{temp}{unconscious}{effects}"
        )

    lines.append("-" * 40)
    return "\n".join(lines)


def _parse_int(text: str, what: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise ValueError(f"Invalid {what}: {text!r}") from None


class TrackerREPL:
    """
    Interactive REPL for the combat tracker.

    Handles user input, dispatches commands, and formats output.
    """

    def __init__(self, *, config: TrackerConfig | None = None) -> None:
        self.config = config or TrackerConfig()
        self.commands: dict[str, Command] = {}
        self._register_commands()

    def _register_commands(self) -> None:
        """Register all commands."""
        commands = [
            Command(
                name="add",
                aliases=["a"],
                usage="add <name> <initiative> <max hp> [player]",
                description="Add a combatant",
                handler=self._cmd_add,
            ),
            Command(
                name="start",
                aliases=[],
                usage="start",
                description="Sort by initiative and start combat",
                handler=self._cmd_start,
            ),
            Command(
                name="next",
                aliases=["n"],
                usage="next",
                description="Advance to the next turn",
                handler=self._cmd_next,
            ),
            Command(
                name="hp",
                aliases=[],
                usage="hp [#] <+heal/-damage>",
                description="Damage or heal a combatant",
                handler=self._cmd_hp,
            ),
            Command(
                name="temp",
                aliases=["thp"],
                usage="temp [#] <amount>",
                description="Grant temporary hit points",
                handler=self._cmd_temp,
            ),
            Command(
                name="effect",
                aliases=["status"],
                usage="effect [#] <label or catalog #>",
                description="Add a status effect",
                handler=self._cmd_effect,
            ),
            Command(
                name="uneffect",
                aliases=["unstatus"],
                usage="uneffect [#] <label or effect #>",
                description="Remove a status effect",
                handler=self._cmd_uneffect,
            ),
            Command(
                name="end",
                aliases=[],
                usage="end",
                description="End combat",
                handler=self._cmd_end,
            ),
            Command(
                name="details",
                aliases=[],
                usage="details <campaign> <encounter>",
                description="Set campaign and encounter names",
                handler=self._cmd_details,
            ),
            Command(
                name="dup",
                aliases=["duplicate"],
                usage="dup [#] <count>",
                description="Create numbered copies of a combatant",
                handler=self._cmd_dup,
            ),
            Command(
                name="init",
                aliases=[],
                usage="init [#] <initiative>",
                description="Change a combatant's initiative",
                handler=self._cmd_init,
            ),
            Command(
                name="save",
                aliases=[],
                usage="save [file]",
                description="Save the encounter and auto-save there from now on",
                handler=self._cmd_save,
            ),
            Command(
                name="load",
                aliases=[],
                usage="load <file>",
                description="Load an encounter from a file",
                handler=self._cmd_load,
            ),
            Command(
                name="show",
                aliases=["ls"],
                usage="show",
                description="Show the encounter",
                handler=self._cmd_show,
            ),
            Command(
                name="effects",
                aliases=[],
                usage="effects",
                description="List the status effect catalog",
                handler=self._cmd_effects,
            ),
            Command(
                name="clear",
                aliases=["cls"],
                usage="clear",
                description="Clear the screen",
                handler=self._cmd_clear,
            ),
            Command(
                name="help",
                aliases=["?", "h"],
                usage="help",
                description="Show available commands",
                handler=self._cmd_help,
            ),
            Command(
                name="quit",
                aliases=["exit", "q"],
                usage="quit",
                description="Save one last time and exit",
                handler=self._cmd_quit,
            ),
        ]

        for cmd in commands:
            self.commands[cmd.name] = cmd
            for alias in cmd.aliases:
                self.commands[alias] = cmd

    # =========================================================================
    # Argument helpers
    # =========================================================================

    def _resolve_target(
        self, state: TrackerState, args: list[str], rest: int
    ) -> tuple[int, list[str]]:
        """
        Split a leading combatant number off the arguments.

        When exactly `rest` arguments are given the combatant is omitted and
        the current turn is used, which requires active combat.
        """
        if len(args) < rest:
            raise ValueError("Missing arguments.")
        if len(args) > rest + 1:
            raise ValueError("Too many arguments. Quote labels that contain spaces.")

        encounter = state.encounter
        if len(args) > rest and args[0].lower() not in CURRENT_TURN_TOKENS:
            index = _parse_int(args[0], "combatant number") - 1
        else:
            if encounter.current_combatant is None:
                raise ValueError("No combatant given and combat is not active.")
            index = encounter.current_turn_idx

        if not encounter.has_index(index):
            raise ValueError("Invalid combatant index!")
        return index, args[len(args) - rest :]

    # =========================================================================
    # Command handlers
    # =========================================================================

    def _cmd_add(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle add command."""
        if len(args) not in (3, 4):
            return f"Usage: {self.commands['add'].usage}"
        name = args[0]
        initiative = _parse_int(args[1], "initiative")
        max_hp = _parse_int(args[2], "max HP")
        is_player = len(args) == 4 and args[3].lower() in PLAYER_ANSWERS

        state.engine.add_combatant(name, initiative, max_hp, is_player)
        return f"Added {name} to combat with initiative {initiative} and {max_hp} HP"

    def _cmd_start(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle start command."""
        turn = state.engine.start_combat()
        return "\n".join(
            [
                "===== COMBAT BEGINS =====",
                f"Round {turn.round}",
                f"It's {turn.combatant_name}'s turn!",
            ]
        )

    def _cmd_next(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle next command."""
        turn = state.engine.advance_turn()
        lines = []
        if turn.new_round:
            lines.append(f"===== ROUND {turn.round} =====")
        lines.append(f"It's {turn.combatant_name}'s turn!")
        return "\n".join(lines)

    def _cmd_hp(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle hp command."""
        index, rest = self._resolve_target(state, args, 1)
        amount = _parse_int(rest[0], "amount")

        change = state.engine.adjust_hp(index, amount)
        lines = []
        if change.fell_unconscious:
            lines.append(f"{change.name} falls unconscious!")
        if change.regained_consciousness:
            lines.append(f"{change.name} regains consciousness!")
        summary = f"{change.name} HP: {change.current_hp}/{change.max_hp}"
        if change.temporary_hp > 0:
            summary += f" (Temp: {change.temporary_hp})"
        lines.append(summary)
        return "\n".join(lines)

    def _cmd_temp(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle temp command."""
        index, rest = self._resolve_target(state, args, 1)
        amount = _parse_int(rest[0], "amount")

        combatant = state.encounter.combatants[index]
        if state.engine.set_temporary_hp(index, amount):
            return f"{combatant.name} now has {combatant.temporary_hp} temporary hit points!"
        return (
            f"{combatant.name} already has {combatant.temporary_hp} temporary hit points, "
            "which is higher!"
        )

    def _cmd_effect(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle effect command."""
        index, rest = self._resolve_target(state, args, 1)
        choice = rest[0]
        catalog = state.encounter.available_status_effects

        if choice.isdigit():
            number = int(choice)
            if not 1 <= number <= len(catalog):
                return "Invalid selection! Type a label for a custom status effect."
            label = catalog[number - 1]
        else:
            label = choice

        state.engine.add_status_effect(index, label)
        return f"{state.encounter.combatants[index].name} is now affected by: {label}"

    def _cmd_uneffect(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle uneffect command."""
        index, rest = self._resolve_target(state, args, 1)
        combatant = state.encounter.combatants[index]
        if not combatant.status_effects:
            return f"{combatant.name} has no status effects to remove."

        choice = rest[0]
        if choice.isdigit():
            number = int(choice)
            if not 1 <= number <= len(combatant.status_effects):
                return "Invalid selection!"
            label = combatant.status_effects[number - 1]
        else:
            label = choice

        if state.engine.remove_status_effect(index, label):
            return f"{combatant.name} is no longer affected by: {label}"
        return f"{combatant.name} was not affected by: {label}"

    def _cmd_end(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle end command."""
        state.engine.end_combat()
        return "===== COMBAT ENDED =====\n" + render_encounter(state.encounter)

    def _cmd_details(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle details command."""
        if len(args) != 2:
            return f"Usage: {self.commands['details'].usage}"
        campaign, encounter = args
        state.engine.set_encounter_details(campaign, encounter)
        return f"Set encounter details - Campaign: {campaign}, Encounter: {encounter}"

    def _cmd_dup(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle dup command."""
        index, rest = self._resolve_target(state, args, 1)
        count = _parse_int(rest[0], "number of copies")

        copies = state.engine.duplicate_combatant(index, count)
        return "\n".join(f"Created {c.name}" for c in copies)

    def _cmd_init(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle init command."""
        index, rest = self._resolve_target(state, args, 1)
        new_initiative = _parse_int(rest[0], "initiative value")

        name = state.encounter.combatants[index].name
        old_initiative = state.engine.change_initiative(index, new_initiative)
        result = f"{name}'s initiative changed from {old_initiative} to {new_initiative}"
        if state.encounter.is_active:
            result += "\nCombat order updated."
        return result

    def _cmd_save(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle save command."""
        encounter = state.encounter
        if args:
            filename = " ".join(args)
        elif encounter.save_path is not None:
            filename = str(encounter.save_path)
        else:
            filename = str(self.config.save_dir / default_save_name(encounter))

        if not filename.endswith(".json"):
            filename += ".json"

        try:
            state.persistence.save_to(encounter, filename)
        except SaveLoadError as e:
            return f"Error saving: {e}"
        return f"Combat state saved to {filename}"

    def _cmd_load(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle load command."""
        if not args:
            return f"Usage: {self.commands['load'].usage}"

        try:
            encounter = state.persistence.load_from(" ".join(args))
        except SaveLoadError as e:
            return f"Error loading: {e}"
        state.engine.replace_encounter(encounter)
        return "Combat state loaded successfully!"

    def _cmd_show(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle show command."""
        return render_encounter(state.encounter)

    def _cmd_effects(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle effects command."""
        lines = ["Status effects:", "  0. Custom (type any label)"]
        for i, effect in enumerate(state.encounter.available_status_effects, start=1):
            lines.append(f"  {i}. {effect}")
        return "\n".join(lines)

    def _cmd_clear(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle clear command."""
        os.system("cls" if os.name == "nt" else "clear")
        return None

    def _cmd_help(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle help command."""
        lines = [
            "Available Commands:",
            "-" * 40,
        ]

        seen = set()
        for cmd in self.commands.values():
            if cmd.name not in seen:
                aliases = f" ({', '.join(cmd.aliases)})" if cmd.aliases else ""
                lines.append(f"  {cmd.usage}{aliases} - {cmd.description}")
                seen.add(cmd.name)

        lines.extend(
            [
                "",
                "Tips:",
                "  - Combatant numbers are optional during combat; '.' means the current turn",
                '  - Quote names with spaces: add "Goblin Boss" 14 21',
            ]
        )
        return "\n".join(lines)

    def _cmd_quit(self, state: TrackerState, args: list[str]) -> str | None:
        """Handle quit command."""
        state.running = False
        lines = []
        if state.encounter.save_path is not None:
            lines.append(f"Performing final save to {state.encounter.save_path} before exit.")
            state.persistence.auto_save(state.encounter)
        lines.append("Exiting Combat Tracker. Farewell, adventurer!")
        return "\n".join(lines)

    # =========================================================================
    # Input processing
    # =========================================================================

    def _parse_command(self, text: str) -> tuple[str, list[str]]:
        """Parse a command into name and arguments."""
        parts = shlex.split(text.removeprefix("/"))
        if not parts:
            return "", []
        return parts[0].lower(), parts[1:]

    def process_input(self, text: str, state: TrackerState) -> str:
        """Process user input and return response."""
        text = text.strip()
        if not text:
            return ""

        try:
            cmd_name, args = self._parse_command(text)
        except ValueError as e:
            return f"Could not parse command: {e}"

        command = self.commands.get(cmd_name)
        if command is None:
            return "Invalid command. Type 'help' for a list of commands."

        try:
            result = command.handler(state, args) or ""
        except ValueError as e:
            # EncounterError is a ValueError; state is unchanged
            return str(e)

        error = state.persistence.take_error()
        if error is not None:
            result += f"\nWarning: auto-save failed: {error}"
        return result

    def run(self, state: TrackerState) -> None:
        """Run the interactive loop."""
        print("===== D&D COMBAT TRACKER =====")
        if state.encounter.save_path is not None:
            print(f"Auto-saving enabled to: {state.encounter.save_path}")
        print("Type 'help' for commands.\n")

        while state.running:
            print(render_encounter(state.encounter))
            try:
                user_input = input("\nEnter command: ")
            except (KeyboardInterrupt, EOFError):
                print("\n")
                state.running = False
                continue

            response = self.process_input(user_input, state)
            if response:
                print()
                print(response)
                print()


def create_state(
    save_file: str | None = None,
    config: TrackerConfig | None = None,
) -> TrackerState:
    """Open the session encounter and subscribe auto-save to the engine."""
    config = config or TrackerConfig()
    persistence = PersistenceService(repository=EncounterFileStore(indent=config.indent))
    encounter = persistence.open_encounter(save_file)
    engine = EncounterEngine(encounter)
    engine.subscribe(persistence)
    return TrackerState(engine=engine, persistence=persistence)


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="D&D Combat Tracker")
    parser.add_argument(
        "save_file",
        nargs="?",
        default=None,
        help="Encounter file to load and auto-save to",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        default=None,
        help="Logging level (overrides COMBAT_TRACKER_LOG_LEVEL)",
    )
    parser.add_argument(
        "--save-dir",
        type=Path,
        default=None,
        help="Directory for generated save file names",
    )

    args = parser.parse_args(argv)
    config = TrackerConfig()
    if args.log_level:
        config.log_level = args.log_level
    if args.save_dir is not None:
        config.save_dir = args.save_dir

    setup_logging(config.log_level)
    state = create_state(args.save_file, config)
    TrackerREPL(config=config).run(state)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
