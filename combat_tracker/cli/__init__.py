"""Command-line interface for the combat tracker."""

from __future__ import annotations

from combat_tracker.cli.repl import TrackerREPL, TrackerState, create_state, main

__all__ = [
    "TrackerREPL",
    "TrackerState",
    "create_state",
    "main",
]
