"""
Runtime configuration for the combat tracker.

Configuration via environment variables:
    COMBAT_TRACKER_SAVE_DIR: Directory for generated save file names (default: .)
    COMBAT_TRACKER_LOG_LEVEL: Logging level name (default: WARNING)
    COMBAT_TRACKER_INDENT: JSON indent width for save files (default: 4)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class TrackerConfig:
    """Settings for the REPL and the save file gateway."""

    save_dir: Path = field(default_factory=lambda: Path("."))
    log_level: str = "WARNING"
    indent: int = 4

    def __post_init__(self) -> None:
        """Apply environment overrides."""
        if os.getenv("COMBAT_TRACKER_SAVE_DIR"):
            self.save_dir = Path(os.getenv("COMBAT_TRACKER_SAVE_DIR", str(self.save_dir)))

        if os.getenv("COMBAT_TRACKER_LOG_LEVEL"):
            self.log_level = os.getenv("COMBAT_TRACKER_LOG_LEVEL", self.log_level).upper()

        indent = os.getenv("COMBAT_TRACKER_INDENT")
        if indent:
            try:
                self.indent = int(indent)
            except ValueError as e:
                raise ValueError(f"COMBAT_TRACKER_INDENT must be an integer, got {indent!r}") from e
