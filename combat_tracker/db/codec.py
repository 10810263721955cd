"""
Save payload encoding shared by the repository implementations.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from combat_tracker.errors import SaveLoadError
from combat_tracker.models import Encounter, SaveState, default_status_effects

logger = logging.getLogger(__name__)


def encode_encounter(encounter: Encounter, indent: int = 4, saved_at: str | None = None) -> str:
    """Serialize an encounter into a save payload."""
    return SaveState.capture(encounter, saved_at=saved_at).to_json(indent=indent)


def decode_save_state(payload: str | bytes) -> SaveState:
    """
    Decode a save payload.

    An empty status effect catalog is replaced by the default catalog, so
    saves from versions without the catalog still offer quick picks.

    Raises:
        SaveLoadError: If the payload is not valid JSON of the expected shape
    """
    try:
        state = SaveState.from_json(payload)
    except ValidationError as e:
        raise SaveLoadError(f"error parsing save data: {e}") from e

    if not state.encounter.available_status_effects:
        state.encounter.available_status_effects = default_status_effects()
        logger.info("Initialized default status effects list.")

    return state
