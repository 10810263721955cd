"""
Service layer for the combat tracker.

Services orchestrate persistence around the encounter engine.
"""

from __future__ import annotations

from combat_tracker.services.persistence import PersistenceService

__all__ = [
    "PersistenceService",
]
