"""Exceptions shared across the tracker."""


class EncounterError(ValueError):
    """Raised when an encounter operation is rejected before mutating state."""


class SaveLoadError(Exception):
    """Raised when save or load operations fail."""
