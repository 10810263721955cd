"""
Combat Tracker.

A turn-based encounter tracker for tabletop role-playing sessions:
initiative order, hit points, temporary HP, status effects, and an
encounter file that is rewritten after every change.
"""

__version__ = "1.0.0"
