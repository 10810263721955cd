#!/usr/bin/env python3
"""
Save file health check and upgrade script.

Usage:
    python scripts/check_save.py encounter.json            # Check the file loads
    python scripts/check_save.py encounter.json --upgrade  # Rewrite in the current format
"""

from __future__ import annotations

import argparse
import os
import sys

# Add the repository root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def check_save(path: str) -> bool:
    """Check that a save file loads."""
    from combat_tracker.db import EncounterFileStore
    from combat_tracker.errors import SaveLoadError

    print(f"Checking {path}...")

    try:
        encounter = EncounterFileStore().load(path)
    except SaveLoadError as e:
        print(f"  Error - {e}")
        return False

    state = "active" if encounter.is_active else "inactive"
    print(f"  {encounter.campaign_name} / {encounter.encounter_name}")
    print(f"  {len(encounter.combatants)} combatants, round {encounter.round}, {state}")
    return True


def upgrade_save(path: str) -> bool:
    """Rewrite a save file with the current envelope and key names."""
    from combat_tracker.db import EncounterFileStore
    from combat_tracker.errors import SaveLoadError

    store = EncounterFileStore()
    try:
        store.save(store.load(path), path)
    except SaveLoadError as e:
        print(f"  Upgrade error: {e}")
        return False
    print("  Rewritten in the current format")
    return True


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Check and upgrade combat tracker save files")
    parser.add_argument("paths", nargs="+", help="Save files to check")
    parser.add_argument("--upgrade", action="store_true", help="Rewrite files that load")
    args = parser.parse_args()

    print("Combat Tracker Save Check")
    print("=" * 40)

    results: dict[str, bool] = {}
    for path in args.paths:
        ok = check_save(path)
        if ok and args.upgrade:
            ok = upgrade_save(path)
        results[path] = ok

    print()
    print("Summary")
    print("=" * 40)
    for path, ok in results.items():
        print(f"  {path}: {'OK' if ok else 'FAILED'}")

    return 0 if all(results.values()) else 1


if __name__ == "__main__":
    sys.exit(main())
