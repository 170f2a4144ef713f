#!/usr/bin/env python3
"""Initialize the mural-priority key-value database."""

import argparse
import json
import sqlite3
from pathlib import Path

from mural_priority.config import DEFAULT_STORAGE_KEY
from mural_priority.storage import SqliteKeyValueStore


def init_db(db_path: Path, storage_key: str = DEFAULT_STORAGE_KEY, reset: bool = False) -> None:
    """Create the kv_store table and an empty suggestion state map."""
    print(f"Initializing database: {db_path}")

    storage = SqliteKeyValueStore(db_path)
    existing = storage.get(storage_key)

    if existing is None or reset:
        storage.set(storage_key, json.dumps({}))
        print(f"  Empty state map written to {storage_key!r}.")
    else:
        try:
            count = len(json.loads(existing))
            print(f"  {storage_key!r} already holds {count} suggestion state(s).")
        except (json.JSONDecodeError, TypeError):
            print(f"  {storage_key!r} holds malformed data; rerun with --reset to clear it.")

    # Show final state
    conn = sqlite3.connect(db_path)
    try:
        cursor = conn.execute("SELECT key, updated_ts FROM kv_store ORDER BY key")
        print("\nKeys:")
        for row in cursor:
            print(f"  {row[0]} (updated {row[1]})")
    finally:
        conn.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Initialize mural-priority database")
    parser.add_argument(
        "--db",
        type=Path,
        default=Path("mural.db"),
        help="Path to the SQLite database file (default: mural.db)",
    )
    parser.add_argument(
        "--key",
        default=DEFAULT_STORAGE_KEY,
        help=f"Storage key for the state map (default: {DEFAULT_STORAGE_KEY})",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Overwrite any existing state map with an empty one",
    )
    args = parser.parse_args()

    init_db(args.db, storage_key=args.key, reset=args.reset)


if __name__ == "__main__":
    main()
