#!/usr/bin/env python3
"""
Create the finance tracker database at the configured path.

The path comes from settings.json, or FINANCE_TRACKER_DB when set.
Safe to run again on an existing database.
"""
from finance_tracker.config.settings import Settings
from finance_tracker.database.connection import DatabaseConfig, DatabaseManager, get_schema_version

def main():
    settings = Settings.load()
    config = DatabaseConfig(settings.db_path)
    print(f"Database: {config.db_path}")

    with DatabaseManager(config) as db:
        row = get_schema_version(db.get_connection())

    if row is None:
        print("✗ Schema was not applied")
        raise SystemExit(1)

    print(f"✓ Ready (schema v{row['version']}: {row['description']})")

if __name__ == "__main__":
    main()
