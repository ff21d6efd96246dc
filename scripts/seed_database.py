#!/usr/bin/env python3
"""
Database Seeding Script - create tables and the default chart of accounts.
Optionally loads extra accounts from a CSV file with code,name,type columns.
"""

import csv
import os
import sys

from ledger.core.config import Settings
from ledger.core.logging_config import configure_logging
from ledger.domain.errors import DuplicateAccountError
from ledger.domain.services import AccountRegistry
from ledger.infrastructure.database import build_engine, build_session_factory, init_db
from ledger.infrastructure.repositories import SqlLedgerStore


def read_csv(filepath: str) -> list[dict]:
    """Read a CSV file into dict rows."""
    if not os.path.exists(filepath):
        return []
    with open(filepath, "r", encoding="utf-8") as f:
        return list(csv.DictReader(f))


def main() -> int:
    settings = Settings.from_env()
    configure_logging(level=settings.log_level, json_output=settings.log_json)

    print("=" * 60)
    print("Database Seeding - chart of accounts")
    print("=" * 60)

    engine = build_engine(settings.database_url)
    init_db(engine)
    registry = AccountRegistry(SqlLedgerStore(build_session_factory(engine)))

    created = registry.seed_chart_of_accounts()
    print(f"Default chart: {len(created)} accounts created")

    if len(sys.argv) > 1:
        added = 0
        for row in read_csv(sys.argv[1]):
            try:
                registry.create_account(row["code"], row["name"], row["type"], row.get("description"))
                added += 1
            except DuplicateAccountError:
                print(f"  skipped existing account {row['code']}")
        print(f"{sys.argv[1]}: {added} accounts created")

    engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
