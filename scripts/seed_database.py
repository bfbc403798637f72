#!/usr/bin/env python3
"""
Seed Database
=============

Creates the tables and inserts the users, categories and SLA targets from
the seed file (SEED_DATA_PATH, default seed_data.yaml).

Usage:
    python scripts/seed_database.py [path/to/seed_data.yaml]
"""

import asyncio
import sys
from pathlib import Path

from helpdesk.admin.infrastructure import (
    SQLAlchemyUserRepository,
    SQLAlchemyCategoryRepository,
    SQLAlchemySLATargetRepository,
)
from helpdesk.admin.infrastructure.seed import load_seed_data, seed_reference_data
from helpdesk.config import settings
from helpdesk.infrastructure.database import (
    init_database, close_database, create_tables, get_session_context
)
from helpdesk.shared.infrastructure.logging import setup_logging, get_logger

# Registers the ticket tables with the metadata
import helpdesk.tickets.infrastructure  # noqa: F401

logger = get_logger("seed_database")


async def main(path: Path) -> None:
    """Create tables and seed reference data."""
    setup_logging(settings.log_level, settings.environment)

    data = load_seed_data(path)
    init_database()
    try:
        await create_tables()
        async with get_session_context() as session:
            created = await seed_reference_data(
                data,
                SQLAlchemyUserRepository(session),
                SQLAlchemyCategoryRepository(session),
                SQLAlchemySLATargetRepository(session)
            )
    finally:
        await close_database()

    print(
        f"Seeded {created['users']} users, {created['categories']} categories, "
        f"{created['sla_targets']} SLA targets from {path}"
    )


if __name__ == "__main__":
    seed_path = Path(sys.argv[1]) if len(sys.argv) > 1 else settings.seed_data_path
    asyncio.run(main(seed_path))
